from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for wire schemas: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MembershipRole(str, Enum):
    MEMBER = "MEMBER"
    ADMIN = "ADMIN"
    OWNER = "OWNER"


class UserPermissionRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class Capability(str, Enum):
    INVITE_MEMBERS = "invite_members"
    CHANGE_MEMBER_ROLE = "change_member_role"
    MANAGE_OWNERS = "manage_owners"


FIXED_ROLE_CAPABILITIES: dict[MembershipRole, frozenset[Capability]] = {
    MembershipRole.MEMBER: frozenset(),
    MembershipRole.ADMIN: frozenset(
        {Capability.INVITE_MEMBERS, Capability.CHANGE_MEMBER_ROLE}
    ),
    MembershipRole.OWNER: frozenset(
        {Capability.INVITE_MEMBERS, Capability.CHANGE_MEMBER_ROLE, Capability.MANAGE_OWNERS}
    ),
}


# ---------------------------------------------------------------------------
# Role references: a membership carries either a fixed role or a custom role
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FixedRole:
    role: MembershipRole


@dataclass(frozen=True)
class CustomRoleRef:
    role_id: str


RoleRef = Union[FixedRole, CustomRoleRef]


def parse_fixed_role(value: Optional[str]) -> Optional[MembershipRole]:
    """Return the enumerated role for ``value`` (case-insensitive), or None."""
    if not value:
        return None
    try:
        return MembershipRole(value.strip().upper())
    except ValueError:
        return None


def parse_role_ref(value: str) -> Optional[RoleRef]:
    """Enumerated names become FixedRole; any other non-blank value is a custom role id."""
    fixed = parse_fixed_role(value)
    if fixed is not None:
        return FixedRole(fixed)
    value = (value or "").strip()
    if not value:
        return None
    return CustomRoleRef(value)
