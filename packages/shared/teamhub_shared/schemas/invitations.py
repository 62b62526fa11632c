"""
Invitation and membership schemas shared between server and clients.

Covers: identifier normalization, bulk invite request/response,
invite-token redemption, member role changes.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional, Union

from pydantic import EmailStr, Field, TypeAdapter, ValidationError

from .common import CamelModel


SPLIT_PATTERN = re.compile(r"[\n,;]+")

_email_adapter = TypeAdapter(EmailStr)


# ---------------------------------------------------------------------------
# Identifier normalization
# ---------------------------------------------------------------------------

def normalize_identifier(raw: Optional[str]) -> Optional[str]:
    """Trim and lowercase an invite identifier. Blank input yields None."""
    if raw is None:
        return None
    value = raw.strip().lower()
    return value or None


def looks_like_email(value: str) -> bool:
    return "@" in value


def is_valid_email(value: str) -> bool:
    try:
        _email_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def split_identifiers(text: str) -> list[str]:
    """Split a free-text field on newlines, commas and semicolons."""
    return SPLIT_PATTERN.split(text)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class CreationSource(str, Enum):
    API_V1 = "API_V1"
    API_V2 = "API_V2"
    WEBAPP = "WEBAPP"


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class InviteeEntry(CamelModel):
    """Structured invitee: an email with an explicit role."""
    email: str
    role: str


class InviteMembersRequest(CamelModel):
    username_or_email: Union[str, list[Union[str, InviteeEntry]]]
    role: Optional[str] = None
    language: str = Field(min_length=1)
    creation_source: CreationSource
    is_platform: Optional[bool] = None


class AcceptInviteRequest(CamelModel):
    token: str = Field(min_length=1)


class ChangeMemberRoleRequest(CamelModel):
    role: str = Field(min_length=1, description="MEMBER, ADMIN, OWNER or a custom role id")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class InviteMembersResponse(CamelModel):
    username_or_email: Union[str, list[Union[str, InviteeEntry]]]
    num_users_invited: int


class AcceptInviteResponse(CamelModel):
    team_name: str


class MembershipResponse(CamelModel):
    user_id: int
    team_id: int
    role: str
    custom_role_id: Optional[str] = None
    accepted: bool
