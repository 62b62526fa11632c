"""
Membership service: atomic create/update of (user, team) membership rows,
role capability lookups and member role changes.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import AlreadyMember, Forbidden, InvalidInviteRole, MemberNotFound
from app.models.membership import CustomRole, Membership
from teamhub_shared.schemas.common import (
    Capability,
    CustomRoleRef,
    FIXED_ROLE_CAPABILITIES,
    FixedRole,
    MembershipRole,
    RoleRef,
    parse_role_ref,
)

log = structlog.get_logger()

ADMIN_ROLES = (MembershipRole.ADMIN.value, MembershipRole.OWNER.value)


async def get_membership(
    user_id: int, team_id: int, session: AsyncSession
) -> Optional[Membership]:
    result = await session.execute(
        select(Membership).where(
            Membership.user_id == user_id, Membership.team_id == team_id
        )
    )
    return result.scalar_one_or_none()


async def accept_or_create_membership(
    user_id: int,
    team_id: int,
    session: AsyncSession,
    *,
    role: MembershipRole = MembershipRole.MEMBER,
) -> Membership:
    """Make ``user_id`` an accepted member of ``team_id``.

    A pending row is upgraded in place (keeping the role it was invited
    with); a missing row is created with ``role``. An accepted row raises
    AlreadyMember. A concurrent insert for the same pair trips the primary
    key and is reported the same way.
    """
    membership = await get_membership(user_id, team_id, session)
    if membership is not None and membership.accepted:
        raise AlreadyMember()

    if membership is not None:
        membership.accepted = True
        session.add(membership)
    else:
        membership = Membership(
            user_id=user_id,
            team_id=team_id,
            role=role.value,
            accepted=True,
        )
        session.add(membership)

    try:
        await session.flush()
    except IntegrityError:
        raise AlreadyMember()
    return membership


async def create_pending_membership(
    user_id: int,
    team_id: int,
    role: MembershipRole,
    session: AsyncSession,
) -> Optional[Membership]:
    """Create an unaccepted membership. Returns None if any row already exists."""
    if await get_membership(user_id, team_id, session) is not None:
        return None
    membership = Membership(
        user_id=user_id, team_id=team_id, role=role.value, accepted=False
    )
    session.add(membership)
    return membership


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------

def role_ref_of(membership: Membership) -> RoleRef:
    if membership.custom_role_id:
        return CustomRoleRef(membership.custom_role_id)
    return FixedRole(MembershipRole(membership.role))


async def capabilities_for(
    membership: Optional[Membership], session: AsyncSession
) -> frozenset[Capability]:
    """Capabilities granted by a membership. Pending memberships grant nothing."""
    if membership is None or not membership.accepted:
        return frozenset()

    ref = role_ref_of(membership)
    if isinstance(ref, FixedRole):
        return FIXED_ROLE_CAPABILITIES[ref.role]

    custom = await session.get(CustomRole, ref.role_id)
    if custom is None:
        return frozenset()
    granted = set()
    for name in custom.permissions:
        try:
            granted.add(Capability(name))
        except ValueError:
            log.warning("role.unknown_permission", role_id=custom.id, permission=name)
    return frozenset(granted)


async def require_capability(
    user_id: int, team_id: int, capability: Capability, session: AsyncSession
) -> Membership:
    membership = await get_membership(user_id, team_id, session)
    if capability not in await capabilities_for(membership, session):
        log.warning(
            "membership.capability_denied",
            user_id=user_id,
            team_id=team_id,
            capability=capability.value,
        )
        raise Forbidden("You are not authorized to manage this team")
    return membership


async def is_team_admin(user_id: int, team_id: int, session: AsyncSession) -> bool:
    membership = await get_membership(user_id, team_id, session)
    return bool(membership and membership.accepted and membership.role in ADMIN_ROLES)


async def is_team_owner(user_id: int, team_id: int, session: AsyncSession) -> bool:
    membership = await get_membership(user_id, team_id, session)
    return bool(
        membership and membership.accepted and membership.role == MembershipRole.OWNER.value
    )


async def is_team_member(user_id: int, team_id: int, session: AsyncSession) -> bool:
    membership = await get_membership(user_id, team_id, session)
    return bool(membership and membership.accepted)


# ---------------------------------------------------------------------------
# Role changes
# ---------------------------------------------------------------------------

async def change_member_role(
    team_id: int,
    member_id: int,
    role: str,
    caller_id: int,
    session: AsyncSession,
) -> Membership:
    """Assign a fixed or custom role to an existing member."""
    caller_membership = await require_capability(
        caller_id, team_id, Capability.CHANGE_MEMBER_ROLE, session
    )
    caller_caps = await capabilities_for(caller_membership, session)

    membership = await get_membership(member_id, team_id, session)
    if membership is None:
        raise MemberNotFound()

    ref = parse_role_ref(role)
    if ref is None:
        raise InvalidInviteRole(role)

    touches_owner = membership.role == MembershipRole.OWNER.value or ref == FixedRole(
        MembershipRole.OWNER
    )
    if touches_owner and Capability.MANAGE_OWNERS not in caller_caps:
        raise Forbidden("Only owners can grant or revoke the owner role")

    if isinstance(ref, FixedRole):
        membership.role = ref.role.value
        membership.custom_role_id = None
    else:
        custom = await session.get(CustomRole, ref.role_id)
        if custom is None or custom.team_id != team_id:
            raise InvalidInviteRole(role)
        membership.role = MembershipRole.MEMBER.value
        membership.custom_role_id = custom.id

    session.add(membership)
    await session.flush()

    log.info(
        "membership.role_changed",
        team_id=team_id,
        user_id=member_id,
        role=membership.role,
        custom_role_id=membership.custom_role_id,
        changed_by=caller_id,
    )
    return membership
