"""
Team membership API endpoints.

POST  /api/v1/teams/invite/accept                      Redeem an invite token
POST  /api/v1/teams/{teamId}/invite                    Invite members in bulk
PATCH /api/v1/teams/{teamId}/members/{memberId}/role   Change a member's role
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.config import get_settings
from app.core.database import get_session
from app.models.user import User
from app.services import invitations as invitation_service
from app.services import memberships as membership_service
from app.services.invite_validation import BulkInviteValidator
from teamhub_shared.schemas.common import Capability
from teamhub_shared.schemas.invitations import (
    AcceptInviteRequest,
    AcceptInviteResponse,
    ChangeMemberRoleRequest,
    InviteMembersRequest,
    InviteMembersResponse,
    MembershipResponse,
)

router = APIRouter()


@router.post("/invite/accept", response_model=AcceptInviteResponse, tags=["Teams"])
async def accept_invite(
    body: AcceptInviteRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Join the team an invite token points at. Each token works once."""
    team_name = await invitation_service.accept_invite_by_token(body.token, user.id, session)
    return AcceptInviteResponse(team_name=team_name)


@router.post("/{teamId}/invite", response_model=InviteMembersResponse, tags=["Teams"])
async def invite_members(
    teamId: int,
    body: InviteMembersRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Invite users by email or username (team admins/owners only)."""
    # Malformed batches fail before any permission lookup or write.
    batch = BulkInviteValidator(get_settings().max_invites).validate(
        body.username_or_email, body.role
    )
    await membership_service.require_capability(
        user.id, teamId, Capability.INVITE_MEMBERS, session
    )
    num_invited = await invitation_service.invite_members(teamId, batch, user.id, session)

    echoed = batch.identifiers
    if isinstance(body.username_or_email, str) and len(echoed) == 1:
        echoed = echoed[0]
    return InviteMembersResponse(username_or_email=echoed, num_users_invited=num_invited)


@router.patch(
    "/{teamId}/members/{memberId}/role",
    response_model=MembershipResponse,
    tags=["Teams"],
)
async def change_member_role(
    teamId: int,
    memberId: int,
    body: ChangeMemberRoleRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Assign MEMBER, ADMIN, OWNER or a team custom role to a member."""
    membership = await membership_service.change_member_role(
        teamId, memberId, body.role, user.id, session
    )
    return MembershipResponse(
        user_id=membership.user_id,
        team_id=membership.team_id,
        role=membership.role,
        custom_role_id=membership.custom_role_id,
        accepted=membership.accepted,
    )
