"""
Invitation service: bulk invites and single-use invite-token redemption.
"""

from __future__ import annotations

import secrets
from datetime import timedelta
from typing import Optional

import structlog
from sqlalchemy import delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.errors import InviteTokenInvalid, InviteeNotFound
from app.models.base import ensure_utc, utcnow
from app.models.team import Team
from app.models.user import User
from app.models.verification_token import VerificationToken
from app.services.invite_validation import InviteBatch
from app.services.memberships import accept_or_create_membership, create_pending_membership
from teamhub_shared.schemas.common import MembershipRole, parse_fixed_role

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Token store
# ---------------------------------------------------------------------------

def token_is_live(token: VerificationToken) -> bool:
    """A token is live if it never expires or its expiry is not yet past."""
    if token.expires_in_days is None:
        return True
    return token.expires is not None and ensure_utc(token.expires) >= utcnow()


async def find_valid_invite_token(
    token: str, session: AsyncSession
) -> tuple[VerificationToken, Team]:
    """Look up a redeemable invite token and its team.

    Missing, expired and team-less tokens all raise InviteTokenInvalid.
    """
    result = await session.execute(
        select(VerificationToken).where(VerificationToken.token == token)
    )
    row = result.scalar_one_or_none()
    if row is None or not token_is_live(row) or row.team_id is None:
        raise InviteTokenInvalid()

    team = await session.get(Team, row.team_id)
    if team is None:
        raise InviteTokenInvalid()
    return row, team


async def consume_token(token_id: int, session: AsyncSession) -> None:
    """Delete a token by id. A zero row count means someone else consumed it."""
    result = await session.execute(
        delete(VerificationToken).where(VerificationToken.id == token_id)
    )
    if result.rowcount != 1:
        raise InviteTokenInvalid()


async def accept_invite_by_token(
    token: str, user_id: int, session: AsyncSession
) -> str:
    """Redeem an invite token for ``user_id``. Returns the team name.

    The membership upsert and the token delete share the caller's
    transaction; any failure here leaves both untouched once it rolls back.
    """
    verification_token, team = await find_valid_invite_token(token, session)

    role = parse_fixed_role(verification_token.invited_role) or MembershipRole.MEMBER
    membership = await accept_or_create_membership(
        user_id, team.id, session, role=role
    )
    await consume_token(verification_token.id, session)
    await session.flush()

    log.info(
        "invite.accepted",
        team_id=team.id,
        user_id=user_id,
        role=membership.role,
        token_id=verification_token.id,
    )
    return team.name


# ---------------------------------------------------------------------------
# Bulk invites
# ---------------------------------------------------------------------------

def generate_invite_token() -> str:
    return secrets.token_hex(32)


async def _resolve_users(
    identifiers: list[str], session: AsyncSession
) -> dict[str, User]:
    if not identifiers:
        return {}
    result = await session.execute(
        select(User).where(
            or_(
                func.lower(User.email).in_(identifiers),
                func.lower(User.username).in_(identifiers),
            )
        )
    )
    by_identifier: dict[str, User] = {}
    for user in result.scalars().all():
        for key in (user.email, user.username):
            if key and key.lower() in identifiers:
                by_identifier[key.lower()] = user
    return by_identifier


async def _pending_token_identifiers(
    team_id: int, identifiers: list[str], session: AsyncSession
) -> set[str]:
    if not identifiers:
        return set()
    result = await session.execute(
        select(VerificationToken).where(
            VerificationToken.team_id == team_id,
            VerificationToken.identifier.in_(identifiers),
        )
    )
    return {row.identifier for row in result.scalars().all() if token_is_live(row)}


async def invite_members(
    team_id: int,
    batch: InviteBatch,
    invited_by: int,
    session: AsyncSession,
    *,
    expiry_days: Optional[int] = None,
) -> int:
    """Persist a validated invite batch. Returns how many invitations were created.

    Existing users get a pending membership; unknown emails get an invite
    token carrying the invited role. Unknown usernames fail the whole batch
    before anything is written. Users with any membership, and emails that
    already hold a live invite token for the team, are skipped.
    """
    expiry_days = expiry_days or get_settings().invite_token_expiry_days
    users = await _resolve_users(batch.identifiers, session)

    missing_usernames = [
        invitee.identifier
        for invitee in batch.invitees
        if not invitee.is_email and invitee.identifier not in users
    ]
    if missing_usernames:
        raise InviteeNotFound(missing_usernames)

    pending_emails = await _pending_token_identifiers(
        team_id, [i.identifier for i in batch.invitees if i.identifier not in users], session
    )

    invited = 0
    for invitee in batch.invitees:
        role = batch.role_for(invitee)
        user = users.get(invitee.identifier)
        if user is not None:
            membership = await create_pending_membership(user.id, team_id, role, session)
            if membership is None:
                log.info("invite.skipped_existing_member", team_id=team_id, user_id=user.id)
                continue
        elif invitee.identifier in pending_emails:
            log.info(
                "invite.skipped_pending_token", team_id=team_id, identifier=invitee.identifier
            )
            continue
        else:
            session.add(
                VerificationToken(
                    identifier=invitee.identifier,
                    token=generate_invite_token(),
                    expires=utcnow() + timedelta(days=expiry_days),
                    expires_in_days=expiry_days,
                    team_id=team_id,
                    invited_role=role.value,
                )
            )
        invited += 1

    await session.flush()
    log.info(
        "invite.batch_created",
        team_id=team_id,
        invited_by=invited_by,
        num_invited=invited,
        num_requested=len(batch.invitees),
    )
    return invited

