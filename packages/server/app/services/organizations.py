"""
Organization service: slug availability, owner qualification and the
intent-to-create flow that records an onboarding draft.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import (
    Forbidden,
    NotQualified,
    OnboardingAlreadyExists,
    OwnerNotFound,
    SlugConflict,
    Unauthorized,
)
from app.models.membership import Membership
from app.models.organization_onboarding import OrganizationOnboarding
from app.models.team import Team
from app.models.user import User
from teamhub_shared.schemas.common import MembershipRole, UserPermissionRole
from teamhub_shared.schemas.organizations import (
    BillingPeriod,
    OrgIntentRequest,
    OrgIntentResponse,
    SlugAvailability,
    SlugConflictType,
)

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Slug conflicts
# ---------------------------------------------------------------------------

async def check_slug_available(slug: str, session: AsyncSession) -> SlugAvailability:
    """Check a requested organization slug against teams and open drafts.

    A team owning the slug wins over one that merely requested it; an open
    onboarding draft is only looked for when no team conflicts.
    """
    result = await session.execute(
        select(Team.id, Team.slug)
        .where(
            or_(
                Team.slug == slug,
                Team.team_metadata["requestedSlug"].as_string() == slug,
            )
        )
    )
    matching_teams = result.all()

    conflict_type: Optional[SlugConflictType] = None
    if matching_teams:
        conflict_type = (
            SlugConflictType.TEAM
            if any(team.slug == slug for team in matching_teams)
            else SlugConflictType.REQUESTED_SLUG
        )
    else:
        result = await session.execute(
            select(OrganizationOnboarding.id)
            .where(
                OrganizationOnboarding.slug == slug,
                OrganizationOnboarding.is_complete.is_(False),
            )
            .limit(1)
        )
        if result.first() is not None:
            conflict_type = SlugConflictType.ONBOARDING

    return SlugAvailability(available=conflict_type is None, conflict_type=conflict_type)


# ---------------------------------------------------------------------------
# Owner qualification
# ---------------------------------------------------------------------------

async def owner_is_qualified(
    owner_id: int,
    session: AsyncSession,
    *,
    restrict: bool,
    is_platform: bool = False,
) -> bool:
    """Non-admin creators must already administer a standalone team."""
    if not restrict or is_platform:
        return True

    result = await session.execute(
        select(func.count())
        .select_from(Membership)
        .join(Team, Team.id == Membership.team_id)
        .where(
            Membership.user_id == owner_id,
            Membership.accepted.is_(True),
            Membership.role.in_([MembershipRole.ADMIN.value, MembershipRole.OWNER.value]),
            Team.parent_id.is_(None),
            Team.is_organization.is_(False),
        )
    )
    return result.scalar_one() > 0


# ---------------------------------------------------------------------------
# Intent to create
# ---------------------------------------------------------------------------

async def find_user_to_be_org_owner(email: str, session: AsyncSession) -> Optional[User]:
    result = await session.execute(
        select(User).where(func.lower(User.email) == email.strip().lower())
    )
    return result.scalar_one_or_none()


async def find_open_onboarding_by_owner(
    email: str, session: AsyncSession
) -> Optional[OrganizationOnboarding]:
    result = await session.execute(
        select(OrganizationOnboarding).where(
            func.lower(OrganizationOnboarding.org_owner_email) == email.strip().lower(),
            OrganizationOnboarding.is_complete.is_(False),
        )
    )
    return result.scalars().first()


async def intent_to_create_org(
    req: OrgIntentRequest,
    caller: Optional[User],
    session: AsyncSession,
) -> OrgIntentResponse:
    """Validate an organization-creation request and record an onboarding draft."""
    log.debug(
        "org.intent_started",
        slug=req.slug,
        owner=req.org_owner_email,
        is_platform=req.is_platform,
    )

    if caller is None:
        raise Unauthorized()

    is_admin = caller.role == UserPermissionRole.ADMIN.value
    is_owner = caller.email.lower() == req.org_owner_email.strip().lower()
    if not is_admin and not is_owner and not req.is_platform:
        log.warning(
            "org.intent_forbidden",
            caller_email=caller.email,
            org_owner_email=req.org_owner_email,
        )
        raise Forbidden("You can only create organization where you are the owner")

    owner = await find_user_to_be_org_owner(req.org_owner_email, session)
    if owner is None:
        raise OwnerNotFound(req.org_owner_email)

    if await find_open_onboarding_by_owner(owner.email, session) is not None:
        raise OnboardingAlreadyExists()

    availability = await check_slug_available(req.slug, session)
    if not availability.available:
        raise SlugConflict(availability.conflict_type.value)

    if not await owner_is_qualified(
        owner.id, session, restrict=not is_admin, is_platform=req.is_platform
    ):
        raise NotQualified()

    onboarding = OrganizationOnboarding(
        created_by_id=caller.id,
        org_owner_email=owner.email,
        name=req.name,
        slug=req.slug,
        billing_period=(req.billing_period or BillingPeriod.MONTHLY).value,
        price_per_seat=req.price_per_seat or 0,
        seats=req.seats or 0,
    )
    session.add(onboarding)
    try:
        await session.flush()
    except IntegrityError:
        raise OnboardingAlreadyExists()

    log.info(
        "org.intent_created",
        onboarding_id=onboarding.id,
        slug=req.slug,
        owner_id=owner.id,
        created_by=caller.id,
    )
    return OrgIntentResponse(
        user_id=owner.id,
        organization_onboarding_id=onboarding.id,
        org_owner_email=req.org_owner_email,
        name=req.name,
        slug=req.slug,
        seats=req.seats,
        price_per_seat=req.price_per_seat,
        billing_period=req.billing_period,
        is_platform=req.is_platform,
    )
