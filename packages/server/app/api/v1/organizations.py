"""
Organization API endpoints.

GET  /api/v1/organizations/slug-availability?slug=  Check a requested slug
POST /api/v1/organizations/intent                   Record intent to create an org
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.database import get_session
from app.models.user import User
from app.services import organizations as org_service
from teamhub_shared.schemas.organizations import (
    SLUG_PATTERN,
    OrgIntentRequest,
    OrgIntentResponse,
    SlugAvailability,
)

router = APIRouter()


@router.get("/slug-availability", response_model=SlugAvailability, tags=["Organizations"])
async def slug_availability(
    slug: str = Query(..., min_length=2, max_length=50, pattern=SLUG_PATTERN),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Report whether a slug is free, and what holds it if not."""
    return await org_service.check_slug_available(slug, session)


@router.post("/intent", response_model=OrgIntentResponse, status_code=201, tags=["Organizations"])
async def intent_to_create_org(
    body: OrgIntentRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Create an onboarding draft for a new organization.

    The caller must be a platform admin, the named owner, or acting as a
    platform. Non-admin owners need an existing team they administer.
    """
    return await org_service.intent_to_create_org(body, user, session)
