"""
Organization-creation schemas shared between server and clients.

Covers: intent-to-create request/response, slug availability,
billing periods.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import Field

from .common import CamelModel


SLUG_PATTERN = r"^[a-z0-9][a-z0-9-]*[a-z0-9]$"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class BillingPeriod(str, Enum):
    MONTHLY = "MONTHLY"
    ANNUALLY = "ANNUALLY"


class SlugConflictType(str, Enum):
    TEAM = "team"
    REQUESTED_SLUG = "requestedSlug"
    ONBOARDING = "onboarding"


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class OrgIntentRequest(CamelModel):
    slug: str = Field(
        ...,
        min_length=2,
        max_length=50,
        pattern=SLUG_PATTERN,
        description="URL-safe org identifier",
    )
    name: str = Field(..., min_length=1, max_length=100, description="Organization display name")
    org_owner_email: str = Field(..., min_length=3)
    seats: Optional[int] = Field(None, ge=0)
    price_per_seat: Optional[float] = Field(None, ge=0)
    billing_period: Optional[BillingPeriod] = None
    is_platform: bool = False


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class OrgIntentResponse(CamelModel):
    user_id: int
    organization_onboarding_id: int
    org_owner_email: str
    name: str
    slug: str
    seats: Optional[int] = None
    price_per_seat: Optional[float] = None
    billing_period: Optional[BillingPeriod] = None
    is_platform: bool = False


class SlugAvailability(CamelModel):
    available: bool
    conflict_type: Optional[SlugConflictType] = None
