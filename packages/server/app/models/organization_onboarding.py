"""Draft records for organization creation."""

from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from teamhub_shared.schemas.organizations import BillingPeriod

from .base import CreatedAtMixin, IntIDMixin, JSONVariant


class OrganizationOnboarding(IntIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "organization_onboardings"
    __table_args__ = (
        # At most one open draft per owner and per slug.
        sa.Index(
            "uq_onboarding_open_owner",
            "org_owner_email",
            unique=True,
            postgresql_where=sa.text("NOT is_complete"),
            sqlite_where=sa.text("is_complete = 0"),
        ),
        sa.Index(
            "uq_onboarding_open_slug",
            "slug",
            unique=True,
            postgresql_where=sa.text("NOT is_complete"),
            sqlite_where=sa.text("is_complete = 0"),
        ),
    )

    created_by_id: int = Field(foreign_key="users.id", nullable=False)
    org_owner_email: str = Field(nullable=False, index=True)
    name: str = Field(nullable=False)
    slug: str = Field(nullable=False, index=True)
    billing_period: str = Field(default=BillingPeriod.MONTHLY.value, nullable=False)
    price_per_seat: float = Field(default=0, nullable=False)
    seats: int = Field(default=0, nullable=False)
    invited_members: list = Field(default_factory=list, sa_type=JSONVariant, nullable=False)
    teams: list = Field(default_factory=list, sa_type=JSONVariant, nullable=False)
    is_complete: bool = Field(default=False, nullable=False)
    organization_id: Optional[int] = Field(default=None, foreign_key="teams.id")
