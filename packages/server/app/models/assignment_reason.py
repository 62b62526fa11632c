"""Booking assignment audit rows and the denormalized routing-form response."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, IntIDMixin


class AssignmentReason(IntIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "assignment_reasons"

    # One reason per booking; recording replaces the previous row.
    booking_id: int = Field(unique=True, index=True, nullable=False)
    reason_enum: str = Field(nullable=False)
    reason_string: str = Field(nullable=False)


class RoutingFormResponseDenormalized(IntIDMixin, SQLModel, table=True):
    __tablename__ = "routing_form_responses_denormalized"

    booking_id: Optional[int] = Field(default=None, index=True)
    booking_assignment_reason: Optional[str] = None
