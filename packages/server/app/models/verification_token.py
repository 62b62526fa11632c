"""Single-use invitation tokens."""

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, IntIDMixin


class VerificationToken(IntIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "verification_tokens"

    identifier: str = Field(nullable=False, index=True)
    token: str = Field(unique=True, index=True, nullable=False)
    expires: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    expires_in_days: Optional[int] = None  # None: never expires
    team_id: Optional[int] = Field(default=None, foreign_key="teams.id")
    invited_role: Optional[str] = None
