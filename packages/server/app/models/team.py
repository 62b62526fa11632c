"""Team model. Organizations are teams with ``is_organization`` set."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, IntIDMixin, JSONVariant


class Team(IntIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "teams"

    name: str = Field(nullable=False)
    slug: Optional[str] = Field(default=None, unique=True, index=True)
    is_organization: bool = Field(default=False, nullable=False)
    parent_id: Optional[int] = Field(default=None, foreign_key="teams.id", index=True)
    # May carry "requestedSlug" while an organization slug is pending.
    team_metadata: dict = Field(default_factory=dict, sa_type=JSONVariant, nullable=False)
