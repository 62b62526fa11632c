"""User-Team membership and team-defined custom roles."""

from typing import Optional

from sqlmodel import Field, SQLModel

from teamhub_shared.schemas.common import MembershipRole

from .base import CreatedAtMixin, JSONVariant


class Membership(CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "memberships"

    user_id: int = Field(foreign_key="users.id", primary_key=True)
    team_id: int = Field(foreign_key="teams.id", primary_key=True)
    role: str = Field(default=MembershipRole.MEMBER.value, nullable=False)  # MEMBER | ADMIN | OWNER
    custom_role_id: Optional[str] = Field(default=None, foreign_key="custom_roles.id")
    accepted: bool = Field(default=False, nullable=False)


class CustomRole(CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "custom_roles"

    id: str = Field(primary_key=True)
    team_id: int = Field(foreign_key="teams.id", index=True, nullable=False)
    name: str = Field(nullable=False)
    permissions: list = Field(default_factory=list, sa_type=JSONVariant, nullable=False)
