"""User model."""

from typing import Optional

from sqlmodel import Field, SQLModel

from teamhub_shared.schemas.common import UserPermissionRole

from .base import CreatedAtMixin, IntIDMixin


class User(IntIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "users"

    email: str = Field(unique=True, index=True, nullable=False)
    username: Optional[str] = Field(default=None, unique=True, index=True)
    name: Optional[str] = None
    role: str = Field(default=UserPermissionRole.USER.value, nullable=False)  # USER | ADMIN
    locked: bool = Field(default=False, nullable=False)
    time_zone: str = Field(default="Europe/London", nullable=False)
