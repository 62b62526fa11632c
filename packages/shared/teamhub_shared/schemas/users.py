"""Admin user management schemas."""

from __future__ import annotations

from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator

from .common import CamelModel, UserPermissionRole


ADMIN_UPDATABLE_FIELDS = ("name", "username", "email", "time_zone", "role")


class AdminUserUpdateRequest(CamelModel):
    """Partial update. Only fields present in the payload are applied."""
    name: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    time_zone: Optional[str] = None
    role: Optional[UserPermissionRole] = None

    @field_validator("name", "username", "email", "time_zone", "role", mode="before")
    @classmethod
    def _not_null(cls, value):
        # Defaults are not validated, so this only rejects an explicit null.
        if value is None:
            raise ValueError("may not be null")
        return value

    @field_validator("time_zone")
    @classmethod
    def _known_time_zone(cls, value: Optional[str]) -> Optional[str]:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone '{value}'")
        return value


class AdminUserResponse(CamelModel):
    id: int
    name: Optional[str] = None
    username: Optional[str] = None
    email: str
    time_zone: str
    role: UserPermissionRole
    locked: bool
