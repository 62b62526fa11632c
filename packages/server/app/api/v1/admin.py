"""
Platform admin API endpoints.

PATCH /api/v1/admin/users/{userId}  Partial update of a user record
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import require_platform_admin
from app.core.database import get_session
from app.models.user import User
from app.services import users as user_service
from teamhub_shared.schemas.users import AdminUserResponse, AdminUserUpdateRequest

router = APIRouter()


@router.patch("/users/{userId}", response_model=AdminUserResponse, tags=["Admin"])
async def update_user(
    userId: int,
    body: AdminUserUpdateRequest,
    admin: User = Depends(require_platform_admin),
    session: AsyncSession = Depends(get_session),
):
    """Update name, username, email, time zone or role (platform admins only)."""
    return await user_service.admin_update_user(userId, body, session)
