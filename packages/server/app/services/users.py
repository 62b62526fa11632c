"""
User management service: admin partial updates of user records.
"""

from __future__ import annotations

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import UserConflict, UserNotFound
from app.models.user import User
from teamhub_shared.schemas.users import (
    ADMIN_UPDATABLE_FIELDS,
    AdminUserResponse,
    AdminUserUpdateRequest,
)

log = structlog.get_logger()


def admin_projection(user: User) -> AdminUserResponse:
    return AdminUserResponse(
        id=user.id,
        name=user.name,
        username=user.username,
        email=user.email,
        time_zone=user.time_zone,
        role=user.role,
        locked=user.locked,
    )


async def admin_update_user(
    user_id: int,
    req: AdminUserUpdateRequest,
    session: AsyncSession,
) -> AdminUserResponse:
    """Apply the fields present in ``req``; omitted fields are left alone.

    A field sent as an empty string is still applied.
    """
    user = await session.get(User, user_id)
    if user is None:
        raise UserNotFound()

    changes = req.model_dump(exclude_unset=True, include=set(ADMIN_UPDATABLE_FIELDS))
    for field_name, value in changes.items():
        if field_name == "role":
            value = value.value
        setattr(user, field_name, value)

    session.add(user)
    try:
        await session.flush()
    except IntegrityError:
        raise UserConflict()

    log.info("user.admin_updated", user_id=user_id, fields=sorted(changes))
    return admin_projection(user)
