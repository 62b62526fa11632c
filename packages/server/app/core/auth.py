"""
Authentication and authorization for Team Hub.

Supports:
- JWT session tokens, read from the ``th_session`` cookie or a Bearer header
- Current-user resolution (locked users are refused)
- Platform-admin authorization dependency
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import Forbidden, Unauthorized
from app.models.user import User
from teamhub_shared.schemas.common import UserPermissionRole

log = structlog.get_logger()
settings = get_settings()

SESSION_COOKIE = "th_session"

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: int,
    *,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed JWT. Returns (token, jti)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip()
    return request.cookies.get(SESSION_COOKIE)


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Depends(authorization_header),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the calling user from the session token."""
    token = _extract_token(request, authorization)
    if not token:
        raise Unauthorized("Authentication required")

    try:
        payload = decode_jwt(token)
        user_id = int(payload["sub"])
    except (jwt.PyJWTError, KeyError, ValueError):
        raise Unauthorized("Invalid or expired session")

    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise Unauthorized("User not found")
    if user.locked:
        log.warning("auth.locked_user", user_id=user.id)
        raise Forbidden("Account is locked")

    request.state.user_id = user.id
    return user


async def require_platform_admin(
    user: User = Depends(get_current_user),
) -> User:
    """Requires the platform-wide ADMIN permission role."""
    if user.role != UserPermissionRole.ADMIN.value:
        raise Forbidden("Administrator access required")
    return user
