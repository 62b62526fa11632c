"""
Domain errors and their HTTP mapping.

Services raise these; the handler registered in ``app.main`` turns them
into ``{"detail": message}`` responses, the same body HTTPException uses.
"""

from __future__ import annotations

from typing import Optional, Sequence

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse

log = structlog.get_logger()


class TeamHubError(Exception):
    status_code: int = 400
    message: str = "Bad request"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------

class InviteTokenInvalid(TeamHubError):
    message = "Invite token is invalid or expired"


class AlreadyMember(TeamHubError):
    message = "You are already a member of this team."


class TooManyInvitees(TeamHubError):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"You are limited to inviting a maximum of {limit} users at once.")


class EmptyInvitee(TeamHubError):
    message = "Invitation entries cannot be empty."


class InvalidEmailFormat(TeamHubError):
    message = "Provide valid email addresses or usernames for each invitation."

    def __init__(self, invalid_entries: Sequence[str], valid_entries: Sequence[str] = ()):
        self.invalid_entries = list(invalid_entries)
        self.valid_entries = list(valid_entries)
        super().__init__()


class InvalidInviteRole(TeamHubError):
    def __init__(self, role: str):
        self.role = role
        super().__init__(f"Invalid role '{role}' for invitation.")


class InviteeNotFound(TeamHubError):
    def __init__(self, identifiers: Sequence[str]):
        self.identifiers = list(identifiers)
        super().__init__(f"No user found with username {', '.join(self.identifiers)}")


class MemberNotFound(TeamHubError):
    status_code = 404
    message = "Member not found in this team"


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------

class Unauthorized(TeamHubError):
    status_code = 401
    message = "You are not authorized."


class Forbidden(TeamHubError):
    status_code = 403
    message = "Forbidden"


# ---------------------------------------------------------------------------
# Organizations
# ---------------------------------------------------------------------------

class SlugConflict(TeamHubError):
    status_code = 409

    def __init__(self, conflict_type: str):
        self.conflict_type = conflict_type
        super().__init__(
            "organization_onboarding_already_exists"
            if conflict_type == "onboarding"
            else "organization_slug_taken"
        )


class OwnerNotFound(TeamHubError):
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"No user found with email {email}")


class OnboardingAlreadyExists(TeamHubError):
    status_code = 409
    message = "organization_onboarding_already_exists"


class NotQualified(TeamHubError):
    status_code = 403
    message = "not_authorized"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class UserNotFound(TeamHubError):
    status_code = 404
    message = "User not found"


class UserConflict(TeamHubError):
    status_code = 409
    message = "Username or email is already in use"


async def teamhub_error_handler(request: Request, exc: TeamHubError) -> JSONResponse:
    log.info(
        "request.rejected",
        path=request.url.path,
        error=type(exc).__name__,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
