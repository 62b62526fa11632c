"""
API v1 Router
"""

from fastapi import APIRouter

from . import admin, organizations, teams

router = APIRouter()

router.include_router(teams.router, prefix="/teams", tags=["Teams"])
router.include_router(organizations.router, prefix="/organizations", tags=["Organizations"])
router.include_router(admin.router, prefix="/admin", tags=["Admin"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/teams/invite/accept",
            "/teams/{teamId}/invite",
            "/teams/{teamId}/members/{memberId}/role",
            "/organizations/slug-availability",
            "/organizations/intent",
            "/admin/users/{userId}",
        ],
    }
