from __future__ import annotations

from fastapi import APIRouter

from . import (
    routes_activity,
    routes_ai,
    routes_auth,
    routes_destinations,
    routes_profile,
    routes_users,
)

router = APIRouter(prefix="/api")

router.include_router(routes_auth.router)
router.include_router(routes_profile.router)
router.include_router(routes_activity.router)
router.include_router(routes_destinations.router)
router.include_router(routes_users.router)
# Catch-all "/{user_id}/chatbot" goes last
router.include_router(routes_ai.router)

__all__ = ["router"]
