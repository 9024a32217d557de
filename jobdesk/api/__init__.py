"""API routes for JobDesk."""

from fastapi import APIRouter

from .admin_settings import router as admin_settings_router
from .auth import router as auth_router
from .notifications import router as notifications_router
from .personnel import router as personnel_router
from .tasks import router as tasks_router
from .teams import router as teams_router
from .wiki import router as wiki_router

# Main API router
api_router = APIRouter()

# Auth routes (login, dev-login, password change)
api_router.include_router(auth_router)

# Directory
api_router.include_router(personnel_router)
api_router.include_router(teams_router)

# Task tracker
api_router.include_router(tasks_router)

# Knowledge base
api_router.include_router(wiki_router)

# WhatsApp triggers and gateway settings
api_router.include_router(notifications_router)
api_router.include_router(admin_settings_router)

__all__ = ["api_router"]
