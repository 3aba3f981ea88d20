"""Main router for API v1."""

from fastapi import APIRouter

from app.api.v1.routes.admin import router as admin_router
from app.api.v1.routes.auth import router as auth_router
from app.api.v1.routes.organizer import router as organizer_router
from app.api.v1.routes.test import router as test_router
from app.api.v1.routes.webhook import router as webhook_router

api_router = APIRouter()

api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(admin_router, tags=["admin"])
api_router.include_router(organizer_router, tags=["organizer"])
api_router.include_router(webhook_router, tags=["telegram"])
# Include test routes for integration checks.
api_router.include_router(test_router, tags=["test"])
