"""FastAPI entrypoint for the event reservation bot."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.v1.router import api_router
from app.api.v1.routes.webhook import messaging_provider
from app.core.exceptions import DeliveryError
from app.core.settings import settings
from app.db.session import SessionLocal
from app.services.event_admin_service import EventAdminService

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Seed the default admin and register the Telegram webhook."""
    if settings.default_admin_user and settings.default_admin_pass:
        with SessionLocal() as db:
            EventAdminService(db=db).ensure_default_admin(settings.default_admin_user, settings.default_admin_pass)

    if settings.telegram_webhook_url:
        try:
            await messaging_provider.set_webhook(
                settings.telegram_webhook_url,
                secret_token=settings.telegram_webhook_secret,
            )
        except DeliveryError:
            logger.exception("Telegram webhook registration failed")
    yield


app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)


@app.get("/")
async def health_check() -> dict[str, str]:
    """Simple health endpoint to validate service status."""
    return {"status": "ok", "message": "Event reservation backend is running"}


# Mount API v1 routes under /api/v1.
app.include_router(api_router, prefix="/api/v1")
