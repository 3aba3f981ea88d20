"""Webhook endpoint for inbound Telegram Bot API updates."""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Header, HTTPException, status

from app.core.settings import settings
from app.db.session import SessionLocal
from app.interfaces.messaging_provider import InboundMessage
from app.providers.codes.qr_code_generator import QRCodeGenerator
from app.providers.data_sources.sql_registration_store import SqlRegistrationStore
from app.providers.media.local_image_library import LocalImageLibrary
from app.providers.messaging.telegram_messaging import TelegramMessagingProvider
from app.schemas.telegram import TelegramUpdate
from app.services.bot_service import BotService

logger = logging.getLogger(__name__)

router = APIRouter()

messaging_provider = TelegramMessagingProvider(token=settings.telegram_bot_token)

bot_service = BotService(
    store=SqlRegistrationStore(session_factory=SessionLocal),
    messaging_provider=messaging_provider,
    code_generator=QRCodeGenerator(),
    image_library=LocalImageLibrary(settings.images_dir),
    broadcaster_ids=settings.broadcaster_ids,
    conversation_ttl_seconds=settings.conversation_ttl_seconds,
    send_delay_seconds=settings.broadcast_send_delay_seconds,
)


async def process_update(update_id: int, message: InboundMessage) -> None:
    """Run one update through the bot after the webhook has been acknowledged."""
    try:
        outcome = await bot_service.handle_update(message)
    except Exception:
        logger.exception("Update %s for chat %s failed", update_id, message.chat_id)
        return
    logger.debug("Update %s for chat %s: %s", update_id, message.chat_id, outcome.value)


@router.post("/telegram/webhook")
async def receive_update(
    update: TelegramUpdate,
    background_tasks: BackgroundTasks,
    secret_token: str | None = Header(default=None, alias="X-Telegram-Bot-Api-Secret-Token"),
) -> dict[str, str]:
    """Receive one Telegram update and route it through the conversation flows."""
    if settings.telegram_webhook_secret and secret_token != settings.telegram_webhook_secret:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid webhook secret.")

    message = update.to_inbound()
    if message is None:
        return {"status": "ignored"}

    # Telegram gets its 200 before the update is processed.
    background_tasks.add_task(process_update, update.update_id, message)
    return {"status": "accepted"}
