"""Test endpoints for validating bot flows without Telegram or a database."""

from fastapi import APIRouter

from app.core.settings import settings
from app.providers.codes.qr_code_generator import QRCodeGenerator
from app.providers.data_sources.memory_store import InMemoryRegistrationStore
from app.providers.media.local_image_library import LocalImageLibrary
from app.providers.messaging.mock_messaging import MockMessagingProvider
from app.schemas.test_message import TestMessageRequest, TestMessageResponse
from app.services.bot_service import BotService

router = APIRouter()

# Shared service instances for local test execution.
bot_service = BotService(
    store=InMemoryRegistrationStore.with_sample_event(),
    messaging_provider=MockMessagingProvider(),
    code_generator=QRCodeGenerator(),
    image_library=LocalImageLibrary(settings.images_dir),
    broadcaster_ids=settings.broadcaster_ids,
    conversation_ttl_seconds=settings.conversation_ttl_seconds,
    send_delay_seconds=0,
)


@router.post("/test-message", response_model=TestMessageResponse)
async def test_message(payload: TestMessageRequest) -> TestMessageResponse:
    """Executes the bot flow using mock providers."""
    result = await bot_service.handle_message(
        chat_id=payload.chat_id,
        user_id=payload.user_id if payload.user_id is not None else payload.chat_id,
        message=payload.message,
        username=payload.username,
        contact_phone=payload.contact_phone,
    )
    return TestMessageResponse(**result)
