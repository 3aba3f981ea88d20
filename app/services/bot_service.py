"""Bot service entrypoint that delegates routing to MessageRouter."""

from __future__ import annotations

from collections.abc import Iterable

from app.interfaces.code_generator import CodeGenerator
from app.interfaces.image_library import ImageLibrary
from app.interfaces.messaging_provider import InboundMessage, MessagingProvider
from app.interfaces.registration_store import RegistrationStore
from app.providers.messaging.mock_messaging import MockMessagingProvider
from app.services.conversation_manager import ConversationManager
from app.services.conversation_tracker import ConversationTracker, Outcome
from app.services.message_router import MessageRouter


class BotService:
    """Thin facade that wires collaborators into a tracker and forwards updates."""

    def __init__(
        self,
        store: RegistrationStore,
        messaging_provider: MessagingProvider,
        code_generator: CodeGenerator,
        image_library: ImageLibrary,
        broadcaster_ids: Iterable[str | int] = (),
        *,
        conversation_ttl_seconds: float | None = None,
        send_delay_seconds: float = 0.1,
    ) -> None:
        allowed = frozenset(str(broadcaster_id) for broadcaster_id in broadcaster_ids)
        self.messaging_provider = messaging_provider
        self.conversation_manager = ConversationManager(ttl_seconds=conversation_ttl_seconds)
        self.tracker = ConversationTracker(
            conversation_manager=self.conversation_manager,
            store=store,
            messaging_provider=messaging_provider,
            code_generator=code_generator,
            image_library=image_library,
            is_authorized_broadcaster=lambda user_id: str(user_id) in allowed,
            send_delay_seconds=send_delay_seconds,
        )
        self.message_router = MessageRouter(tracker=self.tracker, messaging_provider=messaging_provider)

    async def handle_update(self, message: InboundMessage) -> Outcome:
        """Receive one normalized update and route it through MessageRouter."""
        self.conversation_manager.evict_expired()
        return await self.message_router.route_message(message)

    async def handle_message(
        self,
        *,
        chat_id: int,
        user_id: int,
        message: str,
        username: str | None = None,
        contact_phone: str | None = None,
    ) -> dict[str, object]:
        """Compatibility adapter for the local test endpoint payload format."""
        already_sent = self._sent_count(chat_id)
        outcome = await self.handle_update(
            InboundMessage(
                chat_id=chat_id,
                user_id=user_id,
                text=message,
                username=username,
                contact_phone=contact_phone,
            )
        )
        responses: list[str] = []
        if isinstance(self.messaging_provider, MockMessagingProvider):
            for record in self.messaging_provider.sent_to(chat_id)[already_sent:]:
                responses.append(record.text if record.text is not None else f"[image] {record.caption or ''}")
        return {"chat_id": chat_id, "outcome": outcome.value, "responses": responses}

    def _sent_count(self, chat_id: int) -> int:
        if isinstance(self.messaging_provider, MockMessagingProvider):
            return len(self.messaging_provider.sent_to(chat_id))
        return 0
