"""Mock messaging provider implementation."""

from __future__ import annotations

from dataclasses import dataclass

from app.interfaces.messaging_provider import MessagingProvider, ReplyOptions


@dataclass(slots=True)
class OutboundRecord:
    """One message or image handed to the mock provider."""

    chat_id: int
    text: str | None = None
    image: bytes | None = None
    caption: str | None = None
    options: ReplyOptions | None = None


class MockMessagingProvider(MessagingProvider):
    """Console-based sender for local testing that keeps an outbox."""

    def __init__(self) -> None:
        self.outbox: list[OutboundRecord] = []

    async def send_message(self, chat_id: int, text: str, options: ReplyOptions | None = None) -> None:
        print(f"[MockMessaging] -> chat={chat_id} | message={text}")
        self.outbox.append(OutboundRecord(chat_id=chat_id, text=text, options=options))

    async def send_image(self, chat_id: int, image: bytes, caption: str | None = None) -> None:
        print(f"[MockMessaging] -> chat={chat_id} | image={len(image)} bytes | caption={caption}")
        self.outbox.append(OutboundRecord(chat_id=chat_id, image=image, caption=caption))

    def sent_to(self, chat_id: int) -> list[OutboundRecord]:
        """Helper for tests/debugging; not part of MessagingProvider contract."""
        return [record for record in self.outbox if record.chat_id == chat_id]
