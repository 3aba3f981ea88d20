"""Schemas for inbound Telegram webhook updates."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from app.interfaces.messaging_provider import InboundMessage


class TelegramModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TelegramUser(TelegramModel):
    id: int
    username: str | None = None


class TelegramChat(TelegramModel):
    id: int


class TelegramContact(TelegramModel):
    phone_number: str


class TelegramMessage(TelegramModel):
    message_id: int
    chat: TelegramChat
    from_user: TelegramUser | None = Field(default=None, alias="from")
    text: str | None = None
    contact: TelegramContact | None = None


class TelegramUpdate(TelegramModel):
    """Subset of a Telegram Update object the bot reacts to."""

    update_id: int
    message: TelegramMessage | None = None

    def to_inbound(self) -> InboundMessage | None:
        """Return a normalized message, or None for updates without a chat message."""
        message = self.message
        if message is None:
            return None
        user = message.from_user
        return InboundMessage(
            chat_id=message.chat.id,
            user_id=user.id if user is not None else message.chat.id,
            text=(message.text or "").strip(),
            username=user.username if user is not None else None,
            contact_phone=message.contact.phone_number if message.contact is not None else None,
        )
