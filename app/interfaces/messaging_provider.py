"""Interface contract for messaging providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class InboundMessage:
    """One normalized inbound chat message."""

    chat_id: int
    user_id: int
    text: str = ""
    username: str | None = None
    contact_phone: str | None = None


@dataclass(frozen=True, slots=True)
class ReplyOptions:
    """Reply keyboard attached to an outbound message."""

    keyboard: tuple[tuple[str, ...], ...] = ()
    request_contact: bool = False
    remove_keyboard: bool = False
    parse_mode: str | None = None

    @classmethod
    def buttons(cls, *rows: tuple[str, ...] | list[str], parse_mode: str | None = None) -> ReplyOptions:
        return cls(keyboard=tuple(tuple(row) for row in rows), parse_mode=parse_mode)


class MessagingProvider(ABC):
    """Defines outbound message delivery behavior."""

    @abstractmethod
    async def send_message(self, chat_id: int, text: str, options: ReplyOptions | None = None) -> None:
        """Send a text message to a chat. Raises DeliveryError on failure."""
        raise NotImplementedError

    @abstractmethod
    async def send_image(self, chat_id: int, image: bytes, caption: str | None = None) -> None:
        """Send an image with an optional caption. Raises DeliveryError on failure."""
        raise NotImplementedError
