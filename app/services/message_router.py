"""Inbound message routing layer for Telegram bot updates."""

from __future__ import annotations

import logging

from app.core.exceptions import DeliveryError
from app.interfaces.messaging_provider import InboundMessage, MessagingProvider
from app.services.conversation_tracker import ConversationTracker, Outcome

logger = logging.getLogger(__name__)

UNKNOWN_COMMAND_REPLY = "Sorry, I don't recognize that command. Please use /start, /event, /broadcast, or /cancel."


class MessageRouter:
    """Routes commands to flow entry points and plain text to the active flow."""

    def __init__(self, tracker: ConversationTracker, messaging_provider: MessagingProvider) -> None:
        self.tracker = tracker
        self.messaging_provider = messaging_provider
        self._commands = {
            "start": tracker.start_registration,
            "event": tracker.start_reservation,
            "broadcast": tracker.start_broadcast,
            "cancel": tracker.cancel,
        }

    async def route_message(self, message: InboundMessage) -> Outcome:
        """Route one inbound message and return what the tracker did with it."""
        command = self._parse_command(text=message.text)
        if command is None:
            return await self.tracker.handle_message(message)

        handler = self._commands.get(command)
        if handler is None:
            logger.info("Unknown command '/%s' from chat %s", command, message.chat_id)
            try:
                await self.messaging_provider.send_message(message.chat_id, UNKNOWN_COMMAND_REPLY)
            except DeliveryError:
                logger.exception("Sending help to chat %s failed", message.chat_id)
            return Outcome.IGNORED

        return await handler(message)

    def _parse_command(self, *, text: str) -> str | None:
        parts = text.strip().split(maxsplit=1)
        if not parts or not parts[0].startswith("/"):
            return None
        command = parts[0][1:].split("@", 1)[0].lower()
        return command or None
