"""Unit tests for MessageRouter command dispatch."""

from __future__ import annotations

import unittest
from typing import Any

from app.core.exceptions import DeliveryError
from app.interfaces.messaging_provider import InboundMessage
from app.services.conversation_tracker import Outcome
from app.services.message_router import UNKNOWN_COMMAND_REPLY, MessageRouter


class StubTracker:
    """Tracker stub that records which entry point received each message."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    async def start_registration(self, message: InboundMessage) -> Outcome:
        self.calls.append(("start_registration", message.text))
        return Outcome.STARTED

    async def start_reservation(self, message: InboundMessage) -> Outcome:
        self.calls.append(("start_reservation", message.text))
        return Outcome.STARTED

    async def start_broadcast(self, message: InboundMessage) -> Outcome:
        self.calls.append(("start_broadcast", message.text))
        return Outcome.DENIED

    async def cancel(self, message: InboundMessage) -> Outcome:
        self.calls.append(("cancel", message.text))
        return Outcome.CANCELLED

    async def handle_message(self, message: InboundMessage) -> Outcome:
        self.calls.append(("handle_message", message.text))
        return Outcome.ADVANCED


class StubMessagingProvider:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent_messages: list[dict[str, Any]] = []

    async def send_message(self, chat_id: int, text: str, options: Any = None) -> None:
        if self.fail:
            raise DeliveryError("bot blocked")
        self.sent_messages.append({"chat_id": chat_id, "text": text})

    async def send_image(self, chat_id: int, image: bytes, caption: str | None = None) -> None:
        raise AssertionError("router never sends images")


class MessageRouterTestCase(unittest.IsolatedAsyncioTestCase):
    """Covers command parsing, unknown commands and plain-text forwarding."""

    def _build_router(self, *, fail: bool = False) -> tuple[MessageRouter, StubTracker, StubMessagingProvider]:
        tracker = StubTracker()
        messaging_provider = StubMessagingProvider(fail=fail)
        router = MessageRouter(tracker=tracker, messaging_provider=messaging_provider)
        return router, tracker, messaging_provider

    async def _route(self, router: MessageRouter, text: str) -> Outcome:
        return await router.route_message(InboundMessage(chat_id=55, user_id=55, text=text))

    async def test_commands_dispatch_to_flow_entry_points(self) -> None:
        router, tracker, messaging_provider = self._build_router()

        self.assertEqual(await self._route(router, "/start"), Outcome.STARTED)
        self.assertEqual(await self._route(router, "/event"), Outcome.STARTED)
        self.assertEqual(await self._route(router, "/broadcast"), Outcome.DENIED)
        self.assertEqual(await self._route(router, "/cancel"), Outcome.CANCELLED)

        self.assertEqual(
            [name for name, _ in tracker.calls],
            ["start_registration", "start_reservation", "start_broadcast", "cancel"],
        )
        self.assertEqual(messaging_provider.sent_messages, [])

    async def test_command_accepts_bot_suffix_case_and_arguments(self) -> None:
        router, tracker, _ = self._build_router()

        await self._route(router, "  /START@event_reservation_bot now")
        await self._route(router, "/Event@other_bot")

        self.assertEqual([name for name, _ in tracker.calls], ["start_registration", "start_reservation"])

    async def test_plain_text_goes_to_active_flow(self) -> None:
        router, tracker, _ = self._build_router()

        outcome = await self._route(router, "Jane Doe")

        self.assertEqual(outcome, Outcome.ADVANCED)
        self.assertEqual(tracker.calls, [("handle_message", "Jane Doe")])

    async def test_empty_message_goes_to_active_flow(self) -> None:
        router, tracker, _ = self._build_router()

        await self._route(router, "")

        self.assertEqual(tracker.calls, [("handle_message", "")])

    async def test_unknown_command_replies_with_help(self) -> None:
        router, tracker, messaging_provider = self._build_router()

        outcome = await self._route(router, "/help")

        self.assertEqual(outcome, Outcome.IGNORED)
        self.assertEqual(tracker.calls, [])
        self.assertEqual(messaging_provider.sent_messages, [{"chat_id": 55, "text": UNKNOWN_COMMAND_REPLY}])

    async def test_bare_slash_is_treated_as_text(self) -> None:
        router, tracker, _ = self._build_router()

        await self._route(router, "/")

        self.assertEqual(tracker.calls, [("handle_message", "/")])

    async def test_unknown_command_delivery_failure_is_swallowed(self) -> None:
        router, _, _ = self._build_router(fail=True)

        self.assertEqual(await self._route(router, "/stats"), Outcome.IGNORED)


if __name__ == "__main__":
    unittest.main()
