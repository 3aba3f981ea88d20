"""Tests for the Telegram messaging provider and update schema."""

from __future__ import annotations

import json
import unittest

import httpx

from app.core.exceptions import DeliveryError
from app.interfaces.messaging_provider import ReplyOptions
from app.providers.messaging.telegram_messaging import TelegramMessagingProvider
from app.schemas.telegram import TelegramUpdate


class RecordingHandler:
    """httpx.MockTransport handler that records requests and returns a canned body."""

    def __init__(self, body: dict | None = None, status_code: int = 200) -> None:
        self.body = body if body is not None else {"ok": True, "result": {}}
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)


class TelegramMessagingProviderTestCase(unittest.IsolatedAsyncioTestCase):
    def _build(self, handler: RecordingHandler, token: str | None = "123:abc") -> TelegramMessagingProvider:
        return TelegramMessagingProvider(
            token=token,
            base_url="https://telegram.test",
            transport=httpx.MockTransport(handler),
        )

    async def test_send_message_with_keyboard(self) -> None:
        handler = RecordingHandler()
        provider = self._build(handler)

        await provider.send_message(10, "Pick one", ReplyOptions.buttons(("Yes", "No"), parse_mode="Markdown"))

        request = handler.requests[0]
        self.assertEqual(str(request.url), "https://telegram.test/bot123:abc/sendMessage")
        self.assertEqual(
            json.loads(request.content),
            {
                "chat_id": 10,
                "text": "Pick one",
                "parse_mode": "Markdown",
                "reply_markup": {
                    "keyboard": [[{"text": "Yes"}, {"text": "No"}]],
                    "one_time_keyboard": True,
                    "resize_keyboard": True,
                },
            },
        )

    async def test_contact_and_remove_keyboard_markup(self) -> None:
        handler = RecordingHandler()
        provider = self._build(handler)

        await provider.send_message(10, "Share", ReplyOptions(keyboard=(("Share My Phone Number",),), request_contact=True))
        await provider.send_message(10, "Done", ReplyOptions(remove_keyboard=True))

        contact_body = json.loads(handler.requests[0].content)
        self.assertEqual(
            contact_body["reply_markup"]["keyboard"],
            [[{"text": "Share My Phone Number", "request_contact": True}]],
        )
        self.assertEqual(json.loads(handler.requests[1].content)["reply_markup"], {"remove_keyboard": True})

    async def test_send_image_uploads_multipart(self) -> None:
        handler = RecordingHandler()
        provider = self._build(handler)

        await provider.send_image(10, b"\x89PNGDATA", "Your code")

        request = handler.requests[0]
        self.assertTrue(str(request.url).endswith("/sendPhoto"))
        self.assertIn(b'name="photo"', request.content)
        self.assertIn(b"\x89PNGDATA", request.content)
        self.assertIn(b"Your code", request.content)

    async def test_rejected_call_raises_delivery_error(self) -> None:
        handler = RecordingHandler(
            body={"ok": False, "description": "Forbidden: bot was blocked by the user"},
            status_code=403,
        )
        provider = self._build(handler)

        with self.assertRaises(DeliveryError) as ctx:
            await provider.send_image(10, b"IMG")
        self.assertIn("blocked", str(ctx.exception))

    async def test_transport_error_raises_delivery_error(self) -> None:
        def failing_handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = TelegramMessagingProvider(token="123:abc", transport=httpx.MockTransport(failing_handler))

        with self.assertRaises(DeliveryError):
            await provider.send_message(10, "hi")

    async def test_missing_token_raises_delivery_error(self) -> None:
        handler = RecordingHandler()
        provider = self._build(handler, token=None)

        with self.assertRaises(DeliveryError):
            await provider.send_message(10, "hi")
        self.assertEqual(handler.requests, [])

    async def test_set_webhook_drops_pending_updates(self) -> None:
        handler = RecordingHandler()
        provider = self._build(handler)

        await provider.set_webhook("https://bot.example.com/api/v1/telegram/webhook", secret_token="s3")

        self.assertEqual(
            json.loads(handler.requests[0].content),
            {
                "url": "https://bot.example.com/api/v1/telegram/webhook",
                "drop_pending_updates": True,
                "secret_token": "s3",
            },
        )


class TelegramUpdateTestCase(unittest.TestCase):
    def test_text_message_to_inbound(self) -> None:
        update = TelegramUpdate.model_validate(
            {
                "update_id": 1,
                "message": {
                    "message_id": 5,
                    "chat": {"id": 77, "type": "private"},
                    "from": {"id": 88, "is_bot": False, "username": "jane"},
                    "text": " /start ",
                },
            }
        )

        inbound = update.to_inbound()

        self.assertEqual((inbound.chat_id, inbound.user_id, inbound.username), (77, 88, "jane"))
        self.assertEqual(inbound.text, "/start")
        self.assertIsNone(inbound.contact_phone)

    def test_contact_message_to_inbound(self) -> None:
        update = TelegramUpdate.model_validate(
            {
                "update_id": 2,
                "message": {
                    "message_id": 6,
                    "chat": {"id": 77},
                    "from": {"id": 77},
                    "contact": {"phone_number": "+251911000000", "first_name": "Jane"},
                },
            }
        )

        inbound = update.to_inbound()

        self.assertEqual(inbound.text, "")
        self.assertEqual(inbound.contact_phone, "+251911000000")

    def test_update_without_message(self) -> None:
        update = TelegramUpdate.model_validate({"update_id": 3, "edited_message": {"message_id": 1}})

        self.assertIsNone(update.to_inbound())


if __name__ == "__main__":
    unittest.main()
