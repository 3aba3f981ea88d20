"""Telegram Bot API messaging provider."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.core.exceptions import DeliveryError
from app.interfaces.messaging_provider import MessagingProvider, ReplyOptions

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


class TelegramMessagingProvider(MessagingProvider):
    """Sends messages and photos through the Telegram Bot HTTP API."""

    def __init__(
        self,
        token: str | None,
        *,
        base_url: str = TELEGRAM_API_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def send_message(self, chat_id: int, text: str, options: ReplyOptions | None = None) -> None:
        data: dict[str, Any] = {"chat_id": chat_id, "text": text}
        data.update(self._format_options(options))
        await self._call("sendMessage", data=data)

    async def send_image(self, chat_id: int, image: bytes, caption: str | None = None) -> None:
        data: dict[str, Any] = {"chat_id": str(chat_id)}
        if caption:
            data["caption"] = caption
        await self._call("sendPhoto", data=data, files={"photo": ("image.png", image)})

    async def set_webhook(self, url: str, secret_token: str | None = None) -> None:
        """Point Telegram at the webhook route, dropping any pending backlog."""
        data: dict[str, Any] = {"url": url, "drop_pending_updates": True}
        if secret_token:
            data["secret_token"] = secret_token
        await self._call("setWebhook", data=data)
        logger.info("Telegram webhook registered at %s", url)

    async def _call(
        self,
        method: str,
        *,
        data: dict[str, Any],
        files: dict[str, tuple[str, bytes]] | None = None,
    ) -> dict[str, Any]:
        if not self.token:
            raise DeliveryError("TELEGRAM_BOT_TOKEN not configured")

        url = f"{self.base_url}/bot{self.token}/{method}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                if files is None:
                    response = await client.post(url, json=data)
                else:
                    response = await client.post(url, data=data, files=files)
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise DeliveryError(f"Telegram {method} request failed: {exc}") from exc

        if not body.get("ok"):
            raise DeliveryError(f"Telegram {method} rejected: {body.get('description', response.status_code)}")
        return body

    def _format_options(self, options: ReplyOptions | None) -> dict[str, Any]:
        if options is None:
            return {}

        formatted: dict[str, Any] = {}
        if options.parse_mode:
            formatted["parse_mode"] = options.parse_mode
        if options.remove_keyboard:
            formatted["reply_markup"] = {"remove_keyboard": True}
        elif options.keyboard:
            rows = [
                [{"text": label, "request_contact": True} if options.request_contact else {"text": label} for label in row]
                for row in options.keyboard
            ]
            formatted["reply_markup"] = {"keyboard": rows, "one_time_keyboard": True, "resize_keyboard": True}
        return formatted
