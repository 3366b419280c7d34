"""Telegram Bot API reporter.

Uses the Bot API for delivery so notifications can be routed via a bot chat.
"""

from __future__ import annotations

import asyncio

from adapters import http_json
from adapters.notification_formatting import format_notification
from core.config import NotificationConfig
from core.models import NotificationItem


class TelegramBotReporter:
    """Reporter that sends messages via the Telegram Bot API."""

    name = "telegram_bot"

    def __init__(self, bot_token: str, chat_id: str, config: NotificationConfig) -> None:
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._config = config

    def _endpoint(self, method: str) -> str:
        return f"https://api.telegram.org/bot{self._bot_token}/{method}"

    async def init(self) -> None:
        """Check credentials with getMe before the first send."""

        if not self._bot_token:
            raise RuntimeError("BOT_API is required for the telegram_bot reporter")
        if not self._chat_id:
            raise RuntimeError("notifications.bot_chat_id is required for the telegram_bot reporter")
        response = await asyncio.to_thread(http_json.request_json, self._endpoint("getMe"))
        if not response or not response.get("ok"):
            raise RuntimeError(f"Bot API rejected the token: {response}")

    async def send(self, item: NotificationItem) -> None:
        message = format_notification(
            item,
            self._config.chain_aliases,
            mode="html",
            snippet_chars=self._config.snippet_chars,
        )
        payload = {
            "chat_id": self._chat_id,
            "text": message,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        await asyncio.to_thread(http_json.request_json, self._endpoint("sendMessage"), payload)
