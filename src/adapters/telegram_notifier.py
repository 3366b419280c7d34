"""Telegram reporter for Saved Messages.

Formats a human-readable Markdown message and sends it to Saved Messages.
"""

from __future__ import annotations

import asyncio

from adapters.notification_formatting import format_notification
from core.config import NotificationConfig
from core.models import NotificationItem

SEND_TIMEOUT_SECONDS = 30


class SavedMessagesReporter:
    """Reporter that sends messages to the user's Saved Messages."""

    name = "saved_messages"

    def __init__(self, client, config: NotificationConfig) -> None:
        self._client = client
        self._config = config

    async def init(self) -> None:
        if not await self._client.is_user_authorized():
            raise RuntimeError("Telegram session is not authorized, run `govbell login` first")

    async def send(self, item: NotificationItem) -> None:
        message = format_notification(
            item,
            self._config.chain_aliases,
            mode="markdown",
            snippet_chars=self._config.snippet_chars,
        )
        await asyncio.wait_for(
            self._client.send_message("me", message, parse_mode="Markdown", link_preview=False),
            timeout=SEND_TIMEOUT_SECONDS,
        )
