"""Discord webhook reporter."""

from __future__ import annotations

import asyncio

from adapters import http_json
from adapters.notification_formatting import format_notification
from core.config import NotificationConfig
from core.models import NotificationItem

# Discord rejects message content longer than this.
MAX_CONTENT_CHARS = 2000


class DiscordReporter:
    """Reporter that posts messages to a Discord channel webhook."""

    name = "discord"

    def __init__(self, webhook_url: str, config: NotificationConfig) -> None:
        self._webhook_url = webhook_url
        self._config = config

    async def init(self) -> None:
        """Fetch the webhook once so a revoked or mistyped URL fails early."""

        if not self._webhook_url:
            raise RuntimeError("DISCORD_WEBHOOK_URL is required for the discord reporter")
        if not self._webhook_url.startswith("https://"):
            raise RuntimeError("DISCORD_WEBHOOK_URL must be an https URL")
        response = await asyncio.to_thread(http_json.request_json, self._webhook_url)
        if not response or not response.get("id"):
            raise RuntimeError(f"Discord did not recognise the webhook: {response}")

    async def send(self, item: NotificationItem) -> None:
        message = format_notification(
            item,
            self._config.chain_aliases,
            mode="markdown",
            snippet_chars=self._config.snippet_chars,
        )
        if len(message) > MAX_CONTENT_CHARS:
            message = message[: MAX_CONTENT_CHARS - 1] + "…"
        payload = {
            "content": message,
            # Proposal text is untrusted; never let it ping anyone.
            "allowed_mentions": {"parse": []},
        }
        # A successful webhook execution answers 204 with no body.
        await asyncio.to_thread(http_json.request_json, self._webhook_url, payload)
