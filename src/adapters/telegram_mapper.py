"""Telegram-to-core command mapping adapter.

This keeps Telethon-specific details out of the core command handlers.
"""

from __future__ import annotations

from typing import Iterable, Optional

from telethon.tl.custom import Message

from core.models import RequesterContext


def build_requester(message: Message, sender=None) -> RequesterContext:
    """Build a RequesterContext from a Telethon Message and its sender."""

    sender = sender if sender is not None else getattr(message, "sender", None)
    username = getattr(sender, "username", None)
    user_id = getattr(sender, "id", None) or getattr(message, "sender_id", None)
    return RequesterContext(
        user_id=user_id,
        username=username.lower() if isinstance(username, str) and username else None,
    )


def normalize_admins(raw_admins: Iterable) -> set[str]:
    """Normalize configured admins to `@username` / `id:<n>` keys."""

    admins: set[str] = set()
    for entry in raw_admins:
        value = str(entry).strip()
        if not value:
            continue
        if value.lstrip("-").isdigit():
            admins.add(f"id:{int(value)}")
        else:
            admins.add(f"@{value.lstrip('@').lower()}")
    return admins


def is_command_allowed(
    message: Message,
    requester: RequesterContext,
    admins: set[str],
    self_id: Optional[int] = None,
) -> bool:
    """Commands come from our own Saved Messages or from configured admins."""

    if getattr(message, "out", False) and self_id is not None and message.chat_id == self_id:
        return True
    if requester.username and f"@{requester.username}" in admins:
        return True
    return requester.user_id is not None and f"id:{requester.user_id}" in admins
