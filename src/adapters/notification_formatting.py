"""Shared notification and reply formatting helpers.

Keeping formatting here prevents drift between adapters and keeps messages
consistent regardless of delivery channel.
"""

from __future__ import annotations

import html
from datetime import datetime
from typing import Iterable, Optional, Tuple

from core.models import MuteRule, NotificationItem

DIVIDER = "──────────────"


def format_chain_label(chain: str, chain_aliases: dict[str, str]) -> str:
    """Return a human-friendly chain label, using configured aliases."""

    alias = chain_aliases.get(chain) or chain_aliases.get(chain.lower())
    if not alias:
        return chain
    return f"{alias} ({chain})"


def _clip(text: str, limit: Optional[int]) -> str:
    if limit is None or len(text) <= limit:
        return text
    return text[:limit].rstrip() + "…"


def _format_markdown(item: NotificationItem, chain_aliases: dict[str, str], snippet_chars: Optional[int]) -> str:
    """Create the Markdown body used by Saved Messages."""

    def escape_md(value: str) -> str:
        for ch in r"*[`_":
            value = value.replace(ch, f"\\{ch}")
        return value

    lines = [
        f"**Chain:**    {escape_md(format_chain_label(item.domain_key, chain_aliases))}",
        f"**Proposal:** #{escape_md(item.subject_id)}",
    ]
    if item.title:
        lines.append(f"**Title:**    {escape_md(item.title)}")
    if item.author:
        lines.append(f"**Proposer:** `{item.author}`")
    lines.extend([DIVIDER, "", escape_md(_clip(item.payload, snippet_chars))])
    if item.link:
        lines.extend(["", "**Link:**", item.link])
    lines.append(DIVIDER)
    return "\n".join(lines)


def _format_html(item: NotificationItem, chain_aliases: dict[str, str], snippet_chars: Optional[int]) -> str:
    """Create the HTML body used by the Bot API adapter."""

    parts = [
        f"<b>Chain:</b> {html.escape(format_chain_label(item.domain_key, chain_aliases))}",
        f"<b>Proposal:</b> #{html.escape(item.subject_id)}",
    ]
    if item.title:
        parts.append(f"<b>Title:</b> {html.escape(item.title)}")
    if item.author:
        parts.append(f"<b>Proposer:</b> <code>{html.escape(item.author)}</code>")
    parts.extend([DIVIDER, "", html.escape(_clip(item.payload, snippet_chars))])
    if item.link:
        safe_link = html.escape(item.link)
        parts.extend(["", "<b>Link:</b>", f"<a href=\"{safe_link}\">{safe_link}</a>"])
    parts.append(DIVIDER)
    return "\n".join(parts)


def format_notification(
    item: NotificationItem,
    chain_aliases: dict[str, str],
    mode: str,
    snippet_chars: Optional[int] = None,
) -> str:
    """Return the notification formatted for the requested mode."""

    if mode == "markdown":
        return _format_markdown(item, chain_aliases, snippet_chars)
    if mode == "html":
        return _format_html(item, chain_aliases, snippet_chars)
    if mode == "text":
        title = f": {item.title}" if item.title else ""
        return f"[{item.domain_key}] proposal #{item.subject_id}{title}"
    raise ValueError(f"Unsupported notification format: {mode}")


def _format_time(value: Optional[datetime]) -> str:
    if value is None:
        return "never"
    return value.astimezone().strftime("%H:%M:%S %d-%m-%Y")


def describe_scope(rule: MuteRule) -> str:
    scope = rule.scope()
    if not scope:
        return "everything"
    return ", ".join(f"{key}={value}" for key, value in scope.items())


def format_mute_added(rule: MuteRule) -> str:
    """Plain-text confirmation for a freshly stored mute."""

    lines = [
        f"Mute #{rule.id} added.",
        f"Muted: {describe_scope(rule)}",
        f"Expires: {_format_time(rule.expires_at)}",
    ]
    if rule.reason:
        lines.append(f"Reason: {rule.reason}")
    return "\n".join(lines)


def format_mutes_list(rules: Iterable[MuteRule]) -> str:
    rules = list(rules)
    if not rules:
        return "No active mutes."
    lines = ["Active mutes:"]
    for rule in rules:
        line = f"#{rule.id} {describe_scope(rule)} until {_format_time(rule.expires_at)} by {rule.creator}"
        if rule.reason:
            line += f" ({rule.reason})"
        lines.append(line)
    return "\n".join(lines)


def format_proposals_list(
    entries: Iterable[Tuple[NotificationItem, bool]],
    chain_aliases: Optional[dict[str, str]] = None,
) -> str:
    """Plain-text reply for /proposals; muted entries are tagged."""

    entries = list(entries)
    if not entries:
        return "No proposals in voting period."
    lines = ["Proposals in voting period:"]
    for item, muted in entries:
        label = format_chain_label(item.domain_key, chain_aliases or {})
        line = f"{label} #{item.subject_id}"
        if item.title:
            line += f": {item.title}"
        if muted:
            line += " [muted]"
        lines.append(line)
        if item.link:
            lines.append(f"  {item.link}")
    return "\n".join(lines)
