"""Mute command parsing (core domain).

Turns the text of a `/mute` command into a MuteRule. Failures are returned
as human-readable messages because they are shown to the requester as-is.
"""

from __future__ import annotations

import re
import shlex
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from core.models import MuteRule, RequesterContext, normalize_identifier

CONFIRM_KEYWORD = "confirm"
PERMANENT = "permanent"

USAGE = (
    "Usage: /mute duration=<30m|1h|2d|permanent> [chain=<id>] [proposal=<id>] "
    "[author=<address>] [reason=\"...\"] [confirm]"
)

_DURATION_UNITS = {
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
    "w": timedelta(weeks=1),
}
_DURATION_RE = re.compile(r"(?:\d+[smhdw])+")
_DURATION_PART_RE = re.compile(r"(\d+)([smhdw])")
DURATION_TOO_LONG = "duration is too long"


@dataclass(frozen=True)
class MuteParseResult:
    """Exactly one of `rule` or `error` is set."""

    rule: Optional[MuteRule] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.rule is not None


@dataclass(frozen=True)
class FieldSpec:
    """How a `key=value` token maps onto a MuteRule attribute."""

    attr: str
    normalize: Callable[[str], Optional[str]]
    scope: bool = True


def _normalize_proposal(value: str) -> Optional[str]:
    normalized = normalize_identifier(value)
    if normalized == "*":
        return None
    return normalized


def _normalize_text(value: str) -> Optional[str]:
    return value.strip() or None


FIELDS: dict[str, FieldSpec] = {
    "chain": FieldSpec("chain", normalize_identifier),
    "proposal": FieldSpec("proposal", _normalize_proposal),
    "author": FieldSpec("author", normalize_identifier),
    "reason": FieldSpec("reason", _normalize_text, scope=False),
}

KEY_ALIASES = {"comment": "reason"}


def parse_duration(raw_value: str) -> tuple[Optional[timedelta], Optional[str]]:
    """Parse a relative span like `1h30m`.

    Returns (span, error). `permanent` yields (None, None).
    """

    value = raw_value.strip().lower()
    if value == PERMANENT:
        return None, None
    if value.startswith("-"):
        return None, f"duration must be positive, got '{raw_value}'"
    if not _DURATION_RE.fullmatch(value):
        return None, f"invalid duration '{raw_value}', use e.g. 30m, 1h, 2d or permanent"

    span = timedelta()
    try:
        for amount, unit in _DURATION_PART_RE.findall(value):
            span += int(amount) * _DURATION_UNITS[unit]
    except (OverflowError, ValueError):
        return None, DURATION_TOO_LONG
    if span <= timedelta():
        return None, f"duration must be positive, got '{raw_value}'"
    return span, None


def _tokenize(raw_text: str) -> list[str]:
    tokens = shlex.split(raw_text)
    # Drop the chat command itself, e.g. "/mute" or "/mute@somebot".
    if tokens and tokens[0].startswith("/"):
        tokens = tokens[1:]
    return tokens


def parse_mute_command(
    raw_text: str,
    requester: RequesterContext,
    now: Optional[datetime] = None,
) -> MuteParseResult:
    """Parse command text into a MuteRule or an error message."""

    now = now or datetime.now(timezone.utc)
    try:
        tokens = _tokenize(raw_text or "")
    except ValueError as exc:
        return MuteParseResult(error=f"could not read command: {exc}")

    values: dict[str, Optional[str]] = {}
    seen_keys: set[str] = set()
    duration_raw: Optional[str] = None
    confirmed = False

    for token in tokens:
        if "=" not in token:
            keyword = token.strip().lower()
            if keyword == CONFIRM_KEYWORD:
                confirmed = True
            elif keyword == PERMANENT:
                if duration_raw is not None:
                    return MuteParseResult(error="duration is given more than once")
                duration_raw = PERMANENT
            else:
                return MuteParseResult(error=f"unknown keyword '{token}'. {USAGE}")
            continue

        key, _, value = token.partition("=")
        key = key.strip().lower()
        key = KEY_ALIASES.get(key, key)
        if not value.strip():
            return MuteParseResult(error=f"empty value for '{key}'")

        if key == "duration":
            if duration_raw is not None:
                return MuteParseResult(error="duration is given more than once")
            duration_raw = value
            continue

        spec = FIELDS.get(key)
        if spec is None:
            known = ", ".join(sorted([*FIELDS, "duration"]))
            return MuteParseResult(error=f"unknown parameter '{key}', expected one of: {known}")
        if key in seen_keys:
            return MuteParseResult(error=f"'{key}' is given more than once")
        seen_keys.add(key)
        values[spec.attr] = spec.normalize(value)

    has_scope = any(
        values.get(spec.attr) is not None for spec in FIELDS.values() if spec.scope
    )
    if not has_scope and not confirmed:
        return MuteParseResult(
            error=(
                "ambiguous: did you mean to mute everything? "
                f"Add '{CONFIRM_KEYWORD}' to mute all notifications, "
                "or narrow it down with chain=, proposal= or author=."
            )
        )

    if duration_raw is None:
        return MuteParseResult(error=f"missing duration. {USAGE}")
    span, error = parse_duration(duration_raw)
    if error:
        return MuteParseResult(error=error)

    expires_at = None
    if span is not None:
        try:
            expires_at = now + span
        except (OverflowError, ValueError):
            return MuteParseResult(error=DURATION_TOO_LONG)

    return MuteParseResult(
        rule=MuteRule(
            creator=requester.creator,
            chain=values.get("chain"),
            proposal=values.get("proposal"),
            author=values.get("author"),
            reason=values.get("reason"),
            created_at=now,
            expires_at=expires_at,
        )
    )
