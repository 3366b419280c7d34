"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

# Rule attribute -> NotificationItem attribute compared during matching.
SCOPE_FIELDS = {
    "chain": "domain_key",
    "proposal": "subject_id",
    "author": "author",
}


def normalize_identifier(value: Optional[str]) -> Optional[str]:
    """Identifiers compare case-insensitively and ignore surrounding spaces."""

    if value is None:
        return None
    normalized = str(value).strip().lower()
    return normalized or None


@dataclass(frozen=True)
class NotificationItem:
    """One unit of generated content that may be delivered."""

    domain_key: str
    subject_id: str
    payload: str
    author: Optional[str] = None
    title: Optional[str] = None
    link: Optional[str] = None


@dataclass(frozen=True)
class RequesterContext:
    """Who issued a chat command, without any chat SDK types."""

    user_id: Optional[int]
    username: Optional[str] = None

    @property
    def creator(self) -> str:
        if self.username:
            return f"@{self.username.lstrip('@')}"
        if self.user_id is not None:
            return f"id:{self.user_id}"
        return "unknown"


@dataclass(frozen=True)
class MuteRule:
    """Persisted suppression condition.

    Scope fields left as None match anything.
    """

    creator: str
    chain: Optional[str] = None
    proposal: Optional[str] = None
    author: Optional[str] = None
    reason: Optional[str] = None
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    id: Optional[int] = None

    def scope(self) -> dict[str, str]:
        """Return only the scope fields this rule actually constrains."""

        return {
            name: getattr(self, name)
            for name in SCOPE_FIELDS
            if getattr(self, name) is not None
        }

    @property
    def is_global(self) -> bool:
        return not self.scope()

    def is_active(self, as_of: datetime) -> bool:
        return self.expires_at is None or self.expires_at > as_of


@dataclass(frozen=True)
class ReporterOutcome:
    """Delivery tally for one reporter within one cycle."""

    name: str
    delivered: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed == 0


@dataclass(frozen=True)
class BatchOutcome:
    """Result of a single dispatch cycle."""

    reporters: dict[str, ReporterOutcome] = field(default_factory=dict)
    sent: list[NotificationItem] = field(default_factory=list)
    suppressed: list[NotificationItem] = field(default_factory=list)
    # Items no reporter accepted; they are reported again next cycle.
    undelivered: list[NotificationItem] = field(default_factory=list)
    aborted: bool = False
    error: Optional[str] = None

    @property
    def suppressed_count(self) -> int:
        return len(self.suppressed)

    @property
    def failed_reporters(self) -> list[str]:
        return [name for name, outcome in self.reporters.items() if not outcome.ok]
