"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class NotificationConfig:
    """Rendering settings consumed by reporter adapters."""

    snippet_chars: int
    chain_aliases: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CycleConfig:
    """Reporting cycle cadence and housekeeping."""

    interval_seconds: int
    reported_ttl_days: int = 90
