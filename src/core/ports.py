"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for storage, report sources and reporters
so that the core can be reused with different backends.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Protocol

from core.models import MuteRule, NotificationItem


class MuteRepositoryPort(Protocol):
    """Durable create/list/delete operations for mute rules."""

    def create_mute(self, rule: MuteRule) -> MuteRule:
        ...

    def list_mutes(self) -> List[MuteRule]:
        ...

    def delete_mute(self, mute_id: int) -> bool:
        ...

    def delete_expired_mutes(self, as_of: datetime) -> int:
        ...


class ReportedStoragePort(Protocol):
    """Fingerprints of items that were already reported."""

    def is_reported(self, fingerprint: str) -> bool:
        ...

    def mark_reported(self, fingerprint: str) -> None:
        ...


class ReportSourcePort(Protocol):
    """Produces the items of one reporting cycle."""

    def generate(self) -> List[NotificationItem]:
        ...

    def acknowledge(self, items: Iterable[NotificationItem]) -> None:
        ...


class VotingSnapshotPort(Protocol):
    """Lists everything currently in voting, reported or not."""

    def voting_proposals(self) -> List[NotificationItem]:
        ...


class ReporterPort(Protocol):
    """One delivery channel.

    `init` runs once before any `send`; both raise on failure.
    """

    name: str

    async def init(self) -> None:
        ...

    async def send(self, item: NotificationItem) -> None:
        ...
