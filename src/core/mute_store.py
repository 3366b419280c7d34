"""Mute rule store on top of a persistence port."""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone
from typing import Callable, List

from core.models import MuteRule
from core.ports import MuteRepositoryPort

LOGGER = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MuteStore:
    """Authoritative set of mute rules.

    Repository errors are propagated untouched; callers decide the policy.
    """

    def __init__(self, repository: MuteRepositoryPort, clock: Callable[[], datetime] = utc_now) -> None:
        self._repository = repository
        self._clock = clock

    def add_mute(self, rule: MuteRule) -> MuteRule:
        if rule.created_at is None:
            rule = dataclasses.replace(rule, created_at=self._clock())
        stored = self._repository.create_mute(rule)
        LOGGER.info("Mute #%s added by %s", stored.id, stored.creator)
        return stored

    def active_mutes(self, as_of: datetime) -> List[MuteRule]:
        """Return rules that have not expired at `as_of`, in no particular order."""

        return [rule for rule in self._repository.list_mutes() if rule.is_active(as_of)]

    def remove_mute(self, mute_id: int) -> bool:
        removed = self._repository.delete_mute(mute_id)
        if removed:
            LOGGER.info("Mute #%s removed", mute_id)
        return removed

    def purge_expired(self, as_of: datetime) -> int:
        return self._repository.delete_expired_mutes(as_of)
