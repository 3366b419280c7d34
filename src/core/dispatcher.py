"""Core report dispatch pipeline.

This module is integration-agnostic. It only relies on the mute store and on
reporter ports, so new delivery channels plug in without changes here.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Iterable, List, Set, Tuple

from core.models import BatchOutcome, NotificationItem, ReporterOutcome
from core.mute_filter import filter_items
from core.mute_store import MuteStore, utc_now
from core.ports import ReporterPort

LOGGER = logging.getLogger(__name__)


class Dispatcher:
    """Filters one report through active mutes and fans it out to reporters."""

    def __init__(
        self,
        mute_store: MuteStore,
        reporters: Iterable[ReporterPort],
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._mute_store = mute_store
        self._reporters: List[ReporterPort] = list(reporters)
        self._clock = clock

    async def init(self) -> List[str]:
        """Initialize reporters once; the ones that fail are dropped for good."""

        active: List[ReporterPort] = []
        for reporter in self._reporters:
            try:
                await reporter.init()
            except Exception:
                LOGGER.exception("Reporter %s failed to initialize, disabling it", reporter.name)
                continue
            active.append(reporter)
        self._reporters = active
        names = [reporter.name for reporter in active]
        LOGGER.info("Active reporters: %s", ", ".join(names) or "none")
        return names

    async def dispatch(self, report: Iterable[NotificationItem]) -> BatchOutcome:
        """Deliver one cycle's report and return what happened per reporter.

        `sent` holds only items at least one reporter accepted; items no
        reporter got (none active, or every send failed) end up in
        `undelivered`.
        """

        items = list(report)
        if not items:
            LOGGER.debug("Empty report, nothing to dispatch")
            return BatchOutcome()

        # Mutes are read fresh every cycle. If they can't be read we send
        # nothing rather than risk delivering a muted notification.
        try:
            active_mutes = self._mute_store.active_mutes(self._clock())
        except Exception as exc:
            LOGGER.exception("Could not read mutes, skipping dispatch of %s items", len(items))
            return BatchOutcome(aborted=True, error=str(exc))

        filtered = filter_items(items, active_mutes)
        if filtered.suppressed:
            LOGGER.info("%s of %s items suppressed by mutes", len(filtered.suppressed), len(items))

        if not filtered.to_send:
            return BatchOutcome(suppressed=filtered.suppressed)
        if not self._reporters:
            LOGGER.warning("No active reporters, %s items left undelivered", len(filtered.to_send))
            return BatchOutcome(suppressed=filtered.suppressed, undelivered=filtered.to_send)

        results = await asyncio.gather(
            *(self._deliver(reporter, filtered.to_send) for reporter in self._reporters)
        )
        accepted = {index for _, delivered in results for index in delivered}
        return BatchOutcome(
            reporters={outcome.name: outcome for outcome, _ in results},
            sent=[item for index, item in enumerate(filtered.to_send) if index in accepted],
            suppressed=filtered.suppressed,
            undelivered=[item for index, item in enumerate(filtered.to_send) if index not in accepted],
        )

    async def _deliver(
        self, reporter: ReporterPort, items: List[NotificationItem]
    ) -> Tuple[ReporterOutcome, Set[int]]:
        delivered: Set[int] = set()
        errors: List[str] = []
        for index, item in enumerate(items):
            try:
                await reporter.send(item)
            except Exception as exc:
                LOGGER.exception(
                    "Reporter %s failed to send %s/%s",
                    reporter.name,
                    item.domain_key,
                    item.subject_id,
                )
                errors.append(f"{item.domain_key}/{item.subject_id}: {exc}")
                continue
            delivered.add(index)
        outcome = ReporterOutcome(name=reporter.name, delivered=len(delivered), failed=len(errors), errors=errors)
        return outcome, delivered
