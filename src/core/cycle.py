"""Periodic reporting cycle.

One cycle runs to completion before the next one starts.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Optional

from core.dispatcher import Dispatcher
from core.models import BatchOutcome
from core.ports import ReportSourcePort

LOGGER = logging.getLogger(__name__)


class ReportingCycle:
    """Generate a report, dispatch it, and acknowledge what was handled."""

    def __init__(self, source: ReportSourcePort, dispatcher: Dispatcher) -> None:
        self._source = source
        self._dispatcher = dispatcher
        self._lock = asyncio.Lock()
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    async def run_once(self) -> Optional[BatchOutcome]:
        async with self._lock:
            try:
                # The source does blocking HTTP, keep it off the event loop.
                items = await asyncio.to_thread(self._source.generate)
            except Exception:
                LOGGER.exception("Report generation failed")
                return None

            outcome = await self._dispatcher.dispatch(items)
            if outcome.aborted:
                LOGGER.warning("Cycle aborted, %s items will be retried next cycle", len(items))
                return outcome

            # Suppressed items count as handled: the mute was deliberate.
            # Undelivered ones stay unacknowledged and come back next cycle.
            await asyncio.to_thread(self._source.acknowledge, outcome.sent + outcome.suppressed)
            _log_outcome(outcome)
            return outcome

    async def run_forever(self, interval_seconds: float, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            await self.run_once()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
            except asyncio.TimeoutError:
                continue

    def start(self, interval_seconds: float) -> asyncio.Task:
        """Run cycles in a background task until `stop` is awaited."""

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self.run_forever(interval_seconds, self._stop_event))
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop_event.set()
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None


def _log_outcome(outcome: BatchOutcome) -> None:
    if not outcome.sent and not outcome.suppressed and not outcome.undelivered:
        LOGGER.info("Cycle complete: nothing new to report")
        return
    for name, reporter in outcome.reporters.items():
        if reporter.ok:
            LOGGER.info("Reporter %s delivered %s items", name, reporter.delivered)
        else:
            LOGGER.warning(
                "Reporter %s delivered %s items, %s failed",
                name,
                reporter.delivered,
                reporter.failed,
            )
    LOGGER.info(
        "Cycle complete: sent=%s, suppressed=%s, undelivered=%s",
        len(outcome.sent),
        outcome.suppressed_count,
        len(outcome.undelivered),
    )
