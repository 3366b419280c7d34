"""PagerDuty Events API v2 reporter."""

from __future__ import annotations

import asyncio

from adapters import http_json
from adapters.notification_formatting import format_chain_label, format_notification
from core.config import NotificationConfig
from core.models import NotificationItem

EVENTS_URL = "https://events.pagerduty.com/v2/enqueue"


class PagerDutyReporter:
    """Raise one PagerDuty alert per proposal.

    The dedup key is stable per chain and proposal, so PagerDuty folds
    repeated alerts for the same proposal into one incident.
    """

    name = "pagerduty"

    def __init__(
        self,
        routing_key: str,
        config: NotificationConfig,
        events_url: str = EVENTS_URL,
        severity: str = "info",
    ) -> None:
        self._routing_key = routing_key
        self._config = config
        self._events_url = events_url
        self._severity = severity

    async def init(self) -> None:
        if not self._routing_key:
            raise RuntimeError("PAGERDUTY_ROUTING_KEY is required for the pagerduty reporter")

    def build_event(self, item: NotificationItem) -> dict:
        details = {
            "chain": item.domain_key,
            "proposal": item.subject_id,
            "proposer": item.author,
            "details": item.payload,
        }
        event = {
            "routing_key": self._routing_key,
            "event_action": "trigger",
            "dedup_key": f"{item.domain_key}-{item.subject_id}",
            "payload": {
                "summary": format_notification(item, self._config.chain_aliases, mode="text"),
                "source": format_chain_label(item.domain_key, self._config.chain_aliases),
                "severity": self._severity,
                "custom_details": {key: value for key, value in details.items() if value},
            },
        }
        if item.link:
            event["links"] = [{"href": item.link, "text": "Proposal"}]
        return event

    async def send(self, item: NotificationItem) -> None:
        response = await asyncio.to_thread(http_json.request_json, self._events_url, self.build_event(item))
        if response and response.get("status") not in (None, "success"):
            raise RuntimeError(f"PagerDuty rejected the event: {response}")
