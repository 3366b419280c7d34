"""Cosmos LCD report source.

Polls each chain's governance module for proposals in their voting period
and emits one NotificationItem per proposal that was not reported yet.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Optional, Tuple

from adapters import http_json
from core.dedup import item_fingerprint
from core.models import NotificationItem
from core.ports import ReportedStoragePort

LOGGER = logging.getLogger(__name__)

VOTING_PERIOD = "PROPOSAL_STATUS_VOTING_PERIOD"
PROPOSALS_PATH = "/cosmos/gov/v1/proposals?proposal_status=2"


@dataclass(frozen=True)
class ChainConfig:
    name: str
    lcd_url: str
    alias: Optional[str] = None
    explorer_url: Optional[str] = None


def _proposal_title(proposal: dict[str, Any]) -> Optional[str]:
    title = proposal.get("title")
    if title:
        return title
    # Legacy proposals keep their title inside the first message's content.
    for message in proposal.get("messages") or []:
        content = message.get("content") or {}
        if content.get("title"):
            return content["title"]
    return None


def proposal_to_item(chain: ChainConfig, proposal: dict[str, Any]) -> NotificationItem:
    proposal_id = str(proposal.get("id") or proposal.get("proposal_id"))
    voting_end = proposal.get("voting_end_time") or "unknown"
    summary = (proposal.get("summary") or "").strip()
    payload = f"Voting ends: {voting_end}"
    if summary:
        payload = f"{summary}\n\n{payload}"

    link = None
    if chain.explorer_url:
        link = f"{chain.explorer_url.rstrip('/')}/{proposal_id}"

    return NotificationItem(
        domain_key=chain.name,
        subject_id=proposal_id,
        author=proposal.get("proposer") or None,
        title=_proposal_title(proposal),
        payload=payload,
        link=link,
    )


class LcdReportSource:
    """Report source backed by Cosmos LCD endpoints."""

    def __init__(
        self,
        chains: Iterable[ChainConfig],
        storage: ReportedStoragePort,
        fetch=http_json.request_json,
    ) -> None:
        self._chains = list(chains)
        self._storage = storage
        self._fetch = fetch

    def _fetch_voting_proposals(self, chain: ChainConfig) -> List[dict[str, Any]]:
        response = self._fetch(f"{chain.lcd_url.rstrip('/')}{PROPOSALS_PATH}") or {}
        proposals = response.get("proposals") or []
        return [p for p in proposals if p.get("status", VOTING_PERIOD) == VOTING_PERIOD]

    def _per_chain(self) -> Iterator[Tuple[ChainConfig, List[NotificationItem]]]:
        for chain in self._chains:
            try:
                proposals = self._fetch_voting_proposals(chain)
            except Exception:
                # One unreachable chain must not hide the others' proposals.
                LOGGER.exception("Failed to fetch proposals for %s", chain.name)
                continue
            yield chain, [proposal_to_item(chain, proposal) for proposal in proposals]

    def generate(self) -> List[NotificationItem]:
        items: List[NotificationItem] = []
        for chain, voting in self._per_chain():
            new_items = [item for item in voting if not self._storage.is_reported(item_fingerprint(item))]
            LOGGER.info(
                "%s: %s proposals in voting period, %s new",
                chain.name,
                len(voting),
                len(new_items),
            )
            items.extend(new_items)
        return items

    def voting_proposals(self) -> List[NotificationItem]:
        """Everything in voting right now, already reported or not."""

        items: List[NotificationItem] = []
        for _, voting in self._per_chain():
            items.extend(voting)
        return items

    def acknowledge(self, items: Iterable[NotificationItem]) -> None:
        for item in items:
            self._storage.mark_reported(item_fingerprint(item))
