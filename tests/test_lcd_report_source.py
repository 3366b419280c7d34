from __future__ import annotations

from adapters.lcd_report_source import ChainConfig, LcdReportSource, proposal_to_item
from core.dedup import compute_fingerprint

COSMOS = ChainConfig(name="cosmoshub", lcd_url="https://lcd.cosmos.test/", explorer_url="https://scan.test/cosmos")
OSMOSIS = ChainConfig(name="osmosis", lcd_url="https://lcd.osmo.test")


class FakeStorage:
    def __init__(self) -> None:
        self.reported: set[str] = set()

    def is_reported(self, fingerprint: str) -> bool:
        return fingerprint in self.reported

    def mark_reported(self, fingerprint: str) -> None:
        self.reported.add(fingerprint)


def _fetch(responses: dict[str, object]):
    def fetch(url: str):
        for prefix, response in responses.items():
            if url.startswith(prefix):
                if isinstance(response, Exception):
                    raise response
                return response
        raise AssertionError(f"unexpected url {url}")

    return fetch


def test_proposal_to_item_legacy_title() -> None:
    proposal = {
        "id": "55",
        "proposer": "cosmos1abc",
        "voting_end_time": "2024-01-02T00:00:00Z",
        "messages": [{"content": {"title": "Legacy title"}}],
    }

    item = proposal_to_item(COSMOS, proposal)

    assert item.domain_key == "cosmoshub"
    assert item.subject_id == "55"
    assert item.author == "cosmos1abc"
    assert item.title == "Legacy title"
    assert item.link == "https://scan.test/cosmos/55"
    assert "2024-01-02T00:00:00Z" in item.payload


def test_generate_reports_only_new_proposals_and_skips_broken_chains() -> None:
    storage = FakeStorage()
    storage.mark_reported(compute_fingerprint("cosmoshub", "1"))
    fetch = _fetch(
        {
            "https://lcd.cosmos.test/cosmos/gov/v1/proposals": {
                "proposals": [
                    {"id": "1", "title": "old"},
                    {"id": "2", "title": "new"},
                    {"id": "3", "title": "done", "status": "PROPOSAL_STATUS_PASSED"},
                ]
            },
            "https://lcd.osmo.test": RuntimeError("timeout"),
        }
    )
    source = LcdReportSource([COSMOS, OSMOSIS], storage, fetch=fetch)

    items = source.generate()

    assert [(i.domain_key, i.subject_id) for i in items] == [("cosmoshub", "2")]

    source.acknowledge(items)
    assert source.generate() == []


def test_voting_proposals_ignores_reported_state() -> None:
    storage = FakeStorage()
    storage.mark_reported(compute_fingerprint("cosmoshub", "1"))
    fetch = _fetch(
        {
            "https://lcd.cosmos.test/cosmos/gov/v1/proposals": {
                "proposals": [{"id": "1", "title": "old"}, {"id": "2", "title": "new"}]
            },
            "https://lcd.osmo.test": RuntimeError("timeout"),
        }
    )
    source = LcdReportSource([COSMOS, OSMOSIS], storage, fetch=fetch)

    items = source.voting_proposals()

    assert [(i.domain_key, i.subject_id) for i in items] == [("cosmoshub", "1"), ("cosmoshub", "2")]
    assert storage.reported == {compute_fingerprint("cosmoshub", "1")}
