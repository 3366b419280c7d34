from __future__ import annotations

from datetime import datetime, timedelta, timezone

from adapters.notification_formatting import format_mute_added, format_mutes_list, format_proposals_list
from adapters.sqlite_storage import SQLiteStorage
from core.commands import MuteCommands, ProposalsCommand
from core.models import MuteRule, NotificationItem, RequesterContext
from core.mute_store import MuteStore

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)
ALICE = RequesterContext(user_id=1, username="alice")


class BrokenRepository:
    def create_mute(self, rule: MuteRule) -> MuteRule:
        raise RuntimeError("disk full")

    def list_mutes(self) -> list[MuteRule]:
        raise RuntimeError("disk full")

    def delete_mute(self, mute_id: int) -> bool:
        raise RuntimeError("disk full")

    def delete_expired_mutes(self, as_of: datetime) -> int:
        return 0


def _commands(repository) -> MuteCommands:
    return MuteCommands(
        MuteStore(repository, clock=lambda: NOW),
        render_added=format_mute_added,
        render_list=format_mutes_list,
        clock=lambda: NOW,
    )


def _sqlite(tmp_path) -> SQLiteStorage:
    storage = SQLiteStorage(str(tmp_path / "govbell.db"))
    storage.init_db()
    return storage


def test_add_mute_stores_and_confirms(tmp_path) -> None:
    storage = _sqlite(tmp_path)

    reply = _commands(storage).add_mute("/mute chain=cosmoshub duration=1d reason=noisy", ALICE)

    assert reply.ok
    assert reply.rule.id is not None
    assert f"Mute #{reply.rule.id} added." in reply.text
    assert "chain=cosmoshub" in reply.text
    assert "Reason: noisy" in reply.text
    stored = storage.list_mutes()
    assert len(stored) == 1
    assert stored[0].creator == "@alice"
    assert stored[0].expires_at == NOW + timedelta(days=1)


def test_parse_error_is_returned_verbatim(tmp_path) -> None:
    storage = _sqlite(tmp_path)

    reply = _commands(storage).add_mute("/mute duration=1h", ALICE)

    assert not reply.ok
    assert reply.text.startswith("Error muting notification: ambiguous")
    assert storage.list_mutes() == []


def test_store_failure_gives_generic_error() -> None:
    reply = _commands(BrokenRepository()).add_mute("/mute chain=x duration=1h", ALICE)

    assert not reply.ok
    assert reply.text == "Error adding mute"


def test_list_mutes_shows_active_only(tmp_path) -> None:
    storage = _sqlite(tmp_path)
    commands = _commands(storage)
    commands.add_mute("/mute chain=juno permanent", ALICE)
    storage.create_mute(MuteRule(creator="@bob", chain="gone", expires_at=NOW - timedelta(hours=1)))

    reply = commands.list_mutes(ALICE)

    assert reply.ok
    assert "chain=juno until never by @alice" in reply.text
    assert "gone" not in reply.text


def test_list_mutes_when_empty(tmp_path) -> None:
    assert _commands(_sqlite(tmp_path)).list_mutes(ALICE).text == "No active mutes."


def test_remove_mute(tmp_path) -> None:
    storage = _sqlite(tmp_path)
    commands = _commands(storage)
    added = commands.add_mute("/mute chain=juno permanent", ALICE)

    assert commands.remove_mute(f"/unmute {added.rule.id}", ALICE).text == f"Mute #{added.rule.id} removed"
    assert not commands.remove_mute(f"/unmute #{added.rule.id}", ALICE).ok
    assert commands.remove_mute("/unmute abc", ALICE).text == "Usage: /unmute <id>"
    assert storage.list_mutes() == []


def test_oversized_duration_gets_an_error_reply(tmp_path) -> None:
    storage = _sqlite(tmp_path)

    reply = _commands(storage).add_mute("/mute chain=x duration=9999999d", ALICE)

    assert not reply.ok
    assert reply.text == "Error muting notification: duration is too long"
    assert storage.list_mutes() == []


class FakeSnapshot:
    def __init__(self, items: list[NotificationItem], fail: bool = False) -> None:
        self.items = items
        self.fail = fail

    def voting_proposals(self) -> list[NotificationItem]:
        if self.fail:
            raise RuntimeError("lcd unreachable")
        return list(self.items)


def _proposals(snapshot: FakeSnapshot, repository) -> ProposalsCommand:
    return ProposalsCommand(
        snapshot,
        MuteStore(repository, clock=lambda: NOW),
        render=format_proposals_list,
        clock=lambda: NOW,
    )


def test_proposals_lists_voting_and_flags_muted(tmp_path) -> None:
    storage = _sqlite(tmp_path)
    _commands(storage).add_mute("/mute chain=osmosis duration=1d", ALICE)
    snapshot = FakeSnapshot(
        [
            NotificationItem(domain_key="cosmoshub", subject_id="55", payload="p", title="Upgrade"),
            NotificationItem(domain_key="osmosis", subject_id="10", payload="p"),
        ]
    )

    reply = _proposals(snapshot, storage).list_proposals(ALICE)

    assert reply.ok
    assert "cosmoshub #55: Upgrade" in reply.text
    assert "osmosis #10 [muted]" in reply.text
    assert "#55: Upgrade [muted]" not in reply.text


def test_proposals_when_source_fails(tmp_path) -> None:
    reply = _proposals(FakeSnapshot([], fail=True), _sqlite(tmp_path)).list_proposals(ALICE)

    assert not reply.ok
    assert reply.text == "Error listing proposals"
