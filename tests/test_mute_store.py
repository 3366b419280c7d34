from __future__ import annotations

from datetime import datetime, timedelta, timezone

from adapters.sqlite_storage import SQLiteStorage
from core.models import MuteRule
from core.mute_store import MuteStore

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _store(tmp_path) -> tuple[MuteStore, SQLiteStorage]:
    storage = SQLiteStorage(str(tmp_path / "govbell.db"))
    storage.init_db()
    return MuteStore(storage, clock=lambda: NOW), storage


def test_add_mute_assigns_id_and_created_at(tmp_path) -> None:
    store, _ = _store(tmp_path)

    first = store.add_mute(MuteRule(creator="@alice", chain="cosmoshub"))
    second = store.add_mute(MuteRule(creator="@bob", proposal="7", reason="dup"))

    assert first.id is not None
    assert second.id != first.id
    assert first.created_at == NOW

    stored = {rule.id: rule for rule in store.active_mutes(NOW)}
    assert stored[first.id].chain == "cosmoshub"
    assert stored[first.id].created_at == NOW
    assert stored[second.id].reason == "dup"
    assert stored[second.id].chain is None


def test_expired_rules_are_never_active(tmp_path) -> None:
    store, _ = _store(tmp_path)
    store.add_mute(MuteRule(creator="@a", chain="past", expires_at=NOW - timedelta(minutes=1)))
    store.add_mute(MuteRule(creator="@a", chain="edge", expires_at=NOW))
    store.add_mute(MuteRule(creator="@a", chain="future", expires_at=NOW + timedelta(hours=1)))
    store.add_mute(MuteRule(creator="@a", chain="forever"))

    active = {rule.chain for rule in store.active_mutes(NOW)}

    assert active == {"future", "forever"}


def test_active_mutes_reflect_latest_state(tmp_path) -> None:
    store, _ = _store(tmp_path)
    assert store.active_mutes(NOW) == []

    rule = store.add_mute(MuteRule(creator="@a", chain="juno"))
    assert [r.id for r in store.active_mutes(NOW)] == [rule.id]

    assert store.remove_mute(rule.id)
    assert not store.remove_mute(rule.id)
    assert store.active_mutes(NOW) == []


def test_purge_expired_deletes_only_expired(tmp_path) -> None:
    store, storage = _store(tmp_path)
    store.add_mute(MuteRule(creator="@a", chain="old", expires_at=NOW - timedelta(days=1)))
    store.add_mute(MuteRule(creator="@a", chain="new", expires_at=NOW + timedelta(days=1)))

    assert store.purge_expired(NOW) == 1
    assert [rule.chain for rule in storage.list_mutes()] == ["new"]


def test_reported_fingerprints(tmp_path) -> None:
    _, storage = _store(tmp_path)

    assert not storage.is_reported("abc")
    storage.mark_reported("abc")
    storage.mark_reported("abc")
    assert storage.is_reported("abc")
    assert storage.cleanup_reported(ttl_days=1) == 0
