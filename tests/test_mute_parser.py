from __future__ import annotations

from datetime import datetime, timedelta, timezone

from core.models import NotificationItem, RequesterContext
from core.mute_filter import rule_matches
from core.mute_parser import parse_duration, parse_mute_command

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
ALICE = RequesterContext(user_id=42, username="Alice")


def _parse(text: str):
    return parse_mute_command(text, ALICE, now=NOW)


def test_parses_chain_mute_with_permanent_duration() -> None:
    result = _parse("/mute chain=cosmoshub duration=permanent")

    assert result.ok
    assert result.error is None
    assert result.rule.chain == "cosmoshub"
    assert result.rule.proposal is None
    assert result.rule.expires_at is None
    assert result.rule.created_at == NOW
    assert result.rule.creator == "@Alice"


def test_relative_duration_sets_expiry() -> None:
    result = _parse("chain=osmosis proposal=812 duration=1h30m")

    assert result.rule.expires_at == NOW + timedelta(hours=1, minutes=30)


def test_identifiers_are_normalized_and_reason_kept_verbatim() -> None:
    result = _parse('/mute@govbell_bot chain=" CosmosHub " author=Cosmos1ABC reason="Spam, Again" duration=2d')

    assert result.ok
    assert result.rule.chain == "cosmoshub"
    assert result.rule.author == "cosmos1abc"
    assert result.rule.reason == "Spam, Again"


def test_bare_permanent_keyword_and_comment_alias() -> None:
    result = _parse("chain=juno permanent comment=noisy")

    assert result.rule.expires_at is None
    assert result.rule.reason == "noisy"


def test_no_scope_without_confirm_is_rejected() -> None:
    for text in ["/mute duration=1h", "/mute", "duration=1h reason=quiet", "proposal=* duration=1h"]:
        result = _parse(text)
        assert not result.ok
        assert result.rule is None
        assert "ambiguous" in result.error


def test_confirm_produces_global_mute() -> None:
    result = _parse("/mute duration=1h confirm")

    assert result.ok
    assert result.rule.is_global


def test_unknown_key_and_keyword_are_errors() -> None:
    assert "unknown parameter 'wallet'" in _parse("wallet=abc duration=1h").error
    assert "unknown keyword 'please'" in _parse("chain=x duration=1h please").error


def test_invalid_durations_are_errors() -> None:
    assert "positive" in _parse("chain=x duration=0m").error
    assert "positive" in _parse("chain=x duration=-1h").error
    assert "invalid duration" in _parse("chain=x duration=1y").error
    assert "missing duration" in _parse("chain=x").error


def test_repeated_and_empty_values_are_errors() -> None:
    assert "more than once" in _parse("chain=x chain=y duration=1h").error
    assert "more than once" in _parse("chain=x duration=1h permanent").error
    assert "empty value" in _parse("chain= duration=1h").error


def test_unbalanced_quote_is_an_error() -> None:
    result = _parse('chain=x duration=1h reason="oops')

    assert not result.ok
    assert result.error


def test_parse_duration_units() -> None:
    assert parse_duration("45s") == (timedelta(seconds=45), None)
    assert parse_duration("1w2d") == (timedelta(days=9), None)
    assert parse_duration("PERMANENT") == (None, None)


def test_parsed_rule_matches_item_with_same_fields() -> None:
    result = _parse("chain=Osmosis proposal=812 author=osmo1xyz duration=1d")
    item = NotificationItem(
        domain_key="osmosis",
        subject_id="812",
        author="OSMO1XYZ",
        payload="Voting ends soon",
    )

    assert rule_matches(result.rule, item)


def test_oversized_durations_are_errors_not_exceptions() -> None:
    for duration in ["9999999d", "99999999999w"]:
        result = _parse(f"chain=x duration={duration}")
        assert not result.ok
        assert result.error == "duration is too long"
