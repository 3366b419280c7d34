"""Mute matching logic (core domain)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List

from core.models import SCOPE_FIELDS, MuteRule, NotificationItem, normalize_identifier


@dataclass(frozen=True)
class FilterResult:
    to_send: List[NotificationItem] = field(default_factory=list)
    suppressed: List[NotificationItem] = field(default_factory=list)


def rule_matches(rule: MuteRule, item: NotificationItem) -> bool:
    """Return True when every field the rule sets equals the item's value.

    Unset rule fields impose no constraint. An item missing a field the rule
    sets (e.g. no author) never matches that rule.
    """

    for rule_attr, expected in rule.scope().items():
        actual = normalize_identifier(getattr(item, SCOPE_FIELDS[rule_attr]))
        if actual is None or actual != expected:
            return False
    return True


def filter_items(items: Iterable[NotificationItem], active_mutes: Iterable[MuteRule]) -> FilterResult:
    """Split items into those to send and those suppressed by any rule.

    A plain items x rules scan: rule sets are small (tens) and batches are
    dozens of items, so no index is kept.
    """

    rules = list(active_mutes)
    result = FilterResult()
    for item in items:
        if any(rule_matches(rule, item) for rule in rules):
            result.suppressed.append(item)
        else:
            result.to_send.append(item)
    return result
