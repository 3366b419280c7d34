"""Reported-item fingerprint helpers (core domain)."""

from __future__ import annotations

import hashlib

from core.models import NotificationItem, normalize_identifier


def compute_fingerprint(domain_key: str, subject_id: str) -> str:
    """Return a stable hash identifying one proposal on one chain."""

    payload = f"{normalize_identifier(domain_key)}\n{normalize_identifier(subject_id)}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def item_fingerprint(item: NotificationItem) -> str:
    return compute_fingerprint(item.domain_key, item.subject_id)
