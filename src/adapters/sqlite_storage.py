"""SQLite storage adapter.

Implements the mute repository and reported-item ports using a simple
SQLite database.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from core.models import MuteRule


def _to_db(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _from_db(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the storage ports."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - mutes: suppression rules created from chat commands
        - reported: fingerprints of items already delivered or suppressed
        """

        with self._connect() as conn:
            # NULL scope columns mean "any value". expires_at NULL means the
            # mute never expires.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS mutes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    chain TEXT,
                    proposal TEXT,
                    author TEXT,
                    reason TEXT,
                    creator TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL,
                    expires_at TIMESTAMP
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS reported (
                    fingerprint TEXT PRIMARY KEY,
                    first_seen TIMESTAMP NOT NULL
                )
                """
            )

    def create_mute(self, rule: MuteRule) -> MuteRule:
        """Insert a mute and return it with the generated id."""

        created_at = rule.created_at or datetime.now(timezone.utc)
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO mutes (
                    chain,
                    proposal,
                    author,
                    reason,
                    creator,
                    created_at,
                    expires_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    rule.chain,
                    rule.proposal,
                    rule.author,
                    rule.reason,
                    rule.creator,
                    _to_db(created_at),
                    _to_db(rule.expires_at),
                ),
            )
            mute_id = cur.lastrowid
        return MuteRule(
            id=mute_id,
            chain=rule.chain,
            proposal=rule.proposal,
            author=rule.author,
            reason=rule.reason,
            creator=rule.creator,
            created_at=created_at,
            expires_at=rule.expires_at,
        )

    def list_mutes(self) -> List[MuteRule]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM mutes ORDER BY id").fetchall()
        return [
            MuteRule(
                id=int(row["id"]),
                chain=row["chain"],
                proposal=row["proposal"],
                author=row["author"],
                reason=row["reason"],
                creator=row["creator"],
                created_at=_from_db(row["created_at"]),
                expires_at=_from_db(row["expires_at"]),
            )
            for row in rows
        ]

    def delete_mute(self, mute_id: int) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM mutes WHERE id = ?", (mute_id,))
            return cur.rowcount > 0

    def delete_expired_mutes(self, as_of: datetime) -> int:
        """Delete mutes whose expiry is at or before `as_of`."""

        # Python-side comparison: ISO strings with different offsets don't
        # sort correctly inside SQLite.
        expired = [rule.id for rule in self.list_mutes() if not rule.is_active(as_of)]
        if not expired:
            return 0
        with self._connect() as conn:
            conn.executemany("DELETE FROM mutes WHERE id = ?", [(mute_id,) for mute_id in expired])
        return len(expired)

    def is_reported(self, fingerprint: str) -> bool:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM reported WHERE fingerprint = ?",
                (fingerprint,),
            ).fetchone()
        return row is not None

    def mark_reported(self, fingerprint: str) -> None:
        """Insert a fingerprint if it does not exist."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO reported (fingerprint, first_seen) VALUES (?, ?)",
                (fingerprint, now.isoformat()),
            )

    def cleanup_reported(self, ttl_days: int) -> int:
        """Delete old fingerprints and return the number removed."""

        cutoff = datetime.now(timezone.utc) - timedelta(days=ttl_days)
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM reported WHERE first_seen < ?",
                (cutoff.isoformat(),),
            )
            return cur.rowcount
