"""Chat command handlers for mutes and voting proposals.

Handlers take plain text plus a RequesterContext and return the reply text,
so they can be driven by any chat transport or by tests.
"""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from core.models import MuteRule, NotificationItem, RequesterContext
from core.mute_filter import filter_items
from core.mute_parser import parse_mute_command
from core.mute_store import MuteStore, utc_now
from core.ports import VotingSnapshotPort

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandReply:
    text: str
    ok: bool
    rule: Optional[MuteRule] = None


class MuteCommands:
    """Parse, store and render mute commands."""

    def __init__(
        self,
        store: MuteStore,
        render_added: Callable[[MuteRule], str],
        render_list: Callable[[List[MuteRule]], str],
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._render_added = render_added
        self._render_list = render_list
        self._clock = clock

    def add_mute(self, raw_text: str, requester: RequesterContext) -> CommandReply:
        LOGGER.info("Got add mute query from %s: %s", requester.creator, raw_text)

        parsed = parse_mute_command(raw_text, requester, now=self._clock())
        if not parsed.ok:
            return CommandReply(text=f"Error muting notification: {parsed.error}", ok=False)

        try:
            stored = self._store.add_mute(parsed.rule)
        except Exception:
            LOGGER.exception("Error adding mute")
            return CommandReply(text="Error adding mute", ok=False)

        return CommandReply(text=self._render_added(stored), ok=True, rule=stored)

    def list_mutes(self, requester: RequesterContext) -> CommandReply:
        LOGGER.info("Got list mutes query from %s", requester.creator)
        try:
            mutes = self._store.active_mutes(self._clock())
        except Exception:
            LOGGER.exception("Error listing mutes")
            return CommandReply(text="Error listing mutes", ok=False)
        mutes.sort(key=lambda rule: rule.id or 0)
        return CommandReply(text=self._render_list(mutes), ok=True)

    def remove_mute(self, raw_text: str, requester: RequesterContext) -> CommandReply:
        LOGGER.info("Got remove mute query from %s: %s", requester.creator, raw_text)
        try:
            tokens = shlex.split(raw_text or "")
        except ValueError:
            tokens = []
        if tokens and tokens[0].startswith("/"):
            tokens = tokens[1:]
        if len(tokens) != 1 or not tokens[0].lstrip("#").isdigit():
            return CommandReply(text="Usage: /unmute <id>", ok=False)

        mute_id = int(tokens[0].lstrip("#"))
        try:
            removed = self._store.remove_mute(mute_id)
        except Exception:
            LOGGER.exception("Error removing mute")
            return CommandReply(text="Error removing mute", ok=False)

        if not removed:
            return CommandReply(text=f"Mute #{mute_id} not found", ok=False)
        return CommandReply(text=f"Mute #{mute_id} removed", ok=True)


class ProposalsCommand:
    """List proposals currently in voting, flagging the ones a mute hides."""

    def __init__(
        self,
        source: VotingSnapshotPort,
        store: MuteStore,
        render: Callable[[List[Tuple[NotificationItem, bool]]], str],
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._source = source
        self._store = store
        self._render = render
        self._clock = clock

    def list_proposals(self, requester: RequesterContext) -> CommandReply:
        LOGGER.info("Got list proposals query from %s", requester.creator)
        try:
            items = self._source.voting_proposals()
            muted = filter_items(items, self._store.active_mutes(self._clock())).suppressed
        except Exception:
            LOGGER.exception("Error listing proposals")
            return CommandReply(text="Error listing proposals", ok=False)
        return CommandReply(text=self._render([(item, item in muted) for item in items]), ok=True)
