"""Application entry point for the govbell proposals notifier."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from datetime import datetime, timezone
from functools import partial
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv
from telethon import events

import settings
from adapters.discord_notifier import DiscordReporter
from adapters.lcd_report_source import LcdReportSource
from adapters.notification_formatting import format_mute_added, format_mutes_list, format_proposals_list
from adapters.pagerduty_notifier import PagerDutyReporter
from adapters.sqlite_storage import SQLiteStorage
from adapters.telegram_bot_notifier import TelegramBotReporter
from adapters.telegram_mapper import build_requester, is_command_allowed, normalize_admins
from adapters.telegram_notifier import SavedMessagesReporter
from client import authorize, build_client
from core.commands import MuteCommands, ProposalsCommand
from core.config import CycleConfig, NotificationConfig
from core.cycle import ReportingCycle
from core.dispatcher import Dispatcher
from core.mute_store import MuteStore

NAME = "GOVBELL"
FONT = "tarty-1"

COMMAND_PATTERN = r"^/(mute|mutes|unmute|proposals)(?:@\w+)?(?:\s|$)"

# Environment values that must never reach the logs.
ALWAYS_REDACTED = ("API_HASH", "BOT_API", "PAGERDUTY_ROUTING_KEY", "DISCORD_WEBHOOK_URL")


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = secrets

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _secret_values(config: dict) -> list[str]:
    names = set(ALWAYS_REDACTED)
    names.update(config.get("redact", {}).get("patterns", []))
    values = {os.getenv(name) for name in names}
    # Longest first so a secret containing another is masked whole.
    return sorted((value for value in values if value), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    load_dotenv()
    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    formatter = _RedactingFormatter(
        _secret_values(config),
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handlers: list[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler())

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/govbell.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
                backupCount=int(file_cfg.get("backup_count", 5)),
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    if handlers:
        logging.basicConfig(level=level, handlers=handlers)


def _open_storage() -> SQLiteStorage:
    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()
    return storage


def _build_reporters(client) -> list:
    """Instantiate reporters in configured order; unknown names are fatal."""

    notification_config = NotificationConfig(
        snippet_chars=settings.SNIPPET_CHARS,
        chain_aliases=settings.CHAIN_ALIASES,
    )
    reporters = []
    for name in settings.REPORTERS:
        if name == "saved_messages":
            reporters.append(SavedMessagesReporter(client, notification_config))
        elif name == "telegram_bot":
            reporters.append(
                TelegramBotReporter(
                    bot_token=os.getenv("BOT_API", ""),
                    chat_id=str(settings.BOT_CHAT_ID or ""),
                    config=notification_config,
                )
            )
        elif name == "pagerduty":
            reporters.append(
                PagerDutyReporter(
                    routing_key=os.getenv("PAGERDUTY_ROUTING_KEY", ""),
                    config=notification_config,
                    severity=settings.PAGERDUTY_SEVERITY,
                )
            )
        elif name == "discord":
            reporters.append(
                DiscordReporter(
                    webhook_url=os.getenv("DISCORD_WEBHOOK_URL", ""),
                    config=notification_config,
                )
            )
        else:
            raise RuntimeError(
                f"Unknown reporter '{name}', expected one of saved_messages, telegram_bot, pagerduty, discord"
            )
    return reporters


def _register_command_handlers(
    client, commands: MuteCommands, proposals: ProposalsCommand, self_id: int
) -> None:
    logger = logging.getLogger(__name__)
    admins = normalize_admins(settings.COMMAND_ADMINS)

    @client.on(events.NewMessage(pattern=COMMAND_PATTERN))
    async def handler(event) -> None:
        try:
            sender = await event.get_sender()
            requester = build_requester(event.message, sender)
            if not is_command_allowed(event.message, requester, admins, self_id):
                logger.info("Ignoring command from %s", requester.creator)
                return

            # Handlers hit SQLite and the LCDs synchronously.
            command = event.pattern_match.group(1).lower()
            if command == "mute":
                reply = await asyncio.to_thread(commands.add_mute, event.raw_text, requester)
            elif command == "mutes":
                reply = await asyncio.to_thread(commands.list_mutes, requester)
            elif command == "proposals":
                reply = await asyncio.to_thread(proposals.list_proposals, requester)
            else:
                reply = await asyncio.to_thread(commands.remove_mute, event.raw_text, requester)
            await event.reply(reply.text)
        except Exception:
            logger.exception("Error while handling command")


async def _serve(client, storage: SQLiteStorage, cycle_config: CycleConfig) -> None:
    logger = logging.getLogger(__name__)

    await client.connect()
    await authorize(client)
    me = await client.get_me()

    mute_store = MuteStore(storage)
    dispatcher = Dispatcher(mute_store, _build_reporters(client))
    await dispatcher.init()

    source = LcdReportSource(settings.CHAINS, storage)
    commands = MuteCommands(mute_store, render_added=format_mute_added, render_list=format_mutes_list)
    proposals = ProposalsCommand(
        source,
        mute_store,
        render=partial(format_proposals_list, chain_aliases=settings.CHAIN_ALIASES),
    )
    _register_command_handlers(client, commands, proposals, me.id)

    cycle = ReportingCycle(source, dispatcher)
    cycle.start(cycle_config.interval_seconds)
    logger.info(
        "Watching %s chains every %ss. Listening for /mute commands...",
        len(settings.CHAINS),
        cycle_config.interval_seconds,
    )
    try:
        await client.run_until_disconnected()
    finally:
        await cycle.stop()


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)
    logger.info("Starting govbell")

    storage = _open_storage()
    cycle_config = CycleConfig(
        interval_seconds=settings.INTERVAL_SECONDS,
        reported_ttl_days=settings.REPORTED_TTL_DAYS,
    )
    purged = MuteStore(storage).purge_expired(datetime.now(timezone.utc))
    removed = storage.cleanup_reported(cycle_config.reported_ttl_days)
    logger.info("Housekeeping removed %s expired mutes and %s old fingerprints", purged, removed)

    client = build_client()
    client.loop.run_until_complete(_serve(client, storage, cycle_config))


def _once() -> None:
    """Run a single reporting cycle and exit."""

    _configure_logging()
    storage = _open_storage()
    client = build_client()

    async def _run_once() -> None:
        await client.connect()
        try:
            await authorize(client)
            dispatcher = Dispatcher(MuteStore(storage), _build_reporters(client))
            await dispatcher.init()
            await ReportingCycle(LcdReportSource(settings.CHAINS, storage), dispatcher).run_once()
        finally:
            await client.disconnect()

    client.loop.run_until_complete(_run_once())


def _list_mutes() -> None:
    storage = _open_storage()
    mutes = MuteStore(storage).active_mutes(datetime.now(timezone.utc))
    print(format_mutes_list(mutes))


def _login() -> None:
    _print_banner()
    _configure_logging()
    client = build_client()

    async def _run_login() -> None:
        await client.connect()
        try:
            await authorize(client)
        finally:
            await client.disconnect()

    client.loop.run_until_complete(_run_login())


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="govbell")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the watcher and command listener")
    subparsers.add_parser("once", help="Run a single reporting cycle and exit")
    subparsers.add_parser("mutes", help="Print active mutes")
    subparsers.add_parser("login", help="Authorize the Telegram session")

    args = parser.parse_args(argv)
    if args.command == "once":
        _once()
        return
    if args.command == "mutes":
        _list_mutes()
        return
    if args.command == "login":
        _login()
        return
    _run()


if __name__ == "__main__":
    main()
