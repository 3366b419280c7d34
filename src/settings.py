"""Static configuration for govbell.

All user-editable settings (chains, reporters, command admins, logging) live
in a single JSON file. Secrets stay in the environment (.env).
"""

import json
import os

from dotenv import load_dotenv

from adapters.lcd_report_source import ChainConfig

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Where to store the SQLite database (mutes and reported proposals).
DB_PATH = os.getenv("GOVBELL_DB", os.path.join(PROJECT_ROOT, "govbell.db"))

CONFIG_PATH = os.getenv("GOVBELL_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _normalize_chains(raw_chains: list[dict]) -> tuple[list[ChainConfig], dict[str, str]]:
    """Build enabled chain configs and an alias map keyed by chain name."""

    chains: list[ChainConfig] = []
    aliases: dict[str, str] = {}
    for entry in raw_chains:
        name = (entry.get("name") or "").strip().lower()
        lcd_url = entry.get("lcd_url")
        if not name or not lcd_url:
            continue
        if not entry.get("enabled", True):
            continue
        chain = ChainConfig(
            name=name,
            lcd_url=lcd_url,
            alias=entry.get("alias"),
            explorer_url=entry.get("explorer_url"),
        )
        chains.append(chain)
        if chain.alias:
            aliases[name] = chain.alias
    return chains, aliases


_CONFIG = _load_json_config()

CONFIG = _CONFIG

CHAINS, CHAIN_ALIASES = _normalize_chains(_CONFIG.get("chains", []))

# Seconds between reporting cycles.
INTERVAL_SECONDS = int(_CONFIG.get("interval_seconds", 300))

_notifications = _CONFIG.get("notifications", {})
# Ordered list of reporters to enable: saved_messages, telegram_bot, pagerduty.
REPORTERS = list(_notifications.get("reporters", ["saved_messages"]))
SNIPPET_CHARS = int(_notifications.get("snippet_chars", 400))
# Bot chat id is only required when the telegram_bot reporter is enabled.
BOT_CHAT_ID = _notifications.get("bot_chat_id")
PAGERDUTY_SEVERITY = _notifications.get("pagerduty_severity", "info")

# Usernames or numeric ids allowed to run /mute besides yourself.
COMMAND_ADMINS = _CONFIG.get("commands", {}).get("admins", [])

# Reported proposal fingerprints are kept this long.
REPORTED_TTL_DAYS = int(_CONFIG.get("reported", {}).get("ttl_days", 90))

LOGGING = _CONFIG.get("logging", {})
