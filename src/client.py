"""Telegram client factory and interactive login for govbell.

The client is used both to receive mute commands and to deliver
Saved Messages notifications, so its session has to be authorized once
with `govbell login` before `govbell run`.
"""

from __future__ import annotations

import logging
import os
from getpass import getpass

import qrcode
from dotenv import load_dotenv
from telethon import TelegramClient, errors

LOGGER = logging.getLogger(__name__)

QR_LOGIN_TIMEOUT_SECONDS = 120


def build_client() -> TelegramClient:
    """Create a Telethon client from API_ID/API_HASH/SESSION_NAME."""

    load_dotenv()

    api_id = os.getenv("API_ID")
    api_hash = os.getenv("API_HASH")
    session_name = os.getenv("SESSION_NAME", "govbell")

    if not api_id or not api_hash:
        raise RuntimeError("Missing API_ID or API_HASH in environment")

    LOGGER.info("Initializing Telegram client (session %s)", session_name)
    return TelegramClient(session_name, int(api_id), api_hash)


def _two_factor_password() -> str:
    return os.getenv("2FA") or getpass("2FA password: ")


async def _login_with_qr(client: TelegramClient) -> None:
    login = await client.qr_login()
    code = qrcode.QRCode(border=1)
    code.add_data(login.url)
    code.make(fit=True)
    code.print_ascii(invert=True)
    print("Scan the code in Telegram: Settings > Devices > Link Desktop Device")
    await login.wait(timeout=QR_LOGIN_TIMEOUT_SECONDS)


async def _login_with_phone(client: TelegramClient) -> None:
    phone = os.getenv("PHONE") or input("Phone number (international format): ").strip()
    await client.send_code_request(phone)
    await client.sign_in(phone=phone, code=input("Login code: ").strip())


def _login_method() -> str:
    method = (os.getenv("LOGIN_METHOD") or "").strip().lower()
    while method not in {"qr", "phone"}:
        answer = input("Login with [q]r code or [p]hone code? ").strip().lower()
        method = {"q": "qr", "qr": "qr", "p": "phone", "phone": "phone"}.get(answer, "")
    return method


async def authorize(client: TelegramClient) -> None:
    """Log the session in unless it is already authorized."""

    if await client.is_user_authorized():
        return

    login = _login_with_phone if _login_method() == "phone" else _login_with_qr
    try:
        await login(client)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=_two_factor_password())

    me = await client.get_me()
    LOGGER.info("Logged in as %s", getattr(me, "username", None) or getattr(me, "id", "?"))
