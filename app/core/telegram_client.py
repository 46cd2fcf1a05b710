# app/core/telegram_client.py
"""
Telegram Bot API client for shop notifications.

Responsibilities:
  - Read bot/chat configuration from settings.
  - Provide a single send_message(...) function for services to use.

Typical .env configuration:

    TELEGRAM_BOT_TOKEN=123456:ABC-DEF...
    TELEGRAM_GROUP_CHAT_ID=-1001234567890
    # or, for a private chat with the shop owner:
    TELEGRAM_ADMIN_CHAT_ID=123456789
"""
import requests

from app.core.config import get_settings


def is_configured() -> bool:
    settings = get_settings()
    return bool(settings.TELEGRAM_BOT_TOKEN and settings.telegram_chat_id)


def send_message(text: str, parse_mode: str = "HTML") -> bool:
    """
    Post a message to the configured chat.

    Parameters
    ----------
    text:
        Message body, formatted for `parse_mode`.
    parse_mode:
        Telegram parse mode ("HTML" by default).

    Returns
    -------
    bool:
        False when the bot token or chat id is not configured (nothing is
        sent), True once Telegram accepted the message.

    Raises
    ------
    requests.RequestException:
        If the HTTP call fails or Telegram answers with an error status.
    """
    if not is_configured():
        return False

    settings = get_settings()
    url = f"{settings.TELEGRAM_API_URL.rstrip('/')}/bot{settings.TELEGRAM_BOT_TOKEN}/sendMessage"

    response = requests.post(
        url,
        json={
            "chat_id": settings.telegram_chat_id,
            "text": text,
            "parse_mode": parse_mode,
        },
        timeout=settings.TELEGRAM_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    return True
