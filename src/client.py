"""Telegram bot client setup.

The bot signs in with a bot token (BotFather) on top of an app's API_ID and
API_HASH. Telethon keeps the authorization in a local .session file, so
restarts do not log in again.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from telethon import TelegramClient

from core.models import BotIdentity

LOGGER = logging.getLogger(__name__)


def build_client() -> TelegramClient:
    """Create a Telethon client from API_ID/API_HASH in the environment."""

    load_dotenv()

    api_id = os.getenv("API_ID")
    api_hash = os.getenv("API_HASH")
    session_name = os.getenv("SESSION_NAME", "telewatch")

    if not api_id or not api_hash:
        raise RuntimeError("Missing API_ID or API_HASH in environment")

    LOGGER.info("Initializing Telegram client (session %s)", session_name)
    return TelegramClient(session_name, int(api_id), api_hash)


def login_bot(client: TelegramClient, bot_token: str) -> BotIdentity:
    """Sign in with the bot token and return the bot's own identity.

    Mention and reply-to-bot detection both key off this identity, so a
    session that belongs to a user account is rejected.
    """

    client.start(bot_token=bot_token)
    me = client.loop.run_until_complete(client.get_me())
    if not getattr(me, "bot", False):
        raise RuntimeError("Session is not a bot account; remove the .session file and retry")
    if not me.username:
        raise RuntimeError("Bot account has no username; mentions cannot be detected")

    identity = BotIdentity(id=me.id, username=me.username)
    LOGGER.info("Logged in as %s", identity.mention_tag)
    return identity
