"""Telegram reply adapter.

Sends plain-text replies through the bot's Telethon client.
"""

from __future__ import annotations

import asyncio


class TelegramReplier:
    """ReplierPort implementation with a per-send timeout."""

    def __init__(self, client, timeout_seconds: float = 5.0) -> None:
        self._client = client
        self._timeout = timeout_seconds

    async def send(self, chat_id: int, text: str) -> None:
        """Send a plain-text message (no Markdown/HTML parsing) to the chat."""

        await asyncio.wait_for(
            self._client.send_message(chat_id, text, parse_mode=None),
            timeout=self._timeout,
        )
