"""Per-chat serialization of message handling.

Two activations for the same chat must never interleave: both could see "no
room yet" and create two rooms, or both consume one invitation window.
Different chats run concurrently.

The chat lock is taken before the message is mapped. Mapping awaits network
lookups (sender, replied-to message), and a slow lookup must not let a later
message from the same chat overtake it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict

from core.commands import CommandHandler, is_command
from core.models import InboundMessage
from core.ports import ReplierPort
from core.processor import FAILURE_TEXT, LinkAttributionProcessor

LOGGER = logging.getLogger(__name__)

MessageBuilder = Callable[[], Awaitable[InboundMessage]]


class ChatDispatcher:
    """Route messages to commands or the processor under a per-chat lock."""

    def __init__(
        self,
        processor: LinkAttributionProcessor,
        commands: CommandHandler,
        replier: ReplierPort,
        handler_seconds: float,
    ) -> None:
        self._processor = processor
        self._commands = commands
        self._replier = replier
        self._handler_seconds = handler_seconds
        self._locks: Dict[int, asyncio.Lock] = {}

    def _lock_for(self, chat_id: int) -> asyncio.Lock:
        lock = self._locks.get(chat_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[chat_id] = lock
        return lock

    async def dispatch(self, chat_id: int, build: MessageBuilder) -> None:
        """Map and handle one message, in arrival order for its chat.

        `build` runs inside the chat lock. Routing runs within the per-message
        deadline; when it expires the chat is told the attempt failed.
        """

        async with self._lock_for(chat_id):
            message = await build()
            try:
                await asyncio.wait_for(self._route(message), timeout=self._handler_seconds)
            except asyncio.TimeoutError:
                LOGGER.warning(
                    "Handling message %s in chat %s exceeded %ss",
                    message.message_id,
                    chat_id,
                    self._handler_seconds,
                )
                await self._replier.send(chat_id, FAILURE_TEXT)

    async def _route(self, message: InboundMessage) -> None:
        if is_command(message):
            await self._commands.handle(message)
            return
        await self._processor.handle(message)
