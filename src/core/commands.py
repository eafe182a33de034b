"""Bot command surface: /room, /clear, /help, /start.

Commands are routed before the attribution engine; a message carrying any
command entity never reaches it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

from core.entities import entity_text
from core.errors import RoomServiceError
from core.models import ENTITY_BOT_COMMAND, BotIdentity, InboundMessage
from core.ports import Clock, ReplierPort, RoomServicePort, RoomStoragePort
from core.rooms import ensure_room, reset_room
from core.session import ChatSessionStore

LOGGER = logging.getLogger(__name__)

START_TEXT = "Send me a link and I will add it to your Watch2Gether room. Try /help for details."
ROOM_TEXT = "Room: {link}"
ROOM_FAILURE_TEXT = "Couldn’t load the room (W2G error). Try again."
CLEAR_TEXT = "Queue cleared ✅\nRoom: {link}"
CLEAR_FAILURE_TEXT = "Couldn’t clear the queue (W2G error). Try again."


def help_text(bot: BotIdentity) -> str:
    handle = f"@{bot.username.lstrip('@')}"
    return "\n".join(
        [
            "Add links to your Watch2Gether room for this chat.",
            "",
            "Groups:",
            f"- Reply with {handle} to a message that has a URL",
            f"- Or write {handle} <url>",
            "",
            "DMs:",
            "- Send any message with a URL",
            "",
            "Commands:",
            "/room - show the room link",
            "/clear - reset with a new room",
        ]
    )


def is_command(message: InboundMessage) -> bool:
    return any(entity.type == ENTITY_BOT_COMMAND for entity in message.entities)


def parse_command(message: InboundMessage, bot: BotIdentity) -> Optional[str]:
    """Return the command name addressed to this bot, or None.

    Only a command at the start of the message counts. ``/room@OtherBot`` is
    addressed elsewhere and ignored.
    """

    for entity in message.entities:
        if entity.type != ENTITY_BOT_COMMAND or entity.offset != 0:
            continue
        raw = entity_text(message.text, entity).lstrip("/")
        name, _, target = raw.partition("@")
        if target and target.lower() != bot.username.lstrip("@").lower():
            return None
        return name.lower() or None
    return None


class CommandHandler:
    """Fixed-text and room-management commands."""

    def __init__(
        self,
        bot: BotIdentity,
        sessions: ChatSessionStore,
        storage: RoomStoragePort,
        rooms: RoomServicePort,
        replier: ReplierPort,
        clock: Clock,
    ) -> None:
        self._bot = bot
        self._sessions = sessions
        self._storage = storage
        self._rooms = rooms
        self._replier = replier
        self._clock = clock
        self._handlers: Dict[str, Callable[[InboundMessage], Awaitable[None]]] = {
            "start": self._start,
            "help": self._help,
            "room": self._room,
            "clear": self._clear,
        }

    async def handle(self, message: InboundMessage) -> bool:
        """Run the command in the message; return False if none applied."""

        name = parse_command(message, self._bot)
        handler = self._handlers.get(name) if name else None
        if handler is None:
            return False
        LOGGER.info("Command /%s in chat %s", name, message.chat_id)
        await handler(message)
        return True

    async def _start(self, message: InboundMessage) -> None:
        await self._replier.send(message.chat_id, START_TEXT)
        self._sessions.get(message.chat_id).open_prompt(self._clock.now_ms())

    async def _help(self, message: InboundMessage) -> None:
        await self._replier.send(message.chat_id, help_text(self._bot))

    async def _room(self, message: InboundMessage) -> None:
        try:
            streamkey = await ensure_room(self._storage, self._rooms, message.chat_id)
        except (RoomServiceError, asyncio.TimeoutError):
            LOGGER.exception("Error handling /room for chat %s", message.chat_id)
            await self._replier.send(message.chat_id, ROOM_FAILURE_TEXT)
            return
        await self._replier.send(message.chat_id, ROOM_TEXT.format(link=self._rooms.room_link(streamkey)))

    async def _clear(self, message: InboundMessage) -> None:
        try:
            streamkey = await reset_room(self._storage, self._rooms, message.chat_id)
        except (RoomServiceError, asyncio.TimeoutError):
            LOGGER.exception("Error handling /clear for chat %s", message.chat_id)
            await self._replier.send(message.chat_id, CLEAR_FAILURE_TEXT)
            return
        await self._replier.send(message.chat_id, CLEAR_TEXT.format(link=self._rooms.room_link(streamkey)))
