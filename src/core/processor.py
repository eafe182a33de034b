"""Link attribution pipeline.

The processor enforces a strict order per message:
1) Classify the trigger (consuming an open invitation window)
2) Resolve and validate the URL candidate
3) Reply "invalid URL" only when the current message carried the bad link
4) Prompt for a link on explicit interactions without one
5) Ensure the room, add to the playlist, then mark the sources as used
6) Refresh the chat's last-message memory

This module is integration-agnostic. It only relies on ports for storage,
the room service, replies and time.
"""

from __future__ import annotations

import asyncio
import enum
import logging

from core.errors import RoomServiceError
from core.models import BotIdentity, InboundMessage, Provenance
from core.ports import Clock, ReplierPort, RoomServicePort, RoomStoragePort
from core.resolver import resolve
from core.rooms import ensure_room
from core.session import ChatSessionStore, build_snapshot
from core.triggers import classify, mentions_bot

LOGGER = logging.getLogger(__name__)

ADDED_TEXT = "Added ✅\nRoom: {link}"
INVALID_URL_TEXT = "That doesn’t look like a valid URL."
PROMPT_TEXT = "Send me a link to add. Try /help"
FAILURE_TEXT = "Couldn’t add that (W2G error). Try again."


class Outcome(enum.Enum):
    IGNORED = "ignored"
    INVALID = "invalid"
    PROMPTED = "prompted"
    SILENT = "silent"
    ADDED = "added"
    FAILED = "failed"


class LinkAttributionProcessor:
    """Orchestrates trigger detection, resolution, room calls and replies."""

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

    async def handle(self, message: InboundMessage) -> Outcome:
        """Process one inbound message; callers serialize per chat."""

        now_ms = self._clock.now_ms()
        state = self._sessions.get(message.chat_id)
        # The snapshot is taken before anything else so the text never
        # outlives this call.
        snapshot = build_snapshot(message, now_ms)

        trigger = classify(message, self._bot, state, now_ms)
        if not trigger.eligible:
            state.remember(snapshot)
            return Outcome.IGNORED

        resolution = resolve(
            message,
            state,
            now_ms,
            use_remembered=mentions_bot(message, self._bot),
        )

        attempted_remembered = False
        try:
            if resolution.invalid and resolution.provenance is Provenance.CURRENT:
                await self._replier.send(message.chat_id, INVALID_URL_TEXT)
                return Outcome.INVALID

            if not resolution.found:
                if not trigger.explicit:
                    return Outcome.SILENT
                state.open_prompt(self._clock.now_ms())
                await self._replier.send(message.chat_id, PROMPT_TEXT)
                return Outcome.PROMPTED

            attempted_remembered = resolution.provenance is Provenance.REMEMBERED
            try:
                streamkey = await ensure_room(self._storage, self._rooms, message.chat_id)
                await self._rooms.add_to_playlist(streamkey, resolution.url)
            except (RoomServiceError, asyncio.TimeoutError):
                LOGGER.exception("Failed to add URL for chat %s", message.chat_id)
                await self._replier.send(message.chat_id, FAILURE_TEXT)
                return Outcome.FAILED

            reply = ADDED_TEXT.format(link=self._rooms.room_link(streamkey))
            # Marking happens only once the room service confirmed the add, so
            # a failed attempt can be retried with the same source.
            state.mark_used([resolution.source_message_id, message.message_id])
            LOGGER.info(
                "Added URL for chat %s (source message %s, %s)",
                message.chat_id,
                resolution.source_message_id,
                resolution.provenance.value,
            )
            try:
                await self._replier.send(message.chat_id, reply)
            except asyncio.TimeoutError:
                LOGGER.warning("Timed out delivering the confirmation to chat %s", message.chat_id)
            return Outcome.ADDED
        finally:
            # A remembered message gets one attempt; it is never offered twice.
            if attempted_remembered:
                state.forget_last()
            state.remember(snapshot)
