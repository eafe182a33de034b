"""Per-chat session state (core domain).

Session state is soft context kept in memory only: an invitation window, a
text-free snapshot of the last message, and a bounded set of message ids that
were already consumed by a successful add. States are created lazily on the
first message of a chat and never destroyed; each one stays bounded in size.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Dict, Iterable, Iterator, Optional

from core.config import EngineConfig
from core.entities import extract_from_message
from core.models import InboundMessage, MessageSnapshot


class UsedMessageIds:
    """Insertion-ordered set of message ids with FIFO eviction."""

    def __init__(self, capacity: int = 20) -> None:
        self._capacity = capacity
        self._ids: "OrderedDict[int, None]" = OrderedDict()

    def add(self, message_id: Optional[int]) -> None:
        if message_id is None or message_id in self._ids:
            return
        self._ids[message_id] = None
        while len(self._ids) > self._capacity:
            self._ids.popitem(last=False)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[int]:
        return iter(self._ids)


def build_snapshot(message: InboundMessage, now_ms: int) -> Optional[MessageSnapshot]:
    """Extract the URL once and keep nothing else of the message body.

    Bot senders produce no snapshot so the bot never remembers its own (or
    another bot's) output.
    """

    if message.from_is_bot:
        return None
    timestamp_ms = int(message.date.timestamp() * 1000) if message.date else now_ms
    return MessageSnapshot(
        chat_id=message.chat_id,
        from_id=message.from_id,
        timestamp_ms=timestamp_ms,
        message_id=message.message_id,
        url=extract_from_message(message),
    )


class ChatState:
    """Session state for a single chat."""

    def __init__(self, config: EngineConfig) -> None:
        self._config = config
        self.prompt_deadline_ms: Optional[int] = None
        self.last_message: Optional[MessageSnapshot] = None
        self.used_ids = UsedMessageIds(config.used_ids_capacity)

    # Invitation window

    def open_prompt(self, now_ms: int) -> None:
        self.prompt_deadline_ms = now_ms + self._config.prompt_grace_ms

    def prompt_open(self, now_ms: int) -> bool:
        if self.prompt_deadline_ms is None:
            return False
        return now_ms < self.prompt_deadline_ms

    def consume_prompt(self, now_ms: int) -> bool:
        """Close the window; return whether it was still open."""

        active = self.prompt_open(now_ms)
        self.prompt_deadline_ms = None
        return active

    # Last message memory

    def remember(self, snapshot: Optional[MessageSnapshot]) -> None:
        if snapshot is None:
            return
        self.last_message = snapshot

    def forget_last(self) -> None:
        self.last_message = None

    def recent_message(self, from_id: Optional[int], now_ms: int) -> Optional[MessageSnapshot]:
        """Return the remembered message if the same author may still reuse it."""

        previous = self.last_message
        if previous is None:
            return None
        if now_ms - previous.timestamp_ms >= self._config.recency_window_ms:
            self.last_message = None
            return None
        if from_id is None or previous.from_id != from_id:
            return None
        if self.is_used(previous.message_id):
            return None
        return previous

    # Replay protection

    def mark_used(self, message_ids: Iterable[Optional[int]]) -> None:
        for message_id in message_ids:
            self.used_ids.add(message_id)

    def is_used(self, message_id: Optional[int]) -> bool:
        if message_id is None:
            return False
        return message_id in self.used_ids


class ChatSessionStore:
    """In-memory ChatState registry keyed by chat id."""

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        self._config = config or EngineConfig()
        self._states: Dict[int, ChatState] = {}

    @property
    def config(self) -> EngineConfig:
        return self._config

    def get(self, chat_id: int) -> ChatState:
        state = self._states.get(chat_id)
        if state is None:
            state = ChatState(self._config)
            self._states[chat_id] = state
        return state

    def __contains__(self, chat_id: object) -> bool:
        return chat_id in self._states

    def __len__(self) -> int:
        return len(self._states)
