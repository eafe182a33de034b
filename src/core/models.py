"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

ENTITY_URL = "url"
ENTITY_TEXT_LINK = "text_link"
ENTITY_MENTION = "mention"
ENTITY_BOT_COMMAND = "bot_command"
ENTITY_OTHER = "other"


@dataclass(frozen=True)
class MessageEntity:
    """Platform annotation over a span of the message text.

    Offsets and lengths are UTF-16 code units, as Telegram delivers them.
    """

    type: str
    offset: int
    length: int
    url: Optional[str] = None


@dataclass(frozen=True)
class InboundMessage:
    """Minimal message used by the attribution engine and command router.

    The text only lives as long as this object; nothing downstream stores it.
    """

    chat_id: int
    message_id: int
    from_id: Optional[int]
    from_is_bot: bool
    is_private: bool
    date: Optional[datetime]
    text: str
    entities: Tuple[MessageEntity, ...] = ()
    reply_to: Optional["InboundMessage"] = None


@dataclass(frozen=True)
class MessageSnapshot:
    """Text-free memory of a message: who, when, which id, and its URL."""

    chat_id: int
    from_id: Optional[int]
    timestamp_ms: int
    message_id: int
    url: Optional[str]


@dataclass(frozen=True)
class BotIdentity:
    """The bot's own account, used for mention and reply detection."""

    id: int
    username: str

    @property
    def mention_tag(self) -> str:
        return f"@{self.username.lstrip('@').lower()}"


class Trigger(enum.Enum):
    """Why a message was considered for attribution."""

    NONE = "none"
    PRIVATE = "private"
    MENTION = "mention"
    REPLY_TO_BOT = "reply_to_bot"
    INVITATION = "invitation"

    @property
    def eligible(self) -> bool:
        return self is not Trigger.NONE

    @property
    def explicit(self) -> bool:
        """Explicit interactions earn a prompt when no link is found."""

        return self in (Trigger.PRIVATE, Trigger.MENTION, Trigger.REPLY_TO_BOT)


class Provenance(enum.Enum):
    CURRENT = "current"
    REPLY = "reply"
    REMEMBERED = "remembered"


@dataclass(frozen=True)
class Candidate:
    """A not-yet-validated URL string and the message it came from."""

    raw_value: Optional[str]
    source_message_id: Optional[int]
    provenance: Provenance


@dataclass(frozen=True)
class ValidatedCandidate:
    """Validation outcome: usable (url set), invalid, or absent (neither)."""

    url: Optional[str]
    invalid: bool = False

    @property
    def usable(self) -> bool:
        return self.url is not None


@dataclass(frozen=True)
class Resolution:
    """Winning candidate (if any) after resolution and validation."""

    url: Optional[str] = None
    invalid: bool = False
    source_message_id: Optional[int] = None
    provenance: Optional[Provenance] = None

    @property
    def found(self) -> bool:
        return self.url is not None
