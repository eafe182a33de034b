"""Telegram-to-core message mapping adapter.

This keeps Telethon-specific details out of the core engine.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from telethon.tl.custom import Message
from telethon.tl.types import (
    MessageEntityBotCommand,
    MessageEntityMention,
    MessageEntityTextUrl,
    MessageEntityUrl,
)

from core.models import (
    ENTITY_BOT_COMMAND,
    ENTITY_MENTION,
    ENTITY_OTHER,
    ENTITY_TEXT_LINK,
    ENTITY_URL,
    InboundMessage,
    MessageEntity,
)

_ENTITY_TYPES = {
    MessageEntityUrl: ENTITY_URL,
    MessageEntityTextUrl: ENTITY_TEXT_LINK,
    MessageEntityMention: ENTITY_MENTION,
    MessageEntityBotCommand: ENTITY_BOT_COMMAND,
}


def map_entity(entity: Any) -> MessageEntity:
    """Translate a Telethon entity into the core annotation shape."""

    kind = _ENTITY_TYPES.get(type(entity), ENTITY_OTHER)
    url = getattr(entity, "url", None) if kind == ENTITY_TEXT_LINK else None
    return MessageEntity(type=kind, offset=entity.offset, length=entity.length, url=url)


async def _sender_is_bot(message: Message, timeout_seconds: float) -> bool:
    sender = await asyncio.wait_for(message.get_sender(), timeout=timeout_seconds)
    return bool(getattr(sender, "bot", False))


async def build_inbound_message(
    message: Message,
    *,
    timeout_seconds: float = 5.0,
    include_reply: bool = True,
) -> InboundMessage:
    """Build a core InboundMessage from a Telethon Message.

    The replied-to message is mapped one level deep; its own reply context is
    never needed.
    """

    reply: Optional[InboundMessage] = None
    if include_reply and getattr(message, "is_reply", False):
        reply_message = await asyncio.wait_for(message.get_reply_message(), timeout=timeout_seconds)
        if reply_message is not None:
            reply = await build_inbound_message(
                reply_message,
                timeout_seconds=timeout_seconds,
                include_reply=False,
            )

    return InboundMessage(
        chat_id=message.chat_id,
        message_id=message.id,
        from_id=message.sender_id,
        from_is_bot=await _sender_is_bot(message, timeout_seconds),
        is_private=bool(getattr(message, "is_private", False)),
        date=message.date,
        # Telethon keeps captions in .message as well.
        text=message.message or "",
        entities=tuple(map_entity(entity) for entity in (message.entities or [])),
        reply_to=reply,
    )
