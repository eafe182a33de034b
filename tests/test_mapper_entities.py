from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from telethon.tl.types import (
    MessageEntityBold,
    MessageEntityBotCommand,
    MessageEntityMention,
    MessageEntityTextUrl,
    MessageEntityUrl,
)

from adapters.telegram_mapper import build_inbound_message, map_entity


class DummySender:
    def __init__(self, bot: bool) -> None:
        self.bot = bot


class DummyMessage:
    def __init__(
        self,
        *,
        chat_id: int,
        message_id: int,
        text: "str | None",
        sender_id: int = 1,
        bot: bool = False,
        is_private: bool = False,
        entities=None,
        reply=None,
    ) -> None:
        self.chat_id = chat_id
        self.id = message_id
        self.message = text
        self.sender_id = sender_id
        self.is_private = is_private
        self.entities = entities
        self.is_reply = reply is not None
        self.date = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._sender = DummySender(bot)
        self._reply = reply
        self.reply_requests = 0

    async def get_sender(self):
        return self._sender

    async def get_reply_message(self):
        self.reply_requests += 1
        return self._reply


def test_map_entity_types() -> None:
    assert map_entity(MessageEntityUrl(offset=0, length=5)).type == "url"
    assert map_entity(MessageEntityMention(offset=1, length=4)).type == "mention"
    assert map_entity(MessageEntityBotCommand(offset=0, length=5)).type == "bot_command"
    assert map_entity(MessageEntityBold(offset=0, length=2)).type == "other"

    text_link = map_entity(MessageEntityTextUrl(offset=2, length=3, url="https://example.com"))
    assert text_link.type == "text_link"
    assert text_link.url == "https://example.com"
    assert (text_link.offset, text_link.length) == (2, 3)


def test_build_inbound_message_maps_fields() -> None:
    message = DummyMessage(
        chat_id=-100123,
        message_id=10,
        text="@WatchBot example.com",
        sender_id=5,
        entities=[MessageEntityMention(offset=0, length=9), MessageEntityUrl(offset=10, length=11)],
    )
    inbound = asyncio.run(build_inbound_message(message))

    assert inbound.chat_id == -100123
    assert inbound.message_id == 10
    assert inbound.from_id == 5
    assert not inbound.from_is_bot
    assert not inbound.is_private
    assert [entity.type for entity in inbound.entities] == ["mention", "url"]
    assert inbound.reply_to is None


def test_build_inbound_message_maps_reply_one_level_deep() -> None:
    grandparent = DummyMessage(chat_id=1, message_id=1, text="root")
    parent = DummyMessage(
        chat_id=1,
        message_id=2,
        text="Added ✅",
        sender_id=999,
        bot=True,
        reply=grandparent,
    )
    child = DummyMessage(chat_id=1, message_id=3, text="thanks", is_private=True, reply=parent)

    inbound = asyncio.run(build_inbound_message(child))

    assert inbound.is_private
    assert inbound.reply_to is not None
    assert inbound.reply_to.message_id == 2
    assert inbound.reply_to.from_is_bot
    assert inbound.reply_to.reply_to is None
    assert parent.reply_requests == 0


def test_media_without_caption_has_empty_text() -> None:
    message = DummyMessage(chat_id=1, message_id=4, text=None)
    inbound = asyncio.run(build_inbound_message(message))
    assert inbound.text == ""
    assert inbound.entities == ()
