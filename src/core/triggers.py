"""Trigger classification (core domain).

Decides whether a message is addressed to the bot at all. Group chats only
count a message when it mentions the bot, replies to the bot, or arrives while
an invitation window is open.
"""

from __future__ import annotations

from core.entities import entity_text
from core.models import ENTITY_MENTION, BotIdentity, InboundMessage, Trigger
from core.session import ChatState


def mentions_bot(message: InboundMessage, bot: BotIdentity) -> bool:
    """Return True if the message tags the bot's handle.

    Mention entities are checked first; the plain-text check covers clients
    that do not annotate the handle.
    """

    tag = bot.mention_tag
    for entity in message.entities:
        if entity.type != ENTITY_MENTION:
            continue
        if entity_text(message.text, entity).lower() == tag:
            return True
    return tag in message.text.lower()


def is_reply_to_bot(message: InboundMessage, bot: BotIdentity) -> bool:
    reply = message.reply_to
    if reply is None:
        return False
    return reply.from_id == bot.id


def classify(message: InboundMessage, bot: BotIdentity, state: ChatState, now_ms: int) -> Trigger:
    """Classify the message and consume an open invitation window if eligible.

    At most one eligible message consumes a given window, whatever made it
    eligible.
    """

    if message.is_private:
        trigger = Trigger.PRIVATE
    elif mentions_bot(message, bot):
        trigger = Trigger.MENTION
    elif is_reply_to_bot(message, bot):
        trigger = Trigger.REPLY_TO_BOT
    elif state.prompt_open(now_ms):
        trigger = Trigger.INVITATION
    else:
        return Trigger.NONE

    state.consume_prompt(now_ms)
    return trigger
