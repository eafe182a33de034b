"""Entity-based URL extraction (core domain).

Only platform annotations are consulted. Free-form text is never scanned for
link-like substrings.
"""

from __future__ import annotations

from typing import Iterable, Optional

from core.models import ENTITY_TEXT_LINK, ENTITY_URL, InboundMessage, MessageEntity


def entity_text(text: str, entity: MessageEntity) -> str:
    """Return the substring covered by an entity.

    Telegram offsets count UTF-16 code units, so astral characters (emoji)
    before the span would shift a naive str slice.
    """

    encoded = text.encode("utf-16-le")
    start = entity.offset * 2
    end = (entity.offset + entity.length) * 2
    return encoded[start:end].decode("utf-16-le", errors="ignore")


def extract_url(text: str, entities: Iterable[MessageEntity]) -> Optional[str]:
    """Return the first URL carried by the entities, or None."""

    entities = list(entities)
    for entity in entities:
        if entity.type == ENTITY_URL:
            url_text = entity_text(text, entity)
            if url_text:
                return url_text
    for entity in entities:
        if entity.type == ENTITY_TEXT_LINK and entity.url:
            return entity.url
    return None


def extract_from_message(message: Optional[InboundMessage]) -> Optional[str]:
    if message is None:
        return None
    return extract_url(message.text, message.entities)
