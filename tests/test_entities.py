from __future__ import annotations

from core.entities import entity_text, extract_url
from core.models import MessageEntity


def test_extract_url_slices_url_entity() -> None:
    text = "check this out youtu.be/abc123"
    entities = [MessageEntity(type="url", offset=15, length=15)]
    assert extract_url(text, entities) == "youtu.be/abc123"


def test_extract_url_counts_utf16_offsets() -> None:
    # The emoji takes two UTF-16 code units, shifting every later offset.
    text = "🎬 example.com/film"
    entities = [MessageEntity(type="url", offset=3, length=16)]
    assert extract_url(text, entities) == "example.com/film"


def test_extract_url_uses_text_link_attachment() -> None:
    text = "watch this"
    entities = [MessageEntity(type="text_link", offset=0, length=5, url="https://example.com/v")]
    assert extract_url(text, entities) == "https://example.com/v"


def test_url_entity_wins_over_earlier_text_link() -> None:
    text = "this and example.org"
    entities = [
        MessageEntity(type="text_link", offset=0, length=4, url="https://example.com/hidden"),
        MessageEntity(type="url", offset=9, length=11),
    ]
    assert extract_url(text, entities) == "example.org"


def test_extract_url_never_scans_plain_text() -> None:
    text = "@WatchBot https://example.com"
    entities = [MessageEntity(type="mention", offset=0, length=9)]
    assert extract_url(text, entities) is None
    assert extract_url(text, []) is None


def test_entity_text_for_mention() -> None:
    text = "hi @WatchBot"
    assert entity_text(text, MessageEntity(type="mention", offset=3, length=9)) == "@WatchBot"
