from __future__ import annotations

from typing import Optional

from core.config import EngineConfig
from core.models import InboundMessage, MessageEntity, MessageSnapshot, Provenance
from core.resolver import build_candidates, resolve
from core.session import ChatState


def _message(
    message_id: int,
    *,
    url: Optional[str] = None,
    from_id: int = 1,
    from_is_bot: bool = False,
    reply_to: Optional[InboundMessage] = None,
) -> InboundMessage:
    text = "@WatchBot"
    entities = []
    if url is not None:
        entities.append(MessageEntity(type="url", offset=len(text) + 1, length=len(url)))
        text = f"{text} {url}"
    return InboundMessage(
        chat_id=-100,
        message_id=message_id,
        from_id=from_id,
        from_is_bot=from_is_bot,
        is_private=False,
        date=None,
        text=text,
        entities=tuple(entities),
        reply_to=reply_to,
    )


def _remember(state: ChatState, message_id: int, url: Optional[str], *, from_id: int = 1) -> None:
    state.remember(
        MessageSnapshot(chat_id=-100, from_id=from_id, timestamp_ms=0, message_id=message_id, url=url)
    )


def test_current_message_wins() -> None:
    state = ChatState(EngineConfig())
    reply = _message(5, url="example.org/reply")
    result = resolve(_message(6, url="example.com/now", reply_to=reply), state, 0, use_remembered=True)
    assert result.url == "https://example.com/now"
    assert result.source_message_id == 6
    assert result.provenance is Provenance.CURRENT


def test_reply_is_used_when_current_has_no_url() -> None:
    state = ChatState(EngineConfig())
    reply = _message(5, url="example.org/reply")
    result = resolve(_message(6, reply_to=reply), state, 0, use_remembered=True)
    assert result.url == "https://example.org/reply"
    assert result.source_message_id == 5
    assert result.provenance is Provenance.REPLY


def test_bot_authored_reply_is_never_a_candidate() -> None:
    state = ChatState(EngineConfig())
    reply = _message(5, url="w2g.tv/rooms/abc", from_id=999, from_is_bot=True)
    candidates = build_candidates(_message(6, reply_to=reply), state, 0, use_remembered=False)
    assert [candidate.provenance for candidate in candidates] == [Provenance.CURRENT]
    assert not resolve(_message(6, reply_to=reply), state, 0, use_remembered=False).found


def test_remembered_only_when_requested() -> None:
    state = ChatState(EngineConfig())
    _remember(state, 4, "example.net/earlier")
    assert not resolve(_message(6), state, 1_000, use_remembered=False).found

    result = resolve(_message(6), state, 1_000, use_remembered=True)
    assert result.url == "https://example.net/earlier"
    assert result.provenance is Provenance.REMEMBERED
    assert result.source_message_id == 4


def test_remembered_from_other_author_is_skipped() -> None:
    state = ChatState(EngineConfig())
    _remember(state, 4, "example.net/earlier", from_id=2)
    assert not resolve(_message(6, from_id=1), state, 1_000, use_remembered=True).found


def test_used_sources_are_skipped() -> None:
    state = ChatState(EngineConfig())
    state.mark_used([5])
    reply = _message(5, url="example.org/reply")
    result = resolve(_message(6, reply_to=reply), state, 0, use_remembered=True)
    assert not result.found
    assert result.source_message_id is None


def test_non_web_scheme_falls_through_to_next_candidate() -> None:
    state = ChatState(EngineConfig())
    reply = _message(5, url="example.org/reply")
    current = _message(6, url="mailto:me@example.com", reply_to=reply)
    result = resolve(current, state, 0, use_remembered=False)
    assert result.url == "https://example.org/reply"


def test_invalid_candidate_stops_resolution() -> None:
    state = ChatState(EngineConfig())
    reply = _message(5, url="notaurl")
    _remember(state, 4, "example.net/earlier")
    result = resolve(_message(6, reply_to=reply), state, 1_000, use_remembered=True)
    assert result.invalid
    assert result.url is None
    assert result.provenance is Provenance.REPLY
    assert result.source_message_id == 5
