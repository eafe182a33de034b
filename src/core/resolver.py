"""Candidate resolution (core domain).

Candidates are tried by provenance priority:
1) the current message
2) the replied-to message, when a human wrote it
3) the remembered last message, only for explicit mentions by the same author

Ids already consumed by a previous add are never offered again.
"""

from __future__ import annotations

from typing import List

from core.entities import extract_from_message
from core.models import Candidate, InboundMessage, Provenance, Resolution
from core.session import ChatState
from core.validator import validate_candidate

NOT_FOUND = Resolution()


def build_candidates(
    message: InboundMessage,
    state: ChatState,
    now_ms: int,
    *,
    use_remembered: bool,
) -> List[Candidate]:
    """Return candidates in priority order (raw values may be None)."""

    candidates = [
        Candidate(
            raw_value=extract_from_message(message),
            source_message_id=message.message_id,
            provenance=Provenance.CURRENT,
        )
    ]

    reply = message.reply_to
    # Bot-authored replies are skipped so the bot never re-adds links quoted
    # in its own confirmations.
    if reply is not None and not reply.from_is_bot:
        candidates.append(
            Candidate(
                raw_value=extract_from_message(reply),
                source_message_id=reply.message_id,
                provenance=Provenance.REPLY,
            )
        )

    if use_remembered:
        remembered = state.recent_message(message.from_id, now_ms)
        if remembered is not None:
            candidates.append(
                Candidate(
                    raw_value=remembered.url,
                    source_message_id=remembered.message_id,
                    provenance=Provenance.REMEMBERED,
                )
            )

    return candidates


def resolve(
    message: InboundMessage,
    state: ChatState,
    now_ms: int,
    *,
    use_remembered: bool,
) -> Resolution:
    """Return the first candidate that is either usable or clearly invalid.

    Candidates without a value, already consumed, or with a non-web scheme
    are skipped.
    """

    for candidate in build_candidates(message, state, now_ms, use_remembered=use_remembered):
        if not candidate.raw_value:
            continue
        if state.is_used(candidate.source_message_id):
            continue
        result = validate_candidate(candidate.raw_value)
        if result.usable or result.invalid:
            return Resolution(
                url=result.url,
                invalid=result.invalid,
                source_message_id=candidate.source_message_id,
                provenance=candidate.provenance,
            )
    return NOT_FOUND
