"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EngineConfig:
    """Windows and bounds for per-chat session state."""

    prompt_grace_ms: int = 60_000
    recency_window_ms: int = 30_000
    used_ids_capacity: int = 20


@dataclass(frozen=True)
class TimeoutConfig:
    """Timeouts for external calls and for one whole message activation."""

    call_seconds: float = 5.0
    scrape_seconds: float = 3.0
    handler_seconds: float = 30.0
