"""Clock implementations.

Every window and expiry check in the core reads time through a clock so the
logic stays deterministic under test.
"""

from __future__ import annotations

import time


class SystemClock:
    """Wall clock in epoch milliseconds (comparable with message dates)."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)


class ManualClock:
    """A clock that only moves when told to."""

    def __init__(self, start_ms: int = 0) -> None:
        self._now_ms = start_ms

    def now_ms(self) -> int:
        return self._now_ms

    def advance(self, seconds: float) -> None:
        self._now_ms += int(seconds * 1000)

    def set(self, now_ms: int) -> None:
        self._now_ms = now_ms
