"""Ports (interfaces) used by the core.

Ports define the minimal contracts for storage, room service, reply delivery
and time so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Optional, Protocol


class RoomStoragePort(Protocol):
    """Durable chat -> room key mapping."""

    def get_room(self, chat_id: int) -> Optional[str]:
        ...

    def set_room(self, chat_id: int, streamkey: str) -> None:
        ...


class RoomServicePort(Protocol):
    """Shared-viewing room operations required by the core."""

    async def create_room(self, initial_url: Optional[str] = None) -> str:
        ...

    async def add_to_playlist(self, streamkey: str, url: str, title: Optional[str] = None) -> None:
        ...

    def room_link(self, streamkey: str) -> str:
        ...


class ReplierPort(Protocol):
    """Outbound plain-text replies to a chat."""

    async def send(self, chat_id: int, text: str) -> None:
        ...


class Clock(Protocol):
    def now_ms(self) -> int:
        ...
