"""Room lookup and creation shared by the attribution engine and commands."""

from __future__ import annotations

import logging

from core.ports import RoomServicePort, RoomStoragePort

LOGGER = logging.getLogger(__name__)


async def ensure_room(storage: RoomStoragePort, rooms: RoomServicePort, chat_id: int) -> str:
    """Return the chat's stored room key, creating and storing a room if absent."""

    existing = storage.get_room(chat_id)
    if existing:
        return existing

    streamkey = await rooms.create_room()
    storage.set_room(chat_id, streamkey)
    LOGGER.info("Created room for chat %s", chat_id)
    return streamkey


async def reset_room(storage: RoomStoragePort, rooms: RoomServicePort, chat_id: int) -> str:
    """Create a fresh room and replace the stored key."""

    streamkey = await rooms.create_room()
    storage.set_room(chat_id, streamkey)
    LOGGER.info("Replaced room for chat %s", chat_id)
    return streamkey
