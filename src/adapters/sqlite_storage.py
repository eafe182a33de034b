"""SQLite storage adapter.

Implements the core RoomStoragePort using a simple SQLite database. Only the
chat -> room mapping is durable; message content is never written here.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional


@dataclass(frozen=True)
class RoomRecord:
    chat_id: int
    streamkey: str
    updated_at: str


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the RoomStoragePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - rooms: one row per chat with its current room key
        """

        with self._connect() as conn:
            # Fields:
            # - chat_id: Telegram chat id (PRIMARY KEY)
            # - streamkey: W2G room key currently used by the chat
            # - updated_at: when the key was last created or replaced
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS rooms (
                    chat_id INTEGER PRIMARY KEY,
                    streamkey TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )

    def get_room(self, chat_id: int) -> Optional[str]:
        """Return the stored room key for a chat, if any."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT streamkey FROM rooms WHERE chat_id = ?",
                (chat_id,),
            ).fetchone()
        return str(row["streamkey"]) if row else None

    def set_room(self, chat_id: int, streamkey: str) -> None:
        """Upsert the room key for a chat."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO rooms (chat_id, streamkey, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(chat_id) DO UPDATE SET
                    streamkey = excluded.streamkey,
                    updated_at = excluded.updated_at
                """,
                (chat_id, streamkey, now.isoformat()),
            )

    def list_rooms(self) -> List[RoomRecord]:
        """Return all stored mappings, most recently updated first."""

        with self._connect() as conn:
            rows = conn.execute(
                "SELECT chat_id, streamkey, updated_at FROM rooms ORDER BY updated_at DESC"
            ).fetchall()
        return [
            RoomRecord(
                chat_id=int(row["chat_id"]),
                streamkey=str(row["streamkey"]),
                updated_at=str(row["updated_at"]),
            )
            for row in rows
        ]
