"""SQLite-backed global chat history."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import TYPE_CHECKING

from shared.dal.chat_repository import ChatRepository
from shared.dal.models import ChatRecord

if TYPE_CHECKING:
    from shared.db.connection import Database


class SqliteChatRepository(ChatRepository):
    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def save_message(self, record: ChatRecord) -> None:
        async with self._lock:
            with self._db.transaction() as conn:
                conn.execute(
                    "INSERT INTO global_messages (username, message, sent_at) VALUES (?, ?, ?)",
                    (record.username, record.message, record.sent_at.isoformat()),
                )

    async def get_recent_messages(self, limit: int = 50) -> list[ChatRecord]:
        """Return the newest `limit` messages, oldest first."""
        rows = self._db.connection.execute(
            "SELECT username, message, sent_at FROM global_messages ORDER BY id DESC LIMIT ?",
            (limit,),
        ).fetchall()
        return [
            ChatRecord(username=username, message=message, sent_at=datetime.fromisoformat(sent_at))
            for username, message, sent_at in reversed(rows)
        ]
