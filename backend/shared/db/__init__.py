"""SQLite database layer: connection management and repository implementations."""

from shared.db.chat_repository import SqliteChatRepository
from shared.db.connection import Database
from shared.db.credit_repository import SqliteCreditRepository

__all__ = [
    "Database",
    "SqliteChatRepository",
    "SqliteCreditRepository",
]
