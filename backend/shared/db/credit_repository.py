"""SQLite-backed credit repository."""

from __future__ import annotations

import asyncio
import sqlite3
from typing import TYPE_CHECKING

import structlog

from shared.dal.credit_repository import CreditRepository

if TYPE_CHECKING:
    from shared.dal.models import CreditAccount
    from shared.db.connection import Database

logger = structlog.get_logger()

# Exact username wins over an email local-part alias when both match.
_RESOLVE_ACCOUNT_SQL = (
    "SELECT username FROM accounts "
    "WHERE username = ?1 COLLATE NOCASE "
    "OR (instr(email, '@') > 1 AND substr(email, 1, instr(email, '@') - 1) = ?1 COLLATE NOCASE) "
    "ORDER BY (username = ?1 COLLATE NOCASE) DESC "
    "LIMIT 1"
)


class SqliteCreditRepository(CreditRepository):
    """SQLite implementation of CreditRepository.

    The zero floor is applied inside the UPDATE statement, so a concurrent
    reader never observes a negative balance.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    def _resolve_username(self, username: str) -> str | None:
        row = self._db.connection.execute(_RESOLVE_ACCOUNT_SQL, (username,)).fetchone()
        return row[0] if row is not None else None

    async def create_account(self, account: CreditAccount) -> None:
        """Insert an account. Raises ValueError if the username is taken."""
        async with self._lock:
            try:
                with self._db.transaction() as conn:
                    conn.execute(
                        "INSERT INTO accounts (username, email, credits) VALUES (?, ?, ?)",
                        (account.username, account.email, account.credits),
                    )
            except sqlite3.IntegrityError as exc:
                raise ValueError(f"Username '{account.username}' already taken") from exc

    async def get_credits(self, username: str) -> int | None:
        account_username = self._resolve_username(username)
        if account_username is None:
            return None
        row = self._db.connection.execute(
            "SELECT credits FROM accounts WHERE username = ?",
            (account_username,),
        ).fetchone()
        return row[0] if row is not None else None

    async def adjust_credits(self, username: str, delta: int) -> int | None:
        async with self._lock:
            account_username = self._resolve_username(username)
            if account_username is None:
                return None
            with self._db.transaction() as conn:
                conn.execute(
                    "UPDATE accounts SET credits = MAX(credits + ?, 0) WHERE username = ?",
                    (delta, account_username),
                )
            row = self._db.connection.execute(
                "SELECT credits FROM accounts WHERE username = ?",
                (account_username,),
            ).fetchone()
        balance = row[0]
        logger.debug("credits adjusted", username=account_username, delta=delta, balance=balance)
        return balance
