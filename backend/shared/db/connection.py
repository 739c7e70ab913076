"""SQLite database connection and schema management."""

import os
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog

logger = structlog.get_logger()

_DB_FILE_PERMISSIONS = 0o600

_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA foreign_keys=ON",
    "PRAGMA busy_timeout=5000",
)

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS accounts (
    username TEXT PRIMARY KEY COLLATE NOCASE,
    email TEXT NOT NULL DEFAULT '',
    credits INTEGER NOT NULL DEFAULT 0 CHECK (credits >= 0)
);

CREATE INDEX IF NOT EXISTS idx_accounts_email
    ON accounts (email COLLATE NOCASE);

CREATE TABLE IF NOT EXISTS global_messages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL,
    message TEXT NOT NULL,
    sent_at TEXT NOT NULL
);
"""


class Database:
    """Single SQLite connection shared by the credit and chat repositories."""

    def __init__(self, path: str | Path) -> None:
        self._path = str(path)
        self._conn: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Database is not connected")
        return self._conn

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    def connect(self) -> None:
        """Open the file (creating parent directories), apply the schema and restrict permissions."""
        Path(self._path).parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(self._path, check_same_thread=False)
        for pragma in _PRAGMAS:
            conn.execute(pragma)
        conn.executescript(_SCHEMA_SQL)
        self._conn = conn

        self._restrict_permissions()
        logger.info("database connected", path=self._path)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info("database closed", path=self._path)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Commit what the block wrote, or roll it back if sqlite raised."""
        conn = self.connection
        try:
            yield conn
        except sqlite3.Error:
            conn.rollback()
            raise
        conn.commit()

    def _restrict_permissions(self) -> None:
        # the -wal and -shm siblings hold balances too
        if os.name != "posix":  # pragma: no cover
            return
        candidates = [Path(self._path + suffix) for suffix in ("", "-wal", "-shm")]
        for path in filter(Path.exists, candidates):
            try:
                path.chmod(_DB_FILE_PERMISSIONS)
            except OSError:
                logger.warning("could not restrict database file permissions", path=str(path))
