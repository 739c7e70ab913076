"""Tests for Database connection and schema."""

from __future__ import annotations

import sqlite3
import sys
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

from shared.db.connection import Database

if TYPE_CHECKING:
    from pathlib import Path


def _table_names(db: Database) -> list[str]:
    rows = db.connection.execute("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name").fetchall()
    return [r[0] for r in rows]


class TestConnect:
    def test_creates_schema_and_connects(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()

        names = _table_names(db)
        assert "accounts" in names
        assert "global_messages" in names
        assert db.is_connected
        db.close()

    def test_reconnect_after_close_keeps_data(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()
        db.connection.execute("INSERT INTO accounts (username, credits) VALUES ('Nova', 5)")
        db.connection.commit()
        db.close()
        db.connect()

        row = db.connection.execute("SELECT credits FROM accounts WHERE username = 'nova'").fetchone()
        assert row == (5,)
        db.close()

    def test_connection_raises_when_disconnected(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        assert not db.is_connected
        with pytest.raises(RuntimeError, match="not connected"):
            _ = db.connection

    def test_connection_raises_after_close(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()
        db.close()
        with pytest.raises(RuntimeError, match="not connected"):
            _ = db.connection

    def test_close_twice_is_harmless(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()
        db.close()
        db.close()
        assert not db.is_connected

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "nested" / "dir" / "test.db")
        db.connect()
        assert (tmp_path / "nested" / "dir" / "test.db").exists()
        db.close()


class TestSchemaConstraints:
    def test_negative_balance_rejected_by_schema(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()
        with pytest.raises(sqlite3.IntegrityError):
            db.connection.execute("INSERT INTO accounts (username, credits) VALUES ('Zed', -1)")
        db.close()

    def test_username_is_case_insensitive_unique(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()
        db.connection.execute("INSERT INTO accounts (username) VALUES ('Nova')")
        with pytest.raises(sqlite3.IntegrityError):
            db.connection.execute("INSERT INTO accounts (username) VALUES ('NOVA')")
        db.close()



class TestTransaction:
    def test_commits_on_success(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()
        with db.transaction() as conn:
            conn.execute("INSERT INTO accounts (username, credits) VALUES ('Nova', 7)")
        db.close()
        db.connect()

        assert db.connection.execute("SELECT credits FROM accounts").fetchone() == (7,)
        db.close()

    def test_rolls_back_on_sqlite_error(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()
        with pytest.raises(sqlite3.IntegrityError), db.transaction() as conn:
            conn.execute("INSERT INTO accounts (username, credits) VALUES ('Nova', 7)")
            conn.execute("INSERT INTO accounts (username, credits) VALUES ('Zed', -1)")

        assert db.connection.execute("SELECT COUNT(*) FROM accounts").fetchone() == (0,)
        db.close()


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions only")
class TestPermissions:
    def test_db_file_has_restricted_permissions(self, tmp_path: Path) -> None:
        db_path = tmp_path / "test.db"
        db = Database(db_path)
        db.connect()

        mode = db_path.stat().st_mode & 0o777
        assert mode == 0o600
        db.close()

    def test_permission_failure_is_not_fatal(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        with patch("pathlib.Path.chmod", side_effect=OSError("permission denied")):
            db.connect()
        assert db.is_connected
        db.close()
