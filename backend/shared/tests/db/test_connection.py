"""Tests for Database connection, schema, and store error mapping."""

from __future__ import annotations

import sqlite3
import sys
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

from shared.db.connection import Database, store_errors
from shared.errors import StoreFailureError

if TYPE_CHECKING:
    from pathlib import Path

EXPECTED_TABLES = ("accounts", "files", "one_time_codes")


class TestConnect:
    def test_creates_schema_and_connects(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()

        tables = db.connection.execute(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name",
        ).fetchall()
        table_names = [t[0] for t in tables]
        for name in EXPECTED_TABLES:
            assert name in table_names
        db.close()

    def test_reconnect_after_close(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()
        db.close()
        db.connect()

        tables = db.connection.execute(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name",
        ).fetchall()
        assert len([t for t in tables if t[0] in EXPECTED_TABLES]) == len(EXPECTED_TABLES)
        db.close()

    def test_connection_raises_when_disconnected(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        with pytest.raises(RuntimeError, match="not connected"):
            _ = db.connection

    def test_connection_raises_after_close(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()
        db.close()
        with pytest.raises(RuntimeError, match="not connected"):
            _ = db.connection

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "nested" / "dir" / "test.db")
        db.connect()
        assert db.connection is not None
        db.close()

    def test_email_index_is_case_insensitive(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()
        db.connection.execute(
            "INSERT INTO accounts (id, email, is_student, data) VALUES ('a', 'ada@example.com', 0, '{}')",
        )
        with pytest.raises(sqlite3.IntegrityError):
            db.connection.execute(
                "INSERT INTO accounts (id, email, is_student, data) VALUES ('b', 'ADA@example.com', 0, '{}')",
            )
        db.close()


class TestStoreErrors:
    def test_wraps_operational_error(self) -> None:
        with pytest.raises(StoreFailureError, match="during get_by_id"), store_errors("get_by_id"):
            raise sqlite3.OperationalError("disk I/O error")

    def test_integrity_error_passes_through(self) -> None:
        with pytest.raises(sqlite3.IntegrityError), store_errors("create_account"):
            raise sqlite3.IntegrityError("UNIQUE constraint failed")

    def test_non_sqlite_errors_untouched(self) -> None:
        with pytest.raises(KeyError), store_errors("anything"):
            raise KeyError("x")

    def test_closed_connection_maps_to_store_failure(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()
        conn = db.connection
        conn.close()
        with pytest.raises(StoreFailureError), store_errors("list_accounts"):
            conn.execute("SELECT 1")


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions only")
class TestPermissions:
    def test_db_file_has_restricted_permissions(self, tmp_path: Path) -> None:
        db_path = tmp_path / "test.db"
        db = Database(db_path)
        db.connect()

        mode = db_path.stat().st_mode & 0o777
        assert mode == 0o600
        db.close()

    def test_harden_permissions_warns_on_failure(self, tmp_path: Path) -> None:
        """Permission hardening logs a warning on failure instead of raising."""
        db_path = tmp_path / "test.db"
        db = Database(db_path)
        with patch("pathlib.Path.chmod", side_effect=OSError("permission denied")):
            db.connect()
        assert db.connection is not None
        db.close()
