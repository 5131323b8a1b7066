from __future__ import annotations

import tempfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from buckit.storage.db import MIGRATIONS_DIR, Database

DSN = "postgresql://u:p@localhost:5432/testdb"


def _connected(mock_cursor: MagicMock) -> tuple[Database, MagicMock]:
    """A Database whose pool hands out a connection with ``mock_cursor``."""
    mock_cursor.__enter__ = MagicMock(return_value=mock_cursor)
    mock_cursor.__exit__ = MagicMock(return_value=False)

    mock_conn = MagicMock()
    mock_conn.cursor.return_value = mock_cursor

    db = Database(DSN)
    db._pool = MagicMock()
    db._pool.getconn.return_value = mock_conn
    return db, mock_conn


class TestDatabaseInit:
    def test_stores_dsn(self) -> None:
        db = Database(DSN)
        assert db._dsn == DSN

    def test_not_connected_by_default(self) -> None:
        assert Database(DSN)._pool is None


class TestDatabaseExecute:
    def test_execute_returns_dicts(self) -> None:
        mock_cursor = MagicMock()
        mock_cursor.description = [("key",), ("value",)]
        mock_cursor.fetchall.return_value = [
            {"key": "latest", "value": b"{}"},
            {"key": "history", "value": b"[]"},
        ]
        db, mock_conn = _connected(mock_cursor)

        result = db.execute("SELECT key, value FROM buckit_kv")
        assert result == [
            {"key": "latest", "value": b"{}"},
            {"key": "history", "value": b"[]"},
        ]
        mock_conn.commit.assert_called_once()
        db._pool.putconn.assert_called_once_with(mock_conn)

    def test_execute_no_results(self) -> None:
        mock_cursor = MagicMock()
        mock_cursor.description = None
        db, _ = _connected(mock_cursor)

        result = db.execute("DELETE FROM buckit_kv WHERE key = %s", ("latest",))
        assert result == []
        mock_cursor.execute.assert_called_once_with(
            "DELETE FROM buckit_kv WHERE key = %s", ("latest",)
        )

    def test_connection_returned_on_error(self) -> None:
        mock_cursor = MagicMock()
        mock_cursor.execute.side_effect = RuntimeError("boom")
        db, mock_conn = _connected(mock_cursor)

        with pytest.raises(RuntimeError, match="boom"):
            db.execute("SELECT 1")
        db._pool.putconn.assert_called_once_with(mock_conn)

    def test_execute_raises_when_not_connected(self) -> None:
        db = Database(DSN)
        with pytest.raises(RuntimeError, match="not connected"):
            db.execute("SELECT 1")


class TestMigrationRunner:
    def test_finds_and_runs_sql_files(self) -> None:
        mock_cursor = MagicMock()
        mock_cursor.fetchall.return_value = []
        db, _ = _connected(mock_cursor)

        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "001_kv.sql").write_text("CREATE TABLE kv (key TEXT);")
            (Path(tmpdir) / "002_index.sql").write_text("CREATE INDEX kv_idx ON kv (key);")

            applied = db.run_migrations(tmpdir)

        assert applied == ["001_kv.sql", "002_index.sql"]
        calls = mock_cursor.execute.call_args_list
        assert "_migrations" in str(calls[0])
        assert "SELECT filename" in str(calls[1])
        # CREATE + SELECT + 2 * (SQL + INSERT)
        assert len(calls) == 6

    def test_skips_applied_migrations(self) -> None:
        mock_cursor = MagicMock()
        mock_cursor.fetchall.return_value = [{"filename": "001_kv.sql"}]
        db, _ = _connected(mock_cursor)

        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "001_kv.sql").write_text("CREATE TABLE kv (key TEXT);")
            (Path(tmpdir) / "002_index.sql").write_text("CREATE INDEX kv_idx ON kv (key);")

            applied = db.run_migrations(tmpdir)

        assert applied == ["002_index.sql"]
        assert len(mock_cursor.execute.call_args_list) == 4

    def test_packaged_migrations_create_kv_table(self) -> None:
        sql = (MIGRATIONS_DIR / "001_kv.sql").read_text()
        assert "buckit_kv" in sql


class TestHealthCheck:
    def test_healthy(self) -> None:
        mock_cursor = MagicMock()
        mock_cursor.description = [("ok",)]
        mock_cursor.fetchall.return_value = [{"ok": 1}]
        db, _ = _connected(mock_cursor)

        assert db.health_check() is True

    def test_unhealthy(self) -> None:
        # Not connected, so execute will raise
        assert Database(DSN).health_check() is False


class TestContextManager:
    @patch("buckit.storage.db.ConnectionPool")
    def test_context_manager(self, mock_pool_cls: MagicMock) -> None:
        mock_pool = MagicMock()
        mock_pool_cls.return_value = mock_pool

        with Database(DSN) as db:
            assert db._pool is mock_pool
            mock_pool.wait.assert_called_once()

        mock_pool.close.assert_called_once()
        assert db._pool is None
