from __future__ import annotations

import logging
from pathlib import Path
from types import TracebackType

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


class Database:
    """PostgreSQL database wrapper using psycopg3."""

    def __init__(self, dsn: str) -> None:
        self._dsn = dsn
        self._pool: ConnectionPool | None = None

    def connect(self) -> None:
        """Create a connection pool."""
        self._pool = ConnectionPool(self._dsn, kwargs={"row_factory": dict_row})
        self._pool.wait()
        logger.info("Connection pool established")

    def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            self._pool = None

    def _get_connection(self) -> psycopg.Connection:
        if self._pool is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._pool.getconn()

    def _put_connection(self, conn: psycopg.Connection) -> None:
        if self._pool is not None:
            self._pool.putconn(conn)

    def execute(self, query: str, params: tuple | None = None) -> list[dict]:
        """Execute a query and return rows as dicts."""
        conn = self._get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(query, params)
                if cur.description is not None:
                    rows = cur.fetchall()
                    conn.commit()
                    return [dict(row) for row in rows]
                conn.commit()
                return []
        finally:
            self._put_connection(conn)

    def run_migrations(self, migrations_dir: str | Path = MIGRATIONS_DIR) -> list[str]:
        """Run SQL migration files in order, tracking applied migrations.

        Returns the filenames applied by this call.
        """
        applied_now: list[str] = []
        conn = self._get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS _migrations (
                        filename TEXT PRIMARY KEY,
                        applied_at TIMESTAMPTZ DEFAULT NOW()
                    )
                """)
                conn.commit()

                cur.execute("SELECT filename FROM _migrations ORDER BY filename")
                applied = {row["filename"] for row in cur.fetchall()}

                for sql_file in sorted(Path(migrations_dir).glob("*.sql")):
                    if sql_file.name in applied:
                        logger.debug("Skipping already applied migration: %s", sql_file.name)
                        continue

                    logger.info("Applying migration: %s", sql_file.name)
                    cur.execute(sql_file.read_text())
                    cur.execute(
                        "INSERT INTO _migrations (filename) VALUES (%s)",
                        (sql_file.name,),
                    )
                    conn.commit()
                    applied_now.append(sql_file.name)
        finally:
            self._put_connection(conn)
        return applied_now

    def health_check(self) -> bool:
        """Check database connectivity."""
        try:
            result = self.execute("SELECT 1 AS ok")
            return len(result) > 0 and result[0].get("ok") == 1
        except Exception:
            logger.exception("Health check failed")
            return False

    def __enter__(self) -> Database:
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
