"""Key/value stores: bytes in, bytes out."""

from __future__ import annotations

import logging
import threading
from typing import Protocol

from buckit.storage.db import Database

logger = logging.getLogger(__name__)


class KVStore(Protocol):
    def get(self, key: str) -> bytes | None: ...

    def put(self, key: str, value: bytes) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKV:
    """Process-local store for development and tests."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes | None:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class PostgresKV:
    """KV over the ``buckit_kv`` table (see migrations/001_kv.sql)."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def get(self, key: str) -> bytes | None:
        rows = self._db.execute("SELECT value FROM buckit_kv WHERE key = %s", (key,))
        if not rows:
            return None
        return bytes(rows[0]["value"])

    def put(self, key: str, value: bytes) -> None:
        self._db.execute(
            "INSERT INTO buckit_kv (key, value, updated_at) VALUES (%s, %s, NOW()) "
            "ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value, updated_at = NOW()",
            (key, value),
        )
        logger.debug("KV put %s (%d bytes)", key, len(value))

    def delete(self, key: str) -> None:
        self._db.execute("DELETE FROM buckit_kv WHERE key = %s", (key,))
