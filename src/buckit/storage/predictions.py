from __future__ import annotations

import json
import logging

from buckit.config import AppConfig
from buckit.models.prediction import Prediction
from buckit.storage.db import Database
from buckit.storage.kv import KVStore, MemoryKV, PostgresKV

logger = logging.getLogger(__name__)

LATEST_KEY = "latest_prediction"
HISTORY_KEY = "prediction_history"
IMAGE_KEY = "latest_image_key"
LAST_POST_KEY = "last_processed_post_id"

DEFAULT_MAX_HISTORY = 10


def image_key_for(post_id: str) -> str:
    return f"images/{post_id}.png"


class PredictionStore:
    """Persistence for the latest prediction, capped history, and images."""

    def __init__(self, kv: KVStore, max_history: int = DEFAULT_MAX_HISTORY) -> None:
        self._kv = kv
        self._max_history = max_history

    @property
    def kv(self) -> KVStore:
        return self._kv

    # ------------------------------------------------------------------
    # Predictions
    # ------------------------------------------------------------------

    def write_prediction(self, prediction: Prediction) -> None:
        """Store as latest and push onto history, most recent first."""
        entry = prediction.to_dict()
        self._put_json(LATEST_KEY, entry)

        history = self._get_json(HISTORY_KEY) or []
        history.insert(0, entry)
        del history[self._max_history:]
        self._put_json(HISTORY_KEY, history)
        logger.info(
            "Stored %s prediction (history: %d/%d)",
            prediction.source, len(history), self._max_history,
        )

    def get_latest(self) -> Prediction | None:
        data = self._get_json(LATEST_KEY)
        return Prediction.from_dict(data) if data else None

    def get_latest_raw(self) -> dict | None:
        return self._get_json(LATEST_KEY)

    def get_history(self, limit: int | None = None) -> list[Prediction]:
        return [Prediction.from_dict(h) for h in self.get_history_raw(limit)]

    def get_history_raw(self, limit: int | None = None) -> list[dict]:
        history = self._get_json(HISTORY_KEY) or []
        return history[:limit] if limit is not None else history

    # ------------------------------------------------------------------
    # Scan bookkeeping
    # ------------------------------------------------------------------

    def get_last_post_id(self) -> str | None:
        return self._get_text(LAST_POST_KEY)

    def set_last_post_id(self, post_id: str) -> None:
        self._kv.put(LAST_POST_KEY, post_id.encode())

    def get_image_key(self) -> str | None:
        return self._get_text(IMAGE_KEY)

    def set_image_key(self, key: str) -> None:
        self._kv.put(IMAGE_KEY, key.encode())

    def status(self) -> dict:
        latest = self._get_json(LATEST_KEY)
        return {
            "ok": True,
            "last_updated": latest.get("updated_at") if latest else None,
            "last_post_id": self.get_last_post_id(),
            "latest_image_key": self.get_image_key(),
            "has_prediction": latest is not None,
        }

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def put_image(self, key: str, data: bytes) -> None:
        self._kv.put(key, data)

    def get_image(self, key: str) -> bytes | None:
        return self._kv.get(key)

    # ------------------------------------------------------------------

    def _get_text(self, key: str) -> str | None:
        raw = self._kv.get(key)
        return raw.decode() if raw is not None else None

    def _get_json(self, key: str):
        raw = self._kv.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def _put_json(self, key: str, value) -> None:
        self._kv.put(key, json.dumps(value).encode())


def build_store(config: AppConfig, db: Database | None = None) -> PredictionStore:
    """Postgres-backed store when a DSN is configured, in-memory otherwise."""
    if db is not None:
        return PredictionStore(PostgresKV(db), config.max_history)
    logger.warning("DATABASE_URL not set; predictions are kept in memory only")
    return PredictionStore(MemoryKV(), config.max_history)
