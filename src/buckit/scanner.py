"""Scheduled Reddit scan: find the week's post, parse it, store the prediction."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from buckit.config import AppConfig
from buckit.data.reddit import RedditClient
from buckit.imaging.generator import ImageGenerator
from buckit.models.prediction import Direction, Prediction
from buckit.parsing.reddit import build_reddit_prediction
from buckit.storage.predictions import PredictionStore

logger = logging.getLogger(__name__)

ScanStatus = Literal["no-post", "duplicate", "processed"]


@dataclass(frozen=True)
class ScanResult:
    status: ScanStatus
    prediction: Prediction | None = None
    post_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "post_id": self.post_id,
            "prediction": self.prediction.to_dict() if self.prediction else None,
        }


class Scanner:
    """Runs one Reddit scan end to end."""

    def __init__(
        self,
        config: AppConfig,
        store: PredictionStore,
        reddit: RedditClient,
        images: ImageGenerator | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._reddit = reddit
        self._images = images

    def _images_enabled(self) -> bool:
        return self._images is not None and self._config.enable_images

    async def run(self, now: datetime | None = None) -> ScanResult:
        post_result, context_result = await asyncio.gather(
            self._reddit.fetch_buckit_post(),
            self._reddit.fetch_community_context(),
            return_exceptions=True,
        )
        if isinstance(post_result, BaseException):
            logger.error("Scan: post fetch failed: %s", post_result)
            post_result = None
        if isinstance(context_result, BaseException):
            logger.warning("Scan: community context failed: %s", context_result)
            context_result = []

        post = post_result
        if post is None:
            logger.info("Scan: no recent buckit post found")
            return ScanResult("no-post")

        if post.id == self._store.get_last_post_id():
            logger.info("Scan: post %s already processed", post.id)
            return ScanResult("duplicate", post_id=post.id)

        prediction = build_reddit_prediction(post, now=now)
        logger.info(
            "Scan: parsed post %s (gas=%s, diesel=%s)",
            post.id,
            prediction.gas.direction if prediction.gas else None,
            prediction.diesel.direction if prediction.diesel else None,
        )

        direction = prediction.primary_direction
        if self._images_enabled() and direction in (Direction.UP, Direction.DOWN):
            key = await self._images.generate(post.id, direction, context_result)
            if key:
                self._store.set_image_key(key)
                prediction = dataclasses.replace(prediction, image_key=key)

        self._store.write_prediction(prediction)
        self._store.set_last_post_id(post.id)
        logger.info("Scan: stored prediction for post %s", post.id)
        return ScanResult("processed", prediction=prediction, post_id=post.id)


async def scan_loop(scanner: Scanner, interval_hours: float) -> None:
    """Background task: scan at startup and then every ``interval_hours``."""
    while True:
        try:
            result = await scanner.run()
            logger.debug("Scheduled scan finished: %s", result.status)
        except Exception:
            logger.exception("Scheduled scan failed")
        await asyncio.sleep(interval_hours * 3600)
