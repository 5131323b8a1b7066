"""Text-to-image generation via the Cloudflare Workers AI REST API."""

from __future__ import annotations

import base64
import logging
from collections.abc import Sequence

import httpx

from buckit.config import AppConfig
from buckit.imaging.prompt import build_image_prompt
from buckit.models.prediction import Direction
from buckit.storage.predictions import PredictionStore, image_key_for

logger = logging.getLogger(__name__)

CF_AI_URL = "https://api.cloudflare.com/client/v4/accounts/{account}/ai/run/{model}"
NUM_STEPS = 4


class ImageGenerator:
    """Generates a meme image for a post and stores it as PNG bytes."""

    def __init__(
        self,
        config: AppConfig,
        store: PredictionStore,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._config.images_configured

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _run_model(self, prompt: str) -> bytes | None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(60.0))
        url = CF_AI_URL.format(account=self._config.cf_account_id, model=self._config.image_model)
        resp = await self._client.post(
            url,
            json={"prompt": prompt, "num_steps": NUM_STEPS},
            headers={"Authorization": f"Bearer {self._config.cf_api_token}"},
        )
        resp.raise_for_status()
        image_b64 = resp.json().get("result", {}).get("image")
        if not image_b64:
            return None
        return base64.b64decode(image_b64)

    async def generate(
        self,
        post_id: str,
        direction: Direction,
        community_context: Sequence[str] = (),
    ) -> str | None:
        """Generate and store an image. Returns the storage key, or None on failure."""
        if not self.enabled:
            logger.debug("Image generation not configured, skipping")
            return None

        prompt = build_image_prompt(direction, post_id, community_context)
        try:
            image = await self._run_model(prompt)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Image generation failed: %s", e)
            return None
        if not image:
            logger.error("AI image generation returned no image")
            return None

        key = image_key_for(post_id)
        self._store.put_image(key, image)
        logger.info("Stored generated image %s (%d bytes)", key, len(image))
        return key
