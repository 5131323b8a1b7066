"""Reddit JSON listing client: the weekly buckit post and community context."""

from __future__ import annotations

import asyncio
import logging
import re
import time

import httpx

from buckit.config import AppConfig
from buckit.models.post import RedditPost

logger = logging.getLogger(__name__)

REDDIT_BASE = "https://www.reddit.com"

# Weekly posts and interrupter-clause posts (the latter can land any day)
FUEL_TITLE_RE = re.compile(r"gas|gasoline|diesel|fuel|price|interrupter", re.IGNORECASE)

COMMUNITY_TITLES_PER_SUB = 10


class RedditClient:
    """Reads public Reddit listings. HTTP failures degrade to empty results."""

    def __init__(self, config: AppConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._client = client
        self._owns_client = client is None

    async def start(self) -> None:
        """Initialize the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": self._config.reddit_user_agent},
                timeout=httpx.Timeout(20.0),
                follow_redirects=True,
            )
            self._owns_client = True

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _get_json(self, url: str, params: dict) -> dict | None:
        if self._client is None:
            await self.start()
        resp = await self._client.get(
            url, params=params, headers={"User-Agent": self._config.reddit_user_agent}
        )
        if resp.status_code != 200:
            logger.error("Reddit fetch failed: %s %s", url, resp.status_code)
            return None
        return resp.json()

    async def fetch_buckit_post(self, now: float | None = None) -> RedditPost | None:
        """Newest fuel post by the configured author within the lookback window."""
        url = f"{REDDIT_BASE}/r/{self._config.reddit_subreddit}/new.json"
        try:
            data = await self._get_json(url, {"limit": 100})
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Reddit fetch error: %s", e)
            return None
        if not data:
            return None

        cutoff = (now if now is not None else time.time()) - self._config.lookback_days * 86400
        author = self._config.reddit_author.lower()

        for child in data.get("data", {}).get("children", []):
            post = RedditPost.from_listing_child(child.get("data", {}))
            if (
                post.author.lower() == author
                and FUEL_TITLE_RE.search(post.title)
                and post.created_utc > cutoff
            ):
                return post
        return None

    async def _fetch_top_titles(self, subreddit: str) -> list[str]:
        url = f"{REDDIT_BASE}/r/{subreddit}/top.json"
        try:
            data = await self._get_json(url, {"t": "week", "limit": COMMUNITY_TITLES_PER_SUB})
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Community fetch failed for r/%s: %s", subreddit, e)
            return []
        if not data:
            return []
        children = data.get("data", {}).get("children", [])
        return [
            c["data"]["title"]
            for c in children
            if c.get("data", {}).get("title")
        ]

    async def fetch_community_context(self) -> list[str]:
        """Top weekly titles from each community subreddit, fetched concurrently."""
        results = await asyncio.gather(
            *(self._fetch_top_titles(sub) for sub in self._config.community_subreddits),
            return_exceptions=True,
        )
        titles: list[str] = []
        for sub, result in zip(self._config.community_subreddits, results):
            if isinstance(result, BaseException):
                logger.warning("Community fetch failed for r/%s: %s", sub, result)
                continue
            titles.extend(result)
        return titles
