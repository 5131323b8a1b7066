from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class AppConfig:
    db_dsn: str = ""
    webhook_secret: str = ""
    reddit_subreddit: str = "halifax"
    reddit_author: str = "buckit"
    reddit_user_agent: str = "buckit/0.1 (fuel price bot)"
    community_subreddits: tuple[str, ...] = ("halifax", "novascotia")
    lookback_days: int = 7
    max_history: int = 10
    site_url: str = "https://hfxgas.ca"
    cf_account_id: str = ""
    cf_api_token: str = ""
    image_model: str = "@cf/black-forest-labs/flux-1-schnell"
    enable_images: bool = True
    scan_interval_hours: float = 0

    @property
    def images_configured(self) -> bool:
        return self.enable_images and bool(self.cf_account_id and self.cf_api_token)


def load_config() -> AppConfig:
    """Load application config from environment variables.

    Loads .env file if present in the current directory.
    """
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    communities = os.environ.get("COMMUNITY_SUBREDDITS", "halifax,novascotia")

    return AppConfig(
        db_dsn=os.environ.get("DATABASE_URL", ""),
        webhook_secret=os.environ.get("WEBHOOK_SECRET", ""),
        reddit_subreddit=os.environ.get("REDDIT_SUBREDDIT", "halifax"),
        reddit_author=os.environ.get("REDDIT_AUTHOR", "buckit"),
        reddit_user_agent=os.environ.get("REDDIT_USER_AGENT", "buckit/0.1 (fuel price bot)"),
        community_subreddits=tuple(s.strip() for s in communities.split(",") if s.strip()),
        lookback_days=int(os.environ.get("LOOKBACK_DAYS", "7")),
        max_history=int(os.environ.get("MAX_HISTORY", "10")),
        site_url=os.environ.get("SITE_URL", "https://hfxgas.ca").rstrip("/"),
        cf_account_id=os.environ.get("CF_ACCOUNT_ID", ""),
        cf_api_token=os.environ.get("CF_API_TOKEN", ""),
        image_model=os.environ.get("IMAGE_MODEL", "@cf/black-forest-labs/flux-1-schnell"),
        enable_images=_env_bool("ENABLE_IMAGES", "true"),
        scan_interval_hours=float(os.environ.get("SCAN_INTERVAL_HOURS", "0")),
    )
