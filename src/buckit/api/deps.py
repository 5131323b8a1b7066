"""Dependency injection for the FastAPI application."""

from __future__ import annotations

from buckit.config import AppConfig
from buckit.data.reddit import RedditClient
from buckit.imaging.generator import ImageGenerator
from buckit.scanner import Scanner
from buckit.storage.db import Database
from buckit.storage.predictions import PredictionStore


class AppState:
    """Holds shared application state initialised during lifespan."""

    def __init__(self) -> None:
        self.config: AppConfig | None = None
        self.db: Database | None = None
        self.store: PredictionStore | None = None
        self.reddit: RedditClient | None = None
        self.images: ImageGenerator | None = None
        self.scanner: Scanner | None = None


# Singleton shared across the app
app_state = AppState()


def get_config() -> AppConfig:
    if app_state.config is None:
        raise RuntimeError("AppConfig not initialised")
    return app_state.config


def get_store() -> PredictionStore:
    if app_state.store is None:
        raise RuntimeError("PredictionStore not initialised")
    return app_state.store


def get_scanner() -> Scanner:
    if app_state.scanner is None:
        raise RuntimeError("Scanner not initialised")
    return app_state.scanner
