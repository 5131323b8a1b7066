"""FastAPI application factory with security headers and lifespan management."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from buckit.api.deps import app_state
from buckit.config import load_config
from buckit.data.reddit import RedditClient
from buckit.imaging.generator import ImageGenerator
from buckit.scanner import Scanner, scan_loop
from buckit.storage.db import Database
from buckit.storage.predictions import build_store

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=(), payment=()",
    "Content-Security-Policy": "; ".join([
        "default-src 'self'",
        "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net",
        "style-src 'self' 'unsafe-inline'",
        "img-src 'self' data:",
        "connect-src 'self'",
        "frame-ancestors 'none'",
        "object-src 'none'",
        "base-uri 'self'",
    ]),
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage startup/shutdown of DB, HTTP clients, and the scan loop."""
    config = load_config()

    # Database (optional; memory store otherwise)
    db: Database | None = None
    if config.db_dsn:
        db = Database(config.db_dsn)
        db.connect()
        db.run_migrations()
    store = build_store(config, db)

    # Outbound clients
    reddit = RedditClient(config)
    await reddit.start()
    images = ImageGenerator(config, store)
    scanner = Scanner(config, store, reddit, images)

    # Populate shared state
    app_state.config = config
    app_state.db = db
    app_state.store = store
    app_state.reddit = reddit
    app_state.images = images
    app_state.scanner = scanner

    _bg_tasks = []
    if config.scan_interval_hours > 0:
        _bg_tasks.append(asyncio.create_task(scan_loop(scanner, config.scan_interval_hours)))
        logger.info("Scan loop started (every %s hours)", config.scan_interval_hours)
    logger.info("API started: store, Reddit client and image generator ready")
    yield

    for task in _bg_tasks:
        task.cancel()

    await reddit.close()
    await images.close()
    if db is not None:
        db.close()
    logger.info("API shutdown complete")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Apply the site's security headers to every response."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value
        return response


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Unsupported methods are reported as unknown routes
    if exc.status_code in (404, 405):
        return JSONResponse({"error": "Not Found"}, status_code=404)
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code)


def create_app(*, use_lifespan: bool = True) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        use_lifespan: If False, skip the production lifespan (useful for testing
            where deps are injected via app_state directly).
    """
    app = FastAPI(
        title="hfxgas.ca",
        version="0.1.0",
        lifespan=lifespan if use_lifespan else None,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    from buckit.api.routes import mcp, predictions, site

    app.include_router(site.router, tags=["site"])
    app.include_router(predictions.router, tags=["predictions"])
    app.include_router(mcp.router, tags=["mcp"])

    return app
