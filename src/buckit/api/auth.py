"""Bearer-token extraction for write endpoints."""

from __future__ import annotations

from fastapi import Request

BEARER_PREFIX = "Bearer "


def bearer_token(request: Request) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header, if any."""
    header = request.headers.get("authorization", "")
    if not header.startswith(BEARER_PREFIX):
        return None
    return header[len(BEARER_PREFIX):] or None
