"""Prediction JSON endpoints and the authenticated webhook."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from buckit.api.auth import bearer_token
from buckit.api.deps import get_config, get_store
from buckit.config import AppConfig
from buckit.models.prediction import Source
from buckit.storage.predictions import PredictionStore
from buckit.validation import InvalidSubmission, SubmissionError, authenticate, validate_payload

logger = logging.getLogger(__name__)

router = APIRouter()

NO_STORE = {"cache-control": "no-store"}


@router.get("/api/latest")
def latest(store: PredictionStore = Depends(get_store)) -> JSONResponse:
    """Latest prediction, or null."""
    return JSONResponse(store.get_latest_raw(), headers=NO_STORE)


@router.get("/api/history")
def history(
    limit: int | None = Query(None, ge=1),
    store: PredictionStore = Depends(get_store),
) -> JSONResponse:
    return JSONResponse(store.get_history_raw(limit), headers=NO_STORE)


@router.get("/api/status")
def status(store: PredictionStore = Depends(get_store)) -> dict:
    return store.status()


@router.post("/webhook")
async def webhook(
    request: Request,
    store: PredictionStore = Depends(get_store),
    config: AppConfig = Depends(get_config),
):
    """Accept a manual prediction in either wire shape.

    Order of checks: ``?secret=`` rejected, bearer auth, JSON body, schema.
    """
    if "secret" in request.query_params:
        logger.warning("Webhook: rejected ?secret= query param")
        return JSONResponse(
            {"error": "Use Authorization: Bearer header, not ?secret= query param"},
            status_code=400,
        )

    try:
        authenticate(bearer_token(request), config.webhook_secret)
        try:
            payload = json.loads(await request.body())
        except ValueError:
            raise InvalidSubmission("Invalid JSON")
        prediction = validate_payload(payload, Source.WEBHOOK)
    except SubmissionError as e:
        logger.info("Webhook: rejected (%d) %s", e.status, e.message)
        return JSONResponse({"error": e.message}, status_code=e.status)

    store.write_prediction(prediction)
    return {"ok": True, "prediction": prediction.to_dict()}
