"""MCP tools over the prediction store, served as JSON-RPC 2.0.

Read tools are public. ``post_prediction`` and ``trigger_reddit_scan`` need
the webhook secret in their ``secret`` argument.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Literal

from pydantic import BaseModel, ValidationError

from buckit.config import AppConfig
from buckit.models.prediction import Source
from buckit.scanner import Scanner
from buckit.storage.predictions import PredictionStore
from buckit.validation import SubmissionError, authenticate, validate_submission

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
SERVER_INFO = {"name": "hfxgas", "version": "0.1.0"}
MAX_HISTORY_LIMIT = 10

# JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602

_SLOT_SCHEMA = {
    "type": "object",
    "properties": {
        "direction": {"type": "string", "enum": ["up", "down", "no-change"]},
        "adjustment": {"type": "number"},
        "price": {"type": "number"},
    },
    "required": ["direction"],
}

TOOLS = [
    {
        "name": "get_latest_prediction",
        "description": "Latest Halifax gas and diesel price prediction, or null.",
        "inputSchema": {"type": "object", "properties": {}},
    },
    {
        "name": "get_prediction_history",
        "description": "Most recent predictions first (max 10).",
        "inputSchema": {
            "type": "object",
            "properties": {"limit": {"type": "integer", "minimum": 1, "maximum": MAX_HISTORY_LIMIT}},
        },
    },
    {
        "name": "get_status",
        "description": "Last update time, last processed Reddit post and latest image key.",
        "inputSchema": {"type": "object", "properties": {}},
    },
    {
        "name": "post_prediction",
        "description": (
            "Submit a manual prediction. Accepts {gas, diesel, notes} or the legacy "
            "{direction, predicted_price, fuel_type, current_price, notes}. Requires secret."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "secret": {"type": "string"},
                "gas": _SLOT_SCHEMA,
                "diesel": _SLOT_SCHEMA,
                "direction": {"type": "string", "enum": ["up", "down", "no-change"]},
                "predicted_price": {"type": "number"},
                "current_price": {"type": "number"},
                "fuel_type": {"type": "string", "enum": ["gas", "diesel"]},
                "notes": {"type": "string"},
            },
            "required": ["secret"],
        },
    },
    {
        "name": "trigger_reddit_scan",
        "description": "Run the Reddit scan now. Requires secret.",
        "inputSchema": {
            "type": "object",
            "properties": {"secret": {"type": "string"}},
            "required": ["secret"],
        },
    },
]


class RpcRequest(BaseModel):
    jsonrpc: Literal["2.0"]
    method: str
    id: int | str | None = None
    params: dict[str, Any] | None = None


class UnknownTool(Exception):
    pass


class PredictionTools:
    """Implementations of the MCP tools."""

    def __init__(self, config: AppConfig, store: PredictionStore, scanner: Scanner | None = None) -> None:
        self._config = config
        self._store = store
        self._scanner = scanner

    def get_latest_prediction(self) -> dict | None:
        return self._store.get_latest_raw()

    def get_prediction_history(self, limit: int = MAX_HISTORY_LIMIT) -> list[dict]:
        try:
            limit = int(limit)
        except (TypeError, ValueError):
            limit = MAX_HISTORY_LIMIT
        return self._store.get_history_raw(max(1, min(limit, MAX_HISTORY_LIMIT)))

    def get_status(self) -> dict:
        return self._store.status()

    def post_prediction(self, arguments: dict) -> dict:
        payload = {k: v for k, v in arguments.items() if k != "secret"}
        try:
            prediction = validate_submission(
                payload, arguments.get("secret"), self._config.webhook_secret, Source.MCP
            )
        except SubmissionError as e:
            return e.to_dict()
        self._store.write_prediction(prediction)
        return {"ok": True, "prediction": prediction.to_dict()}

    async def trigger_reddit_scan(self, arguments: dict) -> dict:
        try:
            authenticate(arguments.get("secret"), self._config.webhook_secret)
        except SubmissionError as e:
            return e.to_dict()
        if self._scanner is None:
            return {"error": "Scanner not configured", "status": 503}
        result = await self._scanner.run()
        return {"ok": True, "message": "Reddit scan triggered", "result": result.to_dict()}

    async def call(self, name: str, arguments: dict) -> Any:
        if name == "get_latest_prediction":
            return self.get_latest_prediction()
        if name == "get_prediction_history":
            return self.get_prediction_history(arguments.get("limit", MAX_HISTORY_LIMIT))
        if name == "get_status":
            return self.get_status()
        if name == "post_prediction":
            return self.post_prediction(arguments)
        if name == "trigger_reddit_scan":
            return await self.trigger_reddit_scan(arguments)
        raise UnknownTool(name)


def _result(request_id: Any, result: Any) -> dict:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def _error(request_id: Any, code: int, message: str) -> dict:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


def _tool_content(value: Any) -> dict:
    is_error = isinstance(value, dict) and "error" in value and "status" in value
    return {
        "content": [{"type": "text", "text": json.dumps(value)}],
        "isError": is_error,
    }


async def handle_rpc(tools: PredictionTools, message: Any) -> dict | None:
    """Dispatch one JSON-RPC message. Returns None for notifications."""
    try:
        request = RpcRequest.model_validate(message)
    except ValidationError:
        request_id = message.get("id") if isinstance(message, dict) else None
        return _error(request_id, INVALID_REQUEST, "Invalid Request")

    request_id = request.id
    method = request.method
    params = request.params or {}

    if method.startswith("notifications/"):
        return None
    if method == "initialize":
        return _result(request_id, {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {}},
            "serverInfo": SERVER_INFO,
        })
    if method == "ping":
        return _result(request_id, {})
    if method == "tools/list":
        return _result(request_id, {"tools": TOOLS})
    if method == "tools/call":
        name = params.get("name")
        arguments = params.get("arguments") or {}
        if not isinstance(arguments, dict):
            return _error(request_id, INVALID_PARAMS, "arguments must be an object")
        try:
            value = await tools.call(name, arguments)
        except UnknownTool:
            return _error(request_id, INVALID_PARAMS, f"Unknown tool: {name}")
        logger.debug("MCP tool %s called", name)
        return _result(request_id, _tool_content(value))

    return _error(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")
