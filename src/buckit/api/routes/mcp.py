"""MCP endpoint: JSON-RPC 2.0 over HTTP POST."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from buckit.api.deps import app_state, get_config, get_store
from buckit.config import AppConfig
from buckit.mcp import PARSE_ERROR, PredictionTools, handle_rpc
from buckit.storage.predictions import PredictionStore

router = APIRouter()


@router.post("/mcp")
async def mcp(
    request: Request,
    store: PredictionStore = Depends(get_store),
    config: AppConfig = Depends(get_config),
):
    try:
        message = json.loads(await request.body())
    except ValueError:
        return JSONResponse(
            {"jsonrpc": "2.0", "id": None, "error": {"code": PARSE_ERROR, "message": "Parse error"}}
        )

    tools = PredictionTools(config, store, app_state.scanner)
    reply = await handle_rpc(tools, message)
    if reply is None:
        return Response(status_code=202)
    return JSONResponse(reply)
