"""Public site: HTML page, stored images, and crawler resources."""

from __future__ import annotations

import re

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from buckit.api.deps import get_config, get_store
from buckit.config import AppConfig
from buckit.render.pages import render_index, render_llms_txt, render_robots, render_sitemap
from buckit.storage.predictions import PredictionStore, image_key_for

router = APIRouter()

IMAGE_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")
IMAGE_CACHE = "public, max-age=31536000, immutable"


@router.get("/", response_class=HTMLResponse)
def index(
    store: PredictionStore = Depends(get_store),
    config: AppConfig = Depends(get_config),
) -> HTMLResponse:
    html = render_index(
        store.get_latest(),
        store.get_history(),
        store.get_image_key(),
        config.site_url,
    )
    return HTMLResponse(html, headers={"cache-control": "no-store"})


@router.get("/images/{name}.png")
def image(name: str, store: PredictionStore = Depends(get_store)) -> Response:
    if not IMAGE_NAME_RE.match(name):
        raise HTTPException(status_code=404, detail="Not Found")
    data = store.get_image(image_key_for(name))
    if data is None:
        raise HTTPException(status_code=404, detail="Not Found")
    return Response(data, media_type="image/png", headers={"cache-control": IMAGE_CACHE})


@router.get("/robots.txt", response_class=PlainTextResponse)
def robots(config: AppConfig = Depends(get_config)) -> PlainTextResponse:
    return PlainTextResponse(render_robots(config.site_url))


@router.get("/sitemap.xml")
def sitemap(
    store: PredictionStore = Depends(get_store),
    config: AppConfig = Depends(get_config),
) -> Response:
    xml = render_sitemap(store.get_latest(), config.site_url)
    return Response(xml, media_type="application/xml; charset=utf-8")


@router.get("/llms.txt", response_class=PlainTextResponse)
def llms_txt(
    store: PredictionStore = Depends(get_store),
    config: AppConfig = Depends(get_config),
) -> PlainTextResponse:
    return PlainTextResponse(render_llms_txt(store.get_latest(), config.site_url))
