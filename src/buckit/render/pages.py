"""Render the public HTML page and the plain-text site resources."""

from __future__ import annotations

from datetime import UTC, datetime
from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from buckit.imaging.prompt import get_season
from buckit.models.prediction import Direction, FuelType, Prediction, format_timestamp
from buckit.render.formatting import (
    build_chart_data,
    format_date,
    format_relative_time,
    fuel_card,
    history_entry,
    summarize,
)

TEMPLATES_DIR = Path(__file__).parent / "templates"


@lru_cache(maxsize=1)
def _get_template_env() -> Environment:
    """Create Jinja2 environment with templates directory."""
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _image_name(image_key: str) -> str:
    return image_key.removeprefix("images/")


def _prepare_index_context(
    prediction: Prediction | None,
    history: list[Prediction],
    image_key: str | None,
    site_url: str,
    now: datetime,
) -> dict:
    direction = prediction.primary_direction if prediction else None
    chart = build_chart_data(history)
    has_chart = any(v is not None for v in chart["gas"] + chart["diesel"])

    if prediction:
        summary = summarize(prediction) or "update available"
        description = (
            f"Halifax fuel prices: {summary}. Community estimate by u/buckit on r/halifax."
        )
    else:
        description = (
            "Halifax gas price prediction, community estimate by u/buckit on r/halifax. "
            "Updated every Thursday."
        )

    image_url = f"/images/{_image_name(image_key)}" if image_key else None
    og_image = f"{site_url}{image_url}" if image_url else f"{site_url}/og-default.png"
    image_alt = (
        "AI-generated illustration: Halifax gas prices "
        f"{'going up' if direction == Direction.UP else 'going down'}, "
        f"{get_season(now)} scene"
    )

    return {
        "prediction": prediction,
        "direction": direction.value if direction else "none",
        "cards": (
            [fuel_card(FuelType.GAS, prediction.gas), fuel_card(FuelType.DIESEL, prediction.diesel)]
            if prediction else []
        ),
        "updated_iso": format_timestamp(prediction.updated_at) if prediction else "",
        "updated_at": format_date(prediction.updated_at) if prediction else "Unknown",
        "relative_time": format_relative_time(prediction.updated_at, now) if prediction else "",
        "image_url": image_url,
        "image_alt": image_alt,
        "history": [history_entry(h, now) for h in history],
        "chart": chart,
        "has_chart": has_chart,
        "description": description,
        "og_image": og_image,
        "site_url": site_url,
    }


def render_index(
    prediction: Prediction | None,
    history: list[Prediction],
    image_key: str | None,
    site_url: str,
    now: datetime | None = None,
) -> str:
    """Render the full public page."""
    template = _get_template_env().get_template("index.html")
    context = _prepare_index_context(
        prediction, history, image_key, site_url, now or datetime.now(UTC)
    )
    return template.render(**context)


def render_llms_txt(prediction: Prediction | None, site_url: str) -> str:
    template = _get_template_env().get_template("llms.txt")
    fuels = []
    if prediction:
        for label, slot in (("Regular gas", prediction.gas), ("Diesel", prediction.diesel)):
            if slot is None:
                continue
            price = f"${float(slot.price):.3f}" if slot.price is not None else "unknown"
            direction = slot.direction.value if slot.direction else "unknown"
            fuels.append(f"{label}: {direction} to {price}/L")
    return template.render(
        prediction=prediction,
        fuels=fuels,
        updated_at=format_timestamp(prediction.updated_at) if prediction else None,
        site_url=site_url,
    )


def render_sitemap(prediction: Prediction | None, site_url: str, now: datetime | None = None) -> str:
    ts = prediction.updated_at if prediction else (now or datetime.now(UTC))
    lastmod = format_timestamp(ts)[:10]
    template = _get_template_env().get_template("sitemap.xml")
    return template.render(site_url=site_url, lastmod=lastmod)


def render_robots(site_url: str) -> str:
    return f"User-agent: *\nAllow: /\n\nSitemap: {site_url}/sitemap.xml\n"
