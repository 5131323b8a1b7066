from __future__ import annotations

from buckit.render.formatting import (
    FuelCard,
    build_chart_data,
    format_date,
    format_relative_time,
    fuel_card,
)
from buckit.render.pages import render_index, render_llms_txt, render_robots, render_sitemap

__all__ = [
    "FuelCard",
    "build_chart_data",
    "format_date",
    "format_relative_time",
    "fuel_card",
    "render_index",
    "render_llms_txt",
    "render_robots",
    "render_sitemap",
]
