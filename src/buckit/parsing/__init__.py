from __future__ import annotations

from buckit.parsing.adjustment import Adjustment, normalize_price, parse_adjustment
from buckit.parsing.reddit import (
    build_reddit_prediction,
    extract_free_text,
    extract_notes,
    extract_table,
    parse_reddit_post,
)

__all__ = [
    "Adjustment",
    "parse_adjustment",
    "normalize_price",
    "extract_table",
    "extract_free_text",
    "extract_notes",
    "parse_reddit_post",
    "build_reddit_prediction",
]
