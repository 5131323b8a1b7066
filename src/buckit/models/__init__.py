from __future__ import annotations

from buckit.models.post import ParsedPost, RedditPost
from buckit.models.prediction import (
    Direction,
    FuelSlot,
    FuelType,
    Prediction,
    Source,
    format_timestamp,
    parse_timestamp,
)

__all__ = [
    # prediction
    "Direction",
    "FuelType",
    "Source",
    "FuelSlot",
    "Prediction",
    "format_timestamp",
    "parse_timestamp",
    # post
    "RedditPost",
    "ParsedPost",
]
