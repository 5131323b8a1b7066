from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from buckit.models.prediction import Direction

MAX_CONTEXT_TITLES = 20
MAX_TITLE_CHARS = 60

SEASON_CONTEXT = {
    "winter": "Halifax winter blizzard, heavy snowfall, pothole season, Canadian drivers scraping windshields",
    "spring": "Halifax spring thaw, potholes everywhere, mud season, April showers",
    "summer": "Halifax summer road trip, beach vibes, lobster season, sunny Maritime highway",
    "fall": "Halifax fall foliage, East Coast rain and wind, pre-winter anxiety, foggy Nova Scotia",
}


def get_season(date: datetime) -> str:
    """Season for the date's UTC month."""
    month = date.astimezone(UTC).month if date.tzinfo else date.month
    if month == 12 or month <= 2:
        return "winter"
    if month <= 5:
        return "spring"
    if month <= 8:
        return "summer"
    return "fall"


def build_image_prompt(
    direction: Direction,
    post_id: str,
    community_context: Sequence[str] = (),
    date: datetime | None = None,
) -> str:
    """Meme prompt for the week's direction.

    Uses this week's top community titles when there are any, else a
    seasonal Halifax scene.
    """
    is_up = direction == Direction.UP
    label = "going UP" if is_up else "going DOWN"
    mood = (
        "suffering, despair, Canadians crying at the pump"
        if is_up
        else "celebration, relief, Canadians cheering"
    )

    if community_context:
        topics = "; ".join(t[:MAX_TITLE_CHARS].strip() for t in community_context[:MAX_CONTEXT_TITLES])
        context = f"This week in Halifax and Nova Scotia: {topics}"
    else:
        context = SEASON_CONTEXT[get_season(date or datetime.now(UTC))]

    return (
        f"Halifax Nova Scotia gas prices {label} this week. {context}. "
        f"{mood}. Funny editorial cartoon meme, work-safe, vibrant flat design colours, "
        f"bold text space at top, Canadian humour, no text in image. "
        f"Seed context: {post_id[:8]}."
    )
