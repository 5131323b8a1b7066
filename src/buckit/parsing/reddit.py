"""Reddit post parser: markdown table first, free text as a fallback.

Weekly posts since ~2024 carry a table with prices in cents::

    |Type|Adjustment|New Min Price|
    |:--|:--|:--|
    |Regular| UP 3.6 |162.1|
    |Diesel| DOWN 0.7 |154.4|

Older posts are prose with dollar prices, e.g.
"Gas prices going up this week - currently $1.659/L, next week $1.719/L".

Everything here is a total function over the post text: malformed input
yields ``None`` fields, never an exception.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from decimal import Decimal

from buckit.models.post import ParsedPost, RedditPost
from buckit.models.prediction import Direction, FuelSlot, Prediction, Source
from buckit.parsing.adjustment import NUMBER, normalize_price, parse_adjustment

MAX_NOTES_LENGTH = 500

TABLE_ROW_RE = re.compile(
    rf"\|\s*(regular|gas(?:oline)?|diesel)\s*\|\s*([^|]+)\|\s*({NUMBER})\s*\|",
    re.IGNORECASE,
)

_UP_RE = re.compile(r"\bup\b|increas|higher|rise|raising")
_DOWN_RE = re.compile(r"\bdown\b|decreas|lower|drop|fall|reduc")
_NO_CHANGE_RE = re.compile(r"no.?change")
DOLLAR_PRICE_RE = re.compile(r"\$(\d+\.\d{2,3})")
_DIESEL_RE = re.compile(r"diesel")

# Lines dropped from notes: table rows and alignment rows
_TABLE_LINE_PREFIXES = ("|", ":-")


def extract_table(text: str) -> tuple[FuelSlot | None, FuelSlot | None]:
    """Return ``(gas, diesel)`` from table rows; a later row for a slot wins."""
    gas: FuelSlot | None = None
    diesel: FuelSlot | None = None
    for m in TABLE_ROW_RE.finditer(text):
        fuel, adj_cell, price_cell = m.groups()
        adjustment = parse_adjustment(adj_cell)
        slot = FuelSlot(
            direction=adjustment.direction,
            adjustment=adjustment.amount,
            price=normalize_price(Decimal(price_cell)),
        )
        if fuel.lower() == "diesel":
            diesel = slot
        else:
            gas = slot
    return gas, diesel


def extract_free_text(text: str) -> tuple[FuelSlot | None, FuelSlot | None]:
    """Infer a single slot from prose. Returns ``(gas, diesel)``, one of them None."""
    lowered = text.lower()

    # Later checks overwrite earlier ones: no-change > down > up
    direction: Direction | None = None
    if _UP_RE.search(lowered):
        direction = Direction.UP
    if _DOWN_RE.search(lowered):
        direction = Direction.DOWN
    if _NO_CHANGE_RE.search(lowered):
        direction = Direction.NO_CHANGE

    # "currently $1.659/L, next week $1.719/L": the second amount is the prediction
    prices = [Decimal(p) for p in DOLLAR_PRICE_RE.findall(text)]
    if len(prices) >= 2:
        price: Decimal | None = prices[1]
    elif prices:
        price = prices[0]
    else:
        price = None

    slot = FuelSlot(direction=direction, adjustment=None, price=price)
    if _DIESEL_RE.search(lowered):
        return None, slot
    return slot, None


def extract_notes(selftext: str) -> str | None:
    """Free text of the body with table lines removed, capped at 500 chars."""
    kept = [
        line for line in selftext.split("\n")
        if not line.strip().startswith(_TABLE_LINE_PREFIXES)
    ]
    notes = " ".join(kept).strip()
    return notes[:MAX_NOTES_LENGTH] if notes else None


def parse_reddit_post(post: RedditPost) -> ParsedPost:
    selftext = post.selftext or ""
    full_text = f"{post.title} {selftext}"

    gas, diesel = extract_table(full_text)
    if gas is None and diesel is None:
        gas, diesel = extract_free_text(full_text)

    return ParsedPost(gas=gas, diesel=diesel, notes=extract_notes(selftext))


def build_reddit_prediction(post: RedditPost, now: datetime | None = None) -> Prediction:
    """Parse ``post`` into a ``reddit``-sourced Prediction."""
    parsed = parse_reddit_post(post)
    return Prediction(
        gas=parsed.gas,
        diesel=parsed.diesel,
        notes=parsed.notes,
        source=Source.REDDIT,
        updated_at=now or datetime.now(UTC),
        post_id=post.id or None,
        post_url=post.url if post.permalink else None,
        reddit_title=post.title or None,
    )
