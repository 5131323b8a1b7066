"""Single-phrase grammar: adjustment phrases and litre prices."""

from __future__ import annotations

import re
from decimal import Decimal
from typing import NamedTuple

from buckit.models.prediction import Direction

# Unsigned decimal, e.g. "3.6", "162.1", ".5", "4."
NUMBER = r"\d+(?:\.\d*)?|\.\d+"

_NO_CHANGE_RE = re.compile(r"no.?change")
_DIRECTED_AMOUNT_RE = re.compile(rf"^(up|down)\s+({NUMBER})")
_BARE_UP_RE = re.compile(r"\bup\b")
_BARE_DOWN_RE = re.compile(r"\bdown\b")

# Litre prices above this are quoted in cents (162.1 -> $1.621/L)
CENTS_THRESHOLD = Decimal("10")


class Adjustment(NamedTuple):
    direction: Direction | None
    amount: Decimal | None


def parse_adjustment(phrase: str) -> Adjustment:
    """Parse a phrase like "UP 3.6", "DOWN 0.7" or "NO CHANGE".

    Unparseable input gives ``Adjustment(None, None)``; callers treat a
    missing direction as "no usable signal".
    """
    s = phrase.strip().lower()
    if _NO_CHANGE_RE.search(s):
        return Adjustment(Direction.NO_CHANGE, Decimal("0"))
    m = _DIRECTED_AMOUNT_RE.match(s)
    if m:
        return Adjustment(Direction(m.group(1)), Decimal(m.group(2)))
    if _BARE_UP_RE.search(s):
        return Adjustment(Direction.UP, None)
    if _BARE_DOWN_RE.search(s):
        return Adjustment(Direction.DOWN, None)
    return Adjustment(None, None)


def normalize_price(value: Decimal | float | str) -> Decimal:
    """Convert a raw litre price to dollars.

    Values above 10 are taken as cents. Exactly 10 stays in dollars.
    """
    price = value if isinstance(value, Decimal) else Decimal(str(value))
    if price > CENTS_THRESHOLD:
        return price / 100
    return price
