"""Display helpers for the public page: Halifax-local dates and sign-board cards."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from buckit.models.prediction import Direction, FuelSlot, FuelType, Prediction, parse_timestamp

HALIFAX_TZ = ZoneInfo("America/Halifax")

NOTES_PREVIEW_CHARS = 80

_ARROWS = {
    Direction.UP: "↑",
    Direction.DOWN: "↓",
    Direction.NO_CHANGE: "=",
}
_ARROW_LABELS = {
    Direction.UP: "Price going up",
    Direction.DOWN: "Price going down",
    Direction.NO_CHANGE: "No change",
}
_DIRECTION_LABELS = {
    Direction.UP: "▲ UP",
    Direction.DOWN: "▼ DOWN",
    Direction.NO_CHANGE: "= NO CHANGE",
}
_FUEL_LABELS = {FuelType.GAS: "Regular", FuelType.DIESEL: "Diesel"}


def _as_datetime(value: str | datetime | None) -> datetime | None:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    return parse_timestamp(value)


def format_date(value: str | datetime | None) -> str:
    """Full Halifax-local date and time, e.g. ``Thursday, January 15, 2026 at 9:00 a.m.``"""
    ts = _as_datetime(value)
    if ts is None:
        return "Unknown"
    local = ts.astimezone(HALIFAX_TZ)
    hour = local.hour % 12 or 12
    meridiem = "a.m." if local.hour < 12 else "p.m."
    return (
        f"{local.strftime('%A, %B')} {local.day}, {local.year} "
        f"at {hour}:{local.minute:02d} {meridiem}"
    )


def format_relative_time(value: str | datetime | None, now: datetime | None = None) -> str:
    ts = _as_datetime(value)
    if ts is None:
        return ""
    diff = ((now or datetime.now(UTC)) - ts).total_seconds()
    minutes = int(diff // 60)
    hours = int(diff // 3600)
    days = int(diff // 86400)
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    if hours < 24:
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    return f"{days} day{'s' if days != 1 else ''} ago"


def short_date(value: str | datetime | None) -> str | None:
    """``Jan 15`` in Halifax time, or None."""
    ts = _as_datetime(value)
    if ts is None:
        return None
    local = ts.astimezone(HALIFAX_TZ)
    return f"{local.strftime('%b')} {local.day}"


def format_adjustment(slot: FuelSlot | None) -> str:
    """Signed cents for up/down, ``No Change`` for no-change, ``–`` otherwise."""
    direction = slot.direction if slot else None
    if direction in (Direction.UP, Direction.DOWN) and slot.adjustment is not None:
        sign = "+" if direction == Direction.UP else "−"
        return f"{sign}{float(slot.adjustment):.1f}¢"
    if direction == Direction.NO_CHANGE:
        return "No Change"
    return "–"


def format_price(price: Decimal | None, per_litre: bool = True) -> str:
    if price is None:
        return ""
    return f"${float(price):.3f}{'/L' if per_litre else ''}"


@dataclass(frozen=True)
class FuelCard:
    """View model for one sign-board card."""

    fuel_type: FuelType
    label: str
    direction: str
    arrow: str
    arrow_label: str
    direction_label: str
    adjustment: str
    price: str
    empty: bool


def fuel_card(fuel_type: FuelType, slot: FuelSlot | None) -> FuelCard:
    direction = slot.direction if slot else None
    return FuelCard(
        fuel_type=fuel_type,
        label=_FUEL_LABELS[fuel_type],
        direction=direction.value if direction else "none",
        arrow=_ARROWS.get(direction, "–"),
        arrow_label=_ARROW_LABELS.get(direction, "No prediction"),
        direction_label=_DIRECTION_LABELS.get(direction, ""),
        adjustment=format_adjustment(slot),
        price=format_price(slot.price if slot else None),
        empty=slot is None,
    )


@dataclass(frozen=True)
class HistoryFuel:
    fuel_type: FuelType
    direction: str
    arrow: str
    adjustment: str
    price: str


@dataclass(frozen=True)
class HistoryEntry:
    fuels: list[HistoryFuel]
    relative_time: str
    notes: str


def _history_fuel(fuel_type: FuelType, slot: FuelSlot) -> HistoryFuel:
    direction = slot.direction
    if direction in (Direction.UP, Direction.DOWN):
        adjustment = format_adjustment(slot) if slot.adjustment is not None else ""
    elif direction == Direction.NO_CHANGE:
        adjustment = "="
    else:
        adjustment = ""
    return HistoryFuel(
        fuel_type=fuel_type,
        direction=direction.value if direction else "none",
        arrow=_ARROWS.get(direction, "–"),
        adjustment=adjustment,
        price=format_price(slot.price, per_litre=False),
    )


def history_entry(prediction: Prediction, now: datetime | None = None) -> HistoryEntry:
    fuels = [
        _history_fuel(fuel_type, slot)
        for fuel_type, slot in ((FuelType.GAS, prediction.gas), (FuelType.DIESEL, prediction.diesel))
        if slot is not None
    ]
    notes = prediction.notes or ""
    if len(notes) > NOTES_PREVIEW_CHARS:
        notes = notes[:NOTES_PREVIEW_CHARS] + "…"
    return HistoryEntry(
        fuels=fuels,
        relative_time=format_relative_time(prediction.updated_at, now),
        notes=notes,
    )


def build_chart_data(history: list[Prediction]) -> dict:
    """Chart.js series, oldest first, with None gaps for missing prices."""
    ordered = list(reversed(history))
    labels = [
        short_date(p.updated_at) or f"#{i + 1}"
        for i, p in enumerate(ordered)
    ]

    def series(fuel_type: FuelType) -> list[float | None]:
        values = []
        for p in ordered:
            slot = p.slot(fuel_type)
            values.append(float(slot.price) if slot and slot.price is not None else None)
        return values

    return {"labels": labels, "gas": series(FuelType.GAS), "diesel": series(FuelType.DIESEL)}


def summarize(prediction: Prediction) -> str:
    """One-line description, e.g. ``gas up to $1.621/L, diesel down to $1.789/L``."""
    parts = []
    for fuel_type in (FuelType.GAS, FuelType.DIESEL):
        slot = prediction.slot(fuel_type)
        if slot is None:
            continue
        direction = slot.direction.value if slot.direction else "unknown"
        price = format_price(slot.price) or "unknown"
        parts.append(f"{fuel_type.value} {direction} to {price}")
    return ", ".join(parts)
