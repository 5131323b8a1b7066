from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import Any


class Direction(StrEnum):
    UP = "up"
    DOWN = "down"
    NO_CHANGE = "no-change"


class FuelType(StrEnum):
    GAS = "gas"
    DIESEL = "diesel"


class Source(StrEnum):
    REDDIT = "reddit"
    WEBHOOK = "webhook"
    MCP = "mcp"


@dataclass(frozen=True)
class FuelSlot:
    direction: Direction | None
    adjustment: Decimal | None = None
    price: Decimal | None = None

    def to_dict(self) -> dict:
        return {
            "direction": self.direction.value if self.direction else None,
            "adjustment": _to_number(self.adjustment),
            "price": _to_number(self.price),
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> FuelSlot | None:
        if not data:
            return None
        raw_dir = data.get("direction")
        return cls(
            direction=Direction(raw_dir) if raw_dir else None,
            adjustment=_to_decimal(data.get("adjustment")),
            price=_to_decimal(data.get("price")),
        )


@dataclass(frozen=True)
class Prediction:
    gas: FuelSlot | None
    diesel: FuelSlot | None
    notes: str | None
    source: Source
    updated_at: datetime
    post_id: str | None = None
    post_url: str | None = None
    reddit_title: str | None = None
    image_key: str | None = None

    @property
    def primary_direction(self) -> Direction | None:
        """Gas direction, falling back to diesel."""
        if self.gas and self.gas.direction:
            return self.gas.direction
        if self.diesel and self.diesel.direction:
            return self.diesel.direction
        return None

    def slot(self, fuel_type: FuelType) -> FuelSlot | None:
        return self.gas if fuel_type == FuelType.GAS else self.diesel

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "gas": self.gas.to_dict() if self.gas else None,
            "diesel": self.diesel.to_dict() if self.diesel else None,
            "notes": self.notes,
            "source": self.source.value,
            "post_id": self.post_id,
            "updated_at": format_timestamp(self.updated_at),
        }
        for key in ("post_url", "reddit_title", "image_key"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Prediction:
        return cls(
            gas=FuelSlot.from_dict(data.get("gas")),
            diesel=FuelSlot.from_dict(data.get("diesel")),
            notes=data.get("notes"),
            source=Source(data.get("source", Source.REDDIT.value)),
            updated_at=parse_timestamp(data.get("updated_at")) or datetime.fromtimestamp(0, UTC),
            post_id=data.get("post_id"),
            post_url=data.get("post_url"),
            reddit_title=data.get("reddit_title"),
            image_key=data.get("image_key"),
        )


def format_timestamp(ts: datetime) -> str:
    """ISO 8601 in UTC with millisecond precision and a Z suffix."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        ts = datetime.fromisoformat(value)
    except (ValueError, TypeError):
        return None
    return ts if ts.tzinfo else ts.replace(tzinfo=UTC)


def _to_number(value: Decimal | None) -> float | int | None:
    if value is None:
        return None
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _to_decimal(value: Any) -> Decimal | None:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
