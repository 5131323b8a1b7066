"""Validation for manually submitted predictions (webhook and MCP tool).

Two wire shapes are accepted and converge on the same canonical Prediction:

    dual-fuel: {"gas"?: {direction, adjustment?, price?}, "diesel"?: {...}, "notes"?}
    legacy:    {"direction", "predicted_price", "current_price"?, "fuel_type"?, "notes"?}

An object carrying a ``gas`` or ``diesel`` key is dual-fuel; anything else is
treated as legacy. Authentication is always checked before the schema.
"""

from __future__ import annotations

import hmac
import logging
import math
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from buckit.models.prediction import Direction, FuelSlot, FuelType, Prediction, Source

logger = logging.getLogger(__name__)

MAX_NOTES_LENGTH = 500
_DIRECTIONS = ", ".join(d.value for d in Direction)


class SubmissionError(Exception):
    """Rejected submission carrying an HTTP-style status code."""

    status: int = 400

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status

    def to_dict(self) -> dict:
        return {"error": self.message, "status": self.status}


class InvalidSubmission(SubmissionError):
    status = 400


class Unauthorized(SubmissionError):
    status = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class SlotSubmission:
    direction: Direction
    adjustment: Decimal | None = None
    price: Decimal | None = None


@dataclass(frozen=True)
class DualFuelSubmission:
    gas: SlotSubmission | None
    diesel: SlotSubmission | None
    notes: str | None


@dataclass(frozen=True)
class LegacySubmission:
    direction: Direction
    predicted_price: Decimal
    fuel_type: FuelType = FuelType.GAS
    current_price: Decimal | None = None
    notes: str | None = None


Submission = DualFuelSubmission | LegacySubmission


def authenticate(token: str | None, secret: str | None) -> None:
    """Raise Unauthorized unless ``token`` matches the configured secret."""
    if not token or not secret:
        raise Unauthorized()
    if not hmac.compare_digest(token.encode(), secret.encode()):
        raise Unauthorized()


def is_number(value: Any) -> bool:
    """JSON number check: finite int/float, booleans excluded."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _decimal(value: int | float) -> Decimal:
    return Decimal(str(value))


def _normalize_notes(notes: Any) -> str | None:
    if not notes:
        return None
    return str(notes)[:MAX_NOTES_LENGTH]


def _parse_direction(value: Any, message: str) -> Direction:
    try:
        return Direction(value)
    except ValueError:
        raise InvalidSubmission(message) from None


def _parse_slot(raw: Any, name: str) -> SlotSubmission | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise InvalidSubmission(f"{name} must be an object")

    direction = _parse_direction(
        raw.get("direction"), f"{name}.direction must be one of: {_DIRECTIONS}"
    )

    price = raw.get("price")
    if price is not None and not is_number(price):
        raise InvalidSubmission(f"{name}.price must be a number if provided")

    adjustment = raw.get("adjustment")
    if adjustment is not None and (not is_number(adjustment) or adjustment < 0):
        raise InvalidSubmission(f"{name}.adjustment must be a non-negative number if provided")

    return SlotSubmission(
        direction=direction,
        adjustment=_decimal(adjustment) if adjustment is not None else None,
        price=_decimal(price) if price is not None else None,
    )


def parse_submission(payload: Any) -> Submission:
    """Classify and check a raw JSON payload. Raises InvalidSubmission."""
    if not isinstance(payload, dict):
        raise InvalidSubmission("Payload must be a JSON object")

    if "gas" in payload or "diesel" in payload:
        return DualFuelSubmission(
            gas=_parse_slot(payload.get("gas"), "gas"),
            diesel=_parse_slot(payload.get("diesel"), "diesel"),
            notes=_normalize_notes(payload.get("notes")),
        )

    direction = _parse_direction(
        payload.get("direction"),
        f"Invalid direction, must be one of: {_DIRECTIONS}",
    )

    raw_fuel = payload.get("fuel_type", FuelType.GAS.value)
    try:
        fuel_type = FuelType(raw_fuel)
    except ValueError:
        raise InvalidSubmission('Invalid fuel_type, must be "gas" or "diesel"') from None

    predicted = payload.get("predicted_price")
    if not is_number(predicted):
        raise InvalidSubmission("predicted_price must be a number")

    current: Decimal | None = None
    if "current_price" in payload:
        raw_current = payload["current_price"]
        if not is_number(raw_current):
            raise InvalidSubmission("current_price must be a number if provided")
        current = _decimal(raw_current)

    return LegacySubmission(
        direction=direction,
        predicted_price=_decimal(predicted),
        fuel_type=fuel_type,
        current_price=current,
        notes=_normalize_notes(payload.get("notes")),
    )


def _to_fuel_slot(slot: SlotSubmission | None) -> FuelSlot | None:
    if slot is None:
        return None
    adjustment = slot.adjustment
    if adjustment is None and slot.direction == Direction.NO_CHANGE:
        adjustment = Decimal("0")
    return FuelSlot(direction=slot.direction, adjustment=adjustment, price=slot.price)


def to_prediction(
    submission: Submission,
    source: Source,
    now: datetime | None = None,
) -> Prediction:
    """Translate either wire shape into the canonical dual-slot Prediction."""
    if isinstance(submission, LegacySubmission):
        slot = SlotSubmission(direction=submission.direction, price=submission.predicted_price)
        if submission.current_price is not None:
            logger.debug("Dropping current_price %s from legacy submission", submission.current_price)
        if submission.fuel_type == FuelType.DIESEL:
            gas, diesel = None, _to_fuel_slot(slot)
        else:
            gas, diesel = _to_fuel_slot(slot), None
    else:
        gas, diesel = _to_fuel_slot(submission.gas), _to_fuel_slot(submission.diesel)

    return Prediction(
        gas=gas,
        diesel=diesel,
        notes=submission.notes,
        source=source,
        updated_at=now or datetime.now(UTC),
        post_id=None,
    )


def validate_payload(
    payload: Any,
    source: Source = Source.WEBHOOK,
    now: datetime | None = None,
) -> Prediction:
    return to_prediction(parse_submission(payload), source, now)


def validate_submission(
    payload: Any,
    token: str | None,
    secret: str | None,
    source: Source = Source.WEBHOOK,
    now: datetime | None = None,
) -> Prediction:
    """Authenticate, then validate and normalize ``payload``.

    Raises:
        Unauthorized: bad or missing token (checked first).
        InvalidSubmission: schema violation.
    """
    authenticate(token, secret)
    return validate_payload(payload, source, now)
