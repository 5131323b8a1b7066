from __future__ import annotations

import json
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from buckit.models.prediction import Direction, FuelSlot, Source
from buckit.validation import (
    DualFuelSubmission,
    InvalidSubmission,
    LegacySubmission,
    SubmissionError,
    Unauthorized,
    authenticate,
    is_number,
    parse_submission,
    validate_payload,
    validate_submission,
)

NOW = datetime(2026, 1, 15, 13, 0, tzinfo=UTC)
SECRET = "s3cret"


class TestAuthenticate:
    def test_matching_token(self) -> None:
        authenticate(SECRET, SECRET)

    @pytest.mark.parametrize("token", [None, "", "wrong", "s3cret "])
    def test_bad_token(self, token) -> None:
        with pytest.raises(Unauthorized) as exc_info:
            authenticate(token, SECRET)
        assert exc_info.value.status == 401

    def test_empty_secret_rejects_everything(self) -> None:
        with pytest.raises(Unauthorized):
            authenticate("", "")
        with pytest.raises(Unauthorized):
            authenticate("anything", "")


class TestIsNumber:
    @pytest.mark.parametrize("value", [0, 1, 1.5, -2.25])
    def test_numbers(self, value) -> None:
        assert is_number(value)

    @pytest.mark.parametrize("value", [True, False, None, "1.5", float("nan"), float("inf"), [1], 10**400])
    def test_not_numbers(self, value) -> None:
        assert not is_number(value)


class TestParseSubmission:
    def test_dual_fuel_shape(self) -> None:
        sub = parse_submission({
            "gas": {"direction": "up", "adjustment": 3.6, "price": 1.621},
            "notes": "hello",
        })
        assert isinstance(sub, DualFuelSubmission)
        assert sub.gas.direction == Direction.UP
        assert sub.gas.adjustment == Decimal("3.6")
        assert sub.diesel is None
        assert sub.notes == "hello"

    def test_legacy_shape(self) -> None:
        sub = parse_submission({"direction": "down", "predicted_price": 1.5, "fuel_type": "diesel"})
        assert isinstance(sub, LegacySubmission)
        assert sub.direction == Direction.DOWN
        assert sub.predicted_price == Decimal("1.5")

    def test_null_gas_key_is_still_dual_fuel(self) -> None:
        sub = parse_submission({"gas": None, "diesel": {"direction": "no-change"}})
        assert isinstance(sub, DualFuelSubmission)
        assert sub.gas is None

    def test_not_an_object(self) -> None:
        with pytest.raises(InvalidSubmission, match="Payload must be a JSON object"):
            parse_submission(["up"])

    def test_sideways_direction(self) -> None:
        with pytest.raises(InvalidSubmission) as exc_info:
            parse_submission({"direction": "sideways", "predicted_price": 1.5})
        assert exc_info.value.status == 400
        assert "Invalid direction" in exc_info.value.message

    def test_slot_direction(self) -> None:
        with pytest.raises(InvalidSubmission, match=r"diesel\.direction must be one of: up, down, no-change"):
            parse_submission({"diesel": {"direction": "sideways"}})

    def test_slot_must_be_object(self) -> None:
        with pytest.raises(InvalidSubmission, match="gas must be an object"):
            parse_submission({"gas": "up"})

    def test_slot_price_type(self) -> None:
        with pytest.raises(InvalidSubmission, match=r"gas\.price must be a number if provided"):
            parse_submission({"gas": {"direction": "up", "price": "1.6"}})

    def test_slot_null_price_allowed(self) -> None:
        sub = parse_submission({"gas": {"direction": "up", "price": None}})
        assert sub.gas.price is None

    def test_negative_adjustment(self) -> None:
        with pytest.raises(InvalidSubmission, match="non-negative"):
            parse_submission({"gas": {"direction": "down", "adjustment": -1}})

    def test_bad_fuel_type(self) -> None:
        with pytest.raises(InvalidSubmission, match="Invalid fuel_type"):
            parse_submission({"direction": "up", "predicted_price": 1.5, "fuel_type": "propane"})

    def test_missing_predicted_price(self) -> None:
        with pytest.raises(InvalidSubmission, match="predicted_price must be a number"):
            parse_submission({"direction": "up"})

    def test_oversized_integer_predicted_price(self) -> None:
        payload = json.loads('{"direction": "up", "predicted_price": 1' + "0" * 400 + "}")
        with pytest.raises(InvalidSubmission, match="predicted_price must be a number"):
            validate_payload(payload)

    def test_oversized_integer_slot_price(self) -> None:
        payload = json.loads('{"gas": {"direction": "up", "price": 1' + "0" * 400 + "}}")
        with pytest.raises(InvalidSubmission, match="gas.price must be a number"):
            validate_payload(payload)

    def test_current_price_type(self) -> None:
        with pytest.raises(InvalidSubmission, match="current_price must be a number if provided"):
            parse_submission({"direction": "up", "predicted_price": 1.5, "current_price": "x"})

    def test_current_price_null_rejected(self) -> None:
        with pytest.raises(InvalidSubmission, match="current_price"):
            parse_submission({"direction": "up", "predicted_price": 1.5, "current_price": None})

    def test_notes_truncated(self) -> None:
        sub = parse_submission({"gas": {"direction": "up"}, "notes": "n" * 700})
        assert len(sub.notes) == 500

    def test_empty_notes_become_none(self) -> None:
        sub = parse_submission({"gas": {"direction": "up"}, "notes": ""})
        assert sub.notes is None


class TestValidatePayload:
    def test_no_change_defaults_adjustment_to_zero(self) -> None:
        p = validate_payload({"gas": {"direction": "no-change", "price": 1.6}}, now=NOW)
        assert p.gas == FuelSlot(Direction.NO_CHANGE, Decimal("0"), Decimal("1.6"))

    def test_legacy_diesel_goes_to_diesel_slot(self) -> None:
        p = validate_payload({"direction": "up", "predicted_price": 1.789, "fuel_type": "diesel"}, now=NOW)
        assert p.gas is None
        assert p.diesel == FuelSlot(Direction.UP, None, Decimal("1.789"))

    def test_legacy_current_price_dropped(self) -> None:
        p = validate_payload({"direction": "up", "predicted_price": 1.7, "current_price": 1.6}, now=NOW)
        data = p.to_dict()
        assert "current_price" not in data
        assert data["gas"]["price"] == 1.7

    def test_source_and_timestamp(self) -> None:
        p = validate_payload({"gas": {"direction": "up"}}, source=Source.MCP, now=NOW)
        assert p.source == Source.MCP
        assert p.updated_at == NOW
        assert p.post_id is None

    def test_legacy_and_dual_fuel_converge(self) -> None:
        legacy = validate_payload(
            {"direction": "up", "predicted_price": 1.719, "fuel_type": "gas", "notes": "hi"},
            now=NOW,
        )
        dual = validate_payload(
            {"gas": {"direction": "up", "price": 1.719}, "notes": "hi"},
            now=NOW,
        )
        assert legacy == dual
        assert legacy.to_dict() == dual.to_dict()


class TestValidateSubmission:
    def test_valid(self) -> None:
        p = validate_submission({"gas": {"direction": "up"}}, SECRET, SECRET, now=NOW)
        assert p.gas.direction == Direction.UP

    def test_auth_checked_before_schema(self) -> None:
        with pytest.raises(SubmissionError) as exc_info:
            validate_submission({"direction": "sideways"}, "wrong", SECRET)
        assert exc_info.value.status == 401

    def test_missing_token_before_schema(self) -> None:
        with pytest.raises(Unauthorized):
            validate_submission("not even an object", None, SECRET)

    def test_error_dict(self) -> None:
        with pytest.raises(SubmissionError) as exc_info:
            validate_submission({"direction": "sideways"}, SECRET, SECRET)
        assert exc_info.value.to_dict() == {
            "error": "Invalid direction, must be one of: up, down, no-change",
            "status": 400,
        }
