"""Tests for validation and normalization."""

import math

import pytest

from ledgerlight_core import (
    ErrorKind,
    normalize_record,
    require_collections,
    validate_monetary_value,
    validate_required_fields,
)
from ledgerlight_core.exceptions import ValidationError
from ledgerlight_core.models import DebtRecord, GoalStatus, IncomeRecord
from ledgerlight_core.validation import coerce_reference_date, parse_iso_date


class TestValidateMonetaryValue:
    """Tests for validate_monetary_value."""

    def test_accepts_finite_non_negative(self):
        value, error = validate_monetary_value(1200, "amount")
        assert error is None
        assert value == 1200

    def test_accepts_zero(self):
        value, error = validate_monetary_value(0, "amount")
        assert error is None
        assert value == 0

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -0.01, "100", None, True])
    def test_rejects_invalid(self, bad):
        """NaN, infinities, negatives and non-numbers are VALIDATION errors."""
        value, error = validate_monetary_value(bad, "amount")
        assert value is None
        assert error.kind == ErrorKind.VALIDATION
        assert error.field == "amount"


class TestNormalizeRecord:
    """Tests for normalize_record."""

    def test_fills_tags_and_notes(self):
        """Missing tags and notes get empty defaults."""
        record, error = normalize_record("income", {"amount": 4200, "description": "Salary"})
        assert error is None
        assert isinstance(record, IncomeRecord)
        assert record.tags == []
        assert record.notes == ""

    def test_keeps_interest_rate_on_debt(self):
        record, error = normalize_record("debt", {"amount": 5000, "interestRatePercent": 8.5})
        assert error is None
        assert isinstance(record, DebtRecord)
        assert record.interest_rate_percent == 8.5
        assert record.to_payload()["interestRatePercent"] == 8.5

    def test_is_idempotent(self):
        """Normalizing a normalized record returns an equal record."""
        first, _ = normalize_record("expense", {"category": " Food ", "amount": 12.5, "tags": "weekly, groceries"})
        second, error = normalize_record("expense", first)
        assert error is None
        assert second == first
        assert second.category == "Food"
        assert second.tags == ["weekly", "groceries"]

    def test_keeps_unknown_fields(self):
        record, _ = normalize_record("asset", {"amount": 10, "institution": "Credit Union"})
        assert record.to_payload()["institution"] == "Credit Union"

    def test_rejects_negative_amount(self):
        record, error = normalize_record("expense", {"amount": -5})
        assert record is None
        assert error.kind == ErrorKind.VALIDATION
        assert error.field == "amount"

    def test_rejects_unknown_type(self):
        record, error = normalize_record("pet", {"amount": 1})
        assert record is None
        assert error.field == "recordType"

    def test_accepts_collection_names(self):
        """Collection aliases resolve to their record type."""
        record, error = normalize_record("creditCards", {"item": "Visa", "currentBalance": 100})
        assert error is None
        assert record.current_balance == 100


class TestValidateRequiredFields:
    """Tests for validate_required_fields."""

    def test_expense_needs_category(self):
        record, error = validate_required_fields(
            "expense", {"amount": 100, "date": "2026-02-01", "category": ""}
        )
        assert record is None
        assert error.kind == ErrorKind.VALIDATION
        assert error.field == "category"

    def test_income_needs_iso_date(self):
        _, error = validate_required_fields(
            "income", {"amount": 100, "date": "02/01/2026", "category": "Salary"}
        )
        assert error.field == "date"

    def test_income_needs_valid_amount(self):
        _, error = validate_required_fields(
            "income", {"amount": math.nan, "date": "2026-02-01", "category": "Salary"}
        )
        assert error.field == "amount"

    def test_goal_payload(self):
        goal, error = validate_required_fields(
            "goal",
            {
                "title": "Build emergency fund",
                "status": "in progress",
                "timeframeMonths": 18,
                "description": "Target six months runway",
            },
        )
        assert error is None
        assert goal.status == GoalStatus.IN_PROGRESS
        assert goal.timeframe_months == 18

    @pytest.mark.parametrize("timeframe", [0, -3, 1.5, None, "12"])
    def test_goal_timeframe_must_be_positive_integer(self, timeframe):
        _, error = validate_required_fields("goal", {"title": "Trip", "timeframeMonths": timeframe})
        assert error.field == "timeframeMonths"

    def test_goal_status_must_be_known(self):
        _, error = validate_required_fields(
            "goal", {"title": "Trip", "timeframeMonths": 6, "status": "paused"}
        )
        assert error.field == "status"

    def test_persona_needs_name(self):
        _, error = validate_required_fields("persona", {"name": "  "})
        assert error.field == "name"


class TestRequireCollections:
    """Tests for require_collections."""

    def test_missing_collection(self):
        ledger, error = require_collections({"income": []}, ("income", "expenses"))
        assert ledger is None
        assert error.field == "expenses"

    def test_collection_must_be_list(self):
        _, error = require_collections({"income": {}}, ("income",))
        assert error.field == "income"

    def test_accepts_camel_case_keys(self):
        ledger, error = require_collections({"creditCards": [{"item": "Visa"}]}, ("credit_cards",))
        assert error is None
        assert ledger.credit_cards[0].item == "Visa"

    def test_duplicate_ids_rejected(self):
        _, error = require_collections({"income": [{"id": "x"}, {"id": "x"}]})
        assert error.kind == ErrorKind.VALIDATION
        assert error.field == "income"

    def test_non_mapping_rejected(self):
        _, error = require_collections([1, 2, 3])
        assert error.kind == ErrorKind.VALIDATION


class TestDateParsing:
    """Tests for ISO date helpers."""

    def test_parses_dates_and_timestamps(self):
        assert parse_iso_date("2026-02-20").isoformat() == "2026-02-20"
        assert parse_iso_date("2026-02-20T00:00:00.000Z").isoformat() == "2026-02-20"
        assert parse_iso_date("not a date") is None

    def test_reference_date_rejects_garbage(self):
        with pytest.raises(ValidationError):
            coerce_reference_date("soon")
