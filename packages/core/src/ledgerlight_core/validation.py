"""Validation and normalization of ledger records and values.

Public functions return a ``Result`` and never raise for invalid input. The
``require_*`` / ``coerce_*`` helpers raise ``ValidationError`` and are meant
for use inside other operations, whose ``result_boundary`` converts the error.
"""

import math
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Iterable, Optional

from pydantic import BaseModel

from ledgerlight_core.exceptions import MalformedLedgerError, ValidationError
from ledgerlight_core.models.audit import parse_iso_timestamp
from ledgerlight_core.models.ledger import BudgetCollectionsState, collection_alias
from ledgerlight_core.models.records import (
    RECORD_MODELS,
    GoalStatus,
    LedgerModel,
    RecordType,
    resolve_record_type,
)
from ledgerlight_core.result import result_boundary

INCOME_EXPENSE_TYPES = (RecordType.INCOME, RecordType.EXPENSE)


# =============================================================================
# RAISING HELPERS
# =============================================================================

def require_monetary(value: Any, field_name: str) -> float:
    """Return ``value`` as a float if it is a finite, non-negative number.

    Raises:
        ValidationError: For non-numbers, booleans, NaN, infinities and negatives.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(
            f"{field_name} must be a number",
            field=field_name,
            value=value,
            constraint="finite number >= 0",
        )
    if not math.isfinite(value):
        raise ValidationError(
            f"{field_name} must be finite",
            field=field_name,
            value=str(value),
            constraint="finite number >= 0",
        )
    if value < 0:
        raise ValidationError(
            f"{field_name} must not be negative",
            field=field_name,
            value=value,
            constraint="finite number >= 0",
        )
    return float(value)


def parse_iso_date(value: Any) -> Optional[date]:
    """Parse an ISO date or timestamp string; ``None`` when unparseable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return parse_iso_timestamp(text).date()
    except ValueError:
        return None


def coerce_reference_date(value: Any, field_name: str = "referenceDate") -> date:
    """Accept a date, datetime or ISO string as a reference date.

    Raises:
        ValidationError: If the value cannot be read as a date.
    """
    parsed = parse_iso_date(value)
    if parsed is None:
        raise ValidationError(
            f"{field_name} must be an ISO date",
            field=field_name,
            value=value if isinstance(value, str) else None,
        )
    return parsed


def coerce_ledger(state: Any, required: Iterable[str] = ()) -> BudgetCollectionsState:
    """Return ``state`` as a ``BudgetCollectionsState``.

    Args:
        state: A ledger model or a mapping of collection name to records.
        required: Collection attribute names that must be present in a mapping.

    Raises:
        MalformedLedgerError: If a required collection is missing or not a list.
        pydantic.ValidationError: If a record fails its schema.
    """
    if isinstance(state, BudgetCollectionsState):
        return state
    if not isinstance(state, Mapping):
        raise MalformedLedgerError(
            "ledger",
            reason="Ledger must be a mapping of collection names to records",
        )
    for name in required:
        alias = collection_alias(name)
        key = alias if alias in state else name
        if key not in state:
            raise MalformedLedgerError(alias)
        if not isinstance(state[key], (list, tuple)):
            raise MalformedLedgerError(
                alias,
                reason=f"Ledger collection '{alias}' must be a list",
            )
    return BudgetCollectionsState.model_validate(dict(state))


def coerce_record_list(records: Any, field_name: str) -> list[Mapping]:
    """Check that ``records`` is a list of mappings or models.

    Raises:
        ValidationError: If it is not.
    """
    if not isinstance(records, (list, tuple)):
        raise ValidationError(
            f"{field_name} must be a list of records",
            field=field_name,
            constraint="list",
        )
    rows = []
    for index, record in enumerate(records):
        if isinstance(record, BaseModel):
            rows.append(record.model_dump(by_alias=True))
        elif isinstance(record, Mapping):
            rows.append(record)
        else:
            raise ValidationError(
                f"{field_name}[{index}] must be a record mapping",
                field=f"{field_name}[{index}]",
            )
    return rows


def _lookup(raw: Mapping, alias: str, name: str) -> Any:
    if alias in raw:
        return raw[alias]
    return raw.get(name)


def _as_mapping(raw: Any) -> Mapping:
    if isinstance(raw, BaseModel):
        return raw.model_dump(by_alias=True)
    if not isinstance(raw, Mapping):
        raise ValidationError("Record must be a mapping of fields", field="record")
    return raw


def normalize_to_model(record_type: Any, raw_fields: Any) -> LedgerModel:
    """Validate ``raw_fields`` against the schema for ``record_type``.

    Raises:
        ValidationError: Unknown record type or non-mapping payload.
        pydantic.ValidationError: If a field fails its schema.
    """
    resolved = resolve_record_type(record_type)
    model = RECORD_MODELS[resolved]
    return model.model_validate(dict(_as_mapping(raw_fields)))


def check_required_fields(record_type: Any, raw_fields: Any) -> LedgerModel:
    """Enforce the collection-specific required fields, then normalize.

    Raises:
        ValidationError: Naming the first missing or invalid field.
    """
    resolved = resolve_record_type(record_type)
    raw = _as_mapping(raw_fields)

    if resolved in INCOME_EXPENSE_TYPES:
        category = raw.get("category")
        if not isinstance(category, str) or not category.strip():
            raise ValidationError(
                f"{resolved.value} category is required",
                field="category",
                constraint="non-empty string",
            )
        if parse_iso_date(raw.get("date")) is None or isinstance(raw.get("date"), (date, datetime)):
            raise ValidationError(
                f"{resolved.value} date must be an ISO date string",
                field="date",
                value=raw.get("date") if isinstance(raw.get("date"), str) else None,
                constraint="YYYY-MM-DD",
            )
        require_monetary(raw.get("amount"), "amount")

    elif resolved is RecordType.GOAL:
        title = raw.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValidationError(
                "goal title is required",
                field="title",
                constraint="non-empty string",
            )
        timeframe = _lookup(raw, "timeframeMonths", "timeframe_months")
        integral = isinstance(timeframe, int) or (
            isinstance(timeframe, float) and math.isfinite(timeframe) and timeframe.is_integer()
        )
        if isinstance(timeframe, bool) or not integral or timeframe <= 0:
            raise ValidationError(
                "goal timeframeMonths must be a positive integer",
                field="timeframeMonths",
                value=timeframe if isinstance(timeframe, (int, float)) else None,
                constraint="integer > 0",
            )
        status = raw.get("status")
        if status is not None:
            valid = {s.value for s in GoalStatus}
            if not isinstance(status, str) or status.strip().lower() not in valid:
                raise ValidationError(
                    f"goal status must be one of {sorted(valid)}",
                    field="status",
                    value=status,
                )
        raw = {**raw, "timeframeMonths": int(timeframe)}
        raw.pop("timeframe_months", None)

    elif resolved is RecordType.PERSONA:
        name = raw.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(
                "persona name is required",
                field="name",
                constraint="non-empty string",
            )

    elif "amount" in raw:
        require_monetary(raw["amount"], "amount")

    return normalize_to_model(resolved, raw)


# =============================================================================
# PUBLIC OPERATIONS
# =============================================================================

@result_boundary
def validate_monetary_value(value: Any, field_name: str) -> float:
    """Validate a monetary value.

    Returns:
        ``Result`` with the value as a float, or a VALIDATION error when it is
        not a finite, non-negative number.
    """
    return require_monetary(value, field_name)


@result_boundary
def normalize_record(record_type: Any, raw_fields: Any) -> LedgerModel:
    """Canonicalize a record for storage.

    Fills ``tags=[]`` and ``notes=""`` when absent, trims label whitespace and
    keeps type-specific fields such as ``interestRatePercent``. Applying it to
    its own output returns an equal record.
    """
    return normalize_to_model(record_type, raw_fields)


@result_boundary
def validate_required_fields(record_type: Any, raw_fields: Any) -> LedgerModel:
    """Validate the required fields of a record and return it normalized.

    Income and expenses need a non-empty ``category``, an ISO ``date`` and a
    valid ``amount``; goals need a ``title`` and a positive integer
    ``timeframeMonths``; personas need a ``name``.
    """
    return check_required_fields(record_type, raw_fields)


@result_boundary
def require_collections(state: Any, required: Iterable[str] = ()) -> BudgetCollectionsState:
    """Coerce ``state`` into a ledger, requiring the named collections."""
    return coerce_ledger(state, required)


__all__ = [
    "require_monetary",
    "parse_iso_date",
    "coerce_reference_date",
    "coerce_ledger",
    "coerce_record_list",
    "normalize_to_model",
    "check_required_fields",
    "validate_monetary_value",
    "normalize_record",
    "validate_required_fields",
    "require_collections",
]
