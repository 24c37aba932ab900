"""Record views: search/sort over one collection and the unified cash-flow list."""

from collections.abc import Mapping
from typing import Any, Literal, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel, to_snake

from ledgerlight_core.exceptions import ValidationError
from ledgerlight_core.metrics import MONTHLY_COLLECTIONS
from ledgerlight_core.models.ledger import LIABILITY_COLLECTIONS, collection_alias
from ledgerlight_core.models.results import UnifiedRecordRow
from ledgerlight_core.result import result_boundary
from ledgerlight_core.validation import coerce_ledger, coerce_record_list

logger = structlog.get_logger()

LIABILITY_RECORD_TYPES = {"debts": "debt", "credit": "credit", "loans": "loan"}


class RecordCriteria(BaseModel):
    """Search and sort options for ``filter_and_sort_records``."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )

    search_text: str = Field(default="", description="Case-insensitive substring")
    sort_by: Optional[str] = Field(default=None, description="Field to sort on (camel or snake case)")
    sort_direction: Literal["asc", "desc"] = "asc"


def _field_value(record: Mapping, field_name: str) -> Any:
    for key in (field_name, to_camel(field_name), to_snake(field_name)):
        if key in record:
            return record[key]
    return None


def _matches(record: Mapping, needle: str) -> bool:
    for value in record.values():
        if isinstance(value, str) and needle in value.lower():
            return True
        if isinstance(value, (list, tuple)) and any(
            isinstance(tag, str) and needle in tag.lower() for tag in value
        ):
            return True
    return False


def _sort_key(value: Any) -> tuple:
    # Numbers sort before text so mixed columns still have a total order.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value, "")
    return (1, 0, str(value).lower())


@result_boundary
def filter_and_sort_records(records: Any, criteria: Any = None) -> list[dict[str, Any]]:
    """Search and sort the rows of one collection.

    Args:
        records: List of record mappings or models.
        criteria: ``RecordCriteria`` or a mapping with ``searchText``,
            ``sortBy`` and ``sortDirection`` (``asc`` or ``desc``).

    Returns:
        ``Result`` with the matching rows as dicts. Rows missing the sort
        field come last in either direction; ties keep input order.

    Example:
        >>> rows, _ = filter_and_sort_records(
        ...     [{"description": "Gas", "amount": 45}, {"description": "Rent", "amount": 900}],
        ...     {"searchText": "g"},
        ... )
        >>> [row["description"] for row in rows]
        ['Gas']
    """
    rows = [dict(row) for row in coerce_record_list(records, "records")]
    if criteria is None:
        query = RecordCriteria()
    elif isinstance(criteria, RecordCriteria):
        query = criteria
    elif isinstance(criteria, Mapping):
        query = RecordCriteria.model_validate(dict(criteria))
    else:
        raise ValidationError("criteria must be a mapping", field="criteria")

    needle = query.search_text.strip().lower()
    if needle:
        rows = [row for row in rows if _matches(row, needle)]

    if query.sort_by:
        present = [row for row in rows if _field_value(row, query.sort_by) is not None]
        missing = [row for row in rows if _field_value(row, query.sort_by) is None]
        present.sort(
            key=lambda row: _sort_key(_field_value(row, query.sort_by)),
            reverse=query.sort_direction == "desc",
        )
        rows = present + missing
    return rows


def _row(collection: str, index: int, record: Any, record_type: str, amount: float, sign: int) -> UnifiedRecordRow:
    return UnifiedRecordRow(
        id=record.id or f"{collection_alias(collection)}[{index}]",
        source_collection=collection_alias(collection),
        record_type=record_type,
        person=record.person,
        item=record.item,
        category=getattr(record, "category", ""),
        date=getattr(record, "date", None),
        amount=amount,
        signed_amount=sign * amount if amount else 0.0,
    )


@result_boundary
def build_unified_records(state: Any) -> list[UnifiedRecordRow]:
    """Flatten the ledger into one list of monthly cash-flow rows.

    Income is positive and expenses negative. Asset rows tagged ``savings``
    are negative (money set aside this month); other assets and holding
    equity are positive. Debts, credit lines and loans contribute their
    minimum payment and credit cards their monthly payment, all negative.

    Requires ``income``, ``expenses``, ``assets``, ``debts``, ``credit`` and
    ``loans``.
    """
    ledger = coerce_ledger(state, MONTHLY_COLLECTIONS)
    rows: list[UnifiedRecordRow] = []

    for index, record in enumerate(ledger.income):
        rows.append(_row("income", index, record, "income", record.amount, 1))
    for index, record in enumerate(ledger.expenses):
        rows.append(_row("expenses", index, record, "expense", record.amount, -1))
    for index, record in enumerate(ledger.assets):
        if record.is_savings:
            rows.append(_row("assets", index, record, "savings", record.amount, -1))
        else:
            rows.append(_row("assets", index, record, "asset", record.amount, 1))
    for collection in LIABILITY_COLLECTIONS:
        for index, record in enumerate(ledger.collection(collection)):
            rows.append(
                _row(collection, index, record, LIABILITY_RECORD_TYPES[collection], record.minimum_payment, -1)
            )
    for index, card in enumerate(ledger.credit_cards):
        rows.append(_row("credit_cards", index, card, "credit card", card.monthly_payment, -1))
    for index, holding in enumerate(ledger.asset_holdings):
        equity = abs(holding.net_value)
        rows.append(_row("asset_holdings", index, holding, "asset", equity, 1 if holding.net_value >= 0 else -1))

    logger.debug("unified_records_built", rows=len(rows))
    return rows


__all__ = [
    "RecordCriteria",
    "filter_and_sort_records",
    "build_unified_records",
]
