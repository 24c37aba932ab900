"""Ledger mutators.

Every function here takes a ledger (model or plain mapping) and returns a
``Result`` holding a *new* ledger. The input is never modified.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any, Iterable, Optional

import structlog
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from ledgerlight_core.exceptions import ValidationError
from ledgerlight_core.models.audit import parse_iso_timestamp
from ledgerlight_core.models.ledger import (
    CURRENT_SCHEMA_VERSION,
    RECORD_COLLECTIONS,
    BudgetCollectionsState,
    collection_alias,
)
from ledgerlight_core.models.records import (
    COLLECTION_FIELDS,
    LedgerRecord,
    Persona,
    RecordType,
    resolve_record_type,
)
from ledgerlight_core.models.results import PersonaImpactSummary, RecurringReconcileResult
from ledgerlight_core.result import result_boundary
from ledgerlight_core.validation import (
    check_required_fields,
    coerce_ledger,
    normalize_to_model,
)

logger = structlog.get_logger()

# Items of the aggregate "Debt Payment" rows older versions generated from the
# liability collections. They double count minimum payments.
LEGACY_AGGREGATE_ITEMS = frozenset({"debts", "credit cards", "loans", "credit"})
LEGACY_AGGREGATE_CATEGORY = "debt payment"


class PersonaDeletePolicy(str, Enum):
    """What happens to a deleted persona's records."""

    REASSIGN = "reassign"
    CASCADE = "cascade"


# =============================================================================
# HELPERS
# =============================================================================

def _require_timestamp(updated_at: Any) -> str:
    if not isinstance(updated_at, str):
        raise ValidationError(
            "updatedAt must be an ISO timestamp string",
            field="updatedAt",
            constraint="ISO-8601",
        )
    try:
        parse_iso_timestamp(updated_at)
    except ValueError as e:
        raise ValidationError(
            f"updatedAt is not a valid ISO timestamp: {updated_at!r}",
            field="updatedAt",
            value=updated_at,
            constraint="ISO-8601",
        ) from e
    return updated_at


def _require_name(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field=field_name,
            constraint="non-empty string",
        )
    return value.strip()


def _require_persona(ledger: BudgetCollectionsState, person: str) -> None:
    if person and person not in ledger.persona_names:
        raise ValidationError(
            f"Unknown persona '{person}'",
            field="person",
            value=person,
            constraint="must reference an existing persona",
        )


def _next_record_id(records: list, prefix: str) -> str:
    """Deterministic id: ``<prefix>-<n>`` with the first unused n."""
    existing = {record.id for record in records}
    n = len(records) + 1
    while f"{prefix}-{n}" in existing:
        n += 1
    return f"{prefix}-{n}"


def _find_index(records: list, record_id: Any, field_name: str) -> int:
    if not isinstance(record_id, str) or not record_id:
        raise ValidationError(
            "record id must be a non-empty string",
            field="id",
            constraint="non-empty string",
        )
    for index, record in enumerate(records):
        if record.id == record_id:
            return index
    raise ValidationError(
        f"No record with id '{record_id}' in {collection_alias(field_name)}",
        field="id",
        value=record_id,
    )


def _record_collection(record_type: Any) -> tuple[RecordType, str]:
    resolved = resolve_record_type(record_type)
    if resolved is RecordType.PERSONA:
        raise ValidationError(
            "Personas are changed with rename_persona and delete_persona",
            field="recordType",
            value=resolved.value,
        )
    return resolved, COLLECTION_FIELDS[resolved]


# =============================================================================
# OPERATIONS
# =============================================================================

@result_boundary
def build_default_ledger() -> BudgetCollectionsState:
    """Empty ledger at the current schema version."""
    return BudgetCollectionsState()


@result_boundary
def append_record(
    state: Any,
    record_type: Any,
    raw_fields: Any,
    updated_at: str,
) -> BudgetCollectionsState:
    """Validate a record and append it to its collection.

    Args:
        state: Ledger to append to.
        record_type: Record type or collection name (``"income"``, ``"goal"``, ...).
        raw_fields: Record fields (camelCase or snake_case keys).
        updated_at: ISO timestamp stamped on the record as ``updatedAt``.

    Returns:
        ``Result`` with the new ledger. Records without an id get
        ``<type>-<n>``. Duplicate ids, duplicate persona names and references
        to unknown personas are VALIDATION errors.
    """
    resolved = resolve_record_type(record_type)
    field_name = COLLECTION_FIELDS[resolved]
    ledger = coerce_ledger(state, (field_name,))
    stamp = _require_timestamp(updated_at)
    record = check_required_fields(resolved, raw_fields)
    records = ledger.collection(field_name)

    if isinstance(record, Persona):
        if record.name in ledger.persona_names:
            raise ValidationError(
                f"Persona '{record.name}' already exists",
                field="name",
                value=record.name,
                constraint="persona names must be unique",
            )
    else:
        record_id = record.id or _next_record_id(records, resolved.value)
        if any(existing.id == record_id for existing in records):
            raise ValidationError(
                f"Duplicate id '{record_id}' in {collection_alias(field_name)}",
                field="id",
                value=record_id,
                constraint="id must be unique within its collection",
            )
        _require_persona(ledger, record.person)
        record = record.model_copy(update={"id": record_id, "updated_at": stamp})

    logger.debug(
        "record_appended",
        collection=collection_alias(field_name),
        record_id=getattr(record, "id", None) or getattr(record, "name", None),
    )
    return ledger.with_collections(**{field_name: [*records, record]})


@result_boundary
def update_record(
    state: Any,
    record_type: Any,
    record_id: str,
    patch: Any,
    updated_at: str,
) -> BudgetCollectionsState:
    """Apply ``patch`` to the record with ``record_id`` and re-validate it.

    The id itself cannot be changed; a patched ``id`` is ignored.
    """
    resolved, field_name = _record_collection(record_type)
    ledger = coerce_ledger(state, (field_name,))
    stamp = _require_timestamp(updated_at)
    if isinstance(patch, BaseModel):
        patch = patch.model_dump(by_alias=True, exclude_unset=True)
    if not isinstance(patch, Mapping):
        raise ValidationError("patch must be a mapping of fields", field="patch")

    records = list(ledger.collection(field_name))
    index = _find_index(records, record_id, field_name)
    existing: LedgerRecord = records[index]
    patch = {to_camel(key): value for key, value in patch.items()}
    merged = {**existing.model_dump(by_alias=True), **patch, "id": record_id}
    record = check_required_fields(resolved, merged)
    if record.person != existing.person:
        _require_persona(ledger, record.person)
    records[index] = record.model_copy(update={"updated_at": stamp})

    logger.debug("record_updated", collection=collection_alias(field_name), record_id=record_id)
    return ledger.with_collections(**{field_name: records})


@result_boundary
def delete_record(state: Any, record_type: Any, record_id: str) -> BudgetCollectionsState:
    """Remove the record with ``record_id`` from its collection."""
    _, field_name = _record_collection(record_type)
    ledger = coerce_ledger(state, (field_name,))
    records = list(ledger.collection(field_name))
    del records[_find_index(records, record_id, field_name)]
    logger.debug("record_deleted", collection=collection_alias(field_name), record_id=record_id)
    return ledger.with_collections(**{field_name: records})


@result_boundary
def rename_persona(
    state: Any,
    old_name: str,
    new_name: str,
    patch: Optional[Mapping[str, Any]] = None,
) -> BudgetCollectionsState:
    """Rename a persona everywhere it is referenced.

    ``patch`` may carry a new ``emoji`` and ``note`` for the persona entry.
    Renaming to a name another persona already uses is rejected.
    """
    ledger = coerce_ledger(state, ("personas",))
    old = _require_name(old_name, "oldName")
    new = _require_name(new_name, "newName")
    if old not in ledger.persona_names:
        raise ValidationError(f"Unknown persona '{old}'", field="oldName", value=old)
    if new != old and new in ledger.persona_names:
        raise ValidationError(
            f"Persona '{new}' already exists",
            field="newName",
            value=new,
            constraint="persona names must be unique",
        )
    if patch is not None and not isinstance(patch, Mapping):
        raise ValidationError("patch must be a mapping of fields", field="patch")

    personas = []
    for persona in ledger.personas:
        if persona.name == old:
            fields = {**persona.model_dump(by_alias=True)}
            for key in ("emoji", "note"):
                if patch and key in patch:
                    fields[key] = patch[key]
            fields["name"] = new
            persona = Persona.model_validate(fields)
        personas.append(persona)

    updates: dict[str, list] = {"personas": personas}
    for name in RECORD_COLLECTIONS:
        updates[name] = [
            record.model_copy(update={"person": new}) if record.person == old else record
            for record in ledger.collection(name)
        ]

    logger.info("persona_renamed", old_name=old, new_name=new)
    return ledger.with_collections(**updates)


@result_boundary
def delete_persona(
    state: Any,
    name: str,
    policy: Any,
    reassign_to: Optional[str] = None,
) -> BudgetCollectionsState:
    """Delete a persona, reassigning or cascading its records.

    Args:
        state: Ledger holding the persona.
        name: Persona to delete.
        policy: ``"reassign"`` moves records to ``reassign_to``; ``"cascade"``
            deletes them.
        reassign_to: Existing persona receiving the records under ``reassign``.
    """
    ledger = coerce_ledger(state, ("personas",))
    target = _require_name(name, "name")
    try:
        resolved_policy = PersonaDeletePolicy(policy)
    except ValueError as e:
        raise ValidationError(
            f"Unknown persona delete policy: {policy!r}",
            field="policy",
            value=policy if isinstance(policy, str) else None,
            constraint="reassign or cascade",
        ) from e
    if target not in ledger.persona_names:
        raise ValidationError(f"Unknown persona '{target}'", field="name", value=target)

    updates: dict[str, list] = {
        "personas": [p for p in ledger.personas if p.name != target],
    }
    if resolved_policy is PersonaDeletePolicy.REASSIGN:
        receiver = _require_name(reassign_to, "reassignTo")
        if receiver == target or receiver not in ledger.persona_names:
            raise ValidationError(
                f"Cannot reassign records to '{receiver}'",
                field="reassignTo",
                value=receiver,
                constraint="another existing persona",
            )
        for collection in RECORD_COLLECTIONS:
            updates[collection] = [
                r.model_copy(update={"person": receiver}) if r.person == target else r
                for r in ledger.collection(collection)
            ]
    else:
        for collection in RECORD_COLLECTIONS:
            updates[collection] = [
                r for r in ledger.collection(collection) if r.person != target
            ]

    logger.info("persona_deleted", name=target, policy=resolved_policy.value)
    return ledger.with_collections(**updates)


@result_boundary
def persona_impact_summary(state: Any, name: str) -> PersonaImpactSummary:
    """Count the records attributed to ``name`` in each collection."""
    ledger = coerce_ledger(state)
    target = _require_name(name, "name")
    counts = {
        collection: sum(1 for r in ledger.collection(collection) if r.person == target)
        for collection in RECORD_COLLECTIONS
    }
    return PersonaImpactSummary(persona=target, total=sum(counts.values()), **counts)


def _recurring_key(record: Any) -> tuple[str, str, str]:
    return (
        record.person.strip().lower(),
        record.item.strip().lower(),
        record.category.strip().lower(),
    )


def is_legacy_aggregate_row(record: Any) -> bool:
    return (
        record.category.strip().lower() == LEGACY_AGGREGATE_CATEGORY
        and record.item.strip().lower() in LEGACY_AGGREGATE_ITEMS
    )


@result_boundary
def reconcile_recurring_expense_rows(
    state: Any,
    baseline_rows: Iterable[Any] = (),
    updated_at: Optional[str] = None,
) -> RecurringReconcileResult:
    """Seed missing recurring expense rows and drop legacy aggregate rows.

    A baseline row is present when an expense with the same person, item and
    category exists, whatever its amount, so a row the user zeroed out is never
    re-seeded. Seeded rows must pass the expense required fields, reference a
    known persona and are stamped with ``updated_at``, which is required once
    any row is seeded. Expenses with category ``Debt Payment`` and item ``Debts``,
    ``Credit Cards``, ``Loans`` or ``Credit`` are removed. The schema version is
    raised to the current one.
    """
    ledger = coerce_ledger(state, ("expenses",))
    if isinstance(baseline_rows, (str, bytes, Mapping)):
        raise ValidationError("baseline rows must be a list of records", field="baselineRows")

    kept = [row for row in ledger.expenses if not is_legacy_aggregate_row(row)]
    removed_count = len(ledger.expenses) - len(kept)

    present = {_recurring_key(row) for row in kept}
    added_count = 0
    for template in baseline_rows:
        key = _recurring_key(normalize_to_model(RecordType.EXPENSE, template))
        if key in present:
            continue
        seeded = check_required_fields(RecordType.EXPENSE, template)
        _require_persona(ledger, seeded.person)
        seeded = seeded.model_copy(update={"updated_at": _require_timestamp(updated_at)})
        if not seeded.id or any(row.id == seeded.id for row in kept):
            seeded = seeded.model_copy(
                update={"id": _next_record_id(kept, RecordType.EXPENSE.value)}
            )
        kept.append(seeded)
        present.add(key)
        added_count += 1

    next_state = ledger.model_copy(
        update={
            "expenses": kept,
            "schema_version": max(ledger.schema_version, CURRENT_SCHEMA_VERSION),
        }
    )
    logger.info(
        "recurring_rows_reconciled",
        added_count=added_count,
        removed_count=removed_count,
    )
    return RecurringReconcileResult(
        next_collections_state=next_state,
        added_count=added_count,
        removed_count=removed_count,
    )


__all__ = [
    "PersonaDeletePolicy",
    "is_legacy_aggregate_row",
    "build_default_ledger",
    "append_record",
    "update_record",
    "delete_record",
    "rename_persona",
    "delete_persona",
    "persona_impact_summary",
    "reconcile_recurring_expense_rows",
]
