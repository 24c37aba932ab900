"""Import/export merge and dedup.

Imports are merged into the existing ledger rather than replacing it:

- records are matched by ``id`` within their collection, personas by ``name``;
- on a match the imported record wins and keeps the existing position;
- imported-only records are appended after the existing ones;
- records without an id are deduplicated by content.

Merging a ledger with itself returns an equal ledger.
"""

import json
from collections.abc import Mapping
from typing import Any, Callable, Iterable, Optional

import structlog

from ledgerlight_core.exceptions import ValidationError
from ledgerlight_core.models.audit import AuditTimelineEntry
from ledgerlight_core.models.ledger import (
    ALL_COLLECTIONS,
    CURRENT_SCHEMA_VERSION,
    RECORD_COLLECTIONS,
    BudgetCollectionsState,
    FinancialProfile,
    collection_alias,
)
from ledgerlight_core.models.records import LedgerModel
from ledgerlight_core.models.results import ProfileExport
from ledgerlight_core.result import result_boundary
from ledgerlight_core.validation import coerce_ledger, coerce_record_list

logger = structlog.get_logger()


def content_key(record: LedgerModel) -> str:
    """Canonical JSON of a record, ignoring its edit timestamp."""
    payload = record.model_dump(mode="json", by_alias=True, exclude={"updated_at"})
    return json.dumps(payload, sort_keys=True, ensure_ascii=False)


def merge_by_key(
    existing: Iterable[Any],
    imported: Iterable[Any],
    key: Callable[[Any], str],
) -> list:
    """Merge two record lists on ``key``; imported wins, existing order first.

    A key repeated on either side collapses to one record at the position of
    its first occurrence, holding the last record seen. Records whose key is
    empty are deduplicated by ``content_key`` instead; unkeyed rows already in
    ``existing`` are kept as they are.
    """
    merged: list = []
    positions: dict[str, int] = {}
    seen_content: set[str] = set()

    def place(record: Any) -> None:
        record_key = key(record)
        if record_key in positions:
            merged[positions[record_key]] = record
        else:
            positions[record_key] = len(merged)
            merged.append(record)

    for record in existing:
        if key(record):
            place(record)
        else:
            seen_content.add(content_key(record))
            merged.append(record)

    for record in imported:
        if key(record):
            place(record)
            continue
        fingerprint = content_key(record)
        if fingerprint not in seen_content:
            seen_content.add(fingerprint)
            merged.append(record)
    return merged


def merge_collections(
    existing: BudgetCollectionsState,
    imported: BudgetCollectionsState,
) -> BudgetCollectionsState:
    """Merge two validated ledgers."""
    updates: dict[str, Any] = {
        name: merge_by_key(existing.collection(name), imported.collection(name), lambda r: r.id)
        for name in RECORD_COLLECTIONS
    }
    updates["personas"] = merge_by_key(existing.personas, imported.personas, lambda p: p.name)
    updates["schema_version"] = max(existing.schema_version, imported.schema_version)
    return existing.model_copy(update=updates)


@result_boundary
def merge_ledgers(existing: Any, imported: Any) -> BudgetCollectionsState:
    """Merge an imported ledger into an existing one.

    Returns:
        ``Result`` with the merged ledger. The schema version is the higher of
        the two.
    """
    current = coerce_ledger(existing)
    incoming = coerce_ledger(imported)
    merged = merge_collections(current, incoming)
    logger.info(
        "ledgers_merged",
        **{
            collection_alias(name): len(merged.collection(name))
            for name in ALL_COLLECTIONS
        },
    )
    return merged


def _timeline(entries: Any, field_name: str) -> list[AuditTimelineEntry]:
    return [
        entry if isinstance(entry, AuditTimelineEntry) else AuditTimelineEntry.model_validate(dict(entry))
        for entry in coerce_record_list(entries, field_name)
    ]


@result_boundary
def merge_audit_timelines(
    existing: Any,
    imported: Any,
    newest_first: bool = False,
) -> list[AuditTimelineEntry]:
    """Union two audit timelines by entry id, imported entries winning.

    The result is sorted by timestamp, oldest first (stable for equal
    timestamps). Pass ``newest_first=True`` for display order.
    """
    merged = merge_by_key(
        _timeline(existing, "existing"),
        _timeline(imported, "imported"),
        lambda entry: entry.id,
    )
    return sorted(merged, key=lambda entry: entry.captured_at, reverse=newest_first)


def _looks_like_collections(payload: Mapping) -> bool:
    names = {collection_alias(name) for name in ALL_COLLECTIONS} | set(ALL_COLLECTIONS)
    return any(key in payload for key in names)


@result_boundary
def normalize_imported_profile(payload: Any) -> FinancialProfile:
    """Read an import payload into a ``FinancialProfile``.

    Accepts an export envelope (``{schemaVersion, exportedAt, profile}``), a
    bare profile (``{collections, uiPreferences, auditTimelineEntries}``) or a
    legacy collections-only snapshot. Missing ``uiPreferences`` becomes
    ``None`` and missing ``auditTimelineEntries`` an empty list.
    """
    if not isinstance(payload, Mapping):
        raise ValidationError("Import payload must be a JSON object", field="payload")

    body = payload
    if "profile" in payload:
        version = payload.get("schemaVersion", CURRENT_SCHEMA_VERSION)
        if isinstance(version, int) and not isinstance(version, bool) and version > CURRENT_SCHEMA_VERSION:
            raise ValidationError(
                f"Export schema version {version} is newer than supported version "
                f"{CURRENT_SCHEMA_VERSION}",
                field="schemaVersion",
                value=version,
                constraint=f"<= {CURRENT_SCHEMA_VERSION}",
            )
        body = payload["profile"]
        if not isinstance(body, Mapping):
            raise ValidationError("Export profile must be a JSON object", field="profile")

    if "collections" in body:
        collections = body["collections"]
    elif _looks_like_collections(body):
        logger.info("legacy_snapshot_imported")
        collections = body
    else:
        raise ValidationError("Import payload contains no ledger collections", field="collections")

    ui_preferences = body.get("uiPreferences")
    if ui_preferences is not None and not isinstance(ui_preferences, Mapping):
        raise ValidationError("uiPreferences must be an object", field="uiPreferences")

    return FinancialProfile(
        collections=coerce_ledger(collections),
        ui_preferences=dict(ui_preferences) if ui_preferences is not None else None,
        audit_timeline_entries=_timeline(body.get("auditTimelineEntries") or [], "auditTimelineEntries"),
    )


@result_boundary
def build_profile_export(
    collections: Any,
    ui_preferences: Optional[Mapping[str, Any]] = None,
    timeline: Any = (),
    exported_at: Optional[str] = None,
) -> ProfileExport:
    """Build the export envelope for a profile.

    Args:
        collections: The ledger to export.
        ui_preferences: Opaque UI preferences, or ``None``.
        timeline: Audit timeline entries.
        exported_at: ISO timestamp recorded as ``exportedAt``.
    """
    ledger = coerce_ledger(collections)
    if not isinstance(exported_at, str):
        raise ValidationError("exportedAt must be an ISO timestamp string", field="exportedAt")
    if ui_preferences is not None and not isinstance(ui_preferences, Mapping):
        raise ValidationError("uiPreferences must be an object", field="uiPreferences")

    entries = sorted(_timeline(timeline, "timeline"), key=lambda entry: entry.captured_at)
    export = ProfileExport.model_validate(
        {
            "schemaVersion": max(ledger.schema_version, CURRENT_SCHEMA_VERSION),
            "exportedAt": exported_at,
            "profile": FinancialProfile(
                collections=ledger,
                ui_preferences=dict(ui_preferences) if ui_preferences is not None else None,
                audit_timeline_entries=entries,
            ),
        }
    )
    logger.debug("profile_export_built", entries=len(entries))
    return export


__all__ = [
    "content_key",
    "merge_by_key",
    "merge_collections",
    "merge_ledgers",
    "merge_audit_timelines",
    "normalize_imported_profile",
    "build_profile_export",
]
