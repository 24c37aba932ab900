"""Tests for import/export merging and profile payloads."""

import pytest

from ledgerlight_core import (
    ErrorKind,
    build_profile_export,
    merge_audit_timelines,
    merge_ledgers,
    normalize_imported_profile,
)
from ledgerlight_core.models import CURRENT_SCHEMA_VERSION

EXPORTED_AT = "2026-02-20T09:30:00.000Z"


def _ledger(**collections) -> dict:
    state = {
        "income": [],
        "expenses": [],
        "assets": [],
        "debts": [],
        "credit": [],
        "loans": [],
        "goals": [],
    }
    state.update(collections)
    return state


@pytest.fixture
def timeline() -> list:
    return [
        {"id": "a1", "timestamp": "2026-02-01T00:00:00.000Z", "contextTag": "add-record"},
        {"id": "a2", "timestamp": "2026-02-02T00:00:00.000Z", "contextTag": "import"},
    ]


class TestMergeLedgers:
    """Tests for merge_ledgers."""

    def test_imported_record_wins(self):
        existing = _ledger(
            income=[{"id": "i1", "person": "PersonA", "amount": 1000, "category": "Salary", "date": "2026-01-01"}],
            expenses=[{"id": "e1", "person": "PersonA", "amount": 200, "category": "Food", "date": "2026-01-01"}],
        )
        imported = _ledger(
            income=[
                {"id": "i1", "person": "PersonA", "amount": 1200, "category": "Salary", "date": "2026-01-01"},
                {"id": "i2", "person": "PersonA", "amount": 300, "category": "Rent", "date": "2026-01-01"},
            ],
            expenses=[{"id": "e1", "person": "PersonA", "amount": 200, "category": "Food", "date": "2026-01-01"}],
        )
        merged, error = merge_ledgers(existing, imported)
        assert error is None
        assert len(merged.income) == 2
        by_id = {record.id: record for record in merged.income}
        assert by_id["i1"].amount == 1200
        assert by_id["i2"].amount == 300
        assert len(merged.expenses) == 1

    def test_existing_order_first(self):
        existing = _ledger(income=[{"id": "b"}, {"id": "a"}])
        imported = _ledger(income=[{"id": "c"}, {"id": "a", "amount": 5}])
        merged, _ = merge_ledgers(existing, imported)
        assert [r.id for r in merged.income] == ["b", "a", "c"]

    def test_dedupes_records_without_id(self):
        row = {"item": "Coffee", "amount": 4, "updatedAt": "2026-01-01T00:00:00Z"}
        merged, _ = merge_ledgers(
            _ledger(expenses=[row]),
            _ledger(expenses=[dict(row, updatedAt="2026-02-01T00:00:00Z"), {"item": "Tea", "amount": 3}]),
        )
        assert [r.item for r in merged.expenses] == ["Coffee", "Tea"]

    def test_personas_merge_by_name(self):
        merged, _ = merge_ledgers(
            _ledger(personas=[{"name": "PersonA", "emoji": "🙂"}]),
            _ledger(personas=[{"name": "PersonA", "emoji": "😎"}, {"name": "PersonB"}]),
        )
        assert [(p.name, p.emoji) for p in merged.personas] == [("PersonA", "😎"), ("PersonB", "")]

    def test_schema_version_is_max(self):
        merged, _ = merge_ledgers(_ledger(schemaVersion=1), _ledger(schemaVersion=3))
        assert merged.schema_version == 3

    def test_merge_is_idempotent(self, household_state):
        merged, _ = merge_ledgers(household_state, household_state)
        again, _ = merge_ledgers(merged, merged)
        assert merged == again
        assert len(merged.income) == len(household_state["income"])

    def test_merge_with_empty_import(self, household_state):
        merged, _ = merge_ledgers(household_state, {})
        assert [r.id for r in merged.expenses] == ["e1", "e2", "e3"]

    def test_rejects_non_mapping(self):
        merged, error = merge_ledgers(_ledger(), ["not", "a", "ledger"])
        assert merged is None
        assert error.kind == ErrorKind.VALIDATION


class TestMergeAuditTimelines:
    """Tests for merge_audit_timelines."""

    def test_removes_duplicates(self, timeline):
        merged, error = merge_audit_timelines(timeline[:1], timeline, newest_first=True)
        assert error is None
        assert len(merged) == 2
        assert merged[0].id == "a2"

    def test_collapses_duplicates_already_in_existing(self, timeline):
        """Repeated ids on the existing side merge to one entry per id."""
        merged, error = merge_audit_timelines([timeline[0], timeline[0], timeline[1]], [])
        assert error is None
        assert [entry.id for entry in merged] == ["a1", "a2"]

    def test_later_duplicate_wins(self, timeline):
        retagged = dict(timeline[0], contextTag="edit-record")
        merged, _ = merge_audit_timelines([timeline[0], retagged], [])
        assert len(merged) == 1
        assert merged[0].context_tag == "edit-record"

    def test_oldest_first_by_default(self, timeline):
        merged, _ = merge_audit_timelines([timeline[1]], [timeline[0]])
        assert [entry.id for entry in merged] == ["a1", "a2"]

    def test_imported_entry_wins(self, timeline):
        updated = dict(timeline[0], contextTag="edit-record")
        merged, _ = merge_audit_timelines(timeline, [updated])
        assert merged[0].context_tag == "edit-record"

    def test_rejects_bad_timestamp(self):
        merged, error = merge_audit_timelines([], [{"id": "x", "timestamp": "later"}])
        assert merged is None
        assert error.kind == ErrorKind.VALIDATION

    def test_rejects_non_list(self, timeline):
        _, error = merge_audit_timelines({"a1": timeline[0]}, timeline)
        assert error.field == "existing"


class TestNormalizeImportedProfile:
    """Tests for normalize_imported_profile."""

    def test_export_envelope(self, timeline):
        profile, error = normalize_imported_profile(
            {
                "schemaVersion": CURRENT_SCHEMA_VERSION,
                "exportedAt": EXPORTED_AT,
                "profile": {
                    "collections": _ledger(income=[{"id": "i1", "amount": 10}]),
                    "uiPreferences": {"theme": "dark"},
                    "auditTimelineEntries": timeline,
                },
            }
        )
        assert error is None
        assert profile.collections.income[0].id == "i1"
        assert profile.ui_preferences == {"theme": "dark"}
        assert len(profile.audit_timeline_entries) == 2

    def test_legacy_collections_snapshot(self):
        """A bare collections object gets the profile defaults."""
        profile, error = normalize_imported_profile(_ledger(expenses=[{"amount": 5}]))
        assert error is None
        assert profile.collections.expenses[0].amount == 5
        assert profile.ui_preferences is None
        assert profile.audit_timeline_entries == []

    def test_rejects_newer_schema(self):
        _, error = normalize_imported_profile(
            {"schemaVersion": CURRENT_SCHEMA_VERSION + 1, "profile": {"collections": {}}}
        )
        assert error.field == "schemaVersion"

    def test_rejects_payload_without_collections(self):
        _, error = normalize_imported_profile({"theme": "dark"})
        assert error.field == "collections"

    def test_rejects_non_object(self):
        _, error = normalize_imported_profile("[]")
        assert error.kind == ErrorKind.VALIDATION


class TestBuildProfileExport:
    """Tests for build_profile_export."""

    def test_envelope(self, household_state, timeline):
        export, error = build_profile_export(
            household_state, {"theme": "light"}, list(reversed(timeline)), EXPORTED_AT
        )
        assert error is None
        payload = export.to_payload()
        assert payload["schemaVersion"] == CURRENT_SCHEMA_VERSION
        assert payload["exportedAt"] == EXPORTED_AT
        assert payload["profile"]["uiPreferences"] == {"theme": "light"}
        assert [e["id"] for e in payload["profile"]["auditTimelineEntries"]] == ["a1", "a2"]
        assert payload["profile"]["collections"]["income"][0]["id"] == "i1"

    def test_export_then_import_keeps_ledger(self, household_state, timeline):
        export, _ = build_profile_export(household_state, None, timeline, EXPORTED_AT)
        profile, error = normalize_imported_profile(export.to_payload())
        assert error is None
        assert profile.collections == export.profile.collections

    def test_requires_timestamp(self, household_state):
        _, error = build_profile_export(household_state)
        assert error.field == "exportedAt"
