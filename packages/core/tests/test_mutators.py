"""Tests for the ledger mutators."""

import pytest

from ledgerlight_core import (
    BudgetCollectionsState,
    ErrorKind,
    PersonaDeletePolicy,
    append_record,
    build_default_ledger,
    delete_persona,
    delete_record,
    persona_impact_summary,
    reconcile_recurring_expense_rows,
    rename_persona,
    update_record,
)
from ledgerlight_core.models import CURRENT_SCHEMA_VERSION


@pytest.fixture
def default_ledger() -> BudgetCollectionsState:
    ledger, error = build_default_ledger()
    assert error is None
    return ledger


@pytest.fixture
def persona_state() -> dict:
    """Records split between PersonA and PersonC."""
    return {
        "income": [{"person": "PersonA"}],
        "expenses": [{"person": "PersonA"}, {"person": "PersonC"}],
        "assets": [],
        "debts": [],
        "credit": [],
        "loans": [],
        "creditCards": [],
        "personas": [{"name": "PersonA", "emoji": "🙂"}, {"name": "PersonC"}],
    }


class TestBuildDefaultLedger:
    """Tests for build_default_ledger."""

    def test_empty_collections(self, default_ledger: BudgetCollectionsState):
        assert default_ledger.income == []
        assert default_ledger.expenses == []
        assert default_ledger.debts == []
        assert default_ledger.credit == []
        assert default_ledger.credit_cards == []
        assert default_ledger.asset_holdings == []
        assert default_ledger.schema_version == CURRENT_SCHEMA_VERSION == 2

    def test_payload_uses_camel_case(self, default_ledger: BudgetCollectionsState):
        payload = default_ledger.to_payload()
        assert payload["creditCards"] == []
        assert payload["schemaVersion"] == 2


class TestAppendRecord:
    """Tests for append_record."""

    def test_appends_income(self, default_ledger, updated_at):
        """A valid income row is appended with an id and timestamp."""
        next_state, error = append_record(
            default_ledger,
            "income",
            {"amount": 3200, "category": "Salary", "date": "2026-02-10", "description": "Primary job"},
            updated_at,
        )
        assert error is None
        assert len(next_state.income) == 1
        assert next_state.income[0].category == "Salary"
        assert next_state.income[0].id == "income-1"
        assert next_state.income[0].updated_at == updated_at

    def test_input_is_not_modified(self, default_ledger, updated_at):
        append_record(
            default_ledger, "income", {"amount": 1, "category": "Gift", "date": "2026-02-10"}, updated_at
        )
        assert default_ledger.income == []

    def test_appends_goal(self, default_ledger, updated_at):
        next_state, error = append_record(
            default_ledger,
            "goal",
            {"title": "Travel to Japan", "status": "not started", "timeframeMonths": 12},
            updated_at,
        )
        assert error is None
        assert next_state.goals[0].title == "Travel to Japan"

    def test_invalid_record_leaves_ledger_unchanged(self, default_ledger, updated_at):
        next_state, error = append_record(
            default_ledger, "expense", {"amount": 10, "date": "2026-02-10", "category": ""}, updated_at
        )
        assert next_state is None
        assert error.kind == ErrorKind.VALIDATION
        assert default_ledger.expenses == []

    def test_rejects_duplicate_id(self, default_ledger, updated_at):
        payload = {"id": "x", "amount": 10, "date": "2026-02-10", "category": "Food"}
        state, _ = append_record(default_ledger, "expense", payload, updated_at)
        _, error = append_record(state, "expense", payload, updated_at)
        assert error.field == "id"

    def test_rejects_unknown_persona(self, updated_at):
        state = {"income": [], "personas": [{"name": "PersonA"}]}
        _, error = append_record(
            state,
            "income",
            {"person": "Nobody", "amount": 10, "date": "2026-02-10", "category": "Gift"},
            updated_at,
        )
        assert error.field == "person"

    def test_rejects_duplicate_persona(self, updated_at):
        state = {"personas": [{"name": "PersonA"}]}
        _, error = append_record(state, "persona", {"name": "PersonA"}, updated_at)
        assert error.field == "name"

    def test_requires_iso_timestamp(self, default_ledger):
        _, error = append_record(
            default_ledger, "income", {"amount": 1, "category": "Gift", "date": "2026-02-10"}, "yesterday"
        )
        assert error.field == "updatedAt"

    def test_requires_target_collection(self, updated_at):
        _, error = append_record({"expenses": []}, "income", {}, updated_at)
        assert error.field == "income"


class TestUpdateAndDeleteRecord:
    """Tests for update_record and delete_record."""

    @pytest.fixture
    def state(self) -> dict:
        return {
            "expenses": [
                {"id": "e1", "category": "Food", "item": "Groceries", "amount": 90, "date": "2026-02-01"},
                {"id": "e2", "category": "Fuel", "item": "Gas", "amount": 45, "date": "2026-02-02"},
            ]
        }

    def test_update_merges_patch(self, state, updated_at):
        """Patched fields change, the rest is kept, snake_case keys work."""
        next_state, error = update_record(state, "expense", "e1", {"amount": 120, "item": "Market"}, updated_at)
        assert error is None
        record = next_state.expenses[0]
        assert record.amount == 120
        assert record.item == "Market"
        assert record.category == "Food"
        assert record.updated_at == updated_at

    def test_update_cannot_change_id(self, state, updated_at):
        next_state, _ = update_record(state, "expense", "e2", {"id": "zzz"}, updated_at)
        assert next_state.expenses[1].id == "e2"

    def test_update_accepts_snake_case_patch(self, state, updated_at):
        next_state, error = update_record(state, "expense", "e1", {"record_type": "savings"}, updated_at)
        assert error is None
        assert next_state.expenses[0].record_type == "savings"

    def test_update_revalidates(self, state, updated_at):
        _, error = update_record(state, "expense", "e1", {"amount": -1}, updated_at)
        assert error.field == "amount"

    def test_update_unknown_id(self, state, updated_at):
        _, error = update_record(state, "expense", "nope", {"amount": 1}, updated_at)
        assert error.field == "id"

    def test_delete(self, state):
        next_state, error = delete_record(state, "expenses", "e1")
        assert error is None
        assert [r.id for r in next_state.expenses] == ["e2"]

    def test_personas_are_not_deleted_as_records(self):
        _, error = delete_record({"personas": [{"name": "A"}]}, "persona", "A")
        assert error.field == "recordType"


class TestPersonas:
    """Tests for persona rename, delete and impact summary."""

    def test_impact_summary_counts_records(self):
        summary, error = persona_impact_summary(
            {
                "income": [{"person": "PersonA"}],
                "expenses": [{"person": "PersonA"}, {"person": "PersonC"}],
                "assets": [{"person": "PersonA"}],
                "debts": [],
                "credit": [{"person": "PersonA"}],
                "loans": [],
                "creditCards": [{"person": "PersonA"}],
            },
            "PersonA",
        )
        assert error is None
        assert summary.total == 5
        assert summary.expenses == 1
        assert summary.credit_cards == 1

    def test_rename_updates_records_and_persona(self, persona_state):
        next_state, error = rename_persona(
            persona_state, "PersonA", "PersonD", {"emoji": "🧑‍💻", "note": "Updated"}
        )
        assert error is None
        assert next_state.income[0].person == "PersonD"
        assert next_state.expenses[1].person == "PersonC"
        assert next_state.personas[0].name == "PersonD"
        assert next_state.personas[0].emoji == "🧑‍💻"
        assert next_state.personas[0].note == "Updated"

    def test_rename_rejects_existing_name(self, persona_state):
        _, error = rename_persona(persona_state, "PersonA", "PersonC")
        assert error.field == "newName"

    def test_delete_with_reassign(self, persona_state):
        next_state, error = delete_persona(persona_state, "PersonA", "reassign", "PersonC")
        assert error is None
        assert next_state.income[0].person == "PersonC"
        assert [p.name for p in next_state.personas] == ["PersonC"]

    def test_delete_with_cascade(self, persona_state):
        next_state, error = delete_persona(persona_state, "PersonA", PersonaDeletePolicy.CASCADE)
        assert error is None
        assert next_state.income == []
        assert [e.person for e in next_state.expenses] == ["PersonC"]

    def test_reassign_requires_existing_target(self, persona_state):
        _, error = delete_persona(persona_state, "PersonA", "reassign", "Ghost")
        assert error.field == "reassignTo"

    def test_unknown_policy(self, persona_state):
        _, error = delete_persona(persona_state, "PersonA", "archive")
        assert error.field == "policy"


class TestReconcileRecurringExpenseRows:
    """Tests for reconcile_recurring_expense_rows."""

    @staticmethod
    def _state(expenses):
        return {
            "income": [],
            "expenses": expenses,
            "assets": [],
            "debts": [],
            "credit": [],
            "loans": [],
            "goals": [],
            "notes": [],
            "personas": [{"name": "PersonA"}],
            "schemaVersion": 1,
        }

    def test_preserves_zeroed_rows(self):
        """A row the user set to 0 is kept and not re-seeded."""
        gasoline = {"person": "PersonA", "item": "Gasoline", "category": "Fuel", "amount": 0, "description": "No car right now"}
        result, error = reconcile_recurring_expense_rows(self._state([gasoline]), [dict(gasoline, amount=120)])
        assert error is None
        assert result.added_count == 0
        rows = [r for r in result.next_collections_state.expenses if r.item == "Gasoline"]
        assert len(rows) == 1
        assert rows[0].amount == 0

    def test_removes_legacy_debt_payment_row(self):
        result, error = reconcile_recurring_expense_rows(
            self._state(
                [{"person": "PersonA", "item": "Debts", "category": "Debt Payment", "amount": 2468}]
            )
        )
        assert error is None
        assert result.removed_count == 1
        assert result.next_collections_state.expenses == []
        assert result.next_collections_state.schema_version == CURRENT_SCHEMA_VERSION

    def test_seeds_missing_rows(self, updated_at):
        result, error = reconcile_recurring_expense_rows(
            self._state([]),
            [{"person": "PersonA", "item": "Internet", "category": "Utilities", "amount": 60, "date": "2026-02-01"}],
            updated_at,
        )
        assert error is None
        assert result.added_count == 1
        seeded = result.next_collections_state.expenses[0]
        assert seeded.id == "expense-1"
        assert seeded.updated_at == updated_at

    def test_rejects_unknown_persona(self, updated_at):
        result, error = reconcile_recurring_expense_rows(
            self._state([]),
            [{"person": "Ghost", "item": "Gas", "category": "Fuel", "amount": 60, "date": "2026-02-01"}],
            updated_at,
        )
        assert result is None
        assert error.kind == ErrorKind.VALIDATION
        assert error.field == "person"

    def test_rejects_template_missing_required_fields(self, updated_at):
        """Seeded rows need a category and an ISO date like any new expense."""
        _, error = reconcile_recurring_expense_rows(
            self._state([]),
            [{"person": "PersonA", "item": "Gas", "amount": 60, "date": "2026-02-01"}],
            updated_at,
        )
        assert error.field == "category"
        _, error = reconcile_recurring_expense_rows(
            self._state([]),
            [{"person": "PersonA", "item": "Gas", "category": "Fuel", "amount": 60}],
            updated_at,
        )
        assert error.field == "date"

    def test_seeding_requires_timestamp(self):
        _, error = reconcile_recurring_expense_rows(
            self._state([]),
            [{"person": "PersonA", "item": "Gas", "category": "Fuel", "amount": 60, "date": "2026-02-01"}],
        )
        assert error.field == "updatedAt"
