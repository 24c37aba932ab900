"""Tests for the planning insights aggregator."""

import pytest

from ledgerlight_core import ErrorKind, calculate_planning_insights
from ledgerlight_core.planning import BUDGET_BUCKETS, projected_risk_level


@pytest.fixture
def planning_state() -> dict:
    return {
        "income": [{"amount": 8000}],
        "expenses": [
            {"amount": 300, "category": "Utilities", "item": "Internet"},
            {"amount": 600, "category": "Groceries", "item": "Groceries"},
        ],
        "assets": [{"amount": 1200, "recordType": "savings"}],
        "debts": [{"id": "d1", "item": "Mortgage", "amount": 100000, "minimumPayment": 1200, "interestRatePercent": 6.5}],
        "credit": [{"id": "c1", "item": "Card", "amount": 2000, "minimumPayment": 120, "interestRatePercent": 24, "creditLimit": 5000}],
        "loans": [{"id": "l1", "item": "Car", "amount": 10000, "minimumPayment": 350, "interestRatePercent": 8.5}],
        "goals": [],
    }


class TestCalculatePlanningInsights:
    """Tests for calculate_planning_insights."""

    def test_sections_are_populated(self, planning_state, risk_config):
        insights, error = calculate_planning_insights(planning_state, "2026-02-20", risk_config)
        assert error is None
        assert len(insights.budget_vs_actual_rows) > 0
        assert len(insights.recurring_baseline_rows) > 0
        assert len(insights.amortization_rows) > 0
        assert isinstance(insights.forecast.projected_risk_level, str)
        assert len(insights.scenario_rows) >= 3
        assert len(insights.risk_provenance_rows) > 0
        assert len(insights.reconcile_checklist_rows) == 3

    def test_budget_buckets(self, planning_state, risk_config):
        insights, _ = calculate_planning_insights(planning_state, "2026-02-20", risk_config)
        rows = {row.bucket: row for row in insights.budget_vs_actual_rows}
        assert [row.bucket for row in insights.budget_vs_actual_rows] == [b for b, _ in BUDGET_BUCKETS]
        assert rows["Needs"].target_amount == 4000
        # Internet and groceries plus 1670 of minimum payments.
        assert rows["Needs"].actual_amount == pytest.approx(2570)
        assert rows["Wants"].actual_amount == 0

    def test_amortization_rows(self, planning_state, risk_config):
        insights, _ = calculate_planning_insights(planning_state, "2026-02-20", risk_config)
        rows = {row.id: row for row in insights.amortization_rows}
        assert set(rows) == {"d1", "c1", "l1"}
        assert rows["c1"].monthly_interest == pytest.approx(40)
        assert rows["c1"].monthly_principal == pytest.approx(80)
        assert rows["d1"].payoff_months is not None

    def test_provenance_names_source_collections(self, planning_state, risk_config):
        insights, _ = calculate_planning_insights(planning_state, "2026-02-20", risk_config)
        concentration = next(
            row for row in insights.risk_provenance_rows if row.finding_id.startswith("income-concentration")
        )
        assert concentration.source_collections == ["income"]

    def test_checklist_ids(self, planning_state, risk_config):
        insights, _ = calculate_planning_insights(planning_state, "2026-02-20", risk_config)
        assert [row.id for row in insights.reconcile_checklist_rows] == [
            "refresh-balances",
            "record-interest-rates",
            "confirm-recurring-expenses",
        ]
        assert all(row.done for row in insights.reconcile_checklist_rows)

    def test_scenarios_follow_projection_profiles(self, planning_state, risk_config):
        insights, _ = calculate_planning_insights(planning_state, "2026-02-20", risk_config)
        assert [row.profile_id for row in insights.scenario_rows] == ["conservative", "moderate", "aggressive"]

    def test_malformed_state(self, risk_config):
        insights, error = calculate_planning_insights({"income": []}, "2026-02-20", risk_config)
        assert insights is None
        assert error.kind == ErrorKind.VALIDATION


class TestProjectedRiskLevel:
    def test_no_findings_is_low(self):
        assert projected_risk_level([]) == "low"
