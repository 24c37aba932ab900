"""Tests for the risk findings engine."""

from datetime import date

import pytest

from ledgerlight_core import ErrorKind, RiskConfig, extract_risk_findings
from ledgerlight_core.models import Severity
from ledgerlight_core.risk import RISK_RULES, is_fixed_cost

AS_OF = "2026-02-20"


@pytest.fixture
def stressed_state() -> dict:
    """High fixed costs, one income source, expensive and stale debt."""
    return {
        "income": [{"item": "Salary", "amount": 5000}],
        "expenses": [
            {"category": "Housing", "amount": 1800},
            {"category": "Utilities", "amount": 500},
            {"category": "Insurance", "amount": 400},
        ],
        "assets": [{"recordType": "savings", "amount": 200}],
        "debts": [
            {
                "item": "Mortgage",
                "amount": 220000,
                "minimumPayment": 1700,
                "interestRatePercent": 7,
                "collateralAssetMarketValue": 200000,
                "updatedAt": "2024-01-01",
            }
        ],
        "credit": [
            {
                "item": "Card A",
                "amount": 5000,
                "creditLimit": 10000,
                "minimumPayment": 490,
                "interestRatePercent": 29,
                "updatedAt": "2024-01-01",
            }
        ],
        "loans": [
            {
                "item": "Car Loan",
                "amount": 18000,
                "minimumPayment": 500,
                "interestRatePercent": 9,
                "collateralAssetMarketValue": 15000,
                "updatedAt": "2024-01-01",
            }
        ],
        "goals": [],
    }


@pytest.fixture
def overloaded_state() -> dict:
    """Seventy-five unrated liabilities, enough to overflow the cap."""
    return {
        "income": [{"amount": 1000}],
        "expenses": [{"amount": 4000}],
        "assets": [{"amount": 100}],
        "debts": [{"item": f"Debt {n}", "amount": 10000, "minimumPayment": 600} for n in range(1, 26)],
        "credit": [
            {"item": f"Card {n}", "amount": 9000, "creditLimit": 1000, "minimumPayment": 500}
            for n in range(1, 26)
        ],
        "loans": [{"item": f"Loan {n}", "amount": 12000, "minimumPayment": 700} for n in range(1, 26)],
        "goals": [],
    }


class TestExtractRiskFindings:
    """Tests for extract_risk_findings."""

    def test_high_signal_checks(self, stressed_state, risk_config):
        findings, error = extract_risk_findings(stressed_state, AS_OF, risk_config)
        assert error is None
        ids = {finding.id for finding in findings}
        assert "runway-debt-lt-1" in ids or "runway-debt-lt-3" in ids
        assert "fixed-cost-ratio-gt-60" in ids
        assert "income-concentration-gt-90" in ids
        assert "apr-exposure-gt-25" in ids
        assert "secured-specific-ltv-risk" in ids
        assert "stale-balance-gt-0" in ids or "stale-balance-gt-3" in ids

    def test_secured_ltv_lists_records(self, stressed_state, risk_config):
        findings, _ = extract_risk_findings(stressed_state, AS_OF, risk_config)
        ltv = next(f for f in findings if f.id == "secured-specific-ltv-risk")
        assert ltv.record_ids == ["debts[0]", "loans[0]"]
        assert ltv.value == pytest.approx(120)

    def test_caps_at_fifty(self, overloaded_state, risk_config):
        findings, error = extract_risk_findings(overloaded_state, AS_OF, risk_config)
        assert error is None
        assert len(findings) == 50

    def test_cap_drops_lowest_severity_first(self, overloaded_state, risk_config):
        """Over-limit (high) findings survive the cap; missing-APR (low) ones are cut."""
        findings, _ = extract_risk_findings(overloaded_state, AS_OF, risk_config)
        ids = [finding.id for finding in findings]
        assert sum(1 for i in ids if i.startswith("over-limit-")) == 25
        ranks = [finding.severity.rank for finding in findings]
        assert ranks == sorted(ranks)

    def test_configured_cap(self, overloaded_state):
        findings, _ = extract_risk_findings(
            overloaded_state, AS_OF, RiskConfig(_env_file=None, max_findings=5)
        )
        assert len(findings) == 5
        assert findings[0].severity == Severity.CRITICAL

    def test_thresholds_in_ids_follow_config(self, stressed_state):
        findings, _ = extract_risk_findings(
            stressed_state, AS_OF, RiskConfig(_env_file=None, fixed_cost_ratio_percent=75)
        )
        assert "fixed-cost-ratio-gt-75" in {f.id for f in findings}

    def test_recent_balances_are_not_stale(self, stressed_state, risk_config):
        findings, _ = extract_risk_findings(stressed_state, date(2024, 1, 20), risk_config)
        assert not any(f.id.startswith("stale-balance") for f in findings)

    def test_unlabelled_income_rows_are_separate_sources(self, empty_state, risk_config):
        """Two equal paychecks without labels are not one concentrated source."""
        state = dict(empty_state, income=[{"amount": 2500}, {"amount": 2500}])
        findings, error = extract_risk_findings(state, AS_OF, risk_config)
        assert error is None
        assert not any(f.id.startswith("income-concentration") for f in findings)

    def test_concentration_lists_source_records(self, empty_state, risk_config):
        state = dict(
            empty_state,
            income=[{"id": "i1", "item": "Salary", "amount": 4000}, {"item": "salary", "amount": 1000}, {"amount": 100}],
        )
        findings, _ = extract_risk_findings(state, AS_OF, risk_config)
        concentration = next(f for f in findings if f.id.startswith("income-concentration"))
        assert concentration.record_ids == ["i1", "income[1]"]

    def test_healthy_ledger_has_no_critical_findings(self, household_state, risk_config):
        findings, error = extract_risk_findings(household_state, AS_OF, risk_config)
        assert error is None
        assert all(f.severity != Severity.CRITICAL for f in findings)

    def test_findings_carry_rule_names(self, stressed_state, risk_config):
        findings, _ = extract_risk_findings(stressed_state, AS_OF, risk_config)
        rule_names = {rule.name for rule in RISK_RULES.rules}
        assert all(f.rule in rule_names for f in findings)

    def test_missing_collection(self, risk_config):
        findings, error = extract_risk_findings({"income": []}, AS_OF, risk_config)
        assert findings is None
        assert error.kind == ErrorKind.VALIDATION

    def test_is_pure(self, stressed_state, risk_config):
        first, _ = extract_risk_findings(stressed_state, AS_OF, risk_config)
        second, _ = extract_risk_findings(stressed_state, AS_OF, risk_config)
        assert first == second


class TestRuleRegistry:
    """Tests for the rule table."""

    def test_sources_are_camel_case(self):
        assert RISK_RULES.sources_for("apr-exposure") == ("credit", "creditCards")

    def test_unknown_rule_has_no_sources(self):
        assert RISK_RULES.sources_for("nope") == ()

    def test_fixed_cost_keywords(self):
        class Row:
            category = "Utilities"
            item = "Power"

        assert is_fixed_cost(Row())
