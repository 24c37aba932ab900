"""Planning insights.

Composes metrics, risk findings and projections into the planning view:
50/30/20 budget buckets, the recurring expense baseline, an amortization
outlook per liability, a twelve-month forecast, one scenario row per projection
profile, provenance for each risk finding and a short reconcile checklist.
"""

from datetime import date
from typing import Any, Optional

import structlog

from ledgerlight_core.config import RiskConfig
from ledgerlight_core.exceptions import ValidationError
from ledgerlight_core.metrics import (
    METRIC_COLLECTIONS,
    compute_dashboard_metrics,
    resolve_savings_period,
    total,
    tracked_monthly_savings,
)
from ledgerlight_core.models.ledger import LIABILITY_COLLECTIONS, BudgetCollectionsState, collection_alias
from ledgerlight_core.models.results import (
    AmortizationRow,
    BudgetBucketRow,
    ChecklistRow,
    DashboardMetrics,
    NetWorthProjection,
    PlanningForecast,
    PlanningInsights,
    RecurringBaselineRow,
    RiskFinding,
    RiskProvenanceRow,
    ScenarioRow,
    Severity,
)
from ledgerlight_core.mutators import is_legacy_aggregate_row
from ledgerlight_core.payoff import amortize
from ledgerlight_core.projection import compute_net_worth_projection
from ledgerlight_core.result import result_boundary
from ledgerlight_core.risk import RISK_RULES, compute_risk_findings, is_fixed_cost
from ledgerlight_core.validation import coerce_ledger, coerce_reference_date

logger = structlog.get_logger()

FORECAST_MONTHS = 12

# Essentials that are not fixed costs but still count as needs.
ESSENTIAL_KEYWORDS = (
    "grocer",
    "food",
    "transport",
    "fuel",
    "gas",
    "transit",
    "health",
    "medical",
    "pharmacy",
)

BUDGET_BUCKETS = (
    ("Needs", 50.0),
    ("Wants", 30.0),
    ("Savings & Debt Payoff", 20.0),
)

RISK_LEVELS = {
    Severity.CRITICAL: "critical",
    Severity.HIGH: "high",
    Severity.MEDIUM: "moderate",
    Severity.LOW: "low",
}


def _is_need(record: Any) -> bool:
    text = f"{record.category} {record.item}".lower()
    return is_fixed_cost(record) or any(keyword in text for keyword in ESSENTIAL_KEYWORDS)


def budget_vs_actual_rows(ledger: BudgetCollectionsState, metrics: DashboardMetrics) -> list[BudgetBucketRow]:
    """Actual spending per 50/30/20 bucket against income."""
    needs = total(e.amount for e in ledger.expenses if _is_need(e)) + metrics.total_minimum_payments
    wants = total(e.amount for e in ledger.expenses if not _is_need(e))
    savings = tracked_monthly_savings(ledger, resolve_savings_period(ledger))
    actual = {"Needs": needs, "Wants": wants, "Savings & Debt Payoff": savings}

    rows = []
    for bucket, percent in BUDGET_BUCKETS:
        target = metrics.total_income * percent / 100
        rows.append(
            BudgetBucketRow(
                bucket=bucket,
                target_percent=percent,
                target_amount=target,
                actual_amount=actual[bucket],
                variance=target - actual[bucket],
            )
        )
    return rows


def recurring_baseline_rows(ledger: BudgetCollectionsState) -> list[RecurringBaselineRow]:
    """Expenses grouped by category and item, largest first."""
    groups: dict[tuple[str, str], list[float]] = {}
    labels: dict[tuple[str, str], tuple[str, str]] = {}
    for expense in ledger.expenses:
        key = (expense.category.lower(), expense.item.lower())
        groups.setdefault(key, []).append(expense.amount)
        labels.setdefault(key, (expense.category, expense.item))
    rows = [
        RecurringBaselineRow(
            category=labels[key][0],
            item=labels[key][1],
            monthly_amount=total(amounts),
            record_count=len(amounts),
        )
        for key, amounts in groups.items()
    ]
    return sorted(rows, key=lambda row: row.monthly_amount, reverse=True)


def amortization_rows(ledger: BudgetCollectionsState) -> list[AmortizationRow]:
    """Interest, principal and payoff outlook for each open liability."""
    rows = []
    for collection in LIABILITY_COLLECTIONS:
        for index, record in enumerate(ledger.collection(collection)):
            if record.amount <= 0:
                continue
            rate = record.interest_rate_percent
            interest = record.amount * (rate or 0.0) / 100 / 12
            try:
                months, total_interest = amortize(record.amount, record.minimum_payment, rate or 0.0)
            except ValidationError:
                months, total_interest = None, None
            rows.append(
                AmortizationRow(
                    id=record.id or f"{collection_alias(collection)}[{index}]",
                    collection=collection_alias(collection),
                    item=record.label,
                    balance=record.amount,
                    interest_rate_percent=rate,
                    minimum_payment=record.minimum_payment,
                    monthly_interest=interest,
                    monthly_principal=max(record.minimum_payment - interest, 0.0),
                    payoff_months=months,
                    total_interest=total_interest,
                )
            )
    return rows


def projected_risk_level(findings: list[RiskFinding]) -> str:
    """Risk level named after the most severe finding; ``low`` when there are none."""
    if not findings:
        return RISK_LEVELS[Severity.LOW]
    worst = min(findings, key=lambda finding: finding.severity.rank)
    return RISK_LEVELS[worst.severity]


def _profile_point(projection: NetWorthProjection, profile_id: str, months: int) -> float:
    for profile in projection.profiles:
        if profile.id != profile_id:
            continue
        for point in profile.points:
            if point.months == months:
                return point.projected_net_worth
    return projection.starting_net_worth


def forecast(
    ledger: BudgetCollectionsState,
    metrics: DashboardMetrics,
    projection: NetWorthProjection,
    findings: list[RiskFinding],
) -> PlanningForecast:
    """Twelve-month outlook if the current budget holds."""
    surplus = metrics.free_cash_flow_after_minimums
    obligations = metrics.total_expenses + metrics.total_minimum_payments
    liquid_in_a_year = max(total(a.amount for a in ledger.assets) + surplus * FORECAST_MONTHS, 0.0)
    return PlanningForecast(
        horizon_months=FORECAST_MONTHS,
        projected_monthly_surplus=surplus,
        projected_net_worth=_profile_point(projection, "moderate", FORECAST_MONTHS),
        projected_emergency_runway_months=liquid_in_a_year / obligations if obligations > 0 else 0.0,
        projected_risk_level=projected_risk_level(findings),
    )


def scenario_rows(projection: NetWorthProjection) -> list[ScenarioRow]:
    """Net worth at 1, 5 and 10 years for each profile."""
    return [
        ScenarioRow(
            profile_id=profile.id,
            label=profile.label,
            net_worth_one_year=_profile_point(projection, profile.id, 12),
            net_worth_five_years=_profile_point(projection, profile.id, 60),
            net_worth_ten_years=_profile_point(projection, profile.id, 120),
        )
        for profile in projection.profiles
    ]


def risk_provenance_rows(findings: list[RiskFinding]) -> list[RiskProvenanceRow]:
    """Which collections and records each finding was computed from."""
    return [
        RiskProvenanceRow(
            finding_id=finding.id,
            severity=finding.severity,
            metric=finding.metric,
            value=finding.value,
            threshold=finding.threshold,
            source_collections=list(RISK_RULES.sources_for(finding.rule)),
            record_ids=finding.record_ids,
        )
        for finding in findings
    ]


def reconcile_checklist_rows(
    ledger: BudgetCollectionsState,
    findings: list[RiskFinding],
) -> list[ChecklistRow]:
    """Three reconcile steps and whether each is already satisfied."""
    stale = [f for f in findings if f.rule == "stale-balances"]
    missing_apr = [f for f in findings if f.rule == "missing-apr"]
    legacy_rows = [e for e in ledger.expenses if is_legacy_aggregate_row(e)]
    return [
        ChecklistRow(
            id="refresh-balances",
            label="Refresh account balances",
            done=not stale,
            detail=(
                f"{int(stale[0].value)} balance(s) need updating." if stale
                else "All balances were updated recently."
            ),
        ),
        ChecklistRow(
            id="record-interest-rates",
            label="Record interest rates on every liability",
            done=not missing_apr,
            detail=(
                f"{len(missing_apr)} liability record(s) have no interest rate." if missing_apr
                else "Every liability has an interest rate."
            ),
        ),
        ChecklistRow(
            id="confirm-recurring-expenses",
            label="Confirm recurring expenses",
            done=bool(ledger.expenses) and not legacy_rows,
            detail=(
                f"Remove {len(legacy_rows)} legacy debt payment row(s)." if legacy_rows
                else "No recurring expenses recorded yet." if not ledger.expenses
                else "Recurring expenses are in place."
            ),
        ),
    ]


@result_boundary
def calculate_planning_insights(
    state: Any,
    as_of: Any = None,
    config: Optional[RiskConfig] = None,
) -> PlanningInsights:
    """Build the planning view for a ledger.

    Args:
        state: Ledger with ``income``, ``expenses``, ``assets``, ``debts``,
            ``credit``, ``loans`` and ``goals``.
        as_of: Date for the risk scan. Defaults to today.
        config: Risk thresholds; defaults to ``RiskConfig()``.
    """
    ledger = coerce_ledger(state, METRIC_COLLECTIONS)
    reference = coerce_reference_date(as_of, "asOf") if as_of is not None else date.today()
    metrics = compute_dashboard_metrics(ledger)
    findings = compute_risk_findings(ledger, reference, config or RiskConfig(), metrics=metrics)
    projection = compute_net_worth_projection(ledger, metrics=metrics)

    insights = PlanningInsights(
        budget_vs_actual_rows=budget_vs_actual_rows(ledger, metrics),
        recurring_baseline_rows=recurring_baseline_rows(ledger),
        amortization_rows=amortization_rows(ledger),
        forecast=forecast(ledger, metrics, projection, findings),
        scenario_rows=scenario_rows(projection),
        risk_provenance_rows=risk_provenance_rows(findings),
        reconcile_checklist_rows=reconcile_checklist_rows(ledger, findings),
    )
    logger.info(
        "planning_insights_calculated",
        findings=len(findings),
        risk_level=insights.forecast.projected_risk_level,
    )
    return insights


__all__ = [
    "FORECAST_MONTHS",
    "BUDGET_BUCKETS",
    "budget_vs_actual_rows",
    "recurring_baseline_rows",
    "amortization_rows",
    "projected_risk_level",
    "forecast",
    "scenario_rows",
    "risk_provenance_rows",
    "reconcile_checklist_rows",
    "calculate_planning_insights",
]
