"""Supporting summaries: cash flow, savings, emergency fund, goals and cards."""

from typing import Any

from ledgerlight_core.metrics import (
    period_key,
    ratio_percent,
    resolve_savings_period,
    total,
    total_minimum_payments,
    tracked_monthly_savings,
)
from ledgerlight_core.models.records import CreditCardRecord, GoalRecord, GoalStatus
from ledgerlight_core.models.results import (
    CreditCardSummary,
    EmergencyFundSummary,
    GoalStatusSummary,
    IncomeExpenseSummary,
    SavingsRecommendation,
    SavingsStorageRow,
    SavingsStorageSummary,
)
from ledgerlight_core.result import result_boundary
from ledgerlight_core.validation import coerce_ledger, coerce_record_list

EMERGENCY_FUND_MONTHS = 6
LIQUID_TARGET_MONTHS = 2
MINIMUM_SAVINGS_PERCENT = 10.0
TARGET_SAVINGS_PERCENT = 20.0
SHORT_TERM_GOAL_MONTHS = 12

# Checked before the liquid keywords so "brokerage cash" counts as invested.
INVESTED_KEYWORDS = (
    "brokerage",
    "stock",
    "401k",
    "401(k)",
    "ira",
    "roth",
    "index",
    "etf",
    "bond",
    "crypto",
    "invest",
    "retirement",
)
LIQUID_KEYWORDS = (
    "savings",
    "checking",
    "cash",
    "bank",
    "hysa",
    "money market",
    "emergency",
)


@result_boundary
def calculate_income_expense_summary(state: Any) -> IncomeExpenseSummary:
    """Total income, total expenses, surplus and savings rate."""
    ledger = coerce_ledger(state, ("income", "expenses"))
    total_income = total(r.amount for r in ledger.income)
    total_expenses = total(r.amount for r in ledger.expenses)
    surplus = total_income - total_expenses
    return IncomeExpenseSummary(
        total_income=total_income,
        total_expenses=total_expenses,
        monthly_surplus_deficit=surplus,
        savings_rate_percent=surplus / total_income * 100 if total_income > 0 else 0.0,
    )


@result_boundary
def calculate_savings_storage_summary(state: Any, reference_date: Any = None) -> SavingsStorageSummary:
    """Tracked monthly savings and where stored savings are kept.

    Monthly savings are the savings transfers (assets with
    ``recordType = "savings"``) dated in the reference month. Without a
    ``reference_date`` the month of the latest dated transfer is used; with no
    transfers the monthly amount and rate are 0.
    """
    ledger = coerce_ledger(state, ("income", "expenses", "assets"))
    period = resolve_savings_period(ledger, reference_date)
    monthly_amount = tracked_monthly_savings(ledger, period)
    total_income = total(r.amount for r in ledger.income)
    total_stored = total(a.amount for a in ledger.assets)

    rows = [
        SavingsStorageRow(
            id=asset.id,
            person=asset.person,
            item=asset.label,
            amount=asset.amount,
            share_percent=ratio_percent(asset.amount, total_stored),
        )
        for asset in ledger.assets
    ]
    return SavingsStorageSummary(
        reference_period=period_key(period) if period else None,
        monthly_savings_amount=monthly_amount,
        monthly_savings_rate_percent=ratio_percent(monthly_amount, total_income),
        total_stored_savings=total_stored,
        storage_rows=rows,
    )


def is_liquid_asset(*labels: str, record_type: str = "") -> bool:
    """Classify an asset as liquid from its labels.

    Invested keywords win over liquid ones. Rows tagged as savings count as
    liquid; anything unrecognized counts as invested.
    """
    text = " ".join(label for label in labels if label).lower()
    if any(keyword in text for keyword in INVESTED_KEYWORDS):
        return False
    if any(keyword in text for keyword in LIQUID_KEYWORDS):
        return True
    return record_type.strip().lower() == "savings"


@result_boundary
def calculate_emergency_fund_summary(state: Any) -> EmergencyFundSummary:
    """Emergency fund goal (six months of obligations) against balances.

    Obligations are expenses plus minimum payments on debts, credit and loans.
    Balances come from assets and the equity of asset holdings, split into
    liquid and invested.
    """
    ledger = coerce_ledger(state, ("expenses",))
    monthly_expenses = total(e.amount for e in ledger.expenses)
    debt_minimums = total_minimum_payments(ledger)
    obligations = monthly_expenses + debt_minimums

    liquid, invested = [], []
    for asset in ledger.assets:
        bucket = liquid if is_liquid_asset(
            asset.item, asset.category, asset.description, record_type=asset.record_type or ""
        ) else invested
        bucket.append(asset.amount)
    for holding in ledger.asset_holdings:
        bucket = liquid if is_liquid_asset(
            holding.item, holding.category, holding.description, record_type=holding.record_type or ""
        ) else invested
        bucket.append(max(holding.net_value, 0.0))

    liquid_amount = total(liquid)
    invested_amount = total(invested)
    available = liquid_amount + invested_amount
    goal = obligations * EMERGENCY_FUND_MONTHS
    liquid_target = obligations * LIQUID_TARGET_MONTHS

    return EmergencyFundSummary(
        monthly_expenses=monthly_expenses,
        monthly_debt_minimums=debt_minimums,
        monthly_obligations=obligations,
        emergency_fund_goal=goal,
        liquid_target=liquid_target,
        liquid_amount=liquid_amount,
        invested_amount=invested_amount,
        total_available=available,
        missing_liquid_amount=max(liquid_target - liquid_amount, 0.0),
        missing_total_amount=max(goal - available, 0.0),
        months_covered=available / obligations if obligations > 0 else 0.0,
    )


def _recommendation_reason(total_income: float, surplus: float, minimum: float, target: float) -> str:
    if total_income <= 0:
        return "No income recorded yet; add income to get a savings target."
    if surplus >= target:
        return f"Your surplus covers the {TARGET_SAVINGS_PERCENT:g}% savings target."
    if surplus >= minimum:
        return (
            f"Your surplus covers the {MINIMUM_SAVINGS_PERCENT:g}% minimum but not the "
            f"{TARGET_SAVINGS_PERCENT:g}% target; save all of it."
        )
    if surplus > 0:
        return (
            f"Your surplus is below the {MINIMUM_SAVINGS_PERCENT:g}% minimum; save all of it "
            "and look for expenses to trim."
        )
    return "Expenses and minimum payments use all income; reduce spending before saving."


@result_boundary
def calculate_recommended_savings_target(state: Any) -> SavingsRecommendation:
    """Monthly savings recommendation.

    The minimum is 10% and the target 20% of income. The recommendation is the
    target bounded by the surplus left after expenses and minimum payments.
    """
    ledger = coerce_ledger(state, ("income", "expenses"))
    total_income = total(r.amount for r in ledger.income)
    surplus = total_income - total(e.amount for e in ledger.expenses) - total_minimum_payments(ledger)
    minimum = total_income * MINIMUM_SAVINGS_PERCENT / 100
    target = total_income * TARGET_SAVINGS_PERCENT / 100
    recommended = min(target, max(surplus, 0.0))
    return SavingsRecommendation(
        total_income_for_reference=total_income,
        available_surplus=surplus,
        minimum_recommended_savings=minimum,
        target_recommended_savings=target,
        recommended_monthly_savings=recommended,
        savings_gap=max(target - recommended, 0.0),
        recommendation_reason=_recommendation_reason(total_income, surplus, minimum, target),
    )


@result_boundary
def calculate_goal_status_summary(goals: Any) -> GoalStatusSummary:
    """Counts of goals per status.

    Args:
        goals: List of goal records. Anything else is a VALIDATION error.
    """
    records = [GoalRecord.model_validate(dict(row)) for row in coerce_record_list(goals, "goals")]
    completed = sum(1 for g in records if g.status == GoalStatus.COMPLETED)
    in_progress = sum(1 for g in records if g.status == GoalStatus.IN_PROGRESS)
    not_started = [g for g in records if g.status == GoalStatus.NOT_STARTED]
    short_term = sum(
        1
        for g in not_started
        if g.timeframe_months is not None and g.timeframe_months <= SHORT_TERM_GOAL_MONTHS
    )
    return GoalStatusSummary(
        total_goals=len(records),
        completed_count=completed,
        in_progress_count=in_progress,
        not_started_count=len(not_started),
        short_term_not_started_count=short_term,
        completion_rate_percent=ratio_percent(completed, len(records)),
    )


@result_boundary
def calculate_credit_card_summary(cards: Any) -> CreditCardSummary:
    """Aggregate card balances, payments and remaining capacity.

    Args:
        cards: List of credit card records. Anything else is a VALIDATION error.
    """
    records = [
        CreditCardRecord.model_validate(dict(row)) for row in coerce_record_list(cards, "cards")
    ]
    total_current = total(c.current_balance for c in records)
    capacity = total(c.max_capacity for c in records)
    return CreditCardSummary(
        total_current=total_current,
        total_monthly=total(c.monthly_payment for c in records),
        max_capacity=capacity,
        remaining_capacity=max(capacity - total_current, 0.0),
        utilization_percent=ratio_percent(total_current, capacity),
    )


__all__ = [
    "EMERGENCY_FUND_MONTHS",
    "LIQUID_TARGET_MONTHS",
    "MINIMUM_SAVINGS_PERCENT",
    "TARGET_SAVINGS_PERCENT",
    "is_liquid_asset",
    "calculate_income_expense_summary",
    "calculate_savings_storage_summary",
    "calculate_emergency_fund_summary",
    "calculate_recommended_savings_target",
    "calculate_goal_status_summary",
    "calculate_credit_card_summary",
]
