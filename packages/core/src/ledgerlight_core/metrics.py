"""Dashboard metrics calculator.

Computes the twenty dashboard KPIs, the month-over-month breakdown and the
labelled datapoint rows from a ledger. All functions are pure; results carry
plain floats.

Static totals (``calculate_dashboard_metrics``) exclude the collateral value of
secured liabilities from assets. The month-over-month breakdown adds it for
dated liability records.
"""

import math
from datetime import date
from typing import Any, Iterable, Optional

import structlog

from ledgerlight_core.models.ledger import LIABILITY_COLLECTIONS, BudgetCollectionsState
from ledgerlight_core.models.records import GoalStatus
from ledgerlight_core.models.results import (
    DashboardMetrics,
    DatapointRow,
    DatapointUnit,
    MonthlyComparison,
    MonthOverMonthBreakdown,
)
from ledgerlight_core.result import result_boundary
from ledgerlight_core.validation import coerce_ledger, coerce_reference_date, parse_iso_date

logger = structlog.get_logger()

METRIC_COLLECTIONS = ("income", "expenses", "assets", "debts", "credit", "loans", "goals")
MONTHLY_COLLECTIONS = ("income", "expenses", "assets", "debts", "credit", "loans")


# =============================================================================
# SHARED AGGREGATES
# =============================================================================

def total(values: Iterable[float]) -> float:
    """Exact float sum."""
    return math.fsum(values)


def ratio_percent(numerator: float, denominator: float) -> float:
    """``numerator / denominator * 100``, or 0 when the denominator is not positive."""
    if denominator <= 0:
        return 0.0
    return numerator / denominator * 100


def liability_records(ledger: BudgetCollectionsState) -> list:
    """Debts, credit and loans in ledger order."""
    return [r for name in LIABILITY_COLLECTIONS for r in ledger.collection(name)]


def total_minimum_payments(ledger: BudgetCollectionsState) -> float:
    """Required monthly payments across debts, credit and loans."""
    return total(r.minimum_payment for r in liability_records(ledger))


def holdings_equity(ledger: BudgetCollectionsState) -> float:
    """Market value minus amount owed across asset holdings."""
    return total(h.net_value for h in ledger.asset_holdings)


def weighted_interest_rate(pairs: Iterable[tuple[float, Optional[float]]]) -> float:
    """Balance-weighted APR over ``(balance, rate)`` pairs with a known rate."""
    rated = [(balance, rate) for balance, rate in pairs if rate is not None and balance > 0]
    weight = total(balance for balance, _ in rated)
    if weight <= 0:
        return 0.0
    return total(balance * rate for balance, rate in rated) / weight


def emergency_runway_months(ledger: BudgetCollectionsState) -> float:
    """Months the asset balances cover expenses plus minimum payments."""
    obligations = total(e.amount for e in ledger.expenses) + total_minimum_payments(ledger)
    if obligations <= 0:
        return 0.0
    return total(a.amount for a in ledger.assets) / obligations


def period_key(value: date) -> str:
    """``YYYY-MM`` for a date."""
    return f"{value.year:04d}-{value.month:02d}"


def previous_period(value: date) -> date:
    """First day of the month before ``value``."""
    if value.month == 1:
        return date(value.year - 1, 12, 1)
    return date(value.year, value.month - 1, 1)


def savings_entries(ledger: BudgetCollectionsState) -> list:
    """Asset rows tagged as savings transfers."""
    return [a for a in ledger.assets if a.is_savings]


def resolve_savings_period(
    ledger: BudgetCollectionsState,
    reference_date: Any = None,
) -> Optional[date]:
    """Reference month for tracked savings.

    Uses ``reference_date`` when given, otherwise the month of the most recent
    dated savings entry. ``None`` when neither exists.
    """
    if reference_date is not None:
        return coerce_reference_date(reference_date)
    dated = [parse_iso_date(a.date) for a in savings_entries(ledger)]
    dated = [d for d in dated if d is not None]
    return max(dated) if dated else None


def tracked_monthly_savings(ledger: BudgetCollectionsState, period: Optional[date]) -> float:
    """Savings transfers dated in the month of ``period``."""
    if period is None:
        return 0.0
    key = period_key(period)
    amounts = []
    for entry in savings_entries(ledger):
        entry_date = parse_iso_date(entry.date)
        if entry_date is not None and period_key(entry_date) == key:
            amounts.append(entry.amount)
    return total(amounts)


# =============================================================================
# DASHBOARD METRICS
# =============================================================================

def compute_dashboard_metrics(ledger: BudgetCollectionsState) -> DashboardMetrics:
    """Compute the twenty KPIs for an already validated ledger."""
    total_income = total(r.amount for r in ledger.income)
    total_expenses = total(r.amount for r in ledger.expenses)
    surplus = total_income - total_expenses

    total_assets = total(r.amount for r in ledger.assets) + holdings_equity(ledger)
    total_debt_balance = total(r.amount for r in ledger.debts) + total(r.amount for r in ledger.loans)
    total_credit_balance = total(r.amount for r in ledger.credit)
    total_liabilities = total_debt_balance + total_credit_balance
    total_credit_limit = total(r.credit_limit for r in ledger.credit)
    minimums = total_minimum_payments(ledger)

    goal_scores = [g.progress_ratio * 100 for g in ledger.goals]
    goal_progress = total(goal_scores) / len(goal_scores) if goal_scores else 0.0

    metrics = DashboardMetrics(
        total_income=total_income,
        total_expenses=total_expenses,
        monthly_surplus_deficit=surplus,
        savings_rate_percent=surplus / total_income * 100 if total_income > 0 else 0.0,
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        net_worth=total_assets - total_liabilities,
        total_debt_balance=total_debt_balance,
        total_credit_balance=total_credit_balance,
        total_credit_limit=total_credit_limit,
        credit_utilization_percent=ratio_percent(total_credit_balance, total_credit_limit),
        available_credit=max(total_credit_limit - total_credit_balance, 0.0),
        total_minimum_payments=minimums,
        debt_to_income_ratio_percent=ratio_percent(minimums, total_income),
        debt_to_asset_ratio_percent=ratio_percent(total_liabilities, total_assets),
        expense_to_income_ratio_percent=ratio_percent(total_expenses, total_income),
        emergency_runway_months=emergency_runway_months(ledger),
        weighted_average_interest_rate_percent=weighted_interest_rate(
            (r.amount, r.interest_rate_percent) for r in liability_records(ledger)
        ),
        free_cash_flow_after_minimums=surplus - minimums,
        goal_progress_score_percent=min(max(goal_progress, 0.0), 100.0),
    )
    logger.debug(
        "dashboard_metrics_calculated",
        net_worth=metrics.net_worth,
        savings_rate_percent=metrics.savings_rate_percent,
    )
    return metrics


@result_boundary
def calculate_dashboard_metrics(state: Any) -> DashboardMetrics:
    """Compute the twenty dashboard KPIs.

    Requires the ``income``, ``expenses``, ``assets``, ``debts``, ``credit``,
    ``loans`` and ``goals`` collections; a missing one is a VALIDATION error.

    Returns:
        ``Result`` with a ``DashboardMetrics``. Its camelCase dump has exactly
        twenty keys.
    """
    return compute_dashboard_metrics(coerce_ledger(state, METRIC_COLLECTIONS))


# =============================================================================
# MONTH OVER MONTH
# =============================================================================

def _bucket(records: Iterable[Any], key: str, value_of) -> float:
    amounts = []
    for record in records:
        record_date = parse_iso_date(record.date)
        if record_date is not None and period_key(record_date) == key:
            amounts.append(value_of(record))
    return total(amounts)


def _month_totals(ledger: BudgetCollectionsState, key: str) -> dict[str, float]:
    liabilities = liability_records(ledger)
    secured = [r for name in ("debts", "loans") for r in ledger.collection(name)]
    assets = (
        _bucket(ledger.assets, key, lambda r: r.amount)
        + _bucket(ledger.asset_holdings, key, lambda r: r.net_value)
        + _bucket(secured, key, lambda r: r.collateral_asset_market_value)
    )
    liability_total = _bucket(liabilities, key, lambda r: r.amount)
    return {
        "income": _bucket(ledger.income, key, lambda r: r.amount),
        "expenses": _bucket(ledger.expenses, key, lambda r: r.amount),
        "assets": assets,
        "liabilities": liability_total,
        "net_worth": assets - liability_total,
    }


def compute_month_over_month(
    ledger: BudgetCollectionsState,
    reference: date,
) -> MonthOverMonthBreakdown:
    """Month-over-month breakdown for an already validated ledger."""
    current_key = period_key(reference)
    previous_key = period_key(previous_period(reference))
    current = _month_totals(ledger, current_key)
    previous = _month_totals(ledger, previous_key)
    return MonthOverMonthBreakdown(
        current_period=current_key,
        previous_period=previous_key,
        **{
            group: MonthlyComparison(current_month=current[group], previous_month=previous[group])
            for group in current
        },
    )


@result_boundary
def calculate_month_over_month(state: Any, reference_date: Any) -> MonthOverMonthBreakdown:
    """Compare dated totals in the reference month against the month before.

    Records are bucketed by the calendar month of their ``date``; undated
    records are ignored. Dated debts and loans with collateral add
    ``collateralAssetMarketValue`` to the asset bucket.

    Args:
        state: Ledger with ``income``, ``expenses``, ``assets``, ``debts``,
            ``credit`` and ``loans``.
        reference_date: Date, datetime or ISO string inside the current month.
    """
    ledger = coerce_ledger(state, MONTHLY_COLLECTIONS)
    return compute_month_over_month(ledger, coerce_reference_date(reference_date))


# =============================================================================
# DATAPOINT ROWS
# =============================================================================

@result_boundary
def calculate_dashboard_datapoint_rows(state: Any, reference_date: Any = None) -> list[DatapointRow]:
    """Flatten the dashboard into labelled ``{metric, value, unit}`` rows.

    ``Savings Rate`` uses the tracked savings rate (savings transfers in the
    reference month over income) when the ledger has savings entries, and the
    surplus-based rate otherwise.
    """
    ledger = coerce_ledger(state, METRIC_COLLECTIONS)
    metrics = compute_dashboard_metrics(ledger)

    savings_rate = metrics.savings_rate_percent
    if savings_entries(ledger):
        period = resolve_savings_period(ledger, reference_date)
        savings_rate = ratio_percent(tracked_monthly_savings(ledger, period), metrics.total_income)

    card_capacity = metrics.total_credit_limit + total(c.max_capacity for c in ledger.credit_cards)
    card_balance = metrics.total_credit_balance + total(c.current_balance for c in ledger.credit_cards)

    secured = [
        r for name in ("debts", "loans") for r in ledger.collection(name) if r.is_secured
    ]
    secured_balance = total(r.amount for r in secured)
    secured_collateral = total(r.collateral_asset_market_value for r in secured)

    completed_goals = sum(1 for g in ledger.goals if g.status == GoalStatus.COMPLETED)

    currency = DatapointUnit.CURRENCY
    percent = DatapointUnit.PERCENT
    values = [
        ("Total Income", metrics.total_income, currency),
        ("Total Expenses", metrics.total_expenses, currency),
        ("Monthly Surplus/Deficit", metrics.monthly_surplus_deficit, currency),
        ("Savings Rate", savings_rate, percent),
        ("Total Assets", metrics.total_assets, currency),
        ("Total Liabilities", metrics.total_liabilities, currency),
        ("Net Worth", metrics.net_worth, currency),
        ("Credit Card Capacity", card_capacity, currency),
        ("Credit Card Balance", card_balance, currency),
        ("Credit Card Remaining Capacity", max(card_capacity - card_balance, 0.0), currency),
        ("Credit Utilization", ratio_percent(card_balance, card_capacity), percent),
        ("Total Minimum Payments", metrics.total_minimum_payments, currency),
        ("Debt to Income Ratio", metrics.debt_to_income_ratio_percent, percent),
        ("Debt to Asset Ratio", metrics.debt_to_asset_ratio_percent, percent),
        ("Expense to Income Ratio", metrics.expense_to_income_ratio_percent, percent),
        ("Emergency Runway", metrics.emergency_runway_months, DatapointUnit.MONTHS),
        ("Weighted Average Interest Rate", metrics.weighted_average_interest_rate_percent, percent),
        ("Free Cash Flow After Minimums", metrics.free_cash_flow_after_minimums, currency),
        ("Secured Debt Balance", secured_balance, currency),
        ("Secured Debt Collateral Value", secured_collateral, currency),
        ("Secured Debt Loan-To-Value", ratio_percent(secured_balance, secured_collateral), percent),
        ("Asset Holdings Equity", holdings_equity(ledger), currency),
        ("Goal Progress Score", metrics.goal_progress_score_percent, percent),
        ("Goals Completed", float(completed_goals), DatapointUnit.COUNT),
    ]
    return [DatapointRow(metric=metric, value=value, unit=unit) for metric, value, unit in values]


__all__ = [
    "METRIC_COLLECTIONS",
    "MONTHLY_COLLECTIONS",
    "total",
    "ratio_percent",
    "liability_records",
    "total_minimum_payments",
    "holdings_equity",
    "weighted_interest_rate",
    "emergency_runway_months",
    "period_key",
    "previous_period",
    "savings_entries",
    "resolve_savings_period",
    "tracked_monthly_savings",
    "compute_dashboard_metrics",
    "calculate_dashboard_metrics",
    "compute_month_over_month",
    "calculate_month_over_month",
    "calculate_dashboard_datapoint_rows",
]
