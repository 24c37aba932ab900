"""Risk findings engine.

Rules are registered in a table and evaluated in registration order against the
whole ledger. Each rule returns zero or more findings. The engine then orders
findings by severity (insertion order breaks ties) and keeps at most
``RiskConfig.max_findings`` of them, dropping the lowest priority first.

Rule ids embed their threshold (``runway-debt-lt-1``, ``fixed-cost-ratio-gt-60``)
so a changed threshold yields a different id.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Optional

import structlog

from ledgerlight_core.config import RiskConfig
from ledgerlight_core.metrics import (
    METRIC_COLLECTIONS,
    compute_dashboard_metrics,
    ratio_percent,
    total,
    weighted_interest_rate,
)
from ledgerlight_core.models.audit import parse_iso_timestamp
from ledgerlight_core.models.ledger import (
    LIABILITY_COLLECTIONS,
    BudgetCollectionsState,
    collection_alias,
)
from ledgerlight_core.models.records import GoalStatus
from ledgerlight_core.models.results import DashboardMetrics, RiskFinding, Severity
from ledgerlight_core.result import result_boundary
from ledgerlight_core.validation import coerce_ledger, coerce_reference_date

logger = structlog.get_logger()

FIXED_COST_KEYWORDS = (
    "housing",
    "rent",
    "mortgage",
    "utilities",
    "utility",
    "insurance",
    "internet",
    "phone",
    "childcare",
    "tuition",
    "subscription",
)

STALE_BALANCE_COLLECTIONS = (
    "assets",
    "debts",
    "credit",
    "loans",
    "credit_cards",
    "asset_holdings",
)

# Stale counts above this raise the finding from low to medium.
STALE_BALANCE_ESCALATION_COUNT = 3


@dataclass(frozen=True)
class RiskContext:
    """Everything a rule may read."""

    ledger: BudgetCollectionsState
    metrics: DashboardMetrics
    config: RiskConfig
    as_of: date


@dataclass(frozen=True)
class RiskRule:
    """A registered rule and the collections it reads."""

    name: str
    evaluate: Callable[[RiskContext], list[RiskFinding]]
    sources: tuple[str, ...] = ()


@dataclass
class RiskRuleRegistry:
    """Ordered table of risk rules."""

    rules: list[RiskRule] = field(default_factory=list)

    def register(self, name: str, sources: tuple[str, ...] = ()) -> Callable:
        """Decorator registering ``func`` under ``name``."""

        def decorator(func: Callable[[RiskContext], list[RiskFinding]]):
            self.rules.append(RiskRule(name=name, evaluate=func, sources=sources))
            return func

        return decorator

    def sources_for(self, name: str) -> tuple[str, ...]:
        """Collections (camelCase) read by the rule called ``name``."""
        for rule in self.rules:
            if rule.name == name:
                return tuple(collection_alias(source) for source in rule.sources)
        return ()

    def evaluate(self, context: RiskContext) -> list[RiskFinding]:
        """Run every rule in registration order, tagging findings with the rule name."""
        findings: list[RiskFinding] = []
        for rule in self.rules:
            findings.extend(
                finding.model_copy(update={"rule": rule.name})
                for finding in rule.evaluate(context)
            )
        return findings


RISK_RULES = RiskRuleRegistry()


def _fmt(value: float) -> str:
    return f"{value:g}"


def _record_ref(record: Any, collection: str, index: int) -> str:
    return record.id or f"{collection_alias(collection)}[{index}]"


# =============================================================================
# RULES
# =============================================================================

@RISK_RULES.register("cash-flow", ("income", "expenses", "debts", "credit", "loans"))
def negative_cash_flow(ctx: RiskContext) -> list[RiskFinding]:
    """Spending above income, before and after minimum payments."""
    m = ctx.metrics
    if m.monthly_surplus_deficit < 0:
        return [
            RiskFinding(
                id="negative-cash-flow",
                severity=Severity.HIGH,
                title="Spending exceeds income",
                message=(
                    f"Monthly expenses exceed income by {-m.monthly_surplus_deficit:,.2f}."
                ),
                metric="monthlySurplusDeficit",
                value=m.monthly_surplus_deficit,
                threshold=0,
            )
        ]
    if m.free_cash_flow_after_minimums < 0:
        return [
            RiskFinding(
                id="negative-free-cash-flow",
                severity=Severity.MEDIUM,
                title="Minimum payments exceed surplus",
                message=(
                    "After expenses, minimum debt payments leave a shortfall of "
                    f"{-m.free_cash_flow_after_minimums:,.2f} per month."
                ),
                metric="freeCashFlowAfterMinimums",
                value=m.free_cash_flow_after_minimums,
                threshold=0,
            )
        ]
    return []


@RISK_RULES.register("emergency-runway", ("assets", "expenses", "debts", "credit", "loans"))
def emergency_runway(ctx: RiskContext) -> list[RiskFinding]:
    """Months of expenses and minimum payments covered by asset balances."""
    obligations = ctx.metrics.total_expenses + ctx.metrics.total_minimum_payments
    if obligations <= 0:
        return []
    runway = ctx.metrics.emergency_runway_months
    critical = ctx.config.runway_critical_months
    warning = ctx.config.runway_warning_months
    if runway < critical:
        severity, threshold = Severity.CRITICAL, critical
    elif runway < warning:
        severity, threshold = Severity.HIGH, warning
    else:
        return []
    return [
        RiskFinding(
            id=f"runway-debt-lt-{_fmt(threshold)}",
            severity=severity,
            title="Thin emergency runway",
            message=(
                f"Assets cover {runway:.1f} months of expenses and minimum payments "
                f"(below {_fmt(threshold)})."
            ),
            metric="emergencyRunwayMonths",
            value=runway,
            threshold=threshold,
        )
    ]


def is_fixed_cost(record: Any) -> bool:
    text = f"{record.category} {record.item}".lower()
    return any(keyword in text for keyword in FIXED_COST_KEYWORDS)


@RISK_RULES.register("fixed-cost-ratio", ("income", "expenses", "debts", "credit", "loans"))
def fixed_cost_ratio(ctx: RiskContext) -> list[RiskFinding]:
    """Fixed expenses plus minimum payments as a share of income."""
    income = ctx.metrics.total_income
    if income <= 0:
        return []
    fixed = [e for e in ctx.ledger.expenses if is_fixed_cost(e)]
    fixed_total = total(e.amount for e in fixed) + ctx.metrics.total_minimum_payments
    ratio = ratio_percent(fixed_total, income)
    threshold = ctx.config.fixed_cost_ratio_percent
    if ratio <= threshold:
        return []
    return [
        RiskFinding(
            id=f"fixed-cost-ratio-gt-{_fmt(threshold)}",
            severity=Severity.HIGH,
            title="High fixed costs",
            message=(
                f"Fixed costs and minimum payments take {ratio:.1f}% of income "
                f"(above {_fmt(threshold)}%)."
            ),
            metric="fixedCostRatioPercent",
            value=ratio,
            threshold=threshold,
            record_ids=[e.id for e in fixed if e.id],
        )
    ]


@RISK_RULES.register("debt-to-income", ("income", "debts", "credit", "loans"))
def debt_to_income(ctx: RiskContext) -> list[RiskFinding]:
    """Minimum payments as a share of income."""
    ratio = ctx.metrics.debt_to_income_ratio_percent
    threshold = ctx.config.debt_to_income_percent
    if ratio <= threshold:
        return []
    return [
        RiskFinding(
            id=f"debt-to-income-gt-{_fmt(threshold)}",
            severity=Severity.HIGH,
            title="High debt-to-income ratio",
            message=f"Minimum payments take {ratio:.1f}% of income (above {_fmt(threshold)}%).",
            metric="debtToIncomeRatioPercent",
            value=ratio,
            threshold=threshold,
        )
    ]


@RISK_RULES.register("income-concentration", ("income",))
def income_concentration(ctx: RiskContext) -> list[RiskFinding]:
    """Share of income coming from the largest single source."""
    income = ctx.metrics.total_income
    if income <= 0:
        return []
    # Unlabelled rows are separate sources, keyed by position.
    by_source: dict[str, float] = {}
    source_ids: dict[str, list[str]] = {}
    for index, record in enumerate(ctx.ledger.income):
        key = record.label.lower() or f"income[{index}]"
        by_source[key] = by_source.get(key, 0.0) + record.amount
        source_ids.setdefault(key, []).append(_record_ref(record, "income", index))
    largest_source, largest = max(by_source.items(), key=lambda kv: kv[1])
    share = ratio_percent(largest, income)
    threshold = ctx.config.income_concentration_percent
    if share <= threshold:
        return []
    return [
        RiskFinding(
            id=f"income-concentration-gt-{_fmt(threshold)}",
            severity=Severity.MEDIUM,
            title="Income depends on one source",
            message=f"{share:.1f}% of income comes from '{largest_source}'.",
            metric="incomeConcentrationPercent",
            value=share,
            threshold=threshold,
            record_ids=source_ids[largest_source],
        )
    ]


@RISK_RULES.register("apr-exposure", ("credit", "credit_cards"))
def apr_exposure(ctx: RiskContext) -> list[RiskFinding]:
    """Balance-weighted APR across revolving credit and cards."""
    pairs = [(r.amount, r.interest_rate_percent) for r in ctx.ledger.credit]
    pairs += [(c.current_balance, c.interest_rate_percent) for c in ctx.ledger.credit_cards]
    weighted = weighted_interest_rate(pairs)
    threshold = ctx.config.apr_exposure_percent
    if weighted <= threshold:
        return []
    ids = [r.id for r in ctx.ledger.credit if r.id and r.interest_rate_percent]
    ids += [c.id for c in ctx.ledger.credit_cards if c.id and c.interest_rate_percent]
    return [
        RiskFinding(
            id=f"apr-exposure-gt-{_fmt(threshold)}",
            severity=Severity.HIGH,
            title="Expensive revolving debt",
            message=(
                f"Revolving balances carry a weighted APR of {weighted:.1f}% "
                f"(above {_fmt(threshold)}%)."
            ),
            metric="weightedRevolvingAprPercent",
            value=weighted,
            threshold=threshold,
            record_ids=ids,
        )
    ]


@RISK_RULES.register("credit-utilization", ("credit", "credit_cards"))
def credit_utilization(ctx: RiskContext) -> list[RiskFinding]:
    """Overall revolving utilization."""
    balance = ctx.metrics.total_credit_balance + total(c.current_balance for c in ctx.ledger.credit_cards)
    limit = ctx.metrics.total_credit_limit + total(c.max_capacity for c in ctx.ledger.credit_cards)
    utilization = ratio_percent(balance, limit)
    threshold = ctx.config.credit_utilization_percent
    if limit <= 0 or utilization <= threshold:
        return []
    return [
        RiskFinding(
            id=f"credit-utilization-gt-{_fmt(threshold)}",
            severity=Severity.MEDIUM,
            title="High credit utilization",
            message=f"Revolving balances use {utilization:.1f}% of available limits.",
            metric="creditUtilizationPercent",
            value=utilization,
            threshold=threshold,
        )
    ]


@RISK_RULES.register("over-limit", ("credit", "credit_cards"))
def over_limit_accounts(ctx: RiskContext) -> list[RiskFinding]:
    """Accounts whose balance exceeds their limit."""
    accounts = [
        ("credit", index, r, r.amount, r.credit_limit)
        for index, r in enumerate(ctx.ledger.credit)
    ] + [
        ("credit_cards", index, c, c.current_balance, c.max_capacity)
        for index, c in enumerate(ctx.ledger.credit_cards)
    ]
    findings = []
    for collection, index, record, balance, limit in accounts:
        if limit <= 0 or balance <= limit:
            continue
        findings.append(
            RiskFinding(
                id=f"over-limit-{collection_alias(collection)}-{index + 1}",
                severity=Severity.HIGH,
                title="Account over its limit",
                message=(
                    f"'{record.item or _record_ref(record, collection, index)}' carries "
                    f"{balance:,.2f} against a {limit:,.2f} limit."
                ),
                metric="balanceToLimitPercent",
                value=ratio_percent(balance, limit),
                threshold=100,
                record_ids=[_record_ref(record, collection, index)],
            )
        )
    return findings


@RISK_RULES.register("secured-ltv", ("debts", "loans"))
def secured_loan_to_value(ctx: RiskContext) -> list[RiskFinding]:
    """Secured debts and loans owing close to or above their collateral value."""
    threshold = ctx.config.secured_ltv_percent
    flagged = []
    for collection in ("debts", "loans"):
        for index, record in enumerate(ctx.ledger.collection(collection)):
            if not record.is_secured:
                continue
            ltv = ratio_percent(record.amount, record.collateral_asset_market_value)
            if ltv >= threshold:
                flagged.append((ltv, _record_ref(record, collection, index)))
    if not flagged:
        return []
    worst = max(ltv for ltv, _ in flagged)
    return [
        RiskFinding(
            id="secured-specific-ltv-risk",
            severity=Severity.HIGH,
            title="Secured debt near collateral value",
            message=(
                f"{len(flagged)} secured balance(s) at or above {_fmt(threshold)}% "
                f"loan-to-value (worst {worst:.1f}%)."
            ),
            metric="securedLoanToValuePercent",
            value=worst,
            threshold=threshold,
            record_ids=[ref for _, ref in flagged],
        )
    ]


@RISK_RULES.register("non-amortizing", LIABILITY_COLLECTIONS)
def non_amortizing_minimums(ctx: RiskContext) -> list[RiskFinding]:
    """Minimum payments that do not cover the monthly interest."""
    findings = []
    for collection in LIABILITY_COLLECTIONS:
        for index, record in enumerate(ctx.ledger.collection(collection)):
            rate = record.interest_rate_percent
            if rate is None or rate <= 0 or record.amount <= 0:
                continue
            interest = record.amount * rate / 100 / 12
            if record.minimum_payment > interest:
                continue
            findings.append(
                RiskFinding(
                    id=f"non-amortizing-{collection_alias(collection)}-{index + 1}",
                    severity=Severity.HIGH,
                    title="Minimum payment does not cover interest",
                    message=(
                        f"'{record.label}' accrues {interest:,.2f} interest a month but the "
                        f"minimum payment is {record.minimum_payment:,.2f}."
                    ),
                    metric="minimumPayment",
                    value=record.minimum_payment,
                    threshold=interest,
                    record_ids=[_record_ref(record, collection, index)],
                )
            )
    return findings


@RISK_RULES.register("stale-balances", STALE_BALANCE_COLLECTIONS)
def stale_balances(ctx: RiskContext) -> list[RiskFinding]:
    """Balances not updated within ``stale_balance_days`` of ``as_of``."""
    max_age = ctx.config.stale_balance_days
    stale = []
    for collection in STALE_BALANCE_COLLECTIONS:
        for index, record in enumerate(ctx.ledger.collection(collection)):
            if not record.updated_at:
                continue
            try:
                updated = parse_iso_timestamp(record.updated_at).date()
            except ValueError:
                continue
            if (ctx.as_of - updated).days > max_age:
                stale.append(_record_ref(record, collection, index))
    if not stale:
        return []
    escalated = len(stale) > STALE_BALANCE_ESCALATION_COUNT
    limit = STALE_BALANCE_ESCALATION_COUNT if escalated else 0
    return [
        RiskFinding(
            id=f"stale-balance-gt-{limit}",
            severity=Severity.MEDIUM if escalated else Severity.LOW,
            title="Stale balances",
            message=f"{len(stale)} balance(s) not updated in over {max_age} days.",
            metric="staleBalanceCount",
            value=len(stale),
            threshold=limit,
            record_ids=stale,
        )
    ]


@RISK_RULES.register("goals-behind", ("goals", "income", "expenses"))
def goals_behind_schedule(ctx: RiskContext) -> list[RiskFinding]:
    """Open goals needing more per month than free cash flow provides."""
    available = max(ctx.metrics.free_cash_flow_after_minimums, 0.0)
    findings = []
    for index, goal in enumerate(ctx.ledger.goals):
        if goal.status == GoalStatus.COMPLETED or not goal.timeframe_months:
            continue
        remaining = goal.target_amount - goal.current_amount
        if remaining <= 0:
            continue
        required = remaining / goal.timeframe_months
        if required <= available:
            continue
        findings.append(
            RiskFinding(
                id=f"goal-behind-schedule-{index + 1}",
                severity=Severity.MEDIUM,
                title="Goal behind schedule",
                message=(
                    f"'{goal.title or 'Goal'}' needs {required:,.2f} a month but free cash "
                    f"flow is {available:,.2f}."
                ),
                metric="requiredMonthlyContribution",
                value=required,
                threshold=available,
                record_ids=[_record_ref(goal, "goals", index)],
            )
        )
    return findings


@RISK_RULES.register("missing-apr", LIABILITY_COLLECTIONS)
def missing_interest_rates(ctx: RiskContext) -> list[RiskFinding]:
    """Liabilities without an interest rate."""
    findings = []
    for collection in LIABILITY_COLLECTIONS:
        for index, record in enumerate(ctx.ledger.collection(collection)):
            if record.interest_rate_percent is not None or record.amount <= 0:
                continue
            findings.append(
                RiskFinding(
                    id=f"missing-apr-{collection_alias(collection)}-{index + 1}",
                    severity=Severity.LOW,
                    title="Missing interest rate",
                    message=f"Add an interest rate to '{record.label or 'balance'}' to improve payoff estimates.",
                    metric="interestRatePercent",
                    value=0,
                    threshold=0,
                    record_ids=[_record_ref(record, collection, index)],
                )
            )
    return findings


# =============================================================================
# ENGINE
# =============================================================================

def compute_risk_findings(
    ledger: BudgetCollectionsState,
    as_of: date,
    config: RiskConfig,
    metrics: Optional[DashboardMetrics] = None,
) -> list[RiskFinding]:
    """Evaluate every rule, order by severity and apply the cap."""
    context = RiskContext(
        ledger=ledger,
        metrics=metrics or compute_dashboard_metrics(ledger),
        config=config,
        as_of=as_of,
    )
    findings = RISK_RULES.evaluate(context)
    # sorted() is stable, so insertion order breaks severity ties.
    ordered = sorted(findings, key=lambda finding: finding.severity.rank)
    if len(ordered) > config.max_findings:
        logger.debug(
            "risk_findings_truncated",
            total=len(ordered),
            kept=config.max_findings,
        )
    kept = ordered[: config.max_findings]
    logger.info(
        "risk_scan_completed",
        findings=len(kept),
        critical=sum(1 for f in kept if f.severity is Severity.CRITICAL),
    )
    return kept


@result_boundary
def extract_risk_findings(
    state: Any,
    as_of: Any = None,
    config: Optional[RiskConfig] = None,
) -> list[RiskFinding]:
    """Run the risk rules against a ledger.

    Args:
        state: Ledger with ``income``, ``expenses``, ``assets``, ``debts``,
            ``credit``, ``loans`` and ``goals``.
        as_of: Date stale balances are measured against. Defaults to today.
        config: Thresholds; defaults to ``RiskConfig()`` (environment / .env).

    Returns:
        ``Result`` with at most ``config.max_findings`` (never more than 50)
        findings, most severe first.
    """
    ledger = coerce_ledger(state, METRIC_COLLECTIONS)
    reference = coerce_reference_date(as_of, "asOf") if as_of is not None else date.today()
    return compute_risk_findings(ledger, reference, config or RiskConfig())


__all__ = [
    "FIXED_COST_KEYWORDS",
    "is_fixed_cost",
    "RiskContext",
    "RiskRule",
    "RiskRuleRegistry",
    "RISK_RULES",
    "compute_risk_findings",
    "extract_risk_findings",
]
