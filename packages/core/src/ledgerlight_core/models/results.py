"""Output models for computed ledger views.

Everything the engine computes (metrics, summaries, findings, projections,
planning rows) is returned as one of these frozen models. Serialize with
``model_dump(by_alias=True, mode="json")`` to get camelCase JSON data.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from ledgerlight_core.models.ledger import BudgetCollectionsState, FinancialProfile


class OutputModel(BaseModel):
    """Base configuration for computed results."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_payload(self) -> dict[str, Any]:
        """Dump as plain JSON data with camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")


# =============================================================================
# DASHBOARD METRICS
# =============================================================================

class DashboardMetrics(OutputModel):
    """The twenty dashboard KPIs.

    Signed fields (surplus, net worth, savings rate, free cash flow) may be
    negative; every other field is >= 0.
    """

    total_income: float = Field(description="Sum of income amounts")
    total_expenses: float = Field(description="Sum of expense amounts")
    monthly_surplus_deficit: float = Field(description="Income minus expenses (signed)")
    savings_rate_percent: float = Field(description="Surplus over income (signed)")
    total_assets: float = Field(description="Asset balances plus holding equity")
    total_liabilities: float = Field(description="Debt, credit and loan balances")
    net_worth: float = Field(description="Assets minus liabilities (signed)")
    total_debt_balance: float = Field(description="Debt and loan balances")
    total_credit_balance: float = Field(description="Revolving credit balances")
    total_credit_limit: float = Field(description="Revolving credit limits")
    credit_utilization_percent: float
    available_credit: float
    total_minimum_payments: float
    debt_to_income_ratio_percent: float
    debt_to_asset_ratio_percent: float
    expense_to_income_ratio_percent: float
    emergency_runway_months: float
    weighted_average_interest_rate_percent: float
    free_cash_flow_after_minimums: float = Field(description="Signed")
    goal_progress_score_percent: float


class MonthlyComparison(OutputModel):
    """One line of the month-over-month breakdown."""

    current_month: float
    previous_month: float

    @computed_field
    @property
    def delta(self) -> float:
        """Current minus previous month."""
        return self.current_month - self.previous_month


class MonthOverMonthBreakdown(OutputModel):
    """Dated totals for the reference month and the month before it."""

    current_period: str = Field(description="Reference month as YYYY-MM")
    previous_period: str = Field(description="Prior month as YYYY-MM")
    income: MonthlyComparison
    expenses: MonthlyComparison
    assets: MonthlyComparison
    liabilities: MonthlyComparison
    net_worth: MonthlyComparison


class DatapointUnit(str, Enum):
    """Units attached to dashboard datapoint rows."""

    CURRENCY = "currency"
    PERCENT = "percent"
    MONTHS = "months"
    COUNT = "count"


class DatapointRow(OutputModel):
    """A labelled dashboard datapoint."""

    metric: str
    value: float
    unit: DatapointUnit


# =============================================================================
# SUMMARIES
# =============================================================================

class IncomeExpenseSummary(OutputModel):
    """Income, expenses and the surplus between them."""

    total_income: float
    total_expenses: float
    monthly_surplus_deficit: float
    savings_rate_percent: float


class SavingsStorageRow(OutputModel):
    """Where part of the stored savings is kept."""

    id: str
    person: str
    item: str
    amount: float
    share_percent: float = Field(description="Share of total stored savings")


class SavingsStorageSummary(OutputModel):
    """Tracked monthly savings plus the balances they are stored in."""

    reference_period: Optional[str] = Field(
        default=None,
        description="Month (YYYY-MM) the tracked savings were read from",
    )
    monthly_savings_amount: float
    monthly_savings_rate_percent: float
    total_stored_savings: float
    storage_rows: list[SavingsStorageRow] = Field(default_factory=list)


class EmergencyFundSummary(OutputModel):
    """Emergency fund goal against liquid and invested balances."""

    monthly_expenses: float
    monthly_debt_minimums: float
    monthly_obligations: float
    emergency_fund_goal: float = Field(description="Six months of obligations")
    liquid_target: float = Field(description="Two months of obligations")
    liquid_amount: float
    invested_amount: float
    total_available: float
    missing_liquid_amount: float
    missing_total_amount: float
    months_covered: float


class SavingsRecommendation(OutputModel):
    """Recommended monthly savings bounded by what the budget leaves over."""

    total_income_for_reference: float
    available_surplus: float = Field(description="Income minus expenses and minimums (signed)")
    minimum_recommended_savings: float
    target_recommended_savings: float
    recommended_monthly_savings: float
    savings_gap: float = Field(description="Shortfall between target and recommendation")
    recommendation_reason: str


class GoalStatusSummary(OutputModel):
    """Counts of goals per status."""

    total_goals: int
    completed_count: int
    in_progress_count: int
    not_started_count: int
    short_term_not_started_count: int = Field(
        description="Not-started goals due within twelve months",
    )
    completion_rate_percent: float


class CreditCardSummary(OutputModel):
    """Aggregate card capacity, balance and payments."""

    total_current: float
    total_monthly: float
    max_capacity: float
    remaining_capacity: float
    utilization_percent: float


# =============================================================================
# RISK
# =============================================================================

class Severity(str, Enum):
    """Finding severity, most urgent first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort rank; lower is more urgent."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
}


class RiskFinding(OutputModel):
    """A single risk finding produced by a rule."""

    id: str = Field(description="Stable finding identifier, e.g. 'runway-debt-lt-1'")
    rule: str = Field(default="", description="Name of the rule that produced the finding")
    severity: Severity
    title: str
    message: str
    metric: str = Field(description="Name of the measured quantity")
    value: float = Field(description="Measured value")
    threshold: float = Field(description="Threshold the value was compared against")
    record_ids: list[str] = Field(
        default_factory=list,
        description="Ids of the records that triggered the finding",
    )


# =============================================================================
# PAYOFF AND PROJECTION
# =============================================================================

class PayoffComparison(OutputModel):
    """Base versus accelerated payoff of a single balance."""

    base_months: int
    accelerated_months: int
    months_saved: int
    base_total_interest: float
    accelerated_total_interest: float
    interest_saved: float


class CardPaymentRow(OutputModel):
    """Recommended payment for one card."""

    id: str
    person: str
    item: str
    current_balance: float
    interest_rate_percent: float
    minimum_payment: float
    current_payment: float
    recommended_payment: float
    extra_payment: float
    payoff_months_current: Optional[int] = Field(
        default=None,
        description="None when the current payment never clears the balance",
    )
    payoff_months_recommended: Optional[int] = None


class CardPaymentPlan(OutputModel):
    """Avalanche allocation of the discretionary pool across cards."""

    strategy: str
    discretionary_pool: float
    current_total_monthly_payment: float
    recommended_total_monthly_payment: float
    weighted_payoff_months_current: float
    weighted_payoff_months_recommended: float
    rows: list[CardPaymentRow] = Field(default_factory=list)


class ProjectionHorizon(OutputModel):
    """A projection checkpoint."""

    id: str
    label: str
    months: int


class ProjectionPoint(OutputModel):
    """Projected balances at one horizon."""

    horizon_id: str
    months: int
    projected_net_worth: float
    projected_assets: float
    projected_debt: float


class ProjectionProfile(OutputModel):
    """One aggression profile and its projected points."""

    id: str
    label: str
    surplus_capture_percent: float
    annual_growth_percent: float
    extra_debt_share_percent: float
    points: list[ProjectionPoint] = Field(default_factory=list)


class NetWorthProjection(OutputModel):
    """Projections for every profile over every horizon."""

    starting_net_worth: float
    monthly_surplus: float
    horizons: list[ProjectionHorizon]
    profiles: list[ProjectionProfile]


# =============================================================================
# PLANNING
# =============================================================================

class BudgetBucketRow(OutputModel):
    """Actual spending against a 50/30/20 bucket."""

    bucket: str
    target_percent: float
    target_amount: float
    actual_amount: float
    variance: float = Field(description="Target minus actual (signed)")


class RecurringBaselineRow(OutputModel):
    """A recurring monthly expense line."""

    category: str
    item: str
    monthly_amount: float
    record_count: int


class AmortizationRow(OutputModel):
    """Amortization outlook for one liability."""

    id: str
    collection: str
    item: str
    balance: float
    interest_rate_percent: Optional[float] = None
    minimum_payment: float
    monthly_interest: float
    monthly_principal: float
    payoff_months: Optional[int] = Field(
        default=None,
        description="None when the minimum payment never clears the balance",
    )
    total_interest: Optional[float] = None


class PlanningForecast(OutputModel):
    """Twelve-month outlook under the current budget."""

    horizon_months: int
    projected_monthly_surplus: float
    projected_net_worth: float
    projected_emergency_runway_months: float
    projected_risk_level: str


class ScenarioRow(OutputModel):
    """Net worth checkpoints for one projection profile."""

    profile_id: str
    label: str
    net_worth_one_year: float
    net_worth_five_years: float
    net_worth_ten_years: float


class RiskProvenanceRow(OutputModel):
    """Traces a finding back to the collections and records behind it."""

    finding_id: str
    severity: Severity
    metric: str
    value: float
    threshold: float
    source_collections: list[str]
    record_ids: list[str] = Field(default_factory=list)


class ChecklistRow(OutputModel):
    """A reconcile step and whether the ledger already satisfies it."""

    id: str
    label: str
    done: bool
    detail: str


class PlanningInsights(OutputModel):
    """Composite planning view."""

    budget_vs_actual_rows: list[BudgetBucketRow]
    recurring_baseline_rows: list[RecurringBaselineRow]
    amortization_rows: list[AmortizationRow]
    forecast: PlanningForecast
    scenario_rows: list[ScenarioRow]
    risk_provenance_rows: list[RiskProvenanceRow]
    reconcile_checklist_rows: list[ChecklistRow]


# =============================================================================
# MUTATOR, VIEW AND EXPORT RESULTS
# =============================================================================

class RecurringReconcileResult(OutputModel):
    """Ledger after recurring-row reconciliation plus what changed."""

    next_collections_state: BudgetCollectionsState
    added_count: int
    removed_count: int


class PersonaImpactSummary(OutputModel):
    """Number of records attributed to a persona, per collection."""

    persona: str
    income: int = 0
    expenses: int = 0
    assets: int = 0
    debts: int = 0
    credit: int = 0
    loans: int = 0
    goals: int = 0
    credit_cards: int = 0
    asset_holdings: int = 0
    notes: int = 0
    total: int = 0


class UnifiedRecordRow(OutputModel):
    """A ledger row flattened into the common cash-flow view."""

    id: str
    source_collection: str
    record_type: str
    person: str
    item: str
    category: str
    date: Optional[str] = None
    amount: float = Field(description="Unsigned amount (>= 0)")
    signed_amount: float = Field(description="Positive inflow or value, negative outflow")


class ProfileExport(OutputModel):
    """Export envelope for a full profile."""

    schema_version: int
    exported_at: str
    profile: FinancialProfile


__all__ = [
    "OutputModel",
    "DashboardMetrics",
    "MonthlyComparison",
    "MonthOverMonthBreakdown",
    "DatapointUnit",
    "DatapointRow",
    "IncomeExpenseSummary",
    "SavingsStorageRow",
    "SavingsStorageSummary",
    "EmergencyFundSummary",
    "SavingsRecommendation",
    "GoalStatusSummary",
    "CreditCardSummary",
    "Severity",
    "RiskFinding",
    "PayoffComparison",
    "CardPaymentRow",
    "CardPaymentPlan",
    "ProjectionHorizon",
    "ProjectionPoint",
    "ProjectionProfile",
    "NetWorthProjection",
    "BudgetBucketRow",
    "RecurringBaselineRow",
    "AmortizationRow",
    "PlanningForecast",
    "ScenarioRow",
    "RiskProvenanceRow",
    "ChecklistRow",
    "PlanningInsights",
    "RecurringReconcileResult",
    "PersonaImpactSummary",
    "UnifiedRecordRow",
    "ProfileExport",
]
