"""Ledgerlight data models.

- records: per-collection record schemas
- ledger: the ledger root and the exportable profile
- audit: audit timeline entries
- results: computed outputs (metrics, findings, projections, planning rows)
"""

from ledgerlight_core.models.audit import AuditTimelineEntry, parse_iso_timestamp
from ledgerlight_core.models.ledger import (
    ALL_COLLECTIONS,
    CURRENT_SCHEMA_VERSION,
    LIABILITY_COLLECTIONS,
    RECORD_COLLECTIONS,
    BudgetCollectionsState,
    FinancialProfile,
    collection_alias,
)
from ledgerlight_core.models.records import (
    COLLECTION_FIELDS,
    RECORD_MODELS,
    AssetHoldingRecord,
    AssetRecord,
    CreditCardRecord,
    CreditRecord,
    DebtRecord,
    ExpenseRecord,
    FinancialRecord,
    GoalRecord,
    GoalStatus,
    IncomeRecord,
    LedgerModel,
    LedgerRecord,
    LiabilityRecord,
    LoanRecord,
    Money,
    NoteRecord,
    Persona,
    Rate,
    RecordType,
    resolve_record_type,
)
from ledgerlight_core.models.results import (
    AmortizationRow,
    BudgetBucketRow,
    CardPaymentPlan,
    CardPaymentRow,
    ChecklistRow,
    CreditCardSummary,
    DashboardMetrics,
    DatapointRow,
    DatapointUnit,
    EmergencyFundSummary,
    GoalStatusSummary,
    IncomeExpenseSummary,
    MonthlyComparison,
    MonthOverMonthBreakdown,
    NetWorthProjection,
    OutputModel,
    PayoffComparison,
    PersonaImpactSummary,
    PlanningForecast,
    PlanningInsights,
    ProfileExport,
    ProjectionHorizon,
    ProjectionPoint,
    ProjectionProfile,
    RecurringBaselineRow,
    RecurringReconcileResult,
    RiskFinding,
    RiskProvenanceRow,
    SavingsRecommendation,
    SavingsStorageRow,
    SavingsStorageSummary,
    ScenarioRow,
    Severity,
    UnifiedRecordRow,
)

__all__ = [
    # records
    "Money",
    "Rate",
    "LedgerModel",
    "GoalStatus",
    "RecordType",
    "LedgerRecord",
    "FinancialRecord",
    "IncomeRecord",
    "ExpenseRecord",
    "AssetRecord",
    "LiabilityRecord",
    "DebtRecord",
    "LoanRecord",
    "CreditRecord",
    "CreditCardRecord",
    "AssetHoldingRecord",
    "GoalRecord",
    "Persona",
    "NoteRecord",
    "RECORD_MODELS",
    "COLLECTION_FIELDS",
    "resolve_record_type",
    # ledger
    "CURRENT_SCHEMA_VERSION",
    "RECORD_COLLECTIONS",
    "ALL_COLLECTIONS",
    "LIABILITY_COLLECTIONS",
    "collection_alias",
    "BudgetCollectionsState",
    "FinancialProfile",
    # audit
    "AuditTimelineEntry",
    "parse_iso_timestamp",
    # results
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
