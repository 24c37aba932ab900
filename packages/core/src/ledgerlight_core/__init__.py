"""Ledgerlight Core - Household ledger calculations, risk findings and projections."""

__version__ = "0.1.0"

from .config import LedgerlightConfig, RiskConfig
from .exceptions import LedgerlightError, MalformedLedgerError, ValidationError
from .merge import (
    build_profile_export,
    merge_audit_timelines,
    merge_ledgers,
    normalize_imported_profile,
)
from .metrics import (
    calculate_dashboard_datapoint_rows,
    calculate_dashboard_metrics,
    calculate_month_over_month,
)
from .models import BudgetCollectionsState, FinancialProfile, RecordType
from .mutators import (
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
from .payoff import compare_loan_payoff, estimate_payoff_months, recommend_credit_card_payments
from .planning import calculate_planning_insights
from .projection import project_net_worth
from .result import CoreError, ErrorKind, Result
from .risk import extract_risk_findings
from .summaries import (
    calculate_credit_card_summary,
    calculate_emergency_fund_summary,
    calculate_goal_status_summary,
    calculate_income_expense_summary,
    calculate_recommended_savings_target,
    calculate_savings_storage_summary,
)
from .validation import (
    normalize_record,
    require_collections,
    validate_monetary_value,
    validate_required_fields,
)
from .views import build_unified_records, filter_and_sort_records

__all__ = [
    "LedgerlightConfig",
    "RiskConfig",
    "LedgerlightError",
    "MalformedLedgerError",
    "ValidationError",
    "Result",
    "CoreError",
    "ErrorKind",
    "BudgetCollectionsState",
    "FinancialProfile",
    "RecordType",
    "validate_monetary_value",
    "normalize_record",
    "validate_required_fields",
    "require_collections",
    "build_default_ledger",
    "append_record",
    "update_record",
    "delete_record",
    "rename_persona",
    "delete_persona",
    "PersonaDeletePolicy",
    "persona_impact_summary",
    "reconcile_recurring_expense_rows",
    "calculate_dashboard_metrics",
    "calculate_month_over_month",
    "calculate_dashboard_datapoint_rows",
    "calculate_income_expense_summary",
    "calculate_savings_storage_summary",
    "calculate_emergency_fund_summary",
    "calculate_recommended_savings_target",
    "calculate_goal_status_summary",
    "calculate_credit_card_summary",
    "extract_risk_findings",
    "estimate_payoff_months",
    "compare_loan_payoff",
    "recommend_credit_card_payments",
    "project_net_worth",
    "calculate_planning_insights",
    "merge_ledgers",
    "merge_audit_timelines",
    "normalize_imported_profile",
    "build_profile_export",
    "filter_and_sort_records",
    "build_unified_records",
]
