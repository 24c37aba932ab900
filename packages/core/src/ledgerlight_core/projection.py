"""Net worth projection under three aggression profiles.

Each profile is simulated month by month from today's balances:

- liabilities accrue interest at the balance-weighted APR and are paid down by
  the minimum payments plus the profile's extra debt share of savings;
- a share of free cash flow (the profile's capture rate) is saved, and the part
  not sent to debt is added to assets, which grow at the profile's annual rate;
- minimum payments freed by a cleared balance flow into assets.

A deficit draws assets down (never below zero).
"""

from dataclasses import dataclass
from typing import Any, Optional

import structlog

from ledgerlight_core.metrics import MONTHLY_COLLECTIONS, compute_dashboard_metrics
from ledgerlight_core.models.ledger import BudgetCollectionsState
from ledgerlight_core.models.results import (
    DashboardMetrics,
    NetWorthProjection,
    ProjectionHorizon,
    ProjectionPoint,
    ProjectionProfile,
)
from ledgerlight_core.result import result_boundary
from ledgerlight_core.validation import coerce_ledger

logger = structlog.get_logger()


@dataclass(frozen=True)
class ProfileAssumptions:
    """Savings behaviour of one projection profile (all values in percent)."""

    id: str
    label: str
    surplus_capture_percent: float
    annual_growth_percent: float
    extra_debt_share_percent: float


PROJECTION_HORIZONS: tuple[ProjectionHorizon, ...] = (
    ProjectionHorizon(id="6-months", label="6 months", months=6),
    ProjectionHorizon(id="1-year", label="1 year", months=12),
    ProjectionHorizon(id="2-years", label="2 years", months=24),
    ProjectionHorizon(id="3-years", label="3 years", months=36),
    ProjectionHorizon(id="5-years", label="5 years", months=60),
    ProjectionHorizon(id="10-years", label="10 years", months=120),
)

PROJECTION_PROFILES: tuple[ProfileAssumptions, ...] = (
    ProfileAssumptions("conservative", "Conservative", 50.0, 2.0, 0.0),
    ProfileAssumptions("moderate", "Moderate", 75.0, 5.0, 25.0),
    ProfileAssumptions("aggressive", "Aggressive", 100.0, 7.0, 50.0),
)


def simulate_profile(
    metrics: DashboardMetrics,
    profile: ProfileAssumptions,
    horizons: tuple[ProjectionHorizon, ...] = PROJECTION_HORIZONS,
) -> list[ProjectionPoint]:
    """Run one profile and sample it at every horizon."""
    checkpoints = {h.months: h for h in horizons}
    last_month = max(checkpoints)

    assets = metrics.total_assets
    debt = metrics.total_liabilities
    monthly_debt_rate = metrics.weighted_average_interest_rate_percent / 100 / 12
    monthly_growth = profile.annual_growth_percent / 100 / 12
    minimums = metrics.total_minimum_payments
    free_cash_flow = metrics.free_cash_flow_after_minimums

    saved = max(free_cash_flow, 0.0) * profile.surplus_capture_percent / 100
    deficit = min(free_cash_flow, 0.0)

    points = []
    for month in range(1, last_month + 1):
        extra_to_debt = saved * profile.extra_debt_share_percent / 100 if debt > 0 else 0.0
        budgeted = minimums + extra_to_debt
        interest = debt * monthly_debt_rate
        payment = min(debt + interest, budgeted)
        debt = max(debt + interest - payment, 0.0)
        freed = budgeted - payment

        assets = assets * (1 + monthly_growth) + (saved - extra_to_debt) + freed + deficit
        assets = max(assets, 0.0)

        if month in checkpoints:
            points.append(
                ProjectionPoint(
                    horizon_id=checkpoints[month].id,
                    months=month,
                    projected_net_worth=assets - debt,
                    projected_assets=assets,
                    projected_debt=debt,
                )
            )
    return points


def compute_net_worth_projection(
    ledger: BudgetCollectionsState,
    metrics: Optional[DashboardMetrics] = None,
) -> NetWorthProjection:
    """Projection for an already validated ledger."""
    metrics = metrics or compute_dashboard_metrics(ledger)
    profiles = [
        ProjectionProfile(
            id=profile.id,
            label=profile.label,
            surplus_capture_percent=profile.surplus_capture_percent,
            annual_growth_percent=profile.annual_growth_percent,
            extra_debt_share_percent=profile.extra_debt_share_percent,
            points=simulate_profile(metrics, profile),
        )
        for profile in PROJECTION_PROFILES
    ]
    logger.debug(
        "net_worth_projected",
        starting_net_worth=metrics.net_worth,
        profiles=len(profiles),
    )
    return NetWorthProjection(
        starting_net_worth=metrics.net_worth,
        monthly_surplus=metrics.free_cash_flow_after_minimums,
        horizons=list(PROJECTION_HORIZONS),
        profiles=profiles,
    )


@result_boundary
def project_net_worth(state: Any) -> NetWorthProjection:
    """Project net worth for the conservative, moderate and aggressive profiles.

    Requires ``income``, ``expenses``, ``assets``, ``debts``, ``credit`` and
    ``loans``. Every profile has one point per horizon (6 months to 10 years).
    """
    return compute_net_worth_projection(coerce_ledger(state, MONTHLY_COLLECTIONS))


__all__ = [
    "ProfileAssumptions",
    "PROJECTION_HORIZONS",
    "PROJECTION_PROFILES",
    "simulate_profile",
    "compute_net_worth_projection",
    "project_net_worth",
]
