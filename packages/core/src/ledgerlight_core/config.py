"""Configuration system for Ledgerlight.

This module provides Pydantic Settings-based configuration with environment
variable support and sensible defaults for the ledger engine.

Usage:
    from ledgerlight_core.config import LedgerlightConfig

    # Load from environment variables and .env file
    config = LedgerlightConfig()

    # Access risk thresholds
    print(config.risk.max_findings)
    print(config.risk.stale_balance_days)
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MAX_RISK_FINDINGS = 50

# Level names accepted by ``logging.getLevelName`` in ``configure_logging``.
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class RiskConfig(BaseSettings):
    """Thresholds used by the risk findings engine.

    Environment Variables:
        LEDGERLIGHT_RISK_MAX_FINDINGS: Upper bound on returned findings (1-50)
        LEDGERLIGHT_RISK_STALE_BALANCE_DAYS: Days before a balance counts as stale
        LEDGERLIGHT_RISK_RUNWAY_CRITICAL_MONTHS: Runway below this is critical
        LEDGERLIGHT_RISK_RUNWAY_WARNING_MONTHS: Runway below this is high risk
        LEDGERLIGHT_RISK_FIXED_COST_RATIO_PERCENT: Fixed costs as % of income
        LEDGERLIGHT_RISK_INCOME_CONCENTRATION_PERCENT: Largest income source share
        LEDGERLIGHT_RISK_APR_EXPOSURE_PERCENT: Weighted revolving APR
        LEDGERLIGHT_RISK_SECURED_LTV_PERCENT: Loan-to-value for secured debt
        LEDGERLIGHT_RISK_CREDIT_UTILIZATION_PERCENT: Overall revolving utilization
        LEDGERLIGHT_RISK_DEBT_TO_INCOME_PERCENT: Minimum payments as % of income
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGERLIGHT_RISK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_findings: int = Field(
        default=MAX_RISK_FINDINGS,
        ge=1,
        le=MAX_RISK_FINDINGS,
        description="Maximum number of findings returned by a risk scan",
    )
    stale_balance_days: int = Field(
        default=45,
        gt=0,
        description="Days since updatedAt after which a balance is stale",
    )
    runway_critical_months: float = Field(default=1.0, ge=0)
    runway_warning_months: float = Field(default=3.0, ge=0)
    fixed_cost_ratio_percent: float = Field(default=60.0, ge=0)
    income_concentration_percent: float = Field(default=90.0, ge=0, le=100)
    apr_exposure_percent: float = Field(default=25.0, ge=0)
    secured_ltv_percent: float = Field(default=90.0, ge=0)
    credit_utilization_percent: float = Field(default=30.0, ge=0)
    debt_to_income_percent: float = Field(default=36.0, ge=0)

    @field_validator("runway_warning_months")
    @classmethod
    def warning_not_below_critical(cls, v, info):
        """Validate that the warning runway is not shorter than the critical one."""
        critical = info.data.get("runway_critical_months")
        if critical is not None and v < critical:
            raise ValueError("runway_warning_months must be >= runway_critical_months")
        return v


class LedgerlightConfig(BaseSettings):
    """Root configuration for Ledgerlight.

    Environment Variables:
        LEDGERLIGHT_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        LEDGERLIGHT_LOG_JSON: Render log events as JSON instead of console text

    Example:
        config = LedgerlightConfig(risk=RiskConfig(stale_balance_days=30))
        findings, error = extract_risk_findings(state, config=config.risk)
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGERLIGHT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Render log events as JSON lines",
    )

    risk: RiskConfig = Field(default_factory=RiskConfig)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Upper-case the level name; reject names logging does not know."""
        level = str(v).strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {v!r}")
        return level
