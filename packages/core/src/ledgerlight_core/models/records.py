"""Per-collection record schemas for the ledger.

Every collection in the ledger has its own record model. Records share a base
(id, person, labels, amount, date, notes, tags) and add the fields their
collection needs: minimum payments and APR on liabilities, limits on revolving
credit, market value and amount owed on holdings.

Field names are snake_case in Python and camelCase on the wire
(``interest_rate_percent`` <-> ``interestRatePercent``). Unknown fields are kept
so records round-trip through import/export untouched.
"""

from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ledgerlight_core.exceptions import ValidationError

Money = Annotated[float, Field(ge=0, allow_inf_nan=False)]
"""A finite, non-negative monetary amount."""

Rate = Annotated[float, Field(ge=0, allow_inf_nan=False)]
"""A finite, non-negative annual percentage rate."""


class LedgerModel(BaseModel):
    """Base configuration shared by all ledger models."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="allow",
    )

    def to_payload(self) -> dict[str, Any]:
        """Dump as plain JSON data with camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")


class GoalStatus(str, Enum):
    """Lifecycle states for a savings goal."""

    NOT_STARTED = "not started"
    IN_PROGRESS = "in progress"
    COMPLETED = "completed"


class RecordType(str, Enum):
    """Semantic record types accepted by validation and the mutators."""

    INCOME = "income"
    EXPENSE = "expense"
    ASSET = "asset"
    DEBT = "debt"
    CREDIT = "credit"
    LOAN = "loan"
    GOAL = "goal"
    CREDIT_CARD = "creditCard"
    ASSET_HOLDING = "assetHolding"
    PERSONA = "persona"
    NOTE = "note"


def _clean_text(v: Any) -> Any:
    if v is None:
        return ""
    if isinstance(v, str):
        return v.strip()
    return v


class LedgerRecord(LedgerModel):
    """Fields every stored row carries, whatever its collection."""

    id: str = Field(default="", description="Identifier, unique within its collection")
    person: str = Field(default="", description="Name of the persona this row belongs to")
    notes: str = Field(default="", description="Free-form notes")
    tags: list[str] = Field(default_factory=list, description="User-defined tags")
    updated_at: Optional[str] = Field(
        default=None,
        description="ISO timestamp of the last edit",
    )
    record_type: Optional[str] = Field(
        default=None,
        description="Semantic kind of the row (e.g. 'savings'), independent of collection",
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id_to_string(cls, v):
        """Accept numeric ids from older exports."""
        if v is None:
            return ""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("person", mode="before")
    @classmethod
    def strip_person(cls, v):
        """Normalize the persona reference."""
        return _clean_text(v)

    @field_validator("notes", mode="before")
    @classmethod
    def default_notes(cls, v):
        """Missing notes become an empty string."""
        return "" if v is None else v

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v):
        """Missing tags become an empty list; a comma string is split."""
        if v is None:
            return []
        if isinstance(v, str):
            return [tag.strip() for tag in v.split(",") if tag.strip()]
        return v


class FinancialRecord(LedgerRecord):
    """A monetary row: income, expense, asset, or a liability balance."""

    item: str = Field(default="", description="Short label for the row")
    category: str = Field(default="", description="Grouping label")
    amount: Money = Field(default=0.0, description="Monetary amount (non-negative)")
    date: Optional[str] = Field(default=None, description="ISO date the row applies to")
    description: str = Field(default="", description="Longer description")

    @field_validator("item", "category", "description", mode="before")
    @classmethod
    def strip_labels(cls, v):
        """Trim label whitespace."""
        return _clean_text(v)

    @property
    def label(self) -> str:
        """Best available human label for the row."""
        return self.item or self.category or self.description or self.id

    @property
    def is_savings(self) -> bool:
        """True when the row is tagged as a savings transfer."""
        return (self.record_type or "").strip().lower() == "savings"


class IncomeRecord(FinancialRecord):
    """A source of monthly income."""


class ExpenseRecord(FinancialRecord):
    """A monthly expense."""


class AssetRecord(FinancialRecord):
    """A standalone asset balance or a tracked savings transfer."""


class LiabilityRecord(FinancialRecord):
    """Shared fields of amortizing liabilities."""

    minimum_payment: Money = Field(default=0.0, description="Required monthly payment")
    interest_rate_percent: Optional[Rate] = Field(
        default=None,
        description="Annual interest rate in percent, if known",
    )
    collateral_asset_market_value: Money = Field(
        default=0.0,
        description="Market value of the asset securing this liability",
    )

    @property
    def is_secured(self) -> bool:
        """True when collateral backs the balance."""
        return self.collateral_asset_market_value > 0


class DebtRecord(LiabilityRecord):
    """A debt balance (mortgage, medical, personal)."""


class LoanRecord(LiabilityRecord):
    """An installment loan balance."""


class CreditRecord(FinancialRecord):
    """A revolving credit balance."""

    credit_limit: Money = Field(default=0.0, description="Credit limit")
    minimum_payment: Money = Field(default=0.0, description="Required monthly payment")
    interest_rate_percent: Optional[Rate] = Field(
        default=None,
        description="Annual interest rate in percent, if known",
    )


class CreditCardRecord(LedgerRecord):
    """A credit card tracked by capacity, balance and planned payment."""

    item: str = Field(default="", description="Card name")
    max_capacity: Money = Field(default=0.0, description="Card limit")
    current_balance: Money = Field(default=0.0, description="Outstanding balance")
    monthly_payment: Money = Field(default=0.0, description="Planned monthly payment")
    minimum_payment: Money = Field(default=0.0, description="Required monthly payment")
    interest_rate_percent: Optional[Rate] = Field(default=None)

    @field_validator("item", mode="before")
    @classmethod
    def strip_item(cls, v):
        """Trim label whitespace."""
        return _clean_text(v)


class AssetHoldingRecord(LedgerRecord):
    """An owned asset tracked by market value and the amount still owed on it."""

    item: str = Field(default="", description="Holding name")
    category: str = Field(default="", description="Grouping label")
    date: Optional[str] = Field(default=None)
    description: str = Field(default="")
    asset_market_value: Money = Field(default=0.0, description="Current market value")
    asset_value_owed: Money = Field(default=0.0, description="Amount still owed")

    @field_validator("item", "category", "description", mode="before")
    @classmethod
    def strip_labels(cls, v):
        """Trim label whitespace."""
        return _clean_text(v)

    @property
    def net_value(self) -> float:
        """Market value minus amount owed (may be negative when underwater)."""
        return self.asset_market_value - self.asset_value_owed


class GoalRecord(LedgerRecord):
    """A savings goal with a timeframe and progress amounts."""

    title: str = Field(default="", description="Goal title")
    status: GoalStatus = Field(default=GoalStatus.NOT_STARTED)
    timeframe_months: Optional[int] = Field(
        default=None,
        gt=0,
        description="Months allotted to reach the goal",
    )
    target_amount: Money = Field(default=0.0)
    current_amount: Money = Field(default=0.0)
    description: str = Field(default="")

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_labels(cls, v):
        """Trim label whitespace."""
        return _clean_text(v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        """Accept status values regardless of case or surrounding whitespace."""
        if v is None:
            return GoalStatus.NOT_STARTED
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def progress_ratio(self) -> float:
        """Fraction of the target reached, clamped to [0, 1]."""
        if self.target_amount <= 0:
            return 1.0 if self.status == GoalStatus.COMPLETED else 0.0
        return min(max(self.current_amount / self.target_amount, 0.0), 1.0)


class Persona(LedgerModel):
    """A household member that records can be attributed to."""

    name: str = Field(default="", description="Unique persona name")
    emoji: str = Field(default="")
    note: str = Field(default="")

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        """Trim whitespace around the name."""
        return _clean_text(v)


class NoteRecord(LedgerRecord):
    """A free-form household note."""

    title: str = Field(default="")
    body: str = Field(default="")
    date: Optional[str] = Field(default=None)


RECORD_MODELS: dict[RecordType, type[LedgerModel]] = {
    RecordType.INCOME: IncomeRecord,
    RecordType.EXPENSE: ExpenseRecord,
    RecordType.ASSET: AssetRecord,
    RecordType.DEBT: DebtRecord,
    RecordType.CREDIT: CreditRecord,
    RecordType.LOAN: LoanRecord,
    RecordType.GOAL: GoalRecord,
    RecordType.CREDIT_CARD: CreditCardRecord,
    RecordType.ASSET_HOLDING: AssetHoldingRecord,
    RecordType.PERSONA: Persona,
    RecordType.NOTE: NoteRecord,
}

# Python attribute name of the ledger collection each record type lives in.
COLLECTION_FIELDS: dict[RecordType, str] = {
    RecordType.INCOME: "income",
    RecordType.EXPENSE: "expenses",
    RecordType.ASSET: "assets",
    RecordType.DEBT: "debts",
    RecordType.CREDIT: "credit",
    RecordType.LOAN: "loans",
    RecordType.GOAL: "goals",
    RecordType.CREDIT_CARD: "credit_cards",
    RecordType.ASSET_HOLDING: "asset_holdings",
    RecordType.PERSONA: "personas",
    RecordType.NOTE: "notes",
}


def resolve_record_type(value: Any) -> RecordType:
    """Map a record type, collection alias or attribute name to ``RecordType``.

    Raises:
        ValidationError: If the value names no known record type.
    """
    if isinstance(value, RecordType):
        return value
    if isinstance(value, str):
        key = value.strip()
        for record_type, field_name in COLLECTION_FIELDS.items():
            if key in (record_type.value, field_name, to_camel(field_name)):
                return record_type
    raise ValidationError(
        f"Unknown record type: {value!r}",
        field="recordType",
        value=value,
        constraint=f"one of {[t.value for t in RecordType]}",
    )


__all__ = [
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
]
