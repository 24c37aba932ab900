"""The ledger root: every tracked collection plus the schema version."""

from typing import Any, Iterable, Optional

from pydantic import ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from ledgerlight_core.exceptions import ValidationError
from ledgerlight_core.models.audit import AuditTimelineEntry
from ledgerlight_core.models.records import (
    AssetHoldingRecord,
    AssetRecord,
    CreditCardRecord,
    CreditRecord,
    DebtRecord,
    ExpenseRecord,
    GoalRecord,
    IncomeRecord,
    LedgerModel,
    LoanRecord,
    NoteRecord,
    Persona,
)

CURRENT_SCHEMA_VERSION = 2

# Collections holding attributable rows, in ledger order. Personas are the
# referenced side and are handled separately.
RECORD_COLLECTIONS: tuple[str, ...] = (
    "income",
    "expenses",
    "assets",
    "debts",
    "credit",
    "loans",
    "goals",
    "credit_cards",
    "asset_holdings",
    "notes",
)

ALL_COLLECTIONS: tuple[str, ...] = RECORD_COLLECTIONS + ("personas",)

LIABILITY_COLLECTIONS: tuple[str, ...] = ("debts", "credit", "loans")


def collection_alias(field_name: str) -> str:
    """Wire name of a collection (``credit_cards`` -> ``creditCards``)."""
    return to_camel(field_name)


class BudgetCollectionsState(LedgerModel):
    """Immutable snapshot of the whole ledger.

    Mutators never change an instance; they return a new one built with
    ``model_copy(update=...)``. Collections keep insertion order, which only
    serves as a stable tiebreaker.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
        json_schema_extra={
            "examples": [
                {
                    "income": [{"id": "i1", "category": "Salary", "amount": 5000}],
                    "expenses": [{"id": "e1", "category": "Housing", "amount": 1800}],
                    "schemaVersion": CURRENT_SCHEMA_VERSION,
                }
            ]
        },
    )

    income: list[IncomeRecord] = Field(default_factory=list)
    expenses: list[ExpenseRecord] = Field(default_factory=list)
    assets: list[AssetRecord] = Field(default_factory=list)
    debts: list[DebtRecord] = Field(default_factory=list)
    credit: list[CreditRecord] = Field(default_factory=list)
    loans: list[LoanRecord] = Field(default_factory=list)
    goals: list[GoalRecord] = Field(default_factory=list)
    credit_cards: list[CreditCardRecord] = Field(default_factory=list)
    asset_holdings: list[AssetHoldingRecord] = Field(default_factory=list)
    personas: list[Persona] = Field(default_factory=list)
    notes: list[NoteRecord] = Field(default_factory=list)
    schema_version: int = Field(default=CURRENT_SCHEMA_VERSION, ge=1)

    @model_validator(mode="after")
    def check_unique_keys(self):
        """Ids must be unique per collection; persona names across the ledger."""
        for name in RECORD_COLLECTIONS:
            seen: set[str] = set()
            for record in getattr(self, name):
                if not record.id:
                    continue
                if record.id in seen:
                    raise ValidationError(
                        f"Duplicate id '{record.id}' in {collection_alias(name)}",
                        field=collection_alias(name),
                        value=record.id,
                        constraint="id must be unique within its collection",
                    )
                seen.add(record.id)
        names: set[str] = set()
        for persona in self.personas:
            if persona.name and persona.name in names:
                raise ValidationError(
                    f"Duplicate persona name '{persona.name}'",
                    field="personas",
                    value=persona.name,
                    constraint="persona names must be unique",
                )
            names.add(persona.name)
        return self

    @property
    def persona_names(self) -> set[str]:
        """Names of all registered personas."""
        return {persona.name for persona in self.personas}

    def collection(self, name: str) -> list:
        """Return a collection by attribute name."""
        return getattr(self, name)

    def with_collections(self, **collections: Iterable[Any]) -> "BudgetCollectionsState":
        """Return a copy with the named collections replaced."""
        return self.model_copy(
            update={name: list(records) for name, records in collections.items()}
        )


class FinancialProfile(LedgerModel):
    """Everything an export carries: the ledger, UI preferences and audit history."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    collections: BudgetCollectionsState = Field(default_factory=BudgetCollectionsState)
    ui_preferences: Optional[dict[str, Any]] = Field(
        default=None,
        description="Opaque UI preferences (theme, text scale, sort state)",
    )
    audit_timeline_entries: list[AuditTimelineEntry] = Field(default_factory=list)


__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "RECORD_COLLECTIONS",
    "ALL_COLLECTIONS",
    "LIABILITY_COLLECTIONS",
    "collection_alias",
    "BudgetCollectionsState",
    "FinancialProfile",
]
