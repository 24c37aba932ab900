"""Shared fixtures for the ledger engine tests."""

import pytest

from ledgerlight_core import RiskConfig

UPDATED_AT = "2026-02-10T12:00:00.000Z"


@pytest.fixture
def updated_at() -> str:
    """Timestamp stamped on records by the mutators."""
    return UPDATED_AT


@pytest.fixture
def empty_state() -> dict:
    """Mapping with every collection the metrics require, all empty."""
    return {
        "income": [],
        "expenses": [],
        "assets": [],
        "debts": [],
        "credit": [],
        "loans": [],
        "goals": [],
    }


@pytest.fixture
def household_state() -> dict:
    """A realistic two-person household ledger."""
    return {
        "income": [
            {"id": "i1", "person": "PersonA", "item": "Salary", "category": "Salary", "amount": 5200, "date": "2026-02-01"},
            {"id": "i2", "person": "PersonB", "item": "Freelance", "category": "Side", "amount": 800, "date": "2026-02-03"},
        ],
        "expenses": [
            {"id": "e1", "person": "PersonA", "item": "Rent", "category": "Housing", "amount": 1900, "date": "2026-02-01"},
            {"id": "e2", "person": "PersonB", "item": "Groceries", "category": "Food", "amount": 650, "date": "2026-02-05"},
            {"id": "e3", "person": "PersonA", "item": "Streaming", "category": "Entertainment", "amount": 45, "date": "2026-02-07"},
        ],
        "assets": [
            {"id": "a1", "person": "PersonA", "item": "HYSA", "amount": 9000},
            {"id": "a2", "person": "PersonB", "item": "Savings Transfer", "recordType": "savings", "amount": 500, "date": "2026-02-15"},
        ],
        "debts": [
            {"id": "d1", "person": "PersonA", "item": "Student Loan", "amount": 12000, "minimumPayment": 180, "interestRatePercent": 5.5},
        ],
        "credit": [
            {"id": "c1", "person": "PersonB", "item": "Card", "amount": 1500, "creditLimit": 6000, "minimumPayment": 60, "interestRatePercent": 22.9},
        ],
        "loans": [
            {"id": "l1", "person": "PersonA", "item": "Car Loan", "amount": 9000, "minimumPayment": 320, "interestRatePercent": 6.9, "collateralAssetMarketValue": 14000},
        ],
        "goals": [
            {"id": "g1", "title": "Emergency fund", "status": "in progress", "timeframeMonths": 12, "targetAmount": 15000, "currentAmount": 9000},
        ],
        "creditCards": [],
        "assetHoldings": [],
        "personas": [{"name": "PersonA"}, {"name": "PersonB"}],
    }


@pytest.fixture
def risk_config() -> RiskConfig:
    """Default thresholds, independent of the environment."""
    return RiskConfig(_env_file=None)
