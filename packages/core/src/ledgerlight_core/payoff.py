"""Debt payoff math.

Month-by-month amortization with a fixed payment: each month the balance
accrues ``annual_rate / 12`` interest and the payment is applied. A balance
that the payment cannot clear (payment not above the first month's interest, or
longer than ``MAX_PAYOFF_MONTHS``) is a VALIDATION error.
"""

from typing import Any, Optional

import structlog

from ledgerlight_core.exceptions import ValidationError
from ledgerlight_core.metrics import total, total_minimum_payments
from ledgerlight_core.models.records import CreditCardRecord
from ledgerlight_core.models.results import CardPaymentPlan, CardPaymentRow, PayoffComparison
from ledgerlight_core.result import result_boundary
from ledgerlight_core.validation import coerce_ledger, coerce_record_list, require_monetary

logger = structlog.get_logger()

MAX_PAYOFF_MONTHS = 1200

# Balances below half a cent count as paid.
PAID_OFF_TOLERANCE = 0.005

AVALANCHE_STRATEGY = "avalanche: extra payments go to the highest APR card first"


def amortize(balance: float, payment: float, annual_rate_percent: float) -> tuple[int, float]:
    """Months to clear ``balance`` and the total interest paid.

    Raises:
        ValidationError: If the payment is not positive or never clears the
            balance within ``MAX_PAYOFF_MONTHS``.
    """
    if balance <= PAID_OFF_TOLERANCE:
        return 0, 0.0
    if payment <= 0:
        raise ValidationError(
            "payment must be greater than zero",
            field="payment",
            value=payment,
            constraint="> 0",
        )
    monthly_rate = annual_rate_percent / 100 / 12
    first_interest = balance * monthly_rate
    if payment <= first_interest:
        raise ValidationError(
            f"payment {payment:.2f} does not cover monthly interest {first_interest:.2f}",
            field="payment",
            value=payment,
            constraint="> monthly interest",
        )

    remaining = balance
    months = 0
    interest_paid = 0.0
    while remaining > PAID_OFF_TOLERANCE:
        if months >= MAX_PAYOFF_MONTHS:
            raise ValidationError(
                f"balance is not paid off within {MAX_PAYOFF_MONTHS} months",
                field="payment",
                value=payment,
                constraint=f"payoff within {MAX_PAYOFF_MONTHS} months",
            )
        interest = remaining * monthly_rate
        interest_paid += interest
        remaining = remaining + interest - payment
        months += 1
    return months, interest_paid


def payoff_months_or_none(balance: float, payment: float, annual_rate_percent: float) -> Optional[int]:
    """Like ``amortize`` but ``None`` when the balance never clears."""
    try:
        months, _ = amortize(balance, payment, annual_rate_percent)
    except ValidationError:
        return None
    return months


@result_boundary
def estimate_payoff_months(balance: Any, payment: Any, annual_rate_percent: Any) -> int:
    """Months to pay off ``balance`` with a fixed monthly ``payment``.

    Example:
        >>> months, error = estimate_payoff_months(10000, 300, 12)
        >>> months
        41
    """
    return amortize(
        require_monetary(balance, "balance"),
        require_monetary(payment, "payment"),
        require_monetary(annual_rate_percent, "annualRatePercent"),
    )[0]


@result_boundary
def compare_loan_payoff(
    balance: Any,
    base_payment: Any,
    extra_payment: Any,
    annual_rate_percent: Any,
) -> PayoffComparison:
    """Compare paying ``base_payment`` against ``base_payment + extra_payment``.

    Accelerated months never exceed base months and the interest saved is
    never negative.
    """
    balance = require_monetary(balance, "balance")
    base = require_monetary(base_payment, "basePayment")
    extra = require_monetary(extra_payment, "extraPayment")
    rate = require_monetary(annual_rate_percent, "annualRatePercent")

    base_months, base_interest = amortize(balance, base, rate)
    accelerated_months, accelerated_interest = amortize(balance, base + extra, rate)
    return PayoffComparison(
        base_months=base_months,
        accelerated_months=accelerated_months,
        months_saved=base_months - accelerated_months,
        base_total_interest=base_interest,
        accelerated_total_interest=accelerated_interest,
        interest_saved=max(base_interest - accelerated_interest, 0.0),
    )


def _current_payment(card: CreditCardRecord) -> float:
    return card.monthly_payment if card.monthly_payment > 0 else card.minimum_payment


def _weighted_months(rows: list[tuple[float, Optional[int]]]) -> float:
    """Balance-weighted payoff months; cards that never clear count as the cap."""
    weight = total(balance for balance, _ in rows)
    if weight <= 0:
        return 0.0
    return total(
        balance * (MAX_PAYOFF_MONTHS if months is None else months) for balance, months in rows
    ) / weight


@result_boundary
def recommend_credit_card_payments(state: Any, cards: Any = None) -> CardPaymentPlan:
    """Allocate spare cash to credit cards, highest APR first.

    The discretionary pool is income minus expenses, minimum payments on debts,
    credit and loans, and the cards' current payments (never below 0). Each
    card receives at most what is left of its balance after its current
    payment.

    Args:
        state: Ledger with ``income`` and ``expenses``.
        cards: Card records to plan for. Defaults to the ledger's credit cards.
    """
    ledger = coerce_ledger(state, ("income", "expenses"))
    if cards is None:
        card_records = list(ledger.credit_cards)
    else:
        card_records = [
            CreditCardRecord.model_validate(dict(row)) for row in coerce_record_list(cards, "cards")
        ]

    current_payments = [_current_payment(card) for card in card_records]
    current_total = total(current_payments)
    pool = max(
        total(r.amount for r in ledger.income)
        - total(e.amount for e in ledger.expenses)
        - total_minimum_payments(ledger)
        - current_total,
        0.0,
    )

    extras = [0.0] * len(card_records)
    remaining_pool = pool
    by_rate = sorted(
        range(len(card_records)),
        key=lambda i: card_records[i].interest_rate_percent or 0.0,
        reverse=True,
    )
    for i in by_rate:
        if remaining_pool <= 0:
            break
        headroom = max(card_records[i].current_balance - current_payments[i], 0.0)
        extras[i] = min(remaining_pool, headroom)
        remaining_pool -= extras[i]

    rows = []
    for card, current, extra in zip(card_records, current_payments, extras):
        rate = card.interest_rate_percent or 0.0
        recommended = current + extra
        rows.append(
            CardPaymentRow(
                id=card.id,
                person=card.person,
                item=card.item,
                current_balance=card.current_balance,
                interest_rate_percent=rate,
                minimum_payment=card.minimum_payment,
                current_payment=current,
                recommended_payment=recommended,
                extra_payment=extra,
                payoff_months_current=payoff_months_or_none(card.current_balance, current, rate),
                payoff_months_recommended=payoff_months_or_none(card.current_balance, recommended, rate),
            )
        )

    plan = CardPaymentPlan(
        strategy=AVALANCHE_STRATEGY,
        discretionary_pool=pool,
        current_total_monthly_payment=current_total,
        recommended_total_monthly_payment=current_total + total(extras),
        weighted_payoff_months_current=_weighted_months(
            [(row.current_balance, row.payoff_months_current) for row in rows]
        ),
        weighted_payoff_months_recommended=_weighted_months(
            [(row.current_balance, row.payoff_months_recommended) for row in rows]
        ),
        rows=rows,
    )
    logger.info(
        "card_payments_recommended",
        cards=len(rows),
        pool=pool,
        allocated=plan.recommended_total_monthly_payment - current_total,
    )
    return plan


__all__ = [
    "MAX_PAYOFF_MONTHS",
    "AVALANCHE_STRATEGY",
    "amortize",
    "payoff_months_or_none",
    "estimate_payoff_months",
    "compare_loan_payoff",
    "recommend_credit_card_payments",
]
