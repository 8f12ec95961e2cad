from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from dealer_finance.domain.amortization import compute_installment
from dealer_finance.domain.credit import (
    BankEvaluationResult,
    CreditBureauResult,
    FinancialProfile,
)
from dealer_finance.domain.errors import InvalidInputError


BASE_ANNUAL_RATE = Decimal("0.15")
MIN_APPROVAL_SCORE = 600
CAPACITY_COVERAGE = Decimal("0.4")
MAX_DEBT_RATIO = Decimal("0.5")

STANDARD_CONDITIONS = (
    "Complete documentation required",
    "Mandatory vehicle insurance",
    "2% opening commission",
)

REASON_SCORE = "Insufficient credit score"
REASON_CAPACITY = "Insufficient payment capacity"
REASON_DEBT_RATIO = "Debt ratio too high"


def risk_adjusted_rate(score: int, term_months: int, base_rate: Decimal = BASE_ANNUAL_RATE) -> Decimal:
    """Annual rate after score and term adjustments."""
    rate = base_rate

    if score >= 800:
        rate -= Decimal("0.05")
    elif score >= 700:
        rate -= Decimal("0.03")
    elif score >= 600:
        rate -= Decimal("0.01")

    if term_months > 60:
        rate += Decimal("0.02")
    elif term_months > 36:
        rate += Decimal("0.01")

    return rate.quantize(Decimal("0.001"))


@dataclass(frozen=True, slots=True)
class FinancingEvaluator:
    """
    Simulated bank decision.

    Pure: takes a profile snapshot and a bureau snapshot and returns a
    BankEvaluationResult. Callers decide what to do with the result.
    """

    base_rate: Decimal = BASE_ANNUAL_RATE

    def evaluate(
        self,
        profile: FinancialProfile,
        bureau: CreditBureauResult,
        requested_amount: Decimal,
        term_months: int,
        evaluated_at: datetime,
    ) -> BankEvaluationResult:
        if term_months <= 0:
            raise InvalidInputError("term_months must be > 0", term_months=term_months)
        if profile.total_income <= 0:
            raise InvalidInputError("total income must be > 0")

        capacity = profile.payment_capacity
        monthly_share = requested_amount / Decimal(term_months)
        debt_ratio = (profile.current_debts + monthly_share) / profile.total_income

        score_ok = bureau.score > MIN_APPROVAL_SCORE
        capacity_ok = capacity > CAPACITY_COVERAGE * monthly_share
        ratio_ok = debt_ratio < MAX_DEBT_RATIO

        rounded_ratio = debt_ratio.quantize(Decimal("0.0001"))

        if score_ok and capacity_ok and ratio_ok:
            rate = risk_adjusted_rate(bureau.score, term_months, self.base_rate)
            installment = compute_installment(requested_amount, rate, term_months)
            return BankEvaluationResult(
                approved=True,
                payment_capacity=capacity,
                debt_ratio=rounded_ratio,
                evaluated_at=evaluated_at,
                approved_amount=requested_amount,
                interest_rate=rate,
                approved_term_months=term_months,
                monthly_payment=installment.monthly_payment,
                conditions=STANDARD_CONDITIONS,
            )

        reasons = []
        if not score_ok:
            reasons.append(REASON_SCORE)
        if not capacity_ok:
            reasons.append(REASON_CAPACITY)
        if not ratio_ok:
            reasons.append(REASON_DEBT_RATIO)

        return BankEvaluationResult(
            approved=False,
            payment_capacity=capacity,
            debt_ratio=rounded_ratio,
            evaluated_at=evaluated_at,
            rejection_reasons=tuple(reasons),
            suggestions=_suggestions(bureau.score, capacity),
        )


def _suggestions(score: int, capacity: Decimal) -> tuple[str, ...]:
    suggestions = []

    if score < 650:
        suggestions.append("Improve your credit history")
        suggestions.append("Pay down existing debts")

    if capacity < Decimal("5000"):
        suggestions.append("Consider a larger down payment")
        suggestions.append("Explore more affordable vehicles")

    suggestions.append("Talk to a financial advisor")
    return tuple(suggestions)

