"""Credit value objects embedded in a Purchase.

Bureau and bank results are snapshots taken at one instant. They are never
recomputed after being attached to a purchase.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from dealer_finance.domain.errors import InvalidInputError


class RiskLevel(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @classmethod
    def for_score(cls, score: int) -> RiskLevel:
        if score >= 800:
            return cls.EXCELLENT
        if score >= 700:
            return cls.GOOD
        if score >= 600:
            return cls.FAIR
        return cls.POOR


@dataclass(frozen=True, slots=True)
class FinancialProfile:
    monthly_income: Decimal
    other_income: Decimal
    monthly_expenses: Decimal
    current_debts: Decimal

    def validate(self) -> None:
        errors = []
        if self.monthly_income <= 0:
            errors.append({"field": "monthly_income", "message": "Must be > 0"})
        for name in ("other_income", "monthly_expenses", "current_debts"):
            if getattr(self, name) < 0:
                errors.append({"field": name, "message": "Must be >= 0"})
        if errors:
            raise InvalidInputError(errors=errors)

    @property
    def total_income(self) -> Decimal:
        return self.monthly_income + self.other_income

    @property
    def payment_capacity(self) -> Decimal:
        """Disposable monthly income after expenses and existing debts."""
        return self.total_income - self.monthly_expenses - self.current_debts


@dataclass(frozen=True, slots=True)
class PaymentHistory:
    on_time_percentage: int
    delinquency: str
    worst_delay: str


@dataclass(frozen=True, slots=True)
class BureauDetails:
    payment_history: PaymentHistory
    open_accounts: int
    total_debt: Decimal
    recent_inquiries: int
    credit_age_years: int


@dataclass(frozen=True, slots=True)
class CreditBureauResult:
    score: int
    risk_level: RiskLevel
    details: BureauDetails
    queried_at: datetime


@dataclass(frozen=True, slots=True)
class BankEvaluationResult:
    """
    Outcome of a simulated bank evaluation.

    Approval-only fields (approved_amount, interest_rate, approved_term_months,
    monthly_payment, conditions) are None/empty on a decline; decline-only
    fields (rejection_reasons, suggestions) are empty on an approval.
    """

    approved: bool
    payment_capacity: Decimal
    debt_ratio: Decimal
    evaluated_at: datetime
    approved_amount: Decimal | None = None
    interest_rate: Decimal | None = None
    approved_term_months: int | None = None
    monthly_payment: Decimal | None = None
    conditions: tuple[str, ...] = field(default_factory=tuple)
    rejection_reasons: tuple[str, ...] = field(default_factory=tuple)
    suggestions: tuple[str, ...] = field(default_factory=tuple)

    @property
    def total_repayable(self) -> Decimal | None:
        """Sum of every installment under the approved terms."""
        if self.monthly_payment is None or self.approved_term_months is None:
            return None
        return self.monthly_payment * self.approved_term_months
