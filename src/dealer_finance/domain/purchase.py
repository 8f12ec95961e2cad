"""Purchase aggregate and its state machine.

Every status change goes through ``next_status`` and the ``TRANSITIONS``
table. Transition methods on ``Purchase`` are pure: they return a new
snapshot and never touch persistence.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum

from dealer_finance.domain.credit import (
    BankEvaluationResult,
    CreditBureauResult,
    FinancialProfile,
)
from dealer_finance.domain.errors import (
    InvalidAmountError,
    InvalidInputError,
    InvalidStateError,
    StateConflictError,
)
from dealer_finance.domain.events import EventType, LifecycleEvent
from dealer_finance.domain.money import ZERO, round_money


class PurchaseStatus(str, Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PurchaseTrigger(str, Enum):
    SUBMIT = "submit"
    FINANCING_APPROVED = "financing_approved"
    FINANCING_DECLINED = "financing_declined"
    SELLER_APPROVE = "seller_approve"
    SELLER_REJECT = "seller_reject"
    SELLER_RESET = "seller_reset"
    SELLER_COMPLETE = "seller_complete"
    BALANCE_SETTLED = "balance_settled"
    CANCEL = "cancel"


_S = PurchaseStatus
_T = PurchaseTrigger

TRANSITIONS: dict[tuple[PurchaseStatus, PurchaseTrigger], PurchaseStatus] = {
    (_S.PENDING, _T.SUBMIT): _S.UNDER_REVIEW,
    (_S.UNDER_REVIEW, _T.FINANCING_APPROVED): _S.APPROVED,
    (_S.UNDER_REVIEW, _T.FINANCING_DECLINED): _S.REJECTED,
    (_S.APPROVED, _T.SELLER_APPROVE): _S.APPROVED,
    (_S.APPROVED, _T.SELLER_REJECT): _S.REJECTED,
    (_S.APPROVED, _T.SELLER_RESET): _S.PENDING,
    (_S.APPROVED, _T.SELLER_COMPLETE): _S.COMPLETED,
    # Settling the balance wins over any prior status
    (_S.PENDING, _T.BALANCE_SETTLED): _S.COMPLETED,
    (_S.UNDER_REVIEW, _T.BALANCE_SETTLED): _S.COMPLETED,
    (_S.APPROVED, _T.BALANCE_SETTLED): _S.COMPLETED,
    (_S.REJECTED, _T.BALANCE_SETTLED): _S.COMPLETED,
    (_S.CANCELLED, _T.BALANCE_SETTLED): _S.COMPLETED,
    (_S.COMPLETED, _T.BALANCE_SETTLED): _S.COMPLETED,
    (_S.PENDING, _T.CANCEL): _S.CANCELLED,
    (_S.UNDER_REVIEW, _T.CANCEL): _S.CANCELLED,
    (_S.APPROVED, _T.CANCEL): _S.CANCELLED,
}

# Seller decision on finalize -> trigger
FINALIZE_TRIGGERS: dict[PurchaseStatus, PurchaseTrigger] = {
    _S.APPROVED: _T.SELLER_APPROVE,
    _S.REJECTED: _T.SELLER_REJECT,
    _S.PENDING: _T.SELLER_RESET,
    _S.COMPLETED: _T.SELLER_COMPLETE,
}


def next_status(current: PurchaseStatus, trigger: PurchaseTrigger) -> PurchaseStatus:
    """
    Resolve a transition.

    Raises:
        StateConflictError: If (current, trigger) has no entry in TRANSITIONS
    """
    try:
        return TRANSITIONS[(current, trigger)]
    except KeyError:
        raise StateConflictError(current.value, trigger.value) from None


@dataclass(frozen=True, slots=True)
class Purchase:
    id: str
    quotation_id: str
    client_id: str
    status: PurchaseStatus
    financial_profile: FinancialProfile
    bureau_result: CreditBureauResult
    created_at: datetime
    client_email: str = ""
    seller_id: str | None = None
    analyst_id: str | None = None
    bank_result: BankEvaluationResult | None = None
    analyst_comments: str | None = None
    approved_at: datetime | None = None
    delivered_at: datetime | None = None
    total_financed: Decimal | None = None  # None until financing is approved
    outstanding_balance: Decimal | None = None  # None until financing is approved
    total_paid: Decimal = ZERO
    version: int = 1

    @classmethod
    def open(
        cls,
        purchase_id: str,
        quotation_id: str,
        client_id: str,
        client_email: str,
        seller_id: str | None,
        profile: FinancialProfile,
        bureau_result: CreditBureauResult,
        now: datetime,
    ) -> Purchase:
        return cls(
            id=purchase_id,
            quotation_id=quotation_id,
            client_id=client_id,
            client_email=client_email,
            seller_id=seller_id,
            status=next_status(PurchaseStatus.PENDING, PurchaseTrigger.SUBMIT),
            financial_profile=profile,
            bureau_result=bureau_result,
            created_at=now,
        )

    @property
    def payment_capacity(self) -> Decimal:
        return self.financial_profile.payment_capacity

    @property
    def ledger_initialized(self) -> bool:
        return self.total_financed is not None

    def is_reconciled(self) -> bool:
        if self.total_financed is None:
            return self.total_paid == ZERO and self.outstanding_balance is None
        return self.total_paid + self.outstanding_balance == self.total_financed

    def record_financing(
        self, result: BankEvaluationResult, analyst_id: str, now: datetime
    ) -> Purchase:
        """Apply a bank decision. Approval initializes the ledger."""
        if result.approved:
            status = next_status(self.status, PurchaseTrigger.FINANCING_APPROVED)
            financed = result.total_repayable
            return replace(
                self,
                status=status,
                bank_result=result,
                analyst_id=analyst_id,
                approved_at=now,
                total_financed=financed,
                outstanding_balance=financed,
                total_paid=ZERO,
            )

        status = next_status(self.status, PurchaseTrigger.FINANCING_DECLINED)
        return replace(self, status=status, bank_result=result, analyst_id=analyst_id)

    def finalize(
        self,
        decision: PurchaseStatus,
        seller_id: str,
        comments: str | None,
        now: datetime,
    ) -> Purchase:
        trigger = FINALIZE_TRIGGERS.get(decision)
        if trigger is None:
            raise InvalidInputError(
                f"Decision must be one of {sorted(s.value for s in FINALIZE_TRIGGERS)}",
                decision=decision.value,
            )
        status = next_status(self.status, trigger)
        return replace(
            self,
            status=status,
            seller_id=seller_id,
            analyst_comments=comments,
            delivered_at=now if status is PurchaseStatus.COMPLETED else self.delivered_at,
        )

    def settle(self, now: datetime) -> Purchase:
        """Force Completed once the balance is exhausted. Completed stays untouched."""
        if self.status is PurchaseStatus.COMPLETED:
            return self
        status = next_status(self.status, PurchaseTrigger.BALANCE_SETTLED)
        return replace(self, status=status, delivered_at=now)

    def cancel(self) -> Purchase:
        return replace(self, status=next_status(self.status, PurchaseTrigger.CANCEL))


def apply_payment(purchase: Purchase, amount: Decimal) -> tuple[Purchase, LifecycleEvent]:
    """
    Pure balance transition for one payment.

    Returns the new purchase snapshot and the payment-registered event.
    Does not settle the purchase; callers check ``outstanding_balance == 0``.

    Raises:
        InvalidStateError: Purchase completed, or nothing left to pay
        InvalidAmountError: Non-positive amount, or more than the balance
    """
    if purchase.status is PurchaseStatus.COMPLETED:
        raise InvalidStateError(
            "Purchase is already completed; no more payments can be registered",
            purchase_id=purchase.id,
        )
    if not purchase.ledger_initialized or purchase.outstanding_balance <= 0:
        raise InvalidStateError(
            "Purchase has no outstanding balance",
            purchase_id=purchase.id,
        )

    if amount <= 0:
        raise InvalidAmountError("Payment amount must be > 0", amount=str(amount))
    rounded = round_money(amount)
    if rounded <= 0:
        raise InvalidAmountError("Payment amount must be at least 0.01", amount=str(amount))
    if rounded > purchase.outstanding_balance:
        raise InvalidAmountError(
            "Payment amount cannot exceed the outstanding balance",
            amount=str(rounded),
            outstanding_balance=str(purchase.outstanding_balance),
        )

    balance = max(ZERO, purchase.outstanding_balance - rounded)
    updated = replace(
        purchase,
        outstanding_balance=balance,
        total_paid=purchase.total_paid + rounded,
    )
    event = LifecycleEvent(
        event_type=EventType.PAYMENT_REGISTERED,
        payload={
            "purchase_id": purchase.id,
            "client_id": purchase.client_id,
            "client_email": purchase.client_email,
            "amount": str(rounded),
            "outstanding_balance": str(balance),
            "total_paid": str(updated.total_paid),
            "settled": balance == ZERO,
        },
    )
    return updated, event
