from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum

from dealer_finance.domain.errors import InvalidInputError, InvalidStateError


ALLOWED_TERMS = {12, 24, 36, 48, 60, 72}
ANNUAL_INTEREST_RATE = Decimal("0.15")


class QuotationStatus(str, Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


# Statuses a seller may still decide on
OPEN_STATUSES = frozenset({QuotationStatus.PENDING, QuotationStatus.UNDER_REVIEW})


@dataclass(frozen=True, slots=True)
class QuotationRequest:
    price: Decimal
    down_payment: Decimal
    term_months: int

    def validate(self) -> None:
        if self.price <= 0:
            raise InvalidInputError("price must be > 0")
        if self.down_payment < 0:
            raise InvalidInputError("down_payment must be >= 0")
        if self.down_payment >= self.price:
            raise InvalidInputError("down_payment must be < price")
        if self.term_months not in ALLOWED_TERMS:
            raise InvalidInputError(f"term_months must be one of {sorted(ALLOWED_TERMS)}")


@dataclass(frozen=True, slots=True)
class Quotation:
    id: str
    client_id: str
    vehicle_id: str
    base_price: Decimal
    down_payment: Decimal
    term_months: int
    annual_rate: Decimal
    monthly_payment: Decimal
    total_payable: Decimal
    created_at: datetime
    status: QuotationStatus = QuotationStatus.PENDING
    seller_id: str | None = None
    seller_notes: str = ""

    @property
    def financed_amount(self) -> Decimal:
        return self.base_price - self.down_payment

    def assign_seller(self, seller_id: str) -> Quotation:
        if self.status is not QuotationStatus.PENDING:
            raise InvalidStateError(
                "Only pending quotations can be assigned",
                quotation_id=self.id,
                status=self.status.value,
            )
        return replace(self, seller_id=seller_id, status=QuotationStatus.UNDER_REVIEW)

    def decide(self, seller_id: str, status: QuotationStatus, notes: str | None) -> Quotation:
        if status not in (QuotationStatus.APPROVED, QuotationStatus.REJECTED):
            raise InvalidInputError(
                "A seller decision must be approved or rejected", status=status.value
            )
        if self.status not in OPEN_STATUSES:
            raise InvalidStateError(
                f"Quotation in status '{self.status.value}' cannot be decided",
                quotation_id=self.id,
                status=self.status.value,
            )
        return replace(
            self,
            seller_id=seller_id,
            status=status,
            seller_notes=notes if notes is not None else self.seller_notes,
        )

    def complete(self) -> Quotation:
        if self.status is QuotationStatus.COMPLETED:
            return self
        return replace(self, status=QuotationStatus.COMPLETED)
