from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


DEFAULT_PAYMENT_METHOD = "cash"


class PaymentStatus(str, Enum):
    REGISTERED = "registered"


class DuplicatePaymentPolicy(str, Enum):
    """What to do with a resubmitted identical payment.

    ALLOW: every submission is a separate payment record.
    REJECT: an identical payment (same purchase, amount, method and actor)
    registered inside the duplicate window raises DuplicatePaymentError.
    """

    ALLOW = "allow"
    REJECT = "reject"


@dataclass(frozen=True, slots=True)
class Payment:
    id: str
    purchase_id: str
    client_id: str
    amount: Decimal
    method: str
    registered_by: str
    registered_at: datetime
    notes: str | None = None
    status: PaymentStatus = PaymentStatus.REGISTERED

    def matches(self, amount: Decimal, method: str, registered_by: str) -> bool:
        return (
            self.amount == amount
            and self.method == method
            and self.registered_by == registered_by
        )
