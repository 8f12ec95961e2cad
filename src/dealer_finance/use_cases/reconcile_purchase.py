from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from dealer_finance.domain.actor import Actor
from dealer_finance.domain.errors import NotFoundError, PermissionDeniedError
from dealer_finance.domain.money import ZERO
from dealer_finance.ports.unit_of_work import UnitOfWorkFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReconciliationReport:
    purchase_id: str
    total_financed: Decimal | None
    total_paid: Decimal
    outstanding_balance: Decimal | None
    payments_sum: Decimal
    payment_count: int

    @property
    def drift(self) -> Decimal:
        """Difference between the summed payment log and the purchase's total_paid."""
        return self.payments_sum - self.total_paid

    @property
    def balanced(self) -> bool:
        """Ledger identity holds (total_paid + outstanding == total_financed)."""
        if self.total_financed is None:
            return self.total_paid == ZERO and self.outstanding_balance is None
        return self.total_paid + self.outstanding_balance == self.total_financed

    @property
    def ok(self) -> bool:
        return self.drift == ZERO and self.balanced


class ReconcilePurchase:
    """
    Check a purchase's balance fields against its payment log.

    Balance and status on the purchase stay the source of truth; this only
    reports drift and never writes.
    """

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, purchase_id: str, actor: Actor) -> ReconciliationReport:
        if not actor.is_privileged:
            raise PermissionDeniedError("Only sellers or admins can reconcile", actor_id=actor.id)

        with self._uow_factory() as uow:
            purchase = uow.purchases.get(purchase_id)
            if purchase is None:
                raise NotFoundError(resource="Purchase", identifier=purchase_id)
            payments = uow.payments.list_by_purchase(purchase.id)

        report = ReconciliationReport(
            purchase_id=purchase.id,
            total_financed=purchase.total_financed,
            total_paid=purchase.total_paid,
            outstanding_balance=purchase.outstanding_balance,
            payments_sum=sum((p.amount for p in payments), ZERO),
            payment_count=len(payments),
        )
        if not report.ok:
            logger.warning(
                "Ledger drift detected",
                extra={
                    "purchase_id": purchase.id,
                    "drift": str(report.drift),
                    "balanced": report.balanced,
                },
            )
        return report
