from __future__ import annotations

import logging

from dealer_finance.domain.clock import Clock, utc_now
from dealer_finance.domain.events import EventType, LifecycleEvent
from dealer_finance.domain.money import ZERO
from dealer_finance.domain.purchase import Purchase, PurchaseStatus
from dealer_finance.ports.unit_of_work import UnitOfWork
from dealer_finance.use_cases.event_dispatch import purchase_event

logger = logging.getLogger(__name__)


def apply_completion_effects(uow: UnitOfWork, purchase: Purchase) -> int | None:
    """
    Stage the side effects of a purchase reaching Completed.

    Marks the linked quotation Completed and records the vehicle sale,
    both inside the caller's unit of work so they land only on commit.

    Returns:
        Remaining stock, or None when the quotation is missing
    """
    quotation = uow.quotations.get(purchase.quotation_id)
    if quotation is None:
        logger.warning(
            "Completed purchase has no quotation",
            extra={"purchase_id": purchase.id, "quotation_id": purchase.quotation_id},
        )
        return None

    uow.quotations.save(quotation.complete())
    return uow.inventory.record_sale(quotation.vehicle_id)


class AdvanceFromPayment:
    """
    Completion transition driven by the ledger.

    Runs inside the payment's unit of work. A zero balance forces the purchase
    to Completed regardless of its prior status; an already Completed purchase
    is left untouched so the terminal effects fire exactly once.
    """

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock

    def execute(self, uow: UnitOfWork, purchase: Purchase) -> tuple[Purchase, list[LifecycleEvent]]:
        if purchase.outstanding_balance != ZERO or purchase.status is PurchaseStatus.COMPLETED:
            return purchase, []

        settled = purchase.settle(self._clock())
        remaining = apply_completion_effects(uow, settled)

        logger.info(
            "Purchase settled by payment",
            extra={"purchase_id": settled.id, "remaining_stock": remaining},
        )
        event = purchase_event(
            EventType.PURCHASE_COMPLETED,
            settled,
            delivered_at=settled.delivered_at.isoformat() if settled.delivered_at else None,
            settled_by_payment=True,
        )
        return settled, [event]
