from __future__ import annotations

import logging
from dataclasses import dataclass

from dealer_finance.domain.actor import Actor
from dealer_finance.domain.clock import Clock, utc_now
from dealer_finance.domain.errors import (
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
)
from dealer_finance.domain.events import EventType, LifecycleEvent
from dealer_finance.domain.purchase import Purchase, PurchaseStatus
from dealer_finance.ports.event_publisher import EventPublisher
from dealer_finance.ports.unit_of_work import UnitOfWorkFactory
from dealer_finance.use_cases.advance_from_payment import apply_completion_effects
from dealer_finance.use_cases.event_dispatch import publish_events, purchase_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FinalizePurchaseRequest:
    purchase_id: str
    decision: PurchaseStatus
    seller: Actor
    comments: str | None = None


class FinalizePurchase:
    """
    Seller decision on an Approved purchase.

    Decisions: Approved (keep), Rejected, Pending (send back) or Completed
    (deliver). Completing requires the vehicle to be in stock and consumes one
    unit of it.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        publisher: EventPublisher,
        clock: Clock = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._publisher = publisher
        self._clock = clock

    def execute(self, request: FinalizePurchaseRequest) -> Purchase:
        """
        Raises:
            PermissionDeniedError: Caller is not a seller or admin
            NotFoundError: Purchase does not exist
            InvalidInputError: Decision is not one of the seller decisions
            StateConflictError: Purchase is not Approved
            InvalidStateError: Completing a purchase whose vehicle is out of stock
        """
        seller = request.seller
        if not seller.is_privileged:
            raise PermissionDeniedError(
                "Only sellers or admins can finalize purchases", actor_id=seller.id
            )

        events: list[LifecycleEvent] = []
        with self._uow_factory() as uow:
            purchase = uow.purchases.get(request.purchase_id, for_update=True)
            if purchase is None:
                raise NotFoundError(resource="Purchase", identifier=request.purchase_id)

            updated = purchase.finalize(
                request.decision, seller.id, request.comments, self._clock()
            )

            if updated.status is PurchaseStatus.COMPLETED:
                self._ensure_in_stock(uow, purchase)
                apply_completion_effects(uow, updated)
                events.append(
                    purchase_event(
                        EventType.PURCHASE_COMPLETED,
                        updated,
                        delivered_at=updated.delivered_at.isoformat(),
                        settled_by_payment=False,
                    )
                )

            stored = uow.purchases.save(updated, expected_version=purchase.version)
            uow.commit()

        logger.info(
            "Purchase finalized",
            extra={
                "purchase_id": stored.id,
                "decision": request.decision.value,
                "status": stored.status.value,
                "seller_id": seller.id,
            },
        )
        publish_events(self._publisher, events)
        return stored

    @staticmethod
    def _ensure_in_stock(uow, purchase: Purchase) -> None:
        quotation = uow.quotations.get(purchase.quotation_id)
        if quotation is None:
            raise NotFoundError(resource="Quotation", identifier=purchase.quotation_id)
        vehicle = uow.inventory.get(quotation.vehicle_id)
        if vehicle is None or not vehicle.in_stock:
            raise InvalidStateError(
                "Vehicle is out of stock",
                purchase_id=purchase.id,
                vehicle_id=quotation.vehicle_id,
            )
