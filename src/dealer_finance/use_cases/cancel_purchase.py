from __future__ import annotations

import logging
from dataclasses import dataclass

from dealer_finance.domain.actor import Actor, Role
from dealer_finance.domain.errors import NotFoundError, PermissionDeniedError
from dealer_finance.domain.events import EventType
from dealer_finance.domain.purchase import Purchase
from dealer_finance.ports.event_publisher import EventPublisher
from dealer_finance.ports.unit_of_work import UnitOfWorkFactory
from dealer_finance.use_cases.event_dispatch import publish_events, purchase_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CancelPurchaseRequest:
    purchase_id: str
    admin: Actor
    reason: str | None = None


class CancelPurchase:
    """Administrative cancel of a Pending, UnderReview or Approved purchase."""

    def __init__(self, uow_factory: UnitOfWorkFactory, publisher: EventPublisher) -> None:
        self._uow_factory = uow_factory
        self._publisher = publisher

    def execute(self, request: CancelPurchaseRequest) -> Purchase:
        if request.admin.role is not Role.ADMIN:
            raise PermissionDeniedError(
                "Only admins can cancel purchases", actor_id=request.admin.id
            )

        with self._uow_factory() as uow:
            purchase = uow.purchases.get(request.purchase_id, for_update=True)
            if purchase is None:
                raise NotFoundError(resource="Purchase", identifier=request.purchase_id)

            stored = uow.purchases.save(purchase.cancel(), expected_version=purchase.version)
            uow.commit()

        logger.info(
            "Purchase cancelled",
            extra={"purchase_id": stored.id, "admin_id": request.admin.id},
        )
        publish_events(
            self._publisher,
            [purchase_event(EventType.PURCHASE_CANCELLED, stored, reason=request.reason)],
        )
        return stored
