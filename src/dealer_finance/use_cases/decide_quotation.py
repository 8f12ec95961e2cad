from __future__ import annotations

import logging
from dataclasses import dataclass

from dealer_finance.domain.actor import Actor
from dealer_finance.domain.errors import NotFoundError, PermissionDeniedError
from dealer_finance.domain.events import EventType, LifecycleEvent
from dealer_finance.domain.quotation import Quotation, QuotationStatus
from dealer_finance.ports.event_publisher import EventPublisher
from dealer_finance.ports.unit_of_work import UnitOfWorkFactory
from dealer_finance.use_cases.event_dispatch import publish_events

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AssignQuotationSellerRequest:
    quotation_id: str
    seller_id: str
    actor: Actor


@dataclass(frozen=True, slots=True)
class DecideQuotationRequest:
    quotation_id: str
    decision: QuotationStatus
    seller: Actor
    notes: str | None = None


class AssignQuotationSeller:
    """Put a pending quotation under review by a seller (Pending -> UnderReview)."""

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, request: AssignQuotationSellerRequest) -> Quotation:
        if not request.actor.is_privileged:
            raise PermissionDeniedError("Only sellers or admins can assign quotations")

        with self._uow_factory() as uow:
            quotation = uow.quotations.get(request.quotation_id)
            if quotation is None:
                raise NotFoundError(resource="Quotation", identifier=request.quotation_id)

            updated = quotation.assign_seller(request.seller_id)
            uow.quotations.save(updated)
            uow.commit()

        logger.info(
            "Seller assigned to quotation",
            extra={"quotation_id": updated.id, "seller_id": updated.seller_id},
        )
        return updated


class DecideQuotation:
    """
    Seller approves or rejects a quotation.

    Only Pending/UnderReview quotations can be decided; an Approved quotation
    is what a client needs to start a purchase.
    """

    def __init__(self, uow_factory: UnitOfWorkFactory, publisher: EventPublisher) -> None:
        self._uow_factory = uow_factory
        self._publisher = publisher

    def execute(self, request: DecideQuotationRequest) -> Quotation:
        seller = request.seller
        if not seller.is_privileged:
            raise PermissionDeniedError("Only sellers or admins can decide quotations")

        with self._uow_factory() as uow:
            quotation = uow.quotations.get(request.quotation_id)
            if quotation is None:
                raise NotFoundError(resource="Quotation", identifier=request.quotation_id)

            updated = quotation.decide(seller.id, request.decision, request.notes)
            uow.quotations.save(updated)
            uow.commit()

        logger.info(
            "Quotation decided",
            extra={"quotation_id": updated.id, "status": updated.status.value},
        )

        publish_events(
            self._publisher,
            [
                LifecycleEvent(
                    event_type=EventType.QUOTATION_DECIDED,
                    payload={
                        "quotation_id": updated.id,
                        "client_id": updated.client_id,
                        "seller_id": updated.seller_id,
                        "status": updated.status.value,
                    },
                )
            ],
        )
        return updated
