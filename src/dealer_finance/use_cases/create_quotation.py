from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from dealer_finance.domain.actor import Actor, Role
from dealer_finance.domain.amortization import compute_installment
from dealer_finance.domain.clock import Clock, utc_now
from dealer_finance.domain.errors import NotFoundError, PermissionDeniedError
from dealer_finance.domain.events import EventType, LifecycleEvent
from dealer_finance.domain.identifiers import IdFactory, new_id
from dealer_finance.domain.quotation import (
    ANNUAL_INTEREST_RATE,
    Quotation,
    QuotationRequest,
)
from dealer_finance.ports.event_publisher import EventPublisher
from dealer_finance.ports.unit_of_work import UnitOfWorkFactory
from dealer_finance.use_cases.event_dispatch import publish_events

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CreateQuotationRequest:
    client_id: str
    vehicle_id: str
    down_payment: Decimal
    term_months: int
    requested_by: Actor


class CreateQuotation:
    """
    Price a vehicle for a client.

    Rounding policy (see compute_installment):
    - Monthly payment rounded to cents with ROUND_HALF_UP
    - total_payable = monthly_payment * term_months + down_payment (exactly)

    Clients quote for themselves; sellers and admins may quote on behalf of
    any client.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        publisher: EventPublisher,
        annual_rate: Decimal = ANNUAL_INTEREST_RATE,
        clock: Clock = utc_now,
        id_factory: IdFactory = new_id,
    ) -> None:
        self._uow_factory = uow_factory
        self._publisher = publisher
        self._annual_rate = annual_rate
        self._clock = clock
        self._id_factory = id_factory

    def execute(self, request: CreateQuotationRequest) -> Quotation:
        actor = request.requested_by
        if actor.role is Role.CLIENT and actor.id != request.client_id:
            raise PermissionDeniedError(
                "Clients can only request quotations for themselves",
                actor_id=actor.id,
            )

        with self._uow_factory() as uow:
            vehicle = uow.inventory.get(request.vehicle_id)
            if vehicle is None:
                raise NotFoundError(resource="Vehicle", identifier=request.vehicle_id)

            QuotationRequest(
                price=vehicle.price,
                down_payment=request.down_payment,
                term_months=request.term_months,
            ).validate()

            installment = compute_installment(
                vehicle.price - request.down_payment,
                self._annual_rate,
                request.term_months,
            )

            quotation = Quotation(
                id=self._id_factory(),
                client_id=request.client_id,
                vehicle_id=vehicle.id,
                base_price=vehicle.price,
                down_payment=request.down_payment,
                term_months=request.term_months,
                annual_rate=self._annual_rate,
                monthly_payment=installment.monthly_payment,
                total_payable=installment.total_payable + request.down_payment,
                created_at=self._clock(),
            )
            uow.quotations.add(quotation)
            uow.commit()

        logger.info(
            "Quotation created",
            extra={
                "quotation_id": quotation.id,
                "vehicle_id": quotation.vehicle_id,
                "monthly_payment": str(quotation.monthly_payment),
                "total_payable": str(quotation.total_payable),
            },
        )

        publish_events(
            self._publisher,
            [
                LifecycleEvent(
                    event_type=EventType.QUOTATION_CREATED,
                    payload={
                        "quotation_id": quotation.id,
                        "client_id": quotation.client_id,
                        "vehicle_id": quotation.vehicle_id,
                        "monthly_payment": str(quotation.monthly_payment),
                        "total_payable": str(quotation.total_payable),
                    },
                )
            ],
        )
        return quotation
