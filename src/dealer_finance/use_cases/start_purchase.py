from __future__ import annotations

import logging
from dataclasses import dataclass

from dealer_finance.domain.actor import Actor, Role
from dealer_finance.domain.clock import Clock, utc_now
from dealer_finance.domain.credit import FinancialProfile
from dealer_finance.domain.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
)
from dealer_finance.domain.events import EventType
from dealer_finance.domain.identifiers import IdFactory, new_id
from dealer_finance.domain.purchase import Purchase
from dealer_finance.domain.quotation import QuotationStatus
from dealer_finance.ports.credit_bureau import CreditBureau
from dealer_finance.ports.event_publisher import EventPublisher
from dealer_finance.ports.unit_of_work import UnitOfWorkFactory
from dealer_finance.use_cases.event_dispatch import publish_events, purchase_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StartPurchaseRequest:
    quotation_id: str
    financial_profile: FinancialProfile
    client: Actor


class StartPurchase:
    """
    Open a purchase for an approved quotation.

    Runs the credit bureau on the client's identity and stores the profile and
    bureau snapshots. The purchase lands directly in UnderReview.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        credit_bureau: CreditBureau,
        publisher: EventPublisher,
        clock: Clock = utc_now,
        id_factory: IdFactory = new_id,
    ) -> None:
        self._uow_factory = uow_factory
        self._credit_bureau = credit_bureau
        self._publisher = publisher
        self._clock = clock
        self._id_factory = id_factory

    def execute(self, request: StartPurchaseRequest) -> Purchase:
        """
        Args:
            request: Quotation, financial profile and the requesting client

        Returns:
            The new purchase in UnderReview

        Raises:
            PermissionDeniedError: Caller is not a client
            InvalidInputError: Financial profile fails validation
            NotFoundError: Quotation missing or owned by another client
            InvalidStateError: Quotation is not Approved
            ConflictError: A purchase already exists for the quotation
        """
        client = request.client
        if client.role is not Role.CLIENT:
            raise PermissionDeniedError(
                "Only clients can start a purchase", actor_id=client.id, role=client.role.value
            )

        request.financial_profile.validate()

        with self._uow_factory() as uow:
            quotation = uow.quotations.get(request.quotation_id)
            # Another client's quotation is reported as missing
            if quotation is None or quotation.client_id != client.id:
                raise NotFoundError(resource="Quotation", identifier=request.quotation_id)

            if quotation.status is not QuotationStatus.APPROVED:
                raise InvalidStateError(
                    "Quotation must be approved before starting a purchase",
                    quotation_id=quotation.id,
                    status=quotation.status.value,
                )

            if uow.purchases.get_by_quotation(quotation.id) is not None:
                raise ConflictError(
                    "A purchase already exists for this quotation",
                    quotation_id=quotation.id,
                )

            bureau_result = self._credit_bureau.query(client.email or client.id)

            purchase = Purchase.open(
                purchase_id=self._id_factory(),
                quotation_id=quotation.id,
                client_id=client.id,
                client_email=client.email,
                seller_id=quotation.seller_id,
                profile=request.financial_profile,
                bureau_result=bureau_result,
                now=self._clock(),
            )
            uow.purchases.add(purchase)
            uow.commit()

        logger.info(
            "Purchase started",
            extra={
                "purchase_id": purchase.id,
                "quotation_id": purchase.quotation_id,
                "score": bureau_result.score,
                "payment_capacity": str(purchase.payment_capacity),
            },
        )

        publish_events(
            self._publisher,
            [
                purchase_event(
                    EventType.PURCHASE_REQUESTED,
                    purchase,
                    vehicle_id=quotation.vehicle_id,
                    monthly_payment=str(quotation.monthly_payment),
                    term_months=quotation.term_months,
                    score=bureau_result.score,
                    risk_level=bureau_result.risk_level.value,
                )
            ],
        )
        return purchase
