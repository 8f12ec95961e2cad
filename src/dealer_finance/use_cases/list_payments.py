from __future__ import annotations

from dataclasses import dataclass

from dealer_finance.domain.actor import Actor
from dealer_finance.domain.errors import NotFoundError
from dealer_finance.domain.payment import Payment
from dealer_finance.ports.unit_of_work import UnitOfWorkFactory
from dealer_finance.use_cases.get_purchase import ensure_can_view


@dataclass(frozen=True, slots=True)
class ListPaymentsRequest:
    actor: Actor
    purchase_id: str | None = None
    client_id: str | None = None
    quotation_id: str | None = None


class ListPayments:
    """
    Payment history queries.

    - by purchase: oldest first
    - by client: newest first
    - by quotation: the payments of the purchase opened from it, oldest first
    """

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def by_purchase(self, request: ListPaymentsRequest) -> list[Payment]:
        with self._uow_factory() as uow:
            purchase = uow.purchases.get(request.purchase_id)
            if purchase is None:
                raise NotFoundError(resource="Purchase", identifier=request.purchase_id)
            ensure_can_view(request.actor, purchase.client_id)
            return uow.payments.list_by_purchase(purchase.id)

    def by_client(self, request: ListPaymentsRequest) -> list[Payment]:
        ensure_can_view(request.actor, request.client_id)
        with self._uow_factory() as uow:
            return uow.payments.list_by_client(request.client_id)

    def by_quotation(self, request: ListPaymentsRequest) -> list[Payment]:
        with self._uow_factory() as uow:
            quotation = uow.quotations.get(request.quotation_id)
            if quotation is None:
                raise NotFoundError(resource="Quotation", identifier=request.quotation_id)
            ensure_can_view(request.actor, quotation.client_id)

            purchase = uow.purchases.get_by_quotation(quotation.id)
            if purchase is None:
                return []
            return uow.payments.list_by_purchase(purchase.id)
