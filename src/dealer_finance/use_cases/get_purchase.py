"""Get purchase use cases."""

from __future__ import annotations

from dataclasses import dataclass

from dealer_finance.domain.actor import Actor, Role
from dealer_finance.domain.errors import NotFoundError, PermissionDeniedError
from dealer_finance.domain.purchase import Purchase
from dealer_finance.ports.unit_of_work import UnitOfWorkFactory


@dataclass(frozen=True, slots=True)
class GetPurchaseRequest:
    purchase_id: str
    actor: Actor


@dataclass(frozen=True, slots=True)
class GetPurchaseByQuotationRequest:
    quotation_id: str
    actor: Actor


def ensure_can_view(actor: Actor, client_id: str) -> None:
    """Clients see only their own records; sellers and admins see everything."""
    if actor.role is Role.CLIENT and actor.id != client_id:
        raise PermissionDeniedError("You do not have access to this purchase", actor_id=actor.id)


class GetPurchase:
    """
    Use case for retrieving a single purchase by ID.

    Responsibilities:
    - Raise NotFoundError if the purchase doesn't exist
    - Keep clients out of other clients' purchases
    """

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, request: GetPurchaseRequest) -> Purchase:
        with self._uow_factory() as uow:
            purchase = uow.purchases.get(request.purchase_id)

        if purchase is None:
            raise NotFoundError(resource="Purchase", identifier=request.purchase_id)

        ensure_can_view(request.actor, purchase.client_id)
        return purchase


class GetPurchaseByQuotation:
    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, request: GetPurchaseByQuotationRequest) -> Purchase:
        """
        Raises:
            NotFoundError: Quotation missing, or no purchase was started for it
            PermissionDeniedError: Client asking about another client's quotation
        """
        with self._uow_factory() as uow:
            quotation = uow.quotations.get(request.quotation_id)
            if quotation is None:
                raise NotFoundError(resource="Quotation", identifier=request.quotation_id)

            ensure_can_view(request.actor, quotation.client_id)

            purchase = uow.purchases.get_by_quotation(quotation.id)

        if purchase is None:
            raise NotFoundError(
                resource="Purchase", identifier=None, quotation_id=request.quotation_id
            )
        return purchase
