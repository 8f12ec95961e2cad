from __future__ import annotations

from dataclasses import dataclass

from dealer_finance.domain.actor import Actor
from dealer_finance.domain.errors import PermissionDeniedError
from dealer_finance.domain.purchase import Purchase, PurchaseStatus
from dealer_finance.ports.unit_of_work import UnitOfWorkFactory
from dealer_finance.use_cases.get_purchase import ensure_can_view


@dataclass(frozen=True, slots=True)
class ListPurchasesByClientRequest:
    client_id: str
    actor: Actor


@dataclass(frozen=True, slots=True)
class ListPurchasesByStatusRequest:
    status: PurchaseStatus
    actor: Actor


@dataclass(frozen=True, slots=True)
class ListPurchasesBySellerRequest:
    seller_id: str
    actor: Actor


class ListPurchases:
    """
    Read-side queries over purchases. Every list is newest first.

    Status and seller listings are back-office views, restricted to sellers
    and admins.
    """

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def by_client(self, request: ListPurchasesByClientRequest) -> list[Purchase]:
        ensure_can_view(request.actor, request.client_id)
        with self._uow_factory() as uow:
            return uow.purchases.list_by_client(request.client_id)

    def by_status(self, request: ListPurchasesByStatusRequest) -> list[Purchase]:
        _require_privileged(request.actor)
        with self._uow_factory() as uow:
            return uow.purchases.list_by_status(request.status)

    def pending(self, actor: Actor) -> list[Purchase]:
        return self.by_status(ListPurchasesByStatusRequest(PurchaseStatus.PENDING, actor))

    def under_review(self, actor: Actor) -> list[Purchase]:
        return self.by_status(ListPurchasesByStatusRequest(PurchaseStatus.UNDER_REVIEW, actor))

    def approved(self, actor: Actor) -> list[Purchase]:
        return self.by_status(ListPurchasesByStatusRequest(PurchaseStatus.APPROVED, actor))

    def by_seller(self, request: ListPurchasesBySellerRequest) -> list[Purchase]:
        _require_privileged(request.actor)
        with self._uow_factory() as uow:
            return uow.purchases.list_by_seller(request.seller_id)


def _require_privileged(actor: Actor) -> None:
    if not actor.is_privileged:
        raise PermissionDeniedError("Only sellers or admins can list purchases", actor_id=actor.id)
