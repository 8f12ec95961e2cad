from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType
from typing import Callable

from dealer_finance.ports.inventory import Inventory
from dealer_finance.ports.payment_repository import PaymentRepository
from dealer_finance.ports.purchase_repository import PurchaseRepository
from dealer_finance.ports.quotation_repository import QuotationRepository


class UnitOfWork(ABC):
    """
    One atomic unit of reads and writes.

    Usage:
        with uow_factory() as uow:
            purchase = uow.purchases.get(purchase_id, for_update=True)
            ...
            uow.commit()

    Leaving the block without ``commit()`` (or through an exception) discards
    every write made inside it.
    """

    quotations: QuotationRepository
    purchases: PurchaseRepository
    payments: PaymentRepository
    inventory: Inventory

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.rollback()

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None:
        """Discard uncommitted writes. Safe to call after commit."""
        ...


UnitOfWorkFactory = Callable[[], UnitOfWork]
