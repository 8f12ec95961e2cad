from __future__ import annotations

from abc import ABC, abstractmethod

from dealer_finance.domain.payment import Payment


class PaymentRepository(ABC):
    """
    Port for the append-only payment log.

    There is no update or delete: payments are immutable once added.
    """

    @abstractmethod
    def add(self, payment: Payment) -> None: ...

    @abstractmethod
    def list_by_purchase(self, purchase_id: str) -> list[Payment]:
        """Payments of a purchase, oldest first."""
        ...

    @abstractmethod
    def list_by_client(self, client_id: str) -> list[Payment]:
        """Payments of a client, newest first."""
        ...
