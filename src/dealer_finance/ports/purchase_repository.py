from __future__ import annotations

from abc import ABC, abstractmethod

from dealer_finance.domain.purchase import Purchase, PurchaseStatus


class PurchaseRepository(ABC):
    """
    Port for purchase persistence.

    Contract:
        - ``get(..., for_update=True)`` must serialize concurrent writers of the
          same purchase (row lock) where the backend supports it
        - ``save`` is a compare-and-swap on ``version``: it raises
          ConcurrentModificationError when the stored version differs from
          ``expected_version`` and otherwise stores ``expected_version + 1``
        - Purchases are never deleted
    """

    @abstractmethod
    def get(self, purchase_id: str, for_update: bool = False) -> Purchase | None: ...

    @abstractmethod
    def get_by_quotation(self, quotation_id: str) -> Purchase | None: ...

    @abstractmethod
    def add(self, purchase: Purchase) -> None:
        """
        Insert a new purchase.

        Raises:
            ConflictError: If a purchase already exists for the quotation
        """
        ...

    @abstractmethod
    def save(self, purchase: Purchase, expected_version: int) -> Purchase:
        """
        Version-checked update.

        Returns:
            The stored snapshot with its new version

        Raises:
            ConcurrentModificationError: If the stored version moved on
        """
        ...

    @abstractmethod
    def list_by_client(self, client_id: str) -> list[Purchase]:
        """Purchases of a client, newest first."""
        ...

    @abstractmethod
    def list_by_seller(self, seller_id: str) -> list[Purchase]:
        """Purchases assigned to a seller, newest first."""
        ...

    @abstractmethod
    def list_by_status(self, status: PurchaseStatus) -> list[Purchase]:
        """Purchases in a status, newest first."""
        ...
