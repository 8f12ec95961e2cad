from __future__ import annotations

from abc import ABC, abstractmethod

from dealer_finance.domain.vehicle import Vehicle


class Inventory(ABC):
    """Port for the vehicles (price and stock) held by the product catalog."""

    @abstractmethod
    def get(self, vehicle_id: str) -> Vehicle | None: ...

    @abstractmethod
    def record_sale(self, vehicle_id: str) -> int:
        """
        Remove one unit from stock, never going below zero, and count the sale.

        Returns:
            Remaining units
        """
        ...
