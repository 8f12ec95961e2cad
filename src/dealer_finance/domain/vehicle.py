from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class Vehicle:
    id: str
    make: str
    model: str
    year: int
    price: Decimal
    stock: int = 0
    times_sold: int = 0

    @property
    def in_stock(self) -> bool:
        return self.stock > 0
