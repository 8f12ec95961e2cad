from __future__ import annotations

from abc import ABC, abstractmethod

from dealer_finance.domain.quotation import Quotation


class QuotationRepository(ABC):
    """
    Port for quotation persistence.

    Quotations are written only inside a unit of work; changes become
    visible to other units after commit.
    """

    @abstractmethod
    def get(self, quotation_id: str) -> Quotation | None: ...

    @abstractmethod
    def add(self, quotation: Quotation) -> None: ...

    @abstractmethod
    def save(self, quotation: Quotation) -> None:
        """Persist a changed quotation (status, seller, notes)."""
        ...
