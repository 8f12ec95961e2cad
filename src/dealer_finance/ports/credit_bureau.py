from __future__ import annotations

from abc import ABC, abstractmethod

from dealer_finance.domain.credit import CreditBureauResult


class CreditBureau(ABC):
    """
    Port for the credit bureau.

    The simulated adapter is deterministic; a real integration can replace it
    without changing callers.
    """

    @abstractmethod
    def query(self, applicant_key: str) -> CreditBureauResult:
        """
        Look up the applicant.

        Args:
            applicant_key: Stable applicant identity (email)
        """
        ...
