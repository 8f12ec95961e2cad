"""Deterministic stand-in for an external credit bureau."""

from __future__ import annotations

import logging
from decimal import Decimal

from dealer_finance.domain.clock import Clock, utc_now
from dealer_finance.domain.credit import (
    BureauDetails,
    CreditBureauResult,
    PaymentHistory,
    RiskLevel,
)
from dealer_finance.ports.credit_bureau import CreditBureau

logger = logging.getLogger(__name__)

MIN_SCORE = 500
SCORE_SPAN = 500  # scores land in [500, 999]


def applicant_hash(applicant_key: str) -> int:
    """
    Stable 32-bit string hash (h * 31 + c, signed wrap-around, absolute value).

    Keys are normalized (trimmed, lower-cased) so the same mailbox always
    maps to the same score.
    """
    h = 0
    for ch in applicant_key.strip().lower():
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


class SimulatedCreditBureau(CreditBureau):
    """
    Simulated bureau query.

    - Score: 500 + hash % 500
    - Every detail field derives from the same hash, so repeated queries for
      one applicant return identical data (only ``queried_at`` moves)
    """

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock

    def query(self, applicant_key: str) -> CreditBureauResult:
        h = applicant_hash(applicant_key)
        score = MIN_SCORE + (h % SCORE_SPAN)

        logger.info(
            "Simulated credit bureau query",
            extra={"applicant": applicant_key, "score": score},
        )

        return CreditBureauResult(
            score=score,
            risk_level=RiskLevel.for_score(score),
            details=BureauDetails(
                payment_history=self._payment_history(score),
                open_accounts=(h % 10) + 1,
                total_debt=Decimal((h % 50000) + 5000),
                recent_inquiries=h % 5,
                credit_age_years=(h % 20) + 1,
            ),
            queried_at=self._clock(),
        )

    def _payment_history(self, score: int) -> PaymentHistory:
        return PaymentHistory(
            on_time_percentage=score // 10,
            delinquency="Some delinquency reported" if score < 700 else "No delinquency",
            worst_delay="None" if score > 800 else "30-60 days",
        )
