from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from dealer_finance.domain.payment import DuplicatePaymentPolicy
from dealer_finance.domain.quotation import ANNUAL_INTEREST_RATE


@dataclass(frozen=True, slots=True)
class LedgerSettings:
    quotation_annual_rate: Decimal = ANNUAL_INTEREST_RATE
    payment_max_retries: int = 3
    duplicate_payment_policy: DuplicatePaymentPolicy = DuplicatePaymentPolicy.ALLOW
    duplicate_payment_window_seconds: int = 60
    ledger_store: str = "postgres"

    @classmethod
    def from_env(cls) -> LedgerSettings:
        """
        Read settings from environment variables.

        Raises:
            RuntimeError: If a variable is set to an invalid value
        """
        try:
            rate = Decimal(os.getenv("QUOTATION_ANNUAL_RATE", str(ANNUAL_INTEREST_RATE)))
        except InvalidOperation:
            raise RuntimeError("QUOTATION_ANNUAL_RATE must be a decimal number") from None
        if rate < 0:
            raise RuntimeError("QUOTATION_ANNUAL_RATE must be >= 0")

        retries = _int_env("PAYMENT_MAX_RETRIES", 3)
        if retries < 1:
            raise RuntimeError("PAYMENT_MAX_RETRIES must be >= 1")

        policy_name = os.getenv("DUPLICATE_PAYMENT_POLICY", DuplicatePaymentPolicy.ALLOW.value)
        try:
            policy = DuplicatePaymentPolicy(policy_name.lower())
        except ValueError:
            raise RuntimeError(
                f"DUPLICATE_PAYMENT_POLICY must be one of "
                f"{[p.value for p in DuplicatePaymentPolicy]}"
            ) from None

        store = os.getenv("LEDGER_STORE", "postgres").lower()
        if store not in ("postgres", "memory"):
            raise RuntimeError("LEDGER_STORE must be 'postgres' or 'memory'")

        return cls(
            quotation_annual_rate=rate,
            payment_max_retries=retries,
            duplicate_payment_policy=policy,
            duplicate_payment_window_seconds=_int_env("DUPLICATE_PAYMENT_WINDOW_SECONDS", 60),
            ledger_store=store,
        )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer") from None
