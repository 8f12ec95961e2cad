from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from dealer_finance.domain.errors import InvalidInputError
from dealer_finance.domain.money import ZERO, round_money


@dataclass(frozen=True, slots=True)
class Installment:
    monthly_payment: Decimal
    total_payable: Decimal


@dataclass(frozen=True, slots=True)
class ScheduleRow:
    month: int
    payment: Decimal
    interest: Decimal
    principal: Decimal
    balance: Decimal


def compute_installment(
    principal: Decimal,
    annual_rate: Decimal,
    term_months: int,
) -> Installment:
    """
    Compute the fixed monthly installment of an amortizing loan.

    Rounding policy:
    - All intermediate calculations use full precision Decimal
    - Monthly payment is rounded to 2 decimal places (cents) using ROUND_HALF_UP
    - Total payable is computed from the rounded monthly payment (not re-rounded)
    - This ensures: total_payable = monthly_payment * term_months (exactly)

    Raises:
        InvalidInputError: If term_months <= 0 or principal < 0
    """
    if term_months <= 0:
        raise InvalidInputError("term_months must be > 0", term_months=term_months)
    if principal < 0:
        raise InvalidInputError("principal must be >= 0", principal=str(principal))
    if annual_rate < 0:
        raise InvalidInputError("annual_rate must be >= 0", annual_rate=str(annual_rate))

    monthly_rate = annual_rate / Decimal("12")
    term = Decimal(term_months)

    # Standard amortized loan payment:
    # monthly_payment = P * (r*(1+r)^n) / ((1+r)^n - 1)
    if monthly_rate == 0:
        monthly_payment_precise = principal / term
    else:
        one = Decimal("1")
        factor = (one + monthly_rate) ** term_months
        monthly_payment_precise = principal * (monthly_rate * factor) / (factor - one)

    monthly_payment = round_money(monthly_payment_precise)

    return Installment(
        monthly_payment=monthly_payment,
        total_payable=monthly_payment * term,
    )


def amortization_schedule(
    principal: Decimal,
    annual_rate: Decimal,
    term_months: int,
) -> list[ScheduleRow]:
    """
    Build the month-by-month amortization table.

    Interest is rounded to cents every month. The last month pays off the
    remaining balance so the table always closes at exactly zero.
    """
    installment = compute_installment(principal, annual_rate, term_months)
    monthly_rate = annual_rate / Decimal("12")

    rows: list[ScheduleRow] = []
    balance = round_money(principal)
    for month in range(1, term_months + 1):
        interest = round_money(balance * monthly_rate)
        if month == term_months:
            principal_part = balance
        else:
            principal_part = min(balance, installment.monthly_payment - interest)
        balance = max(ZERO, balance - principal_part)
        rows.append(
            ScheduleRow(
                month=month,
                payment=principal_part + interest,
                interest=interest,
                principal=principal_part,
                balance=balance,
            )
        )
    return rows
