"""
Shared builders for ledger tests.

Ids are UUID strings so the same builders work against the SQL store.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable

import pytest

from dealer_finance.domain.actor import Actor, Role
from dealer_finance.domain.credit import (
    BureauDetails,
    CreditBureauResult,
    FinancialProfile,
    PaymentHistory,
    RiskLevel,
)
from dealer_finance.domain.purchase import Purchase, PurchaseStatus
from dealer_finance.domain.quotation import Quotation, QuotationStatus
from dealer_finance.domain.vehicle import Vehicle
from dealer_finance.ports.credit_bureau import CreditBureau

CLIENT_ID = "client-ana"
OTHER_CLIENT_ID = "client-bob"
SELLER_ID = "seller-carla"
OTHER_SELLER_ID = "seller-dan"
ADMIN_ID = "admin-eve"


class FixedCreditBureau(CreditBureau):
    """Bureau that always answers with the same score."""

    def __init__(self, score: int, queried_at: datetime) -> None:
        self.score = score
        self.queried_at = queried_at
        self.queries: list[str] = []

    def query(self, applicant_key: str) -> CreditBureauResult:
        self.queries.append(applicant_key)
        return bureau_result(self.score, self.queried_at)


def bureau_result(score: int, queried_at: datetime) -> CreditBureauResult:
    return CreditBureauResult(
        score=score,
        risk_level=RiskLevel.for_score(score),
        details=BureauDetails(
            payment_history=PaymentHistory(
                on_time_percentage=score // 10,
                delinquency="No delinquency",
                worst_delay="30-60 days",
            ),
            open_accounts=3,
            total_debt=Decimal("12000"),
            recent_inquiries=1,
            credit_age_years=7,
        ),
        queried_at=queried_at,
    )


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 3, 2, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def client_actor() -> Actor:
    return Actor(id=CLIENT_ID, role=Role.CLIENT, email="ana@example.com", name="Ana")


@pytest.fixture
def other_client_actor() -> Actor:
    return Actor(id=OTHER_CLIENT_ID, role=Role.CLIENT, email="bob@example.com", name="Bob")


@pytest.fixture
def seller_actor() -> Actor:
    return Actor(id=SELLER_ID, role=Role.SELLER, email="carla@dealer.example", name="Carla")


@pytest.fixture
def other_seller_actor() -> Actor:
    return Actor(id=OTHER_SELLER_ID, role=Role.SELLER, name="Dan")


@pytest.fixture
def admin_actor() -> Actor:
    return Actor(id=ADMIN_ID, role=Role.ADMIN, name="Eve")


@pytest.fixture
def profile() -> FinancialProfile:
    """Healthy profile: capacity 13000, debt ratio 0.35 on a 240000/48 loan."""
    return FinancialProfile(
        monthly_income=Decimal("20000"),
        other_income=Decimal("0"),
        monthly_expenses=Decimal("5000"),
        current_debts=Decimal("2000"),
    )


@pytest.fixture
def make_vehicle() -> Callable[..., Vehicle]:
    def _make(**overrides) -> Vehicle:
        vehicle = Vehicle(
            id=str(uuid.uuid4()),
            make="Toyota",
            model="Corolla",
            year=2022,
            price=Decimal("300000.00"),
            stock=3,
        )
        return replace(vehicle, **overrides)

    return _make


@pytest.fixture
def make_quotation(now: datetime) -> Callable[..., Quotation]:
    """Approved 300000 quotation, 60000 down over 48 months at 15%."""

    def _make(**overrides) -> Quotation:
        quotation = Quotation(
            id=str(uuid.uuid4()),
            client_id=CLIENT_ID,
            vehicle_id=str(uuid.uuid4()),
            base_price=Decimal("300000.00"),
            down_payment=Decimal("60000.00"),
            term_months=48,
            annual_rate=Decimal("0.15"),
            monthly_payment=Decimal("6679.38"),
            total_payable=Decimal("380610.24"),
            created_at=now,
            status=QuotationStatus.APPROVED,
            seller_id=SELLER_ID,
        )
        return replace(quotation, **overrides)

    return _make


@pytest.fixture
def make_purchase(now: datetime, profile: FinancialProfile) -> Callable[..., Purchase]:
    """
    Purchase builder.

    Defaults to an UnderReview purchase with no ledger. Pass ``balance`` to
    get an Approved purchase whose ledger holds that amount.
    """

    def _make(balance: Decimal | None = None, **overrides) -> Purchase:
        purchase = Purchase(
            id=str(uuid.uuid4()),
            quotation_id=str(uuid.uuid4()),
            client_id=CLIENT_ID,
            client_email="ana@example.com",
            seller_id=SELLER_ID,
            status=PurchaseStatus.UNDER_REVIEW,
            financial_profile=profile,
            bureau_result=bureau_result(750, now),
            created_at=now,
        )
        if balance is not None:
            purchase = replace(
                purchase,
                status=PurchaseStatus.APPROVED,
                total_financed=balance,
                outstanding_balance=balance,
                approved_at=now,
            )
        return replace(purchase, **overrides)

    return _make


@pytest.fixture
def fixed_bureau(now: datetime) -> Callable[[int], FixedCreditBureau]:
    def _make(score: int = 750) -> FixedCreditBureau:
        return FixedCreditBureau(score, now)

    return _make


@pytest.fixture
def make_bureau_result(now: datetime) -> Callable[[int], CreditBureauResult]:
    def _make(score: int) -> CreditBureauResult:
        return bureau_result(score, now)

    return _make
