"""PostgreSQL implementation of the ledger unit of work."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from types import TracebackType
from typing import Any
from uuid import UUID

from sqlalchemy import case, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from dealer_finance.domain.credit import (
    BankEvaluationResult,
    BureauDetails,
    CreditBureauResult,
    FinancialProfile,
    PaymentHistory,
    RiskLevel,
)
from dealer_finance.domain.errors import ConcurrentModificationError, ConflictError
from dealer_finance.domain.payment import Payment, PaymentStatus
from dealer_finance.domain.purchase import Purchase, PurchaseStatus
from dealer_finance.domain.quotation import Quotation, QuotationStatus
from dealer_finance.domain.vehicle import Vehicle
from dealer_finance.infra.db.models.payment import PaymentRow
from dealer_finance.infra.db.models.purchase import PurchaseRow
from dealer_finance.infra.db.models.quotation import QuotationRow
from dealer_finance.infra.db.models.vehicle import VehicleRow
from dealer_finance.ports.inventory import Inventory
from dealer_finance.ports.payment_repository import PaymentRepository
from dealer_finance.ports.purchase_repository import PurchaseRepository
from dealer_finance.ports.quotation_repository import QuotationRepository
from dealer_finance.ports.unit_of_work import UnitOfWork


class PostgresUnitOfWork(UnitOfWork):
    """
    Session-per-unit-of-work over SQLAlchemy.

    - ``__enter__`` opens a session (and with it a transaction)
    - Purchase reads with ``for_update=True`` take a row lock (SELECT ... FOR UPDATE)
    - Purchase writes are ``UPDATE ... WHERE version = :expected``
    - Leaving the block rolls back anything not committed and closes the session
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory
        self._session: Session | None = None

    def __enter__(self) -> PostgresUnitOfWork:
        self._session = self._session_factory()
        self.quotations = PostgresQuotationRepository(self._session)
        self.purchases = PostgresPurchaseRepository(self._session)
        self.payments = PostgresPaymentRepository(self._session)
        self.inventory = PostgresInventory(self._session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            self.rollback()
        finally:
            if self._session is not None:
                self._session.close()
                self._session = None

    def commit(self) -> None:
        self._require_session().commit()

    def rollback(self) -> None:
        if self._session is not None:
            self._session.rollback()

    def _require_session(self) -> Session:
        if self._session is None:
            raise RuntimeError("Unit of work used outside of its 'with' block")
        return self._session


class PostgresQuotationRepository(QuotationRepository):
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, quotation_id: str) -> Quotation | None:
        if not _is_uuid(quotation_id):
            return None
        row = self._session.get(QuotationRow, quotation_id)
        return _quotation_to_domain(row) if row else None

    def add(self, quotation: Quotation) -> None:
        self._session.add(QuotationRow(id=quotation.id, **_quotation_fields(quotation)))
        self._session.flush()

    def save(self, quotation: Quotation) -> None:
        self._session.execute(
            update(QuotationRow)
            .where(QuotationRow.id == quotation.id)
            .values(**_quotation_fields(quotation))
        )


class PostgresPurchaseRepository(PurchaseRepository):
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, purchase_id: str, for_update: bool = False) -> Purchase | None:
        if not _is_uuid(purchase_id):
            return None
        query = select(PurchaseRow).where(PurchaseRow.id == purchase_id)
        if for_update:
            query = query.with_for_update()  # Row-level lock until commit/rollback
        query = query.execution_options(populate_existing=True)
        row = self._session.execute(query).scalar_one_or_none()
        return _purchase_to_domain(row) if row else None

    def get_by_quotation(self, quotation_id: str) -> Purchase | None:
        if not _is_uuid(quotation_id):
            return None
        query = (
            select(PurchaseRow)
            .where(PurchaseRow.quotation_id == quotation_id)
            .execution_options(populate_existing=True)
        )
        row = self._session.execute(query).scalar_one_or_none()
        return _purchase_to_domain(row) if row else None

    def add(self, purchase: Purchase) -> None:
        if self.get_by_quotation(purchase.quotation_id) is not None:
            raise ConflictError(
                "A purchase already exists for this quotation",
                quotation_id=purchase.quotation_id,
            )
        self._session.add(
            PurchaseRow(id=purchase.id, version=purchase.version, **_purchase_fields(purchase))
        )
        try:
            self._session.flush()
        except IntegrityError:
            # Lost the race on the unique quotation_id
            raise ConflictError(
                "A purchase already exists for this quotation",
                quotation_id=purchase.quotation_id,
            ) from None

    def save(self, purchase: Purchase, expected_version: int) -> Purchase:
        new_version = expected_version + 1
        result = self._session.execute(
            update(PurchaseRow)
            .where(PurchaseRow.id == purchase.id, PurchaseRow.version == expected_version)
            .values(version=new_version, **_purchase_fields(purchase))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConcurrentModificationError(
                "Purchase was modified by another transaction",
                purchase_id=purchase.id,
                expected_version=expected_version,
            )
        return replace(purchase, version=new_version)

    def list_by_client(self, client_id: str) -> list[Purchase]:
        return self._list(PurchaseRow.client_id == client_id)

    def list_by_seller(self, seller_id: str) -> list[Purchase]:
        return self._list(PurchaseRow.seller_id == seller_id)

    def list_by_status(self, status: PurchaseStatus) -> list[Purchase]:
        return self._list(PurchaseRow.status == status.value)

    def _list(self, criterion) -> list[Purchase]:
        query = (
            select(PurchaseRow)
            .where(criterion)
            .order_by(PurchaseRow.created_at.desc())
            .execution_options(populate_existing=True)
        )
        rows = self._session.execute(query).scalars().all()
        return [_purchase_to_domain(row) for row in rows]


class PostgresPaymentRepository(PaymentRepository):
    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, payment: Payment) -> None:
        self._session.add(
            PaymentRow(
                id=payment.id,
                purchase_id=payment.purchase_id,
                client_id=payment.client_id,
                amount=payment.amount,
                method=payment.method,
                notes=payment.notes,
                registered_by=payment.registered_by,
                registered_at=payment.registered_at,
                status=payment.status.value,
            )
        )
        self._session.flush()

    def list_by_purchase(self, purchase_id: str) -> list[Payment]:
        if not _is_uuid(purchase_id):
            return []
        query = (
            select(PaymentRow)
            .where(PaymentRow.purchase_id == purchase_id)
            .order_by(PaymentRow.registered_at.asc())
        )
        return [_payment_to_domain(row) for row in self._session.execute(query).scalars()]

    def list_by_client(self, client_id: str) -> list[Payment]:
        query = (
            select(PaymentRow)
            .where(PaymentRow.client_id == client_id)
            .order_by(PaymentRow.registered_at.desc())
        )
        return [_payment_to_domain(row) for row in self._session.execute(query).scalars()]


class PostgresInventory(Inventory):
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, vehicle_id: str) -> Vehicle | None:
        if not _is_uuid(vehicle_id):
            return None
        row = self._session.get(VehicleRow, vehicle_id, populate_existing=True)
        if row is None:
            return None
        return Vehicle(
            id=str(row.id),
            make=row.make,
            model=row.model,
            year=row.year,
            price=row.price,
            stock=row.stock,
            times_sold=row.times_sold,
        )

    def record_sale(self, vehicle_id: str) -> int:
        if not _is_uuid(vehicle_id):
            return 0
        # Evaluated in SQL so stock never goes negative under concurrency
        self._session.execute(
            update(VehicleRow)
            .where(VehicleRow.id == vehicle_id)
            .values(
                stock=case((VehicleRow.stock > 0, VehicleRow.stock - 1), else_=0),
                times_sold=VehicleRow.times_sold + 1,
            )
            .execution_options(synchronize_session=False)
        )
        remaining = self._session.execute(
            select(VehicleRow.stock).where(VehicleRow.id == vehicle_id)
        ).scalar_one_or_none()
        return remaining or 0


# ==============================================================================
# Row <-> domain conversion
# ==============================================================================


def _is_uuid(value: str) -> bool:
    """Ids are uuid columns; PostgreSQL rejects malformed literals instead of matching nothing."""
    try:
        UUID(value)
    except ValueError:  # Invalid UUID format
        return False
    return True


def _aware(value: datetime | None) -> datetime | None:
    """Backends without timezone support hand back naive UTC timestamps."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _dec(value: str | None) -> Decimal | None:
    return None if value is None else Decimal(value)


def _str(value: Any) -> str | None:
    return None if value is None else str(value)


def _quotation_fields(quotation: Quotation) -> dict[str, Any]:
    return {
        "client_id": quotation.client_id,
        "vehicle_id": quotation.vehicle_id,
        "seller_id": quotation.seller_id,
        "base_price": quotation.base_price,
        "down_payment": quotation.down_payment,
        "term_months": quotation.term_months,
        "annual_rate": quotation.annual_rate,
        "monthly_payment": quotation.monthly_payment,
        "total_payable": quotation.total_payable,
        "status": quotation.status.value,
        "seller_notes": quotation.seller_notes,
        "created_at": quotation.created_at,
    }


def _quotation_to_domain(row: QuotationRow) -> Quotation:
    return Quotation(
        id=str(row.id),
        client_id=row.client_id,
        vehicle_id=str(row.vehicle_id),
        base_price=row.base_price,
        down_payment=row.down_payment,
        term_months=row.term_months,
        annual_rate=row.annual_rate,
        monthly_payment=row.monthly_payment,
        total_payable=row.total_payable,
        created_at=_aware(row.created_at),
        status=QuotationStatus(row.status),
        seller_id=row.seller_id,
        seller_notes=row.seller_notes or "",
    )


def _purchase_fields(purchase: Purchase) -> dict[str, Any]:
    return {
        "quotation_id": purchase.quotation_id,
        "client_id": purchase.client_id,
        "client_email": purchase.client_email,
        "seller_id": purchase.seller_id,
        "analyst_id": purchase.analyst_id,
        "status": purchase.status.value,
        "financial_profile": _profile_to_json(purchase.financial_profile),
        "bureau_result": _bureau_to_json(purchase.bureau_result),
        "bank_result": _bank_to_json(purchase.bank_result),
        "analyst_comments": purchase.analyst_comments,
        "approved_at": purchase.approved_at,
        "delivered_at": purchase.delivered_at,
        "total_financed": purchase.total_financed,
        "outstanding_balance": purchase.outstanding_balance,
        "total_paid": purchase.total_paid,
        "created_at": purchase.created_at,
    }


def _purchase_to_domain(row: PurchaseRow) -> Purchase:
    return Purchase(
        id=str(row.id),
        quotation_id=str(row.quotation_id),
        client_id=row.client_id,
        client_email=row.client_email,
        status=PurchaseStatus(row.status),
        financial_profile=_profile_from_json(row.financial_profile),
        bureau_result=_bureau_from_json(row.bureau_result),
        created_at=_aware(row.created_at),
        seller_id=row.seller_id,
        analyst_id=row.analyst_id,
        bank_result=_bank_from_json(row.bank_result),
        analyst_comments=row.analyst_comments,
        approved_at=_aware(row.approved_at),
        delivered_at=_aware(row.delivered_at),
        total_financed=row.total_financed,
        outstanding_balance=row.outstanding_balance,
        total_paid=row.total_paid,
        version=row.version,
    )


def _payment_to_domain(row: PaymentRow) -> Payment:
    return Payment(
        id=str(row.id),
        purchase_id=str(row.purchase_id),
        client_id=row.client_id,
        amount=row.amount,
        method=row.method,
        registered_by=row.registered_by,
        registered_at=_aware(row.registered_at),
        notes=row.notes,
        status=PaymentStatus(row.status),
    )


def _profile_to_json(profile: FinancialProfile) -> dict[str, Any]:
    return {
        "monthly_income": str(profile.monthly_income),
        "other_income": str(profile.other_income),
        "monthly_expenses": str(profile.monthly_expenses),
        "current_debts": str(profile.current_debts),
    }


def _profile_from_json(data: dict[str, Any]) -> FinancialProfile:
    return FinancialProfile(
        monthly_income=Decimal(data["monthly_income"]),
        other_income=Decimal(data["other_income"]),
        monthly_expenses=Decimal(data["monthly_expenses"]),
        current_debts=Decimal(data["current_debts"]),
    )


def _bureau_to_json(result: CreditBureauResult) -> dict[str, Any]:
    details = result.details
    return {
        "score": result.score,
        "risk_level": result.risk_level.value,
        "queried_at": result.queried_at.isoformat(),
        "details": {
            "payment_history": {
                "on_time_percentage": details.payment_history.on_time_percentage,
                "delinquency": details.payment_history.delinquency,
                "worst_delay": details.payment_history.worst_delay,
            },
            "open_accounts": details.open_accounts,
            "total_debt": str(details.total_debt),
            "recent_inquiries": details.recent_inquiries,
            "credit_age_years": details.credit_age_years,
        },
    }


def _bureau_from_json(data: dict[str, Any]) -> CreditBureauResult:
    details = data["details"]
    return CreditBureauResult(
        score=data["score"],
        risk_level=RiskLevel(data["risk_level"]),
        queried_at=_aware(datetime.fromisoformat(data["queried_at"])),
        details=BureauDetails(
            payment_history=PaymentHistory(**details["payment_history"]),
            open_accounts=details["open_accounts"],
            total_debt=Decimal(details["total_debt"]),
            recent_inquiries=details["recent_inquiries"],
            credit_age_years=details["credit_age_years"],
        ),
    )


def _bank_to_json(result: BankEvaluationResult | None) -> dict[str, Any] | None:
    if result is None:
        return None
    return {
        "approved": result.approved,
        "payment_capacity": str(result.payment_capacity),
        "debt_ratio": str(result.debt_ratio),
        "evaluated_at": result.evaluated_at.isoformat(),
        "approved_amount": _str(result.approved_amount),
        "interest_rate": _str(result.interest_rate),
        "approved_term_months": result.approved_term_months,
        "monthly_payment": _str(result.monthly_payment),
        "conditions": list(result.conditions),
        "rejection_reasons": list(result.rejection_reasons),
        "suggestions": list(result.suggestions),
    }


def _bank_from_json(data: dict[str, Any] | None) -> BankEvaluationResult | None:
    if data is None:
        return None
    return BankEvaluationResult(
        approved=data["approved"],
        payment_capacity=Decimal(data["payment_capacity"]),
        debt_ratio=Decimal(data["debt_ratio"]),
        evaluated_at=_aware(datetime.fromisoformat(data["evaluated_at"])),
        approved_amount=_dec(data["approved_amount"]),
        interest_rate=_dec(data["interest_rate"]),
        approved_term_months=data["approved_term_months"],
        monthly_payment=_dec(data["monthly_payment"]),
        conditions=tuple(data["conditions"]),
        rejection_reasons=tuple(data["rejection_reasons"]),
        suggestions=tuple(data["suggestions"]),
    )
