"""
Dependency injection for FastAPI routes.

Key principle: Database sessions should be per-unit-of-work, not cached.
Only stateless singletons (settings, publishers, the simulated bureau) and the
in-memory store use lru_cache.
"""

from __future__ import annotations

from functools import lru_cache, partial

from fastapi import Depends, Header

from dealer_finance.adapters.email_notification_dispatcher import EmailNotificationDispatcher
from dealer_finance.adapters.fanout_event_publisher import FanoutEventPublisher
from dealer_finance.adapters.in_memory_ledger_store import InMemoryLedgerStore
from dealer_finance.adapters.logging_email_sender import LoggingEmailSender
from dealer_finance.adapters.logging_event_publisher import LoggingEventPublisher
from dealer_finance.adapters.postgres_ledger_store import PostgresUnitOfWork
from dealer_finance.adapters.simulated_credit_bureau import SimulatedCreditBureau
from dealer_finance.domain.actor import Actor, Role
from dealer_finance.domain.errors import ValidationError
from dealer_finance.infra.config import LedgerSettings
from dealer_finance.infra.db.session import get_session_local
from dealer_finance.ports.credit_bureau import CreditBureau
from dealer_finance.ports.event_publisher import EventPublisher
from dealer_finance.ports.unit_of_work import UnitOfWorkFactory
from dealer_finance.use_cases.cancel_purchase import CancelPurchase
from dealer_finance.use_cases.create_quotation import CreateQuotation
from dealer_finance.use_cases.decide_quotation import AssignQuotationSeller, DecideQuotation
from dealer_finance.use_cases.evaluate_financing import EvaluateFinancing
from dealer_finance.use_cases.finalize_purchase import FinalizePurchase
from dealer_finance.use_cases.get_purchase import GetPurchase, GetPurchaseByQuotation
from dealer_finance.use_cases.get_quotation_schedule import GetQuotationSchedule
from dealer_finance.use_cases.list_payments import ListPayments
from dealer_finance.use_cases.list_purchases import ListPurchases
from dealer_finance.use_cases.reconcile_purchase import ReconcilePurchase
from dealer_finance.use_cases.register_payment import RegisterPayment
from dealer_finance.use_cases.start_purchase import StartPurchase


# ==============================================================================
# Singletons
# ==============================================================================


@lru_cache
def get_settings() -> LedgerSettings:
    return LedgerSettings.from_env()


@lru_cache
def get_memory_store() -> InMemoryLedgerStore:
    """Process-wide store used when LEDGER_STORE=memory (local runs, demos)."""
    return InMemoryLedgerStore()


@lru_cache
def get_event_publisher() -> EventPublisher:
    """Structured log of every event plus the transactional email dispatcher."""
    return FanoutEventPublisher(
        [
            LoggingEventPublisher(),
            EmailNotificationDispatcher(LoggingEmailSender()),
        ]
    )


@lru_cache
def get_credit_bureau() -> CreditBureau:
    return SimulatedCreditBureau()


def get_uow_factory(settings: LedgerSettings = Depends(get_settings)) -> UnitOfWorkFactory:
    """
    Unit of work factory for the configured store.

    Each call of the returned factory opens its own session, so a use case
    that retries gets a fresh transaction per attempt.
    """
    if settings.ledger_store == "memory":
        return get_memory_store().unit_of_work
    return partial(PostgresUnitOfWork, get_session_local())


# ==============================================================================
# Caller identity
# ==============================================================================


def get_current_actor(
    x_actor_id: str = Header(description="Authenticated user id (set by the auth gateway)"),
    x_actor_role: str = Header(description="client | seller | admin"),
    x_actor_email: str = Header(default=""),
    x_actor_name: str = Header(default=""),
) -> Actor:
    """
    Build the already-authenticated actor from gateway headers.

    Raises:
        ValidationError: If the role header holds an unknown role
    """
    try:
        role = Role(x_actor_role.lower())
    except ValueError:
        raise ValidationError(
            errors=[
                {
                    "field": "X-Actor-Role",
                    "message": f"Must be one of {[r.value for r in Role]}",
                    "code": "INVALID_ROLE",
                }
            ]
        ) from None
    return Actor(id=x_actor_id, role=role, email=x_actor_email, name=x_actor_name)


# ==============================================================================
# Use cases
# ==============================================================================


def get_create_quotation_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    settings: LedgerSettings = Depends(get_settings),
) -> CreateQuotation:
    return CreateQuotation(
        uow_factory=uow_factory,
        publisher=get_event_publisher(),
        annual_rate=settings.quotation_annual_rate,
    )


def get_assign_quotation_seller_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> AssignQuotationSeller:
    return AssignQuotationSeller(uow_factory=uow_factory)


def get_decide_quotation_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> DecideQuotation:
    return DecideQuotation(uow_factory=uow_factory, publisher=get_event_publisher())


def get_quotation_schedule_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> GetQuotationSchedule:
    return GetQuotationSchedule(uow_factory=uow_factory)


def get_start_purchase_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> StartPurchase:
    return StartPurchase(
        uow_factory=uow_factory,
        credit_bureau=get_credit_bureau(),
        publisher=get_event_publisher(),
    )


def get_evaluate_financing_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> EvaluateFinancing:
    return EvaluateFinancing(uow_factory=uow_factory, publisher=get_event_publisher())


def get_finalize_purchase_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> FinalizePurchase:
    return FinalizePurchase(uow_factory=uow_factory, publisher=get_event_publisher())


def get_cancel_purchase_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> CancelPurchase:
    return CancelPurchase(uow_factory=uow_factory, publisher=get_event_publisher())


def get_purchase_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> GetPurchase:
    return GetPurchase(uow_factory=uow_factory)


def get_purchase_by_quotation_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> GetPurchaseByQuotation:
    return GetPurchaseByQuotation(uow_factory=uow_factory)


def get_list_purchases_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> ListPurchases:
    return ListPurchases(uow_factory=uow_factory)


def get_register_payment_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    settings: LedgerSettings = Depends(get_settings),
) -> RegisterPayment:
    return RegisterPayment(
        uow_factory=uow_factory,
        publisher=get_event_publisher(),
        max_retries=settings.payment_max_retries,
        duplicate_policy=settings.duplicate_payment_policy,
        duplicate_window_seconds=settings.duplicate_payment_window_seconds,
    )


def get_list_payments_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> ListPayments:
    return ListPayments(uow_factory=uow_factory)


def get_reconcile_purchase_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> ReconcilePurchase:
    return ReconcilePurchase(uow_factory=uow_factory)
