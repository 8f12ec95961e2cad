"""
Test suite for RegisterPayment.

Covers the payment ledger end to end against the in-memory store:
- Balance bookkeeping and overpayment rejection
- Settlement: zero balance completes the purchase exactly once
- Authorization (role and seller ownership)
- Optimistic concurrency retries, including a real two-thread race
- Duplicate payment policy
- Events are published only after commit
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import Mock

import pytest

from dealer_finance.adapters.in_memory_event_publisher import InMemoryEventPublisher
from dealer_finance.adapters.in_memory_ledger_store import InMemoryLedgerStore
from dealer_finance.domain.errors import (
    ConcurrentModificationError,
    DuplicatePaymentError,
    ExternalFailureError,
    InvalidAmountError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
)
from dealer_finance.domain.events import EventType
from dealer_finance.domain.payment import DuplicatePaymentPolicy
from dealer_finance.domain.purchase import PurchaseStatus
from dealer_finance.domain.quotation import QuotationStatus
from dealer_finance.use_cases.reconcile_purchase import ReconcilePurchase
from dealer_finance.use_cases.register_payment import RegisterPayment, RegisterPaymentRequest


@pytest.fixture
def publisher() -> InMemoryEventPublisher:
    return InMemoryEventPublisher()


@pytest.fixture
def vehicle(make_vehicle):
    return make_vehicle(stock=3)


@pytest.fixture
def quotation(make_quotation, vehicle):
    return make_quotation(vehicle_id=vehicle.id)


@pytest.fixture
def purchase(make_purchase, quotation):
    """Approved purchase with 10,000 outstanding."""
    return make_purchase(balance=Decimal("10000.00"), quotation_id=quotation.id)


@pytest.fixture
def store(quotation, purchase, vehicle) -> InMemoryLedgerStore:
    return InMemoryLedgerStore(quotations=[quotation], purchases=[purchase], vehicles=[vehicle])


@pytest.fixture
def register(store, publisher, now) -> RegisterPayment:
    return RegisterPayment(store.unit_of_work, publisher, clock=lambda: now)


# ==============================================================================
# Balance bookkeeping
# ==============================================================================


def test_partial_payment_reduces_balance(register, store, publisher, purchase, seller_actor, now):
    payment = register.execute(RegisterPaymentRequest(purchase.id, Decimal("2500"), seller_actor))

    stored = store.purchases[purchase.id]
    assert stored.outstanding_balance == Decimal("7500.00")
    assert stored.total_paid == Decimal("2500.00")
    assert stored.status is PurchaseStatus.APPROVED
    assert stored.version == 2

    assert payment.amount == Decimal("2500.00")
    assert payment.method == "cash"
    assert payment.registered_by == seller_actor.id
    assert payment.registered_at == now
    assert payment.client_id == purchase.client_id
    assert store.payments == [payment]

    [event] = publisher.events
    assert event.event_type is EventType.PAYMENT_REGISTERED
    assert event.payload["outstanding_balance"] == "7500.00"


def test_overpayment_then_exact_payment(register, store, publisher, purchase, vehicle, quotation, seller_actor):
    """12,000 on a 10,000 balance is rejected; 10,000 settles the purchase."""
    with pytest.raises(InvalidAmountError):
        register.execute(RegisterPaymentRequest(purchase.id, Decimal("12000"), seller_actor))

    assert store.purchases[purchase.id].outstanding_balance == Decimal("10000.00")
    assert store.payments == []

    register.execute(RegisterPaymentRequest(purchase.id, Decimal("10000"), seller_actor))

    stored = store.purchases[purchase.id]
    assert stored.status is PurchaseStatus.COMPLETED
    assert stored.outstanding_balance == Decimal("0")
    assert stored.total_paid == Decimal("10000.00")
    assert stored.delivered_at is not None
    assert store.stock_movements == [vehicle.id]
    assert store.vehicles[vehicle.id].stock == 2
    assert store.vehicles[vehicle.id].times_sold == 1
    assert store.quotations[quotation.id].status is QuotationStatus.COMPLETED

    assert [e.event_type for e in publisher.events] == [
        EventType.PAYMENT_REGISTERED,
        EventType.PURCHASE_COMPLETED,
    ]
    assert publisher.events[1].payload["settled_by_payment"] is True


def test_settled_purchase_accepts_no_more_payments(register, store, purchase, admin_actor):
    register.execute(RegisterPaymentRequest(purchase.id, Decimal("10000"), admin_actor))

    with pytest.raises(InvalidStateError, match="already completed"):
        register.execute(RegisterPaymentRequest(purchase.id, Decimal("1"), admin_actor))

    assert len(store.stock_movements) == 1


def test_settlement_overrides_any_prior_status(make_purchase, quotation, vehicle, publisher, admin_actor):
    """A rejected purchase whose ledger is paid off still completes."""
    purchase = make_purchase(
        balance=Decimal("500.00"), status=PurchaseStatus.REJECTED, quotation_id=quotation.id
    )
    store = InMemoryLedgerStore(quotations=[quotation], purchases=[purchase], vehicles=[vehicle])

    RegisterPayment(store.unit_of_work, publisher).execute(
        RegisterPaymentRequest(purchase.id, Decimal("500"), admin_actor)
    )

    assert store.purchases[purchase.id].status is PurchaseStatus.COMPLETED


def test_payment_before_financing_is_invalid_state(make_purchase, publisher, admin_actor):
    purchase = make_purchase()
    store = InMemoryLedgerStore(purchases=[purchase])

    with pytest.raises(InvalidStateError):
        RegisterPayment(store.unit_of_work, publisher).execute(
            RegisterPaymentRequest(purchase.id, Decimal("10"), admin_actor)
        )


def test_unknown_purchase(register, admin_actor):
    with pytest.raises(NotFoundError):
        register.execute(RegisterPaymentRequest("missing", Decimal("10"), admin_actor))


# ==============================================================================
# Authorization
# ==============================================================================


def test_clients_cannot_register_payments(register, store, purchase, client_actor):
    with pytest.raises(PermissionDeniedError):
        register.execute(RegisterPaymentRequest(purchase.id, Decimal("10"), client_actor))

    assert store.payments == []


def test_seller_must_own_the_purchase(register, store, purchase, other_seller_actor):
    with pytest.raises(PermissionDeniedError, match="their own purchases"):
        register.execute(RegisterPaymentRequest(purchase.id, Decimal("10"), other_seller_actor))

    assert store.purchases[purchase.id].outstanding_balance == Decimal("10000.00")


def test_admin_can_pay_any_purchase(register, purchase, admin_actor):
    payment = register.execute(RegisterPaymentRequest(purchase.id, Decimal("10"), admin_actor))

    assert payment.registered_by == admin_actor.id


# ==============================================================================
# Concurrency
# ==============================================================================


def test_version_conflict_is_retried(store, publisher, purchase, seller_actor):
    """The first commit loses to an out-of-band update; the retry succeeds."""
    calls = {"n": 0}

    def uow_factory():
        uow = store.unit_of_work()
        calls["n"] += 1
        if calls["n"] == 1:
            real_commit = uow.commit

            def racing_commit():
                with store.unit_of_work() as other:
                    current = other.purchases.get(purchase.id)
                    other.purchases.save(current, expected_version=current.version)
                    other.commit()
                real_commit()

            uow.commit = racing_commit
        return uow

    RegisterPayment(uow_factory, publisher).execute(
        RegisterPaymentRequest(purchase.id, Decimal("100"), seller_actor)
    )

    assert calls["n"] == 2
    assert store.purchases[purchase.id].version == 3
    assert store.purchases[purchase.id].outstanding_balance == Decimal("9900.00")
    assert len(store.payments) == 1
    assert len(publisher.events) == 1


def test_retries_exhausted_raises_conflict(publisher, seller_actor):
    uow = Mock()
    uow.__enter__ = Mock(return_value=uow)
    uow.__exit__ = Mock(return_value=False)
    uow.purchases.get.side_effect = ConcurrentModificationError("moved")
    factory = Mock(return_value=uow)

    with pytest.raises(ConcurrentModificationError):
        RegisterPayment(factory, publisher, max_retries=3).execute(
            RegisterPaymentRequest("p-1", Decimal("10"), seller_actor)
        )

    assert factory.call_count == 3
    assert publisher.events == []


def test_concurrent_payments_never_overdraw(store, publisher, purchase, seller_actor):
    """Two 6,000 payments race on a 10,000 balance: exactly one lands."""
    register = RegisterPayment(store.unit_of_work, publisher)
    barrier = threading.Barrier(2)

    def pay():
        barrier.wait()
        try:
            return register.execute(
                RegisterPaymentRequest(purchase.id, Decimal("6000"), seller_actor)
            )
        except InvalidAmountError as exc:
            return exc

    with ThreadPoolExecutor(max_workers=2) as pool:
        results = list(pool.map(lambda _: pay(), range(2)))

    failures = [r for r in results if isinstance(r, InvalidAmountError)]
    assert len(failures) == 1
    assert len(store.payments) == 1
    stored = store.purchases[purchase.id]
    assert stored.outstanding_balance == Decimal("4000.00")
    assert stored.total_paid == Decimal("6000.00")
    assert stored.is_reconciled()


def test_concurrent_settling_payments_complete_once(store, publisher, purchase, vehicle, seller_actor):
    """Both threads try to pay the full balance; stock moves exactly once."""
    register = RegisterPayment(store.unit_of_work, publisher)
    barrier = threading.Barrier(2)

    def pay():
        barrier.wait()
        try:
            return register.execute(
                RegisterPaymentRequest(purchase.id, Decimal("10000"), seller_actor)
            )
        except (InvalidStateError, InvalidAmountError) as exc:
            return exc

    with ThreadPoolExecutor(max_workers=2) as pool:
        list(pool.map(lambda _: pay(), range(2)))

    assert len(store.payments) == 1
    assert store.stock_movements == [vehicle.id]
    assert store.purchases[purchase.id].status is PurchaseStatus.COMPLETED
    assert len(publisher.of_type(EventType.PURCHASE_COMPLETED)) == 1


# ==============================================================================
# Duplicate policy
# ==============================================================================


def test_allow_policy_records_identical_payments(register, store, purchase, seller_actor):
    request = RegisterPaymentRequest(purchase.id, Decimal("100"), seller_actor)

    register.execute(request)
    register.execute(request)

    assert len(store.payments) == 2
    assert store.purchases[purchase.id].outstanding_balance == Decimal("9800.00")


def test_reject_policy_blocks_identical_payment_inside_window(store, publisher, purchase, seller_actor, now):
    clock = Mock(side_effect=[now, now + timedelta(seconds=30), now + timedelta(seconds=90)])
    register = RegisterPayment(
        store.unit_of_work,
        publisher,
        duplicate_policy=DuplicatePaymentPolicy.REJECT,
        duplicate_window_seconds=60,
        clock=clock,
    )
    request = RegisterPaymentRequest(purchase.id, Decimal("100"), seller_actor)

    register.execute(request)
    with pytest.raises(DuplicatePaymentError):
        register.execute(request)
    register.execute(request)  # outside the window

    assert len(store.payments) == 2
    assert store.purchases[purchase.id].total_paid == Decimal("200.00")


def test_reject_policy_allows_different_amount_or_method(store, publisher, purchase, seller_actor, now):
    register = RegisterPayment(
        store.unit_of_work,
        publisher,
        duplicate_policy=DuplicatePaymentPolicy.REJECT,
        clock=lambda: now,
    )

    register.execute(RegisterPaymentRequest(purchase.id, Decimal("100"), seller_actor))
    register.execute(RegisterPaymentRequest(purchase.id, Decimal("101"), seller_actor))
    register.execute(
        RegisterPaymentRequest(purchase.id, Decimal("100"), seller_actor, method="transfer")
    )

    assert len(store.payments) == 3


# ==============================================================================
# Notifications
# ==============================================================================


def test_failing_notifier_does_not_undo_payment(store, purchase, seller_actor, caplog):
    publisher = Mock()
    publisher.publish.side_effect = ExternalFailureError("smtp down")

    payment = RegisterPayment(store.unit_of_work, publisher).execute(
        RegisterPaymentRequest(purchase.id, Decimal("10000"), seller_actor)
    )

    assert store.payments == [payment]
    assert store.purchases[purchase.id].status is PurchaseStatus.COMPLETED
    assert publisher.publish.call_count == 2
    assert "Event dispatch failed" in caplog.text


def test_ledger_reconciles_after_several_payments(register, store, purchase, seller_actor):
    for amount in ("1234.56", "0.44", "5000", "765"):
        register.execute(RegisterPaymentRequest(purchase.id, Decimal(amount), seller_actor))

    report = ReconcilePurchase(store.unit_of_work).execute(purchase.id, seller_actor)

    assert report.ok
    assert report.payment_count == 4
    assert report.payments_sum == Decimal("7000.00")
    assert report.outstanding_balance == Decimal("3000.00")
