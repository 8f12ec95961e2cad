"""Read-side use cases: purchase lookup, listings, payment history, reconciliation."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from dealer_finance.adapters.in_memory_ledger_store import InMemoryLedgerStore
from dealer_finance.domain.errors import NotFoundError, PermissionDeniedError
from dealer_finance.domain.payment import Payment
from dealer_finance.domain.purchase import PurchaseStatus
from dealer_finance.use_cases.get_purchase import (
    GetPurchase,
    GetPurchaseByQuotation,
    GetPurchaseByQuotationRequest,
    GetPurchaseRequest,
)
from dealer_finance.use_cases.list_payments import ListPayments, ListPaymentsRequest
from dealer_finance.use_cases.list_purchases import (
    ListPurchases,
    ListPurchasesByClientRequest,
    ListPurchasesBySellerRequest,
    ListPurchasesByStatusRequest,
)
from dealer_finance.use_cases.reconcile_purchase import ReconcilePurchase


@pytest.fixture
def quotation(make_quotation):
    return make_quotation()


@pytest.fixture
def purchase(make_purchase, quotation):
    return make_purchase(balance=Decimal("1000.00"), quotation_id=quotation.id)


@pytest.fixture
def payments(purchase, now) -> list[Payment]:
    return [
        Payment(
            id=f"pay-{i}",
            purchase_id=purchase.id,
            client_id=purchase.client_id,
            amount=Decimal("100.00"),
            method="cash",
            registered_by="seller-carla",
            registered_at=now + timedelta(minutes=i),
        )
        for i in range(3)
    ]


@pytest.fixture
def store(quotation, purchase, payments) -> InMemoryLedgerStore:
    store = InMemoryLedgerStore(quotations=[quotation], purchases=[purchase])
    store.payments.extend(payments)
    return store


# ==============================================================================
# Get purchase
# ==============================================================================


def test_owner_reads_purchase(store, purchase, client_actor):
    assert GetPurchase(store.unit_of_work).execute(
        GetPurchaseRequest(purchase.id, client_actor)
    ) == purchase


def test_other_client_is_denied(store, purchase, other_client_actor):
    with pytest.raises(PermissionDeniedError):
        GetPurchase(store.unit_of_work).execute(GetPurchaseRequest(purchase.id, other_client_actor))


def test_missing_purchase(store, seller_actor):
    with pytest.raises(NotFoundError):
        GetPurchase(store.unit_of_work).execute(GetPurchaseRequest("missing", seller_actor))


def test_purchase_by_quotation(store, quotation, purchase, seller_actor):
    found = GetPurchaseByQuotation(store.unit_of_work).execute(
        GetPurchaseByQuotationRequest(quotation.id, seller_actor)
    )

    assert found == purchase


def test_quotation_without_purchase(make_quotation, seller_actor):
    quotation = make_quotation()
    store = InMemoryLedgerStore(quotations=[quotation])

    with pytest.raises(NotFoundError, match="Purchase not found"):
        GetPurchaseByQuotation(store.unit_of_work).execute(
            GetPurchaseByQuotationRequest(quotation.id, seller_actor)
        )


# ==============================================================================
# List purchases
# ==============================================================================


def test_client_lists_own_purchases(store, purchase, client_actor):
    listed = ListPurchases(store.unit_of_work).by_client(
        ListPurchasesByClientRequest(client_actor.id, client_actor)
    )

    assert listed == [purchase]


def test_client_cannot_list_other_clients(store, client_actor, other_client_actor):
    with pytest.raises(PermissionDeniedError):
        ListPurchases(store.unit_of_work).by_client(
            ListPurchasesByClientRequest(client_actor.id, other_client_actor)
        )


def test_status_shortcuts(store, purchase, make_purchase, seller_actor):
    pending = make_purchase(status=PurchaseStatus.PENDING)
    review = make_purchase()
    store.purchases.update({pending.id: pending, review.id: review})
    listing = ListPurchases(store.unit_of_work)

    assert listing.pending(seller_actor) == [pending]
    assert listing.under_review(seller_actor) == [review]
    assert listing.approved(seller_actor) == [purchase]
    assert listing.by_status(ListPurchasesByStatusRequest(PurchaseStatus.CANCELLED, seller_actor)) == []


def test_status_listing_is_back_office_only(store, client_actor):
    with pytest.raises(PermissionDeniedError):
        ListPurchases(store.unit_of_work).approved(client_actor)


def test_seller_listing(store, purchase, seller_actor, client_actor):
    listing = ListPurchases(store.unit_of_work)

    assert listing.by_seller(ListPurchasesBySellerRequest(seller_actor.id, seller_actor)) == [purchase]
    with pytest.raises(PermissionDeniedError):
        listing.by_seller(ListPurchasesBySellerRequest(seller_actor.id, client_actor))


# ==============================================================================
# Payment history
# ==============================================================================


def test_payments_by_purchase_oldest_first(store, purchase, payments, client_actor):
    listed = ListPayments(store.unit_of_work).by_purchase(
        ListPaymentsRequest(client_actor, purchase_id=purchase.id)
    )

    assert [p.id for p in listed] == ["pay-0", "pay-1", "pay-2"]


def test_payments_by_client_newest_first(store, client_actor):
    listed = ListPayments(store.unit_of_work).by_client(
        ListPaymentsRequest(client_actor, client_id=client_actor.id)
    )

    assert [p.id for p in listed] == ["pay-2", "pay-1", "pay-0"]


def test_payments_by_quotation(store, quotation, seller_actor):
    listed = ListPayments(store.unit_of_work).by_quotation(
        ListPaymentsRequest(seller_actor, quotation_id=quotation.id)
    )

    assert len(listed) == 3


def test_payments_by_quotation_without_purchase(make_quotation, client_actor):
    quotation = make_quotation()
    store = InMemoryLedgerStore(quotations=[quotation])

    assert ListPayments(store.unit_of_work).by_quotation(
        ListPaymentsRequest(client_actor, quotation_id=quotation.id)
    ) == []


def test_payment_history_is_private(store, purchase, other_client_actor, client_actor):
    payments = ListPayments(store.unit_of_work)

    with pytest.raises(PermissionDeniedError):
        payments.by_purchase(ListPaymentsRequest(other_client_actor, purchase_id=purchase.id))
    with pytest.raises(PermissionDeniedError):
        payments.by_client(ListPaymentsRequest(other_client_actor, client_id=client_actor.id))


def test_payments_of_missing_purchase(store, seller_actor):
    with pytest.raises(NotFoundError):
        ListPayments(store.unit_of_work).by_purchase(
            ListPaymentsRequest(seller_actor, purchase_id="missing")
        )


# ==============================================================================
# Reconciliation
# ==============================================================================


def test_reconcile_reports_drift(store, purchase, seller_actor, caplog):
    """Three logged payments of 100 but the purchase records none."""
    report = ReconcilePurchase(store.unit_of_work).execute(purchase.id, seller_actor)

    assert report.payments_sum == Decimal("300.00")
    assert report.payment_count == 3
    assert report.drift == Decimal("300.00")
    assert report.balanced is True
    assert report.ok is False
    assert "Ledger drift detected" in caplog.text


def test_reconcile_clean_ledger(make_purchase, seller_actor):
    purchase = make_purchase(
        balance=Decimal("1000.00"),
        total_paid=Decimal("0"),
    )
    store = InMemoryLedgerStore(purchases=[purchase])

    assert ReconcilePurchase(store.unit_of_work).execute(purchase.id, seller_actor).ok


def test_reconcile_is_back_office_only(store, purchase, client_actor):
    with pytest.raises(PermissionDeniedError):
        ReconcilePurchase(store.unit_of_work).execute(purchase.id, client_actor)
