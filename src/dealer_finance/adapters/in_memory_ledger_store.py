from __future__ import annotations

import threading
from dataclasses import replace

from dealer_finance.domain.errors import ConcurrentModificationError, ConflictError
from dealer_finance.domain.payment import Payment
from dealer_finance.domain.purchase import Purchase, PurchaseStatus
from dealer_finance.domain.quotation import Quotation
from dealer_finance.domain.vehicle import Vehicle
from dealer_finance.ports.inventory import Inventory
from dealer_finance.ports.payment_repository import PaymentRepository
from dealer_finance.ports.purchase_repository import PurchaseRepository
from dealer_finance.ports.quotation_repository import QuotationRepository
from dealer_finance.ports.unit_of_work import UnitOfWork


class InMemoryLedgerStore:
    """
    Canonical contract implementation for tests and local runs.

    - Committed state lives here, guarded by one lock
    - Units of work stage their writes and apply them at commit
    - Purchase updates are compare-and-swap on ``version`` at commit time
    """

    def __init__(
        self,
        quotations: list[Quotation] | None = None,
        purchases: list[Purchase] | None = None,
        vehicles: list[Vehicle] | None = None,
    ) -> None:
        self.lock = threading.Lock()
        self.quotations: dict[str, Quotation] = {q.id: q for q in quotations or []}
        self.purchases: dict[str, Purchase] = {p.id: p for p in purchases or []}
        self.payments: list[Payment] = []
        self.vehicles: dict[str, Vehicle] = {v.id: v for v in vehicles or []}
        self.stock_movements: list[str] = []

    def unit_of_work(self) -> InMemoryUnitOfWork:
        return InMemoryUnitOfWork(self)


class InMemoryUnitOfWork(UnitOfWork):
    def __init__(self, store: InMemoryLedgerStore) -> None:
        self._store = store
        self._staged_quotations: dict[str, Quotation] = {}
        self._inserted_purchases: dict[str, Purchase] = {}
        self._updated_purchases: dict[str, tuple[Purchase, int]] = {}
        self._staged_payments: list[Payment] = []
        self._staged_sales: list[str] = []

        self.quotations = _QuotationRepository(store, self)
        self.purchases = _PurchaseRepository(store, self)
        self.payments = _PaymentRepository(store, self)
        self.inventory = _Inventory(store, self)

    def commit(self) -> None:
        store = self._store
        with store.lock:
            for purchase_id, (_, expected) in self._updated_purchases.items():
                current = store.purchases.get(purchase_id)
                if current is None or current.version != expected:
                    raise ConcurrentModificationError(
                        "Purchase was modified by another transaction",
                        purchase_id=purchase_id,
                        expected_version=expected,
                    )
            for purchase in self._inserted_purchases.values():
                if any(p.quotation_id == purchase.quotation_id for p in store.purchases.values()):
                    raise ConflictError(
                        "A purchase already exists for this quotation",
                        quotation_id=purchase.quotation_id,
                    )

            store.quotations.update(self._staged_quotations)
            store.purchases.update(self._inserted_purchases)
            for purchase_id, (purchase, _) in self._updated_purchases.items():
                store.purchases[purchase_id] = purchase
            store.payments.extend(self._staged_payments)
            for vehicle_id in self._staged_sales:
                vehicle = store.vehicles.get(vehicle_id)
                if vehicle is not None:
                    store.vehicles[vehicle_id] = replace(
                        vehicle,
                        stock=max(0, vehicle.stock - 1),
                        times_sold=vehicle.times_sold + 1,
                    )
                store.stock_movements.append(vehicle_id)

        self.rollback()

    def rollback(self) -> None:
        self._staged_quotations.clear()
        self._inserted_purchases.clear()
        self._updated_purchases.clear()
        self._staged_payments.clear()
        self._staged_sales.clear()


class _QuotationRepository(QuotationRepository):
    def __init__(self, store: InMemoryLedgerStore, uow: InMemoryUnitOfWork) -> None:
        self._store = store
        self._uow = uow

    def get(self, quotation_id: str) -> Quotation | None:
        staged = self._uow._staged_quotations.get(quotation_id)
        if staged is not None:
            return staged
        with self._store.lock:
            return self._store.quotations.get(quotation_id)

    def add(self, quotation: Quotation) -> None:
        self._uow._staged_quotations[quotation.id] = quotation

    def save(self, quotation: Quotation) -> None:
        self._uow._staged_quotations[quotation.id] = quotation


class _PurchaseRepository(PurchaseRepository):
    def __init__(self, store: InMemoryLedgerStore, uow: InMemoryUnitOfWork) -> None:
        self._store = store
        self._uow = uow

    def get(self, purchase_id: str, for_update: bool = False) -> Purchase | None:
        # Optimistic store: for_update is enforced by the version check at commit
        if purchase_id in self._uow._inserted_purchases:
            return self._uow._inserted_purchases[purchase_id]
        if purchase_id in self._uow._updated_purchases:
            return self._uow._updated_purchases[purchase_id][0]
        with self._store.lock:
            return self._store.purchases.get(purchase_id)

    def get_by_quotation(self, quotation_id: str) -> Purchase | None:
        for purchase in self._visible():
            if purchase.quotation_id == quotation_id:
                return purchase
        return None

    def add(self, purchase: Purchase) -> None:
        if self.get_by_quotation(purchase.quotation_id) is not None:
            raise ConflictError(
                "A purchase already exists for this quotation",
                quotation_id=purchase.quotation_id,
            )
        self._uow._inserted_purchases[purchase.id] = purchase

    def save(self, purchase: Purchase, expected_version: int) -> Purchase:
        if purchase.id in self._uow._inserted_purchases:
            self._uow._inserted_purchases[purchase.id] = purchase
            return purchase

        with self._store.lock:
            current = self._store.purchases.get(purchase.id)
        if current is None or current.version != expected_version:
            raise ConcurrentModificationError(
                "Purchase was modified by another transaction",
                purchase_id=purchase.id,
                expected_version=expected_version,
            )
        stored = replace(purchase, version=expected_version + 1)
        self._uow._updated_purchases[purchase.id] = (stored, expected_version)
        return stored

    def list_by_client(self, client_id: str) -> list[Purchase]:
        return _newest_first(p for p in self._visible() if p.client_id == client_id)

    def list_by_seller(self, seller_id: str) -> list[Purchase]:
        return _newest_first(p for p in self._visible() if p.seller_id == seller_id)

    def list_by_status(self, status: PurchaseStatus) -> list[Purchase]:
        return _newest_first(p for p in self._visible() if p.status is status)

    def _visible(self) -> list[Purchase]:
        with self._store.lock:
            merged = dict(self._store.purchases)
        merged.update(self._uow._inserted_purchases)
        merged.update({pid: p for pid, (p, _) in self._uow._updated_purchases.items()})
        return list(merged.values())


class _PaymentRepository(PaymentRepository):
    def __init__(self, store: InMemoryLedgerStore, uow: InMemoryUnitOfWork) -> None:
        self._store = store
        self._uow = uow

    def add(self, payment: Payment) -> None:
        self._uow._staged_payments.append(payment)

    def list_by_purchase(self, purchase_id: str) -> list[Payment]:
        matches = [p for p in self._visible() if p.purchase_id == purchase_id]
        return sorted(matches, key=lambda p: p.registered_at)

    def list_by_client(self, client_id: str) -> list[Payment]:
        matches = [p for p in self._visible() if p.client_id == client_id]
        return sorted(matches, key=lambda p: p.registered_at)[::-1]

    def _visible(self) -> list[Payment]:
        with self._store.lock:
            committed = list(self._store.payments)
        return committed + self._uow._staged_payments


class _Inventory(Inventory):
    def __init__(self, store: InMemoryLedgerStore, uow: InMemoryUnitOfWork) -> None:
        self._store = store
        self._uow = uow

    def get(self, vehicle_id: str) -> Vehicle | None:
        with self._store.lock:
            vehicle = self._store.vehicles.get(vehicle_id)
        if vehicle is None:
            return None
        pending = self._uow._staged_sales.count(vehicle_id)
        return replace(
            vehicle,
            stock=max(0, vehicle.stock - pending),
            times_sold=vehicle.times_sold + pending,
        )

    def record_sale(self, vehicle_id: str) -> int:
        vehicle = self.get(vehicle_id)
        self._uow._staged_sales.append(vehicle_id)
        if vehicle is None:
            return 0
        return max(0, vehicle.stock - 1)


def _newest_first(purchases) -> list[Purchase]:
    return sorted(purchases, key=lambda p: p.created_at)[::-1]
