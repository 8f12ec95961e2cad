from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from dealer_finance.domain.actor import Actor, Role
from dealer_finance.domain.clock import Clock, utc_now
from dealer_finance.domain.errors import (
    ConcurrentModificationError,
    DuplicatePaymentError,
    NotFoundError,
    PermissionDeniedError,
)
from dealer_finance.domain.events import LifecycleEvent
from dealer_finance.domain.identifiers import IdFactory, new_id
from dealer_finance.domain.money import round_money
from dealer_finance.domain.payment import (
    DEFAULT_PAYMENT_METHOD,
    DuplicatePaymentPolicy,
    Payment,
)
from dealer_finance.domain.purchase import Purchase, apply_payment
from dealer_finance.ports.event_publisher import EventPublisher
from dealer_finance.ports.unit_of_work import UnitOfWork, UnitOfWorkFactory
from dealer_finance.use_cases.advance_from_payment import AdvanceFromPayment
from dealer_finance.use_cases.event_dispatch import publish_events

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RegisterPaymentRequest:
    purchase_id: str
    amount: Decimal
    actor: Actor
    method: str = DEFAULT_PAYMENT_METHOD
    notes: str | None = None


class RegisterPayment:
    """
    Payment ledger entry point.

    Each attempt is one unit of work: lock and read the purchase, apply the
    payment, append the Payment row, settle the purchase on a zero balance and
    commit. A version conflict retries the whole attempt against fresh state;
    after ``max_retries`` attempts the conflict is raised to the caller.

    Events are published only after the commit succeeded.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        publisher: EventPublisher,
        max_retries: int = 3,
        duplicate_policy: DuplicatePaymentPolicy = DuplicatePaymentPolicy.ALLOW,
        duplicate_window_seconds: int = 60,
        clock: Clock = utc_now,
        id_factory: IdFactory = new_id,
    ) -> None:
        self._uow_factory = uow_factory
        self._publisher = publisher
        self._max_retries = max(1, max_retries)
        self._duplicate_policy = duplicate_policy
        self._duplicate_window = timedelta(seconds=duplicate_window_seconds)
        self._clock = clock
        self._id_factory = id_factory
        self._advance = AdvanceFromPayment(clock)

    def execute(self, request: RegisterPaymentRequest) -> Payment:
        """
        Raises:
            PermissionDeniedError: Caller is a client, or a seller not assigned to the purchase
            NotFoundError: Purchase does not exist
            InvalidStateError: Purchase completed or its ledger has nothing outstanding
            InvalidAmountError: Amount not positive or above the outstanding balance
            DuplicatePaymentError: Identical payment inside the duplicate window (reject policy)
            ConcurrentModificationError: Retries exhausted
        """
        actor = request.actor
        if not actor.is_privileged:
            raise PermissionDeniedError(
                "Only sellers or admins can register payments", actor_id=actor.id
            )

        attempt = 1
        while True:
            try:
                payment, purchase, events = self._attempt(request)
                break
            except ConcurrentModificationError:
                if attempt >= self._max_retries:
                    logger.warning(
                        "Payment retries exhausted",
                        extra={"purchase_id": request.purchase_id, "attempts": attempt},
                    )
                    raise
                logger.info(
                    "Payment hit a concurrent update, retrying",
                    extra={"purchase_id": request.purchase_id, "attempt": attempt},
                )
                attempt += 1

        logger.info(
            "Payment registered",
            extra={
                "payment_id": payment.id,
                "purchase_id": purchase.id,
                "amount": str(payment.amount),
                "outstanding_balance": str(purchase.outstanding_balance),
                "status": purchase.status.value,
            },
        )
        publish_events(self._publisher, events)
        return payment

    def _attempt(
        self, request: RegisterPaymentRequest
    ) -> tuple[Payment, Purchase, list[LifecycleEvent]]:
        actor = request.actor
        with self._uow_factory() as uow:
            purchase = uow.purchases.get(request.purchase_id, for_update=True)
            if purchase is None:
                raise NotFoundError(resource="Purchase", identifier=request.purchase_id)

            if actor.role is Role.SELLER and purchase.seller_id != actor.id:
                raise PermissionDeniedError(
                    "Sellers can only register payments for their own purchases",
                    actor_id=actor.id,
                    purchase_id=purchase.id,
                )

            updated, payment_event = apply_payment(purchase, request.amount)
            amount = round_money(request.amount)
            now = self._clock()

            if self._duplicate_policy is DuplicatePaymentPolicy.REJECT:
                self._reject_duplicate(uow, purchase.id, amount, request.method, actor.id, now)

            payment = Payment(
                id=self._id_factory(),
                purchase_id=purchase.id,
                client_id=purchase.client_id,
                amount=amount,
                method=request.method,
                registered_by=actor.id,
                registered_at=now,
                notes=request.notes,
            )

            updated, completion_events = self._advance.execute(uow, updated)
            stored = uow.purchases.save(updated, expected_version=purchase.version)
            uow.payments.add(payment)
            uow.commit()

        return payment, stored, [payment_event, *completion_events]

    def _reject_duplicate(
        self,
        uow: UnitOfWork,
        purchase_id: str,
        amount: Decimal,
        method: str,
        actor_id: str,
        now: datetime,
    ) -> None:
        cutoff = now - self._duplicate_window
        for previous in uow.payments.list_by_purchase(purchase_id):
            if previous.registered_at >= cutoff and previous.matches(amount, method, actor_id):
                raise DuplicatePaymentError(
                    "An identical payment was registered moments ago",
                    purchase_id=purchase_id,
                    payment_id=previous.id,
                )
