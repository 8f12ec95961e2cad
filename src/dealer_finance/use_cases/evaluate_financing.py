from __future__ import annotations

import logging
from dataclasses import dataclass

from dealer_finance.domain.actor import Actor
from dealer_finance.domain.clock import Clock, utc_now
from dealer_finance.domain.credit import BankEvaluationResult
from dealer_finance.domain.errors import NotFoundError, PermissionDeniedError
from dealer_finance.domain.events import EventType
from dealer_finance.domain.financing import FinancingEvaluator
from dealer_finance.domain.purchase import Purchase
from dealer_finance.ports.event_publisher import EventPublisher
from dealer_finance.ports.unit_of_work import UnitOfWorkFactory
from dealer_finance.use_cases.event_dispatch import publish_events, purchase_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EvaluateFinancingRequest:
    purchase_id: str
    analyst: Actor


class EvaluateFinancing:
    """
    Run the simulated bank on an UnderReview purchase.

    The requested amount and term come from the linked quotation. Approval
    initializes the ledger; a decline moves the purchase to Rejected.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        publisher: EventPublisher,
        evaluator: FinancingEvaluator | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._publisher = publisher
        self._evaluator = evaluator or FinancingEvaluator()
        self._clock = clock

    def execute(self, request: EvaluateFinancingRequest) -> Purchase:
        """
        Raises:
            PermissionDeniedError: Caller is not a seller or admin
            NotFoundError: Purchase or its quotation does not exist
            StateConflictError: Purchase is not UnderReview
        """
        analyst = request.analyst
        if not analyst.is_privileged:
            raise PermissionDeniedError(
                "Only sellers or admins can evaluate financing", actor_id=analyst.id
            )

        with self._uow_factory() as uow:
            purchase = uow.purchases.get(request.purchase_id, for_update=True)
            if purchase is None:
                raise NotFoundError(resource="Purchase", identifier=request.purchase_id)

            quotation = uow.quotations.get(purchase.quotation_id)
            if quotation is None:
                raise NotFoundError(resource="Quotation", identifier=purchase.quotation_id)

            now = self._clock()
            result = self._evaluator.evaluate(
                profile=purchase.financial_profile,
                bureau=purchase.bureau_result,
                requested_amount=quotation.financed_amount,
                term_months=quotation.term_months,
                evaluated_at=now,
            )
            updated = purchase.record_financing(result, analyst.id, now)
            stored = uow.purchases.save(updated, expected_version=purchase.version)
            uow.commit()

        logger.info(
            "Financing evaluated",
            extra={
                "purchase_id": stored.id,
                "approved": result.approved,
                "status": stored.status.value,
                "total_financed": str(stored.total_financed),
            },
        )

        publish_events(
            self._publisher,
            [purchase_event(EventType.FINANCING_DECIDED, stored, **financing_payload(result))],
        )
        return stored


def financing_payload(result: BankEvaluationResult) -> dict:
    """JSON-friendly view of a bank result for event payloads."""
    return {
        "approved": result.approved,
        "approved_amount": _str_or_none(result.approved_amount),
        "interest_rate": _str_or_none(result.interest_rate),
        "approved_term_months": result.approved_term_months,
        "monthly_payment": _str_or_none(result.monthly_payment),
        "conditions": list(result.conditions),
        "rejection_reasons": list(result.rejection_reasons),
        "suggestions": list(result.suggestions),
    }


def _str_or_none(value) -> str | None:
    return None if value is None else str(value)
