from __future__ import annotations

from dataclasses import dataclass

from dealer_finance.domain.actor import Actor, Role
from dealer_finance.domain.amortization import ScheduleRow, amortization_schedule
from dealer_finance.domain.errors import NotFoundError
from dealer_finance.domain.quotation import Quotation
from dealer_finance.ports.unit_of_work import UnitOfWorkFactory


@dataclass(frozen=True, slots=True)
class GetQuotationScheduleResponse:
    quotation: Quotation
    rows: list[ScheduleRow]


class GetQuotationSchedule:
    """Month-by-month amortization table of a quotation's financed amount."""

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, quotation_id: str, actor: Actor) -> GetQuotationScheduleResponse:
        with self._uow_factory() as uow:
            quotation = uow.quotations.get(quotation_id)

        if quotation is None or (actor.role is Role.CLIENT and quotation.client_id != actor.id):
            raise NotFoundError(resource="Quotation", identifier=quotation_id)

        rows = amortization_schedule(
            quotation.financed_amount, quotation.annual_rate, quotation.term_months
        )
        return GetQuotationScheduleResponse(quotation=quotation, rows=rows)
