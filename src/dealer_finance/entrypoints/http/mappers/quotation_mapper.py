from __future__ import annotations

from dealer_finance.domain.actor import Actor
from dealer_finance.domain.errors import ValidationError
from dealer_finance.domain.quotation import Quotation, QuotationStatus
from dealer_finance.entrypoints.http.dtos.quotations import (
    QuotationCreateDTO,
    QuotationDecisionDTO,
    QuotationResponseDTO,
    QuotationScheduleResponseDTO,
    ScheduleRowDTO,
)
from dealer_finance.entrypoints.http.mappers.decimal_fields import parse_decimal
from dealer_finance.use_cases.create_quotation import CreateQuotationRequest
from dealer_finance.use_cases.decide_quotation import DecideQuotationRequest
from dealer_finance.use_cases.get_quotation_schedule import GetQuotationScheduleResponse


class QuotationMapper:
    """Maps between REST DTOs and domain models for quotations."""

    @staticmethod
    def to_create_request(dto: QuotationCreateDTO, actor: Actor) -> CreateQuotationRequest:
        """
        Raises:
            ValidationError: If down_payment is not a valid decimal
        """
        errors: list[dict[str, str]] = []
        down_payment = parse_decimal("down_payment", dto.down_payment, errors)
        if errors:
            raise ValidationError(errors=errors)

        return CreateQuotationRequest(
            client_id=dto.client_id or actor.id,
            vehicle_id=dto.vehicle_id,
            down_payment=down_payment,
            term_months=dto.term_months,
            requested_by=actor,
        )

    @staticmethod
    def to_decision_request(
        quotation_id: str, dto: QuotationDecisionDTO, actor: Actor
    ) -> DecideQuotationRequest:
        return DecideQuotationRequest(
            quotation_id=quotation_id,
            decision=QuotationStatus(dto.decision),
            seller=actor,
            notes=dto.notes,
        )

    @staticmethod
    def to_response(quotation: Quotation) -> QuotationResponseDTO:
        return QuotationResponseDTO(
            id=quotation.id,
            client_id=quotation.client_id,
            vehicle_id=quotation.vehicle_id,
            seller_id=quotation.seller_id,
            base_price=str(quotation.base_price),
            down_payment=str(quotation.down_payment),
            term_months=quotation.term_months,
            annual_rate=str(quotation.annual_rate),
            monthly_payment=str(quotation.monthly_payment),
            total_payable=str(quotation.total_payable),
            status=quotation.status.value,
            seller_notes=quotation.seller_notes,
            created_at=quotation.created_at,
        )

    @staticmethod
    def to_schedule_response(result: GetQuotationScheduleResponse) -> QuotationScheduleResponseDTO:
        return QuotationScheduleResponseDTO(
            quotation=QuotationMapper.to_response(result.quotation),
            rows=[
                ScheduleRowDTO(
                    month=row.month,
                    payment=str(row.payment),
                    interest=str(row.interest),
                    principal=str(row.principal),
                    balance=str(row.balance),
                )
                for row in result.rows
            ],
        )
