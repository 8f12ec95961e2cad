from __future__ import annotations

from dealer_finance.domain.actor import Actor
from dealer_finance.domain.errors import ValidationError
from dealer_finance.domain.payment import Payment
from dealer_finance.entrypoints.http.dtos.payments import (
    PaymentCreateDTO,
    PaymentListResponseDTO,
    PaymentResponseDTO,
)
from dealer_finance.entrypoints.http.mappers.decimal_fields import parse_decimal
from dealer_finance.use_cases.register_payment import RegisterPaymentRequest


class PaymentMapper:
    """Maps between REST DTOs and domain models for payments."""

    @staticmethod
    def to_register_request(
        purchase_id: str, dto: PaymentCreateDTO, actor: Actor
    ) -> RegisterPaymentRequest:
        """
        Raises:
            ValidationError: If amount is not a valid decimal
        """
        errors: list[dict[str, str]] = []
        amount = parse_decimal("amount", dto.amount, errors)
        if errors:
            raise ValidationError(errors=errors)

        return RegisterPaymentRequest(
            purchase_id=purchase_id,
            amount=amount,
            actor=actor,
            method=dto.method,
            notes=dto.notes,
        )

    @staticmethod
    def to_response(payment: Payment) -> PaymentResponseDTO:
        return PaymentResponseDTO(
            id=payment.id,
            purchase_id=payment.purchase_id,
            client_id=payment.client_id,
            amount=str(payment.amount),
            method=payment.method,
            notes=payment.notes,
            registered_by=payment.registered_by,
            registered_at=payment.registered_at,
            status=payment.status.value,
        )

    @staticmethod
    def to_list_response(payments: list[Payment]) -> PaymentListResponseDTO:
        return PaymentListResponseDTO(
            payments=[PaymentMapper.to_response(p) for p in payments],
            total=len(payments),
        )
