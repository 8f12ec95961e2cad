from fastapi import APIRouter, Depends, status

from dealer_finance.domain.actor import Actor
from dealer_finance.entrypoints.http.dependencies import (
    get_current_actor,
    get_list_payments_use_case,
    get_register_payment_use_case,
)
from dealer_finance.entrypoints.http.dtos.payments import (
    PaymentCreateDTO,
    PaymentListResponseDTO,
    PaymentResponseDTO,
)
from dealer_finance.entrypoints.http.error_responses import ErrorResponse
from dealer_finance.entrypoints.http.mappers.payment_mapper import PaymentMapper
from dealer_finance.use_cases.list_payments import ListPayments, ListPaymentsRequest
from dealer_finance.use_cases.register_payment import RegisterPayment


router = APIRouter(tags=["Payments"])


@router.post(
    "/purchases/{purchase_id}/payments",
    response_model=PaymentResponseDTO,
    status_code=status.HTTP_201_CREATED,
    summary="Register a payment",
    description="""
    Apply a payment to the outstanding balance of a purchase.

    ## Rules
    - Sellers (only on their own purchases) and admins
    - Amount is rounded half-up to cents and must be > 0 and <= the outstanding balance
    - A payment that brings the balance to 0 completes the purchase and
      consumes one unit of vehicle stock

    ## Errors
    - 403: caller not allowed
    - 404: purchase not found
    - 409: purchase completed, ledger not initialized, or concurrent update
    - 422: invalid amount
    """,
    responses={
        403: {"model": ErrorResponse, "description": "Caller not allowed"},
        404: {"model": ErrorResponse, "description": "Purchase not found"},
        409: {"model": ErrorResponse, "description": "Invalid state or concurrent update"},
        422: {"model": ErrorResponse, "description": "Invalid amount"},
    },
)
def register_payment(
    purchase_id: str,
    payload: PaymentCreateDTO,
    actor: Actor = Depends(get_current_actor),
    use_case: RegisterPayment = Depends(get_register_payment_use_case),
) -> PaymentResponseDTO:
    request = PaymentMapper.to_register_request(purchase_id, payload, actor)
    return PaymentMapper.to_response(use_case.execute(request))


@router.get(
    "/purchases/{purchase_id}/payments",
    response_model=PaymentListResponseDTO,
    summary="Payments of a purchase (oldest first)",
)
def list_purchase_payments(
    purchase_id: str,
    actor: Actor = Depends(get_current_actor),
    use_case: ListPayments = Depends(get_list_payments_use_case),
) -> PaymentListResponseDTO:
    request = ListPaymentsRequest(actor=actor, purchase_id=purchase_id)
    return PaymentMapper.to_list_response(use_case.by_purchase(request))


@router.get(
    "/clients/{client_id}/payments",
    response_model=PaymentListResponseDTO,
    summary="Payments of a client (newest first)",
)
def list_client_payments(
    client_id: str,
    actor: Actor = Depends(get_current_actor),
    use_case: ListPayments = Depends(get_list_payments_use_case),
) -> PaymentListResponseDTO:
    request = ListPaymentsRequest(actor=actor, client_id=client_id)
    return PaymentMapper.to_list_response(use_case.by_client(request))


@router.get(
    "/quotations/{quotation_id}/payments",
    response_model=PaymentListResponseDTO,
    summary="Payments of the purchase opened from a quotation",
)
def list_quotation_payments(
    quotation_id: str,
    actor: Actor = Depends(get_current_actor),
    use_case: ListPayments = Depends(get_list_payments_use_case),
) -> PaymentListResponseDTO:
    request = ListPaymentsRequest(actor=actor, quotation_id=quotation_id)
    return PaymentMapper.to_list_response(use_case.by_quotation(request))
