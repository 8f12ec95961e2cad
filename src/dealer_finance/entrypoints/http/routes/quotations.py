from fastapi import APIRouter, Depends, status

from dealer_finance.domain.actor import Actor
from dealer_finance.entrypoints.http.dependencies import (
    get_assign_quotation_seller_use_case,
    get_create_quotation_use_case,
    get_current_actor,
    get_decide_quotation_use_case,
    get_quotation_schedule_use_case,
)
from dealer_finance.entrypoints.http.dtos.quotations import (
    QuotationAssignDTO,
    QuotationCreateDTO,
    QuotationDecisionDTO,
    QuotationResponseDTO,
    QuotationScheduleResponseDTO,
)
from dealer_finance.entrypoints.http.mappers.quotation_mapper import QuotationMapper
from dealer_finance.use_cases.create_quotation import CreateQuotation
from dealer_finance.use_cases.decide_quotation import (
    AssignQuotationSeller,
    AssignQuotationSellerRequest,
    DecideQuotation,
)
from dealer_finance.use_cases.get_quotation_schedule import GetQuotationSchedule


router = APIRouter(prefix="/quotations", tags=["Quotations"])


@router.post(
    "",
    response_model=QuotationResponseDTO,
    status_code=status.HTTP_201_CREATED,
    summary="Create a quotation",
    description="""
    Price a vehicle for a client.

    ## Monetary Values
    - All monetary values are strings (e.g., "60000.00")
    - Must be valid decimal format with up to 2 decimal places

    ## Loan Terms
    - Allowed terms: 12, 24, 36, 48, 60 or 72 months
    - Annual interest rate from configuration (default 15%)

    ## Calculation
    - Monthly payment from the standard amortization formula, rounded half-up to cents
    - Total payable = monthly_payment × term_months + down_payment

    ## Example
    ```
    POST /v1/quotations
    {
        "vehicle_id": "550e8400-e29b-41d4-a716-446655440000",
        "down_payment": "60000.00",
        "term_months": 48
    }
    ```
    """,
    responses={
        404: {"description": "Vehicle not found"},
        422: {"description": "Invalid down payment or term"},
    },
)
def create_quotation(
    payload: QuotationCreateDTO,
    actor: Actor = Depends(get_current_actor),
    use_case: CreateQuotation = Depends(get_create_quotation_use_case),
) -> QuotationResponseDTO:
    """Create quotation endpoint following parse → execute → map → return pattern."""
    request = QuotationMapper.to_create_request(payload, actor)
    quotation = use_case.execute(request)
    return QuotationMapper.to_response(quotation)


@router.get(
    "/{quotation_id}/schedule",
    response_model=QuotationScheduleResponseDTO,
    summary="Amortization schedule of a quotation",
    description="""
    Month-by-month table of payment, interest, principal and remaining balance.
    Interest is rounded to cents each month; the last row closes the balance at 0.
    """,
)
def get_quotation_schedule(
    quotation_id: str,
    actor: Actor = Depends(get_current_actor),
    use_case: GetQuotationSchedule = Depends(get_quotation_schedule_use_case),
) -> QuotationScheduleResponseDTO:
    result = use_case.execute(quotation_id, actor)
    return QuotationMapper.to_schedule_response(result)


@router.post(
    "/{quotation_id}/seller",
    response_model=QuotationResponseDTO,
    summary="Assign a seller",
    description="Moves a Pending quotation to UnderReview. Sellers and admins only.",
)
def assign_seller(
    quotation_id: str,
    payload: QuotationAssignDTO,
    actor: Actor = Depends(get_current_actor),
    use_case: AssignQuotationSeller = Depends(get_assign_quotation_seller_use_case),
) -> QuotationResponseDTO:
    request = AssignQuotationSellerRequest(
        quotation_id=quotation_id,
        seller_id=payload.seller_id or actor.id,
        actor=actor,
    )
    return QuotationMapper.to_response(use_case.execute(request))


@router.post(
    "/{quotation_id}/decision",
    response_model=QuotationResponseDTO,
    summary="Approve or reject a quotation",
    description="""
    Seller decision on a Pending or UnderReview quotation.

    An approved quotation is what a client needs to start a purchase.
    Completed quotations are immutable (409).
    """,
)
def decide_quotation(
    quotation_id: str,
    payload: QuotationDecisionDTO,
    actor: Actor = Depends(get_current_actor),
    use_case: DecideQuotation = Depends(get_decide_quotation_use_case),
) -> QuotationResponseDTO:
    request = QuotationMapper.to_decision_request(quotation_id, payload, actor)
    return QuotationMapper.to_response(use_case.execute(request))
