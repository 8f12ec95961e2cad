from fastapi import APIRouter, Depends, Query, status

from dealer_finance.domain.actor import Actor
from dealer_finance.entrypoints.http.dependencies import (
    get_cancel_purchase_use_case,
    get_current_actor,
    get_evaluate_financing_use_case,
    get_finalize_purchase_use_case,
    get_list_purchases_use_case,
    get_purchase_by_quotation_use_case,
    get_purchase_use_case,
    get_reconcile_purchase_use_case,
    get_start_purchase_use_case,
)
from dealer_finance.entrypoints.http.dtos.purchases import (
    PurchaseCancelDTO,
    PurchaseFinalizeDTO,
    PurchaseListResponseDTO,
    PurchaseResponseDTO,
    PurchaseStartDTO,
    ReconciliationResponseDTO,
)
from dealer_finance.entrypoints.http.error_responses import ErrorResponse
from dealer_finance.entrypoints.http.mappers.purchase_mapper import PurchaseMapper
from dealer_finance.use_cases.cancel_purchase import CancelPurchase, CancelPurchaseRequest
from dealer_finance.use_cases.evaluate_financing import (
    EvaluateFinancing,
    EvaluateFinancingRequest,
)
from dealer_finance.use_cases.finalize_purchase import FinalizePurchase
from dealer_finance.use_cases.get_purchase import (
    GetPurchase,
    GetPurchaseByQuotation,
    GetPurchaseByQuotationRequest,
    GetPurchaseRequest,
)
from dealer_finance.use_cases.list_purchases import (
    ListPurchases,
    ListPurchasesByClientRequest,
    ListPurchasesBySellerRequest,
)
from dealer_finance.use_cases.reconcile_purchase import ReconcilePurchase
from dealer_finance.use_cases.start_purchase import StartPurchase


router = APIRouter(tags=["Purchases"])


@router.post(
    "/purchases",
    response_model=PurchaseResponseDTO,
    status_code=status.HTTP_201_CREATED,
    summary="Start a purchase",
    description="""
    Open a financed purchase for an approved quotation. Clients only, and only
    for their own quotation.

    ## Flow
    - The credit bureau is queried with the caller's email
    - The purchase is created directly in `under_review`
    - A confirmation email is sent after the purchase is stored

    ## Errors
    - 404: quotation missing or owned by another client
    - 409: quotation not approved, or a purchase already exists for it
    - 422: malformed financial profile
    """,
    responses={
        404: {"model": ErrorResponse, "description": "Quotation not found"},
        409: {"model": ErrorResponse, "description": "Quotation not approved or already purchased"},
        422: {"model": ErrorResponse, "description": "Validation error"},
    },
)
def start_purchase(
    payload: PurchaseStartDTO,
    actor: Actor = Depends(get_current_actor),
    use_case: StartPurchase = Depends(get_start_purchase_use_case),
) -> PurchaseResponseDTO:
    request = PurchaseMapper.to_start_request(payload, actor)
    return PurchaseMapper.to_response(use_case.execute(request))


@router.get(
    "/purchases",
    response_model=PurchaseListResponseDTO,
    summary="List purchases of a client",
    description="Newest first. Clients may only list their own purchases.",
)
def list_client_purchases(
    client_id: str | None = Query(default=None, description="Defaults to the caller"),
    actor: Actor = Depends(get_current_actor),
    use_case: ListPurchases = Depends(get_list_purchases_use_case),
) -> PurchaseListResponseDTO:
    request = ListPurchasesByClientRequest(client_id=client_id or actor.id, actor=actor)
    return PurchaseMapper.to_list_response(use_case.by_client(request))


@router.get(
    "/purchases/pending",
    response_model=PurchaseListResponseDTO,
    summary="List pending purchases",
)
def list_pending_purchases(
    actor: Actor = Depends(get_current_actor),
    use_case: ListPurchases = Depends(get_list_purchases_use_case),
) -> PurchaseListResponseDTO:
    return PurchaseMapper.to_list_response(use_case.pending(actor))


@router.get(
    "/purchases/under-review",
    response_model=PurchaseListResponseDTO,
    summary="List purchases waiting for a financing evaluation",
)
def list_purchases_under_review(
    actor: Actor = Depends(get_current_actor),
    use_case: ListPurchases = Depends(get_list_purchases_use_case),
) -> PurchaseListResponseDTO:
    return PurchaseMapper.to_list_response(use_case.under_review(actor))


@router.get(
    "/purchases/approved",
    response_model=PurchaseListResponseDTO,
    summary="List purchases with approved financing",
)
def list_approved_purchases(
    actor: Actor = Depends(get_current_actor),
    use_case: ListPurchases = Depends(get_list_purchases_use_case),
) -> PurchaseListResponseDTO:
    return PurchaseMapper.to_list_response(use_case.approved(actor))


@router.get(
    "/sellers/{seller_id}/purchases",
    response_model=PurchaseListResponseDTO,
    summary="List purchases assigned to a seller",
)
def list_seller_purchases(
    seller_id: str,
    actor: Actor = Depends(get_current_actor),
    use_case: ListPurchases = Depends(get_list_purchases_use_case),
) -> PurchaseListResponseDTO:
    request = ListPurchasesBySellerRequest(seller_id=seller_id, actor=actor)
    return PurchaseMapper.to_list_response(use_case.by_seller(request))


@router.get(
    "/purchases/{purchase_id}",
    response_model=PurchaseResponseDTO,
    summary="Get a purchase",
)
def get_purchase(
    purchase_id: str,
    actor: Actor = Depends(get_current_actor),
    use_case: GetPurchase = Depends(get_purchase_use_case),
) -> PurchaseResponseDTO:
    request = GetPurchaseRequest(purchase_id=purchase_id, actor=actor)
    return PurchaseMapper.to_response(use_case.execute(request))


@router.get(
    "/quotations/{quotation_id}/purchase",
    response_model=PurchaseResponseDTO,
    summary="Get the purchase opened from a quotation",
)
def get_purchase_by_quotation(
    quotation_id: str,
    actor: Actor = Depends(get_current_actor),
    use_case: GetPurchaseByQuotation = Depends(get_purchase_by_quotation_use_case),
) -> PurchaseResponseDTO:
    request = GetPurchaseByQuotationRequest(quotation_id=quotation_id, actor=actor)
    return PurchaseMapper.to_response(use_case.execute(request))


@router.post(
    "/purchases/{purchase_id}/financing-evaluation",
    response_model=PurchaseResponseDTO,
    summary="Evaluate financing",
    description="""
    Run the simulated bank on an `under_review` purchase. Sellers and admins only.

    ## Decision
    - Approve iff score > 600, payment capacity > 40% of the monthly share
      and debt ratio < 0.5
    - Approval initializes the ledger: total financed = monthly payment × term
    - A decline moves the purchase to `rejected` with reasons and suggestions
    """,
)
def evaluate_financing(
    purchase_id: str,
    actor: Actor = Depends(get_current_actor),
    use_case: EvaluateFinancing = Depends(get_evaluate_financing_use_case),
) -> PurchaseResponseDTO:
    request = EvaluateFinancingRequest(purchase_id=purchase_id, analyst=actor)
    return PurchaseMapper.to_response(use_case.execute(request))


@router.post(
    "/purchases/{purchase_id}/finalize",
    response_model=PurchaseResponseDTO,
    summary="Seller decision on an approved purchase",
    description="""
    Decision is one of `approved`, `rejected`, `pending` or `completed`.
    Completing requires the vehicle in stock and consumes one unit.
    """,
)
def finalize_purchase(
    purchase_id: str,
    payload: PurchaseFinalizeDTO,
    actor: Actor = Depends(get_current_actor),
    use_case: FinalizePurchase = Depends(get_finalize_purchase_use_case),
) -> PurchaseResponseDTO:
    request = PurchaseMapper.to_finalize_request(purchase_id, payload, actor)
    return PurchaseMapper.to_response(use_case.execute(request))


@router.post(
    "/purchases/{purchase_id}/cancel",
    response_model=PurchaseResponseDTO,
    summary="Cancel a purchase (admin)",
)
def cancel_purchase(
    purchase_id: str,
    payload: PurchaseCancelDTO,
    actor: Actor = Depends(get_current_actor),
    use_case: CancelPurchase = Depends(get_cancel_purchase_use_case),
) -> PurchaseResponseDTO:
    request = CancelPurchaseRequest(purchase_id=purchase_id, admin=actor, reason=payload.reason)
    return PurchaseMapper.to_response(use_case.execute(request))


@router.get(
    "/purchases/{purchase_id}/reconciliation",
    response_model=ReconciliationResponseDTO,
    summary="Compare the purchase balance with its payment log",
)
def reconcile_purchase(
    purchase_id: str,
    actor: Actor = Depends(get_current_actor),
    use_case: ReconcilePurchase = Depends(get_reconcile_purchase_use_case),
) -> ReconciliationResponseDTO:
    return PurchaseMapper.to_reconciliation_response(use_case.execute(purchase_id, actor))
