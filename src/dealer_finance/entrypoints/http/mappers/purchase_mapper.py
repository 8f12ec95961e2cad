from __future__ import annotations

from dealer_finance.domain.actor import Actor
from dealer_finance.domain.credit import (
    BankEvaluationResult,
    CreditBureauResult,
    FinancialProfile,
)
from dealer_finance.domain.errors import ValidationError
from dealer_finance.domain.purchase import Purchase, PurchaseStatus
from dealer_finance.entrypoints.http.dtos.purchases import (
    BankResultDTO,
    BureauResultDTO,
    FinancialProfileDTO,
    PaymentHistoryDTO,
    PurchaseFinalizeDTO,
    PurchaseListResponseDTO,
    PurchaseResponseDTO,
    PurchaseStartDTO,
    ReconciliationResponseDTO,
)
from dealer_finance.entrypoints.http.mappers.decimal_fields import parse_decimal
from dealer_finance.use_cases.finalize_purchase import FinalizePurchaseRequest
from dealer_finance.use_cases.reconcile_purchase import ReconciliationReport
from dealer_finance.use_cases.start_purchase import StartPurchaseRequest


class PurchaseMapper:
    """Maps between REST DTOs and domain models for purchases."""

    @staticmethod
    def to_start_request(dto: PurchaseStartDTO, actor: Actor) -> StartPurchaseRequest:
        """
        Converts the start payload, handling string -> Decimal at the boundary.

        Raises:
            ValidationError: If any profile figure is not a valid decimal
        """
        errors: list[dict[str, str]] = []
        raw = dto.financial_profile
        profile = FinancialProfile(
            monthly_income=parse_decimal(
                "financial_profile.monthly_income", raw.monthly_income, errors
            ),
            other_income=parse_decimal("financial_profile.other_income", raw.other_income, errors),
            monthly_expenses=parse_decimal(
                "financial_profile.monthly_expenses", raw.monthly_expenses, errors
            ),
            current_debts=parse_decimal(
                "financial_profile.current_debts", raw.current_debts, errors
            ),
        )
        if errors:
            raise ValidationError(errors=errors)

        return StartPurchaseRequest(
            quotation_id=dto.quotation_id,
            financial_profile=profile,
            client=actor,
        )

    @staticmethod
    def to_finalize_request(
        purchase_id: str, dto: PurchaseFinalizeDTO, actor: Actor
    ) -> FinalizePurchaseRequest:
        return FinalizePurchaseRequest(
            purchase_id=purchase_id,
            decision=PurchaseStatus(dto.decision),
            seller=actor,
            comments=dto.comments,
        )

    @staticmethod
    def to_response(purchase: Purchase) -> PurchaseResponseDTO:
        profile = purchase.financial_profile
        return PurchaseResponseDTO(
            id=purchase.id,
            quotation_id=purchase.quotation_id,
            client_id=purchase.client_id,
            seller_id=purchase.seller_id,
            analyst_id=purchase.analyst_id,
            status=purchase.status.value,
            financial_profile=FinancialProfileDTO(
                monthly_income=str(profile.monthly_income),
                other_income=str(profile.other_income),
                monthly_expenses=str(profile.monthly_expenses),
                current_debts=str(profile.current_debts),
            ),
            payment_capacity=str(purchase.payment_capacity),
            bureau_result=_bureau(purchase.bureau_result),
            bank_result=_bank(purchase.bank_result),
            analyst_comments=purchase.analyst_comments,
            approved_at=purchase.approved_at,
            delivered_at=purchase.delivered_at,
            total_financed=_str(purchase.total_financed),
            outstanding_balance=_str(purchase.outstanding_balance),
            total_paid=str(purchase.total_paid),
            version=purchase.version,
            created_at=purchase.created_at,
        )

    @staticmethod
    def to_list_response(purchases: list[Purchase]) -> PurchaseListResponseDTO:
        return PurchaseListResponseDTO(
            purchases=[PurchaseMapper.to_response(p) for p in purchases],
            total=len(purchases),
        )

    @staticmethod
    def to_reconciliation_response(report: ReconciliationReport) -> ReconciliationResponseDTO:
        return ReconciliationResponseDTO(
            purchase_id=report.purchase_id,
            total_financed=_str(report.total_financed),
            total_paid=str(report.total_paid),
            outstanding_balance=_str(report.outstanding_balance),
            payments_sum=str(report.payments_sum),
            payment_count=report.payment_count,
            drift=str(report.drift),
            balanced=report.balanced,
            ok=report.ok,
        )


def _str(value) -> str | None:
    return None if value is None else str(value)


def _bureau(result: CreditBureauResult) -> BureauResultDTO:
    details = result.details
    return BureauResultDTO(
        score=result.score,
        risk_level=result.risk_level.value,
        payment_history=PaymentHistoryDTO(
            on_time_percentage=details.payment_history.on_time_percentage,
            delinquency=details.payment_history.delinquency,
            worst_delay=details.payment_history.worst_delay,
        ),
        open_accounts=details.open_accounts,
        total_debt=str(details.total_debt),
        recent_inquiries=details.recent_inquiries,
        credit_age_years=details.credit_age_years,
        queried_at=result.queried_at,
    )


def _bank(result: BankEvaluationResult | None) -> BankResultDTO | None:
    if result is None:
        return None
    return BankResultDTO(
        approved=result.approved,
        payment_capacity=str(result.payment_capacity),
        debt_ratio=str(result.debt_ratio),
        evaluated_at=result.evaluated_at,
        approved_amount=_str(result.approved_amount),
        interest_rate=_str(result.interest_rate),
        approved_term_months=result.approved_term_months,
        monthly_payment=_str(result.monthly_payment),
        conditions=list(result.conditions),
        rejection_reasons=list(result.rejection_reasons),
        suggestions=list(result.suggestions),
    )
