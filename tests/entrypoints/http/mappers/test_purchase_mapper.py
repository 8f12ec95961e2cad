"""
PurchaseMapper translates the start/finalize payloads into use case requests
and purchases or reconciliation reports into response DTOs.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

import pytest

from dealer_finance.domain.credit import BankEvaluationResult
from dealer_finance.domain.errors import ValidationError
from dealer_finance.domain.purchase import PurchaseStatus
from dealer_finance.entrypoints.http.dtos.purchases import (
    FinancialProfileDTO,
    PurchaseFinalizeDTO,
    PurchaseStartDTO,
)
from dealer_finance.entrypoints.http.mappers.purchase_mapper import PurchaseMapper
from dealer_finance.use_cases.reconcile_purchase import ReconciliationReport


# ==============================================================================
# Requests
# ==============================================================================


def test_to_start_request(client_actor) -> None:
    dto = PurchaseStartDTO(
        quotation_id="q-1",
        financial_profile=FinancialProfileDTO(
            monthly_income="20000.00",
            monthly_expenses="5000.00",
            current_debts="2000",
        ),
    )

    request = PurchaseMapper.to_start_request(dto, client_actor)

    assert request.quotation_id == "q-1"
    assert request.client is client_actor
    profile = request.financial_profile
    assert profile.monthly_income == Decimal("20000.00")
    assert profile.other_income == Decimal("0")
    assert profile.monthly_expenses == Decimal("5000.00")
    assert profile.current_debts == Decimal("2000")


def test_to_start_request_reports_every_bad_figure(client_actor) -> None:
    profile = FinancialProfileDTO.model_construct(
        monthly_income="x", other_income="0", monthly_expenses="y", current_debts="0"
    )
    dto = PurchaseStartDTO.model_construct(quotation_id="q-1", financial_profile=profile)

    with pytest.raises(ValidationError) as exc_info:
        PurchaseMapper.to_start_request(dto, client_actor)

    assert [e["field"] for e in exc_info.value.errors] == [
        "financial_profile.monthly_income",
        "financial_profile.monthly_expenses",
    ]


@pytest.mark.parametrize("decision", ["approved", "rejected", "pending", "completed"])
def test_to_finalize_request(seller_actor, decision: str) -> None:
    request = PurchaseMapper.to_finalize_request(
        "p-1", PurchaseFinalizeDTO(decision=decision, comments="ok"), seller_actor
    )

    assert request.purchase_id == "p-1"
    assert request.decision is PurchaseStatus(decision)
    assert request.comments == "ok"
    assert request.seller is seller_actor


# ==============================================================================
# Responses
# ==============================================================================


def test_to_response_before_financing(make_purchase) -> None:
    dto = PurchaseMapper.to_response(make_purchase(id="p-1"))

    assert dto.status == "under_review"
    assert dto.total_financed is None
    assert dto.bank_result is None
    assert dto.outstanding_balance is None
    assert dto.bureau_result.score == 750
    assert dto.bureau_result.total_debt == "12000"
    assert dto.financial_profile.monthly_income == "20000"
    assert dto.version == 1


def test_to_response_with_bank_result(make_purchase, now) -> None:
    bank = BankEvaluationResult(
        approved=True,
        payment_capacity=Decimal("13000"),
        debt_ratio=Decimal("0.35"),
        evaluated_at=now,
        approved_amount=Decimal("240000.00"),
        interest_rate=Decimal("0.130"),
        approved_term_months=48,
        monthly_payment=Decimal("6438.72"),
        conditions=("Proof of income required",),
    )
    purchase = replace(make_purchase(balance=Decimal("309058.56")), bank_result=bank)

    dto = PurchaseMapper.to_response(purchase)

    assert dto.bank_result.approved is True
    assert dto.bank_result.interest_rate == "0.130"
    assert dto.bank_result.monthly_payment == "6438.72"
    assert dto.bank_result.conditions == ["Proof of income required"]
    assert dto.bank_result.rejection_reasons == []
    assert dto.total_financed == "309058.56"
    assert dto.outstanding_balance == "309058.56"


def test_to_list_response(make_purchase) -> None:
    dto = PurchaseMapper.to_list_response([make_purchase(), make_purchase()])

    assert dto.total == 2
    assert len(dto.purchases) == 2


def test_to_reconciliation_response_without_ledger() -> None:
    report = ReconciliationReport(
        purchase_id="p-1",
        total_financed=None,
        total_paid=Decimal("0.00"),
        outstanding_balance=None,
        payments_sum=Decimal("0.00"),
        payment_count=0,
    )

    dto = PurchaseMapper.to_reconciliation_response(report)

    assert dto.total_financed is None
    assert dto.outstanding_balance is None
    assert dto.drift == "0.00"
    assert dto.balanced is True
    assert dto.ok is True
