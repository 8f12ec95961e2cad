from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

_MONEY = r"^\d+(\.\d{1,2})?$"


class FinancialProfileDTO(BaseModel):
    """Self-declared monthly figures of the applicant."""

    monthly_income: str = Field(examples=["20000.00"], pattern=_MONEY)
    other_income: str = Field(default="0", examples=["0"], pattern=_MONEY)
    monthly_expenses: str = Field(examples=["5000.00"], pattern=_MONEY)
    current_debts: str = Field(default="0", examples=["2000.00"], pattern=_MONEY)


class PurchaseStartDTO(BaseModel):
    quotation_id: str
    financial_profile: FinancialProfileDTO

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "quotation_id": "3f0c4f6e-2a55-4c43-9d1f-7b0e1c3e9a10",
                "financial_profile": {
                    "monthly_income": "20000.00",
                    "other_income": "0",
                    "monthly_expenses": "5000.00",
                    "current_debts": "2000.00",
                },
            }
        }
    )


class PurchaseFinalizeDTO(BaseModel):
    decision: Literal["approved", "rejected", "pending", "completed"]
    comments: str | None = Field(default=None, max_length=2000)


class PurchaseCancelDTO(BaseModel):
    reason: str | None = Field(default=None, max_length=2000)


class PaymentHistoryDTO(BaseModel):
    on_time_percentage: int
    delinquency: str
    worst_delay: str


class BureauResultDTO(BaseModel):
    score: int
    risk_level: str
    payment_history: PaymentHistoryDTO
    open_accounts: int
    total_debt: str
    recent_inquiries: int
    credit_age_years: int
    queried_at: datetime


class BankResultDTO(BaseModel):
    approved: bool
    payment_capacity: str
    debt_ratio: str
    evaluated_at: datetime
    approved_amount: str | None = None
    interest_rate: str | None = None
    approved_term_months: int | None = None
    monthly_payment: str | None = None
    conditions: list[str] = Field(default_factory=list)
    rejection_reasons: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class PurchaseResponseDTO(BaseModel):
    id: str
    quotation_id: str
    client_id: str
    seller_id: str | None
    analyst_id: str | None
    status: str
    financial_profile: FinancialProfileDTO
    payment_capacity: str
    bureau_result: BureauResultDTO
    bank_result: BankResultDTO | None
    analyst_comments: str | None
    approved_at: datetime | None
    delivered_at: datetime | None
    total_financed: str | None
    outstanding_balance: str | None
    total_paid: str
    version: int
    created_at: datetime


class PurchaseListResponseDTO(BaseModel):
    purchases: list[PurchaseResponseDTO]
    total: int


class ReconciliationResponseDTO(BaseModel):
    purchase_id: str
    total_financed: str | None
    total_paid: str
    outstanding_balance: str | None
    payments_sum: str
    payment_count: int
    drift: str
    balanced: bool
    ok: bool
