from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class QuotationCreateDTO(BaseModel):
    """Request payload for pricing a vehicle."""

    vehicle_id: str = Field(
        description="Vehicle to quote",
        examples=["550e8400-e29b-41d4-a716-446655440000"],
    )
    down_payment: str = Field(
        description="Down payment amount as decimal string",
        examples=["60000.00"],
        pattern=r"^\d+(\.\d{1,2})?$",
    )
    term_months: int = Field(
        description="Loan term in months. Must be one of: 12, 24, 36, 48, 60, 72",
        examples=[48],
        ge=1,
    )
    client_id: str | None = Field(
        default=None,
        description="Client the quotation is for. Sellers and admins only; defaults to the caller",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "vehicle_id": "550e8400-e29b-41d4-a716-446655440000",
                "down_payment": "60000.00",
                "term_months": 48,
            }
        }
    )


class QuotationAssignDTO(BaseModel):
    seller_id: str | None = Field(
        default=None,
        description="Seller taking the quotation; defaults to the caller",
    )


class QuotationDecisionDTO(BaseModel):
    decision: Literal["approved", "rejected"]
    notes: str | None = Field(default=None, max_length=2000)


class QuotationResponseDTO(BaseModel):
    id: str
    client_id: str
    vehicle_id: str
    seller_id: str | None
    base_price: str
    down_payment: str
    term_months: int
    annual_rate: str
    monthly_payment: str
    total_payable: str
    status: str
    seller_notes: str
    created_at: datetime

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "3f0c4f6e-2a55-4c43-9d1f-7b0e1c3e9a10",
                "client_id": "client-1",
                "vehicle_id": "550e8400-e29b-41d4-a716-446655440000",
                "seller_id": None,
                "base_price": "300000.00",
                "down_payment": "60000.00",
                "term_months": 48,
                "annual_rate": "0.15",
                "monthly_payment": "6679.38",
                "total_payable": "380610.24",
                "status": "pending",
                "seller_notes": "",
                "created_at": "2026-10-17T10:00:00Z",
            }
        }
    )


class ScheduleRowDTO(BaseModel):
    month: int
    payment: str
    interest: str
    principal: str
    balance: str


class QuotationScheduleResponseDTO(BaseModel):
    quotation: QuotationResponseDTO
    rows: list[ScheduleRowDTO]
