from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PaymentCreateDTO(BaseModel):
    """Request payload for registering a payment against a purchase."""

    amount: str = Field(
        description="Amount as decimal string; rounded half-up to cents",
        examples=["10000.00"],
        pattern=r"^\d+(\.\d+)?$",
    )
    method: str = Field(default="cash", max_length=30, examples=["cash", "transfer"])
    notes: str | None = Field(default=None, max_length=2000)

    model_config = ConfigDict(
        json_schema_extra={"example": {"amount": "10000.00", "method": "transfer"}}
    )


class PaymentResponseDTO(BaseModel):
    id: str
    purchase_id: str
    client_id: str
    amount: str
    method: str
    notes: str | None
    registered_by: str
    registered_at: datetime
    status: str


class PaymentListResponseDTO(BaseModel):
    payments: list[PaymentResponseDTO]
    total: int
