from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from dealer_finance.infra.db.models.base import Base


class QuotationRow(Base):
    __tablename__ = "quotations"

    id: Mapped[str] = mapped_column(Uuid(as_uuid=False), primary_key=True)
    client_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    vehicle_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("vehicles.id"), nullable=False
    )
    seller_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    base_price: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2), nullable=False)
    down_payment: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2), nullable=False)
    term_months: Mapped[int] = mapped_column(Integer, nullable=False)
    annual_rate: Mapped[Decimal] = mapped_column(Numeric(precision=6, scale=4), nullable=False)
    monthly_payment: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2), nullable=False
    )
    total_payable: Mapped[Decimal] = mapped_column(Numeric(precision=14, scale=2), nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False)
    seller_notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
