from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from dealer_finance.infra.db.models.base import Base


class PurchaseRow(Base):
    """
    Purchase with its embedded snapshots.

    Profile, bureau and bank results are stored as JSON documents; money inside
    them is serialized as decimal strings. ``version`` backs optimistic
    concurrency on every update.
    """

    __tablename__ = "purchases"

    id: Mapped[str] = mapped_column(Uuid(as_uuid=False), primary_key=True)
    quotation_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("quotations.id"), nullable=False, unique=True
    )
    client_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    client_email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    seller_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    analyst_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    financial_profile: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    bureau_result: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    bank_result: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    analyst_comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    total_financed: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=14, scale=2), nullable=True
    )
    outstanding_balance: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=14, scale=2), nullable=True
    )
    total_paid: Mapped[Decimal] = mapped_column(Numeric(precision=14, scale=2), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
