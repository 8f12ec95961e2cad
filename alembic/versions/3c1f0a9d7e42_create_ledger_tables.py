"""Create ledger tables

Revision ID: 3c1f0a9d7e42
Revises:
Create Date: 2026-10-17 10:02:11.418220

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "3c1f0a9d7e42"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "vehicles",
        sa.Column("id", sa.Uuid(as_uuid=False), primary_key=True),
        sa.Column("make", sa.String(50), nullable=False),
        sa.Column("model", sa.String(50), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("times_sold", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("stock >= 0", name="ck_vehicles_stock_non_negative"),
    )

    op.create_table(
        "quotations",
        sa.Column("id", sa.Uuid(as_uuid=False), primary_key=True),
        sa.Column("client_id", sa.String(64), nullable=False),
        sa.Column("vehicle_id", sa.Uuid(as_uuid=False), sa.ForeignKey("vehicles.id"), nullable=False),
        sa.Column("seller_id", sa.String(64), nullable=True),
        sa.Column("base_price", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("down_payment", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("term_months", sa.Integer(), nullable=False),
        sa.Column("annual_rate", sa.Numeric(precision=6, scale=4), nullable=False),
        sa.Column("monthly_payment", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("total_payable", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("seller_notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_quotations_client_id", "quotations", ["client_id"])

    op.create_table(
        "purchases",
        sa.Column("id", sa.Uuid(as_uuid=False), primary_key=True),
        sa.Column(
            "quotation_id",
            sa.Uuid(as_uuid=False),
            sa.ForeignKey("quotations.id"),
            nullable=False,
            unique=True,
        ),
        sa.Column("client_id", sa.String(64), nullable=False),
        sa.Column("client_email", sa.String(255), nullable=False, server_default=""),
        sa.Column("seller_id", sa.String(64), nullable=True),
        sa.Column("analyst_id", sa.String(64), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("financial_profile", sa.JSON(), nullable=False),
        sa.Column("bureau_result", sa.JSON(), nullable=False),
        sa.Column("bank_result", sa.JSON(), nullable=True),
        sa.Column("analyst_comments", sa.Text(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total_financed", sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column("outstanding_balance", sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column("total_paid", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("outstanding_balance >= 0", name="ck_purchases_balance_non_negative"),
    )
    op.create_index("ix_purchases_client_id", "purchases", ["client_id"])
    op.create_index("ix_purchases_seller_id", "purchases", ["seller_id"])
    op.create_index("ix_purchases_status", "purchases", ["status"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Uuid(as_uuid=False), primary_key=True),
        sa.Column("purchase_id", sa.Uuid(as_uuid=False), sa.ForeignKey("purchases.id"), nullable=False),
        sa.Column("client_id", sa.String(64), nullable=False),
        sa.Column("amount", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("method", sa.String(30), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("registered_by", sa.String(64), nullable=False),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
    )
    op.create_index("ix_payments_purchase_id", "payments", ["purchase_id"])
    op.create_index("ix_payments_client_id", "payments", ["client_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("payments")
    op.drop_table("purchases")
    op.drop_table("quotations")
    op.drop_table("vehicles")
