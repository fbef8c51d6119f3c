"""create_store_order_tables

Revision ID: 3f2a9c1d7e40
Revises:
Create Date: 2026-10-12 09:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f2a9c1d7e40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


payment_method_enum = sa.Enum("COD", "ONLINE", name="store_payment_method_enum")
payment_status_enum = sa.Enum(
    "UNPAID", "PAID", "FAILED", name="store_payment_status_enum"
)
payment_attempt_status_enum = sa.Enum(
    "CREATED", "PAID", "FAILED", "ABANDONED", name="store_payment_attempt_status_enum"
)


def upgrade() -> None:
    """Upgrade schema - Add order, order item, status event and payment attempt tables."""

    op.create_table(
        "store_orders",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("order_number", sa.String(length=20), nullable=False),
        sa.Column("member_auth_id", sa.String(length=255), nullable=False),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_phone", sa.String(length=50), nullable=True),
        sa.Column("subtotal_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "delivery_charge_amount", sa.Numeric(12, 2), server_default="0", nullable=True
        ),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("payment_method", payment_method_enum, nullable=False),
        sa.Column(
            "payment_status", payment_status_enum, server_default="UNPAID", nullable=True
        ),
        sa.Column("provider_payment_id", sa.String(length=100), nullable=True),
        sa.Column("status", sa.String(length=32), server_default="CREATED", nullable=False),
        sa.Column("shipping_address", sa.JSON(), nullable=False),
        sa.Column("delivery_latitude", sa.Float(), nullable=False),
        sa.Column("delivery_longitude", sa.Float(), nullable=False),
        sa.Column("distance_km", sa.Float(), nullable=False),
        sa.Column("distance_source", sa.String(length=16), nullable=False),
        sa.Column(
            "hidden_by_customer", sa.Boolean(), server_default="false", nullable=True
        ),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_store_orders_order_number", "store_orders", ["order_number"], unique=True
    )
    op.create_index(
        "ix_store_orders_member_auth_id", "store_orders", ["member_auth_id"]
    )
    op.create_index(
        "ix_store_orders_provider_payment_id", "store_orders", ["provider_payment_id"]
    )
    op.create_index(
        "ix_store_orders_member_hidden",
        "store_orders",
        ["member_auth_id", "hidden_by_customer"],
    )

    op.create_table(
        "store_order_items",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("order_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.String(length=64), nullable=False),
        sa.Column("variant_id", sa.String(length=64), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("tax_rate_percent", sa.Numeric(5, 2), server_default="0", nullable=True),
        sa.Column("tax_inclusive", sa.Boolean(), server_default="true", nullable=True),
        sa.Column("tax_amount", sa.Numeric(12, 2), server_default="0", nullable=True),
        sa.Column("subtotal_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["order_id"], ["store_orders.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "store_order_status_events",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("order_id", sa.Uuid(), nullable=False),
        sa.Column("from_status", sa.String(length=32), nullable=True),
        sa.Column("to_status", sa.String(length=32), nullable=False),
        sa.Column("actor", sa.String(length=16), nullable=False),
        sa.Column("performed_by", sa.String(length=255), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["order_id"], ["store_orders.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_store_order_status_events_order_id",
        "store_order_status_events",
        ["order_id"],
    )

    op.create_table(
        "store_payment_attempts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("order_id", sa.Uuid(), nullable=False),
        sa.Column("attempt_number", sa.Integer(), nullable=False),
        sa.Column("receipt", sa.String(length=40), nullable=False),
        sa.Column("provider", sa.String(length=32), nullable=True),
        sa.Column("provider_order_id", sa.String(length=64), nullable=False),
        sa.Column("provider_payment_id", sa.String(length=64), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column(
            "status",
            payment_attempt_status_enum,
            server_default="CREATED",
            nullable=True,
        ),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["order_id"], ["store_orders.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("receipt"),
    )
    op.create_index(
        "ix_store_payment_attempts_order_id", "store_payment_attempts", ["order_id"]
    )
    op.create_index(
        "ix_store_payment_attempts_provider_order_id",
        "store_payment_attempts",
        ["provider_order_id"],
        unique=True,
    )


def downgrade() -> None:
    """Downgrade schema - Drop store order tables."""
    op.drop_index(
        "ix_store_payment_attempts_provider_order_id", table_name="store_payment_attempts"
    )
    op.drop_index("ix_store_payment_attempts_order_id", table_name="store_payment_attempts")
    op.drop_table("store_payment_attempts")
    op.drop_index(
        "ix_store_order_status_events_order_id", table_name="store_order_status_events"
    )
    op.drop_table("store_order_status_events")
    op.drop_table("store_order_items")
    op.drop_index("ix_store_orders_member_hidden", table_name="store_orders")
    op.drop_index("ix_store_orders_provider_payment_id", table_name="store_orders")
    op.drop_index("ix_store_orders_member_auth_id", table_name="store_orders")
    op.drop_index("ix_store_orders_order_number", table_name="store_orders")
    op.drop_table("store_orders")

    bind = op.get_bind()
    payment_attempt_status_enum.drop(bind, checkfirst=True)
    payment_status_enum.drop(bind, checkfirst=True)
    payment_method_enum.drop(bind, checkfirst=True)
