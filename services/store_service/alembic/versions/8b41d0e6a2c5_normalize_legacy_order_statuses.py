"""normalize_legacy_order_statuses

Revision ID: 8b41d0e6a2c5
Revises: 3f2a9c1d7e40
Create Date: 2026-10-14 11:05:00.000000
"""

from alembic import op

# revision identifiers, used by Alembic.
revision = "8b41d0e6a2c5"
down_revision = "3f2a9c1d7e40"
branch_labels = None
depends_on = None


# Lower-case statuses imported from the previous order schema
STATUS_VALUE_MAP = [
    ("pending", "CREATED"),
    ("confirmed", "ADMIN_CONFIRMED"),
    ("processing", "ADMIN_CONFIRMED"),
    ("shipped", "SHIPPED"),
    ("delivered", "DELIVERED"),
    ("cancelled", "CANCELLED"),
]


def upgrade() -> None:
    for legacy, canonical in STATUS_VALUE_MAP:
        op.execute(
            f"UPDATE store_orders SET status = '{canonical}' WHERE status = '{legacy}'"
        )
        op.execute(
            f"UPDATE store_order_status_events SET to_status = '{canonical}' "
            f"WHERE to_status = '{legacy}'"
        )
        op.execute(
            f"UPDATE store_order_status_events SET from_status = '{canonical}' "
            f"WHERE from_status = '{legacy}'"
        )


def downgrade() -> None:
    # confirmed and processing both became ADMIN_CONFIRMED; there is no way back
    pass
