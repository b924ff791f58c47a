# ruff: noqa: I001
"""Add purchase date to transactions and backfill it from the settlement date.

Rows that never distinguished the two dates get ``purchase_date = date`` so
purchase-axis reports and checklist matching see every row.

Revision ID: 0003_tx_purchase_date
Revises: 0002_category_color
Create Date: 2025-11-10
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0003_tx_purchase_date"
down_revision: str | None = "0002_category_color"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    inspector = sa.inspect(op.get_bind())
    columns = {c["name"] for c in inspector.get_columns("transactions")}
    if "purchase_date" not in columns:
        op.add_column("transactions", sa.Column("purchase_date", sa.Date(), nullable=True))

    op.execute("UPDATE transactions SET purchase_date = date WHERE purchase_date IS NULL")

    # Lookup indexes for both reporting axes
    indexes = {ix["name"] for ix in inspector.get_indexes("transactions")}
    if "ix_transactions_date" not in indexes:
        op.create_index("ix_transactions_date", "transactions", ["date"], unique=False)
    if "ix_transactions_purchase_date" not in indexes:
        op.create_index(
            "ix_transactions_purchase_date", "transactions", ["purchase_date"], unique=False
        )
    if "ix_transactions_group" not in indexes:
        op.create_index(
            "ix_transactions_group", "transactions", ["installment_group_id"], unique=False
        )


def downgrade() -> None:
    op.drop_index("ix_transactions_group", table_name="transactions")
    op.drop_index("ix_transactions_purchase_date", table_name="transactions")
    op.drop_index("ix_transactions_date", table_name="transactions")
    with op.batch_alter_table("transactions") as batch:
        batch.drop_column("purchase_date")
