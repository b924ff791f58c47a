# ruff: noqa: I001
"""Ledger core tables: accounts, categories, transactions.

Data files created by earlier releases already hold these tables (named
``Accounts``/``Categories``/``Transactions``; SQLite identifiers are
case-insensitive), so each table is created only when missing.

Revision ID: 0001_ledger_core
Revises: None
Create Date: 2025-11-03
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_ledger_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_CREATED_AT = sa.text("(strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))")


def _existing_tables() -> set[str]:
    return {name.lower() for name in sa.inspect(op.get_bind()).get_table_names()}


def upgrade() -> None:
    existing = _existing_tables()

    if "accounts" not in existing:
        op.create_table(
            "accounts",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("name", sa.Text(), nullable=False, unique=True),
            sa.Column(
                "initial_balance", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")
            ),
            sa.Column(
                "is_credit_card", sa.Boolean(), nullable=False, server_default=sa.text("0")
            ),
            sa.Column("created_at", sa.Text(), nullable=False, server_default=_CREATED_AT),
        )

    if "categories" not in existing:
        op.create_table(
            "categories",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("name", sa.Text(), nullable=False),
            sa.Column("type", sa.Text(), nullable=False),
            # JSON array of subgroup labels
            sa.Column("subgroups", sa.Text(), nullable=True),
            sa.Column("is_fixed", sa.Boolean(), nullable=False, server_default=sa.text("0")),
            sa.Column("created_at", sa.Text(), nullable=False, server_default=_CREATED_AT),
            sa.UniqueConstraint("name", "type", name="uq_categories_name_type"),
            sa.CheckConstraint("type IN ('expense', 'revenue')", name="ck_categories_type"),
        )

    if "transactions" not in existing:
        op.create_table(
            "transactions",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("account_id", sa.Integer(), nullable=True),
            sa.Column("category_id", sa.Integer(), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("type", sa.Text(), nullable=False),
            sa.Column("amount", sa.Numeric(18, 2), nullable=False),
            sa.Column("date", sa.Date(), nullable=False),
            sa.Column("is_fixed", sa.Boolean(), nullable=False, server_default=sa.text("0")),
            sa.Column(
                "is_installment", sa.Boolean(), nullable=False, server_default=sa.text("0")
            ),
            sa.Column("installment_number", sa.Integer(), nullable=True),
            sa.Column("installment_total", sa.Integer(), nullable=True),
            sa.Column("installment_group_id", sa.Text(), nullable=True),
            sa.Column("subgroup", sa.Text(), nullable=True),
            sa.Column("created_at", sa.Text(), nullable=False, server_default=_CREATED_AT),
            sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], name="fk_tx_account"),
            sa.ForeignKeyConstraint(["category_id"], ["categories.id"], name="fk_tx_category"),
            sa.CheckConstraint("type IN ('expense', 'revenue')", name="ck_transactions_type"),
            sa.CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        )


def downgrade() -> None:
    op.drop_table("transactions")
    op.drop_table("categories")
    op.drop_table("accounts")
