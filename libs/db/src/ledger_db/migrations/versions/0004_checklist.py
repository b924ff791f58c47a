# ruff: noqa: I001
"""Checklist of expected recurring (category, subgroup) items.

Revision ID: 0004_checklist
Revises: 0003_tx_purchase_date
Create Date: 2025-11-18
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0004_checklist"
down_revision: str | None = "0003_tx_purchase_date"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    existing = {name.lower() for name in sa.inspect(op.get_bind()).get_table_names()}
    if "checklist" in existing:
        return
    op.create_table(
        "checklist",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("subgroup_name", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], name="fk_checklist_category"),
        sa.UniqueConstraint(
            "category_id", "subgroup_name", name="uq_checklist_category_subgroup"
        ),
    )


def downgrade() -> None:
    op.drop_table("checklist")
