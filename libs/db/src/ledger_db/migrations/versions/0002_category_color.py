# ruff: noqa: I001
"""Add a display color to categories.

Revision ID: 0002_category_color
Revises: 0001_ledger_core
Create Date: 2025-11-03
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0002_category_color"
down_revision: str | None = "0001_ledger_core"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    columns = {c["name"] for c in sa.inspect(op.get_bind()).get_columns("categories")}
    if "color" in columns:
        return
    op.add_column(
        "categories",
        sa.Column("color", sa.Text(), nullable=True, server_default=sa.text("'#ef4444'")),
    )


def downgrade() -> None:
    with op.batch_alter_table("categories") as batch:
        batch.drop_column("color")
