# ruff: noqa: I001
"""Rewrite legacy date and subgroup representations in place.

- ``transactions.date`` / ``purchase_date``: ``DD/MM/YYYY`` -> ``YYYY-MM-DD``
- ``transactions.subgroup``: serialized lists / objects -> plain label
- ``categories.subgroups``: any stored shape -> canonical JSON array

Only rows whose value actually changes are updated, so re-running is a no-op.
This is a data-only revision; downgrade does nothing.

Revision ID: 0005_normalize_legacy_values
Revises: 0004_checklist
Create Date: 2025-12-01
"""

from __future__ import annotations  # ruff: noqa: I001

import json
import logging
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from ledger_db.values import ISO_DATE_RE, normalize_date, normalize_subgroup, parse_label_list


# revision identifiers, used by Alembic.
revision: str = "0005_normalize_legacy_values"
down_revision: str | None = "0004_checklist"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

logger = logging.getLogger("ledger_db.migrate")


def _normalize_transactions(bind: sa.Connection) -> None:
    rows = bind.execute(
        sa.text("SELECT id, date, purchase_date, subgroup FROM transactions")
    ).all()
    stmt = sa.text(
        "UPDATE transactions SET date = :date, purchase_date = :purchase_date, "
        "subgroup = :subgroup WHERE id = :id"
    )
    for row_id, settle, purchase, subgroup in rows:
        new_settle = normalize_date(settle)
        new_purchase = normalize_date(purchase) if purchase is not None else None
        new_subgroup = normalize_subgroup(subgroup)
        if not ISO_DATE_RE.match(str(new_settle)):
            logger.warning("transaction %s keeps unreadable date %r", row_id, settle)
        if (new_settle, new_purchase, new_subgroup) == (settle, purchase, subgroup):
            continue
        bind.execute(
            stmt,
            {
                "id": row_id,
                "date": new_settle,
                "purchase_date": new_purchase,
                "subgroup": new_subgroup,
            },
        )


def _normalize_category_subgroups(bind: sa.Connection) -> None:
    rows = bind.execute(sa.text("SELECT id, subgroups FROM categories")).all()
    stmt = sa.text("UPDATE categories SET subgroups = :subgroups WHERE id = :id")
    for cat_id, raw in rows:
        labels = parse_label_list(raw)
        canonical = json.dumps(labels, ensure_ascii=False) if labels else None
        if canonical != raw:
            bind.execute(stmt, {"id": cat_id, "subgroups": canonical})


def upgrade() -> None:
    bind = op.get_bind()
    _normalize_transactions(bind)
    _normalize_category_subgroups(bind)


def downgrade() -> None:
    pass
