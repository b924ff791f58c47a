"""Recurring-obligation checklist: configuration and monthly reconciliation.

A checklist entry is an expected ``(category, subgroup)`` pair, e.g.
``(Health, "Gym")``. For a given month, an entry is ``paid`` when at least one
ledger row of that category carries a matching subgroup and has either its
settlement date or its purchase date inside the month; otherwise ``pending``.

Matching compares normalized subgroups case-insensitively, so legacy values
such as ``'["gym"]'`` still match the entry ``Gym``. When several rows match,
the most recent one (by reported date, then id) is reported and
``match_count`` says how many matched. Reconciliation never writes.
"""

from __future__ import annotations

import calendar
from datetime import date
from decimal import Decimal

from ledger_db.client import Database
from ledger_db.models.ledger import Category, ChecklistEntry, LedgerTransaction
from sqlalchemy import and_, delete, func, or_, select

from .errors import LedgerValidationError, NotFoundError
from .logging_setup import get_logger
from .models import ChecklistStatus, ChecklistToggle
from .normalizers import normalize_subgroup

logger = get_logger("household_ledger.checklist")


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of ``year``-``month``."""

    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def _match_key(label: str | None) -> str | None:
    n = normalize_subgroup(label)
    return n.casefold() if n is not None else None


class ChecklistReconciler:
    def __init__(self, db: Database) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def add(self, category_id: int, subgroup_name: str) -> bool:
        """Add an entry; returns ``False`` when the pair already exists."""

        label = normalize_subgroup(subgroup_name)
        if label is None:
            raise LedgerValidationError("subgroupName", "subgroup name is required")
        with self.db.session_scope() as session:
            category = session.get(Category, category_id)
            if category is None:
                raise NotFoundError(f"category {category_id} not found")
            if category.type != "expense":
                raise LedgerValidationError(
                    "categoryId", "checklist entries need an expense category"
                )
            existing = session.execute(
                select(ChecklistEntry.id).where(
                    ChecklistEntry.category_id == category_id,
                    func.lower(ChecklistEntry.subgroup_name) == label.lower(),
                )
            ).first()
            if existing is not None:
                return False
            session.add(ChecklistEntry(category_id=category_id, subgroup_name=label))
        logger.info("checklist entry added category=%s subgroup=%r", category_id, label)
        return True

    def remove(self, category_id: int, subgroup_name: str) -> bool:
        """Remove an entry; returns ``False`` when it was not configured."""

        label = normalize_subgroup(subgroup_name)
        if label is None:
            return False
        with self.db.session_scope() as session:
            result = session.execute(
                delete(ChecklistEntry).where(
                    ChecklistEntry.category_id == category_id,
                    func.lower(ChecklistEntry.subgroup_name) == label.lower(),
                )
            )
            removed = result.rowcount > 0
        if removed:
            logger.info("checklist entry removed category=%s subgroup=%r", category_id, label)
        return removed

    def toggle(self, req: ChecklistToggle) -> bool:
        if req.active:
            return self.add(req.category_id, req.subgroup_name)
        return self.remove(req.category_id, req.subgroup_name)

    def list_entries(self) -> list[dict[str, object]]:
        stmt = (
            select(ChecklistEntry.category_id, ChecklistEntry.subgroup_name, Category.name)
            .join(Category, Category.id == ChecklistEntry.category_id)
            .order_by(Category.name, ChecklistEntry.subgroup_name)
        )
        with self.db.session_scope() as session:
            rows = session.execute(stmt).all()
        return [
            {"category_id": cid, "subgroup_name": sub, "category_name": cname}
            for cid, sub, cname in rows
        ]

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def status(self, year: int, month: int) -> list[ChecklistStatus]:
        start, end = month_bounds(year, month)
        with self.db.session_scope() as session:
            entries = session.execute(
                select(ChecklistEntry.category_id, ChecklistEntry.subgroup_name, Category.name)
                .join(Category, Category.id == ChecklistEntry.category_id)
                .order_by(Category.name, ChecklistEntry.subgroup_name)
            ).all()
            if not entries:
                return []
            category_ids = {cid for cid, _, _ in entries}
            candidates = session.execute(
                select(
                    LedgerTransaction.id,
                    LedgerTransaction.category_id,
                    LedgerTransaction.subgroup,
                    LedgerTransaction.amount,
                    LedgerTransaction.settlement_date,
                    LedgerTransaction.purchase_date,
                ).where(
                    LedgerTransaction.category_id.in_(category_ids),
                    or_(
                        LedgerTransaction.settlement_date.between(start, end),
                        and_(
                            LedgerTransaction.purchase_date.is_not(None),
                            LedgerTransaction.purchase_date.between(start, end),
                        ),
                    ),
                )
            ).all()

        by_key: dict[tuple[int, str], list[tuple[date, int, Decimal]]] = {}
        for row_id, cid, subgroup, amount, settled, purchased in candidates:
            key = _match_key(subgroup)
            when = purchased or settled
            if key is None or when is None:
                continue
            by_key.setdefault((cid, key), []).append((when, row_id, amount))

        out: list[ChecklistStatus] = []
        for cid, label, cname in entries:
            matches = by_key.get((cid, _match_key(label) or ""), [])
            if matches:
                when, _, amount = max(matches, key=lambda m: (m[0], m[1]))
                out.append(
                    {
                        "category_id": cid,
                        "subgroup_name": label,
                        "category_name": cname,
                        "status": "paid",
                        "amount": amount,
                        "date": when,
                        "match_count": len(matches),
                    }
                )
            else:
                out.append(
                    {
                        "category_id": cid,
                        "subgroup_name": label,
                        "category_name": cname,
                        "status": "pending",
                        "amount": Decimal("0"),
                        "date": None,
                        "match_count": 0,
                    }
                )
        return out


__all__ = ["ChecklistReconciler", "month_bounds"]
