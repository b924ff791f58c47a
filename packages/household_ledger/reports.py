"""Trend, breakdown and summary views over the ledger.

All three views of a report come from a single row fetch, so they always
cover the same rows. The date axis chooses which date places a row in the
range and in a month bucket:

- ``settlement``: the row's settlement (due/paid) date;
- ``purchase``: the purchase date, falling back to the settlement date for
  rows that have none.

With a category filter, expense figures are restricted to that category and
the breakdown switches from "per category" to "per subgroup". Revenue is
never filtered, so ``sum(trend.expense) == summary.total_expense ==
sum(breakdown.total)`` holds in both modes.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import Decimal

from dateutil.relativedelta import relativedelta
from ledger_db.client import Database
from ledger_db.models.ledger import Category, LedgerTransaction
from sqlalchemy import case, func, select

from .checklist import month_bounds
from .models import (
    BreakdownItem,
    Dashboard,
    DateAxis,
    Report,
    ReportRequest,
    ReportSummary,
    TrendPoint,
)
from .normalizers import normalize_subgroup

NO_SUBGROUP_LABEL = "(no subgroup)"
DASHBOARD_HISTORY_MONTHS = 6

_ZERO = Decimal("0")


def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def months_between(start: date, end: date) -> list[str]:
    """``YYYY-MM`` keys for every calendar month touched by ``[start, end]``."""

    keys: list[str] = []
    cursor = date(start.year, start.month, 1)
    while cursor <= end:
        keys.append(month_key(cursor))
        cursor += relativedelta(months=1)
    return keys


def trailing_months(today: date, n: int) -> tuple[date, date]:
    """Range covering the last ``n`` calendar months, ending with ``today``'s month."""

    if n < 1:
        raise ValueError("n must be at least 1")
    _, end = month_bounds(today.year, today.month)
    start = date(today.year, today.month, 1) - relativedelta(months=n - 1)
    return start, end


def _axis_column(axis: DateAxis):
    if axis == "purchase":
        return func.coalesce(LedgerTransaction.purchase_date, LedgerTransaction.settlement_date)
    return LedgerTransaction.settlement_date


def _summary(revenue: Decimal, expense: Decimal) -> ReportSummary:
    return {"total_revenue": revenue, "total_expense": expense, "balance": revenue - expense}


def _ranked(totals: dict[tuple[str, int | None], Decimal]) -> list[BreakdownItem]:
    items: list[BreakdownItem] = [
        {"label": label, "category_id": cid, "total": total}
        for (label, cid), total in totals.items()
    ]
    items.sort(key=lambda i: (-i["total"], i["label"]))
    return items


class ReportingAggregator:
    """Read-only report builder; never mutates the ledger."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def _fetch(self, start: date, end: date, axis: DateAxis):
        axis_date = _axis_column(axis)
        stmt = (
            select(
                LedgerTransaction.type,
                LedgerTransaction.amount,
                LedgerTransaction.category_id,
                Category.name,
                LedgerTransaction.subgroup,
                axis_date.label("axis_date"),
            )
            .outerjoin(Category, Category.id == LedgerTransaction.category_id)
            .where(axis_date.between(start, end))
        )
        with self.db.session_scope() as session:
            return session.execute(stmt).all()

    def report(self, req: ReportRequest) -> Report:
        rows = self._fetch(req.range_start, req.range_end, req.axis)

        trend: dict[str, dict[str, Decimal]] = {
            key: {"revenue": _ZERO, "expense": _ZERO}
            for key in months_between(req.range_start, req.range_end)
        }
        breakdown: dict[tuple[str, int | None], Decimal] = defaultdict(lambda: _ZERO)
        revenue = expense = _ZERO

        for entry_type, amount, category_id, category_name, subgroup, axis_date in rows:
            bucket = trend.get(month_key(axis_date)) if axis_date is not None else None
            if bucket is None:
                # Unreadable legacy date
                continue
            if entry_type == "revenue":
                bucket["revenue"] += amount
                revenue += amount
                continue
            if req.category_id is not None and category_id != req.category_id:
                continue
            bucket["expense"] += amount
            expense += amount
            if req.category_id is None:
                breakdown[(category_name or f"#{category_id}", category_id)] += amount
            else:
                label = normalize_subgroup(subgroup) or NO_SUBGROUP_LABEL
                breakdown[(label, category_id)] += amount

        points: list[TrendPoint] = [
            {"period": key, "revenue": v["revenue"], "expense": v["expense"]}
            for key, v in trend.items()
        ]
        return {
            "trend": points,
            "breakdown": _ranked(breakdown),
            "summary": _summary(revenue, expense),
        }

    def all_time_balance(self) -> Decimal:
        """Total revenue minus total expense over every ledger row."""

        signed = case(
            (LedgerTransaction.type == "revenue", LedgerTransaction.amount),
            else_=-LedgerTransaction.amount,
        )
        with self.db.session_scope() as session:
            total = session.execute(select(func.sum(signed))).scalar()
        return Decimal(str(total)).quantize(Decimal("0.01")) if total is not None else _ZERO

    def dashboard(
        self, today: date, *, history_months: int = DASHBOARD_HISTORY_MONTHS
    ) -> Dashboard:
        """Overview: balance, current month and a trailing monthly trend."""

        month_start, month_end = month_bounds(today.year, today.month)
        current = self.report(ReportRequest(range_start=month_start, range_end=month_end))
        hist_start, hist_end = trailing_months(today, history_months)
        history = self.report(ReportRequest(range_start=hist_start, range_end=hist_end))
        return {
            "all_time_balance": self.all_time_balance(),
            "month": current["summary"],
            "month_breakdown": current["breakdown"],
            "history": history["trend"],
        }


__all__ = [
    "NO_SUBGROUP_LABEL",
    "ReportingAggregator",
    "month_key",
    "months_between",
    "trailing_months",
]
