"""Installment expansion: one expense intent -> N dated ledger rows.

Expansion is a pure computation; :class:`household_ledger.ledger.LedgerStore`
commits the resulting rows as a single unit.

Rules
-----
- Not an installment: exactly one row, ``installment_number = installment_total
  = 1`` and no group id.
- Installment over N periods: N rows sharing a fresh group id. Row ``i``
  (0-based) settles ``i`` calendar months after the first settlement date.
  Months are added to the original date each time (not chained), so a day
  missing from a short month clamps to that month's last day and later rows
  return to the original day (31 Jan -> 29 Feb -> 31 Mar).
- Every row carries the same purchase date: the supplied one, else the first
  settlement date.
- Amounts: each row gets ``total / N`` truncated to cents; the last row also
  carries the remainder, so the group always re-sums to the exact total.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Callable
from datetime import date
from decimal import ROUND_DOWN, Decimal

from dateutil.relativedelta import relativedelta

from .errors import LedgerValidationError
from .models import CENT, LedgerRow, LedgerWriteRequest
from .normalizers import normalize_subgroup

# Matches the "[i/N] " prefix written on installment rows, including the
# "[Parc i/N] " form used by earlier releases.
_INSTALLMENT_TAG_RE = re.compile(r"^\[(?:Parc\s+)?\d+/\d+\]\s*")


def new_group_id() -> str:
    return str(uuid.uuid4())


def add_months(start: date, months: int) -> date:
    """Return ``start`` shifted by ``months`` calendar months (day clamped)."""

    return start + relativedelta(months=months)


def split_amount(total: Decimal, periods: int) -> list[Decimal]:
    """Split ``total`` into ``periods`` cent amounts that re-sum exactly.

    Raises ``LedgerValidationError`` when an installment would be below one cent.
    """

    if periods < 1:
        raise LedgerValidationError("installmentCount", "must be at least 1")
    total = total.quantize(CENT)
    share = (total / periods).quantize(CENT, rounding=ROUND_DOWN)
    if share <= 0:
        raise LedgerValidationError(
            "amount", f"{total} cannot be split into {periods} installments of at least 0.01"
        )
    amounts = [share] * periods
    amounts[-1] = total - share * (periods - 1)
    return amounts


def installment_description(description: str, number: int, total: int) -> str:
    return f"[{number}/{total}] {description}"


def description_root(description: str) -> str:
    """Strip the installment tag, returning the description the user typed."""

    return _INSTALLMENT_TAG_RE.sub("", description, count=1)


def expand_expense(
    request: LedgerWriteRequest,
    *,
    group_id_factory: Callable[[], str] = new_group_id,
) -> list[LedgerRow]:
    """Expand a validated write request into ledger rows (no I/O)."""

    subgroup = normalize_subgroup(request.subgroup) if request.type == "expense" else None
    purchase = request.purchase_date or request.settlement_date

    if not request.is_installment:
        return [
            LedgerRow(
                category_id=request.category_id,
                description=request.description,
                type=request.type,
                amount=request.amount,
                settlement_date=request.settlement_date,
                purchase_date=purchase,
                account_id=request.account_id,
                subgroup=subgroup,
                is_fixed=request.is_fixed,
            )
        ]

    periods = request.periods
    group_id = group_id_factory()
    amounts = split_amount(request.amount, periods)
    return [
        LedgerRow(
            category_id=request.category_id,
            description=installment_description(request.description, i + 1, periods),
            type=request.type,
            amount=amounts[i],
            settlement_date=add_months(request.settlement_date, i),
            purchase_date=purchase,
            account_id=request.account_id,
            subgroup=subgroup,
            is_fixed=request.is_fixed,
            is_installment=True,
            installment_number=i + 1,
            installment_total=periods,
            installment_group_id=group_id,
        )
        for i in range(periods)
    ]


__all__ = [
    "add_months",
    "description_root",
    "expand_expense",
    "installment_description",
    "new_group_id",
    "split_amount",
]
