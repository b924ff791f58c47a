"""Normalizers for date and subgroup values.

``normalize_date`` and ``normalize_subgroup`` are the storage library's value
cleaners (see :mod:`ledger_db.values`); they are applied on write, on read and
by the ``0005_normalize_legacy_values`` migration. ``parse_date`` is the strict
variant used to validate request fields.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from ledger_db.values import ISO_DATE_RE, normalize_date, normalize_subgroup


def parse_date(value: Any) -> date:
    """Parse a ``date``/ISO/day-first value into ``datetime.date``.

    Raises ``ValueError`` when the value is not a valid calendar date.
    """

    if isinstance(value, date):
        return date(value.year, value.month, value.day)
    normalized = normalize_date(value)
    if isinstance(normalized, str) and ISO_DATE_RE.match(normalized):
        return date.fromisoformat(normalized)
    raise ValueError(f"invalid date: {value!r} (expected YYYY-MM-DD or DD/MM/YYYY)")


__all__ = [
    "normalize_date",
    "parse_date",
    "normalize_subgroup",
]
