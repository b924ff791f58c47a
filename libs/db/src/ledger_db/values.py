"""Cleaners for column values written by older releases.

These live in the storage library so that both the ORM types and the data
migrations can repair stored values without importing the application
package. All functions are pure, idempotent and never raise on bad input.

Out of scope: timezone conversion (all dates are calendar dates) and any date
format other than ``YYYY-MM-DD`` and day-first ``DD/MM/YYYY``.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DAY_FIRST_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


def normalize_date(value: Any) -> Any:
    """Return ``value`` as ``YYYY-MM-DD`` when it is a recognized date form.

    - ``YYYY-MM-DD`` strings are returned as-is.
    - ``DD/MM/YYYY`` strings (one-digit day/month allowed) are rewritten to
      ``YYYY-MM-DD`` for the same calendar day.
    - ``datetime.date`` values are rendered in ISO form.
    - Anything else, including impossible days such as ``31/02/2024``, is
      returned unchanged; callers validate.
    """

    if isinstance(value, date):
        return date(value.year, value.month, value.day).isoformat()
    if not isinstance(value, str):
        return value
    s = value.strip()
    if ISO_DATE_RE.match(s):
        return s
    m = _DAY_FIRST_RE.match(s)
    if m is None:
        return value
    day, month, year = (int(g) for g in m.groups())
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return value


def coerce_date(value: Any) -> date | None:
    """Best-effort ``date`` for a stored value; ``None`` when unreadable."""

    if isinstance(value, date):
        return date(value.year, value.month, value.day)
    normalized = normalize_date(value)
    if isinstance(normalized, str) and ISO_DATE_RE.match(normalized):
        try:
            return date.fromisoformat(normalized)
        except ValueError:
            return None
    return None


# ---------------------------------------------------------------------------
# Subgroups
# ---------------------------------------------------------------------------

# Characters stripped from labels whose serialized form could not be parsed.
_STRAY_CHARS = "[]{}\"'"
_SERIALIZED_PREFIXES = ("[", "{", '"')


def _strip_stray(s: str) -> str:
    return "".join(ch for ch in s if ch not in _STRAY_CHARS).strip()


def normalize_subgroup(value: Any) -> str | None:
    """Collapse any stored subgroup representation into one plain label.

    Shapes handled:
    - plain string -> trimmed string;
    - sequence -> its first element (normalized recursively);
    - serialized sequence such as ``'["Gym"]'`` -> parsed and unwrapped;
    - serialized object with a ``name`` key (``'{"name": "Gym"}'``) -> the name;
    - unparseable bracketed text such as ``'["Gym'`` -> bracket/quote
      characters stripped, then trimmed.

    ``None``, blank strings and empty sequences mean "no subgroup" and return
    ``None``. ``normalize_subgroup(normalize_subgroup(x)) ==
    normalize_subgroup(x)`` for every input.
    """

    if value is None:
        return None
    if isinstance(value, Mapping):
        return normalize_subgroup(value.get("name"))
    if isinstance(value, Sequence) and not isinstance(value, str):
        return normalize_subgroup(value[0]) if len(value) else None

    s = str(value).strip()
    if not s:
        return None
    if not s.startswith(_SERIALIZED_PREFIXES):
        return s

    try:
        parsed = json.loads(s)
    except ValueError:
        return _strip_stray(s) or None

    if isinstance(parsed, str):
        return normalize_subgroup(parsed)
    if isinstance(parsed, list):
        return normalize_subgroup(parsed)
    if isinstance(parsed, dict) and isinstance(parsed.get("name"), str):
        return normalize_subgroup(parsed["name"])
    return _strip_stray(s) or None


def parse_label_list(raw: Any) -> list[str]:
    """Decode a stored label list into plain, non-empty strings.

    Accepts a JSON array (current format), a bare string (single label) and
    malformed bracketed text left behind by older schema versions.
    """

    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        items: list[Any] = list(raw)
    else:
        s = str(raw).strip()
        if not s:
            return []
        try:
            parsed = json.loads(s)
        except ValueError:
            parsed = s.strip("[]").split(",")
        items = parsed if isinstance(parsed, list) else [parsed]

    labels: list[str] = []
    for item in items:
        label = str(item).strip().strip("\"'").strip()
        if label:
            labels.append(label)
    return labels


__all__ = [
    "ISO_DATE_RE",
    "coerce_date",
    "normalize_date",
    "normalize_subgroup",
    "parse_label_list",
]
