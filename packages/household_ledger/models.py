"""Data contracts for ``household_ledger``.

Three kinds of types live here:

- pydantic request models: validate caller input before anything touches the
  store. They accept the camelCase wire names (``settlementDate``,
  ``categoryId``...) as well as the snake_case field names.
- frozen dataclasses for ledger rows (the write payload produced by the
  installment expander and the annotated rows returned by reads).
- ``TypedDict`` result shapes for reports, checklist status and catalog rows.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Literal, TypedDict

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .normalizers import normalize_subgroup, parse_date

type EntryType = Literal["expense", "revenue"]
type DateAxis = Literal["settlement", "purchase"]
type ChecklistState = Literal["paid", "pending"]

CENT = Decimal("0.01")


# ---------------------------------------------------------------------------
# Shared field coercions
# ---------------------------------------------------------------------------


def _coerce_date(v: Any) -> Any:
    if v is None or (isinstance(v, str) and not v.strip()):
        return None
    return parse_date(v)


def _coerce_optional_id(v: Any) -> Any:
    # Form posts send "" or the literal strings "null"/"undefined" for "no account".
    if isinstance(v, str) and v.strip().lower() in {"", "null", "undefined", "none"}:
        return None
    return v


def _quantize_amount(v: Decimal | None) -> Decimal | None:
    if v is None:
        return None
    q = v.quantize(CENT, rounding=ROUND_HALF_UP)
    if q <= 0:
        raise ValueError("amount must be at least 0.01")
    return q


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra="ignore")


# ---------------------------------------------------------------------------
# Ledger requests
# ---------------------------------------------------------------------------


class LedgerWriteRequest(_Request):
    """One user-entered income or expense, possibly paid in installments."""

    type: EntryType = "expense"
    description: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    settlement_date: date = Field(alias="settlementDate")
    purchase_date: date | None = Field(default=None, alias="purchaseDate")
    account_id: int | None = Field(default=None, alias="accountId")
    category_id: int = Field(alias="categoryId")
    subgroup: str | None = None
    is_fixed: bool = Field(default=False, alias="isFixed")
    is_installment: bool = Field(default=False, alias="isInstallment")
    installment_count: int | None = Field(
        default=None, alias="installmentCount", ge=1, validate_default=True
    )

    @field_validator("settlement_date", "purchase_date", mode="before")
    @classmethod
    def _dates(cls, v: Any) -> Any:
        return _coerce_date(v)

    @field_validator("account_id", mode="before")
    @classmethod
    def _account(cls, v: Any) -> Any:
        return _coerce_optional_id(v)

    @field_validator("subgroup", mode="before")
    @classmethod
    def _subgroup(cls, v: Any) -> str | None:
        return normalize_subgroup(v)

    @field_validator("amount")
    @classmethod
    def _amount(cls, v: Decimal | None) -> Decimal | None:
        return _quantize_amount(v)

    @field_validator("is_installment")
    @classmethod
    def _installments_are_expenses(cls, v: bool, info: ValidationInfo) -> bool:
        if v and info.data.get("type") == "revenue":
            raise ValueError("revenue cannot be split into installments")
        return v

    @field_validator("installment_count")
    @classmethod
    def _count_required_for_installments(
        cls, v: int | None, info: ValidationInfo
    ) -> int | None:
        if info.data.get("is_installment") and v is None:
            raise ValueError("installment count is required for installment expenses")
        return v

    @property
    def periods(self) -> int:
        """Number of ledger rows this request expands into."""

        if self.is_installment and self.installment_count:
            return self.installment_count
        return 1


class LedgerEditRequest(_Request):
    """Field-by-field edit of one ledger row; unset fields are left alone."""

    description: str | None = Field(default=None, min_length=1)
    amount: Decimal | None = Field(default=None, gt=0)
    settlement_date: date | None = Field(default=None, alias="settlementDate")
    purchase_date: date | None = Field(default=None, alias="purchaseDate")
    account_id: int | None = Field(default=None, alias="accountId")
    category_id: int | None = Field(default=None, alias="categoryId")
    subgroup: str | None = None
    is_fixed: bool | None = Field(default=None, alias="isFixed")

    @field_validator("settlement_date", "purchase_date", mode="before")
    @classmethod
    def _dates(cls, v: Any) -> Any:
        return _coerce_date(v)

    @field_validator("account_id", mode="before")
    @classmethod
    def _account(cls, v: Any) -> Any:
        return _coerce_optional_id(v)

    @field_validator("subgroup", mode="before")
    @classmethod
    def _subgroup(cls, v: Any) -> str | None:
        return normalize_subgroup(v)

    @field_validator("amount")
    @classmethod
    def _amount(cls, v: Decimal | None) -> Decimal | None:
        return _quantize_amount(v)

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller actually sent."""

        return self.model_dump(exclude_unset=True)


class LedgerQuery(_Request):
    """Read filter: type, optional settlement-date range and category."""

    type: Literal["expense", "revenue", "all"] = "all"
    range_start: date | None = Field(default=None, alias="rangeStart")
    range_end: date | None = Field(default=None, alias="rangeEnd")
    category_id: int | None = Field(default=None, alias="categoryId")

    @field_validator("range_start", "range_end", mode="before")
    @classmethod
    def _dates(cls, v: Any) -> Any:
        return _coerce_date(v)

    @field_validator("range_end")
    @classmethod
    def _end_not_before_start(cls, v: date | None, info: ValidationInfo) -> date | None:
        start = info.data.get("range_start")
        if v is not None and start is not None and v < start:
            raise ValueError("range end must not be before range start")
        return v


class ReportRequest(_Request):
    range_start: date = Field(alias="rangeStart")
    range_end: date = Field(alias="rangeEnd")
    axis: DateAxis = "settlement"
    category_id: int | None = Field(default=None, alias="categoryId")

    @field_validator("range_start", "range_end", mode="before")
    @classmethod
    def _dates(cls, v: Any) -> Any:
        return _coerce_date(v)

    @field_validator("category_id", mode="before")
    @classmethod
    def _category(cls, v: Any) -> Any:
        return _coerce_optional_id(v)

    @field_validator("range_end")
    @classmethod
    def _end_not_before_start(cls, v: date, info: ValidationInfo) -> date:
        start = info.data.get("range_start")
        if start is not None and v < start:
            raise ValueError("range end must not be before range start")
        return v


# ---------------------------------------------------------------------------
# Checklist requests
# ---------------------------------------------------------------------------


class ChecklistPeriod(_Request):
    year: int = Field(ge=1900, le=9999)
    month: int = Field(ge=1, le=12)


class ChecklistToggle(_Request):
    category_id: int = Field(alias="categoryId")
    subgroup_name: str = Field(alias="subgroupName")
    active: bool = True

    @field_validator("subgroup_name", mode="before")
    @classmethod
    def _plain_label(cls, v: Any) -> str:
        label = normalize_subgroup(v)
        if label is None:
            raise ValueError("subgroup name is required")
        return label


# ---------------------------------------------------------------------------
# Catalog requests
# ---------------------------------------------------------------------------


class AccountRequest(_Request):
    name: str = Field(min_length=1, max_length=64)
    initial_balance: Decimal = Field(default=Decimal("0"), alias="initialBalance")
    is_credit_card: bool = Field(default=False, alias="isCreditCard")


class CategoryRequest(_Request):
    name: str = Field(min_length=1, max_length=64)
    type: EntryType = "expense"
    subgroups: list[str] = Field(default_factory=list)
    is_fixed: bool = Field(default=False, alias="isFixed")
    color: str | None = None

    @field_validator("subgroups", mode="before")
    @classmethod
    def _labels(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        labels: list[str] = []
        for item in v:
            label = normalize_subgroup(item)
            if label and label not in labels:
                labels.append(label)
        return labels


# ---------------------------------------------------------------------------
# Ledger rows
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LedgerRow:
    """A fully-formed ledger row ready to be inserted."""

    category_id: int
    description: str
    type: EntryType
    amount: Decimal
    settlement_date: date
    purchase_date: date
    account_id: int | None = None
    subgroup: str | None = None
    is_fixed: bool = False
    is_installment: bool = False
    installment_number: int = 1
    installment_total: int = 1
    installment_group_id: str | None = None


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """A stored ledger row annotated with account and category names."""

    id: int
    account_id: int | None
    account_name: str | None
    category_id: int
    category_name: str | None
    description: str
    type: EntryType
    amount: Decimal
    # None only for legacy rows whose stored date cannot be read
    settlement_date: date | None
    purchase_date: date | None
    is_fixed: bool
    is_installment: bool
    installment_number: int | None
    installment_total: int | None
    installment_group_id: str | None
    subgroup: str | None
    created_at: str | None

    def to_dict(self) -> dict[str, Any]:
        return to_jsonable(asdict(self))


# ---------------------------------------------------------------------------
# Result shapes
# ---------------------------------------------------------------------------


class WriteResult(TypedDict):
    count: int
    ids: list[int]
    group_id: str | None
    message: str


class TrendPoint(TypedDict):
    period: str  # YYYY-MM
    revenue: Decimal
    expense: Decimal


class BreakdownItem(TypedDict):
    label: str
    category_id: int | None
    total: Decimal


class ReportSummary(TypedDict):
    total_revenue: Decimal
    total_expense: Decimal
    balance: Decimal


class Report(TypedDict):
    trend: list[TrendPoint]
    breakdown: list[BreakdownItem]
    summary: ReportSummary


class Dashboard(TypedDict):
    all_time_balance: Decimal
    month: ReportSummary
    month_breakdown: list[BreakdownItem]
    history: list[TrendPoint]


class ChecklistStatus(TypedDict):
    category_id: int
    subgroup_name: str
    category_name: str | None
    status: ChecklistState
    amount: Decimal
    date: date | None
    match_count: int


class AccountDict(TypedDict):
    id: int
    name: str
    initial_balance: Decimal
    is_credit_card: bool


class CategoryDict(TypedDict):
    id: int
    name: str
    type: EntryType
    subgroups: list[str]
    is_fixed: bool
    color: str | None


def to_jsonable(value: Any) -> Any:
    """Recursively convert ``Decimal``/``date`` values for JSON output."""

    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


__all__ = [
    "CENT",
    "EntryType",
    "DateAxis",
    "LedgerWriteRequest",
    "LedgerEditRequest",
    "LedgerQuery",
    "ReportRequest",
    "ChecklistPeriod",
    "ChecklistToggle",
    "AccountRequest",
    "CategoryRequest",
    "LedgerRow",
    "LedgerEntry",
    "WriteResult",
    "TrendPoint",
    "BreakdownItem",
    "ReportSummary",
    "Report",
    "Dashboard",
    "ChecklistStatus",
    "AccountDict",
    "CategoryDict",
    "to_jsonable",
]
