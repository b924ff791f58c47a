"""Public API and orchestration for the ``household_ledger`` package.

Each function takes an open :class:`~ledger_db.client.Database` and a request
payload (a mapping using the camelCase wire names, or an already-built request
model) and returns plain data. Callers such as the CLI or an HTTP layer stay
free of persistence details.

Input validation failures surface as
:class:`~household_ledger.errors.LedgerValidationError` naming the offending
field; nothing is written in that case.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import date
from typing import Any, TypeVar

from ledger_db.client import Database
from ledger_db.models.ledger import Account
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import catalog
from .checklist import ChecklistReconciler
from .errors import LedgerStorageError, LedgerValidationError
from .installments import expand_expense
from .ledger import LedgerStore
from .logging_setup import get_logger
from .models import (
    AccountDict,
    AccountRequest,
    CategoryDict,
    CategoryRequest,
    ChecklistPeriod,
    ChecklistStatus,
    ChecklistToggle,
    Dashboard,
    EntryType,
    LedgerEditRequest,
    LedgerQuery,
    LedgerWriteRequest,
    Report,
    ReportRequest,
    WriteResult,
)
from .reports import ReportingAggregator

logger = get_logger("household_ledger.api")

M = TypeVar("M", bound=BaseModel)

type Payload = Mapping[str, Any] | BaseModel


def _parse(model: type[M], payload: Payload | None, **overrides: Any) -> M:
    """Build ``model`` from ``payload``; translate pydantic errors."""

    if isinstance(payload, model) and not overrides:
        return payload
    if isinstance(payload, BaseModel):
        data: dict[str, Any] = payload.model_dump(by_alias=True, exclude_unset=True)
    else:
        data = dict(payload or {})
    data.update(overrides)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or model.__name__
        raise LedgerValidationError(field, first.get("msg", "invalid value")) from None


def _check_account(db: Database, account_id: int | None) -> None:
    if account_id is None:
        return
    with db.session_scope() as session:
        if session.get(Account, account_id) is None:
            raise LedgerValidationError("accountId", f"account {account_id} does not exist")


# ---------------------------------------------------------------------------
# Ledger writes
# ---------------------------------------------------------------------------


def _write(db: Database, req: LedgerWriteRequest) -> WriteResult:
    _check_account(db, req.account_id)
    rows = expand_expense(req)
    ids = LedgerStore(db).create_rows(rows)
    group_id = rows[0].installment_group_id
    if group_id is not None:
        message = f"{len(ids)} installments recorded"
    else:
        message = f"{req.type.capitalize()} recorded"
    return {"count": len(ids), "ids": ids, "group_id": group_id, "message": message}


def record_expense(db: Database, payload: Payload) -> WriteResult:
    """Record an expense, expanding installments into one row per month."""

    return _write(db, _parse(LedgerWriteRequest, payload, type="expense"))


def record_revenue(db: Database, payload: Payload) -> WriteResult:
    """Record a revenue entry (always a single row)."""

    req = _parse(LedgerWriteRequest, payload, type="revenue")
    if req.is_installment:  # pragma: no cover - rejected by the request model
        raise LedgerValidationError("isInstallment", "revenue cannot be split into installments")
    return _write(db, req)


def edit_entry(db: Database, row_id: int, payload: Payload) -> dict[str, Any]:
    """Edit one ledger row field-by-field; installment siblings are untouched."""

    req = _parse(LedgerEditRequest, payload)
    fields = req.changes()
    if "account_id" in fields:
        _check_account(db, fields["account_id"])
    return LedgerStore(db).update_row(row_id, fields).to_dict()


def delete_entry(db: Database, row_id: int | None = None, *, group_id: str | None = None) -> int:
    """Delete one row, or a whole installment group when ``group_id`` is given.

    Returns the number of rows deleted.
    """

    store = LedgerStore(db)
    if group_id:
        return store.delete_group(group_id)
    if row_id is None:
        raise LedgerValidationError("id", "a row id or an installment group id is required")
    store.delete_row(row_id)
    return 1


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def read_ledger(db: Database, payload: Payload | None = None) -> list[dict[str, Any]]:
    """Ledger rows, newest first, annotated with account and category names."""

    flt = _parse(LedgerQuery, payload)
    return [entry.to_dict() for entry in LedgerStore(db).query(flt)]


def list_entries(db: Database, entry_type: EntryType) -> list[dict[str, Any]]:
    return [entry.to_dict() for entry in LedgerStore(db).list_by_type(entry_type)]


def build_report(db: Database, payload: Payload) -> Report:
    return ReportingAggregator(db).report(_parse(ReportRequest, payload))


def dashboard(db: Database, today: date | None = None) -> Dashboard:
    return ReportingAggregator(db).dashboard(today or date.today())


# ---------------------------------------------------------------------------
# Checklist
# ---------------------------------------------------------------------------


def checklist_status(db: Database, payload: Payload) -> list[ChecklistStatus]:
    period = _parse(ChecklistPeriod, payload)
    return ChecklistReconciler(db).status(period.year, period.month)


def configure_checklist(db: Database, payload: Payload) -> bool:
    """Add (``active=True``) or remove a checklist entry.

    Returns ``True`` when the configuration changed.
    """

    return ChecklistReconciler(db).toggle(_parse(ChecklistToggle, payload))


def list_checklist(db: Database) -> list[dict[str, object]]:
    return ChecklistReconciler(db).list_entries()


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@contextmanager
def _catalog_write(db: Database, action: str) -> Iterator[Session]:
    """Session for a catalog change; storage failures become ``LedgerStorageError``."""

    try:
        with db.session_scope() as session:
            yield session
    except SQLAlchemyError as exc:
        logger.error("%s rolled back: %s", action, exc)
        raise LedgerStorageError(f"could not {action}: {exc}") from exc


def add_account(db: Database, payload: Payload) -> AccountDict:
    req = _parse(AccountRequest, payload)
    with _catalog_write(db, "create account") as session:
        return catalog.create_account(session, req)


def list_accounts(db: Database) -> list[AccountDict]:
    with db.session_scope() as session:
        return catalog.list_accounts(session)


def edit_account(db: Database, account_id: int, payload: Payload) -> AccountDict:
    req = _parse(AccountRequest, payload)
    with _catalog_write(db, f"update account {account_id}") as session:
        return catalog.update_account(session, account_id, req)


def remove_account(db: Database, account_id: int) -> None:
    with _catalog_write(db, f"delete account {account_id}") as session:
        catalog.delete_account(session, account_id)


def add_category(db: Database, payload: Payload) -> CategoryDict:
    req = _parse(CategoryRequest, payload)
    with _catalog_write(db, "create category") as session:
        return catalog.create_category(session, req)


def list_categories(db: Database, cat_type: EntryType | None = None) -> list[CategoryDict]:
    with db.session_scope() as session:
        return catalog.list_categories(session, cat_type)


def edit_category(db: Database, category_id: int, payload: Payload) -> CategoryDict:
    req = _parse(CategoryRequest, payload)
    with _catalog_write(db, f"update category {category_id}") as session:
        return catalog.update_category(session, category_id, req)


def remove_category(db: Database, category_id: int) -> None:
    with _catalog_write(db, f"delete category {category_id}") as session:
        catalog.delete_category(session, category_id)


__all__ = [
    "record_expense",
    "record_revenue",
    "edit_entry",
    "delete_entry",
    "read_ledger",
    "list_entries",
    "build_report",
    "dashboard",
    "checklist_status",
    "configure_checklist",
    "list_checklist",
    "add_account",
    "list_accounts",
    "edit_account",
    "remove_account",
    "add_category",
    "list_categories",
    "edit_category",
    "remove_category",
]
