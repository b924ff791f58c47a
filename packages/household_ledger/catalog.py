"""Account and category service operations.

Validation is authoritative here; request models only shape the input.
Functions take a SQLAlchemy ``Session`` and never commit: callers own the
transaction scope (``Database.session_scope()``).

Exports
-------
- ``create_account`` / ``list_accounts`` / ``update_account`` /
  ``delete_account``
- ``create_category`` / ``list_categories`` / ``update_category`` /
  ``delete_category``
- ``normalize_name`` and ``validate_name``: shared name helpers.

Names are unique case-insensitively (accounts globally, categories per type).
Deleting an account or category that ledger rows still reference raises
``DeleteBlockedError`` carrying the number of blocking rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ledger_db.models.ledger import (
    DEFAULT_EXPENSE_COLOR,
    Account,
    Category,
    ChecklistEntry,
    LedgerTransaction,
)
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import DeleteBlockedError, DuplicateNameError, LedgerValidationError, NotFoundError
from .logging_setup import get_logger
from .models import AccountDict, AccountRequest, CategoryDict, CategoryRequest, EntryType

logger = get_logger("household_ledger.catalog")

# ---------------------------
# Name normalization/validation
# ---------------------------


def normalize_name(name: str) -> str:
    """Return a trimmed, single-spaced representation of ``name``.

    Does not change case.
    """

    return " ".join(name.strip().split())


@dataclass(frozen=True, slots=True)
class NameValidation:
    ok: bool
    reason: str | None = None


def validate_name(name: str, *, min_len: int = 1, max_len: int = 64) -> NameValidation:
    n = normalize_name(name)
    if len(n) < min_len:
        return NameValidation(False, "Name cannot be empty")
    if len(n) > max_len:
        return NameValidation(False, f"Name must be at most {max_len} characters")
    return NameValidation(True, None)


def _checked_name(name: str) -> str:
    n = normalize_name(name)
    v = validate_name(n)
    if not v.ok:
        raise LedgerValidationError("name", v.reason or "invalid name")
    return n


# ---------------------------
# Row mapping
# ---------------------------


def _account_dict(row: Account) -> AccountDict:
    return {
        "id": row.id,
        "name": row.name,
        "initial_balance": row.initial_balance,
        "is_credit_card": bool(row.is_credit_card),
    }


def _category_dict(row: Category) -> CategoryDict:
    return {
        "id": row.id,
        "name": row.name,
        "type": row.type,  # type: ignore[typeddict-item]
        "subgroups": list(row.subgroups or []),
        "is_fixed": bool(row.is_fixed),
        "color": row.color,
    }


def _reference_count(session: Session, column: Any, item_id: int) -> int:
    stmt = select(func.count()).select_from(LedgerTransaction).where(column == item_id)
    return int(session.execute(stmt).scalar_one())


# ---------------------------
# Accounts
# ---------------------------


def _account_name_taken(session: Session, name: str, *, exclude_id: int | None = None) -> bool:
    stmt = select(Account.id).where(func.lower(Account.name) == name.lower())
    if exclude_id is not None:
        stmt = stmt.where(Account.id != exclude_id)
    return session.execute(stmt).first() is not None


def create_account(session: Session, req: AccountRequest) -> AccountDict:
    name = _checked_name(req.name)
    if _account_name_taken(session, name):
        raise DuplicateNameError("account", name)
    row = Account(name=name, initial_balance=req.initial_balance, is_credit_card=req.is_credit_card)
    try:
        session.add(row)
        session.flush()
    except IntegrityError:  # pragma: no cover - depends on DB uniqueness under races
        session.rollback()
        raise DuplicateNameError("account", name) from None
    logger.info("account created id=%s name=%r", row.id, name)
    return _account_dict(row)


def list_accounts(session: Session) -> list[AccountDict]:
    rows = session.execute(select(Account).order_by(Account.name)).scalars().all()
    return [_account_dict(r) for r in rows]


def update_account(session: Session, account_id: int, req: AccountRequest) -> AccountDict:
    row = session.get(Account, account_id)
    if row is None:
        raise NotFoundError(f"account {account_id} not found")
    name = _checked_name(req.name)
    if _account_name_taken(session, name, exclude_id=account_id):
        raise DuplicateNameError("account", name)
    row.name = name
    row.initial_balance = req.initial_balance
    row.is_credit_card = req.is_credit_card
    session.flush()
    return _account_dict(row)


def delete_account(session: Session, account_id: int) -> None:
    row = session.get(Account, account_id)
    if row is None:
        raise NotFoundError(f"account {account_id} not found")
    blocking = _reference_count(session, LedgerTransaction.account_id, account_id)
    if blocking:
        logger.warning("delete of account %s blocked by %d ledger row(s)", account_id, blocking)
        raise DeleteBlockedError("account", account_id, blocking)
    session.delete(row)
    session.flush()
    logger.info("account deleted id=%s", account_id)


# ---------------------------
# Categories
# ---------------------------


def _category_name_taken(
    session: Session, name: str, cat_type: str, *, exclude_id: int | None = None
) -> bool:
    stmt = select(Category.id).where(
        func.lower(Category.name) == name.lower(), Category.type == cat_type
    )
    if exclude_id is not None:
        stmt = stmt.where(Category.id != exclude_id)
    return session.execute(stmt).first() is not None


def _category_color(req: CategoryRequest) -> str | None:
    if req.color:
        return req.color
    return DEFAULT_EXPENSE_COLOR if req.type == "expense" else None


def create_category(session: Session, req: CategoryRequest) -> CategoryDict:
    name = _checked_name(req.name)
    if _category_name_taken(session, name, req.type):
        raise DuplicateNameError(f"{req.type} category", name)
    row = Category(
        name=name,
        type=req.type,
        # Subgroups only apply to expense categories
        subgroups=req.subgroups if req.type == "expense" else [],
        is_fixed=req.is_fixed,
        color=_category_color(req),
    )
    try:
        session.add(row)
        session.flush()
    except IntegrityError:  # pragma: no cover - depends on DB uniqueness under races
        session.rollback()
        raise DuplicateNameError(f"{req.type} category", name) from None
    logger.info("category created id=%s name=%r type=%s", row.id, name, req.type)
    return _category_dict(row)


def list_categories(session: Session, cat_type: EntryType | None = None) -> list[CategoryDict]:
    stmt = select(Category).order_by(Category.type, Category.name)
    if cat_type is not None:
        stmt = stmt.where(Category.type == cat_type)
    return [_category_dict(r) for r in session.execute(stmt).scalars().all()]


def get_category(session: Session, category_id: int) -> CategoryDict:
    row = session.get(Category, category_id)
    if row is None:
        raise NotFoundError(f"category {category_id} not found")
    return _category_dict(row)


def update_category(session: Session, category_id: int, req: CategoryRequest) -> CategoryDict:
    """Replace a category's fields.

    Changing the type is refused while ledger rows reference the category,
    since every row's type must match its category's type.
    """

    row = session.get(Category, category_id)
    if row is None:
        raise NotFoundError(f"category {category_id} not found")
    name = _checked_name(req.name)
    if _category_name_taken(session, name, req.type, exclude_id=category_id):
        raise DuplicateNameError(f"{req.type} category", name)
    if req.type != row.type:
        blocking = _reference_count(session, LedgerTransaction.category_id, category_id)
        if blocking:
            raise LedgerValidationError(
                "type", f"{blocking} ledger row(s) use this category as {row.type}"
            )
    row.name = name
    row.type = req.type
    row.subgroups = req.subgroups if req.type == "expense" else []
    row.is_fixed = req.is_fixed
    row.color = _category_color(req)
    session.flush()
    return _category_dict(row)


def delete_category(session: Session, category_id: int) -> None:
    """Delete a category and its checklist entries; blocked while rows use it."""

    row = session.get(Category, category_id)
    if row is None:
        raise NotFoundError(f"category {category_id} not found")
    blocking = _reference_count(session, LedgerTransaction.category_id, category_id)
    if blocking:
        logger.warning("delete of category %s blocked by %d ledger row(s)", category_id, blocking)
        raise DeleteBlockedError("category", category_id, blocking)
    session.execute(delete(ChecklistEntry).where(ChecklistEntry.category_id == category_id))
    session.delete(row)
    session.flush()
    logger.info("category deleted id=%s", category_id)


__all__ = [
    "normalize_name",
    "validate_name",
    "NameValidation",
    "create_account",
    "list_accounts",
    "update_account",
    "delete_account",
    "create_category",
    "list_categories",
    "get_category",
    "update_category",
    "delete_category",
]
