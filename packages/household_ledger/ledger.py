"""Ledger store: atomic persistence of ledger rows.

All writes go through :class:`LedgerStore`. A group of installment rows is
inserted inside one transaction, so either every row lands or none does.
Deleting a group is a single ``DELETE ... WHERE installment_group_id = ?``.
Editing a row never touches its siblings.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from ledger_db.client import Database
from ledger_db.models.ledger import Account, Category, LedgerTransaction
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import LedgerStorageError, LedgerValidationError, NotFoundError
from .logging_setup import get_logger
from .models import EntryType, LedgerEntry, LedgerQuery, LedgerRow
from .normalizers import normalize_subgroup

logger = get_logger("household_ledger.ledger")

# Edit fields that may not be cleared.
_REQUIRED_ON_EDIT = ("description", "amount", "settlement_date", "category_id", "is_fixed")
_EDITABLE = frozenset(
    {
        "description",
        "amount",
        "settlement_date",
        "purchase_date",
        "account_id",
        "category_id",
        "subgroup",
        "is_fixed",
    }
)


def _check_category(session: Session, category_id: int, entry_type: str) -> Category:
    category = session.get(Category, category_id)
    if category is None:
        raise LedgerValidationError("categoryId", f"category {category_id} does not exist")
    if category.type != entry_type:
        raise LedgerValidationError(
            "categoryId",
            f"category {category.name!r} is a {category.type} category, not {entry_type}",
        )
    return category


def _to_entry(
    row: LedgerTransaction, account_name: str | None, category_name: str | None
) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,
        account_id=row.account_id,
        account_name=account_name,
        category_id=row.category_id,
        category_name=category_name,
        description=row.description,
        type=row.type,  # type: ignore[arg-type]
        amount=row.amount,
        settlement_date=row.settlement_date,
        purchase_date=row.purchase_date,
        is_fixed=bool(row.is_fixed),
        is_installment=bool(row.is_installment),
        installment_number=row.installment_number,
        installment_total=row.installment_total,
        installment_group_id=row.installment_group_id,
        subgroup=normalize_subgroup(row.subgroup),
        created_at=row.created_at,
    )


class LedgerStore:
    """Reads and writes ledger rows on one :class:`~ledger_db.client.Database`."""

    def __init__(self, db: Database) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_rows(self, rows: Sequence[LedgerRow]) -> list[int]:
        """Insert ``rows`` in one transaction and return their ids in order.

        Any failure (unknown category, type mismatch, constraint violation)
        rolls back every row of the batch.
        """

        if not rows:
            return []
        try:
            with self.db.session_scope() as session:
                checked: set[int] = set()
                for r in rows:
                    if r.category_id not in checked:
                        _check_category(session, r.category_id, r.type)
                        checked.add(r.category_id)
                objs = [
                    LedgerTransaction(
                        account_id=r.account_id,
                        category_id=r.category_id,
                        description=r.description,
                        type=r.type,
                        amount=r.amount,
                        settlement_date=r.settlement_date,
                        purchase_date=r.purchase_date,
                        is_fixed=r.is_fixed,
                        is_installment=r.is_installment,
                        installment_number=r.installment_number,
                        installment_total=r.installment_total,
                        installment_group_id=r.installment_group_id,
                        subgroup=normalize_subgroup(r.subgroup) if r.type == "expense" else None,
                    )
                    for r in rows
                ]
                session.add_all(objs)
                session.flush()
                ids = [o.id for o in objs]
        except SQLAlchemyError as exc:
            logger.error("ledger insert of %d row(s) rolled back: %s", len(rows), exc)
            raise LedgerStorageError(f"could not save {len(rows)} ledger row(s): {exc}") from exc

        logger.info(
            "ledger rows created count=%d group=%s", len(ids), rows[0].installment_group_id
        )
        return ids

    def update_row(self, row_id: int, fields: Mapping[str, Any]) -> LedgerEntry:
        """Apply ``fields`` to one row. Siblings in the same group are untouched."""

        unknown = set(fields) - _EDITABLE
        if unknown:
            raise LedgerValidationError(sorted(unknown)[0], "field cannot be edited")
        for name in _REQUIRED_ON_EDIT:
            if name in fields and fields[name] is None:
                raise LedgerValidationError(name, "value is required")
        if "amount" in fields and fields["amount"] <= 0:
            raise LedgerValidationError("amount", "amount must be greater than zero")

        try:
            with self.db.session_scope() as session:
                row = session.get(LedgerTransaction, row_id)
                if row is None:
                    raise NotFoundError(f"ledger row {row_id} not found")
                if "category_id" in fields:
                    _check_category(session, fields["category_id"], row.type)
                for name, value in fields.items():
                    if name == "subgroup":
                        value = normalize_subgroup(value) if row.type == "expense" else None
                    setattr(row, name, value)
                session.flush()
                entry = self._load_entries(session, [LedgerTransaction.id == row_id])[0]
        except SQLAlchemyError as exc:
            logger.error("ledger update of row %s rolled back: %s", row_id, exc)
            raise LedgerStorageError(f"could not update ledger row {row_id}: {exc}") from exc

        logger.info("ledger row updated id=%s fields=%s", row_id, ",".join(sorted(fields)))
        return entry

    def delete_row(self, row_id: int) -> None:
        try:
            with self.db.session_scope() as session:
                result = session.execute(
                    delete(LedgerTransaction).where(LedgerTransaction.id == row_id)
                )
                if result.rowcount == 0:
                    raise NotFoundError(f"ledger row {row_id} not found")
        except SQLAlchemyError as exc:
            logger.error("ledger delete of row %s rolled back: %s", row_id, exc)
            raise LedgerStorageError(f"could not delete ledger row {row_id}: {exc}") from exc
        logger.info("ledger row deleted id=%s", row_id)

    def delete_group(self, group_id: str) -> int:
        """Delete every row of an installment group; returns the row count."""

        try:
            with self.db.session_scope() as session:
                result = session.execute(
                    delete(LedgerTransaction).where(
                        LedgerTransaction.installment_group_id == group_id
                    )
                )
                if result.rowcount == 0:
                    raise NotFoundError(f"installment group {group_id!r} not found")
                count = result.rowcount
        except SQLAlchemyError as exc:
            logger.error("delete of installment group %s rolled back: %s", group_id, exc)
            raise LedgerStorageError(
                f"could not delete installment group {group_id!r}: {exc}"
            ) from exc
        logger.info("installment group deleted group=%s rows=%d", group_id, count)
        return count

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_row(self, row_id: int) -> LedgerEntry:
        with self.db.session_scope() as session:
            entries = self._load_entries(session, [LedgerTransaction.id == row_id])
        if not entries:
            raise NotFoundError(f"ledger row {row_id} not found")
        return entries[0]

    def list_by_type(self, entry_type: EntryType) -> list[LedgerEntry]:
        return self.query(LedgerQuery(type=entry_type))

    def query(self, flt: LedgerQuery) -> list[LedgerEntry]:
        """Rows matching ``flt``, newest settlement date first (then id)."""

        conditions: list[Any] = []
        if flt.type != "all":
            conditions.append(LedgerTransaction.type == flt.type)
        if flt.range_start is not None:
            conditions.append(LedgerTransaction.settlement_date >= flt.range_start)
        if flt.range_end is not None:
            conditions.append(LedgerTransaction.settlement_date <= flt.range_end)
        if flt.category_id is not None:
            conditions.append(LedgerTransaction.category_id == flt.category_id)
        with self.db.session_scope() as session:
            return self._load_entries(session, conditions)

    def group_rows(self, group_id: str) -> list[LedgerEntry]:
        """Rows of one installment group, in installment order."""

        with self.db.session_scope() as session:
            entries = self._load_entries(
                session, [LedgerTransaction.installment_group_id == group_id]
            )
        return sorted(entries, key=lambda e: (e.installment_number or 0, e.id))

    def count_references(
        self, *, account_id: int | None = None, category_id: int | None = None
    ) -> int:
        """Number of ledger rows pointing at an account and/or category."""

        stmt = select(func.count()).select_from(LedgerTransaction)
        if account_id is not None:
            stmt = stmt.where(LedgerTransaction.account_id == account_id)
        if category_id is not None:
            stmt = stmt.where(LedgerTransaction.category_id == category_id)
        with self.db.session_scope() as session:
            return int(session.execute(stmt).scalar_one())

    @staticmethod
    def _load_entries(session: Session, conditions: Iterable[Any]) -> list[LedgerEntry]:
        stmt = (
            select(LedgerTransaction, Account.name, Category.name)
            .outerjoin(Account, Account.id == LedgerTransaction.account_id)
            .outerjoin(Category, Category.id == LedgerTransaction.category_id)
            .where(*conditions)
            .order_by(LedgerTransaction.settlement_date.desc(), LedgerTransaction.id.desc())
        )
        return [_to_entry(row, acc, cat) for row, acc, cat in session.execute(stmt).all()]


__all__ = ["LedgerStore"]
