from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator, TypeEngine

from ..values import coerce_date, parse_label_list

# ISO-8601 UTC timestamp with milliseconds, matching rows written by earlier
# versions of the application.
CREATED_AT_DEFAULT = "(strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))"

DEFAULT_EXPENSE_COLOR = "#ef4444"


class Base(DeclarativeBase):
    pass


class StringList(TypeDecorator[list[str]]):
    """Ordered ``list[str]`` persisted as a JSON array in a TEXT column.

    Empty lists are stored as NULL.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: list[str] | None, dialect: Dialect) -> str | None:
        labels = parse_label_list(value)
        if not labels:
            return None
        return json.dumps(labels, ensure_ascii=False)

    def process_result_value(self, value: str | None, dialect: Dialect) -> list[str]:
        return parse_label_list(value)


class LenientDate(TypeDecorator[date]):
    """Calendar date that reads unreadable legacy text as ``None``.

    On SQLite the value is kept as ``YYYY-MM-DD`` text and parsed here rather
    than by the dialect's ``DATE`` processor, which raises on any other form.
    Day-first legacy values are still understood.
    """

    impl = Date
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[object]:
        if dialect.name == "sqlite":
            return dialect.type_descriptor(Text())
        return dialect.type_descriptor(Date())

    def process_bind_param(self, value: date | str | None, dialect: Dialect) -> object:
        if value is None or dialect.name != "sqlite":
            return value
        parsed = coerce_date(value)
        return parsed.isoformat() if parsed is not None else value

    def process_result_value(self, value: object, dialect: Dialect) -> date | None:
        return coerce_date(value)


# ---------------------------
# Reference: accounts
# ---------------------------


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    initial_balance: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default=text("0")
    )
    is_credit_card: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("0")
    )
    created_at: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=text(CREATED_AT_DEFAULT)
    )


# ---------------------------
# Reference: categories
# ---------------------------


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    # Free-form labels; only meaningful for expense categories.
    subgroups: Mapped[list[str]] = mapped_column(StringList, nullable=True)
    is_fixed: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("0"))
    color: Mapped[str | None] = mapped_column(
        Text, nullable=True, server_default=text(f"'{DEFAULT_EXPENSE_COLOR}'")
    )
    created_at: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=text(CREATED_AT_DEFAULT)
    )

    __table_args__ = (
        UniqueConstraint("name", "type", name="uq_categories_name_type"),
        CheckConstraint("type IN ('expense', 'revenue')", name="ck_categories_type"),
    )


# ---------------------------
# Core: transactions
# ---------------------------


class LedgerTransaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("accounts.id"), nullable=True
    )
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id"), nullable=False
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    # Settlement (due/paid) date. The column keeps its historical name. Reads
    # as None for legacy text that is not a date.
    settlement_date: Mapped[date] = mapped_column("date", LenientDate, nullable=False)
    # When the underlying purchase happened; NULL only on rows that predate
    # the column and have not been backfilled.
    purchase_date: Mapped[date | None] = mapped_column(LenientDate, nullable=True)
    is_fixed: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("0"))
    is_installment: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("0")
    )
    installment_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    installment_total: Mapped[int | None] = mapped_column(Integer, nullable=True)
    installment_group_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    subgroup: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=text(CREATED_AT_DEFAULT)
    )

    __table_args__ = (
        CheckConstraint("type IN ('expense', 'revenue')", name="ck_transactions_type"),
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
    )


# ---------------------------
# Checklist: expected recurring items
# ---------------------------


class ChecklistEntry(Base):
    __tablename__ = "checklist"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id"), nullable=False
    )
    subgroup_name: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        UniqueConstraint("category_id", "subgroup_name", name="uq_checklist_category_subgroup"),
    )


__all__ = [
    "Base",
    "Account",
    "Category",
    "LedgerTransaction",
    "ChecklistEntry",
    "StringList",
    "LenientDate",
    "parse_label_list",
    "CREATED_AT_DEFAULT",
    "DEFAULT_EXPENSE_COLOR",
]
