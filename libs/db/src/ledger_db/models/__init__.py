"""SQLAlchemy models for the household ledger database."""

from .ledger import Account, Base, Category, ChecklistEntry, LedgerTransaction, StringList

__all__ = [
    "Base",
    "Account",
    "Category",
    "LedgerTransaction",
    "ChecklistEntry",
    "StringList",
]
