"""ledger_db: storage library for the household ledger (SQLAlchemy/Alembic/SQLite).

Public exports
--------------
- ``Base`` and ``metadata`` for Alembic targeting
- ORM models in ``ledger_db.models.ledger`` (re-exported for convenience)
- The ``Database`` store handle in ``ledger_db.client``
"""

from __future__ import annotations

from .client import Database, sqlite_url
from .models.ledger import Account, Base, Category, ChecklistEntry, LedgerTransaction

# Re-export SQLAlchemy metadata for Alembic's env.py
metadata = Base.metadata

__all__ = [
    "Base",
    "metadata",
    "Account",
    "Category",
    "LedgerTransaction",
    "ChecklistEntry",
    "Database",
    "sqlite_url",
]
