"""Runtime configuration read from the environment.

Entrypoints load a local ``.env`` (``python-dotenv``) before calling into
this module; library code only reads ``os.environ``.

Variables
---------
- ``LEDGER_DATABASE_URL``: full SQLAlchemy URL of the ledger store.
- ``LEDGER_DB_PATH``: SQLite file path, used when no URL is set
  (default ``household_ledger.db`` in the working directory).
- ``HOUSEHOLD_LEDGER_LOG_LEVEL``: see :mod:`household_ledger.logging_setup`.
"""

from __future__ import annotations

import os
from pathlib import Path

from ledger_db.client import sqlite_url

DEFAULT_DB_FILENAME = "household_ledger.db"


def resolve_database_url(override: str | None = None) -> str:
    """Return the ledger database URL: override > env URL > env/default path."""

    if override:
        return override
    url = os.getenv("LEDGER_DATABASE_URL")
    if url:
        return url
    path = os.getenv("LEDGER_DB_PATH") or str(Path.cwd() / DEFAULT_DB_FILENAME)
    return sqlite_url(path)


__all__ = ["DEFAULT_DB_FILENAME", "resolve_database_url"]
