"""Pytest configuration for test isolation.

The application reads its database location and log level from the
environment (and the CLI also loads a local ``.env``). To keep tests hermetic,
an autouse fixture clears those variables and runs each test from its own
temporary working directory, so a developer's real ledger file is never
touched.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from ledger_db.client import Database

from tests.helpers.db import bootstrap_sqlite_db, seed_reference_data


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Force a per-test working directory and a clean ledger environment."""

    for var in ("LEDGER_DATABASE_URL", "LEDGER_DB_PATH", "HOUSEHOLD_LEDGER_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    workdir = tmp_path / "cwd"
    workdir.mkdir(parents=True, exist_ok=True)
    monkeypatch.chdir(workdir)


@pytest.fixture()
def db(tmp_path: Path):
    """A migrated, empty ledger file."""

    database = bootstrap_sqlite_db(tmp_path / "ledger.db")
    yield database
    database.dispose()


@pytest.fixture()
def refs(db: Database) -> dict[str, int]:
    """Ids of the seeded accounts and categories."""

    return seed_reference_data(db)
