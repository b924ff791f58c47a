"""Programmatic Alembic runner used when a ledger data file is opened.

Revisions live in ``ledger_db/migrations/versions``. Every revision checks the
live schema before altering it, so running the chain against a data file
written by an older release (which has tables but no ``alembic_version``)
upgrades it in place without data loss, and re-running it is a no-op.
"""

from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.migration import MigrationContext
from sqlalchemy.engine import Engine

logger = logging.getLogger("ledger_db.migrate")

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"
HEAD_REVISION = "0005_normalize_legacy_values"


def alembic_config(database_url: str | None = None) -> Config:
    """Build an Alembic ``Config`` without an ``alembic.ini`` file."""

    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    if database_url:
        # ConfigParser interpolation: escape literal percent signs
        cfg.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return cfg


def current_revision(engine: Engine) -> str | None:
    with engine.connect() as conn:
        return MigrationContext.configure(conn).get_current_revision()


def upgrade(engine: Engine, revision: str = "head") -> None:
    """Apply pending revisions on ``engine`` inside a single transaction."""

    before = current_revision(engine)
    cfg = alembic_config(engine.url.render_as_string(hide_password=False))
    with engine.begin() as connection:
        cfg.attributes["connection"] = connection
        command.upgrade(cfg, revision)
    after = current_revision(engine)
    if before != after:
        logger.info("Ledger schema upgraded: %s -> %s", before or "<none>", after)


__all__ = [
    "HEAD_REVISION",
    "alembic_config",
    "current_revision",
    "upgrade",
]
