"""SQLAlchemy engine/session handle for the ledger database.

Usage
-----
from ledger_db.client import Database

db = Database.open("sqlite+pysqlite:///household_ledger.db")
with db.session_scope() as s:
    s.execute(...)

Each ``Database`` owns its engine and session factory; callers pass the
instance to the components that need storage instead of reaching for a
process-wide handle.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from os import PathLike
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


def sqlite_url(db_file: str | PathLike[str]) -> str:
    """Return a SQLAlchemy URL for a SQLite file path."""

    return f"sqlite+pysqlite:///{Path(db_file)}"


def _is_sqlite(url: str) -> bool:
    return make_url(url).get_backend_name() == "sqlite"


def _is_sqlite_memory(url: str) -> bool:
    u = make_url(url)
    return u.get_backend_name() == "sqlite" and u.database in (None, "", ":memory:")


class Database:
    """Owned engine + session factory for one ledger data file."""

    def __init__(self, url: str, *, echo: bool = False) -> None:
        self.url = url
        if _is_sqlite_memory(url):
            # One shared connection, otherwise each checkout sees an empty DB
            engine = create_engine(
                url,
                echo=echo,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            engine = create_engine(url, echo=echo, pool_pre_ping=True)
        if _is_sqlite(url):
            event.listen(engine, "connect", _on_sqlite_connect)
        self.engine: Engine = engine
        self._session_maker: sessionmaker[Session] = sessionmaker(
            bind=engine, expire_on_commit=False, class_=Session
        )

    @classmethod
    def open(cls, url: str, *, migrate: bool = True, echo: bool = False) -> Database:
        """Create a handle and bring the schema up to date.

        Opening an older data file upgrades it in place; see
        :func:`ledger_db.migrate.upgrade`.
        """

        db = cls(url, echo=echo)
        if migrate:
            from .migrate import upgrade  # local import: alembic is only needed here

            upgrade(db.engine)
        return db

    def session(self) -> Session:
        """Return a new session bound to this database's engine."""

        return self._session_maker()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Provide a transactional scope around a series of operations."""

        session = self.session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()


def _on_sqlite_connect(dbapi_conn, _record) -> None:  # pragma: no cover - tiny bridge
    cursor = dbapi_conn.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.execute("PRAGMA journal_mode = WAL")
    finally:
        cursor.close()


__all__ = [
    "Database",
    "sqlite_url",
]
