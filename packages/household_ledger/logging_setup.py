"""Process-wide logging for the ledger.

Ledger modules log through ``get_logger("household_ledger.<module>")``; the
storage library logs schema upgrades under ``ledger_db``. Nothing is printed
until an entrypoint calls :func:`configure_logging`, which the CLI does once
from its root callback. Level precedence: explicit argument, then
``HOUSEHOLD_LEDGER_LOG_LEVEL``, then INFO.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

LEVEL_ENV = "HOUSEHOLD_LEDGER_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# Loggers that receive the shared handler.
_OWNED_LOGGERS = ("household_ledger", "ledger_db")
_CONFIGURED = False


def _level_from_name(name: str) -> int | None:
    s = name.strip().upper()
    if s.isdigit():
        return int(s)
    numeric = logging.getLevelName(s)
    return numeric if isinstance(numeric, int) else None


def resolve_level(level: int | str | None = None) -> int:
    """Numeric level for ``level``, falling back to the environment, then INFO.

    Unknown level names fall through to the next source instead of raising.
    """

    if isinstance(level, int):
        return level
    for candidate in (level, os.getenv(LEVEL_ENV)):
        if candidate:
            parsed = _level_from_name(candidate)
            if parsed is not None:
                return parsed
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str = DEFAULT_FORMAT,
    stream: IO[str] = sys.stderr,
) -> None:
    """Send ledger and storage logs to ``stream`` (stderr by default).

    Only the first call has an effect.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    resolved = resolve_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt))

    for name in _OWNED_LOGGERS:
        logger = logging.getLogger(name)
        for h in list(logger.handlers):
            if isinstance(h, logging.NullHandler):
                logger.removeHandler(h)
        logger.setLevel(resolved)
        logger.addHandler(handler)

    # The package logger owns its output; storage records still propagate.
    logging.getLogger("household_ledger").propagate = False
    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Logger for a ledger module; silent until logging is configured."""

    root = logging.getLogger("household_ledger")
    if not _CONFIGURED and not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)
