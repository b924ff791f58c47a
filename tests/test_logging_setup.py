import logging

import pytest

from household_ledger.logging_setup import LEVEL_ENV, get_logger, resolve_level


def test_explicit_level_wins(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv(LEVEL_ENV, "ERROR")
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(logging.WARNING) == logging.WARNING
    assert resolve_level("15") == 15


def test_environment_then_default(monkeypatch: pytest.MonkeyPatch):
    assert resolve_level(None) == logging.INFO
    monkeypatch.setenv(LEVEL_ENV, "warning")
    assert resolve_level(None) == logging.WARNING
    # Unknown names fall through to the next source
    assert resolve_level("loud") == logging.WARNING


def test_get_logger_returns_named_child():
    assert get_logger("household_ledger.ledger").name == "household_ledger.ledger"
