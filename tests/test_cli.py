import json
import sqlite3
from pathlib import Path

import pytest
from typer.testing import CliRunner

from household_ledger.cli import app

runner = CliRunner()


@pytest.fixture()
def ledger_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "cli-ledger.db"
    monkeypatch.setenv("LEDGER_DB_PATH", str(path))
    return path


def _invoke(*args: str):
    return runner.invoke(app, list(args))


def _json(result):
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def test_init_creates_file_at_head(ledger_env: Path):
    out = _json(_invoke("init"))
    assert out["revision"] == "0005_normalize_legacy_values"
    assert ledger_env.exists()


def test_expense_workflow(ledger_env: Path):
    account = _json(_invoke("add-account", "--name", "Visa", "--credit-card"))
    category = _json(
        _invoke("add-category", "--name", "Housing", "--subgroup", "Internet", "--subgroup", "Rent")
    )
    assert category["subgroups"] == ["Internet", "Rent"]

    written = _json(
        _invoke(
            "add-expense",
            "--description",
            "Internet",
            "--amount",
            "300",
            "--date",
            "10/01/2024",
            "--category-id",
            str(category["id"]),
            "--account-id",
            str(account["id"]),
            "--subgroup",
            "Internet",
            "--installments",
            "3",
        )
    )
    assert written["count"] == 3
    assert written["group_id"]

    rows = _json(_invoke("list", "--type", "expense"))
    assert [r["settlement_date"] for r in rows] == ["2024-03-10", "2024-02-10", "2024-01-10"]
    assert {r["account_name"] for r in rows} == {"Visa"}

    report = _json(_invoke("report", "--start", "2024-01-01", "--end", "2024-03-31"))
    assert report["summary"]["total_expense"] == 300.0
    assert report["breakdown"] == [
        {"label": "Housing", "category_id": category["id"], "total": 300.0}
    ]

    deleted = _json(_invoke("delete", "--group", written["group_id"]))
    assert deleted == {"deleted": 3}
    assert _json(_invoke("list")) == []


def test_checklist_commands(ledger_env: Path):
    category = _json(_invoke("add-category", "--name", "Health", "--subgroup", "Gym"))
    cid = str(category["id"])

    assert _json(_invoke("checklist-toggle", "--category-id", cid, "--subgroup", "Gym")) == {
        "changed": True
    }
    assert _json(_invoke("checklist-config")) == [
        {"category_id": category["id"], "subgroup_name": "Gym", "category_name": "Health"}
    ]

    _json(
        _invoke(
            "add-expense",
            "--description",
            "Gym",
            "--amount",
            "89.90",
            "--date",
            "2024-03-05",
            "--category-id",
            cid,
            "--subgroup",
            "Gym",
        )
    )
    [status] = _json(_invoke("checklist-status", "--year", "2024", "--month", "3"))
    assert status["status"] == "paid"
    assert status["amount"] == 89.9
    assert status["date"] == "2024-03-05"

    [status] = _json(_invoke("checklist-status", "--year", "2024", "--month", "4"))
    assert status["status"] == "pending"


def test_validation_error_exits_1(ledger_env: Path):
    category = _json(_invoke("add-category", "--name", "Food"))
    result = _invoke(
        "add-expense",
        "--description",
        "Lunch",
        "--amount",
        "0",
        "--date",
        "2024-01-01",
        "--category-id",
        str(category["id"]),
    )
    assert result.exit_code == 1
    assert "amount" in result.output


def test_blocked_delete_exits_1(ledger_env: Path):
    category = _json(_invoke("add-category", "--name", "Salary", "--type", "revenue"))
    _json(
        _invoke(
            "add-revenue",
            "--description",
            "Salary",
            "--amount",
            "4500",
            "--date",
            "2024-01-05",
            "--category-id",
            str(category["id"]),
        )
    )
    result = _invoke("delete-category", str(category["id"]))
    assert result.exit_code == 1
    assert "1 ledger row(s)" in result.output


def test_edit_and_dashboard(ledger_env: Path):
    category = _json(_invoke("add-category", "--name", "Food"))
    [row_id] = _json(
        _invoke(
            "add-expense",
            "--description",
            "Groceries",
            "--amount",
            "120",
            "--date",
            "2024-03-02",
            "--category-id",
            str(category["id"]),
        )
    )["ids"]

    edited = _json(_invoke("edit", str(row_id), "--amount", "99.5", "--fixed"))
    assert edited["amount"] == 99.5
    assert edited["is_fixed"] is True

    dash = _json(_invoke("dashboard", "--today", "2024-03-15"))
    assert dash["all_time_balance"] == -99.5
    assert dash["month"]["total_expense"] == 99.5
    assert len(dash["history"]) == 6


def test_database_url_option_overrides_env(tmp_path: Path, ledger_env: Path):
    other = tmp_path / "other.db"
    _json(_invoke("init", "--database-url", f"sqlite+pysqlite:///{other}"))
    assert other.exists()
    assert not ledger_env.exists()


def test_bad_reference_day_exits_1(ledger_env: Path):
    result = _invoke("dashboard", "--today", "garbage")
    assert result.exit_code == 1
    assert "today" in result.output


def test_storage_failure_exits_1(ledger_env: Path):
    _json(_invoke("init"))
    conn = sqlite3.connect(ledger_env)
    try:
        conn.execute("DROP TABLE transactions")
        conn.commit()
    finally:
        conn.close()

    result = _invoke("delete", "1")
    assert result.exit_code == 1
    assert "Error:" in result.output
