# ruff: noqa: I001
"""CLI for the ``household_ledger`` package.

This module exposes callable command handlers (``cmd_*``) and a Typer-based
console interface. Environment variables (``LEDGER_DATABASE_URL``,
``LEDGER_DB_PATH``, ``HOUSEHOLD_LEDGER_LOG_LEVEL``) are loaded from a local
``.env`` using ``python-dotenv`` before delegating to command logic. Business
logic lives in ``household_ledger.api``.

Every command prints its result as JSON on stdout. Ledger errors (validation,
not found, blocked deletes, storage failures) are printed to stderr and the
command exits with status 1.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Any

import typer
from dotenv import load_dotenv

from ledger_db.client import Database
from ledger_db.migrate import current_revision

from . import api
from .config import resolve_database_url
from .errors import LedgerError, LedgerValidationError
from .logging_setup import configure_logging
from .models import to_jsonable
from .normalizers import parse_date
from .reports import trailing_months


# ---- Small module-level helpers used by CLI commands -------------------------


def _echo_json(value: Any) -> None:
    typer.echo(json.dumps(to_jsonable(value), indent=2, ensure_ascii=False))


def _run(database_url: str | None, action: Callable[[Database], Any]) -> int:
    """Open the ledger, run ``action`` and print its result.

    Returns the process exit code: ``0`` on success, ``1`` on a ledger error.
    """

    db = Database.open(resolve_database_url(database_url))
    try:
        result = action(db)
    except LedgerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        db.dispose()
    _echo_json(result)
    return 0


def _reference_day(value: str | None) -> date:
    if not value:
        return date.today()
    try:
        return parse_date(value)
    except ValueError as exc:
        raise LedgerValidationError("today", str(exc)) from None


def _compact(payload: dict[str, Any]) -> dict[str, Any]:
    """Drop options the user did not pass."""

    return {k: v for k, v in payload.items() if v is not None}


# ---- Command handlers --------------------------------------------------------


def cmd_init(database_url: str | None = None) -> int:
    """Create or upgrade the ledger data file and report its schema revision."""

    url = resolve_database_url(database_url)
    db = Database.open(url)
    try:
        revision = current_revision(db.engine)
    finally:
        db.dispose()
    _echo_json({"database_url": url, "revision": revision})
    return 0


def cmd_add_expense(payload: dict[str, Any], *, database_url: str | None = None) -> int:
    return _run(database_url, lambda db: api.record_expense(db, payload))


def cmd_add_revenue(payload: dict[str, Any], *, database_url: str | None = None) -> int:
    return _run(database_url, lambda db: api.record_revenue(db, payload))


def cmd_report(payload: dict[str, Any], *, database_url: str | None = None) -> int:
    return _run(database_url, lambda db: api.build_report(db, payload))


def cmd_checklist_status(year: int, month: int, *, database_url: str | None = None) -> int:
    return _run(
        database_url, lambda db: api.checklist_status(db, {"year": year, "month": month})
    )


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Household ledger: record income and expenses (with installments), "
        "reconcile the monthly checklist and print reports as JSON. "
        "Loads LEDGER_DATABASE_URL / LEDGER_DB_PATH from a local .env before running."
    ),
)


@app.command("init")
def init_cmd(
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override LEDGER_DATABASE_URL / LEDGER_DB_PATH."
    ),
) -> None:
    """Create the ledger data file, or upgrade an older one in place."""

    raise typer.Exit(cmd_init(database_url))


@app.command("add-expense")
def add_expense_cmd(
    description: str = typer.Option(..., help="What was bought."),
    amount: str = typer.Option(..., help="Total amount, e.g. 89.90 (installments split it)."),
    settlement_date: str = typer.Option(
        ..., "--date", help="Settlement date, YYYY-MM-DD or DD/MM/YYYY."
    ),
    category_id: int = typer.Option(..., "--category-id", help="Category id."),
    purchase_date: str | None = typer.Option(
        None, "--purchase-date", help="Purchase date (defaults to the settlement date)."
    ),
    account_id: int | None = typer.Option(None, "--account-id", help="Paying account id."),
    subgroup: str | None = typer.Option(None, help="Subgroup label within the category."),
    installments: int = typer.Option(
        1, min=1, help="Number of monthly installments (1 = single payment)."
    ),
    fixed: bool = typer.Option(False, "--fixed", help="Mark as a fixed/recurring expense."),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override LEDGER_DATABASE_URL / LEDGER_DB_PATH."
    ),
) -> None:
    """Record an expense, split into monthly installments when requested."""

    payload = _compact(
        {
            "description": description,
            "amount": amount,
            "settlementDate": settlement_date,
            "purchaseDate": purchase_date,
            "accountId": account_id,
            "categoryId": category_id,
            "subgroup": subgroup,
            "isFixed": fixed,
            "isInstallment": installments > 1,
            "installmentCount": installments if installments > 1 else None,
        }
    )
    raise typer.Exit(cmd_add_expense(payload, database_url=database_url))


@app.command("add-revenue")
def add_revenue_cmd(
    description: str = typer.Option(..., help="Source of the income."),
    amount: str = typer.Option(..., help="Amount received, e.g. 4500.00."),
    settlement_date: str = typer.Option(
        ..., "--date", help="Settlement date, YYYY-MM-DD or DD/MM/YYYY."
    ),
    category_id: int = typer.Option(..., "--category-id", help="Category id."),
    account_id: int | None = typer.Option(None, "--account-id", help="Receiving account id."),
    fixed: bool = typer.Option(False, "--fixed", help="Mark as fixed/recurring income."),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override LEDGER_DATABASE_URL / LEDGER_DB_PATH."
    ),
) -> None:
    """Record a revenue entry."""

    payload = _compact(
        {
            "description": description,
            "amount": amount,
            "settlementDate": settlement_date,
            "accountId": account_id,
            "categoryId": category_id,
            "isFixed": fixed,
        }
    )
    raise typer.Exit(cmd_add_revenue(payload, database_url=database_url))


@app.command("list")
def list_cmd(
    entry_type: str = typer.Option("all", "--type", help="all, expense or revenue."),
    start: str | None = typer.Option(None, help="First settlement date to include."),
    end: str | None = typer.Option(None, help="Last settlement date to include."),
    category_id: int | None = typer.Option(None, "--category-id", help="Only this category."),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override LEDGER_DATABASE_URL / LEDGER_DB_PATH."
    ),
) -> None:
    """List ledger rows, newest settlement date first."""

    payload = _compact(
        {"type": entry_type, "rangeStart": start, "rangeEnd": end, "categoryId": category_id}
    )
    raise typer.Exit(_run(database_url, lambda db: api.read_ledger(db, payload)))


@app.command("edit")
def edit_cmd(
    row_id: int = typer.Argument(..., help="Ledger row id."),
    description: str | None = typer.Option(None),
    amount: str | None = typer.Option(None),
    settlement_date: str | None = typer.Option(None, "--date"),
    purchase_date: str | None = typer.Option(None, "--purchase-date"),
    account_id: int | None = typer.Option(None, "--account-id"),
    no_account: bool = typer.Option(
        False, "--no-account", help="Detach the row from its account."
    ),
    category_id: int | None = typer.Option(None, "--category-id"),
    subgroup: str | None = typer.Option(None),
    fixed: bool | None = typer.Option(None, "--fixed/--not-fixed"),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override LEDGER_DATABASE_URL / LEDGER_DB_PATH."
    ),
) -> None:
    """Edit one ledger row. Other installments of the same group are not changed."""

    payload = _compact(
        {
            "description": description,
            "amount": amount,
            "settlementDate": settlement_date,
            "purchaseDate": purchase_date,
            "accountId": account_id,
            "categoryId": category_id,
            "subgroup": subgroup,
            "isFixed": fixed,
        }
    )
    if no_account:
        payload["accountId"] = None
    raise typer.Exit(_run(database_url, lambda db: api.edit_entry(db, row_id, payload)))


@app.command("delete")
def delete_cmd(
    row_id: int | None = typer.Argument(None, help="Ledger row id."),
    group: str | None = typer.Option(
        None, "--group", help="Delete every row of this installment group instead."
    ),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override LEDGER_DATABASE_URL / LEDGER_DB_PATH."
    ),
) -> None:
    """Delete one ledger row or a whole installment group."""

    raise typer.Exit(
        _run(
            database_url,
            lambda db: {"deleted": api.delete_entry(db, row_id, group_id=group)},
        )
    )


@app.command("report")
def report_cmd(
    start: str | None = typer.Option(None, help="Range start date."),
    end: str | None = typer.Option(None, help="Range end date."),
    months: int | None = typer.Option(
        None, min=1, help="Use the last N calendar months instead of --start/--end."
    ),
    axis: str = typer.Option("settlement", help="settlement or purchase."),
    category_id: int | None = typer.Option(None, "--category-id", help="Filter expenses."),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override LEDGER_DATABASE_URL / LEDGER_DB_PATH."
    ),
) -> None:
    """Print trend, breakdown and summary for a date range."""

    if months is not None:
        range_start, range_end = trailing_months(date.today(), months)
        start, end = range_start.isoformat(), range_end.isoformat()
    payload = _compact(
        {"rangeStart": start, "rangeEnd": end, "axis": axis, "categoryId": category_id}
    )
    raise typer.Exit(cmd_report(payload, database_url=database_url))


@app.command("dashboard")
def dashboard_cmd(
    today: str | None = typer.Option(None, help="Reference day (defaults to today)."),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override LEDGER_DATABASE_URL / LEDGER_DB_PATH."
    ),
) -> None:
    """Print the all-time balance, the current month and a six-month trend."""

    raise typer.Exit(
        _run(database_url, lambda db: api.dashboard(db, _reference_day(today)))
    )


@app.command("checklist-status")
def checklist_status_cmd(
    year: int | None = typer.Option(None, help="Year (defaults to the current one)."),
    month: int | None = typer.Option(None, help="Month 1-12 (defaults to the current one)."),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override LEDGER_DATABASE_URL / LEDGER_DB_PATH."
    ),
) -> None:
    """Show which checklist items are paid or pending for a month."""

    today = date.today()
    raise typer.Exit(
        cmd_checklist_status(
            year or today.year, month or today.month, database_url=database_url
        )
    )


@app.command("checklist-toggle")
def checklist_toggle_cmd(
    category_id: int = typer.Option(..., "--category-id", help="Category id."),
    subgroup: str = typer.Option(..., help="Subgroup label to expect each month."),
    off: bool = typer.Option(False, "--off", help="Remove the item instead of adding it."),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override LEDGER_DATABASE_URL / LEDGER_DB_PATH."
    ),
) -> None:
    """Add or remove an expected monthly item."""

    payload = {"categoryId": category_id, "subgroupName": subgroup, "active": not off}
    raise typer.Exit(
        _run(database_url, lambda db: {"changed": api.configure_checklist(db, payload)})
    )


@app.command("checklist-config")
def checklist_config_cmd(
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override LEDGER_DATABASE_URL / LEDGER_DB_PATH."
    ),
) -> None:
    """List the configured checklist items."""

    raise typer.Exit(_run(database_url, api.list_checklist))


@app.command("accounts")
def accounts_cmd(
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override LEDGER_DATABASE_URL / LEDGER_DB_PATH."
    ),
) -> None:
    """List accounts."""

    raise typer.Exit(_run(database_url, api.list_accounts))


@app.command("categories")
def categories_cmd(
    cat_type: str | None = typer.Option(None, "--type", help="expense or revenue."),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override LEDGER_DATABASE_URL / LEDGER_DB_PATH."
    ),
) -> None:
    """List categories."""

    raise typer.Exit(_run(database_url, lambda db: api.list_categories(db, cat_type)))


@app.command("add-account")
def add_account_cmd(
    name: str = typer.Option(...),
    initial_balance: str = typer.Option("0", "--initial-balance"),
    credit_card: bool = typer.Option(False, "--credit-card"),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override LEDGER_DATABASE_URL / LEDGER_DB_PATH."
    ),
) -> None:
    """Create an account."""

    payload = {"name": name, "initialBalance": initial_balance, "isCreditCard": credit_card}
    raise typer.Exit(_run(database_url, lambda db: api.add_account(db, payload)))


@app.command("add-category")
def add_category_cmd(
    name: str = typer.Option(...),
    cat_type: str = typer.Option("expense", "--type", help="expense or revenue."),
    subgroup: list[str] | None = typer.Option(
        None, "--subgroup", help="Subgroup label (repeatable)."
    ),
    fixed: bool = typer.Option(False, "--fixed"),
    color: str | None = typer.Option(None, help="Display color, e.g. #ef4444."),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override LEDGER_DATABASE_URL / LEDGER_DB_PATH."
    ),
) -> None:
    """Create a category."""

    payload = _compact(
        {
            "name": name,
            "type": cat_type,
            "subgroups": subgroup or [],
            "isFixed": fixed,
            "color": color,
        }
    )
    raise typer.Exit(_run(database_url, lambda db: api.add_category(db, payload)))


@app.command("delete-account")
def delete_account_cmd(
    account_id: int = typer.Argument(...),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override LEDGER_DATABASE_URL / LEDGER_DB_PATH."
    ),
) -> None:
    """Delete an account (refused while ledger rows use it)."""

    def action(db: Database) -> dict[str, int]:
        api.remove_account(db, account_id)
        return {"deleted": account_id}

    raise typer.Exit(_run(database_url, action))


@app.command("delete-category")
def delete_category_cmd(
    category_id: int = typer.Argument(...),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override LEDGER_DATABASE_URL / LEDGER_DB_PATH."
    ),
) -> None:
    """Delete a category (refused while ledger rows use it)."""

    def action(db: Database) -> dict[str, int]:
        api.remove_category(db, category_id)
        return {"deleted": category_id}

    raise typer.Exit(_run(database_url, action))


@app.callback()
def _root(
    log_level: str | None = typer.Option(
        None, "--log-level", help="Override HOUSEHOLD_LEDGER_LOG_LEVEL."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging once.
    """

    # Load environment from .env in CWD (override=False to keep existing env)
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging(log_level)


if __name__ == "__main__":  # pragma: no cover - exercised via the console script
    # Running as a module: `python -m household_ledger.cli`
    app()
