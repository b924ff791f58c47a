from decimal import Decimal

import pytest
from sqlalchemy import text

from household_ledger import api
from household_ledger.catalog import normalize_name, validate_name
from household_ledger.errors import (
    DeleteBlockedError,
    DuplicateNameError,
    LedgerStorageError,
    LedgerValidationError,
    NotFoundError,
)


def test_normalize_and_validate_name():
    assert normalize_name("  Credit   Card ") == "Credit Card"
    assert validate_name("   ").ok is False
    assert validate_name("x" * 65).ok is False
    assert validate_name("Alimentação").ok is True


def test_create_and_list_accounts(db):
    created = api.add_account(
        db, {"name": " Nubank ", "initialBalance": "250.50", "isCreditCard": True}
    )
    assert created["name"] == "Nubank"
    assert created["initial_balance"] == Decimal("250.50")
    assert created["is_credit_card"] is True

    api.add_account(db, {"name": "Checking"})
    assert [a["name"] for a in api.list_accounts(db)] == ["Checking", "Nubank"]


def test_duplicate_account_name_is_rejected_case_insensitively(db):
    api.add_account(db, {"name": "Checking"})
    with pytest.raises(DuplicateNameError):
        api.add_account(db, {"name": "checking"})


def test_same_category_name_allowed_for_each_type(db):
    api.add_category(db, {"name": "Other", "type": "expense"})
    api.add_category(db, {"name": "Other", "type": "revenue"})
    with pytest.raises(DuplicateNameError):
        api.add_category(db, {"name": "OTHER", "type": "expense"})


def test_category_defaults(db):
    expense = api.add_category(
        db, {"name": "Health", "subgroups": ["Gym", ' ["Pharmacy"] ', "Gym", ""]}
    )
    assert expense["type"] == "expense"
    assert expense["subgroups"] == ["Gym", "Pharmacy"]
    assert expense["color"] == "#ef4444"

    revenue = api.add_category(db, {"name": "Salary", "type": "revenue", "subgroups": ["x"]})
    assert revenue["subgroups"] == []
    assert revenue["color"] is None


def test_delete_account_blocked_while_referenced(db, refs):
    for day in ("2024-01-05", "2024-02-05"):
        api.record_expense(
            db,
            {
                "description": "Gym",
                "amount": "89.90",
                "settlementDate": day,
                "categoryId": refs["health"],
                "accountId": refs["checking"],
            },
        )

    with pytest.raises(DeleteBlockedError) as exc:
        api.remove_account(db, refs["checking"])
    assert exc.value.blocking_count == 2

    with pytest.raises(DeleteBlockedError) as exc:
        api.remove_category(db, refs["health"])
    assert exc.value.blocking_count == 2

    # Unused items delete fine
    api.remove_account(db, refs["card"])
    api.remove_category(db, refs["food"])
    assert {a["id"] for a in api.list_accounts(db)} == {refs["checking"]}


def test_delete_category_drops_its_checklist_entries(db, refs):
    api.configure_checklist(db, {"categoryId": refs["food"], "subgroupName": "Groceries"})
    api.remove_category(db, refs["food"])
    assert api.list_checklist(db) == []


def test_delete_unknown_items(db):
    with pytest.raises(NotFoundError):
        api.remove_account(db, 999)
    with pytest.raises(NotFoundError):
        api.remove_category(db, 999)


def test_update_category_type_blocked_while_referenced(db, refs):
    api.record_expense(
        db,
        {
            "description": "Rent",
            "amount": "1200",
            "settlementDate": "2024-01-01",
            "categoryId": refs["housing"],
        },
    )
    with pytest.raises(LedgerValidationError) as exc:
        api.edit_category(db, refs["housing"], {"name": "Housing", "type": "revenue"})
    assert exc.value.field == "type"

    renamed = api.edit_category(
        db, refs["housing"], {"name": "Home", "subgroups": ["Rent"], "color": "#000000"}
    )
    assert renamed["name"] == "Home"
    assert renamed["color"] == "#000000"


def test_invalid_category_type_names_the_field(db):
    with pytest.raises(LedgerValidationError) as exc:
        api.add_category(db, {"name": "Misc", "type": "transfer"})
    assert exc.value.field == "type"


def test_storage_failure_on_catalog_write_is_a_ledger_error(db, refs):
    with db.engine.begin() as conn:
        conn.execute(text("DROP TABLE checklist"))

    with pytest.raises(LedgerStorageError):
        api.remove_category(db, refs["food"])
    # Rolled back: the category is still there
    assert "Food" in {c["name"] for c in api.list_categories(db)}
