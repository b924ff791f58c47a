from datetime import date
from decimal import Decimal

import pytest

from household_ledger import api
from household_ledger.errors import LedgerValidationError
from household_ledger.reports import (
    NO_SUBGROUP_LABEL,
    ReportingAggregator,
    months_between,
    trailing_months,
)


@pytest.fixture()
def ledger(db, refs):
    """A quarter of household activity.

    - Salary 5000 in Jan, Feb and Mar.
    - Rent 1500 each month (Housing/Rent).
    - A 600 TV bought on 2024-01-20, paid in 3 installments from February.
    - Gym 90 in February and groceries without a subgroup in March.
    """

    for month in (1, 2, 3):
        api.record_revenue(
            db,
            {
                "description": "Salary",
                "amount": "5000",
                "settlementDate": f"2024-{month:02d}-05",
                "categoryId": refs["salary"],
            },
        )
        api.record_expense(
            db,
            {
                "description": "Rent",
                "amount": "1500",
                "settlementDate": f"2024-{month:02d}-01",
                "categoryId": refs["housing"],
                "subgroup": "Rent",
            },
        )
    api.record_expense(
        db,
        {
            "description": "TV",
            "amount": "600",
            "settlementDate": "2024-02-10",
            "purchaseDate": "2024-01-20",
            "categoryId": refs["housing"],
            "subgroup": "Furniture",
            "isInstallment": True,
            "installmentCount": 3,
        },
    )
    api.record_expense(
        db,
        {
            "description": "Gym",
            "amount": "90",
            "settlementDate": "2024-02-15",
            "categoryId": refs["health"],
            "subgroup": "Gym",
        },
    )
    api.record_expense(
        db,
        {
            "description": "Groceries",
            "amount": "410.25",
            "settlementDate": "2024-03-18",
            "categoryId": refs["food"],
        },
    )
    return refs


def _report(db, **payload):
    base = {"rangeStart": "2024-01-01", "rangeEnd": "2024-03-31"}
    base.update(payload)
    return api.build_report(db, base)


def test_months_between_and_trailing_months():
    assert months_between(date(2023, 11, 15), date(2024, 2, 1)) == [
        "2023-11",
        "2023-12",
        "2024-01",
        "2024-02",
    ]
    assert trailing_months(date(2024, 3, 18), 6) == (date(2023, 10, 1), date(2024, 3, 31))
    assert trailing_months(date(2024, 3, 18), 1) == (date(2024, 3, 1), date(2024, 3, 31))


def test_settlement_axis_trend(db, ledger):
    report = _report(db)
    trend = {p["period"]: p for p in report["trend"]}

    assert list(trend) == ["2024-01", "2024-02", "2024-03"]
    assert trend["2024-01"]["expense"] == Decimal("1500")
    assert trend["2024-02"]["expense"] == Decimal("1790")  # rent + TV 1/3 + gym
    assert trend["2024-03"]["expense"] == Decimal("2110.25")  # rent + TV 2/3 + groceries
    assert {p["revenue"] for p in report["trend"]} == {Decimal("5000")}


def test_purchase_axis_moves_installments_to_purchase_month(db, ledger):
    report = _report(db, axis="purchase")
    trend = {p["period"]: p for p in report["trend"]}

    # All three TV installments fall in January by purchase date
    assert trend["2024-01"]["expense"] == Decimal("2100")
    assert trend["2024-02"]["expense"] == Decimal("1590")
    assert trend["2024-03"]["expense"] == Decimal("1910.25")


def test_views_agree_without_filter(db, ledger):
    for axis in ("settlement", "purchase"):
        report = _report(db, axis=axis)
        summary = report["summary"]
        assert summary["total_expense"] == sum(b["total"] for b in report["breakdown"])
        assert summary["total_expense"] == sum(p["expense"] for p in report["trend"])
        assert summary["total_revenue"] == sum(p["revenue"] for p in report["trend"])
        assert summary["balance"] == summary["total_revenue"] - summary["total_expense"]


def test_breakdown_by_category_sorted_by_total(db, ledger):
    report = _report(db)
    assert [(b["label"], b["total"]) for b in report["breakdown"]] == [
        ("Housing", Decimal("4900")),
        ("Food", Decimal("410.25")),
        ("Health", Decimal("90")),
    ]
    assert report["summary"]["total_expense"] == Decimal("5400.25")
    assert report["summary"]["total_revenue"] == Decimal("15000")


def test_category_filter_switches_breakdown_to_subgroups(db, ledger):
    report = _report(db, categoryId=ledger["housing"])

    assert [(b["label"], b["total"]) for b in report["breakdown"]] == [
        ("Rent", Decimal("4500")),
        ("Furniture", Decimal("400")),
    ]
    # Revenue stays unfiltered; expenses only count the chosen category
    assert report["summary"]["total_revenue"] == Decimal("15000")
    assert report["summary"]["total_expense"] == Decimal("4900")
    assert sum(p["expense"] for p in report["trend"]) == Decimal("4900")


def test_rows_without_subgroup_use_placeholder(db, ledger):
    report = _report(db, categoryId=ledger["food"])
    assert report["breakdown"] == [
        {"label": NO_SUBGROUP_LABEL, "category_id": ledger["food"], "total": Decimal("410.25")}
    ]


def test_empty_months_are_zero_filled(db, ledger):
    report = _report(db, rangeStart="2023-11-01", rangeEnd="2024-01-31")
    trend = {p["period"]: p for p in report["trend"]}
    assert trend["2023-11"] == {"period": "2023-11", "revenue": 0, "expense": 0}
    assert trend["2023-12"]["expense"] == 0


def test_reversed_range_is_rejected(db):
    with pytest.raises(LedgerValidationError) as exc:
        _report(db, rangeStart="2024-03-01", rangeEnd="2024-01-01")
    assert exc.value.field == "rangeEnd"


def test_dashboard(db, ledger):
    dash = ReportingAggregator(db).dashboard(date(2024, 3, 20))

    # 15000 revenue - (4500 rent + 600 TV + 90 gym + 410.25 groceries)
    assert dash["all_time_balance"] == Decimal("9399.75")
    assert dash["month"]["total_expense"] == Decimal("2110.25")
    assert dash["month"]["total_revenue"] == Decimal("5000")
    assert [b["label"] for b in dash["month_breakdown"]] == ["Housing", "Food"]
    assert [p["period"] for p in dash["history"]] == [
        "2023-10",
        "2023-11",
        "2023-12",
        "2024-01",
        "2024-02",
        "2024-03",
    ]


def test_empty_ledger_dashboard(db):
    dash = api.dashboard(db, date(2024, 1, 15))
    assert dash["all_time_balance"] == 0
    assert dash["month_breakdown"] == []
    assert len(dash["history"]) == 6
