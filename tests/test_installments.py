from datetime import date
from decimal import Decimal

import pytest

from household_ledger.errors import LedgerValidationError
from household_ledger.installments import description_root, expand_expense, split_amount
from household_ledger.models import LedgerWriteRequest


def _request(**overrides):
    payload = {
        "description": "Internet",
        "amount": "300.00",
        "settlementDate": "2024-01-10",
        "categoryId": 1,
    }
    payload.update(overrides)
    return LedgerWriteRequest.model_validate(payload)


def test_single_payment_yields_one_row():
    rows = expand_expense(_request(subgroup='["Internet"]', purchaseDate="02/01/2024"))

    assert len(rows) == 1
    row = rows[0]
    assert row.installment_number == 1
    assert row.installment_total == 1
    assert row.installment_group_id is None
    assert row.is_installment is False
    assert row.amount == Decimal("300.00")
    assert row.description == "Internet"
    assert row.subgroup == "Internet"
    assert row.purchase_date == date(2024, 1, 2)


def test_three_installments_share_group_and_step_monthly():
    rows = expand_expense(
        _request(isInstallment=True, installmentCount=3), group_id_factory=lambda: "g-1"
    )

    assert [r.settlement_date for r in rows] == [
        date(2024, 1, 10),
        date(2024, 2, 10),
        date(2024, 3, 10),
    ]
    assert {r.installment_group_id for r in rows} == {"g-1"}
    assert [r.installment_number for r in rows] == [1, 2, 3]
    assert {r.installment_total for r in rows} == {3}
    assert [r.amount for r in rows] == [Decimal("100.00")] * 3
    # Purchase date defaults to the first settlement date on every row
    assert {r.purchase_date for r in rows} == {date(2024, 1, 10)}
    assert [r.description for r in rows] == ["[1/3] Internet", "[2/3] Internet", "[3/3] Internet"]
    assert {description_root(r.description) for r in rows} == {"Internet"}


def test_explicit_purchase_date_is_kept_on_every_row():
    rows = expand_expense(
        _request(isInstallment=True, installmentCount=2, purchaseDate="2023-12-20")
    )
    assert {r.purchase_date for r in rows} == {date(2023, 12, 20)}


def test_month_end_clamps_and_recovers():
    rows = expand_expense(
        _request(settlementDate="2024-01-31", isInstallment=True, installmentCount=4)
    )
    assert [r.settlement_date for r in rows] == [
        date(2024, 1, 31),
        date(2024, 2, 29),
        date(2024, 3, 31),
        date(2024, 4, 30),
    ]


def test_month_end_from_a_28_day_february():
    rows = expand_expense(
        _request(settlementDate="2023-01-31", isInstallment=True, installmentCount=3)
    )
    assert [r.settlement_date for r in rows] == [
        date(2023, 1, 31),
        date(2023, 2, 28),
        date(2023, 3, 31),
    ]


def test_three_installments_from_the_fifth():
    rows = expand_expense(
        _request(
            settlementDate="2024-01-05",
            purchaseDate="2024-01-05",
            isInstallment=True,
            installmentCount=3,
        )
    )
    assert [r.settlement_date for r in rows] == [
        date(2024, 1, 5),
        date(2024, 2, 5),
        date(2024, 3, 5),
    ]
    assert [r.amount for r in rows] == [Decimal("100.00")] * 3
    assert [r.purchase_date for r in rows] == [date(2024, 1, 5)] * 3
    assert len({r.installment_group_id for r in rows}) == 1


def test_installments_cross_year_boundary():
    rows = expand_expense(
        _request(settlementDate="2024-11-15", isInstallment=True, installmentCount=3)
    )
    assert [r.settlement_date for r in rows][-1] == date(2025, 1, 15)


def test_remainder_goes_to_last_installment():
    rows = expand_expense(_request(amount="100", isInstallment=True, installmentCount=3))
    assert [r.amount for r in rows] == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
    assert sum(r.amount for r in rows) == Decimal("100.00")


@pytest.mark.parametrize(
    ("total", "periods"),
    [("0.05", 2), ("1000", 7), ("89.90", 12), ("0.12", 12)],
)
def test_split_amount_resums_exactly(total, periods):
    parts = split_amount(Decimal(total), periods)
    assert len(parts) == periods
    assert sum(parts) == Decimal(total)
    assert all(p >= Decimal("0.01") for p in parts)


def test_split_amount_rejects_sub_cent_installments():
    with pytest.raises(LedgerValidationError) as exc:
        split_amount(Decimal("0.05"), 6)
    assert exc.value.field == "amount"


def test_each_expansion_gets_a_fresh_group_id():
    a = expand_expense(_request(isInstallment=True, installmentCount=2))
    b = expand_expense(_request(isInstallment=True, installmentCount=2))
    assert a[0].installment_group_id
    assert a[0].installment_group_id != b[0].installment_group_id


def test_revenue_never_carries_a_subgroup():
    rows = expand_expense(_request(type="revenue", subgroup="Bonus"))
    assert len(rows) == 1
    assert rows[0].subgroup is None


def test_description_root_accepts_legacy_prefix():
    assert description_root("[Parc 2/10] TV") == "TV"
    assert description_root("[2/10] TV") == "TV"
    assert description_root("TV [1/2]") == "TV [1/2]"
