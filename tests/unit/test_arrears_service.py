"""Unit tests for ArrearsCalculator."""

from decimal import Decimal

import pytest

from rentledger.models.bill_ledger import PaymentStatus
from rentledger.services.arrears_service import ArrearsCalculator
from rentledger.services.bill_generator import MonthlyBillGenerator


@pytest.fixture
def generator(store):
    return MonthlyBillGenerator(store)


async def test_rolling_due_over_unpaid_and_partial(store, generator, contract):
    """Jan remaining 70000 and Feb remaining 30000 give rolling [70000, 100000]."""
    await generator.create_monthly_bill(contract.id, "2024-01")
    february = await generator.create_monthly_bill(contract.id, "2024-02")
    await store.update_bill_paid_amount(february.id, Decimal("40000"), PaymentStatus.PARTIAL)
    await store.commit()

    entries = await ArrearsCalculator(store).compute_arrears(contract.id)

    assert [e.bill_month for e in entries] == ["2024-01", "2024-02"]
    assert [e.remaining_amount for e in entries] == [Decimal("70000"), Decimal("30000")]
    assert [e.rolling_due for e in entries] == [Decimal("70000"), Decimal("100000")]


async def test_ordered_by_month_not_creation_order(store, generator, contract):
    for month in ["2024-03", "2023-12", "2024-01"]:
        await generator.create_monthly_bill(contract.id, month)

    entries = await ArrearsCalculator(store).compute_arrears(contract.id)

    assert [e.bill_month for e in entries] == ["2023-12", "2024-01", "2024-03"]


async def test_paid_bills_are_excluded(store, generator, contract):
    january = await generator.create_monthly_bill(contract.id, "2024-01")
    await generator.create_monthly_bill(contract.id, "2024-02")
    await store.update_bill_paid_amount(january.id, Decimal("70000"), PaymentStatus.PAID)
    await store.commit()

    entries = await ArrearsCalculator(store).compute_arrears(contract.id)

    assert [e.bill_month for e in entries] == ["2024-02"]
    assert entries[0].rolling_due == Decimal("70000")


async def test_other_contracts_are_excluded(store, generator, make_contract):
    first = await make_contract()
    second = await make_contract(rent_rate="10")
    await generator.create_monthly_bill(first.id, "2024-01")
    await generator.create_monthly_bill(second.id, "2024-01")

    entries = await ArrearsCalculator(store).compute_arrears(second.id)

    assert len(entries) == 1
    assert entries[0].monthly_total == Decimal("30000")


async def test_rolling_due_is_monotonic(store, generator, contract):
    months = [f"2024-{m:02d}" for m in range(1, 7)]
    for month in months:
        await generator.create_monthly_bill(contract.id, month)

    entries = await ArrearsCalculator(store).compute_arrears(contract.id)

    for previous, current in zip(entries, entries[1:]):
        assert current.rolling_due > previous.rolling_due
    assert entries[-1].rolling_due == sum(e.remaining_amount for e in entries)


async def test_compute_arrears_is_idempotent(store, generator, contract):
    await generator.create_monthly_bill(contract.id, "2024-01")
    await generator.create_monthly_bill(contract.id, "2024-02")
    calculator = ArrearsCalculator(store)

    first = await calculator.compute_arrears(contract.id)
    second = await calculator.compute_arrears(contract.id)

    assert first == second


async def test_no_bills_gives_empty_arrears(store, contract):
    assert await ArrearsCalculator(store).compute_arrears(contract.id) == []


async def test_reflects_latest_mutation(store, generator, contract):
    january = await generator.create_monthly_bill(contract.id, "2024-01")
    calculator = ArrearsCalculator(store)
    before = await calculator.compute_arrears(contract.id)

    await store.update_bill_paid_amount(january.id, Decimal("1000"), PaymentStatus.PARTIAL)
    await store.commit()
    after = await calculator.compute_arrears(contract.id)

    assert before[0].remaining_amount == Decimal("70000")
    assert after[0].remaining_amount == Decimal("69000")
