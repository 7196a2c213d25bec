"""Unit tests for PaymentAllocator (FIFO allocation)."""

import asyncio
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select

from rentledger.errors import NotFoundError, ValidationError
from rentledger.models.audit_log import AuditLog
from rentledger.models.bill_ledger import PaymentStatus, payment_status_for
from rentledger.models.payment import ApprovalStatus, Payment, PaymentMethod
from rentledger.services.allocation_service import ContractLocks, PaymentAllocator
from rentledger.services.bill_generator import MonthlyBillGenerator


@pytest.fixture
async def two_bills(store, contract):
    """Unpaid bills for 2024-01 and 2024-02, 70000 each."""
    generator = MonthlyBillGenerator(store)
    january = await generator.create_monthly_bill(contract.id, "2024-01")
    february = await generator.create_monthly_bill(contract.id, "2024-02")
    return january, february


@pytest.fixture
async def approved_payment(async_db_session, contract):
    payment = Payment(
        contract_id=contract.id,
        amount=Decimal("100000"),
        payment_date=date(2024, 2, 10),
        payment_method=PaymentMethod.BANK_TRANSFER,
        status=ApprovalStatus.APPROVED,
    )
    async_db_session.add(payment)
    await async_db_session.commit()
    return payment


async def test_partial_second_bill(store, contract, two_bills):
    """100000 pays January in full and 30000 of February."""
    january, february = two_bills

    result = await PaymentAllocator(store).allocate_payment(contract.id, Decimal("100000"))

    assert [(a.bill_month, a.allocated) for a in result.allocations] == [
        ("2024-01", Decimal("70000")),
        ("2024-02", Decimal("30000")),
    ]
    assert result.allocations[0].status == PaymentStatus.PAID
    assert result.allocations[1].status == PaymentStatus.PARTIAL
    assert result.allocations[1].previous_paid == Decimal("0")
    assert result.allocations[1].new_paid == Decimal("30000")
    assert result.fully_allocated is True
    assert result.excess_amount == Decimal("0")

    bills = await store.list_bills(contract.id)
    assert [(b.paid_amount, b.payment_status) for b in bills] == [
        (Decimal("70000"), PaymentStatus.PAID),
        (Decimal("30000"), PaymentStatus.PARTIAL),
    ]


async def test_overpayment_leaves_excess(store, contract, two_bills):
    """200000 settles both bills with 60000 left over."""
    result = await PaymentAllocator(store).allocate_payment(contract.id, Decimal("200000"))

    assert [a.allocated for a in result.allocations] == [Decimal("70000"), Decimal("70000")]
    assert all(a.status == PaymentStatus.PAID for a in result.allocations)
    assert result.excess_amount == Decimal("60000")
    assert result.fully_allocated is False


async def test_no_bills_gives_full_excess(store, contract):
    result = await PaymentAllocator(store).allocate_payment(contract.id, Decimal("5000"))

    assert result.allocations == []
    assert result.excess_amount == Decimal("5000")
    assert result.fully_allocated is False


async def test_zero_payment(store, contract, two_bills):
    result = await PaymentAllocator(store).allocate_payment(contract.id, 0)

    assert result.allocations == []
    assert result.fully_allocated is True
    assert result.excess_amount == Decimal("0")


async def test_continues_partial_bill_first(store, contract, two_bills):
    allocator = PaymentAllocator(store)
    await allocator.allocate_payment(contract.id, Decimal("100000"))

    result = await allocator.allocate_payment(contract.id, Decimal("50000"))

    assert [(a.bill_month, a.allocated, a.previous_paid) for a in result.allocations] == [
        ("2024-02", Decimal("40000"), Decimal("30000")),
    ]
    assert result.excess_amount == Decimal("10000")


@pytest.mark.parametrize("amount", ["0.01", "69999.99", "70000", "70000.01", "139999.99", "140000", "250000"])
async def test_conservation_and_fifo(store, contract, amount):
    generator = MonthlyBillGenerator(store)
    for month in ["2024-01", "2024-02", "2024-03"]:
        await generator.create_monthly_bill(contract.id, month)
    payment = Decimal(amount)

    result = await PaymentAllocator(store).allocate_payment(contract.id, payment)

    assert result.allocated_total + result.excess_amount == payment
    # Every allocation but the last settles its bill: nothing newer is paid while older owes.
    for entry in result.allocations[:-1]:
        assert entry.status == PaymentStatus.PAID
    bills = await store.list_bills(contract.id)
    for older, newer in zip(bills, bills[1:]):
        if newer.paid_amount > 0:
            assert older.payment_status == PaymentStatus.PAID
    for bill in bills:
        assert Decimal("0") <= bill.paid_amount <= bill.monthly_total
        assert bill.payment_status == payment_status_for(bill.paid_amount, bill.monthly_total)


async def test_negative_amount_rejected(store, contract, two_bills):
    with pytest.raises(ValidationError):
        await PaymentAllocator(store).allocate_payment(contract.id, Decimal("-1"))


async def test_sub_cent_amount_rejected(store, contract, two_bills):
    with pytest.raises(ValidationError):
        await PaymentAllocator(store).allocate_payment(contract.id, Decimal("0.001"))


async def test_unknown_contract(store):
    with pytest.raises(NotFoundError):
        await PaymentAllocator(store).allocate_payment(12345, Decimal("100"))


async def test_failure_mid_walk_rolls_back_everything(store, contract, two_bills):
    """If the second bill update fails, the first must not stay updated."""
    contract_id = contract.id
    original_update = store.update_bill_paid_amount
    calls = {"n": 0}

    async def failing_update(bill_id, new_paid_amount, new_status):
        calls["n"] += 1
        if calls["n"] == 2:
            raise RuntimeError("database went away")
        await original_update(bill_id, new_paid_amount, new_status)

    store.update_bill_paid_amount = failing_update

    with pytest.raises(RuntimeError, match="database went away"):
        await PaymentAllocator(store).allocate_payment(contract_id, Decimal("100000"))

    bills = await store.list_bills(contract_id)
    assert [b.paid_amount for b in bills] == [Decimal("0"), Decimal("0")]
    assert [b.payment_status for b in bills] == [PaymentStatus.UNPAID, PaymentStatus.UNPAID]


async def test_unknown_payment_id_leaves_no_trail(store, contract, two_bills):
    contract_id = contract.id

    with pytest.raises(NotFoundError, match="Payment 9999"):
        await PaymentAllocator(store).allocate_payment(
            contract_id, Decimal("100000"), payment_id=9999
        )

    assert await store.list_payment_allocations(9999) == []
    bills = await store.list_bills(contract_id)
    assert [b.paid_amount for b in bills] == [Decimal("0"), Decimal("0")]


async def test_persists_allocation_trail_and_links_payment(
    store, contract, two_bills, approved_payment
):
    january, february = two_bills

    await PaymentAllocator(store).allocate_payment(
        contract.id, approved_payment.amount, payment_id=approved_payment.id
    )

    trail = await store.list_payment_allocations(approved_payment.id)
    assert [(t.bill_ledger_id, t.allocated, t.status) for t in trail] == [
        (january.id, Decimal("70000"), PaymentStatus.PAID),
        (february.id, Decimal("30000"), PaymentStatus.PARTIAL),
    ]

    payment = await store.find_payment(approved_payment.id)
    assert payment.bill_ledger_id == february.id

    result = await store.session.execute(
        select(AuditLog).where((AuditLog.entity_type == "payment") & (AuditLog.action == "allocate"))
    )
    audit = result.scalar_one()
    assert audit.changes["bills"] == ["2024-01", "2024-02"]
    assert audit.changes["excess"] == "0.00"


async def test_concurrent_allocations_are_serialized(store, contract, two_bills):
    """Two payments racing on one contract never allocate the same balance twice."""
    locks = ContractLocks()
    first = PaymentAllocator(store, locks=locks)
    second = PaymentAllocator(store, locks=locks)

    results = await asyncio.gather(
        first.allocate_payment(contract.id, Decimal("100000")),
        second.allocate_payment(contract.id, Decimal("100000")),
    )

    allocated = sum(r.allocated_total for r in results)
    excess = sum(r.excess_amount for r in results)
    assert allocated == Decimal("140000")
    assert excess == Decimal("60000")

    bills = await store.list_bills(contract.id)
    assert all(b.payment_status == PaymentStatus.PAID for b in bills)
    assert all(b.paid_amount == b.monthly_total for b in bills)


def test_contract_locks_reuse_live_lock():
    locks = ContractLocks()
    lock = locks.get(1)
    assert locks.get(1) is lock
    assert locks.get(2) is not lock
