"""FIFO payment allocation across a contract's arrears.

Algorithm:
1. Read the contract's arrears, oldest month first (rows locked for the transaction)
2. For each bill: allocate min(remaining payment, bill remaining)
3. Update the bill's paid amount and status, record a trail entry
4. Stop when the payment is used up or no arrears are left
5. Link the payment to the last bill touched and commit everything at once

Ensures: sum(allocated) + excess_amount == payment amount (zero money loss/creation).
No bill is paid while an older bill of the same contract still has a balance.
"""

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import AsyncIterator, NamedTuple

from rentledger.errors import NotFoundError
from rentledger.models.bill_ledger import PaymentStatus, payment_status_for
from rentledger.services.arrears_service import ArrearsCalculator
from rentledger.services.audit_service import AuditService
from rentledger.services.ledger_store import LedgerStore
from rentledger.services.parsers import ZERO, parse_payment_amount

logger = logging.getLogger(__name__)


class AllocationEntry(NamedTuple):
    """Portion of a payment applied to one bill."""

    bill_id: int
    bill_month: str
    allocated: Decimal
    previous_paid: Decimal
    new_paid: Decimal
    status: PaymentStatus


class AllocationResult(NamedTuple):
    """Outcome of allocating one payment."""

    allocations: list[AllocationEntry]
    fully_allocated: bool
    excess_amount: Decimal

    @property
    def allocated_total(self) -> Decimal:
        return sum((entry.allocated for entry in self.allocations), ZERO)


class ContractLocks:
    """Per-contract asyncio locks.

    Locks are held weakly: an entry disappears once no coroutine holds or waits
    on it, so the registry does not grow with the number of contracts seen.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def get(self, contract_id: int) -> asyncio.Lock:
        lock = self._locks.get(contract_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[contract_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, contract_id: int) -> AsyncIterator[None]:
        lock = self.get(contract_id)
        async with lock:
            yield


# Shared by every allocator in the process unless one is injected
contract_locks = ContractLocks()


class PaymentAllocator:
    """Applies payments to arrears in FIFO order, one allocation per contract at a time."""

    def __init__(self, store: LedgerStore, locks: ContractLocks | None = None):
        self.store = store
        self.arrears = ArrearsCalculator(store)
        self.locks = locks or contract_locks

    async def allocate_payment(
        self,
        contract_id: int,
        payment_amount,
        payment_id: int | None = None,
        actor_id: int | None = None,
    ) -> AllocationResult:
        """Allocate a payment across the contract's arrears, oldest first.

        Changes staged on the session before the call (e.g. the payment's approval)
        are committed together with the allocation.

        Args:
            contract_id: Contract whose bills receive the payment
            payment_amount: Non-negative amount with at most two decimal places
            payment_id: Approved payment being allocated (optional)
            actor_id: User triggering the allocation (optional, for the audit log)

        Returns:
            AllocationResult with the trail, fully_allocated flag and excess amount

        Raises:
            ValidationError: If the amount is negative or has sub-cent precision
            NotFoundError: If the contract does not exist
        """
        amount = parse_payment_amount(payment_amount)

        async with self.locks.hold(contract_id):
            return await self.apply_payment(contract_id, amount, payment_id, actor_id)

    async def apply_payment(
        self,
        contract_id: int,
        amount: Decimal,
        payment_id: int | None = None,
        actor_id: int | None = None,
    ) -> AllocationResult:
        """Allocate a parsed amount and commit, for callers already holding the contract lock.

        Callers that stage their own writes before allocating (payment review)
        must take ``self.locks.hold(contract_id)`` before the first of those
        writes; otherwise a SQLite writer lock can be held while waiting on the
        contract lock.
        """
        try:
            result = await self._allocate(contract_id, amount, payment_id, actor_id)
            await self.store.commit()
        except Exception:
            logger.error(
                "Allocation of %s to contract %d failed, rolling back",
                amount,
                contract_id,
            )
            await self.store.rollback()
            raise

        logger.info(
            "Allocated %s to contract %d across %d bill(s), excess %s",
            amount - result.excess_amount,
            contract_id,
            len(result.allocations),
            result.excess_amount,
        )
        return result

    async def _allocate(
        self,
        contract_id: int,
        amount: Decimal,
        payment_id: int | None,
        actor_id: int | None,
    ) -> AllocationResult:
        contract = await self.store.find_contract(contract_id)
        if not contract:
            raise NotFoundError(f"Contract {contract_id} not found")

        arrears = await self.arrears.compute_arrears(contract_id, lock_rows=True)

        remaining_payment = amount
        allocations: list[AllocationEntry] = []

        for entry in arrears:
            if remaining_payment <= 0:
                break
            if entry.remaining_amount <= 0:
                continue

            allocated = min(remaining_payment, entry.remaining_amount)
            new_paid = entry.paid_amount + allocated
            new_status = payment_status_for(new_paid, entry.monthly_total)

            await self.store.update_bill_paid_amount(entry.bill_id, new_paid, new_status)
            await self.store.record_allocation(
                payment_id=payment_id,
                bill_id=entry.bill_id,
                bill_month=entry.bill_month,
                allocated=allocated,
                previous_paid=entry.paid_amount,
                new_paid=new_paid,
                status=new_status,
            )

            allocations.append(
                AllocationEntry(
                    bill_id=entry.bill_id,
                    bill_month=entry.bill_month,
                    allocated=allocated,
                    previous_paid=entry.paid_amount,
                    new_paid=new_paid,
                    status=new_status,
                )
            )
            remaining_payment -= allocated

        if payment_id is not None and allocations:
            await self.store.link_payment_to_bill(payment_id, allocations[-1].bill_id)

        result = AllocationResult(
            allocations=allocations,
            fully_allocated=remaining_payment == 0,
            excess_amount=remaining_payment,
        )

        if payment_id is not None:
            AuditService.log(
                self.store.session,
                "payment",
                payment_id,
                "allocate",
                actor_id=actor_id,
                changes={
                    "contract_id": contract_id,
                    "bills": [entry.bill_month for entry in allocations],
                    "allocated": str(result.allocated_total),
                    "excess": str(result.excess_amount),
                },
            )

        return result


__all__ = [
    "AllocationEntry",
    "AllocationResult",
    "ContractLocks",
    "PaymentAllocator",
    "contract_locks",
]
