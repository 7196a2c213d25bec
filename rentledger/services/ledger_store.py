"""Persistence boundary for contracts, bills, payments and allocation rows.

LedgerStore wraps one AsyncSession. Its methods read and stage writes (flush)
but never commit: the calling service decides where the unit of work ends via
commit() / rollback().
"""

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import desc, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rentledger.errors import ConflictError, NotFoundError
from rentledger.models.bill_ledger import OUTSTANDING_STATUSES, BillLedger, PaymentStatus
from rentledger.models.contract import Contract
from rentledger.models.payment import ApprovalStatus, Payment
from rentledger.models.payment_allocation import PaymentAllocation

logger = logging.getLogger(__name__)


class LedgerStore:
    """Async data access for the billing ledger."""

    def __init__(self, session: AsyncSession):
        """Initialize with async database session."""
        self.session = session

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    # Contracts

    async def find_contract(self, contract_id: int) -> Contract | None:
        result = await self.session.execute(select(Contract).where(Contract.id == contract_id))
        return result.scalar_one_or_none()

    # Bills

    async def find_bill(self, contract_id: int, bill_month: str) -> BillLedger | None:
        result = await self.session.execute(
            select(BillLedger).where(
                (BillLedger.contract_id == contract_id) & (BillLedger.bill_month == bill_month)
            )
        )
        return result.scalar_one_or_none()

    async def list_bills(self, contract_id: int) -> list[BillLedger]:
        """All bills of a contract, oldest month first."""
        result = await self.session.execute(
            select(BillLedger)
            .where(BillLedger.contract_id == contract_id)
            .order_by(BillLedger.bill_month.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_outstanding_bills(
        self, contract_id: int, lock_rows: bool = False
    ) -> list[BillLedger]:
        """Unpaid and partial bills of a contract, oldest month first.

        Rows already in the session's identity map are overwritten with the
        database values, so amounts loaded by an earlier unit of work never leak
        into a new allocation.

        Args:
            contract_id: Contract to read
            lock_rows: Read with SELECT ... FOR UPDATE so concurrent allocators
                on other connections wait for this transaction (no-op on SQLite)
        """
        stmt = (
            select(BillLedger)
            .where(
                (BillLedger.contract_id == contract_id)
                & (BillLedger.payment_status.in_(OUTSTANDING_STATUSES))
            )
            .order_by(BillLedger.bill_month.asc())
            .execution_options(populate_existing=True)
        )
        if lock_rows:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create_bill(self, bill: BillLedger) -> BillLedger:
        """Stage a new bill and flush it.

        Raises:
            ConflictError: If a bill for the same (contract, month) already exists
        """
        self.session.add(bill)
        try:
            await self.session.flush()
        except IntegrityError as e:
            logger.warning(
                "Duplicate bill rejected by storage for contract %d month %s",
                bill.contract_id,
                bill.bill_month,
            )
            raise ConflictError(
                f"Bill for {bill.bill_month} already exists for contract {bill.contract_id}"
            ) from e
        return bill

    async def update_bill_paid_amount(
        self, bill_id: int, new_paid_amount: Decimal, new_status: PaymentStatus
    ) -> None:
        """Set paid amount and status of one bill.

        Raises:
            NotFoundError: If the bill does not exist
        """
        result = await self.session.execute(
            update(BillLedger)
            .where(BillLedger.id == bill_id)
            .values(paid_amount=new_paid_amount, payment_status=new_status)
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount != 1:
            raise NotFoundError(f"Bill {bill_id} not found")

    # Payments

    async def find_payment(self, payment_id: int) -> Payment | None:
        result = await self.session.execute(
            select(Payment)
            .where(Payment.id == payment_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def add_payment(self, payment: Payment) -> Payment:
        self.session.add(payment)
        await self.session.flush()
        return payment

    async def list_approved_payments(self, contract_id: int) -> list[Payment]:
        """Approved payments of a contract, oldest payment date first."""
        result = await self.session.execute(
            select(Payment)
            .where(
                (Payment.contract_id == contract_id)
                & (Payment.status == ApprovalStatus.APPROVED)
            )
            .order_by(Payment.payment_date.asc(), Payment.id.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_contract_payments(
        self,
        contract_id: int,
        status: ApprovalStatus | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Payment], int]:
        """One page of a contract's payments, newest payment date first.

        Args:
            contract_id: Contract to read
            status: Only payments in this review state (all when None)
            offset: Rows to skip
            limit: Maximum rows to return

        Returns:
            (payments on the page, total number of matching payments)
        """
        condition = Payment.contract_id == contract_id
        if status is not None:
            condition = condition & (Payment.status == status)

        total = await self.session.scalar(select(func.count(Payment.id)).where(condition))
        result = await self.session.execute(
            select(Payment)
            .where(condition)
            .order_by(desc(Payment.payment_date), desc(Payment.id))
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all()), total or 0

    async def mark_payment_reviewed(
        self,
        payment_id: int,
        status: ApprovalStatus,
        reviewed_by: int | None,
        reviewed_at: datetime,
    ) -> bool:
        """Move a payment out of pending.

        Only matches a row that is still pending, so of two concurrent reviewers
        exactly one succeeds.

        Returns:
            True if the payment was pending and is now updated
        """
        result = await self.session.execute(
            update(Payment)
            .where((Payment.id == payment_id) & (Payment.status == ApprovalStatus.PENDING))
            .values(status=status, reviewed_by=reviewed_by, reviewed_at=reviewed_at)
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount == 1

    async def link_payment_to_bill(self, payment_id: int, bill_id: int) -> None:
        """Point a payment at the last bill it was applied to.

        Raises:
            NotFoundError: If the payment does not exist
        """
        result = await self.session.execute(
            update(Payment)
            .where(Payment.id == payment_id)
            .values(bill_ledger_id=bill_id)
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount != 1:
            raise NotFoundError(f"Payment {payment_id} not found")

    # Allocation trail

    async def record_allocation(
        self,
        payment_id: int | None,
        bill_id: int,
        bill_month: str,
        allocated: Decimal,
        previous_paid: Decimal,
        new_paid: Decimal,
        status: PaymentStatus,
    ) -> PaymentAllocation:
        allocation = PaymentAllocation(
            payment_id=payment_id,
            bill_ledger_id=bill_id,
            bill_month=bill_month,
            allocated=allocated,
            previous_paid=previous_paid,
            new_paid=new_paid,
            status=status,
        )
        self.session.add(allocation)
        return allocation

    async def list_payment_allocations(self, payment_id: int) -> list[PaymentAllocation]:
        result = await self.session.execute(
            select(PaymentAllocation)
            .where(PaymentAllocation.payment_id == payment_id)
            .order_by(PaymentAllocation.id.asc())
        )
        return list(result.scalars().all())


__all__ = ["LedgerStore"]
