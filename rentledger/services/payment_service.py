"""Payment service for recording and reviewing tenant payments.

Provides methods for:
- Recording a payment (always starts pending)
- Approving a payment, which allocates it to the contract's arrears
- Rejecting a payment
- Reading a payment with its persisted allocation trail
- Listing a contract's payments page by page
"""

import logging
from datetime import date, datetime, timezone

from rentledger.errors import ConflictError, NotFoundError, ValidationError
from rentledger.models.payment import ApprovalStatus, Payment, PaymentMethod
from rentledger.models.payment_allocation import PaymentAllocation
from rentledger.services.allocation_service import AllocationResult, PaymentAllocator
from rentledger.services.audit_service import AuditService
from rentledger.services.ledger_store import LedgerStore
from rentledger.services.parsers import parse_payment_amount

logger = logging.getLogger(__name__)


class PaymentService:
    """Payment lifecycle: pending -> approved | rejected."""

    def __init__(self, store: LedgerStore, allocator: PaymentAllocator | None = None):
        """Initialize payment service.

        Args:
            store: Ledger store bound to the request's session
            allocator: Allocator to use on approval (default: one over the same store)
        """
        self.store = store
        self.allocator = allocator or PaymentAllocator(store)

    async def record_payment(
        self,
        contract_id: int,
        amount,
        payment_date: date,
        payment_method: PaymentMethod,
        check_number: str | None = None,
    ) -> Payment:
        """Record a pending payment against a contract.

        Raises:
            ValidationError: If the amount is not positive or a cheque has no number
            NotFoundError: If the contract does not exist
        """
        value = parse_payment_amount(amount)
        if value == 0:
            raise ValidationError("Payment amount must be greater than zero")
        if payment_method == PaymentMethod.CHEQUE and not check_number:
            raise ValidationError("check_number is required for cheque payments")

        contract = await self.store.find_contract(contract_id)
        if not contract:
            raise NotFoundError(f"Contract {contract_id} not found")

        payment = Payment(
            contract_id=contract_id,
            amount=value,
            payment_date=payment_date,
            payment_method=payment_method,
            check_number=check_number,
            status=ApprovalStatus.PENDING,
        )
        try:
            await self.store.add_payment(payment)
            await self.store.commit()
        except Exception:
            await self.store.rollback()
            raise

        logger.info(
            "Recorded pending payment %d of %s for contract %d", payment.id, value, contract_id
        )
        return payment

    async def review_payment(
        self,
        payment_id: int,
        decision: ApprovalStatus,
        reviewer_id: int | None = None,
    ) -> tuple[Payment, AllocationResult | None]:
        """Approve or reject a pending payment.

        Approval and the resulting allocation commit together; if allocation fails
        the payment stays pending.

        Args:
            payment_id: Payment to review
            decision: APPROVED or REJECTED
            reviewer_id: User reviewing the payment (optional)

        Returns:
            (payment, allocation result) - the result is None for rejections

        Raises:
            ValidationError: If decision is PENDING
            NotFoundError: If the payment does not exist
            ConflictError: If the payment was already reviewed
        """
        if decision not in (ApprovalStatus.APPROVED, ApprovalStatus.REJECTED):
            raise ValidationError('Status must be either "approved" or "rejected"')

        payment = await self.store.find_payment(payment_id)
        if not payment:
            raise NotFoundError(f"Payment {payment_id} not found")
        if payment.status != ApprovalStatus.PENDING:
            logger.warning("Payment %d already %s", payment_id, payment.status.value)
            raise ConflictError("Only pending payments can be approved or rejected")

        contract_id = payment.contract_id
        amount = payment.amount

        allocation = None
        # The review write and the allocation share the contract lock with
        # direct allocations against the same contract
        async with self.allocator.locks.hold(contract_id):
            try:
                marked = await self.store.mark_payment_reviewed(
                    payment_id, decision, reviewer_id, datetime.now(timezone.utc)
                )
                if not marked:
                    raise ConflictError("Only pending payments can be approved or rejected")
                AuditService.log(
                    self.store.session,
                    "payment",
                    payment_id,
                    "approve" if decision == ApprovalStatus.APPROVED else "reject",
                    actor_id=reviewer_id,
                    changes={"status": decision.value},
                )
            except Exception:
                await self.store.rollback()
                raise

            if decision == ApprovalStatus.APPROVED:
                # Commits the review together with the allocation, or rolls both back
                allocation = await self.allocator.apply_payment(
                    contract_id, amount, payment_id=payment_id, actor_id=reviewer_id
                )
            else:
                try:
                    await self.store.commit()
                except Exception:
                    await self.store.rollback()
                    raise

        logger.info("Payment %d %s", payment_id, decision.value)
        payment = await self.store.find_payment(payment_id)
        return payment, allocation

    async def get_payment(self, payment_id: int) -> tuple[Payment, list[PaymentAllocation]]:
        """A payment together with its persisted allocation trail.

        Raises:
            NotFoundError: If the payment does not exist
        """
        payment = await self.store.find_payment(payment_id)
        if not payment:
            raise NotFoundError(f"Payment {payment_id} not found")
        return payment, await self.store.list_payment_allocations(payment_id)

    async def list_contract_payments(
        self,
        contract_id: int,
        status: ApprovalStatus | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Payment], int]:
        """One page of a contract's payments, newest first.

        Args:
            contract_id: Contract whose payments to list
            status: Optional review state filter
            page: 1-based page number
            limit: Page size

        Returns:
            (payments on the page, total matching payments)

        Raises:
            ValidationError: If page or limit is below 1
            NotFoundError: If the contract does not exist
        """
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be at least 1")
        contract = await self.store.find_contract(contract_id)
        if not contract:
            raise NotFoundError(f"Contract {contract_id} not found")
        return await self.store.list_contract_payments(
            contract_id, status=status, offset=(page - 1) * limit, limit=limit
        )

    async def get_payment_allocations(self, payment_id: int) -> list[PaymentAllocation]:
        """Persisted allocation trail of a payment, in allocation order.

        Raises:
            NotFoundError: If the payment does not exist
        """
        _, allocations = await self.get_payment(payment_id)
        return allocations


__all__ = ["PaymentService"]
