"""Monthly bill generation from a contract's current rates."""

import logging

from rentledger.errors import ConflictError, NotFoundError, StateError, ValidationError
from rentledger.models.bill_ledger import BillLedger, payment_status_for
from rentledger.models.contract import ContractStatus
from rentledger.services.audit_service import AuditService
from rentledger.services.ledger_store import LedgerStore
from rentledger.services.parsers import ZERO, parse_bill_month, to_money

logger = logging.getLogger(__name__)


class MonthlyBillGenerator:
    """Creates exactly one bill per (contract, month)."""

    def __init__(self, store: LedgerStore):
        self.store = store

    async def create_monthly_bill(
        self,
        contract_id: int,
        bill_month: str,
        actor_id: int | None = None,
    ) -> BillLedger:
        """Create the bill of a contract for one month.

        rent = space x rent_rate and service = space x service_charge_rate, using the
        rates the contract carries right now.

        Args:
            contract_id: Contract to bill
            bill_month: Month in YYYY-MM form
            actor_id: User creating the bill (optional, for the audit log)

        Returns:
            The persisted bill

        Raises:
            ValidationError: If bill_month is malformed or the rates give a negative total
            NotFoundError: If the contract does not exist
            StateError: If the contract is not active
            ConflictError: If a bill for this month already exists
        """
        parse_bill_month(bill_month)

        contract = await self.store.find_contract(contract_id)
        if not contract:
            raise NotFoundError(f"Contract {contract_id} not found")
        if contract.status != ContractStatus.ACTIVE:
            raise StateError(f"Contract {contract.contract_number} is not active")

        existing = await self.store.find_bill(contract_id, bill_month)
        if existing:
            logger.warning("Bill for %s already exists for contract %d", bill_month, contract_id)
            raise ConflictError(f"Bill for {bill_month} already exists")

        rent_amount = to_money(contract.space_in_sqft * contract.rent_rate)
        service_amount = to_money(contract.space_in_sqft * contract.service_charge_rate)
        monthly_total = rent_amount + service_amount
        if rent_amount < 0 or service_amount < 0:
            raise ValidationError(f"Contract {contract.contract_number} has negative rates")

        bill = BillLedger(
            contract_id=contract_id,
            bill_month=bill_month,
            rent_amount=rent_amount,
            service_amount=service_amount,
            monthly_total=monthly_total,
            paid_amount=ZERO,
            payment_status=payment_status_for(ZERO, monthly_total),
        )

        try:
            await self.store.create_bill(bill)
            AuditService.log(
                self.store.session,
                "bill",
                bill.id,
                "create",
                actor_id=actor_id,
                changes={"bill_month": bill_month, "monthly_total": str(monthly_total)},
            )
            await self.store.commit()
        except Exception:
            await self.store.rollback()
            raise

        logger.info(
            "Created bill %s for contract %d: total %s",
            bill_month,
            contract_id,
            monthly_total,
        )
        return bill


__all__ = ["MonthlyBillGenerator"]
