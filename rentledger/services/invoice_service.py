"""Invoice data for the document renderer.

Rendering (templates, PDF) happens elsewhere; this module only assembles the
numbers printed on an invoice for one contract and month.
"""

import logging
from decimal import Decimal
from typing import NamedTuple

from rentledger.errors import NotFoundError
from rentledger.models.contract import Contract
from rentledger.services.arrears_service import ArrearsCalculator, ArrearsEntry, total_arrears
from rentledger.services.ledger_store import LedgerStore
from rentledger.services.parsers import parse_bill_month

logger = logging.getLogger(__name__)


class CurrentBill(NamedTuple):
    """The invoiced month's bill."""

    bill_id: int
    bill_month: str
    rent_amount: Decimal
    service_amount: Decimal
    monthly_total: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal


class InvoiceSummary(NamedTuple):
    """Invoice figures: current bill, prior arrears and what is due in total."""

    invoice_number: str
    contract: Contract
    current_bill: CurrentBill
    arrears: list[ArrearsEntry]
    total_arrears: Decimal
    grand_total: Decimal


class InvoiceService:
    """Builds invoice summaries from the ledger."""

    def __init__(self, store: LedgerStore):
        self.store = store
        self.arrears = ArrearsCalculator(store)

    async def build_invoice_summary(self, contract_id: int, bill_month: str) -> InvoiceSummary:
        """Collect invoice data for a contract's bill.

        Arrears on the invoice are outstanding bills older than bill_month, so the
        current bill is counted once: grand_total = total_arrears + current remaining.

        Raises:
            ValidationError: If bill_month is malformed
            NotFoundError: If the contract or its bill for bill_month does not exist
        """
        parse_bill_month(bill_month)

        contract = await self.store.find_contract(contract_id)
        if not contract:
            raise NotFoundError(f"Contract {contract_id} not found")

        bill = await self.store.find_bill(contract_id, bill_month)
        if not bill:
            raise NotFoundError(f"Bill for {bill_month} not found")

        arrears = [
            entry
            for entry in await self.arrears.compute_arrears(contract_id)
            if entry.bill_month < bill_month
        ]
        arrears_total = total_arrears(arrears)

        current = CurrentBill(
            bill_id=bill.id,
            bill_month=bill.bill_month,
            rent_amount=bill.rent_amount,
            service_amount=bill.service_amount,
            monthly_total=bill.monthly_total,
            paid_amount=bill.paid_amount,
            remaining_amount=bill.monthly_total - bill.paid_amount,
        )

        logger.debug("Built invoice data for contract %d month %s", contract_id, bill_month)

        return InvoiceSummary(
            invoice_number=f"INV-{contract.contract_number}-{bill_month}",
            contract=contract,
            current_bill=current,
            arrears=arrears,
            total_arrears=arrears_total,
            grand_total=arrears_total + current.remaining_amount,
        )


__all__ = ["CurrentBill", "InvoiceSummary", "InvoiceService"]
