"""Contract ledger view: bills, approved payments, arrears and totals."""

from dataclasses import dataclass, field
from decimal import Decimal

from rentledger.errors import NotFoundError
from rentledger.models.bill_ledger import BillLedger
from rentledger.models.contract import Contract
from rentledger.models.payment import Payment
from rentledger.services.arrears_service import ArrearsCalculator, ArrearsEntry, total_arrears
from rentledger.services.ledger_store import LedgerStore
from rentledger.services.parsers import ZERO


@dataclass
class LedgerSummary:
    """Contract totals. total_outstanding is the sum of remaining amounts over arrears."""

    total_billed: Decimal = ZERO
    total_paid: Decimal = ZERO
    total_outstanding: Decimal = ZERO


@dataclass
class LedgerSnapshot:
    """Everything the ledger screen and reports need for one contract."""

    contract: Contract
    bills: list[BillLedger] = field(default_factory=list)
    payments: list[Payment] = field(default_factory=list)
    arrears: list[ArrearsEntry] = field(default_factory=list)
    summary: LedgerSummary = field(default_factory=LedgerSummary)

    @property
    def total_arrears(self) -> Decimal:
        return self.summary.total_outstanding


class LedgerView:
    """Read-only aggregation over a contract's ledger."""

    def __init__(self, store: LedgerStore):
        self.store = store
        self.arrears = ArrearsCalculator(store)

    async def get_contract_ledger(self, contract_id: int) -> LedgerSnapshot:
        """Assemble the ledger of a contract.

        Raises:
            NotFoundError: If the contract does not exist
        """
        contract = await self.store.find_contract(contract_id)
        if not contract:
            raise NotFoundError(f"Contract {contract_id} not found")

        bills = await self.store.list_bills(contract_id)
        payments = await self.store.list_approved_payments(contract_id)
        arrears = await self.arrears.compute_arrears(contract_id)

        summary = LedgerSummary(
            total_billed=sum((bill.monthly_total for bill in bills), ZERO),
            total_paid=sum((bill.paid_amount for bill in bills), ZERO),
            total_outstanding=total_arrears(arrears),
        )

        return LedgerSnapshot(
            contract=contract,
            bills=bills,
            payments=payments,
            arrears=arrears,
            summary=summary,
        )


__all__ = ["LedgerSummary", "LedgerSnapshot", "LedgerView"]
