"""Rolling arrears calculation for a contract.

Arrears are the contract's unpaid and partial bills, oldest month first. Each
entry carries the bill's remaining amount and the running total of remaining
amounts up to and including that bill (rolling due). That ordering is the FIFO
order payments are allocated in.
"""

from decimal import Decimal
from typing import Iterable, Iterator, NamedTuple

from rentledger.models.bill_ledger import BillLedger
from rentledger.services.ledger_store import LedgerStore
from rentledger.services.parsers import ZERO


class ArrearsEntry(NamedTuple):
    """One outstanding bill in the arrears timeline."""

    bill_id: int
    bill_month: str
    rent_amount: Decimal
    service_amount: Decimal
    monthly_total: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    rolling_due: Decimal


def iter_rolling_arrears(bills: Iterable[BillLedger]) -> Iterator[ArrearsEntry]:
    """Yield arrears entries with a running cumulative due.

    Bills must already be outstanding and sorted by bill_month ascending.
    """
    rolling_due = ZERO
    for bill in bills:
        remaining = bill.monthly_total - bill.paid_amount
        rolling_due += remaining
        yield ArrearsEntry(
            bill_id=bill.id,
            bill_month=bill.bill_month,
            rent_amount=bill.rent_amount,
            service_amount=bill.service_amount,
            monthly_total=bill.monthly_total,
            paid_amount=bill.paid_amount,
            remaining_amount=remaining,
            rolling_due=rolling_due,
        )


def total_arrears(entries: Iterable[ArrearsEntry]) -> Decimal:
    return sum((entry.remaining_amount for entry in entries), ZERO)


class ArrearsCalculator:
    """Read-only arrears view over the ledger store. Recomputed on every call."""

    def __init__(self, store: LedgerStore):
        self.store = store

    async def compute_arrears(self, contract_id: int, lock_rows: bool = False) -> list[ArrearsEntry]:
        """Return the FIFO-ordered arrears of a contract.

        Args:
            contract_id: Contract to read
            lock_rows: Lock the outstanding bill rows for the current transaction

        Returns:
            Arrears entries ordered by bill_month ascending (empty if nothing is owed)
        """
        bills = await self.store.list_outstanding_bills(contract_id, lock_rows=lock_rows)
        return list(iter_rolling_arrears(bills))


__all__ = ["ArrearsEntry", "ArrearsCalculator", "iter_rolling_arrears", "total_arrears"]
