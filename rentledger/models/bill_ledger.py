"""BillLedger ORM model: one bill per contract per calendar month."""

from decimal import Decimal
from enum import Enum

from sqlalchemy import CheckConstraint, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentledger.models import Base, BaseModel


class PaymentStatus(str, Enum):
    """Settlement state of a bill, derived from paid vs total."""

    UNPAID = "unpaid"
    """Nothing paid yet"""

    PARTIAL = "partial"
    """Some but not all of the total paid"""

    PAID = "paid"
    """Fully settled"""


OUTSTANDING_STATUSES = (PaymentStatus.UNPAID, PaymentStatus.PARTIAL)


def payment_status_for(paid_amount: Decimal, monthly_total: Decimal) -> PaymentStatus:
    """Return the status a bill must carry for the given paid amount.

    paid iff paid >= total, partial iff 0 < paid < total, unpaid otherwise.
    """
    if paid_amount >= monthly_total:
        return PaymentStatus.PAID
    if paid_amount > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


class BillLedger(Base, BaseModel):
    """
    Monthly bill for a contract.

    Amounts are fixed at creation from the contract's current rates. Only
    paid_amount and payment_status change afterwards, and only forward, when a
    payment is allocated.
    """

    __tablename__ = "bill_ledgers"

    contract_id: Mapped[int] = mapped_column(
        ForeignKey("contracts.id"),
        nullable=False,
        index=True,
        comment="Contract this bill belongs to",
    )

    bill_month: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        comment="Billing month in YYYY-MM form",
    )

    rent_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    service_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    monthly_total: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
        comment="rent_amount + service_amount",
    )

    paid_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
        default=Decimal("0.00"),
        comment="Amount allocated to this bill so far",
    )

    payment_status: Mapped[PaymentStatus] = mapped_column(
        nullable=False,
        default=PaymentStatus.UNPAID,
        comment="unpaid, partial or paid",
    )

    # Relationships
    contract: Mapped["Contract"] = relationship(  # noqa: F821
        "Contract",
        back_populates="bills",
        foreign_keys=[contract_id],
    )

    __table_args__ = (
        UniqueConstraint("contract_id", "bill_month", name="uq_bill_contract_month"),
        CheckConstraint(
            "paid_amount >= 0 AND paid_amount <= monthly_total",
            name="ck_bill_paid_within_total",
        ),
        Index("idx_bill_contract_status", "contract_id", "payment_status"),
    )

    @property
    def remaining_amount(self) -> Decimal:
        return self.monthly_total - self.paid_amount

    def __repr__(self) -> str:
        return (
            f"<BillLedger(id={self.id}, contract_id={self.contract_id}, "
            f"bill_month={self.bill_month!r}, monthly_total={self.monthly_total}, "
            f"paid_amount={self.paid_amount}, payment_status={self.payment_status})>"
        )


__all__ = ["BillLedger", "PaymentStatus", "OUTSTANDING_STATUSES", "payment_status_for"]
