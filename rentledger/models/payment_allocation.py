"""PaymentAllocation ORM model: the persisted payment-to-bill allocation trail."""

from decimal import Decimal

from sqlalchemy import ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentledger.models import Base, BaseModel
from rentledger.models.bill_ledger import PaymentStatus


class PaymentAllocation(Base, BaseModel):
    """One slice of a payment applied to one bill.

    A payment spread across several months produces one row per bill, in the
    order the bills were settled.
    """

    __tablename__ = "payment_allocations"

    payment_id: Mapped[int | None] = mapped_column(
        ForeignKey("payments.id"),
        nullable=True,
        index=True,
        comment="Payment the amount came from (null for ad-hoc allocations)",
    )
    bill_ledger_id: Mapped[int] = mapped_column(
        ForeignKey("bill_ledgers.id"),
        nullable=False,
        index=True,
    )

    bill_month: Mapped[str] = mapped_column(String(7), nullable=False)
    allocated: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    previous_paid: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    new_paid: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(nullable=False)

    payment: Mapped["Payment | None"] = relationship(  # noqa: F821
        "Payment",
        back_populates="allocations",
        foreign_keys=[payment_id],
    )

    __table_args__ = (Index("idx_allocation_payment_bill", "payment_id", "bill_ledger_id"),)

    def __repr__(self) -> str:
        return (
            f"<PaymentAllocation(id={self.id}, payment_id={self.payment_id}, "
            f"bill_ledger_id={self.bill_ledger_id}, allocated={self.allocated})>"
        )


__all__ = ["PaymentAllocation"]
