"""Payment ORM model for tenant remittances against a contract."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, DateTime, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentledger.models import Base, BaseModel


class ApprovalStatus(str, Enum):
    """Review state of a payment. Terminal once not pending."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentMethod(str, Enum):
    """How the tenant paid."""

    CASH = "cash"
    CHEQUE = "cheque"
    BANK_TRANSFER = "bank_transfer"
    MOBILE_BANKING = "mobile_banking"


class Payment(Base, BaseModel):
    """Model representing a tenant payment.

    Recorded as pending, then approved or rejected once. Approved payments are
    allocated to the contract's outstanding bills; the full breakdown lives in
    payment_allocations, bill_ledger_id only points at the last bill touched.
    """

    __tablename__ = "payments"

    # Foreign keys
    contract_id: Mapped[int] = mapped_column(
        ForeignKey("contracts.id"),
        nullable=False,
        index=True,
        comment="Contract the payment is made against",
    )
    bill_ledger_id: Mapped[int | None] = mapped_column(
        ForeignKey("bill_ledgers.id"),
        nullable=True,
        comment="Last bill this payment was applied to",
    )

    # Payment details
    amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
        comment="Payment amount",
    )
    payment_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        index=True,
        comment="Date of payment",
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(nullable=False)
    check_number: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        comment="Cheque number when paid by cheque",
    )

    # Review
    status: Mapped[ApprovalStatus] = mapped_column(
        nullable=False,
        default=ApprovalStatus.PENDING,
    )
    reviewed_by: Mapped[int | None] = mapped_column(
        nullable=True,
        comment="User who approved or rejected the payment",
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    contract: Mapped["Contract"] = relationship(  # noqa: F821
        "Contract",
        back_populates="payments",
        foreign_keys=[contract_id],
    )
    allocations: Mapped[list["PaymentAllocation"]] = relationship(  # noqa: F821
        "PaymentAllocation",
        back_populates="payment",
        order_by="PaymentAllocation.id",
    )

    # Indexes for common queries
    __table_args__ = (Index("idx_payment_contract_status_date", "contract_id", "status", "payment_date"),)

    def __repr__(self) -> str:
        return (
            f"<Payment(id={self.id}, contract_id={self.contract_id}, amount={self.amount}, "
            f"payment_date={self.payment_date}, status={self.status})>"
        )


__all__ = ["Payment", "ApprovalStatus", "PaymentMethod"]
