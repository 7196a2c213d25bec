"""Contract ORM model for leased space agreements."""

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentledger.models import Base, BaseModel


class ContractStatus(str, Enum):
    """Contract lifecycle status."""

    ACTIVE = "active"
    """Contract is billable"""

    INACTIVE = "inactive"
    """Contract is suspended, no new bills"""

    TERMINATED = "terminated"
    """Contract has ended"""


class Contract(Base, BaseModel):
    """Model representing a lease agreement for a space.

    Rent and service charge rates are per square foot per month. Monthly bills are
    computed from the rates current at bill creation time; changing a rate never
    touches bills that already exist.
    """

    __tablename__ = "contracts"

    contract_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        comment="Human-readable contract number (e.g., 'BHTPA-2024-001')",
    )

    space_in_sqft: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Leased area in square feet",
    )

    rent_rate: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Current rent per square foot per month",
    )

    service_charge_rate: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Current service charge per square foot per month",
    )

    status: Mapped[ContractStatus] = mapped_column(
        nullable=False,
        default=ContractStatus.ACTIVE,
        comment="Lifecycle status: active, inactive or terminated",
    )

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Relationships
    bills: Mapped[list["BillLedger"]] = relationship(  # noqa: F821
        "BillLedger",
        back_populates="contract",
        order_by="BillLedger.bill_month",
    )

    payments: Mapped[list["Payment"]] = relationship(  # noqa: F821
        "Payment",
        back_populates="contract",
    )

    __table_args__ = (Index("idx_contract_status", "status"),)

    def __repr__(self) -> str:
        return (
            f"<Contract(id={self.id}, contract_number={self.contract_number!r}, "
            f"space_in_sqft={self.space_in_sqft}, rent_rate={self.rent_rate}, "
            f"service_charge_rate={self.service_charge_rate}, status={self.status})>"
        )


__all__ = ["Contract", "ContractStatus"]
