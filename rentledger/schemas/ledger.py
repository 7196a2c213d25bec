"""Pydantic schemas for bills, payments, allocations, ledgers and invoices."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from rentledger.models.bill_ledger import PaymentStatus
from rentledger.models.payment import ApprovalStatus, PaymentMethod


class CreateBillPayload(BaseModel):
    """Request payload for POST /api/bills."""

    contract_id: int = Field(..., description="Contract to bill")
    bill_month: str = Field(..., description="Billing month, YYYY-MM")


class BillResponse(BaseModel):
    """A bill ledger row."""

    id: int
    contract_id: int
    bill_month: str
    rent_amount: Decimal
    service_amount: Decimal
    monthly_total: Decimal
    paid_amount: Decimal
    payment_status: PaymentStatus

    model_config = ConfigDict(from_attributes=True)


class RecordPaymentPayload(BaseModel):
    """Request payload for POST /api/payments."""

    contract_id: int
    amount: Decimal = Field(..., description="Payment amount, at most two decimals")
    payment_date: date
    payment_method: PaymentMethod
    check_number: str | None = Field(None, description="Required for cheque payments")


class ReviewPaymentPayload(BaseModel):
    """Request payload for POST /api/payments/{payment_id}/review."""

    status: ApprovalStatus = Field(..., description="approved or rejected")
    reviewer_id: int | None = Field(None, description="User reviewing the payment")


class PaymentResponse(BaseModel):
    """A payment row."""

    id: int
    contract_id: int
    amount: Decimal
    payment_date: date
    payment_method: PaymentMethod
    check_number: str | None = None
    status: ApprovalStatus
    reviewed_by: int | None = None
    reviewed_at: datetime | None = None
    bill_ledger_id: int | None = None

    model_config = ConfigDict(from_attributes=True)


class AllocationEntryResponse(BaseModel):
    """Portion of a payment applied to one bill."""

    bill_id: int
    bill_month: str
    allocated: Decimal
    previous_paid: Decimal
    new_paid: Decimal
    status: PaymentStatus

    model_config = ConfigDict(from_attributes=True)


class AllocationResponse(BaseModel):
    """Outcome of allocating a payment."""

    allocations: list[AllocationEntryResponse]
    fully_allocated: bool
    excess_amount: Decimal


class ReviewPaymentResponse(BaseModel):
    """Reviewed payment plus its allocation when approved."""

    payment: PaymentResponse
    allocation: AllocationResponse | None = None


class ArrearsEntryResponse(BaseModel):
    """One outstanding bill with its rolling due."""

    bill_id: int
    bill_month: str
    rent_amount: Decimal
    service_amount: Decimal
    monthly_total: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    rolling_due: Decimal

    model_config = ConfigDict(from_attributes=True)


class LedgerSummaryResponse(BaseModel):
    total_billed: Decimal
    total_paid: Decimal
    total_outstanding: Decimal

    model_config = ConfigDict(from_attributes=True)


class LedgerResponse(BaseModel):
    """Contract ledger snapshot."""

    contract_id: int
    contract_number: str
    bills: list[BillResponse]
    payments: list[PaymentResponse]
    arrears: list[ArrearsEntryResponse]
    total_arrears: Decimal
    summary: LedgerSummaryResponse


class CurrentBillResponse(BaseModel):
    bill_id: int
    bill_month: str
    rent_amount: Decimal
    service_amount: Decimal
    monthly_total: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal

    model_config = ConfigDict(from_attributes=True)


class InvoiceResponse(BaseModel):
    """Figures printed on an invoice."""

    invoice_number: str
    contract_id: int
    contract_number: str
    space_in_sqft: Decimal
    rent_rate: Decimal
    service_charge_rate: Decimal
    current_bill: CurrentBillResponse
    arrears: list[ArrearsEntryResponse]
    total_arrears: Decimal
    grand_total: Decimal


class PaymentAllocationResponse(BaseModel):
    """A persisted allocation trail row."""

    id: int
    payment_id: int | None = None
    bill_ledger_id: int
    bill_month: str
    allocated: Decimal
    previous_paid: Decimal
    new_paid: Decimal
    status: PaymentStatus

    model_config = ConfigDict(from_attributes=True)


class PaymentDetailResponse(BaseModel):
    """A payment with every bill it was applied to."""

    payment: PaymentResponse
    allocations: list[PaymentAllocationResponse]


class PaginationResponse(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class PaymentListResponse(BaseModel):
    """One page of a contract's payments, newest first."""

    payments: list[PaymentResponse]
    pagination: PaginationResponse
