"""Ledger API routes: bills, payments, ledger and invoice data.

Handlers only translate between HTTP and the services. Typed ledger errors are
turned into responses by the application's LedgerError handler.
"""

import logging
import math

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rentledger.api import get_session
from rentledger.errors import NotFoundError
from rentledger.models.payment import ApprovalStatus
from rentledger.schemas.ledger import (
    AllocationEntryResponse,
    AllocationResponse,
    ArrearsEntryResponse,
    BillResponse,
    CreateBillPayload,
    CurrentBillResponse,
    InvoiceResponse,
    LedgerResponse,
    LedgerSummaryResponse,
    PaginationResponse,
    PaymentAllocationResponse,
    PaymentDetailResponse,
    PaymentListResponse,
    PaymentResponse,
    RecordPaymentPayload,
    ReviewPaymentPayload,
    ReviewPaymentResponse,
)
from rentledger.services.arrears_service import ArrearsCalculator
from rentledger.services.bill_generator import MonthlyBillGenerator
from rentledger.services.invoice_service import InvoiceService
from rentledger.services.ledger_store import LedgerStore
from rentledger.services.ledger_view import LedgerView
from rentledger.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["ledger"])


@router.post("/bills", response_model=BillResponse, status_code=status.HTTP_201_CREATED)
async def create_bill(
    payload: CreateBillPayload, session: AsyncSession = Depends(get_session)
) -> BillResponse:
    """
    Create the monthly bill of a contract.

    Returns:
        201: Created bill
        400: Malformed bill_month
        404: Contract not found
        409: Bill already exists or contract not active
    """
    generator = MonthlyBillGenerator(LedgerStore(session))
    bill = await generator.create_monthly_bill(payload.contract_id, payload.bill_month)
    return BillResponse.model_validate(bill)


@router.get("/contracts/{contract_id}/ledger", response_model=LedgerResponse)
async def get_ledger(contract_id: int, session: AsyncSession = Depends(get_session)) -> LedgerResponse:
    """Return bills, approved payments, arrears and totals of a contract."""
    snapshot = await LedgerView(LedgerStore(session)).get_contract_ledger(contract_id)
    return LedgerResponse(
        contract_id=snapshot.contract.id,
        contract_number=snapshot.contract.contract_number,
        bills=[BillResponse.model_validate(bill) for bill in snapshot.bills],
        payments=[PaymentResponse.model_validate(payment) for payment in snapshot.payments],
        arrears=[ArrearsEntryResponse(**entry._asdict()) for entry in snapshot.arrears],
        total_arrears=snapshot.total_arrears,
        summary=LedgerSummaryResponse.model_validate(snapshot.summary),
    )


@router.get("/contracts/{contract_id}/arrears", response_model=list[ArrearsEntryResponse])
async def get_arrears(
    contract_id: int, session: AsyncSession = Depends(get_session)
) -> list[ArrearsEntryResponse]:
    """
    Return the FIFO arrears timeline of a contract.

    Returns:
        200: Outstanding bills, oldest first (empty when nothing is owed)
        404: Contract not found
    """
    store = LedgerStore(session)
    if not await store.find_contract(contract_id):
        raise NotFoundError(f"Contract {contract_id} not found")
    entries = await ArrearsCalculator(store).compute_arrears(contract_id)
    return [ArrearsEntryResponse(**entry._asdict()) for entry in entries]


@router.post("/payments", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(
    payload: RecordPaymentPayload, session: AsyncSession = Depends(get_session)
) -> PaymentResponse:
    """
    Record a payment awaiting approval.

    Returns:
        201: Pending payment
        400: Invalid amount or missing cheque number
        404: Contract not found
    """
    payment = await PaymentService(LedgerStore(session)).record_payment(
        contract_id=payload.contract_id,
        amount=payload.amount,
        payment_date=payload.payment_date,
        payment_method=payload.payment_method,
        check_number=payload.check_number,
    )
    return PaymentResponse.model_validate(payment)


@router.post("/payments/{payment_id}/review", response_model=ReviewPaymentResponse)
async def review_payment(
    payment_id: int,
    payload: ReviewPaymentPayload,
    session: AsyncSession = Depends(get_session),
) -> ReviewPaymentResponse:
    """
    Approve or reject a pending payment. Approval allocates it to arrears.

    Returns:
        200: Reviewed payment (+ allocation when approved)
        400: Status is not approved/rejected
        404: Payment not found
        409: Payment already reviewed
    """
    payment, allocation = await PaymentService(LedgerStore(session)).review_payment(
        payment_id, payload.status, reviewer_id=payload.reviewer_id
    )
    allocation_response = None
    if allocation is not None:
        allocation_response = AllocationResponse(
            allocations=[
                AllocationEntryResponse(**entry._asdict()) for entry in allocation.allocations
            ],
            fully_allocated=allocation.fully_allocated,
            excess_amount=allocation.excess_amount,
        )
    return ReviewPaymentResponse(
        payment=PaymentResponse.model_validate(payment),
        allocation=allocation_response,
    )


@router.get("/payments/{payment_id}", response_model=PaymentDetailResponse)
async def get_payment(
    payment_id: int, session: AsyncSession = Depends(get_session)
) -> PaymentDetailResponse:
    """
    Return a payment with its allocation trail.

    Returns:
        200: Payment and the bills it was applied to, in allocation order
        404: Payment not found
    """
    payment, allocations = await PaymentService(LedgerStore(session)).get_payment(payment_id)
    return PaymentDetailResponse(
        payment=PaymentResponse.model_validate(payment),
        allocations=[PaymentAllocationResponse.model_validate(row) for row in allocations],
    )


@router.get("/contracts/{contract_id}/payments", response_model=PaymentListResponse)
async def list_contract_payments(
    contract_id: int,
    status_filter: ApprovalStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
) -> PaymentListResponse:
    """
    List a contract's payments, newest payment date first.

    Returns:
        200: One page of payments plus pagination totals
        400: Invalid status, page or limit
        404: Contract not found
    """
    payments, total = await PaymentService(LedgerStore(session)).list_contract_payments(
        contract_id, status=status_filter, page=page, limit=limit
    )
    return PaymentListResponse(
        payments=[PaymentResponse.model_validate(payment) for payment in payments],
        pagination=PaginationResponse(
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit),
        ),
    )


@router.get("/contracts/{contract_id}/invoices/{bill_month}", response_model=InvoiceResponse)
async def get_invoice(
    contract_id: int, bill_month: str, session: AsyncSession = Depends(get_session)
) -> InvoiceResponse:
    """Return the figures for a contract's invoice of one month."""
    summary = await InvoiceService(LedgerStore(session)).build_invoice_summary(
        contract_id, bill_month
    )
    return InvoiceResponse(
        invoice_number=summary.invoice_number,
        contract_id=summary.contract.id,
        contract_number=summary.contract.contract_number,
        space_in_sqft=summary.contract.space_in_sqft,
        rent_rate=summary.contract.rent_rate,
        service_charge_rate=summary.contract.service_charge_rate,
        current_bill=CurrentBillResponse(**summary.current_bill._asdict()),
        arrears=[ArrearsEntryResponse(**entry._asdict()) for entry in summary.arrears],
        total_arrears=summary.total_arrears,
        grand_total=summary.grand_total,
    )
