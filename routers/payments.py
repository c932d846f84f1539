# routers/payments.py
"""
Payment API.

POST /api/finance/payments records a single payment and reconciles its
invoice in the same transaction. Payments produced by a receipt can only be
removed by deleting that receipt.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session, sessionmaker

from database import get_session, get_session_factory
from dependencies import get_org_context
from schemas.common import LEDGER_ERROR_RESPONSES, BulkDeleteRequest, DeleteResponse
from schemas.payment import PaymentCreate, PaymentListResponse, PaymentResponse
from services.payment_recorder import PaymentRecorder
from services.tenancy import OrgContext
from services.transactions import run_atomic

router = APIRouter(prefix="/api/finance/payments", tags=["payments"], responses=LEDGER_ERROR_RESPONSES)


@router.post(
     "",
     response_model=PaymentResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Record a payment"
)
def record_payment(
     body: PaymentCreate,
     ctx: OrgContext = Depends(get_org_context),
     session_factory: sessionmaker = Depends(get_session_factory),
):
     """
     Record a payment.

     - **invoiceId**: invoice to settle; its balance and status are recomputed
     - **currency**: defaults to the invoice currency and must match it
     - **amount**: may not exceed the invoice's outstanding balance
     """
     def operation(db: Session) -> PaymentResponse:
          payment = PaymentRecorder(db, ctx).record(body)
          return PaymentResponse.model_validate(payment)

     return run_atomic(session_factory, operation)


@router.get("", response_model=PaymentListResponse, summary="List payments")
def list_payments(
     invoice_id: Optional[str] = Query(None, alias="invoiceId", description="Filter by invoice ID"),
     receipt_id: Optional[str] = Query(None, alias="receiptId", description="Filter by receipt ID"),
     page: int = Query(1, ge=1),
     page_size: int = Query(50, ge=1, le=100, alias="pageSize"),
     db: Session = Depends(get_session),
     ctx: OrgContext = Depends(get_org_context),
):
     payments, total = PaymentRecorder(db, ctx).list(
          invoice_id=invoice_id, receipt_id=receipt_id, page=page, page_size=page_size
     )
     return PaymentListResponse(
          payments=[PaymentResponse.model_validate(p) for p in payments],
          total=total,
          page=page,
          page_size=page_size,
     )


@router.post("/bulk-delete", response_model=DeleteResponse, summary="Delete several payments")
def bulk_delete_payments(
     body: BulkDeleteRequest,
     ctx: OrgContext = Depends(get_org_context),
     session_factory: sessionmaker = Depends(get_session_factory),
):
     deleted = run_atomic(session_factory, lambda db: PaymentRecorder(db, ctx).delete_many(body.ids))
     return DeleteResponse(deleted=deleted)


@router.get("/{payment_id}", response_model=PaymentResponse, summary="Get payment by ID")
def get_payment(
     payment_id: str,
     db: Session = Depends(get_session),
     ctx: OrgContext = Depends(get_org_context),
):
     return PaymentResponse.model_validate(PaymentRecorder(db, ctx).get(payment_id))


@router.delete("/{payment_id}", response_model=DeleteResponse, summary="Delete payment")
def delete_payment(
     payment_id: str,
     ctx: OrgContext = Depends(get_org_context),
     session_factory: sessionmaker = Depends(get_session_factory),
):
     """Delete a directly recorded payment and reconcile its invoice."""
     run_atomic(session_factory, lambda db: PaymentRecorder(db, ctx).delete(payment_id))
     return DeleteResponse(deleted=1)
