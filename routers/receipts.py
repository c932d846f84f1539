# routers/receipts.py
"""
Receipt API.

A receipt is written together with its lines and payments; the request is
rejected as a whole when its allocations do not add up or any invoice
cannot take the money.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session, sessionmaker

from database import get_session, get_session_factory
from dependencies import get_org_context
from models.receipt import ReceiptType
from schemas.common import LEDGER_ERROR_RESPONSES, BulkDeleteRequest, DeleteResponse
from schemas.receipt import ReceiptCreate, ReceiptListResponse, ReceiptResponse
from services.receipt_composer import ReceiptComposer
from services.tenancy import OrgContext
from services.transactions import run_atomic

router = APIRouter(prefix="/api/finance/receipts", tags=["receipts"], responses=LEDGER_ERROR_RESPONSES)


@router.post(
     "",
     response_model=ReceiptResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Record a receipt"
)
def create_receipt(
     body: ReceiptCreate,
     ctx: OrgContext = Depends(get_org_context),
     session_factory: sessionmaker = Depends(get_session_factory),
):
     """
     Record money received and apply it to invoices.

     - **receiptLines**: amounts applied per invoice (by invoiceId or invNo)
     - **payments**: ledger entries; invoice-bound ones must match the lines
     - **amountReceived**: must equal the allocated total within 0.01
     """
     def operation(db: Session) -> ReceiptResponse:
          receipt = ReceiptComposer(db, ctx).create(body)
          return ReceiptResponse.model_validate(receipt)

     return run_atomic(session_factory, operation)


@router.get("", response_model=ReceiptListResponse, summary="List receipts")
def list_receipts(
     receipt_type: Optional[ReceiptType] = Query(None, alias="receiptType"),
     lessee_id: Optional[str] = Query(None, alias="lesseeId"),
     page: int = Query(1, ge=1),
     page_size: int = Query(50, ge=1, le=100, alias="pageSize"),
     db: Session = Depends(get_session),
     ctx: OrgContext = Depends(get_org_context),
):
     receipts, total = ReceiptComposer(db, ctx).list(
          receipt_type=receipt_type, lessee_id=lessee_id, page=page, page_size=page_size
     )
     return ReceiptListResponse(
          receipts=[ReceiptResponse.model_validate(r) for r in receipts],
          total=total,
          page=page,
          page_size=page_size,
     )


@router.post("/bulk-delete", response_model=DeleteResponse, summary="Delete several receipts")
def bulk_delete_receipts(
     body: BulkDeleteRequest,
     ctx: OrgContext = Depends(get_org_context),
     session_factory: sessionmaker = Depends(get_session_factory),
):
     """Delete receipts and reverse the payments they produced."""
     deleted = run_atomic(session_factory, lambda db: ReceiptComposer(db, ctx).delete_many(body.ids))
     return DeleteResponse(deleted=deleted)


@router.get("/{receipt_id}", response_model=ReceiptResponse, summary="Get receipt by ID")
def get_receipt(
     receipt_id: str,
     db: Session = Depends(get_session),
     ctx: OrgContext = Depends(get_org_context),
):
     return ReceiptResponse.model_validate(ReceiptComposer(db, ctx).get(receipt_id))


@router.delete("/{receipt_id}", response_model=DeleteResponse, summary="Delete receipt")
def delete_receipt(
     receipt_id: str,
     ctx: OrgContext = Depends(get_org_context),
     session_factory: sessionmaker = Depends(get_session_factory),
):
     run_atomic(session_factory, lambda db: ReceiptComposer(db, ctx).delete(receipt_id))
     return DeleteResponse(deleted=1)
