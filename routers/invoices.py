# routers/invoices.py
"""
Invoice API routes.

Every route is scoped to the caller's organization (see dependencies.py).
Writes run through run_atomic so a serialization failure replays the whole
operation; reads use a plain request session.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session, sessionmaker

from database import get_session, get_session_factory
from dependencies import get_org_context
from models import Invoice
from models.invoice import InvoiceStatus
from schemas.common import LEDGER_ERROR_RESPONSES, BulkDeleteRequest, DeleteResponse
from schemas.invoice import (
     InvoiceCreate,
     InvoiceResponse,
     InvoiceListResponse,
     RefreshStatusResponse,
)
from services.invoice_ledger import InvoiceLedger
from services.tenancy import OrgContext
from services.transactions import run_atomic

router = APIRouter(prefix="/api/finance/invoices", tags=["invoices"], responses=LEDGER_ERROR_RESPONSES)


@router.post(
     "",
     response_model=InvoiceResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Issue a new invoice"
)
def create_invoice(
     invoice_data: InvoiceCreate,
     ctx: OrgContext = Depends(get_org_context),
     session_factory: sessionmaker = Depends(get_session_factory),
):
     """
     Issue an invoice with its items.

     - **invoiceNumber**: generated as INV-YYYYMM-NNNN when omitted
     - **totalAmount**: must equal amount + vatAmount
     - **status**: PENDING (default) or DRAFT
     - **paidAmount** / **balanceAmount**: derived by the ledger
     """
     def operation(db: Session) -> InvoiceResponse:
          invoice = InvoiceLedger(db, ctx).issue(invoice_data)
          return _build_invoice_response(invoice)

     return run_atomic(session_factory, operation)


@router.get(
     "",
     response_model=InvoiceListResponse,
     summary="List invoices"
)
def list_invoices(
     status: Optional[InvoiceStatus] = Query(None, description="Filter by status"),
     lease_id: Optional[str] = Query(None, alias="leaseId", description="Filter by lease ID"),
     page: int = Query(1, ge=1, description="Page number"),
     page_size: int = Query(50, ge=1, le=100, alias="pageSize", description="Items per page"),
     db: Session = Depends(get_session),
     ctx: OrgContext = Depends(get_org_context),
):
     invoices, total = InvoiceLedger(db, ctx).list(
          status=status, lease_id=lease_id, page=page, page_size=page_size
     )
     return InvoiceListResponse(
          invoices=[_build_invoice_response(inv) for inv in invoices],
          total=total,
          page=page,
          page_size=page_size
     )


@router.post(
     "/refresh-status",
     response_model=RefreshStatusResponse,
     summary="Mark overdue invoices"
)
def refresh_invoice_status(
     ctx: OrgContext = Depends(get_org_context),
     session_factory: sessionmaker = Depends(get_session_factory),
):
     """
     Move PENDING invoices past their due date to OVERDUE.

     Intended to be called by a scheduled job once a day.
     """
     updated = run_atomic(session_factory, lambda db: InvoiceLedger(db, ctx).refresh_overdue())
     return RefreshStatusResponse(updated=updated)


@router.post(
     "/bulk-delete",
     response_model=DeleteResponse,
     summary="Delete several invoices"
)
def bulk_delete_invoices(
     body: BulkDeleteRequest,
     ctx: OrgContext = Depends(get_org_context),
     session_factory: sessionmaker = Depends(get_session_factory),
):
     """Delete invoices without payments. Nothing is deleted if any one is refused."""
     deleted = run_atomic(session_factory, lambda db: InvoiceLedger(db, ctx).delete_many(body.ids))
     return DeleteResponse(deleted=deleted)


@router.get(
     "/{invoice_id}",
     response_model=InvoiceResponse,
     summary="Get invoice by ID"
)
def get_invoice(
     invoice_id: str,
     db: Session = Depends(get_session),
     ctx: OrgContext = Depends(get_org_context),
):
     """Retrieve an invoice with its items and payments."""
     invoice = InvoiceLedger(db, ctx).get(invoice_id)
     return _build_invoice_response(invoice, include_payments=True)


@router.post(
     "/{invoice_id}/cancel",
     response_model=InvoiceResponse,
     summary="Cancel invoice"
)
def cancel_invoice(
     invoice_id: str,
     ctx: OrgContext = Depends(get_org_context),
     session_factory: sessionmaker = Depends(get_session_factory),
):
     """
     Cancel a DRAFT, PENDING or PARTIALLY_PAID invoice.

     Payments already recorded are kept.
     """
     def operation(db: Session) -> InvoiceResponse:
          invoice = InvoiceLedger(db, ctx).cancel(invoice_id)
          return _build_invoice_response(invoice, include_payments=True)

     return run_atomic(session_factory, operation)


@router.delete(
     "/{invoice_id}",
     response_model=DeleteResponse,
     summary="Delete invoice"
)
def delete_invoice(
     invoice_id: str,
     ctx: OrgContext = Depends(get_org_context),
     session_factory: sessionmaker = Depends(get_session_factory),
):
     """
     Delete an invoice by ID.

     Refused while payments or receipt lines reference the invoice.
     """
     run_atomic(session_factory, lambda db: InvoiceLedger(db, ctx).delete(invoice_id))
     return DeleteResponse(deleted=1)


def _build_invoice_response(invoice: Invoice, include_payments: bool = False) -> InvoiceResponse:
     """
     Helper function to build InvoiceResponse with related data.
     Must be called while the invoice's session is still open.
     """
     response = InvoiceResponse.model_validate(invoice)
     if not include_payments:
          response.payments = None

     lease = invoice.lease
     if lease is not None:
          response.unit_label = lease.unit_label
          if lease.lessee is not None:
               response.lessee_name = lease.lessee.full_name
     if invoice.landlord is not None:
          response.landlord_name = invoice.landlord.name

     return response
