# services/invoice_ledger.py
"""
Invoice Ledger - issuance, lookup, cancellation and deletion of invoices.

The ledger owns an invoice's derived figures (paid amount, balance and
status). Other services never write them; they lock the invoice through
the ledger and ask it to reconcile after changing the payment set.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from models import Invoice, InvoiceItem, Landlord, Lease, Payment, ReceiptLine
from models.invoice import CANCELLABLE_STATUSES, InvoiceStatus
from schemas.invoice import InvoiceCreate, InvoiceItemCreate
from services.exceptions import (
     CurrencyMismatchError,
     DependentRecordsError,
     LedgerValidationError,
     NotFoundError,
     OverpaymentError,
)
from services.money import ZERO, amounts_match, money_sum, to_money
from services.numbering import INVOICE_SEQUENCE, DocumentNumberService
from services.reconciliation import InvoiceBalance, reconcile
from services.tenancy import OrgContext, get_scoped, require_context, scoped_query
from services.transactions import for_update

logger = logging.getLogger(__name__)

# Statuses a caller may choose when issuing
ISSUABLE_STATUSES = (InvoiceStatus.PENDING, InvoiceStatus.DRAFT)


class InvoiceLedger:
     """Invoice operations for one organization."""

     def __init__(self, db: Session, ctx: OrgContext, today: Callable[[], date] = date.today):
          self.db = db
          self.ctx = require_context(ctx)
          self._today = today

     # ------------------------------------------------------------------
     # Reads
     # ------------------------------------------------------------------

     def _query(self):
          return scoped_query(self.db, Invoice, self.ctx)

     def get(self, invoice_id: str) -> Invoice:
          return get_scoped(self.db, Invoice, invoice_id, self.ctx)

     def find_by_number(self, invoice_number: str) -> Optional[Invoice]:
          return self._query().filter(Invoice.invoice_number == invoice_number).one_or_none()

     def list(
          self,
          status: Optional[InvoiceStatus] = None,
          lease_id: Optional[str] = None,
          page: int = 1,
          page_size: int = 50,
     ) -> Tuple[List[Invoice], int]:
          """Newest first. Returns (page of invoices, total matching)."""
          query = self._query()
          if status is not None:
               query = query.filter(Invoice.status == status)
          if lease_id:
               query = query.filter(Invoice.lease_id == lease_id)

          total = query.count()
          invoices = (
               query.order_by(Invoice.issue_date.desc(), Invoice.invoice_number.desc())
               .offset((page - 1) * page_size)
               .limit(page_size)
               .all()
          )
          return invoices, total

     # ------------------------------------------------------------------
     # Locking and reconciliation
     # ------------------------------------------------------------------

     def lock(self, invoice_ids: Iterable[str]) -> Dict[str, Invoice]:
          """
          Lock invoices for update, one row at a time in ascending id order.

          Every writer that touches several invoices goes through here, so
          two transactions never wait on each other's rows in opposite order.
          """
          locked = {}
          for invoice_id in sorted(set(invoice_ids)):
               invoice = self.lock_query(invoice_id).one_or_none()
               if invoice is None:
                    raise NotFoundError("Invoice", invoice_id)
               locked[invoice_id] = invoice
          return locked

     def lock_query(self, invoice_id: str):
          """Row-locking read of one invoice of the organization."""
          query = self._query().filter(Invoice.id == invoice_id)
          return for_update(query, Invoice).populate_existing()

     def get_for_update(self, invoice_id: str) -> Invoice:
          return self.lock([invoice_id])[invoice_id]

     def assert_can_apply(self, invoice: Invoice, amount: Decimal, currency: str) -> None:
          """
          Check that ``amount`` in ``currency`` may be applied to a locked invoice.

          Raises:
               LedgerValidationError: invoice is cancelled
               CurrencyMismatchError: currency differs from the invoice's
               OverpaymentError: amount exceeds the outstanding balance
          """
          if invoice.is_cancelled:
               raise LedgerValidationError(
                    f"Invoice {invoice.invoice_number} is cancelled and cannot receive payments",
                    field="invoiceId",
               )
          if currency != invoice.currency:
               raise CurrencyMismatchError(currency, invoice.currency)
          balance = to_money(invoice.balance_amount)
          if to_money(amount) > balance:
               raise OverpaymentError(invoice.invoice_number, to_money(amount), balance)

     def reconcile(self, invoice: Invoice, exclude_payment_ids: Iterable[str] = ()) -> InvoiceBalance:
          """
          Recompute and store paid amount, balance and status of a locked invoice.

          Args:
               invoice: an invoice locked by this transaction
               exclude_payment_ids: payments about to be deleted in this
                    transaction; they no longer count
          """
          self.db.flush()
          excluded = set(exclude_payment_ids)
          payments = [
               payment
               for payment in scoped_query(self.db, Payment, self.ctx)
               .filter(Payment.invoice_id == invoice.id)
               .all()
               if payment.id not in excluded
          ]

          result = reconcile(invoice, payments, self._today())
          if result.balance_amount < ZERO:
               raise OverpaymentError(invoice.invoice_number, result.paid_amount, to_money(invoice.total_amount))

          previous_status = invoice.status
          invoice.paid_amount = result.paid_amount
          invoice.balance_amount = result.balance_amount
          invoice.status = result.status
          self.db.flush()

          logger.info(
               "invoice_reconciled",
               extra={
                    "organization_id": self.ctx.organization_id,
                    "invoice_id": invoice.id,
                    "paid_amount": str(result.paid_amount),
                    "balance_amount": str(result.balance_amount),
                    "previous_status": previous_status.value if previous_status else None,
                    "status": result.status.value,
               },
          )
          return result

     # ------------------------------------------------------------------
     # Writes
     # ------------------------------------------------------------------

     def issue(self, draft: InvoiceCreate) -> Invoice:
          """
          Validate and persist a new invoice with its items.

          The invoice starts with paid amount 0 and balance equal to its
          total; any client-supplied balance is ignored.

          Raises:
               LedgerValidationError: inconsistent amounts, dates, status or a
                    duplicate invoice number
               NotFoundError: lease or landlord outside the organization
          """
          status = draft.status or InvoiceStatus.PENDING
          if status not in ISSUABLE_STATUSES:
               raise LedgerValidationError(
                    f"A new invoice must be PENDING or DRAFT, not {status.value}", field="status"
               )
          if draft.paid_amount is not None and to_money(draft.paid_amount) != ZERO:
               raise LedgerValidationError(
                    "paidAmount is derived from payments and must be 0 at issuance", field="paidAmount"
               )

          amount = to_money(draft.amount)
          vat_amount = to_money(draft.vat_amount)
          total_amount = to_money(draft.total_amount)
          if total_amount <= ZERO:
               raise LedgerValidationError("totalAmount must be greater than 0", field="totalAmount")
          if not amounts_match(amount + vat_amount, total_amount):
               raise LedgerValidationError(
                    f"totalAmount {total_amount} must equal amount {amount} plus vatAmount {vat_amount}",
                    field="totalAmount",
               )
          if draft.due_date < draft.issue_date:
               raise LedgerValidationError("dueDate cannot be before issueDate", field="dueDate")

          items = self._build_items(draft.invoice_items)
          if items:
               if not amounts_match(money_sum(item.amount for item in items), amount):
                    raise LedgerValidationError(
                         "Invoice item line totals must add up to amount", field="invoiceItems"
                    )
               if not amounts_match(money_sum(item.vat_amount for item in items), vat_amount):
                    raise LedgerValidationError(
                         "Invoice item tax amounts must add up to vatAmount", field="invoiceItems"
                    )

          landlord_id = draft.landlord_id
          if draft.lease_id:
               lease = get_scoped(self.db, Lease, draft.lease_id, self.ctx)
               landlord_id = landlord_id or lease.landlord_id
          if draft.landlord_id:
               get_scoped(self.db, Landlord, draft.landlord_id, self.ctx)

          invoice = Invoice(
               organization_id=self.ctx.organization_id,
               invoice_number=self._assign_number(draft.invoice_number),
               landlord_id=landlord_id,
               lease_id=draft.lease_id,
               transaction_class=draft.transaction_class,
               ac_receivable=draft.ac_receivable,
               bill_to=draft.bill_to,
               issue_date=draft.issue_date,
               due_date=draft.due_date,
               currency=draft.currency or self.ctx.base_currency,
               spot_rate=draft.spot_rate or Decimal("1"),
               lpo_number=draft.lpo_number,
               sign_on_efims=draft.sign_on_efims,
               payment_info=draft.payment_info,
               terms_conditions=draft.terms_conditions,
               memo=draft.memo,
               amount=amount,
               vat_amount=vat_amount,
               total_amount=total_amount,
               paid_amount=ZERO,
               balance_amount=total_amount,
               status=status,
               invoice_items=items,
          )
          self.db.add(invoice)
          self.db.flush()

          logger.info(
               "invoice_issued",
               extra={
                    "organization_id": self.ctx.organization_id,
                    "invoice_id": invoice.id,
                    "invoice_number": invoice.invoice_number,
                    "total_amount": str(total_amount),
                    "currency": invoice.currency,
                    "actor": self.ctx.actor,
               },
          )
          return invoice

     def _assign_number(self, requested: Optional[str]) -> str:
          if requested:
               if self.find_by_number(requested) is not None:
                    raise LedgerValidationError(
                         f"Invoice number {requested} already exists", field="invoiceNumber"
                    )
               return requested

          numbering = DocumentNumberService(self.db, self.ctx)
          number = numbering.next_number(INVOICE_SEQUENCE, self._today())
          # Skip numbers already taken by client-supplied invoice numbers
          while self.find_by_number(number) is not None:
               number = numbering.next_number(INVOICE_SEQUENCE, self._today())
          return number

     def _build_items(self, drafts: List[InvoiceItemCreate]) -> List[InvoiceItem]:
          items = []
          for position, draft in enumerate(drafts):
               quantity = draft.qty if draft.qty is not None else Decimal("1")
               unit_price = to_money(draft.unit_cost)
               if draft.line_total is not None:
                    line_total = to_money(draft.line_total)
               else:
                    line_total = to_money(quantity * unit_price)
               vat_rate = draft.tax_rate or Decimal("0")
               if draft.tax_amount is not None:
                    vat_amount = to_money(draft.tax_amount)
               else:
                    vat_amount = to_money(line_total * vat_rate / Decimal("100"))

               items.append(
                    InvoiceItem(
                         organization_id=self.ctx.organization_id,
                         position=position,
                         revenue_expense_item=draft.revenue_expense_item,
                         description=draft.particular or "",
                         income_account=draft.income_account,
                         quantity=quantity,
                         unit_price=unit_price,
                         vat_rate=vat_rate,
                         vat_amount=vat_amount,
                         amount=line_total,
                         class_name=draft.class_name,
                    )
               )
          return items

     def cancel(self, invoice_id: str) -> Invoice:
          """
          Cancel an invoice. Recorded payments stay; CANCELLED is terminal.

          Raises:
               LedgerValidationError: invoice is PAID, OVERDUE or already CANCELLED
          """
          invoice = self.get_for_update(invoice_id)
          if invoice.status not in CANCELLABLE_STATUSES:
               raise LedgerValidationError(
                    f"Invoice {invoice.invoice_number} cannot be cancelled from status {invoice.status.value}",
                    field="status",
               )
          invoice.mark_as_cancelled()
          self.db.flush()

          logger.info(
               "invoice_cancelled",
               extra={
                    "organization_id": self.ctx.organization_id,
                    "invoice_id": invoice.id,
                    "actor": self.ctx.actor,
               },
          )
          return invoice

     def _dependent_count(self, invoice: Invoice) -> int:
          payments = (
               scoped_query(self.db, Payment, self.ctx)
               .filter(Payment.invoice_id == invoice.id)
               .count()
          )
          lines = (
               scoped_query(self.db, ReceiptLine, self.ctx)
               .filter(ReceiptLine.invoice_id == invoice.id)
               .count()
          )
          return payments + lines

     def delete(self, invoice_id: str) -> None:
          """
          Delete an invoice and its items.

          Raises:
               NotFoundError: invoice is unknown in the organization
               DependentRecordsError: payments or receipt lines still reference it
          """
          self.delete_many([self.get(invoice_id).id])

     def delete_many(self, invoice_ids: Iterable[str]) -> int:
          """
          Delete several invoices in one transaction. Either all go or none.

          Ids unknown in the organization are skipped.

          Returns:
               Number of invoices deleted
          """
          known = [
               invoice_id
               for (invoice_id,) in self._query()
               .filter(Invoice.id.in_(set(invoice_ids)))
               .with_entities(Invoice.id)
          ]
          invoices = self.lock(known)
          for invoice in invoices.values():
               dependents = self._dependent_count(invoice)
               if dependents:
                    raise DependentRecordsError("Invoice", invoice.invoice_number, dependents)

          for invoice in invoices.values():
               self.db.delete(invoice)
          self.db.flush()

          logger.info(
               "invoices_deleted",
               extra={
                    "organization_id": self.ctx.organization_id,
                    "invoice_ids": sorted(invoices),
                    "actor": self.ctx.actor,
               },
          )
          return len(invoices)

     def refresh_overdue(self) -> int:
          """
          Move PENDING invoices past their due date to OVERDUE.

          Meant for a daily job. Each candidate is locked and reconciled, so
          the status comes from the same rules as every other transition.

          Returns:
               Number of invoices whose status changed
          """
          candidates = [
               invoice.id
               for invoice in self._query()
               .filter(Invoice.status == InvoiceStatus.PENDING, Invoice.due_date < self._today())
               .all()
          ]
          updated = 0
          for invoice in self.lock(candidates).values():
               before = invoice.status
               if self.reconcile(invoice).status != before:
                    updated += 1

          logger.info(
               "overdue_refresh_completed",
               extra={"organization_id": self.ctx.organization_id, "updated": updated},
          )
          return updated
