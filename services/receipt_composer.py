# services/receipt_composer.py
"""
Receipt Composer - records a receipt together with its lines and payments.

A receipt request carries receipt lines (the "apply to invoice" table),
payment entries, or both. Before anything is written the request is
normalized into one settlement:

     CashSettlement      no invoice is touched; payments are unallocated
     InvoiceSettlement   one allocation per invoice application, each
                         producing exactly one receipt line and one payment

Receipt header, lines and payments are then written in a single
transaction, reconciling every affected invoice. Any error rolls all of it
back.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from sqlalchemy.orm import Session

from models import Invoice, Landlord, Lease, Lessee, Payment, PaymentKind, Receipt, ReceiptLine
from models.receipt import ReceiptType
from schemas.receipt import ReceiptCreate, ReceiptLineCreate, ReceiptPaymentCreate
from services.exceptions import LedgerValidationError, NotFoundError, ReconciliationMismatchError
from services.money import amounts_match, money_sum, to_money
from services.numbering import RECEIPT_SEQUENCE, DocumentNumberService
from services.payment_recorder import PaymentRecorder
from services.tenancy import OrgContext, get_scoped, require_context, scoped_query

logger = logging.getLogger(__name__)


@dataclass
class Allocation:
     """Money applied to one invoice by a receipt."""

     invoice_id: str
     amount: Decimal
     line: Optional[ReceiptLineCreate] = None
     payment: Optional[ReceiptPaymentCreate] = None


@dataclass
class CashSettlement:
     unallocated: List[ReceiptPaymentCreate] = field(default_factory=list)


@dataclass
class InvoiceSettlement:
     allocations: List[Allocation]
     unallocated: List[ReceiptPaymentCreate] = field(default_factory=list)


Settlement = Union[CashSettlement, InvoiceSettlement]


def check_conservation(draft: ReceiptCreate) -> None:
     """
     Allocated money must equal the amount received (within one cent).

     When lines are present their payments alone must add up to the amount
     received, and every payment sent with them must belong to a line.
     Without lines the payments must add up. A receipt with neither lines
     nor payments is not checked.

     Raises:
          LedgerValidationError: a payment without an invoice is sent with lines
          ReconciliationMismatchError: the totals disagree
     """
     if draft.receipt_lines:
          if any(not p.invoice_id for p in draft.payments):
               raise LedgerValidationError(
                    "Payments without an invoice cannot be sent with receipt lines",
                    field="payments",
               )
          allocated = money_sum(line.payment for line in draft.receipt_lines)
     elif draft.payments:
          allocated = money_sum(p.amount for p in draft.payments)
     else:
          return

     if not amounts_match(allocated, draft.amount_received):
          raise ReconciliationMismatchError(to_money(draft.amount_received), allocated)


def plan_settlement(draft: ReceiptCreate, line_invoice_ids: List[str]) -> Settlement:
     """
     Normalize lines and payments into a settlement.

     Args:
          draft: the receipt request
          line_invoice_ids: resolved invoice id of each receipt line, in order

     When both lines and invoice-bound payments are sent they must pair up
     one-to-one on invoice and amount.

     Raises:
          LedgerValidationError: lines and payments disagree, or the
               settlement does not fit the receipt type
     """
     bound = [p for p in draft.payments if p.invoice_id]
     unallocated = [p for p in draft.payments if not p.invoice_id]

     if draft.receipt_lines:
          allocations = _pair_lines(draft.receipt_lines, line_invoice_ids, bound)
     else:
          allocations = [
               Allocation(invoice_id=p.invoice_id, amount=to_money(p.amount), payment=p)
               for p in bound
          ]

     if allocations:
          settlement = InvoiceSettlement(allocations=allocations, unallocated=unallocated)
     else:
          settlement = CashSettlement(unallocated=unallocated)

     if draft.receipt_type == ReceiptType.APPLY_TO_INVOICE and isinstance(settlement, CashSettlement):
          raise LedgerValidationError(
               "An ApplyToInvoice receipt must apply money to at least one invoice",
               field="receiptLines",
          )
     if draft.receipt_type == ReceiptType.CASH_RECEIPT and isinstance(settlement, InvoiceSettlement):
          raise LedgerValidationError(
               "A CashReceipt cannot apply money to invoices", field="receiptLines"
          )
     return settlement


def _pair_lines(
     lines: List[ReceiptLineCreate],
     line_invoice_ids: List[str],
     bound: List[ReceiptPaymentCreate],
) -> List[Allocation]:
     remaining = list(bound)
     allocations = []
     for line, invoice_id in zip(lines, line_invoice_ids):
          match = None
          if bound:
               match = next(
                    (
                         p for p in remaining
                         if p.invoice_id == invoice_id and amounts_match(p.amount, line.payment)
                    ),
                    None,
               )
               if match is None:
                    raise LedgerValidationError(
                         f"Receipt line for invoice {line.inv_no or invoice_id} has no matching payment entry",
                         field="payments",
                    )
               remaining.remove(match)
          allocations.append(
               Allocation(invoice_id=invoice_id, amount=to_money(line.payment), line=line, payment=match)
          )

     if remaining:
          raise LedgerValidationError(
               f"{len(remaining)} invoice payment(s) have no matching receipt line", field="payments"
          )
     return allocations


class ReceiptComposer:
     """Receipt operations for one organization."""

     def __init__(self, db: Session, ctx: OrgContext, today: Callable[[], date] = date.today):
          self.db = db
          self.ctx = require_context(ctx)
          self._today = today
          self.payments = PaymentRecorder(db, ctx, today)
          self.ledger = self.payments.ledger

     def get(self, receipt_id: str) -> Receipt:
          return get_scoped(self.db, Receipt, receipt_id, self.ctx)

     def list(
          self,
          receipt_type: Optional[ReceiptType] = None,
          lessee_id: Optional[str] = None,
          page: int = 1,
          page_size: int = 50,
     ) -> Tuple[List[Receipt], int]:
          query = scoped_query(self.db, Receipt, self.ctx)
          if receipt_type is not None:
               query = query.filter(Receipt.receipt_type == receipt_type)
          if lessee_id:
               query = query.filter(Receipt.lessee_id == lessee_id)

          total = query.count()
          receipts = (
               query.order_by(Receipt.recording_date.desc(), Receipt.receipt_number.desc())
               .offset((page - 1) * page_size)
               .limit(page_size)
               .all()
          )
          return receipts, total

     def _resolve_line_invoice(self, line: ReceiptLineCreate) -> str:
          if line.invoice_id:
               return get_scoped(self.db, Invoice, line.invoice_id, self.ctx).id
          invoice = self.ledger.find_by_number(line.inv_no)
          if invoice is None:
               raise NotFoundError("Invoice", line.inv_no)
          return invoice.id

     def create(self, draft: ReceiptCreate) -> Receipt:
          """
          Record a receipt with its lines and payments in one transaction.

          Steps: check the totals, resolve and pair invoice references,
          lock the invoices (ascending id), allocate the receipt number,
          write header, lines and payments, reconcile each invoice.

          Raises:
               ReconciliationMismatchError: allocations differ from amountReceived
               LedgerValidationError: inconsistent lines/payments or receipt type
               NotFoundError: an invoice, lease, lessee or landlord is unknown
               CurrencyMismatchError: a payment currency differs from its invoice
               OverpaymentError: an allocation exceeds an invoice balance
          """
          check_conservation(draft)

          line_invoice_ids = [self._resolve_line_invoice(line) for line in draft.receipt_lines]
          settlement = plan_settlement(draft, line_invoice_ids)

          if draft.lessee_id:
               get_scoped(self.db, Lessee, draft.lessee_id, self.ctx)
          if draft.landlord_id:
               get_scoped(self.db, Landlord, draft.landlord_id, self.ctx)
          for entry in draft.payments:
               if entry.lease_id:
                    get_scoped(self.db, Lease, entry.lease_id, self.ctx)

          invoices: Dict[str, Invoice] = {}
          if isinstance(settlement, InvoiceSettlement):
               invoices = self.ledger.lock(a.invoice_id for a in settlement.allocations)

          receipt = Receipt(
               organization_id=self.ctx.organization_id,
               receipt_number=self._assign_number(draft.receipt_number),
               receipt_type=draft.receipt_type,
               receipt_category=draft.receipt_category,
               received_from=draft.received_from,
               lessee_id=draft.lessee_id,
               landlord_id=draft.landlord_id,
               payment_method=draft.payment_method,
               deposit_into_ac=draft.deposit_into_ac,
               ref_no=draft.ref_no,
               cheque_no=draft.cheque_no,
               cheque_date=draft.cheque_date,
               payment_ref_no=draft.payment_ref_no,
               payment_bank=draft.payment_bank,
               amount_received=to_money(draft.amount_received),
               amount_vat_inclusive=draft.amount_vat_inclusive,
               currency=draft.currency or self.ctx.base_currency,
               spot_rate=draft.spot_rate or Decimal("1"),
               recording_date=draft.recording_date,
               record_date=draft.record_date,
               banking_date=draft.banking_date,
               receipt_to=draft.receipt_to,
               drt_or_drf=draft.drt_or_drf,
               memo=draft.memo,
               notes=draft.notes,
               recorded_by=draft.recorded_by or self.ctx.actor,
          )
          self.db.add(receipt)
          self.db.flush()

          if isinstance(settlement, InvoiceSettlement):
               for position, allocation in enumerate(settlement.allocations):
                    self._apply(receipt, invoices[allocation.invoice_id], allocation, position)
          for entry in settlement.unallocated:
               self.db.add(self._payment_for(receipt, entry, to_money(entry.amount), PaymentKind.CASH_PAYMENT))
          self.db.flush()

          logger.info(
               "receipt_created",
               extra={
                    "organization_id": self.ctx.organization_id,
                    "receipt_id": receipt.id,
                    "receipt_number": receipt.receipt_number,
                    "amount_received": str(receipt.amount_received),
                    "invoice_ids": sorted(invoices),
                    "actor": self.ctx.actor,
               },
          )
          return receipt

     def _assign_number(self, requested: Optional[str]) -> str:
          query = scoped_query(self.db, Receipt, self.ctx)
          if requested:
               if query.filter(Receipt.receipt_number == requested).first() is not None:
                    raise LedgerValidationError(
                         f"Receipt number {requested} already exists", field="receiptNumber"
                    )
               return requested

          numbering = DocumentNumberService(self.db, self.ctx)
          number = numbering.next_number(RECEIPT_SEQUENCE, self._today())
          while query.filter(Receipt.receipt_number == number).first() is not None:
               number = numbering.next_number(RECEIPT_SEQUENCE, self._today())
          return number

     def _apply(self, receipt: Receipt, invoice: Invoice, allocation: Allocation, position: int) -> None:
          """Write the line and payment for one allocation and reconcile the invoice."""
          entry = allocation.payment
          currency = (entry.currency if entry is not None else None) or receipt.currency
          self.ledger.assert_can_apply(invoice, allocation.amount, currency)

          line = allocation.line
          amount_due = to_money(invoice.balance_amount)
          receipt.receipt_lines.append(
               ReceiptLine(
                    organization_id=self.ctx.organization_id,
                    invoice_id=invoice.id,
                    position=position,
                    line_date=(line.line_date if line is not None else None) or receipt.recording_date,
                    invoice_number=invoice.invoice_number,
                    particular=(line.particular if line is not None else None)
                    or f"{invoice.transaction_class} - {invoice.invoice_number}",
                    invoice_total=to_money(invoice.total_amount),
                    prev_receipts=to_money(invoice.paid_amount),
                    amount_due=amount_due,
                    payment=allocation.amount,
                    new_balance=amount_due - allocation.amount,
                    wht_tax=to_money(line.wht_tax) if line is not None else to_money(0),
               )
          )

          payment = self._payment_for(receipt, entry, allocation.amount, PaymentKind.APPLY_TO_BILL)
          payment.invoice_id = invoice.id
          payment.currency = currency
          payment.lease_id = payment.lease_id or invoice.lease_id
          self.db.add(payment)
          self.db.flush()

          self.ledger.reconcile(invoice)

     def _payment_for(
          self,
          receipt: Receipt,
          entry: Optional[ReceiptPaymentCreate],
          amount: Decimal,
          default_kind: PaymentKind,
     ) -> Payment:
          """Payment produced by a receipt; header values fill what the entry leaves out."""
          if entry is None:
               entry = ReceiptPaymentCreate(amount=amount)
          return Payment(
               organization_id=self.ctx.organization_id,
               receipt_id=receipt.id,
               lease_id=entry.lease_id,
               payment_date=entry.payment_date or receipt.recording_date,
               amount=amount,
               currency=entry.currency or receipt.currency,
               spot_rate=entry.spot_rate or receipt.spot_rate,
               payment_method=entry.payment_method or receipt.payment_method,
               payment_type=entry.payment_type or default_kind,
               payment_reference=entry.payment_reference or receipt.payment_ref_no or receipt.ref_no,
               payee=entry.payee or receipt.received_from,
               paid_from=entry.paid_from,
               paid_to=entry.paid_to or receipt.deposit_into_ac,
               cheque_number=entry.cheque_number or receipt.cheque_no,
               cheque_date=entry.cheque_date or receipt.cheque_date,
               mpesa_receipt_number=entry.mpesa_receipt_number,
               mpesa_phone_number=entry.mpesa_phone_number,
               notes=entry.notes,
               attachments=entry.attachments,
               recorded_by=receipt.recorded_by,
          )

     def delete(self, receipt_id: str) -> None:
          self.delete_many([self.get(receipt_id).id])

     def delete_many(self, receipt_ids: Iterable[str]) -> int:
          """
          Delete receipts, reversing their payments first. All or nothing.

          Lines are removed with their receipt; every invoice a removed
          payment settled is reconciled. Ids unknown in the organization are
          skipped.
          """
          receipts = (
               scoped_query(self.db, Receipt, self.ctx)
               .filter(Receipt.id.in_(set(receipt_ids)))
               .order_by(Receipt.id)
               .all()
          )
          if not receipts:
               return 0

          payments = (
               scoped_query(self.db, Payment, self.ctx)
               .filter(Payment.receipt_id.in_([receipt.id for receipt in receipts]))
               .all()
          )
          self.payments.reverse(payments)

          for receipt in receipts:
               self.db.delete(receipt)
          self.db.flush()

          logger.info(
               "receipts_deleted",
               extra={
                    "organization_id": self.ctx.organization_id,
                    "receipt_ids": [receipt.id for receipt in receipts],
                    "reversed_payments": len(payments),
                    "actor": self.ctx.actor,
               },
          )
          return len(receipts)
