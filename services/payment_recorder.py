# services/payment_recorder.py
"""
Payment Recorder - writes single payments against invoices and removes them.

A payment is never edited. Recording or removing one always re-runs
reconciliation on its invoice inside the same transaction.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from models import Lease, Payment, PaymentKind
from schemas.payment import PaymentCreate
from services.exceptions import LedgerValidationError
from services.invoice_ledger import InvoiceLedger
from services.money import to_money
from services.tenancy import OrgContext, get_scoped, require_context, scoped_query

logger = logging.getLogger(__name__)


class PaymentRecorder:
     """Payment operations for one organization."""

     def __init__(self, db: Session, ctx: OrgContext, today: Callable[[], date] = date.today):
          self.db = db
          self.ctx = require_context(ctx)
          self.ledger = InvoiceLedger(db, ctx, today)

     def get(self, payment_id: str) -> Payment:
          return get_scoped(self.db, Payment, payment_id, self.ctx)

     def list(
          self,
          invoice_id: Optional[str] = None,
          receipt_id: Optional[str] = None,
          page: int = 1,
          page_size: int = 50,
     ) -> Tuple[List[Payment], int]:
          query = scoped_query(self.db, Payment, self.ctx)
          if invoice_id:
               query = query.filter(Payment.invoice_id == invoice_id)
          if receipt_id:
               query = query.filter(Payment.receipt_id == receipt_id)

          total = query.count()
          payments = (
               query.order_by(Payment.payment_date.desc(), Payment.created_at.desc())
               .offset((page - 1) * page_size)
               .limit(page_size)
               .all()
          )
          return payments, total

     def record(self, draft: PaymentCreate) -> Payment:
          """
          Record a payment and reconcile its invoice.

          The currency defaults to the invoice's (or the organization's base
          currency for payments without an invoice).

          Raises:
               NotFoundError: invoice or lease outside the organization
               LedgerValidationError: invoice is cancelled
               CurrencyMismatchError: currency differs from the invoice's
               OverpaymentError: amount exceeds the invoice balance
          """
          invoice = None
          if draft.invoice_id:
               invoice = self.ledger.get_for_update(draft.invoice_id)
               currency = draft.currency or invoice.currency
               self.ledger.assert_can_apply(invoice, draft.amount, currency)
          else:
               currency = draft.currency or self.ctx.base_currency

          lease_id = draft.lease_id
          if lease_id:
               get_scoped(self.db, Lease, lease_id, self.ctx)
          elif invoice is not None:
               lease_id = invoice.lease_id

          default_kind = PaymentKind.APPLY_TO_BILL if invoice is not None else PaymentKind.CASH_PAYMENT
          payment = Payment(
               organization_id=self.ctx.organization_id,
               invoice_id=invoice.id if invoice is not None else None,
               lease_id=lease_id,
               payment_date=draft.payment_date,
               amount=to_money(draft.amount),
               currency=currency,
               spot_rate=draft.spot_rate or Decimal("1"),
               payment_method=draft.payment_method,
               payment_type=draft.payment_type or default_kind,
               payment_reference=draft.payment_reference,
               payee=draft.payee,
               paid_from=draft.paid_from,
               paid_to=draft.paid_to,
               cheque_number=draft.cheque_number,
               cheque_date=draft.cheque_date,
               mpesa_receipt_number=draft.mpesa_receipt_number,
               mpesa_phone_number=draft.mpesa_phone_number,
               notes=draft.notes,
               attachments=draft.attachments,
               recorded_by=draft.recorded_by or self.ctx.actor,
          )
          self.db.add(payment)
          self.db.flush()

          if invoice is not None:
               self.ledger.reconcile(invoice)

          logger.info(
               "payment_recorded",
               extra={
                    "organization_id": self.ctx.organization_id,
                    "payment_id": payment.id,
                    "invoice_id": payment.invoice_id,
                    "amount": str(payment.amount),
                    "currency": currency,
                    "actor": self.ctx.actor,
               },
          )
          return payment

     def reverse(self, payments: List[Payment]) -> None:
          """
          Delete payments and reconcile every invoice they settled.

          Invoices are locked in ascending id order before anything is
          deleted; their balances are recomputed without these payments.
          """
          invoice_ids = {payment.invoice_id for payment in payments if payment.invoice_id}
          excluded = {payment.id for payment in payments}
          for invoice in self.ledger.lock(invoice_ids).values():
               self.ledger.reconcile(invoice, exclude_payment_ids=excluded)

          for payment in payments:
               self.db.delete(payment)
          self.db.flush()

     def delete(self, payment_id: str) -> None:
          self.delete_many([self.get(payment_id).id])

     def delete_many(self, payment_ids: Iterable[str]) -> int:
          """
          Delete payments recorded directly. All or nothing.

          Ids unknown in the organization are skipped.

          Raises:
               LedgerValidationError: a payment belongs to a receipt; delete
                    the receipt instead
          """
          payments = (
               scoped_query(self.db, Payment, self.ctx)
               .filter(Payment.id.in_(set(payment_ids)))
               .order_by(Payment.id)
               .all()
          )
          for payment in payments:
               if payment.receipt_id:
                    raise LedgerValidationError(
                         f"Payment {payment.id} belongs to receipt {payment.receipt_id}; delete the receipt instead",
                         field="ids",
                    )

          self.reverse(payments)

          logger.info(
               "payments_deleted",
               extra={
                    "organization_id": self.ctx.organization_id,
                    "payment_ids": [payment.id for payment in payments],
                    "actor": self.ctx.actor,
               },
          )
          return len(payments)
