"""
Balance reconciliation.

Pure functions: nothing here touches the database or mutates its
arguments. Given an invoice and the complete current set of its payments
they compute paid amount, balance and status from scratch. Callers persist
the result in the same transaction that changed the payment set.
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from models.invoice import InvoiceStatus
from services.money import money_sum, to_money


@dataclass(frozen=True)
class InvoiceBalance:
     """Result of reconciling one invoice."""

     paid_amount: Decimal
     balance_amount: Decimal
     status: InvoiceStatus


def derive_status(
     total_amount,
     paid_amount,
     balance_amount,
     due_date: date,
     today: date,
     current_status: InvoiceStatus = InvoiceStatus.PENDING,
) -> InvoiceStatus:
     """
     Status as a function of amounts, due date and today's date.

     CANCELLED is terminal and wins over every other rule. DRAFT is not
     produced here, so the first reconciliation moves a draft on.
     """
     if current_status == InvoiceStatus.CANCELLED:
          return InvoiceStatus.CANCELLED

     total = to_money(total_amount)
     paid = to_money(paid_amount)
     balance = to_money(balance_amount)

     if balance <= 0:
          return InvoiceStatus.PAID
     if 0 < paid < total:
          return InvoiceStatus.PARTIALLY_PAID
     if today > due_date:
          return InvoiceStatus.OVERDUE
     return InvoiceStatus.PENDING


def reconcile(invoice, payments: Iterable, today: date) -> InvoiceBalance:
     """
     Recompute an invoice's balance from its payments.

     Only payments in the invoice currency count towards the paid amount.

     Args:
          invoice: object exposing total_amount, currency, due_date and status
          payments: every non-deleted payment of the invoice
          today: the date used for OVERDUE detection

     Returns:
          InvoiceBalance with the recomputed figures
     """
     paid = money_sum(p.amount for p in payments if p.currency == invoice.currency)
     total = to_money(invoice.total_amount)
     balance = total - paid
     status = derive_status(total, paid, balance, invoice.due_date, today, invoice.status)
     return InvoiceBalance(paid_amount=paid, balance_amount=balance, status=status)
