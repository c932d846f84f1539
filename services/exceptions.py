"""
Typed exceptions for the billing ledger.

Every exception carries a machine-readable ``code`` and structured
attributes, so routers map them to HTTP responses by type instead of by
message text. All of them are raised before the enclosing transaction
commits; none is downgraded to a warning.

    LedgerError
    +-- LedgerValidationError        VALIDATION_ERROR
    +-- NotFoundError                NOT_FOUND
    +-- OverpaymentError             OVERPAYMENT
    +-- ReconciliationMismatchError  RECONCILIATION_MISMATCH
    +-- CurrencyMismatchError        CURRENCY_MISMATCH
    +-- ConflictError                CONFLICT
    +-- DependentRecordsError        DEPENDENT_RECORDS
"""
from decimal import Decimal
from typing import Optional


class LedgerError(Exception):
     """Base class for all ledger errors."""

     code: str = "LEDGER_ERROR"

     def __init__(self, message: str):
          self.message = message
          super().__init__(message)


class LedgerValidationError(LedgerError):
     """Missing or inconsistent request data."""

     code: str = "VALIDATION_ERROR"

     def __init__(self, message: str, field: Optional[str] = None):
          self.field = field
          super().__init__(message)


class NotFoundError(LedgerError):
     """
     Record does not exist in the caller's organization.

     Records of other organizations produce exactly the same error.
     """

     code: str = "NOT_FOUND"

     def __init__(self, entity: str, entity_id: str):
          self.entity = entity
          self.entity_id = entity_id
          super().__init__(f"{entity} with ID {entity_id} not found")


class OverpaymentError(LedgerError):
     """Payment would push paid_amount above total_amount."""

     code: str = "OVERPAYMENT"

     def __init__(self, invoice_number: str, amount: Decimal, balance: Decimal):
          self.invoice_number = invoice_number
          self.amount = amount
          self.balance = balance
          super().__init__(
               f"Payment of {amount} exceeds the outstanding balance {balance} on invoice {invoice_number}"
          )


class ReconciliationMismatchError(LedgerError):
     """Receipt allocations do not add up to the amount received."""

     code: str = "RECONCILIATION_MISMATCH"

     def __init__(self, amount_received: Decimal, allocated: Decimal):
          self.amount_received = amount_received
          self.allocated = allocated
          super().__init__(
               f"Receipt allocations total {allocated} but amount received is {amount_received}"
          )


class CurrencyMismatchError(LedgerError):
     """Payment currency differs from the invoice currency."""

     code: str = "CURRENCY_MISMATCH"

     def __init__(self, payment_currency: str, invoice_currency: str):
          self.payment_currency = payment_currency
          self.invoice_currency = invoice_currency
          super().__init__(
               f"Currency mismatch: payment in {payment_currency}, invoice in {invoice_currency}"
          )


class ConflictError(LedgerError):
     """Concurrent modification that could not be resolved by retrying."""

     code: str = "CONFLICT"


class DependentRecordsError(LedgerError):
     """Record is still referenced by payments or receipt lines."""

     code: str = "DEPENDENT_RECORDS"

     def __init__(self, entity: str, entity_id: str, dependents: int):
          self.entity = entity
          self.entity_id = entity_id
          self.dependents = dependents
          super().__init__(
               f"{entity} {entity_id} still has {dependents} dependent payment record(s)"
          )
