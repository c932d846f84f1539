# services/__init__.py
from .tenancy import OrgContext
from .invoice_ledger import InvoiceLedger
from .payment_recorder import PaymentRecorder
from .receipt_composer import ReceiptComposer
from .transactions import run_atomic

__all__ = [
     "OrgContext",
     "InvoiceLedger",
     "PaymentRecorder",
     "ReceiptComposer",
     "run_atomic",
]
