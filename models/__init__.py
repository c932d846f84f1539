from .base import Base
from .organization import Organization
from .lessee import Lessee
from .landlord import Landlord
from .lease import Lease
from .document_sequence import DocumentSequence
from .invoice import Invoice, InvoiceStatus
from .invoice_item import InvoiceItem
from .payment import Payment, PaymentMethod, PaymentKind
from .receipt import Receipt, ReceiptType, ReceiptCategory, ReceiptTo, ReceiptSource
from .receipt_line import ReceiptLine

__all__ = [
     "Base",
     "Organization",
     "Lessee",
     "Landlord",
     "Lease",
     "DocumentSequence",
     "Invoice",
     "InvoiceStatus",
     "InvoiceItem",
     "Payment",
     "PaymentMethod",
     "PaymentKind",
     "Receipt",
     "ReceiptType",
     "ReceiptCategory",
     "ReceiptTo",
     "ReceiptSource",
     "ReceiptLine",
]
