from .common import BulkDeleteRequest, DeleteResponse, ErrorResponse
from .invoice import (
     InvoiceCreate,
     InvoiceItemCreate,
     InvoiceResponse,
     InvoiceListResponse,
     RefreshStatusResponse,
)
from .payment import PaymentCreate, PaymentResponse, PaymentListResponse
from .receipt import (
     ReceiptCreate,
     ReceiptLineCreate,
     ReceiptPaymentCreate,
     ReceiptResponse,
     ReceiptListResponse,
)

__all__ = [
     "BulkDeleteRequest",
     "DeleteResponse",
     "ErrorResponse",
     "InvoiceCreate",
     "InvoiceItemCreate",
     "InvoiceResponse",
     "InvoiceListResponse",
     "RefreshStatusResponse",
     "PaymentCreate",
     "PaymentResponse",
     "PaymentListResponse",
     "ReceiptCreate",
     "ReceiptLineCreate",
     "ReceiptPaymentCreate",
     "ReceiptResponse",
     "ReceiptListResponse",
]
