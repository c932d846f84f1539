"""
Pydantic schemas for the receipt API.

A receipt request may carry ``receiptLines`` (the "apply to invoice" table)
and/or ``payments`` (ledger entries). The receipt composer normalizes both
into one settlement; these models only check shape and field constraints.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import ConfigDict, Field, model_validator

from models.payment import PaymentKind, PaymentMethod
from models.receipt import ReceiptCategory, ReceiptSource, ReceiptTo, ReceiptType
from .common import CURRENCY_PATTERN, CamelModel, RequestModel, ResponseModel
from .payment import PaymentResponse


class ReceiptLineCreate(RequestModel):
     """
     Amount applied to one invoice.

     Invoice figures (total, previous receipts, amount due, new balance) may
     be sent for display but are recomputed from the invoice.
     """
     invoice_id: Optional[str] = None
     inv_no: Optional[str] = Field(None, max_length=50, description="Invoice number, when invoiceId is not sent")
     line_date: Optional[date] = Field(None, alias="date")
     particular: Optional[str] = Field(None, max_length=500)
     invoice_total: Optional[Decimal] = None
     prev_receipts: Optional[Decimal] = None
     amt_due: Optional[Decimal] = None
     payment: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
     new_balance: Optional[Decimal] = None
     wht_tax: Decimal = Field(Decimal("0"), ge=0, max_digits=14, decimal_places=2)

     @model_validator(mode="after")
     def check_invoice_reference(self):
          if not self.invoice_id and not self.inv_no:
               raise ValueError("a receipt line must reference an invoice (invoiceId or invNo)")
          return self


class ReceiptPaymentCreate(RequestModel):
     """Payment entry produced by a receipt. Header values fill the gaps."""
     invoice_id: Optional[str] = None
     lease_id: Optional[str] = None
     payment_date: Optional[date] = None
     amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
     currency: Optional[str] = Field(None, pattern=CURRENCY_PATTERN)
     spot_rate: Optional[Decimal] = Field(None, gt=0)
     payment_method: Optional[PaymentMethod] = None
     payment_reference: Optional[str] = Field(None, max_length=100)
     payee: Optional[str] = Field(None, max_length=255)
     paid_from: Optional[str] = Field(None, max_length=255)
     paid_to: Optional[str] = Field(None, max_length=255)
     payment_type: Optional[PaymentKind] = None
     cheque_number: Optional[str] = Field(None, max_length=50)
     cheque_date: Optional[date] = None
     mpesa_receipt_number: Optional[str] = Field(None, max_length=50)
     mpesa_phone_number: Optional[str] = Field(None, max_length=30)
     notes: Optional[str] = None
     attachments: Optional[str] = None


class ReceiptCreate(RequestModel):
     """Schema for recording a receipt."""
     receipt_number: Optional[str] = Field(None, min_length=1, max_length=50, description="Generated when omitted")
     receipt_type: ReceiptType = ReceiptType.APPLY_TO_INVOICE
     receipt_category: ReceiptCategory = ReceiptCategory.RENT
     received_from: str = Field(..., min_length=1, max_length=255, description="Payer name")
     payment_method: PaymentMethod
     deposit_into_ac: Optional[str] = Field(None, max_length=100)
     ref_no: Optional[str] = Field(None, max_length=100)
     cheque_no: Optional[str] = Field(None, max_length=50)
     cheque_date: Optional[date] = None
     recording_date: date
     amount_received: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
     notes: Optional[str] = None
     lessee_id: Optional[str] = None
     landlord_id: Optional[str] = None
     record_date: Optional[date] = None
     banking_date: Optional[date] = None
     payment_ref_no: Optional[str] = Field(None, max_length=100)
     amount_vat_inclusive: bool = True
     receipt_to: ReceiptTo = ReceiptTo.LANDLORD
     drt_or_drf: ReceiptSource = ReceiptSource.DEPOSIT_REFUND
     memo: Optional[str] = None
     payment_bank: Optional[str] = Field(None, max_length=100)
     currency: Optional[str] = Field(None, pattern=CURRENCY_PATTERN)
     spot_rate: Optional[Decimal] = Field(None, gt=0)
     receipt_lines: List[ReceiptLineCreate] = Field(default_factory=list)
     payments: List[ReceiptPaymentCreate] = Field(default_factory=list)
     recorded_by: Optional[str] = Field(None, max_length=255)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "receiptType": "ApplyToInvoice",
                    "receiptCategory": "Rent",
                    "receivedFrom": "Jane Wanjiku",
                    "paymentMethod": "BANK_TRANSFER",
                    "recordingDate": "2026-02-15",
                    "amountReceived": 20000.00,
                    "receiptLines": [
                         {
                              "invNo": "INV-202602-0001",
                              "date": "2026-02-15",
                              "particular": "February rent",
                              "invoiceTotal": 50000.00,
                              "amtDue": 20000.00,
                              "payment": 20000.00,
                              "newBalance": 0,
                         }
                    ],
               }
          }
     )


class ReceiptLineResponse(ResponseModel):
     id: str
     invoice_id: Optional[str] = None
     line_date: date = Field(..., alias="date")
     invoice_number: Optional[str] = None
     particular: str
     invoice_total: Decimal
     prev_receipts: Decimal
     amount_due: Decimal
     payment: Decimal
     new_balance: Decimal
     wht_tax: Decimal


class ReceiptResponse(ResponseModel):
     id: str
     organization_id: str
     receipt_number: str
     receipt_type: ReceiptType
     receipt_category: ReceiptCategory
     received_from: str
     lessee_id: Optional[str] = None
     landlord_id: Optional[str] = None
     payment_method: PaymentMethod
     deposit_into_ac: Optional[str] = None
     ref_no: Optional[str] = None
     cheque_no: Optional[str] = None
     cheque_date: Optional[date] = None
     recording_date: date
     record_date: Optional[date] = None
     banking_date: Optional[date] = None
     payment_ref_no: Optional[str] = None
     amount_received: Decimal
     amount_vat_inclusive: bool
     receipt_to: ReceiptTo
     drt_or_drf: ReceiptSource
     memo: Optional[str] = None
     notes: Optional[str] = None
     payment_bank: Optional[str] = None
     currency: str
     spot_rate: Decimal
     recorded_by: Optional[str] = None
     created_at: Optional[datetime] = None
     receipt_lines: List[ReceiptLineResponse] = Field(default_factory=list)
     payments: List[PaymentResponse] = Field(default_factory=list)


class ReceiptListResponse(CamelModel):
     receipts: List[ReceiptResponse]
     total: int
     page: int = 1
     page_size: int = 50
