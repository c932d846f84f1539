"""
Pydantic schemas for the payment API.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import ConfigDict, Field

from models.payment import PaymentKind, PaymentMethod
from .common import CURRENCY_PATTERN, CamelModel, RequestModel, ResponseModel


class PaymentCreate(RequestModel):
     """
     Request body for POST /api/finance/payments.

     The organization is taken from the caller's token and cannot be sent.
     """
     invoice_id: Optional[str] = Field(None, description="Invoice settled by this payment")
     lease_id: Optional[str] = Field(None, description="Lease the payment relates to")
     payment_date: date
     amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
     currency: Optional[str] = Field(None, pattern=CURRENCY_PATTERN, description="Defaults to the invoice currency")
     spot_rate: Optional[Decimal] = Field(None, gt=0)
     payment_method: PaymentMethod
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
     recorded_by: Optional[str] = Field(None, max_length=255)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "invoiceId": "4d3c2b1a-0f9e-4d8c-b7a6-5e4d3c2b1a0f",
                    "paymentDate": "2026-02-10",
                    "amount": 30000.00,
                    "paymentMethod": "MPESA",
                    "mpesaReceiptNumber": "QAB1CD2EF3",
                    "mpesaPhoneNumber": "+254700000000",
               }
          }
     )


class PaymentResponse(ResponseModel):
     """Payment as stored."""
     id: str
     organization_id: str
     invoice_id: Optional[str] = None
     lease_id: Optional[str] = None
     receipt_id: Optional[str] = None
     payment_date: date
     amount: Decimal
     currency: str
     spot_rate: Decimal
     payment_method: PaymentMethod
     payment_type: PaymentKind
     payment_reference: Optional[str] = None
     payee: Optional[str] = None
     paid_from: Optional[str] = None
     paid_to: Optional[str] = None
     cheque_number: Optional[str] = None
     cheque_date: Optional[date] = None
     mpesa_receipt_number: Optional[str] = None
     mpesa_phone_number: Optional[str] = None
     notes: Optional[str] = None
     attachments: Optional[str] = None
     recorded_by: Optional[str] = None
     created_at: Optional[datetime] = None


class PaymentListResponse(CamelModel):
     payments: List[PaymentResponse]
     total: int
     page: int = 1
     page_size: int = 50
