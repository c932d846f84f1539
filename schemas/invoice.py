"""
Pydantic schemas for Invoice API request/response validation.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import Field, ConfigDict, model_validator

from models.invoice import InvoiceStatus
from .common import CURRENCY_PATTERN, CamelModel, RequestModel, ResponseModel
from .payment import PaymentResponse


class InvoiceItemCreate(RequestModel):
     """One billed line of a new invoice."""
     revenue_expense_item: Optional[str] = Field(None, max_length=255)
     particular: Optional[str] = Field(None, max_length=500, description="Line description")
     income_account: Optional[str] = Field(None, max_length=100)
     unit_cost: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=2)
     qty: Optional[Decimal] = Field(None, gt=0, max_digits=14, decimal_places=2)
     tax_rate: Optional[Decimal] = Field(None, ge=0, le=100, description="VAT rate in percent")
     tax_amount: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=2)
     line_total: Optional[Decimal] = Field(
          None, ge=0, max_digits=14, decimal_places=2, description="Line total excluding VAT"
     )
     class_name: Optional[str] = Field(None, max_length=100)


class InvoiceCreate(RequestModel):
     """Schema for issuing a new invoice."""
     invoice_number: Optional[str] = Field(None, min_length=1, max_length=50, description="Generated when omitted")
     landlord_id: Optional[str] = Field(None, description="Landlord billed directly")
     lease_id: Optional[str] = Field(None, description="Lease the invoice belongs to")
     transaction_class: str = Field(..., min_length=1, max_length=50, description="RENT, WATER, GARBAGE, ...")
     ac_receivable: Optional[str] = Field(None, max_length=100)
     bill_to: Optional[str] = Field(None, max_length=255)
     issue_date: date
     due_date: date
     currency: Optional[str] = Field(None, pattern=CURRENCY_PATTERN, description="Defaults to the organization currency")
     spot_rate: Optional[Decimal] = Field(None, gt=0)
     lpo_number: Optional[str] = Field(None, max_length=100)
     sign_on_efims: bool = False
     payment_info: Optional[str] = None
     terms_conditions: Optional[str] = None
     memo: Optional[str] = None
     amount: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2, description="Principal amount")
     vat_amount: Decimal = Field(Decimal("0"), ge=0, max_digits=14, decimal_places=2)
     total_amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2, description="Principal + VAT")
     paid_amount: Optional[Decimal] = Field(None, ge=0, description="Must be 0; derived from payments")
     balance_amount: Optional[Decimal] = Field(None, description="Ignored; recomputed by the ledger")
     status: Optional[InvoiceStatus] = Field(None, description="PENDING (default) or DRAFT")
     invoice_items: List[InvoiceItemCreate] = Field(default_factory=list)

     @model_validator(mode="after")
     def check_dates(self):
          if self.due_date < self.issue_date:
               raise ValueError("dueDate cannot be before issueDate")
          return self

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "leaseId": "9f1c2a7e-5b8d-4c3e-a1f2-0e9d8c7b6a51",
                    "transactionClass": "RENT",
                    "issueDate": "2026-02-01",
                    "dueDate": "2026-02-28",
                    "currency": "KES",
                    "amount": 50000.00,
                    "vatAmount": 0,
                    "totalAmount": 50000.00,
                    "balanceAmount": 50000.00,
                    "invoiceItems": [
                         {"particular": "February rent", "qty": 1, "unitCost": 50000.00, "lineTotal": 50000.00}
                    ]
               }
          }
     )


class InvoiceItemResponse(ResponseModel):
     id: str
     revenue_expense_item: Optional[str] = None
     description: str
     income_account: Optional[str] = None
     quantity: Decimal
     unit_price: Decimal
     vat_rate: Decimal
     vat_amount: Decimal
     amount: Decimal
     class_name: Optional[str] = None


class InvoiceResponse(ResponseModel):
     """Schema for invoice response."""
     id: str
     invoice_number: str
     organization_id: str
     landlord_id: Optional[str] = None
     lease_id: Optional[str] = None
     transaction_class: str
     ac_receivable: Optional[str] = None
     bill_to: Optional[str] = None
     issue_date: date
     due_date: date
     currency: str
     spot_rate: Decimal
     lpo_number: Optional[str] = None
     sign_on_efims: bool = False
     payment_info: Optional[str] = None
     terms_conditions: Optional[str] = None
     memo: Optional[str] = None
     amount: Decimal
     vat_amount: Decimal
     total_amount: Decimal
     paid_amount: Decimal
     balance_amount: Decimal
     status: InvoiceStatus
     created_at: Optional[datetime] = None
     updated_at: Optional[datetime] = None

     invoice_items: List[InvoiceItemResponse] = Field(default_factory=list)
     # Only populated on single-invoice reads
     payments: Optional[List[PaymentResponse]] = None

     # Optional related data
     lessee_name: Optional[str] = None
     landlord_name: Optional[str] = None
     unit_label: Optional[str] = None


class InvoiceListResponse(CamelModel):
     """Schema for paginated invoice list response."""
     invoices: List[InvoiceResponse]
     total: int
     page: int = 1
     page_size: int = 50


class RefreshStatusResponse(CamelModel):
     updated: int
