import enum
from sqlalchemy import (
     Boolean, Column, Date, DateTime, Enum, ForeignKey, Numeric, String, Text,
     UniqueConstraint, func,
)
from sqlalchemy.orm import relationship
from .base import Base, OrganizationScoped, enum_values, new_id
from .payment import PaymentMethod


class ReceiptType(str, enum.Enum):
     APPLY_TO_INVOICE = "ApplyToInvoice"
     CASH_RECEIPT = "CashReceipt"


class ReceiptCategory(str, enum.Enum):
     RENT = "Rent"
     GENERAL = "General"


class ReceiptTo(str, enum.Enum):
     LANDLORD = "Landlord"
     GENERAL_LEDGER = "GeneralLedger"


class ReceiptSource(str, enum.Enum):
     """Direct receipt vs. deposit refund."""
     DIRECT_RECEIPT = "DirectReceipt"
     DEPOSIT_REFUND = "DepositRefund"


class Receipt(OrganizationScoped, Base):
     """
     Receipt model - one money-received event.

     Created atomically together with its lines and the payments it
     produced; deleting it reverses those payments first.
     """
     __tablename__ = "receipts"
     __table_args__ = (
          UniqueConstraint("organization_id", "receipt_number", name="uq_receipts_org_number"),
     )

     id = Column(String(36), primary_key=True, default=new_id)
     receipt_number = Column(String(50), nullable=False)
     receipt_type = Column(
          Enum(ReceiptType, name="receipt_type", create_constraint=True, values_callable=enum_values),
          nullable=False,
          default=ReceiptType.APPLY_TO_INVOICE
     )
     receipt_category = Column(
          Enum(ReceiptCategory, name="receipt_category", create_constraint=True, values_callable=enum_values),
          nullable=False,
          default=ReceiptCategory.RENT
     )

     # Payer
     received_from = Column(String(255), nullable=False)
     lessee_id = Column(String(36), ForeignKey("lessees.id"), nullable=True, index=True)
     landlord_id = Column(String(36), ForeignKey("landlords.id"), nullable=True, index=True)

     # Money movement
     payment_method = Column(
          Enum(PaymentMethod, name="receipt_payment_method", create_constraint=True),
          nullable=False
     )
     deposit_into_ac = Column(String(100), nullable=True)
     ref_no = Column(String(100), nullable=True)
     cheque_no = Column(String(50), nullable=True)
     cheque_date = Column(Date, nullable=True)
     payment_ref_no = Column(String(100), nullable=True)
     payment_bank = Column(String(100), nullable=True)
     amount_received = Column(Numeric(14, 2), nullable=False)
     amount_vat_inclusive = Column(Boolean, nullable=False, default=True)
     currency = Column(String(3), nullable=False, default="KES")
     spot_rate = Column(Numeric(18, 6), nullable=False, default=1)

     # Dates
     recording_date = Column(Date, nullable=False)
     record_date = Column(Date, nullable=True)
     banking_date = Column(Date, nullable=True)

     receipt_to = Column(
          Enum(ReceiptTo, name="receipt_to", create_constraint=True, values_callable=enum_values),
          nullable=False,
          default=ReceiptTo.LANDLORD
     )
     drt_or_drf = Column(
          Enum(ReceiptSource, name="receipt_source", create_constraint=True, values_callable=enum_values),
          nullable=False,
          default=ReceiptSource.DEPOSIT_REFUND
     )
     memo = Column(Text, nullable=True)
     notes = Column(Text, nullable=True)
     recorded_by = Column(String(255), nullable=True)

     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     lessee = relationship("Lessee", back_populates="receipts")
     landlord = relationship("Landlord")
     receipt_lines = relationship(
          "ReceiptLine",
          back_populates="receipt",
          cascade="all, delete-orphan",
          order_by="ReceiptLine.position",
     )
     payments = relationship("Payment", back_populates="receipt")

     def __repr__(self):
          return (
               f"<Receipt(id={self.id}, number='{self.receipt_number}', "
               f"amount_received={self.amount_received} {self.currency})>"
          )
