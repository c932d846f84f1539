import enum
from sqlalchemy import Column, String, Numeric, Date, DateTime, Enum, ForeignKey, Text, func
from sqlalchemy.orm import relationship
from .base import Base, OrganizationScoped, enum_values, new_id


class PaymentMethod(str, enum.Enum):
     """How the money was received."""
     CASH = "CASH"
     BANK_TRANSFER = "BANK_TRANSFER"
     CHEQUE = "CHEQUE"
     MPESA = "MPESA"
     CARD = "CARD"
     OTHER = "OTHER"


class PaymentKind(str, enum.Enum):
     """Whether the payment settles a bill or is a plain cash movement."""
     APPLY_TO_BILL = "ApplyToBill"
     CASH_PAYMENT = "CashPayment"


class Payment(OrganizationScoped, Base):
     """
     Payment model - a single monetary movement received from a payer.

     Rows are written once (directly or as part of a receipt) and never
     updated. Removing one re-runs reconciliation on its invoice.
     """
     __tablename__ = "payments"

     id = Column(String(36), primary_key=True, default=new_id)

     # Foreign keys
     invoice_id = Column(String(36), ForeignKey("invoices.id"), nullable=True, index=True)
     lease_id = Column(String(36), ForeignKey("leases.id"), nullable=True, index=True)
     receipt_id = Column(String(36), ForeignKey("receipts.id"), nullable=True, index=True)

     payment_date = Column(Date, nullable=False)
     amount = Column(Numeric(14, 2), nullable=False)
     currency = Column(String(3), nullable=False, default="KES")
     spot_rate = Column(Numeric(18, 6), nullable=False, default=1)
     payment_method = Column(
          Enum(PaymentMethod, name="payment_method", create_constraint=True),
          nullable=False
     )
     payment_type = Column(
          Enum(
               PaymentKind,
               name="payment_kind",
               create_constraint=True,
               values_callable=enum_values,
          ),
          nullable=False,
          default=PaymentKind.APPLY_TO_BILL
     )

     # Method-specific references
     payment_reference = Column(String(100), nullable=True)
     cheque_number = Column(String(50), nullable=True)
     cheque_date = Column(Date, nullable=True)
     mpesa_receipt_number = Column(String(50), nullable=True)
     mpesa_phone_number = Column(String(30), nullable=True)

     payee = Column(String(255), nullable=True)
     paid_from = Column(String(255), nullable=True)
     paid_to = Column(String(255), nullable=True)
     notes = Column(Text, nullable=True)
     attachments = Column(Text, nullable=True)
     recorded_by = Column(String(255), nullable=True)

     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     invoice = relationship("Invoice", back_populates="payments")
     lease = relationship("Lease")
     receipt = relationship("Receipt", back_populates="payments")

     def __repr__(self):
          return (
               f"<Payment(id={self.id}, invoice_id={self.invoice_id}, receipt_id={self.receipt_id}, "
               f"amount={self.amount} {self.currency})>"
          )
