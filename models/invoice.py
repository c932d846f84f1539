import enum
from sqlalchemy import (
     Boolean, Column, Date, DateTime, Enum, ForeignKey, Numeric, String, Text,
     UniqueConstraint, func,
)
from sqlalchemy.orm import relationship
from .base import Base, OrganizationScoped, new_id


class InvoiceStatus(str, enum.Enum):
     """Enumeration for invoice payment status."""
     DRAFT = "DRAFT"
     PENDING = "PENDING"
     PARTIALLY_PAID = "PARTIALLY_PAID"
     PAID = "PAID"
     OVERDUE = "OVERDUE"
     CANCELLED = "CANCELLED"


# Statuses from which an invoice may still be cancelled
CANCELLABLE_STATUSES = frozenset({
     InvoiceStatus.DRAFT,
     InvoiceStatus.PENDING,
     InvoiceStatus.PARTIALLY_PAID,
})


class Invoice(OrganizationScoped, Base):
     """
     Invoice model - a bill issued against a lease or directly against a landlord.

     paid_amount, balance_amount and status are owned by balance
     reconciliation: they are recomputed from the invoice's payments and
     never edited directly.
     """
     __tablename__ = "invoices"
     __table_args__ = (
          UniqueConstraint("organization_id", "invoice_number", name="uq_invoices_org_number"),
     )

     id = Column(String(36), primary_key=True, default=new_id)
     invoice_number = Column(String(50), nullable=False)

     # Foreign keys
     landlord_id = Column(String(36), ForeignKey("landlords.id"), nullable=True, index=True)
     lease_id = Column(String(36), ForeignKey("leases.id"), nullable=True, index=True)

     # Invoice details
     transaction_class = Column(String(50), nullable=False)
     ac_receivable = Column(String(100), nullable=True)
     bill_to = Column(String(255), nullable=True)
     issue_date = Column(Date, nullable=False)
     due_date = Column(Date, nullable=False, index=True)
     currency = Column(String(3), nullable=False, default="KES")
     spot_rate = Column(Numeric(18, 6), nullable=False, default=1)  # informational only
     lpo_number = Column(String(100), nullable=True)
     sign_on_efims = Column(Boolean, nullable=False, default=False)
     payment_info = Column(Text, nullable=True)
     terms_conditions = Column(Text, nullable=True)
     memo = Column(Text, nullable=True)

     # Amounts
     amount = Column(Numeric(14, 2), nullable=False)
     vat_amount = Column(Numeric(14, 2), nullable=False, default=0)
     total_amount = Column(Numeric(14, 2), nullable=False)
     paid_amount = Column(Numeric(14, 2), nullable=False, default=0)
     balance_amount = Column(Numeric(14, 2), nullable=False)

     status = Column(
          Enum(InvoiceStatus, name="invoice_status", create_constraint=True),
          default=InvoiceStatus.PENDING,
          nullable=False,
          index=True
     )

     # Timestamps
     created_at = Column(DateTime, server_default=func.now(), nullable=False)
     updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

     # Relationships
     organization = relationship("Organization", back_populates="invoices")
     landlord = relationship("Landlord", back_populates="invoices")
     lease = relationship("Lease", back_populates="invoices")
     invoice_items = relationship(
          "InvoiceItem",
          back_populates="invoice",
          cascade="all, delete-orphan",
          order_by="InvoiceItem.position",
     )
     # No cascade: an invoice with payments cannot be deleted
     payments = relationship("Payment", back_populates="invoice", order_by="Payment.payment_date")

     def __repr__(self):
          return (
               f"<Invoice(id={self.id}, number='{self.invoice_number}', total={self.total_amount}, "
               f"balance={self.balance_amount}, status='{self.status.value}')>"
          )

     @property
     def is_cancelled(self) -> bool:
          return self.status == InvoiceStatus.CANCELLED

     def mark_as_cancelled(self) -> None:
          """Mark the invoice as cancelled. Recorded payments are kept."""
          self.status = InvoiceStatus.CANCELLED
