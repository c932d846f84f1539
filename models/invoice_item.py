from sqlalchemy import Column, Integer, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, OrganizationScoped, new_id


class InvoiceItem(OrganizationScoped, Base):
     """
     InvoiceItem model - one billed line of an invoice.
     Written once at issuance together with the invoice.
     """
     __tablename__ = "invoice_items"

     id = Column(String(36), primary_key=True, default=new_id)
     invoice_id = Column(
          String(36),
          ForeignKey("invoices.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     position = Column(Integer, nullable=False, default=0)

     revenue_expense_item = Column(String(255), nullable=True)
     description = Column(String(500), nullable=False, default="")
     income_account = Column(String(100), nullable=True)
     quantity = Column(Numeric(14, 2), nullable=False, default=1)
     unit_price = Column(Numeric(14, 2), nullable=False, default=0)
     vat_rate = Column(Numeric(7, 4), nullable=False, default=0)  # percent
     vat_amount = Column(Numeric(14, 2), nullable=False, default=0)
     amount = Column(Numeric(14, 2), nullable=False, default=0)  # line total, excluding VAT
     class_name = Column(String(100), nullable=True)

     # Relationships
     invoice = relationship("Invoice", back_populates="invoice_items")

     def __repr__(self):
          return f"<InvoiceItem(id={self.id}, invoice_id={self.invoice_id}, amount={self.amount})>"
