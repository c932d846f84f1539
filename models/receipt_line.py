from sqlalchemy import Column, Date, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship
from .base import Base, OrganizationScoped, new_id


class ReceiptLine(OrganizationScoped, Base):
     """
     ReceiptLine model - how much of a receipt was applied to one invoice.

     The invoice figures are a snapshot taken when the receipt was created.
     """
     __tablename__ = "receipt_lines"

     id = Column(String(36), primary_key=True, default=new_id)
     receipt_id = Column(
          String(36),
          ForeignKey("receipts.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     invoice_id = Column(String(36), ForeignKey("invoices.id"), nullable=True, index=True)
     position = Column(Integer, nullable=False, default=0)

     line_date = Column(Date, nullable=False)
     invoice_number = Column(String(50), nullable=True)
     particular = Column(String(500), nullable=False, default="")
     invoice_total = Column(Numeric(14, 2), nullable=False)
     prev_receipts = Column(Numeric(14, 2), nullable=False, default=0)
     amount_due = Column(Numeric(14, 2), nullable=False)
     payment = Column(Numeric(14, 2), nullable=False)
     new_balance = Column(Numeric(14, 2), nullable=False)
     wht_tax = Column(Numeric(14, 2), nullable=False, default=0)

     # Relationships
     receipt = relationship("Receipt", back_populates="receipt_lines")
     invoice = relationship("Invoice")

     def __repr__(self):
          return f"<ReceiptLine(id={self.id}, invoice_number='{self.invoice_number}', payment={self.payment})>"
