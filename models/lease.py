from sqlalchemy import Column, String, Numeric, Date, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from .base import Base, OrganizationScoped, new_id


class Lease(OrganizationScoped, Base):
     """
     Lease model - rental agreement between a lessee and a unit.
     Maps to the directory's 'leases' table; invoices and payments may
     reference it.
     """
     __tablename__ = "leases"

     id = Column(String(36), primary_key=True, default=new_id)
     lessee_id = Column(String(36), ForeignKey("lessees.id"), nullable=False, index=True)
     landlord_id = Column(String(36), ForeignKey("landlords.id"), nullable=True, index=True)
     unit_label = Column(String(100), nullable=True)

     # Pricing
     rent_amount = Column(Numeric(14, 2), nullable=False)
     deposit_amount = Column(Numeric(14, 2), nullable=True)

     # Lease period
     start_date = Column(Date, nullable=False)
     end_date = Column(Date, nullable=True)

     # Timestamps
     created_at = Column(DateTime, server_default=func.now(), nullable=False)
     updated_at = Column(DateTime, onupdate=func.now(), nullable=True)

     # Relationships
     lessee = relationship("Lessee", back_populates="leases")
     landlord = relationship("Landlord", back_populates="leases")
     invoices = relationship("Invoice", back_populates="lease")

     def __repr__(self):
          return f"<Lease(id={self.id}, lessee_id={self.lessee_id}, unit='{self.unit_label}')>"
