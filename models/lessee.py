from sqlalchemy import Column, String, DateTime, func
from sqlalchemy.orm import relationship
from .base import Base, OrganizationScoped, new_id


class Lessee(OrganizationScoped, Base):
     """
     Lessee model - the person or company renting a unit.
     Maintained by the directory service; the ledger references it from
     leases and receipts.
     """
     __tablename__ = "lessees"

     id = Column(String(36), primary_key=True, default=new_id)

     # Personal info
     first_name = Column(String(100), nullable=False)
     last_name = Column(String(100), nullable=False)
     email = Column(String(255), nullable=True)
     contact_number = Column(String(50), nullable=True)

     # Timestamps
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     leases = relationship("Lease", back_populates="lessee")
     receipts = relationship("Receipt", back_populates="lessee")

     @property
     def full_name(self) -> str:
          return f"{self.first_name} {self.last_name}"

     def __repr__(self):
          return f"<Lessee(id={self.id}, name='{self.first_name} {self.last_name}')>"
