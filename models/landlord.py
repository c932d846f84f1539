# models/landlord.py
"""
Landlord model - owner of the let property.
Invoices can be billed directly against a landlord.
"""
from sqlalchemy import Column, String, DateTime, func
from sqlalchemy.orm import relationship
from .base import Base, OrganizationScoped, new_id


class Landlord(OrganizationScoped, Base):
     """
     Landlord profile - maps to the directory's 'landlords' table.
     """
     __tablename__ = "landlords"

     id = Column(String(36), primary_key=True, default=new_id)
     name = Column(String(255), nullable=False)
     email = Column(String(255), nullable=True)
     contact_number = Column(String(50), nullable=True)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     leases = relationship("Lease", back_populates="landlord")
     invoices = relationship("Invoice", back_populates="landlord")

     def __repr__(self):
          return f"<Landlord(id={self.id}, name='{self.name}')>"
