# models/organization.py
"""
Organization model - the multi-tenant data isolation boundary.

Managed by the directory service; the ledger only reads it to resolve the
caller's base currency.
"""
from sqlalchemy import Column, String, DateTime, func
from sqlalchemy.orm import relationship
from .base import Base, new_id


class Organization(Base):
     """
     Organization (the tenant in the multi-tenant sense).
     Every ledger row carries its id.
     """
     __tablename__ = "organizations"

     id = Column(String(36), primary_key=True, default=new_id)
     name = Column(String(255), nullable=False)
     base_currency = Column(String(3), nullable=False, default="KES")
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     invoices = relationship("Invoice", back_populates="organization")

     def __repr__(self):
          return f"<Organization(id={self.id}, name='{self.name}', base_currency='{self.base_currency}')>"
