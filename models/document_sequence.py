# models/document_sequence.py
"""
DocumentSequence model - per-organization counters for invoice and receipt
numbers. The row is locked while it is incremented.
"""
from sqlalchemy import BigInteger, Column, String, UniqueConstraint
from .base import Base, OrganizationScoped, new_id


class DocumentSequence(OrganizationScoped, Base):
     __tablename__ = "document_sequences"
     __table_args__ = (
          UniqueConstraint("organization_id", "name", name="uq_document_sequences_org_name"),
     )

     id = Column(String(36), primary_key=True, default=new_id)
     name = Column(String(50), nullable=False)  # "invoice", "receipt"
     current_value = Column(BigInteger, nullable=False, default=0)

     def __repr__(self):
          return f"<DocumentSequence(organization_id={self.organization_id}, name='{self.name}', value={self.current_value})>"
