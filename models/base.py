import uuid

from sqlalchemy.orm import DeclarativeBase, declared_attr
from sqlalchemy import Column, ForeignKey, String


def new_id() -> str:
     """Primary keys are UUID4 strings."""
     return str(uuid.uuid4())


class Base(DeclarativeBase):
     """
     Base class for all SQLAlchemy models.
     Provides common configuration and mixins.
     """

     @declared_attr.directive
     def __tablename__(cls) -> str:
          """
          Automatically generate table name from class name.
          Example: ReceiptLine -> receipt_lines
          """
          import re
          name = re.sub(r'(?<!^)(?=[A-Z])', '_', cls.__name__).lower()
          # Pluralize (simple version)
          if name.endswith('y'):
               return name[:-1] + 'ies'
          elif name.endswith('s'):
               return name + 'es'
          return name + 's'


class OrganizationScoped:
     """
     Mixin for every record that belongs to one organization.

     organization_id is indexed and must appear in every query predicate;
     services never load a scoped row by primary key alone.
     """
     @declared_attr
     def organization_id(cls):
          return Column(
               String(36),
               ForeignKey("organizations.id"),
               nullable=False,
               index=True,
          )


def enum_values(enum_cls):
     """Persist enum values (e.g. "ApplyToBill") rather than member names."""
     return [member.value for member in enum_cls]
