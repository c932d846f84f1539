"""
Document numbering - per-organization monotonic invoice and receipt numbers.

Each (organization, sequence name) pair owns one counter row in
``document_sequences``. The row is read with ``SELECT ... FOR UPDATE`` and
incremented inside the caller's transaction, so concurrent issuers within
one organization are serialized and a rolled back transaction gives its
number back. Numbers are never derived from ``MAX(...) + 1`` or a count.
"""
import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import DocumentSequence
from services.tenancy import OrgContext, require_context
from services.transactions import for_update

logger = logging.getLogger(__name__)

INVOICE_SEQUENCE = "invoice"
RECEIPT_SEQUENCE = "receipt"

_PREFIXES = {
     INVOICE_SEQUENCE: "INV",
     RECEIPT_SEQUENCE: "REC",
}


def format_document_number(prefix: str, on: date, value: int) -> str:
     """INV-202601-0007 style numbers."""
     return f"{prefix}-{on.year}{on.month:02d}-{value:04d}"


class DocumentNumberService:
     """Allocates document numbers for one organization."""

     def __init__(self, db: Session, ctx: OrgContext):
          self.db = db
          self.ctx = require_context(ctx)

     def _locked_counter(self, name: str):
          statement = (
               select(DocumentSequence)
               .where(
                    DocumentSequence.organization_id == self.ctx.organization_id,
                    DocumentSequence.name == name,
               )
          )
          return self.db.execute(
               for_update(statement, DocumentSequence).execution_options(populate_existing=True)
          ).scalar_one_or_none()

     def next_value(self, name: str) -> int:
          """
          Increment and return the organization's counter for ``name``.

          The first call creates the counter row inside a savepoint; if a
          concurrent transaction created it first, the savepoint is rolled
          back and the existing row is locked instead.
          """
          counter = self._locked_counter(name)
          if counter is None:
               savepoint = self.db.begin_nested()
               try:
                    counter = DocumentSequence(
                         organization_id=self.ctx.organization_id,
                         name=name,
                         current_value=1,
                    )
                    self.db.add(counter)
                    self.db.flush()
                    savepoint.commit()
                    return 1
               except IntegrityError:
                    savepoint.rollback()
                    logger.debug(
                         "sequence_counter_race_retry",
                         extra={"organization_id": self.ctx.organization_id, "sequence_name": name},
                    )
                    counter = self._locked_counter(name)
                    if counter is None:
                         raise

          counter.current_value += 1
          self.db.flush()
          return counter.current_value

     def next_number(self, name: str, on: date) -> str:
          value = self.next_value(name)
          number = format_document_number(_PREFIXES[name], on, value)
          logger.debug(
               "document_number_allocated",
               extra={"organization_id": self.ctx.organization_id, "sequence_name": name, "number": number},
          )
          return number
