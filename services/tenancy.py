"""
Organization context for ledger operations.

Every ledger service is constructed with an OrgContext. There is no
"unscoped" mode: a service cannot be created without one, and every query
it issues filters on ``ctx.organization_id``.
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from services.exceptions import NotFoundError


@dataclass(frozen=True)
class OrgContext:
     """The calling organization, its base currency and the acting user."""

     organization_id: str
     base_currency: str = "KES"
     actor: Optional[str] = None

     def __post_init__(self):
          if not isinstance(self.organization_id, str) or not self.organization_id.strip():
               raise ValueError("OrgContext requires a non-empty organization_id")
          if not self.base_currency:
               raise ValueError("OrgContext requires a base currency")


def require_context(ctx) -> OrgContext:
     """Reject anything that is not an OrgContext."""
     if not isinstance(ctx, OrgContext):
          raise TypeError(f"Ledger services require an OrgContext, got {type(ctx).__name__}")
     return ctx


def scoped_query(db: Session, model, ctx: OrgContext):
     """Query for ``model`` restricted to the context's organization."""
     return db.query(model).filter(model.organization_id == ctx.organization_id)


def get_scoped(db: Session, model, record_id: str, ctx: OrgContext, entity: Optional[str] = None):
     """
     Load one record of the caller's organization.

     A record that exists under another organization raises the same
     NotFoundError as one that does not exist at all.
     """
     row = scoped_query(db, model, ctx).filter(model.id == record_id).one_or_none()
     if row is None:
          raise NotFoundError(entity or model.__name__, record_id)
     return row
