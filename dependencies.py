# dependencies.py
"""
Request dependencies shared by the ledger routers.

Authentication is done by the auth service; the ledger only verifies the
bearer token and derives the organization context from its claims.
"""
import logging

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from sqlalchemy.orm import sessionmaker

from config import DEFAULT_CURRENCY, JWT_ALGORITHM, JWT_SECRET, ORGANIZATION_HEADER, SUPER_ADMIN_ROLE
from database import get_session_factory
from models import Organization
from services.tenancy import OrgContext

logger = logging.getLogger(__name__)


def verify_token(request: Request) -> dict:
     auth = request.headers.get("Authorization")
     if not auth or not auth.startswith("Bearer "):
          raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
     token = auth.split(" ")[1]
     try:
          return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
     except JWTError:
          raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")


def get_org_context(
     request: Request,
     token: dict = Depends(verify_token),
     session_factory: sessionmaker = Depends(get_session_factory),
) -> OrgContext:
     """
     Build the OrgContext for the current request.

     Regular users are bound to the organization in their token. A super
     admin has none and must name one in the X-Organization-Id header.
     """
     if token.get("role") == SUPER_ADMIN_ROLE:
          organization_id = request.headers.get(ORGANIZATION_HEADER)
          if not organization_id:
               raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Super admins must select an organization with the {ORGANIZATION_HEADER} header",
               )
     else:
          organization_id = token.get("organizationId") or token.get("organization_id")
          if not organization_id:
               raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="User is not assigned to an organization",
               )

     # Short-lived session: no transaction stays open while the route runs
     with session_factory() as db:
          organization = db.get(Organization, str(organization_id))
     if organization is None:
          logger.warning("unknown_organization", extra={"organization_id": organization_id})
          raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unknown organization")

     return OrgContext(
          organization_id=organization.id,
          base_currency=organization.base_currency or DEFAULT_CURRENCY,
          actor=token.get("name") or token.get("email") or token.get("sub"),
     )
