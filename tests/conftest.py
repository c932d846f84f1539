"""
Pytest fixtures for the billing ledger test suite.

Provides:
- An in-memory SQLite database per test (tables created from the models)
- Organizations with directory records (lessee, landlord, lease)
- Service factories bound to an OrgContext
- A FastAPI TestClient with JWTs minted for a given organization

Environment Variables:
- DATABASE_URL and JWT_SECRET are forced to test values before any
  application module is imported.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"

from datetime import date, timedelta
from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.orm import Session, sessionmaker

from config import JWT_ALGORITHM, JWT_SECRET
from database import build_engine, build_session_factory, get_session_factory
from models import Base, Landlord, Lease, Lessee, Organization
from schemas.invoice import InvoiceCreate
from services.tenancy import OrgContext

TODAY = date.today()


@pytest.fixture
def engine():
    """Fresh in-memory database for each test."""
    test_engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    """
    Session for seeding data and calling services directly.

    The in-memory engine shares one connection between sessions, so commit
    (or roll back) before handing control to run_atomic or the API.
    """
    session = session_factory()
    yield session
    session.rollback()
    session.close()


def _seed_organization(db: Session, name: str, currency: str = "KES") -> dict:
    organization = Organization(name=name, base_currency=currency)
    db.add(organization)
    db.flush()

    lessee = Lessee(
        organization_id=organization.id,
        first_name="Jane",
        last_name="Wanjiku",
        email=f"jane@{name.lower().replace(' ', '')}.example",
    )
    landlord = Landlord(organization_id=organization.id, name=f"{name} Holdings")
    db.add_all([lessee, landlord])
    db.flush()

    lease = Lease(
        organization_id=organization.id,
        lessee_id=lessee.id,
        landlord_id=landlord.id,
        unit_label="A-101",
        rent_amount=Decimal("50000.00"),
        deposit_amount=Decimal("50000.00"),
        start_date=TODAY - timedelta(days=90),
    )
    db.add(lease)
    db.commit()
    # Plain ids: ORM instances would refresh (and open a transaction) after a rollback
    return {
        "organization_id": organization.id,
        "lessee_id": lessee.id,
        "landlord_id": landlord.id,
        "lease_id": lease.id,
        "ctx": OrgContext(organization_id=organization.id, base_currency=currency, actor="test-user"),
    }


@pytest.fixture
def org_a(db):
    return _seed_organization(db, "Org A")


@pytest.fixture
def org_b(db):
    return _seed_organization(db, "Org B")


@pytest.fixture
def ctx(org_a) -> OrgContext:
    return org_a["ctx"]


def make_invoice_draft(**overrides) -> InvoiceCreate:
    """Valid invoice request; keyword arguments override fields (snake_case)."""
    data = {
        "transaction_class": "RENT",
        "issue_date": TODAY,
        "due_date": TODAY + timedelta(days=30),
        "amount": Decimal("50000.00"),
        "vat_amount": Decimal("0"),
        "total_amount": Decimal("50000.00"),
    }
    data.update(overrides)
    return InvoiceCreate(**data)


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

def mint_token(**claims) -> str:
    payload = {"sub": "user-1", "name": "Test User", "role": "ACCOUNTANT"}
    payload.update(claims)
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def auth_headers(organization_id: str, **claims) -> dict:
    return {"Authorization": f"Bearer {mint_token(organizationId=organization_id, **claims)}"}


@pytest.fixture
def client(session_factory, db) -> Generator[TestClient, None, None]:
    """TestClient whose routes use the per-test database."""
    from main import app

    # Seeded data must be visible to the API's own sessions
    db.commit()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def headers_a(org_a) -> dict:
    return auth_headers(org_a["organization_id"])


@pytest.fixture
def headers_b(org_b) -> dict:
    return auth_headers(org_b["organization_id"])


def count_rows(session_factory: sessionmaker, model, **filters) -> int:
    """Count rows in a short-lived session of its own."""
    with session_factory() as session:
        return session.query(model).filter_by(**filters).count()
