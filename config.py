# config.py
"""
Application settings read from the environment.

Values are loaded once at import time (python-dotenv picks up a local .env).
Database connection settings live in database.py next to the engine.
"""
import os
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()

# JWT verification (tokens are issued by the auth service)
JWT_SECRET = os.getenv("JWT_SECRET", "")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# Comma-separated list of allowed origins
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "").split(",") if origin.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Fallback when an organization has no base currency configured
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "KES")

# Receipt totals must match the amount received within this many currency units
AMOUNT_TOLERANCE = Decimal("0.01")

# Whole-operation attempts when the database reports a serialization failure
LEDGER_MAX_TX_ATTEMPTS = int(os.getenv("LEDGER_MAX_TX_ATTEMPTS", "3"))

# Role that is not bound to one organization and must pick one per request
SUPER_ADMIN_ROLE = "SUPER_ADMIN"
ORGANIZATION_HEADER = "X-Organization-Id"
