"""
Transaction runner for ledger write operations.

Each public write (issue invoice, record payment, create receipt, deletes)
runs as one unit: a fresh session, commit on success, rollback on any
error. When the database aborts the transaction because of a serialization
failure or deadlock, the *whole* operation is executed again from the
start with a new session. Nothing is replayed partially, and no other error
is retried: a failed monetary mutation must be resubmitted by the caller.
"""
import logging
from typing import Callable, TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from config import LEDGER_MAX_TX_ATTEMPTS
from services.exceptions import ConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# PostgreSQL serialization_failure / deadlock_detected
_RETRYABLE_SQLSTATES = {"40001", "40P01"}
# SQL Server deadlock victim, SQLite busy database
_RETRYABLE_MARKERS = ("deadlock", "could not serialize", "1205", "database is locked")

# SQL Server ignores FOR UPDATE outside cursors; it takes the lock from a table hint
MSSQL_ROW_LOCK_HINT = "WITH (UPDLOCK, ROWLOCK)"


def for_update(statement, model):
     """Row-lock the rows of ``model`` read by a Query or select()."""
     return statement.with_for_update().with_hint(model, MSSQL_ROW_LOCK_HINT, "mssql")


def is_serialization_failure(exc: DBAPIError) -> bool:
     """True when the database rejected the transaction because of contention."""
     orig = getattr(exc, "orig", None)
     sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
     if sqlstate in _RETRYABLE_SQLSTATES:
          return True
     message = str(orig if orig is not None else exc).lower()
     return any(marker in message for marker in _RETRYABLE_MARKERS)


def run_atomic(
     session_factory: sessionmaker,
     operation: Callable[[Session], T],
     max_attempts: int = LEDGER_MAX_TX_ATTEMPTS,
) -> T:
     """
     Execute ``operation(session)`` in its own transaction.

     Args:
          session_factory: creates a fresh session per attempt
          operation: the complete ledger operation; must be safe to run again
               from scratch after a rollback
          max_attempts: attempts before giving up on serialization failures

     Returns:
          Whatever ``operation`` returned, after a successful commit.

     Raises:
          ConflictError: contention persisted for every attempt, or a unique
               constraint was violated by a concurrent insert
          Any ledger error raised by ``operation`` (after rollback)
     """
     attempt = 0
     while True:
          attempt += 1
          session = session_factory()
          try:
               result = operation(session)
               session.commit()
               return result
          except IntegrityError as exc:
               session.rollback()
               logger.warning("ledger_integrity_conflict", extra={"error": str(exc.orig)})
               raise ConflictError("The record was modified concurrently; resubmit the request") from exc
          except DBAPIError as exc:
               session.rollback()
               if not is_serialization_failure(exc):
                    raise
               if attempt >= max_attempts:
                    logger.error(
                         "ledger_transaction_conflict",
                         extra={"attempts": attempt},
                    )
                    raise ConflictError(
                         f"Transaction could not be serialized after {attempt} attempts"
                    ) from exc
               logger.warning(
                    "ledger_transaction_retry",
                    extra={"attempt": attempt, "max_attempts": max_attempts},
               )
          except Exception:
               session.rollback()
               raise
          finally:
               session.close()
