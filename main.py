import logging
import os
from fastapi import FastAPI, Request, Depends
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session
from dotenv import load_dotenv
import uvicorn

from config import CORS_ORIGINS, LOG_LEVEL
from database import get_session
from logging_config import configure_logging
from routers import invoices_router, payments_router, receipts_router
from services.exceptions import (
    ConflictError,
    CurrencyMismatchError,
    DependentRecordsError,
    LedgerError,
    LedgerValidationError,
    NotFoundError,
    OverpaymentError,
    ReconciliationMismatchError,
)

# Load .env
load_dotenv()

configure_logging(LOG_LEVEL)
logger = logging.getLogger("ledger")

# Ledger error -> HTTP status
ERROR_STATUS = {
    LedgerValidationError: 422,
    NotFoundError: 404,
    OverpaymentError: 422,
    ReconciliationMismatchError: 422,
    CurrencyMismatchError: 422,
    ConflictError: 409,
    DependentRecordsError: 409,
}

# App instance
app = FastAPI(title="Estate Ledger", description="Multi-tenant property billing ledger")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    status_code = next(
        (ERROR_STATUS[cls] for cls in type(exc).__mro__ if cls in ERROR_STATUS),
        400,
    )
    logger.info(
        "ledger_error",
        extra={"code": exc.code, "path": request.url.path, "status_code": status_code},
    )
    return JSONResponse(status_code=status_code, content={"error": exc.code, "detail": exc.message})


@app.get("/health")
def health(db: Session = Depends(get_session)):
    try:
        db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("health_check_failed")
        return JSONResponse(status_code=503, content={"status": "unavailable", "database": "down"})
    return {"status": "ok", "database": "up"}


app.include_router(invoices_router)
app.include_router(payments_router)
app.include_router(receipts_router)


# Fallback for unhandled errors
@app.middleware("http")
async def internal_error_middleware(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("unhandled_error", extra={"path": request.url.path})
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

if __name__ == "__main__":
    port = int(os.getenv("PORT", 10000))
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True)
