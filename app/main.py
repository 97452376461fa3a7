"""
Main FastAPI application - Multi-tenant voucher posting ledger.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routers import currencies, vouchers
from app.core.logging_config import configure_logging
from app.domain.exceptions import (
    CurrencyPolicyError,
    ExchangeRateNotFoundError,
    InvalidExchangeRateError,
    VoucherNotFoundError,
    VoucherValidationError,
)
from app.infrastructure.database import SessionLocal, init_db, seed_currency_catalog

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan - startup and shutdown events."""
    configure_logging()
    init_db()
    db = SessionLocal()
    try:
        seed_currency_catalog(db)
    finally:
        db.close()
    logger.info("Ledger API started")
    yield


app = FastAPI(
    title="Ledger Posting API",
    description="""
## Multi-tenant voucher posting engine

### Features:
- **Vouchers**: payment, receipt, journal entry and opening balance posting
- **Multi-currency**: per-line base amounts at the company base currency
- **Exchange rates**: exact-date lookup with most-recent fallback, never a silent 1.0
- **Rate warnings**: first rate, percentage deviation and decimal-shift detection
- **Numbering**: PAY-2025-001 style numbers per company, kind and fiscal year
    """,
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(vouchers.router)
app.include_router(currencies.router)


@app.get("/")
def root():
    return {
        "name": "Ledger Posting API",
        "version": "0.1.0",
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.exception_handler(VoucherValidationError)
async def voucher_validation_error_handler(request: Request, exc: VoucherValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "errors": exc.errors}
    )


@app.exception_handler(ExchangeRateNotFoundError)
async def exchange_rate_not_found_handler(request: Request, exc: ExchangeRateNotFoundError):
    """Client should prompt the user for a manual rate."""
    return JSONResponse(
        status_code=422,
        content={
            "code": "EXCHANGE_RATE_NOT_FOUND",
            "detail": str(exc),
            "from_currency": exc.from_currency,
            "to_currency": exc.to_currency,
            "rate_date": exc.rate_date.isoformat(),
        }
    )


@app.exception_handler(CurrencyPolicyError)
@app.exception_handler(InvalidExchangeRateError)
async def currency_error_handler(request: Request, exc: ValueError):
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc)}
    )


@app.exception_handler(VoucherNotFoundError)
async def not_found_handler(request: Request, exc: VoucherNotFoundError):
    return JSONResponse(
        status_code=404,
        content={"detail": str(exc)}
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle validation errors."""
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc)}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
