"""Infrastructure layer."""

from app.infrastructure.database import SessionLocal, get_db, init_db, seed_currency_catalog
from app.infrastructure.database.models import (
    Account,
    AccountingVoucher,
    Company,
    CompanyCurrencyRecord,
    CurrencyRecord,
    ExchangeRateRecord,
    VoucherLine,
    VoucherSequence,
)
from app.infrastructure.memory import in_memory_repositories
