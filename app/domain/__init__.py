"""Domain layer - Pure Python voucher posting logic."""

from app.domain.entities import CompanyCurrency, VoucherEntity
from app.domain.exceptions import (
    CurrencyPolicyError,
    ExchangeRateNotFoundError,
    InvalidExchangeRateError,
    LedgerError,
    VoucherNotFoundError,
    VoucherValidationError,
)
from app.domain.handlers import (
    HANDLERS,
    JournalEntryHandler,
    JournalEntryInput,
    JournalLineInput,
    OpeningBalanceHandler,
    OpeningBalanceInput,
    PaymentVoucherHandler,
    PaymentVoucherInput,
    ReceiptVoucherHandler,
    ReceiptVoucherInput,
    handler_for,
)
from app.domain.services import (
    CurrencyPrecisionService,
    RateDeviationDetector,
    RateResolutionService,
    VoucherNumberGenerator,
    fiscal_year,
)
from app.domain.value_objects import (
    Currency,
    DeviationType,
    ExchangeRate,
    RateDeviationWarning,
    RateLookupSource,
    RateSource,
    ResolvedRate,
    TransactionSide,
    UnresolvedRate,
    VoucherLineItem,
    VoucherStatus,
    VoucherType,
)
