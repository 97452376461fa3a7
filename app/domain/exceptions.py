"""
Domain errors for the voucher posting engine.
"""

from datetime import date


class LedgerError(Exception):
    """Base exception for all ledger failures."""


class VoucherValidationError(LedgerError, ValueError):
    """Raised when a voucher intent breaks a shape or balance rule."""

    def __init__(self, voucher_kind: str, errors: list[str]):
        self.voucher_kind = voucher_kind
        self.errors = list(errors)
        super().__init__(f"{voucher_kind} validation failed:\n" + "\n".join(self.errors))


class ExchangeRateNotFoundError(LedgerError, LookupError):
    """
    Raised when no rate exists for a foreign-currency posting.

    The caller must obtain a manual rate and save it as a reference rate
    before retrying. Never a ValueError, so it is not handled as bad input.
    """

    def __init__(self, from_currency: str, to_currency: str, rate_date: date):
        self.from_currency = from_currency
        self.to_currency = to_currency
        self.rate_date = rate_date
        super().__init__(
            f"Exchange rate not found for {from_currency}/{to_currency} on {rate_date.isoformat()}"
        )


class CurrencyPolicyError(LedgerError, ValueError):
    """Raised when a currency enable/disable/usage rule is violated."""


class InvalidExchangeRateError(LedgerError, ValueError):
    """Raised when a rate value is not strictly positive."""


class VoucherNotFoundError(LedgerError, LookupError):
    """Raised when a voucher does not exist for the tenant."""
