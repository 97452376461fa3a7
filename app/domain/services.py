"""
Domain Services - Rate resolution, rate deviation heuristics and voucher numbering.
"""

import logging
from datetime import date
from decimal import Decimal

from .currency_catalog import default_decimal_places
from .exceptions import InvalidExchangeRateError
from .repositories import (
    ICompanyService,
    ICurrencyRepository,
    IExchangeRateRepository,
    IVoucherSequenceRepository,
)
from .value_objects import (
    DeviationType,
    RateDeviationWarning,
    RateLookupSource,
    RateResolution,
    ResolvedRate,
    UnresolvedRate,
    VoucherNumber,
    VoucherType,
    round_money,
    to_decimal,
)

logger = logging.getLogger(__name__)

DEFAULT_PERCENTAGE_THRESHOLD = Decimal("0.20")
DEFAULT_HISTORY_WINDOW = 10
DEFAULT_DECIMAL_SHIFT_TOLERANCE = Decimal("0.15")


class RateResolutionService:
    """
    Service - Find the applicable rate for a currency pair on a date.

    Fallback order:
    1. Rate dated exactly on the date (latest created wins)
    2. Most recent rate ever recorded for the pair
    3. UnresolvedRate - never a default of 1.0

    Same-currency pairs are reported as unresolved: callers special-case
    them with a rate of 1 without querying the store.
    """

    def __init__(self, exchange_rate_repo: IExchangeRateRepository):
        self.exchange_rate_repo = exchange_rate_repo

    def resolve(
        self,
        company_id: str,
        from_currency: str,
        to_currency: str,
        rate_date: date,
    ) -> RateResolution:
        from_code = from_currency.strip().upper()
        to_code = to_currency.strip().upper()

        if from_code == to_code:
            return UnresolvedRate()

        exact = self.exchange_rate_repo.get_latest_rate(company_id, from_code, to_code, rate_date)
        if exact is not None:
            logger.debug("Rate %s/%s on %s found for exact date", from_code, to_code, rate_date)
            return ResolvedRate(rate=exact, source=RateLookupSource.EXACT_DATE)

        most_recent = self.exchange_rate_repo.get_most_recent_rate(company_id, from_code, to_code)
        if most_recent is not None:
            logger.debug(
                "Rate %s/%s on %s falls back to rate dated %s",
                from_code, to_code, rate_date, most_recent.rate_date,
            )
            return ResolvedRate(rate=most_recent, source=RateLookupSource.MOST_RECENT)

        logger.debug("No rate recorded for %s/%s (company %s)", from_code, to_code, company_id)
        return UnresolvedRate()


class RateDeviationDetector:
    """
    Service - Flag suspicious proposed rates (typos, decimal shifts).
    Warnings are advisory only and never block posting.
    """

    def __init__(
        self,
        exchange_rate_repo: IExchangeRateRepository,
        percentage_threshold: Decimal = DEFAULT_PERCENTAGE_THRESHOLD,
        history_window: int = DEFAULT_HISTORY_WINDOW,
        decimal_shift_tolerance: Decimal = DEFAULT_DECIMAL_SHIFT_TOLERANCE,
    ):
        self.exchange_rate_repo = exchange_rate_repo
        self.percentage_threshold = to_decimal(percentage_threshold)
        self.history_window = history_window
        tolerance = to_decimal(decimal_shift_tolerance)
        # (target ratio, absolute tolerance, label), checked in this order
        self.shift_bands: tuple[tuple[Decimal, Decimal, str], ...] = (
            (Decimal("10"), tolerance * 10, "10x"),
            (Decimal("0.1"), tolerance, "1/10 of"),
            (Decimal("100"), tolerance * 100, "100x"),
            (Decimal("0.01"), tolerance / 10, "1/100 of"),
        )

    def detect_deviations(
        self,
        company_id: str,
        from_currency: str,
        to_currency: str,
        proposed_rate: Decimal,
    ) -> list[RateDeviationWarning]:
        proposed = to_decimal(proposed_rate)
        if proposed <= 0:
            raise InvalidExchangeRateError("Exchange rate must be positive")

        from_code = from_currency.strip().upper()
        to_code = to_currency.strip().upper()
        recent = self.exchange_rate_repo.get_recent_rates(
            company_id, from_code, to_code, self.history_window
        )

        if not recent:
            return [RateDeviationWarning(
                type=DeviationType.FIRST_RATE,
                message=(
                    f"This is the first exchange rate for {from_code}/{to_code}. "
                    "No historical comparison available."
                ),
            )]

        warnings: list[RateDeviationWarning] = []

        average = sum((r.rate for r in recent), Decimal("0")) / len(recent)
        deviation = abs(proposed - average) / average
        if deviation > self.percentage_threshold:
            warnings.append(RateDeviationWarning(
                type=DeviationType.PERCENTAGE_DEVIATION,
                message=(
                    f"Rate {proposed} deviates {deviation * 100:.1f}% "
                    f"from recent average ({average:.4f})"
                ),
                suggested_rate=average,
                percentage_deviation=deviation,
            ))

        shift = self._check_decimal_shift(proposed, recent[0].rate)
        if shift is not None:
            warnings.append(shift)

        if warnings:
            logger.warning(
                "Rate %s for %s/%s raised %s",
                proposed, from_code, to_code, [w.type.value for w in warnings],
            )
        return warnings

    def _check_decimal_shift(self, proposed: Decimal, recent: Decimal) -> RateDeviationWarning | None:
        ratio = proposed / recent
        for target, tolerance, label in self.shift_bands:
            if abs(ratio - target) < tolerance:
                return RateDeviationWarning(
                    type=DeviationType.DECIMAL_SHIFT,
                    message=(
                        f"Rate {proposed} appears to be {label} the recent rate ({recent}). "
                        "Possible decimal error?"
                    ),
                    suggested_rate=recent,
                )
        return None


def fiscal_year(voucher_date: date, start_month: int = 1) -> int:
    """Fiscal year label: the calendar year in which the fiscal year starts."""
    if not 1 <= start_month <= 12:
        raise ValueError(f"Fiscal year start month must be 1-12, got {start_month}")
    if voucher_date.month < start_month:
        return voucher_date.year - 1
    return voucher_date.year


class VoucherNumberGenerator:
    """
    Service - Sequential human-readable voucher numbers.
    Format: {PREFIX}-{FISCAL_YEAR}-{SEQUENCE}, e.g. PAY-2025-001.
    Uniqueness relies on the sequence repository's atomic increment.
    """

    def __init__(
        self,
        sequence_repo: IVoucherSequenceRepository,
        company_service: ICompanyService | None = None,
        padding: int = 3,
    ):
        self.sequence_repo = sequence_repo
        self.company_service = company_service
        self.padding = padding

    def generate(self, company_id: str, voucher_type: VoucherType, voucher_date: date) -> VoucherNumber:
        start_month = 1
        if self.company_service is not None:
            start_month = self.company_service.get_fiscal_year_start(company_id)
        year = fiscal_year(voucher_date, start_month)
        sequence = self.sequence_repo.next_value(company_id, voucher_type, year)
        return VoucherNumber(f"{voucher_type.prefix}-{year}-{sequence:0{self.padding}d}")


class CurrencyPrecisionService:
    """Service - Currency-aware rounding based on catalog decimal places."""

    def __init__(self, currency_repo: ICurrencyRepository | None = None):
        self.currency_repo = currency_repo

    def decimal_places(self, code: str) -> int:
        if self.currency_repo is not None:
            currency = self.currency_repo.find_by_code(code)
            if currency is not None:
                return currency.decimal_places
        return default_decimal_places(code)

    def round(self, amount: Decimal, code: str) -> Decimal:
        return round_money(to_decimal(amount), self.decimal_places(code))

    def base_amount(self, amount: Decimal, rate: Decimal, base_currency: str) -> Decimal:
        return self.round(to_decimal(amount) * to_decimal(rate), base_currency)

    def format(self, amount: Decimal, code: str) -> str:
        return f"{self.round(amount, code):.{self.decimal_places(code)}f}"


def round_by_currency(amount: Decimal, code: str) -> Decimal:
    """Round using the seed catalog's decimals for code (2 if unknown)."""
    return CurrencyPrecisionService().round(amount, code)


def format_by_currency(amount: Decimal, code: str) -> str:
    return CurrencyPrecisionService().format(amount, code)
