"""
Exchange rate use cases - suggestion, recording and deviation checks.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation

from app.domain.exceptions import InvalidExchangeRateError
from app.domain.repositories import ICompanyService, IExchangeRateRepository, IUnitOfWork
from app.domain.services import RateDeviationDetector, RateResolutionService
from app.domain.value_objects import (
    ExchangeRate,
    RateDeviationWarning,
    RateResolution,
    RateSource,
    to_decimal,
)

logger = logging.getLogger(__name__)


def _coerce_rate(value: object) -> Decimal:
    try:
        rate = to_decimal(value)
    except InvalidOperation as exc:
        raise InvalidExchangeRateError(f"Exchange rate must be a number, got {value!r}") from exc
    if rate <= 0:
        raise InvalidExchangeRateError("Exchange rate must be positive")
    return rate


@dataclass(frozen=True)
class SuggestedRate:
    from_currency: str
    to_currency: str
    rate_date: date
    resolution: RateResolution


class GetSuggestedRateUseCase:
    """Rate a voucher dated rate_date would use; defaults to_currency to the base currency."""

    def __init__(self, rate_resolver: RateResolutionService, company_service: ICompanyService):
        self.rate_resolver = rate_resolver
        self.company_service = company_service

    def execute(
        self,
        company_id: str,
        from_currency: str,
        rate_date: date,
        to_currency: str | None = None,
    ) -> SuggestedRate:
        source = from_currency.strip().upper()
        target = (to_currency or self.company_service.get_base_currency(company_id)).strip().upper()
        resolution = self.rate_resolver.resolve(company_id, source, target, rate_date)
        return SuggestedRate(source, target, rate_date, resolution)


@dataclass
class SaveReferenceRateInput:
    from_currency: str
    rate: Decimal | int | float | str
    rate_date: date
    to_currency: str | None = None
    source: RateSource = RateSource.REFERENCE


class SaveReferenceRateUseCase:
    """
    Append a rate observation.
    Deviation warnings are computed against history before the append and
    returned alongside the stored rate; they never block the save.
    """

    def __init__(
        self,
        exchange_rate_repo: IExchangeRateRepository,
        deviation_detector: RateDeviationDetector,
        company_service: ICompanyService,
        unit_of_work: IUnitOfWork | None = None,
    ):
        self.exchange_rate_repo = exchange_rate_repo
        self.deviation_detector = deviation_detector
        self.company_service = company_service
        self.unit_of_work = unit_of_work

    def execute(
        self, data: SaveReferenceRateInput, company_id: str, user_id: str
    ) -> tuple[ExchangeRate, list[RateDeviationWarning]]:
        rate_value = _coerce_rate(data.rate)
        to_currency = (data.to_currency or self.company_service.get_base_currency(company_id)).upper()
        from_currency = data.from_currency.strip().upper()
        if from_currency == to_currency:
            raise InvalidExchangeRateError("Cannot record a rate between a currency and itself")

        warnings = self.deviation_detector.detect_deviations(
            company_id, from_currency, to_currency, rate_value
        )

        rate = ExchangeRate(
            company_id=company_id,
            from_currency=from_currency,
            to_currency=to_currency,
            rate=rate_value,
            rate_date=data.rate_date,
            source=data.source,
            created_by=user_id,
        )
        try:
            saved = self.exchange_rate_repo.save(rate)
            if self.unit_of_work is not None:
                self.unit_of_work.commit()
        except Exception:
            if self.unit_of_work is not None:
                self.unit_of_work.rollback()
            raise

        logger.info(
            "Recorded %s rate %s for %s on %s (company %s)",
            saved.source.value, saved.rate, saved.pair, saved.rate_date, company_id,
        )
        return saved, warnings


class CheckRateDeviationUseCase:

    def __init__(self, deviation_detector: RateDeviationDetector, company_service: ICompanyService):
        self.deviation_detector = deviation_detector
        self.company_service = company_service

    def execute(
        self,
        company_id: str,
        from_currency: str,
        proposed_rate: object,
        to_currency: str | None = None,
    ) -> list[RateDeviationWarning]:
        target = to_currency or self.company_service.get_base_currency(company_id)
        return self.deviation_detector.detect_deviations(
            company_id, from_currency, target, _coerce_rate(proposed_rate)
        )


class ListRateHistoryUseCase:

    def __init__(self, exchange_rate_repo: IExchangeRateRepository, default_limit: int = 20):
        self.exchange_rate_repo = exchange_rate_repo
        self.default_limit = default_limit

    def execute(
        self,
        company_id: str,
        from_currency: str | None = None,
        to_currency: str | None = None,
        limit: int | None = None,
    ) -> list[ExchangeRate]:
        return self.exchange_rate_repo.get_recent_rates(
            company_id,
            from_currency.upper() if from_currency else None,
            to_currency.upper() if to_currency else None,
            limit or self.default_limit,
        )
