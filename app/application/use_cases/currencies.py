"""
Currency catalog administration and per-company currency enable/disable.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation

from app.domain.entities import CompanyCurrency
from app.domain.exceptions import CurrencyPolicyError, InvalidExchangeRateError
from app.domain.repositories import (
    IAccountRepository,
    ICompanyCurrencyRepository,
    ICompanyService,
    ICurrencyRepository,
    IExchangeRateRepository,
    IUnitOfWork,
    IVoucherRepository,
)
from app.domain.value_objects import Currency, ExchangeRate, RateSource, to_decimal

logger = logging.getLogger(__name__)


class ListCurrenciesUseCase:

    def __init__(self, currency_repo: ICurrencyRepository):
        self.currency_repo = currency_repo

    def execute(self, active_only: bool = True) -> list[Currency]:
        return sorted(self.currency_repo.find_all(active_only), key=lambda c: c.code)


class GetCurrencyUseCase:

    def __init__(self, currency_repo: ICurrencyRepository):
        self.currency_repo = currency_repo

    def execute(self, code: str) -> Currency:
        currency = self.currency_repo.find_by_code(code.strip().upper())
        if currency is None:
            raise CurrencyPolicyError(f"Currency {code.upper()} is not in the catalog")
        return currency


class SaveCurrencyUseCase:
    """Create or update a catalog currency."""

    def __init__(self, currency_repo: ICurrencyRepository, unit_of_work: IUnitOfWork | None = None):
        self.currency_repo = currency_repo
        self.unit_of_work = unit_of_work

    def execute(self, currency: Currency) -> Currency:
        saved = self.currency_repo.save(currency)
        if self.unit_of_work is not None:
            self.unit_of_work.commit()
        logger.info("Saved catalog currency %s (%s decimals)", saved.code, saved.decimal_places)
        return saved


class DeactivateCurrencyUseCase:
    """Hide a currency from the active catalog without deleting it."""

    def __init__(self, currency_repo: ICurrencyRepository, unit_of_work: IUnitOfWork | None = None):
        self.currency_repo = currency_repo
        self.unit_of_work = unit_of_work

    def execute(self, code: str) -> Currency:
        currency = GetCurrencyUseCase(self.currency_repo).execute(code)
        saved = self.currency_repo.save(Currency(
            code=currency.code,
            name=currency.name,
            symbol=currency.symbol,
            decimal_places=currency.decimal_places,
            is_active=False,
        ))
        if self.unit_of_work is not None:
            self.unit_of_work.commit()
        logger.info("Deactivated catalog currency %s", saved.code)
        return saved


@dataclass(frozen=True)
class CompanyCurrencyView:
    """A company's enabled currency joined with catalog data."""
    currency: Currency
    record: CompanyCurrency
    is_base: bool


class ListCompanyCurrenciesUseCase:

    def __init__(
        self,
        company_currency_repo: ICompanyCurrencyRepository,
        currency_repo: ICurrencyRepository,
        company_service: ICompanyService,
    ):
        self.company_currency_repo = company_currency_repo
        self.currency_repo = currency_repo
        self.company_service = company_service

    def execute(self, company_id: str) -> list[CompanyCurrencyView]:
        base_currency = self.company_service.get_base_currency(company_id).upper()
        views = []
        for record in self.company_currency_repo.find_enabled_by_company(company_id):
            currency = self.currency_repo.find_by_code(record.currency_code)
            if currency is None:
                logger.warning(
                    "Company %s has %s enabled but it is missing from the catalog",
                    company_id, record.currency_code,
                )
                continue
            views.append(CompanyCurrencyView(
                currency=currency,
                record=record,
                is_base=record.currency_code == base_currency,
            ))
        return sorted(views, key=lambda v: (not v.is_base, v.currency.code))


@dataclass
class EnableCurrencyInput:
    currency_code: str
    initial_rate: Decimal | int | float | str
    rate_date: date | None = None


class EnableCurrencyForCompanyUseCase:
    """
    Enable a currency for a company.

    An initial REFERENCE rate (currency -> base) is recorded first, so that
    posting in the new currency always has a rate to fall back to.
    The base currency itself must be enabled with a rate of exactly 1.
    """

    def __init__(
        self,
        currency_repo: ICurrencyRepository,
        company_currency_repo: ICompanyCurrencyRepository,
        exchange_rate_repo: IExchangeRateRepository,
        company_service: ICompanyService,
        unit_of_work: IUnitOfWork | None = None,
    ):
        self.currency_repo = currency_repo
        self.company_currency_repo = company_currency_repo
        self.exchange_rate_repo = exchange_rate_repo
        self.company_service = company_service
        self.unit_of_work = unit_of_work

    def execute(self, data: EnableCurrencyInput, company_id: str, user_id: str) -> CompanyCurrency:
        code = data.currency_code.strip().upper()
        currency = self.currency_repo.find_by_code(code)
        if currency is None:
            raise CurrencyPolicyError(f"Currency {code} is not in the catalog")
        if not currency.is_active:
            raise CurrencyPolicyError(f"Currency {code} is not active")

        try:
            rate = to_decimal(data.initial_rate)
        except InvalidOperation as exc:
            raise InvalidExchangeRateError("Initial exchange rate must be a number") from exc
        if rate <= 0:
            raise InvalidExchangeRateError("Initial exchange rate must be positive")

        base_currency = self.company_service.get_base_currency(company_id).upper()
        is_base = code == base_currency
        if is_base and rate != 1:
            raise CurrencyPolicyError("Base currency rate must be 1")

        try:
            self.exchange_rate_repo.save(ExchangeRate(
                company_id=company_id,
                from_currency=code,
                to_currency=base_currency,
                rate=rate,
                rate_date=data.rate_date or date.today(),
                source=RateSource.REFERENCE,
                created_by=user_id,
            ))

            existing = self.company_currency_repo.find(company_id, code)
            if existing is None:
                record = CompanyCurrency(company_id=company_id, currency_code=code, is_base=is_base)
            else:
                record = existing.enable()
            saved = self.company_currency_repo.save(record)

            if self.unit_of_work is not None:
                self.unit_of_work.commit()
        except Exception:
            if self.unit_of_work is not None:
                self.unit_of_work.rollback()
            raise

        logger.info("Enabled %s for company %s at rate %s", code, company_id, rate)
        return saved


class DisableCurrencyForCompanyUseCase:
    """
    Soft-disable a currency for a company.

    Refused for the base currency and for currencies still referenced by
    accounts or vouchers.
    """

    def __init__(
        self,
        company_currency_repo: ICompanyCurrencyRepository,
        account_repo: IAccountRepository,
        voucher_repo: IVoucherRepository,
        company_service: ICompanyService,
        unit_of_work: IUnitOfWork | None = None,
    ):
        self.company_currency_repo = company_currency_repo
        self.account_repo = account_repo
        self.voucher_repo = voucher_repo
        self.company_service = company_service
        self.unit_of_work = unit_of_work

    def execute(self, company_id: str, currency_code: str) -> CompanyCurrency:
        code = currency_code.strip().upper()

        if code == self.company_service.get_base_currency(company_id).upper():
            raise CurrencyPolicyError("Cannot disable the base currency")

        record = self.company_currency_repo.find(company_id, code)
        if record is None or not record.is_enabled:
            raise CurrencyPolicyError(f"Currency {code} is not enabled for this company")

        account_count = self.account_repo.count_by_currency(company_id, code)
        if account_count > 0:
            raise CurrencyPolicyError(
                f"Cannot disable {code}: {account_count} account(s) use this currency"
            )

        voucher_count = self.voucher_repo.count_by_currency(company_id, code)
        if voucher_count > 0:
            raise CurrencyPolicyError(
                f"Cannot disable {code}: {voucher_count} voucher(s) use this currency"
            )

        saved = self.company_currency_repo.save(record.disable())
        if self.unit_of_work is not None:
            self.unit_of_work.commit()
        logger.info("Disabled %s for company %s", code, company_id)
        return saved
