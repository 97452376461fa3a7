"""
In-memory repository implementations.

Used by the unit tests and for embedding the engine without a database.
Every store is keyed by company_id so tenants never see each other's data.
"""

import threading
from collections import defaultdict
from datetime import date

from app.application.container import RepositoryBundle
from app.domain.currency_catalog import CURRENCY_SEED_DATA
from app.domain.entities import CompanyCurrency, VoucherEntity
from app.domain.exceptions import CurrencyPolicyError
from app.domain.repositories import (
    IAccountRepository,
    ICompanyCurrencyRepository,
    ICompanyService,
    ICurrencyRepository,
    IExchangeRateRepository,
    IVoucherRepository,
    IVoucherSequenceRepository,
)
from app.domain.value_objects import Currency, ExchangeRate, VoucherStatus, VoucherType


class InMemoryVoucherRepository(IVoucherRepository):

    def __init__(self):
        self._vouchers: dict[str, dict[str, VoucherEntity]] = defaultdict(dict)

    def save(self, voucher: VoucherEntity) -> VoucherEntity:
        self._vouchers[voucher.company_id][voucher.id] = voucher
        return voucher

    def find_by_id(self, company_id: str, voucher_id: str) -> VoucherEntity | None:
        return self._vouchers[company_id].get(voucher_id)

    def _ordered(self, company_id: str) -> list[VoucherEntity]:
        return sorted(
            self._vouchers[company_id].values(),
            key=lambda v: (v.voucher_date, v.created_at),
            reverse=True,
        )

    def find_by_type(self, company_id: str, voucher_type: VoucherType, limit: int = 100) -> list[VoucherEntity]:
        return [v for v in self._ordered(company_id) if v.type == voucher_type][:limit]

    def find_by_status(self, company_id: str, status: VoucherStatus, limit: int = 100) -> list[VoucherEntity]:
        return [v for v in self._ordered(company_id) if v.status == status][:limit]

    def find_by_date_range(
        self, company_id: str, start_date: date, end_date: date, limit: int = 100
    ) -> list[VoucherEntity]:
        return [
            v for v in self._ordered(company_id)
            if start_date <= v.voucher_date <= end_date
        ][:limit]

    def find_by_company(self, company_id: str, limit: int = 100) -> list[VoucherEntity]:
        return self._ordered(company_id)[:limit]

    def search(
        self,
        company_id: str,
        voucher_type: VoucherType | None = None,
        status: VoucherStatus | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = 100,
    ) -> list[VoucherEntity]:
        return [
            v for v in self._ordered(company_id)
            if (voucher_type is None or v.type == voucher_type)
            and (status is None or v.status == status)
            and (start_date is None or v.voucher_date >= start_date)
            and (end_date is None or v.voucher_date <= end_date)
        ][:limit]

    def delete(self, company_id: str, voucher_id: str) -> bool:
        return self._vouchers[company_id].pop(voucher_id, None) is not None

    def exists_by_number(self, company_id: str, voucher_no: str) -> bool:
        return any(v.voucher_no == voucher_no for v in self._vouchers[company_id].values())

    def count_by_currency(self, company_id: str, currency_code: str) -> int:
        return sum(1 for v in self._vouchers[company_id].values() if v.uses_currency(currency_code))


class InMemoryExchangeRateRepository(IExchangeRateRepository):
    """Append-only list per company; insertion order is creation order."""

    def __init__(self):
        self._rates: dict[str, list[ExchangeRate]] = defaultdict(list)

    def save(self, rate: ExchangeRate) -> ExchangeRate:
        self._rates[rate.company_id].append(rate)
        return rate

    def _pair(self, company_id: str, from_currency: str | None, to_currency: str | None) -> list[ExchangeRate]:
        return [
            r for r in self._rates[company_id]
            if (from_currency is None or r.from_currency == from_currency.upper())
            and (to_currency is None or r.to_currency == to_currency.upper())
        ]

    def get_latest_rate(
        self, company_id: str, from_currency: str, to_currency: str, rate_date: date
    ) -> ExchangeRate | None:
        rates = self.get_rates_for_date(company_id, from_currency, to_currency, rate_date)
        return rates[0] if rates else None

    def get_rates_for_date(
        self, company_id: str, from_currency: str, to_currency: str, rate_date: date
    ) -> list[ExchangeRate]:
        matches = [r for r in self._pair(company_id, from_currency, to_currency) if r.rate_date == rate_date]
        return self._newest_first(matches)

    def get_recent_rates(
        self,
        company_id: str,
        from_currency: str | None = None,
        to_currency: str | None = None,
        limit: int = 10,
    ) -> list[ExchangeRate]:
        return self._newest_first(self._pair(company_id, from_currency, to_currency))[:limit]

    def get_most_recent_rate(
        self, company_id: str, from_currency: str, to_currency: str
    ) -> ExchangeRate | None:
        rates = self._pair(company_id, from_currency, to_currency)
        if not rates:
            return None
        # stable max keeps the later insertion on equal keys
        indexed = list(enumerate(rates))
        return max(indexed, key=lambda ir: (ir[1].rate_date, ir[1].created_at, ir[0]))[1]

    @staticmethod
    def _newest_first(rates: list[ExchangeRate]) -> list[ExchangeRate]:
        indexed = list(enumerate(rates))
        indexed.sort(key=lambda ir: (ir[1].created_at, ir[0]), reverse=True)
        return [r for _, r in indexed]


class InMemoryCurrencyRepository(ICurrencyRepository):

    def __init__(self, currencies: tuple[Currency, ...] = CURRENCY_SEED_DATA):
        self._currencies = {c.code: c for c in currencies}

    def find_by_code(self, code: str) -> Currency | None:
        return self._currencies.get(code.upper())

    def find_all(self, active_only: bool = True) -> list[Currency]:
        return [c for c in self._currencies.values() if c.is_active or not active_only]

    def save(self, currency: Currency) -> Currency:
        self._currencies[currency.code] = currency
        return currency


class InMemoryCompanyCurrencyRepository(ICompanyCurrencyRepository):

    def __init__(self):
        self._records: dict[tuple[str, str], CompanyCurrency] = {}

    def find(self, company_id: str, currency_code: str) -> CompanyCurrency | None:
        return self._records.get((company_id, currency_code.upper()))

    def find_enabled_by_company(self, company_id: str) -> list[CompanyCurrency]:
        return [r for (cid, _), r in self._records.items() if cid == company_id and r.is_enabled]

    def is_enabled(self, company_id: str, currency_code: str) -> bool:
        record = self.find(company_id, currency_code)
        return record is not None and record.is_enabled

    def save(self, record: CompanyCurrency) -> CompanyCurrency:
        self._records[(record.company_id, record.currency_code)] = record
        return record


class InMemoryAccountRepository(IAccountRepository):
    """Tracks only what currency policy needs: the currency of each account."""

    def __init__(self):
        self._accounts: dict[str, dict[str, str]] = defaultdict(dict)

    def add(self, company_id: str, account_id: str, currency_code: str) -> None:
        self._accounts[company_id][account_id] = currency_code.upper()

    def count_by_currency(self, company_id: str, currency_code: str) -> int:
        code = currency_code.upper()
        return sum(1 for c in self._accounts[company_id].values() if c == code)


class InMemoryCompanyService(ICompanyService):

    def __init__(self):
        self._base_currencies: dict[str, str] = {}
        self._fiscal_year_starts: dict[str, int] = {}

    def set_base_currency(self, company_id: str, currency_code: str) -> None:
        self._base_currencies[company_id] = currency_code.upper()

    def set_fiscal_year_start(self, company_id: str, month: int) -> None:
        self._fiscal_year_starts[company_id] = month

    def get_base_currency(self, company_id: str) -> str:
        try:
            return self._base_currencies[company_id]
        except KeyError:
            raise CurrencyPolicyError(f"Company {company_id} has no base currency configured") from None

    def get_fiscal_year_start(self, company_id: str) -> int:
        return self._fiscal_year_starts.get(company_id, 1)


class InMemoryVoucherSequenceRepository(IVoucherSequenceRepository):
    """Counters guarded by a lock so concurrent postings never share a number."""

    def __init__(self):
        self._values: dict[tuple[str, VoucherType, int], int] = defaultdict(int)
        self._lock = threading.Lock()

    def next_value(self, company_id: str, voucher_type: VoucherType, fiscal_year: int) -> int:
        key = (company_id, voucher_type, fiscal_year)
        with self._lock:
            self._values[key] += 1
            return self._values[key]


def in_memory_repositories() -> RepositoryBundle:
    return RepositoryBundle(
        vouchers=InMemoryVoucherRepository(),
        exchange_rates=InMemoryExchangeRateRepository(),
        currencies=InMemoryCurrencyRepository(),
        company_currencies=InMemoryCompanyCurrencyRepository(),
        accounts=InMemoryAccountRepository(),
        companies=InMemoryCompanyService(),
        sequences=InMemoryVoucherSequenceRepository(),
    )
