"""
Repository interfaces - collaborators the posting engine depends on.
Implementations live in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from datetime import date

from .entities import CompanyCurrency, VoucherEntity
from .value_objects import Currency, ExchangeRate, VoucherStatus, VoucherType


class IVoucherRepository(ABC):

    @abstractmethod
    def save(self, voucher: VoucherEntity) -> VoucherEntity:
        ...

    @abstractmethod
    def find_by_id(self, company_id: str, voucher_id: str) -> VoucherEntity | None:
        ...

    @abstractmethod
    def find_by_type(self, company_id: str, voucher_type: VoucherType, limit: int = 100) -> list[VoucherEntity]:
        ...

    @abstractmethod
    def find_by_status(self, company_id: str, status: VoucherStatus, limit: int = 100) -> list[VoucherEntity]:
        ...

    @abstractmethod
    def find_by_date_range(
        self, company_id: str, start_date: date, end_date: date, limit: int = 100
    ) -> list[VoucherEntity]:
        ...

    @abstractmethod
    def find_by_company(self, company_id: str, limit: int = 100) -> list[VoucherEntity]:
        ...

    @abstractmethod
    def search(
        self,
        company_id: str,
        voucher_type: VoucherType | None = None,
        status: VoucherStatus | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = 100,
    ) -> list[VoucherEntity]:
        """All filters applied together, newest first, limit applied last."""
        ...

    @abstractmethod
    def delete(self, company_id: str, voucher_id: str) -> bool:
        ...

    @abstractmethod
    def exists_by_number(self, company_id: str, voucher_no: str) -> bool:
        ...

    @abstractmethod
    def count_by_currency(self, company_id: str, currency_code: str) -> int:
        """Count vouchers referencing the currency in the header or any line."""
        ...


class IExchangeRateRepository(ABC):
    """Append-only store of rate observations, scoped per tenant."""

    @abstractmethod
    def save(self, rate: ExchangeRate) -> ExchangeRate:
        ...

    @abstractmethod
    def get_latest_rate(
        self, company_id: str, from_currency: str, to_currency: str, rate_date: date
    ) -> ExchangeRate | None:
        """Latest-created rate dated exactly on rate_date."""
        ...

    @abstractmethod
    def get_rates_for_date(
        self, company_id: str, from_currency: str, to_currency: str, rate_date: date
    ) -> list[ExchangeRate]:
        ...

    @abstractmethod
    def get_recent_rates(
        self,
        company_id: str,
        from_currency: str | None = None,
        to_currency: str | None = None,
        limit: int = 10,
    ) -> list[ExchangeRate]:
        """Newest-created first."""
        ...

    @abstractmethod
    def get_most_recent_rate(
        self, company_id: str, from_currency: str, to_currency: str
    ) -> ExchangeRate | None:
        """Rate with the latest date for the pair, ties broken by created_at."""
        ...


class ICurrencyRepository(ABC):

    @abstractmethod
    def find_by_code(self, code: str) -> Currency | None:
        ...

    @abstractmethod
    def find_all(self, active_only: bool = True) -> list[Currency]:
        ...

    @abstractmethod
    def save(self, currency: Currency) -> Currency:
        ...


class ICompanyCurrencyRepository(ABC):

    @abstractmethod
    def find(self, company_id: str, currency_code: str) -> CompanyCurrency | None:
        ...

    @abstractmethod
    def find_enabled_by_company(self, company_id: str) -> list[CompanyCurrency]:
        ...

    @abstractmethod
    def is_enabled(self, company_id: str, currency_code: str) -> bool:
        ...

    @abstractmethod
    def save(self, record: CompanyCurrency) -> CompanyCurrency:
        ...


class IAccountRepository(ABC):

    @abstractmethod
    def count_by_currency(self, company_id: str, currency_code: str) -> int:
        ...


class ICompanyService(ABC):

    @abstractmethod
    def get_base_currency(self, company_id: str) -> str:
        ...

    def get_fiscal_year_start(self, company_id: str) -> int:
        """Month (1-12) the tenant's fiscal year starts in."""
        return 1


class IVoucherSequenceRepository(ABC):

    @abstractmethod
    def next_value(self, company_id: str, voucher_type: VoucherType, fiscal_year: int) -> int:
        """
        Allocate the next sequence value for (company, kind, year).
        Must be a single atomic increment: linearizable per key.
        """
        ...


class IUnitOfWork(ABC):
    """Groups the durable side effects of one posting into a single commit."""

    @abstractmethod
    def commit(self) -> None:
        ...

    @abstractmethod
    def rollback(self) -> None:
        ...
