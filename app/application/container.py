"""
Wiring of use cases over a set of repositories.

The same Ledger is built over in-memory repositories in tests and over
SQL repositories bound to one database session in the API.
"""

from dataclasses import dataclass

from app.application.use_cases.currencies import (
    DeactivateCurrencyUseCase,
    DisableCurrencyForCompanyUseCase,
    EnableCurrencyForCompanyUseCase,
    GetCurrencyUseCase,
    ListCompanyCurrenciesUseCase,
    ListCurrenciesUseCase,
    SaveCurrencyUseCase,
)
from app.application.use_cases.exchange_rates import (
    CheckRateDeviationUseCase,
    GetSuggestedRateUseCase,
    ListRateHistoryUseCase,
    SaveReferenceRateUseCase,
)
from app.application.use_cases.vouchers import (
    PostVoucherUseCase,
    SaveJournalEntryUseCase,
    SaveOpeningBalanceUseCase,
    SavePaymentVoucherUseCase,
    SaveReceiptVoucherUseCase,
    VoucherQueryUseCase,
)
from app.core.config import Settings, get_settings
from app.domain.repositories import (
    IAccountRepository,
    ICompanyCurrencyRepository,
    ICompanyService,
    ICurrencyRepository,
    IExchangeRateRepository,
    IUnitOfWork,
    IVoucherRepository,
    IVoucherSequenceRepository,
)
from app.domain.services import (
    CurrencyPrecisionService,
    RateDeviationDetector,
    RateResolutionService,
    VoucherNumberGenerator,
)


@dataclass
class RepositoryBundle:
    vouchers: IVoucherRepository
    exchange_rates: IExchangeRateRepository
    currencies: ICurrencyRepository
    company_currencies: ICompanyCurrencyRepository
    accounts: IAccountRepository
    companies: ICompanyService
    sequences: IVoucherSequenceRepository
    unit_of_work: IUnitOfWork | None = None


class Ledger:
    """Entry point bundling every use case of the posting engine."""

    def __init__(self, repos: RepositoryBundle, settings: Settings | None = None):
        settings = settings or get_settings()
        self.repos = repos
        uow = repos.unit_of_work

        self.rate_resolver = RateResolutionService(repos.exchange_rates)
        self.deviation_detector = RateDeviationDetector(
            repos.exchange_rates,
            percentage_threshold=settings.deviation_percentage_threshold,
            history_window=settings.deviation_history_window,
            decimal_shift_tolerance=settings.decimal_shift_tolerance,
        )
        self.number_generator = VoucherNumberGenerator(
            repos.sequences, repos.companies, padding=settings.voucher_number_padding
        )
        self.precision = CurrencyPrecisionService(repos.currencies)

        posting_args = dict(
            voucher_repo=repos.vouchers,
            rate_resolver=self.rate_resolver,
            company_service=repos.companies,
            number_generator=self.number_generator,
            precision=self.precision,
            company_currency_repo=repos.company_currencies,
            unit_of_work=uow,
        )
        self.post_voucher = PostVoucherUseCase(**posting_args)
        self.save_payment = SavePaymentVoucherUseCase(**posting_args)
        self.save_receipt = SaveReceiptVoucherUseCase(**posting_args)
        self.save_journal_entry = SaveJournalEntryUseCase(**posting_args)
        self.save_opening_balance = SaveOpeningBalanceUseCase(**posting_args)
        self.vouchers = VoucherQueryUseCase(repos.vouchers)

        self.list_currencies = ListCurrenciesUseCase(repos.currencies)
        self.get_currency = GetCurrencyUseCase(repos.currencies)
        self.save_currency = SaveCurrencyUseCase(repos.currencies, uow)
        self.deactivate_currency = DeactivateCurrencyUseCase(repos.currencies, uow)
        self.list_company_currencies = ListCompanyCurrenciesUseCase(
            repos.company_currencies, repos.currencies, repos.companies
        )
        self.enable_currency = EnableCurrencyForCompanyUseCase(
            repos.currencies, repos.company_currencies, repos.exchange_rates, repos.companies, uow
        )
        self.disable_currency = DisableCurrencyForCompanyUseCase(
            repos.company_currencies, repos.accounts, repos.vouchers, repos.companies, uow
        )

        self.suggested_rate = GetSuggestedRateUseCase(self.rate_resolver, repos.companies)
        self.save_rate = SaveReferenceRateUseCase(
            repos.exchange_rates, self.deviation_detector, repos.companies, uow
        )
        self.check_rate = CheckRateDeviationUseCase(self.deviation_detector, repos.companies)
        self.rate_history = ListRateHistoryUseCase(
            repos.exchange_rates, settings.rate_history_default_limit
        )
