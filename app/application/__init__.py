"""Application layer - Use cases, wiring and DTOs."""

from app.application.container import Ledger, RepositoryBundle
from app.application.use_cases.currencies import EnableCurrencyInput
from app.application.use_cases.exchange_rates import SaveReferenceRateInput
from app.application.use_cases.vouchers import PostingContext, PostVoucherUseCase
