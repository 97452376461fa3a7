"""
Voucher posting use cases.

Every voucher kind runs the same pipeline:
validate (handler) -> resolve currency and rate -> convert lines ->
check base balance -> allocate number -> build entity -> persist.
No step retries; any failure aborts before the repository save.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from app.domain.entities import VoucherEntity
from app.domain.exceptions import (
    CurrencyPolicyError,
    ExchangeRateNotFoundError,
    VoucherNotFoundError,
    VoucherValidationError,
)
from app.domain.handlers import (
    JournalEntryHandler,
    OpeningBalanceHandler,
    PaymentVoucherHandler,
    PostingDraft,
    ReceiptVoucherHandler,
    VoucherIntent,
    VoucherLineHandler,
    handler_for,
)
from app.domain.repositories import (
    ICompanyCurrencyRepository,
    ICompanyService,
    IUnitOfWork,
    IVoucherRepository,
)
from app.domain.services import CurrencyPrecisionService, RateResolutionService, VoucherNumberGenerator
from app.domain.value_objects import ResolvedRate, VoucherLineItem, VoucherStatus, VoucherType, money_equals

logger = logging.getLogger(__name__)

UNIT_RATE = Decimal("1.0")


@dataclass(frozen=True)
class PostingContext:
    """Tenant facts resolved once per posting and passed down explicitly."""
    company_id: str
    user_id: str
    currency: str
    base_currency: str

    @property
    def is_foreign(self) -> bool:
        return self.currency != self.base_currency


class PostVoucherUseCase:
    """
    Generic posting pipeline.

    Subclasses bind a single handler; the base class dispatches on the
    intent's voucher kind.
    """

    handler: VoucherLineHandler | None = None

    def __init__(
        self,
        voucher_repo: IVoucherRepository,
        rate_resolver: RateResolutionService,
        company_service: ICompanyService,
        number_generator: VoucherNumberGenerator,
        precision: CurrencyPrecisionService | None = None,
        company_currency_repo: ICompanyCurrencyRepository | None = None,
        unit_of_work: IUnitOfWork | None = None,
    ):
        self.voucher_repo = voucher_repo
        self.rate_resolver = rate_resolver
        self.company_service = company_service
        self.number_generator = number_generator
        self.precision = precision or CurrencyPrecisionService()
        self.company_currency_repo = company_currency_repo
        self.unit_of_work = unit_of_work

    def execute(self, data: VoucherIntent, company_id: str, user_id: str) -> VoucherEntity:
        handler = self.handler or handler_for(data)
        draft = handler.prepare(data)

        context = self._build_context(draft, company_id, user_id)
        rate = self._resolve_rate(draft, context)
        self._check_currency_enabled(context)
        lines = self._convert_lines(draft, context, rate)
        self._check_base_balance(handler.kind_label, lines)

        try:
            voucher_no = self.number_generator.generate(company_id, draft.voucher_type, draft.voucher_date)
            voucher = VoucherEntity.build(
                company_id=company_id,
                voucher_no=voucher_no,
                voucher_type=draft.voucher_type,
                voucher_date=draft.voucher_date,
                description=draft.description,
                currency=context.currency,
                base_currency=context.base_currency,
                exchange_rate=rate,
                lines=lines,
                created_by=user_id,
            )
            saved = self.voucher_repo.save(voucher)
            if self.unit_of_work is not None:
                self.unit_of_work.commit()
        except Exception:
            # also rolls back the sequence increment
            if self.unit_of_work is not None:
                self.unit_of_work.rollback()
            raise

        logger.info(
            "Posted %s %s for company %s: %s lines, %s @ %s, base total %s %s",
            saved.type.value, saved.voucher_no, company_id, len(saved.lines),
            saved.currency, saved.exchange_rate, saved.base_currency, saved.total_debit,
        )
        return saved

    def _build_context(self, draft: PostingDraft, company_id: str, user_id: str) -> PostingContext:
        base_currency = self.company_service.get_base_currency(company_id).upper()
        return PostingContext(
            company_id=company_id,
            user_id=user_id,
            currency=draft.currency or base_currency,
            base_currency=base_currency,
        )

    def _resolve_rate(self, draft: PostingDraft, context: PostingContext) -> Decimal:
        if not context.is_foreign:
            return UNIT_RATE

        resolution = self.rate_resolver.resolve(
            context.company_id, context.currency, context.base_currency, draft.voucher_date
        )
        if not isinstance(resolution, ResolvedRate):
            logger.warning(
                "Exchange rate not found for %s/%s on %s (company %s)",
                context.currency, context.base_currency, draft.voucher_date, context.company_id,
            )
            raise ExchangeRateNotFoundError(context.currency, context.base_currency, draft.voucher_date)
        return resolution.value

    def _check_currency_enabled(self, context: PostingContext) -> None:
        if self.company_currency_repo is None or not context.is_foreign:
            return
        if not self.company_currency_repo.is_enabled(context.company_id, context.currency):
            logger.warning("Currency %s is not enabled for company %s", context.currency, context.company_id)
            raise CurrencyPolicyError(f"Currency {context.currency} is not enabled for this company")

    def _convert_lines(
        self, draft: PostingDraft, context: PostingContext, rate: Decimal
    ) -> list[VoucherLineItem]:
        lines = []
        for line_no, raw in enumerate(draft.lines, start=1):
            if context.is_foreign:
                base_amount = self.precision.base_amount(raw.amount, rate, context.base_currency)
            else:
                base_amount = raw.amount
            lines.append(VoucherLineItem(
                line_no=line_no,
                account_id=raw.account_id,
                side=raw.side,
                amount=raw.amount,
                currency=context.currency,
                base_amount=base_amount,
                base_currency=context.base_currency,
                exchange_rate=rate,
                notes=raw.notes,
                cost_center_id=raw.cost_center_id,
            ))
        return lines

    def _check_base_balance(self, kind_label: str, lines: list[VoucherLineItem]) -> None:
        # per-line rounding can unbalance the base totals; reject before a number is taken
        debit = sum((line.debit_amount for line in lines), Decimal("0"))
        credit = sum((line.credit_amount for line in lines), Decimal("0"))
        if not money_equals(debit, credit):
            logger.warning(
                "Base amounts do not balance after conversion: debit %s, credit %s", debit, credit
            )
            raise VoucherValidationError(
                kind_label,
                [f"Voucher not balanced in base currency after conversion: Debit={debit}, Credit={credit}"],
            )


class SavePaymentVoucherUseCase(PostVoucherUseCase):
    """DR expense/payable, CR cash/bank."""
    handler = PaymentVoucherHandler()


class SaveReceiptVoucherUseCase(PostVoucherUseCase):
    """DR cash/bank, CR revenue/receivable."""
    handler = ReceiptVoucherHandler()


class SaveJournalEntryUseCase(PostVoucherUseCase):
    handler = JournalEntryHandler()


class SaveOpeningBalanceUseCase(PostVoucherUseCase):
    handler = OpeningBalanceHandler()


class VoucherQueryUseCase:
    """Read side over the voucher repository, always scoped to one tenant."""

    def __init__(self, voucher_repo: IVoucherRepository):
        self.voucher_repo = voucher_repo

    def get(self, company_id: str, voucher_id: str) -> VoucherEntity:
        voucher = self.voucher_repo.find_by_id(company_id, voucher_id)
        if voucher is None:
            raise VoucherNotFoundError(f"Voucher {voucher_id} not found")
        return voucher

    def search(
        self,
        company_id: str,
        voucher_type: VoucherType | None = None,
        status: VoucherStatus | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = 100,
    ) -> list[VoucherEntity]:
        return self.voucher_repo.search(company_id, voucher_type, status, start_date, end_date, limit)
