"""
API DTOs - Data Transfer Objects for API requests/responses.

Request DTOs stay permissive on business rules (negative amounts, missing
accounts, unbalanced lines) so the domain handlers report them with their
own messages.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.application.use_cases.currencies import CompanyCurrencyView, EnableCurrencyInput
from app.application.use_cases.exchange_rates import SaveReferenceRateInput, SuggestedRate
from app.domain.handlers import (
    JournalEntryInput,
    JournalLineInput,
    OpeningBalanceInput,
    PaymentVoucherInput,
    ReceiptVoucherInput,
)
from app.domain.value_objects import (
    DeviationType,
    RateLookupSource,
    RateSource,
    ResolvedRate,
    TransactionSide,
    VoucherStatus,
    VoucherType,
)


class PaymentVoucherCreateDTO(BaseModel):
    """DTO - Money paid out: DR expense, CR cash/bank."""
    date: date
    amount: Decimal | None = Field(None, description="Amount in transaction currency")
    cash_account_id: str = Field("", description="Cash/bank account credited")
    expense_account_id: str = Field("", description="Expense/payable account debited")
    description: str = Field("", max_length=500)
    currency: str | None = Field(None, description="Defaults to the company base currency")
    notes: str | None = None
    cost_center_id: str | None = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "date": "2025-12-15",
            "amount": 100,
            "cash_account_id": "cash",
            "expense_account_id": "office-supplies",
            "description": "Office supplies",
            "currency": "USD",
        }
    })

    def to_input(self) -> PaymentVoucherInput:
        return PaymentVoucherInput(
            date=self.date,
            amount=self.amount,
            cash_account_id=self.cash_account_id,
            expense_account_id=self.expense_account_id,
            description=self.description,
            currency=self.currency,
            notes=self.notes,
            cost_center_id=self.cost_center_id,
        )


class ReceiptVoucherCreateDTO(BaseModel):
    """DTO - Money received: DR cash/bank, CR revenue."""
    date: date
    amount: Decimal | None = None
    cash_account_id: str = Field("", description="Cash/bank account debited")
    revenue_account_id: str = Field("", description="Revenue/receivable account credited")
    description: str = Field("", max_length=500)
    currency: str | None = None
    notes: str | None = None
    cost_center_id: str | None = None

    def to_input(self) -> ReceiptVoucherInput:
        return ReceiptVoucherInput(
            date=self.date,
            amount=self.amount,
            cash_account_id=self.cash_account_id,
            revenue_account_id=self.revenue_account_id,
            description=self.description,
            currency=self.currency,
            notes=self.notes,
            cost_center_id=self.cost_center_id,
        )


class JournalLineCreateDTO(BaseModel):
    account_id: str = ""
    debit: Decimal | None = None
    credit: Decimal | None = None
    notes: str | None = None
    cost_center_id: str | None = None

    def to_input(self) -> JournalLineInput:
        return JournalLineInput(
            account_id=self.account_id,
            debit=self.debit,
            credit=self.credit,
            notes=self.notes,
            cost_center_id=self.cost_center_id,
        )


class JournalEntryCreateDTO(BaseModel):
    """DTO - Multi-line entry; debits must equal credits."""
    date: date
    description: str = Field("", max_length=500)
    lines: list[JournalLineCreateDTO] = Field(default_factory=list)
    currency: str | None = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "date": "2025-12-15",
            "description": "Accrue December rent",
            "lines": [
                {"account_id": "rent-expense", "debit": 1200},
                {"account_id": "accrued-liabilities", "credit": 1200},
            ],
        }
    })

    def to_input(self) -> JournalEntryInput:
        return JournalEntryInput(
            date=self.date,
            description=self.description,
            lines=[line.to_input() for line in self.lines],
            currency=self.currency,
        )


class OpeningBalanceCreateDTO(JournalEntryCreateDTO):
    """DTO - Period-zero balances; assets = liabilities + equity."""

    def to_input(self) -> OpeningBalanceInput:
        return OpeningBalanceInput(
            date=self.date,
            description=self.description,
            lines=[line.to_input() for line in self.lines],
            currency=self.currency,
        )


class VoucherLineResponseDTO(BaseModel):
    line_no: int
    account_id: str
    side: TransactionSide
    amount: Decimal
    currency: str
    base_amount: Decimal
    base_currency: str
    exchange_rate: Decimal
    notes: str | None = None
    cost_center_id: str | None = None

    model_config = ConfigDict(from_attributes=True)


class VoucherResponseDTO(BaseModel):
    """DTO - Posted voucher. Totals are in the base currency."""
    id: str
    company_id: str
    voucher_no: str
    type: VoucherType
    voucher_date: date
    description: str
    currency: str
    base_currency: str
    exchange_rate: Decimal
    total_debit: Decimal
    total_credit: Decimal
    status: VoucherStatus
    created_by: str
    created_at: datetime
    is_balanced: bool
    lines: list[VoucherLineResponseDTO]

    model_config = ConfigDict(from_attributes=True)


class CurrencyResponseDTO(BaseModel):
    code: str
    name: str
    symbol: str
    decimal_places: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class CompanyCurrencyResponseDTO(BaseModel):
    currency_code: str
    name: str
    symbol: str
    decimal_places: int
    is_base: bool
    is_enabled: bool
    enabled_at: datetime | None = None
    disabled_at: datetime | None = None

    @classmethod
    def from_view(cls, view: CompanyCurrencyView) -> "CompanyCurrencyResponseDTO":
        return cls(
            currency_code=view.currency.code,
            name=view.currency.name,
            symbol=view.currency.symbol,
            decimal_places=view.currency.decimal_places,
            is_base=view.is_base,
            is_enabled=view.record.is_enabled,
            enabled_at=view.record.enabled_at,
            disabled_at=view.record.disabled_at,
        )


class EnableCurrencyDTO(BaseModel):
    """DTO - Enable a currency with its initial rate to the base currency."""
    currency_code: str = Field(..., min_length=3, max_length=3)
    initial_rate: Decimal
    rate_date: date | None = None

    def to_input(self) -> EnableCurrencyInput:
        return EnableCurrencyInput(
            currency_code=self.currency_code,
            initial_rate=self.initial_rate,
            rate_date=self.rate_date,
        )


class ExchangeRateCreateDTO(BaseModel):
    from_currency: str = Field(..., min_length=3, max_length=3)
    to_currency: str | None = Field(None, description="Defaults to the company base currency")
    rate: Decimal
    rate_date: date
    source: RateSource = RateSource.REFERENCE

    def to_input(self) -> SaveReferenceRateInput:
        return SaveReferenceRateInput(
            from_currency=self.from_currency,
            to_currency=self.to_currency,
            rate=self.rate,
            rate_date=self.rate_date,
            source=self.source,
        )


class RateDeviationCheckDTO(BaseModel):
    from_currency: str = Field(..., min_length=3, max_length=3)
    to_currency: str | None = None
    rate: Decimal


class ExchangeRateResponseDTO(BaseModel):
    id: str
    from_currency: str
    to_currency: str
    rate: Decimal
    rate_date: date
    source: RateSource
    created_by: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RateDeviationWarningDTO(BaseModel):
    type: DeviationType
    message: str
    suggested_rate: Decimal | None = None
    percentage_deviation: Decimal | None = Field(None, description="Fraction, 0.25 = 25%")

    model_config = ConfigDict(from_attributes=True)


class ExchangeRateSavedDTO(BaseModel):
    rate: ExchangeRateResponseDTO
    warnings: list[RateDeviationWarningDTO]


class SuggestedRateDTO(BaseModel):
    """DTO - Rate a voucher on rate_date would use; rate is null when none exists."""
    from_currency: str
    to_currency: str
    rate_date: date
    rate: Decimal | None = None
    source: RateLookupSource
    effective_date: date | None = None

    @classmethod
    def from_suggestion(cls, suggestion: SuggestedRate) -> "SuggestedRateDTO":
        resolution = suggestion.resolution
        if isinstance(resolution, ResolvedRate):
            return cls(
                from_currency=suggestion.from_currency,
                to_currency=suggestion.to_currency,
                rate_date=suggestion.rate_date,
                rate=resolution.value,
                source=resolution.source,
                effective_date=resolution.rate.rate_date,
            )
        return cls(
            from_currency=suggestion.from_currency,
            to_currency=suggestion.to_currency,
            rate_date=suggestion.rate_date,
            source=resolution.source,
        )
