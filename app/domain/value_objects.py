"""
Domain Layer - Value objects of the voucher posting engine.
Currencies, exchange-rate observations and voucher line items.
"""

import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import NewType

from .exceptions import InvalidExchangeRateError

AccountId = NewType("AccountId", str)
VoucherNumber = NewType("VoucherNumber", str)

MONEY_EPS = Decimal("0.01")
MONEY_DECIMALS = 2

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_decimal(value: object) -> Decimal:
    """Coerce int/float/str input to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    if value is None or isinstance(value, bool):
        raise InvalidOperation(f"Not a number: {value!r}")
    return Decimal(str(value))


def round_money(value: Decimal, decimals: int = MONEY_DECIMALS) -> Decimal:
    """Round half away from zero to the given number of decimals."""
    return value.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)


def money_epsilon(decimals: int = MONEY_DECIMALS) -> Decimal:
    return Decimal(1).scaleb(-decimals)


def money_equals(a: Decimal, b: Decimal, eps: Decimal = MONEY_EPS) -> bool:
    return abs(a - b) <= eps


class VoucherType(str, Enum):
    """Closed set of voucher kinds, each posted by its own line handler."""
    PAYMENT = "payment"
    RECEIPT = "receipt"
    JOURNAL_ENTRY = "journal_entry"
    OPENING_BALANCE = "opening_balance"

    @property
    def prefix(self) -> str:
        return _VOUCHER_PREFIXES[self]


_VOUCHER_PREFIXES = {
    VoucherType.PAYMENT: "PAY",
    VoucherType.RECEIPT: "REC",
    VoucherType.JOURNAL_ENTRY: "JE",
    VoucherType.OPENING_BALANCE: "OB",
}


class VoucherStatus(str, Enum):
    """Workflow states. Only DRAFT is assigned by the posting engine."""
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class TransactionSide(str, Enum):
    DEBIT = "Debit"
    CREDIT = "Credit"


class RateSource(str, Enum):
    """Origin of a stored exchange-rate observation."""
    MANUAL = "MANUAL"
    REFERENCE = "REFERENCE"


class RateLookupSource(str, Enum):
    """How a rate was found by the resolution service."""
    EXACT_DATE = "EXACT_DATE"
    MOST_RECENT = "MOST_RECENT"
    NONE = "NONE"


class DeviationType(str, Enum):
    FIRST_RATE = "FIRST_RATE"
    PERCENTAGE_DEVIATION = "PERCENTAGE_DEVIATION"
    DECIMAL_SHIFT = "DECIMAL_SHIFT"


@dataclass(frozen=True, slots=True)
class Currency:
    """Value Object - A catalog currency (ISO 4217)."""
    code: str
    name: str
    symbol: str
    decimal_places: int = MONEY_DECIMALS
    is_active: bool = True

    def __post_init__(self) -> None:
        code = (self.code or "").strip().upper()
        if not _CURRENCY_CODE.match(code):
            raise ValueError(f"Currency code must be 3 letters, got '{self.code}'")
        if not 0 <= self.decimal_places <= 4:
            raise ValueError(f"decimal_places must be between 0 and 4, got {self.decimal_places}")
        object.__setattr__(self, "code", code)

    @property
    def epsilon(self) -> Decimal:
        return money_epsilon(self.decimal_places)

    def round(self, amount: Decimal) -> Decimal:
        return round_money(to_decimal(amount), self.decimal_places)

    def format(self, amount: Decimal) -> str:
        return f"{self.symbol}{self.round(amount):,.{self.decimal_places}f}"


@dataclass(frozen=True, slots=True)
class ExchangeRate:
    """
    Value Object - One exchange-rate observation for a tenant.
    Append-only: the store never updates or deletes an observation.
    """
    company_id: str
    from_currency: str
    to_currency: str
    rate: Decimal
    rate_date: date
    source: RateSource = RateSource.MANUAL
    created_by: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "from_currency", self.from_currency.strip().upper())
        object.__setattr__(self, "to_currency", self.to_currency.strip().upper())
        try:
            rate = to_decimal(self.rate)
        except InvalidOperation as exc:
            raise InvalidExchangeRateError(f"Exchange rate must be a number, got {self.rate!r}") from exc
        if rate <= 0:
            raise InvalidExchangeRateError("Exchange rate must be positive")
        object.__setattr__(self, "rate", rate)

    @property
    def pair(self) -> str:
        return f"{self.from_currency}/{self.to_currency}"

    def convert(self, amount: Decimal, decimals: int = MONEY_DECIMALS) -> Decimal:
        return round_money(to_decimal(amount) * self.rate, decimals)


@dataclass(frozen=True, slots=True)
class ResolvedRate:
    """A rate was found, either on the exact date or as the latest fallback."""
    rate: ExchangeRate
    source: RateLookupSource

    @property
    def value(self) -> Decimal:
        return self.rate.rate


@dataclass(frozen=True, slots=True)
class UnresolvedRate:
    """No rate exists for the pair. Carries no numeric value on purpose."""
    source: RateLookupSource = RateLookupSource.NONE


RateResolution = ResolvedRate | UnresolvedRate


@dataclass(frozen=True, slots=True)
class RateDeviationWarning:
    """Advisory warning about a proposed rate; never blocks posting."""
    type: DeviationType
    message: str
    suggested_rate: Decimal | None = None
    percentage_deviation: Decimal | None = None


@dataclass(frozen=True, slots=True)
class RawLine:
    """Handler output before currency conversion: one debit or credit leg."""
    account_id: AccountId
    debit: Decimal = Decimal("0")
    credit: Decimal = Decimal("0")
    notes: str | None = None
    cost_center_id: str | None = None

    @property
    def side(self) -> TransactionSide:
        return TransactionSide.DEBIT if self.debit > 0 else TransactionSide.CREDIT

    @property
    def amount(self) -> Decimal:
        return self.debit if self.debit > 0 else self.credit


@dataclass(frozen=True, slots=True)
class VoucherLineItem:
    """
    Value Object - One posting leg of a voucher.
    Stores both the transaction-currency amount and the base-currency amount.
    """
    line_no: int
    account_id: AccountId
    side: TransactionSide
    amount: Decimal
    currency: str
    base_amount: Decimal
    base_currency: str
    exchange_rate: Decimal
    notes: str | None = None
    cost_center_id: str | None = None

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ValueError(f"Line {self.line_no}: amount must be greater than zero")
        if self.base_amount < 0:
            raise ValueError(f"Line {self.line_no}: base amount cannot be negative")
        if self.exchange_rate <= 0:
            raise ValueError(f"Line {self.line_no}: exchange rate must be positive")

    @property
    def is_debit(self) -> bool:
        return self.side == TransactionSide.DEBIT

    @property
    def debit_amount(self) -> Decimal:
        """Debit in base currency (zero for credit lines)."""
        return self.base_amount if self.is_debit else Decimal("0")

    @property
    def credit_amount(self) -> Decimal:
        """Credit in base currency (zero for debit lines)."""
        return Decimal("0") if self.is_debit else self.base_amount
