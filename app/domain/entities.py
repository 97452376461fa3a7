"""
Domain Entities - Voucher aggregate and per-tenant currency state.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal

from .value_objects import (
    MONEY_EPS,
    VoucherLineItem,
    VoucherNumber,
    VoucherStatus,
    VoucherType,
    money_equals,
    utc_now,
)


@dataclass
class CompanyCurrency:
    """
    Entity - A currency's enable state for one tenant.
    Disabling is soft: the record stays with a disabled_at timestamp.
    """
    company_id: str
    currency_code: str
    is_enabled: bool = True
    is_base: bool = False
    enabled_at: datetime | None = field(default_factory=utc_now)
    disabled_at: datetime | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self) -> None:
        self.currency_code = self.currency_code.upper()

    def enable(self, at: datetime | None = None) -> "CompanyCurrency":
        return replace(self, is_enabled=True, enabled_at=at or utc_now(), disabled_at=None)

    def disable(self, at: datetime | None = None) -> "CompanyCurrency":
        return replace(self, is_enabled=False, disabled_at=at or utc_now())


@dataclass(frozen=True)
class VoucherEntity:
    """
    Aggregate root - A posted voucher with its line items.
    Immutable once built; only the external workflow changes its status.
    Totals are expressed in the base currency.
    """
    id: str
    company_id: str
    voucher_no: VoucherNumber
    type: VoucherType
    voucher_date: date
    description: str
    currency: str
    base_currency: str
    exchange_rate: Decimal
    lines: tuple[VoucherLineItem, ...]
    total_debit: Decimal
    total_credit: Decimal
    created_by: str
    status: VoucherStatus = VoucherStatus.DRAFT
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.lines))

        if len(self.lines) < 2:
            raise ValueError("Voucher must have at least 2 lines")

        calculated_debit = sum((line.debit_amount for line in self.lines), Decimal("0"))
        calculated_credit = sum((line.credit_amount for line in self.lines), Decimal("0"))

        if not money_equals(calculated_debit, calculated_credit):
            raise ValueError(
                f"Voucher not balanced: Debit={calculated_debit}, Credit={calculated_credit}"
            )
        if not money_equals(self.total_debit, calculated_debit):
            raise ValueError("Total debit does not match sum of debit lines")
        if not money_equals(self.total_credit, calculated_credit):
            raise ValueError("Total credit does not match sum of credit lines")

        mixed = [
            line.line_no for line in self.lines
            if line.currency != self.currency or line.base_currency != self.base_currency
        ]
        if mixed:
            raise ValueError("All lines must use the same transaction and base currency")

    @classmethod
    def build(
        cls,
        *,
        company_id: str,
        voucher_no: str,
        voucher_type: VoucherType,
        voucher_date: date,
        description: str,
        currency: str,
        base_currency: str,
        exchange_rate: Decimal,
        lines: list[VoucherLineItem],
        created_by: str,
        created_at: datetime | None = None,
    ) -> "VoucherEntity":
        """Create a DRAFT voucher with totals computed from its lines."""
        return cls(
            id=str(uuid.uuid4()),
            company_id=company_id,
            voucher_no=VoucherNumber(voucher_no),
            type=voucher_type,
            voucher_date=voucher_date,
            description=description,
            currency=currency,
            base_currency=base_currency,
            exchange_rate=exchange_rate,
            lines=tuple(lines),
            total_debit=sum((line.debit_amount for line in lines), Decimal("0")),
            total_credit=sum((line.credit_amount for line in lines), Decimal("0")),
            created_by=created_by,
            status=VoucherStatus.DRAFT,
            created_at=created_at or utc_now(),
        )

    @property
    def is_balanced(self) -> bool:
        return abs(self.total_debit - self.total_credit) <= MONEY_EPS

    @property
    def is_draft(self) -> bool:
        return self.status == VoucherStatus.DRAFT

    @property
    def is_foreign_currency(self) -> bool:
        return self.currency != self.base_currency

    def uses_currency(self, code: str) -> bool:
        code = code.upper()
        if code in (self.currency, self.base_currency):
            return True
        return any(code in (line.currency, line.base_currency) for line in self.lines)

    def with_status(self, status: VoucherStatus) -> "VoucherEntity":
        """Status transition performed by the external workflow component."""
        return replace(self, status=status)
