"""
Infrastructure - SQLModel database models.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from app.domain.value_objects import utc_now


def _uuid() -> str:
    return str(uuid4())


class Company(SQLModel, table=True):
    """Tenant. Owns a base currency and a fiscal-year start month."""

    id: str = Field(default_factory=_uuid, primary_key=True)
    name: str
    base_currency: str = Field(max_length=3)
    fiscal_year_start: int = 1  # month 1-12
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)

    accounts: list["Account"] = Relationship(back_populates="company")
    vouchers: list["AccountingVoucher"] = Relationship(back_populates="company")


class Account(SQLModel, table=True):
    """Chart-of-accounts entry; only its currency matters to posting."""

    id: str = Field(default_factory=_uuid, primary_key=True)
    company_id: str = Field(foreign_key="company.id", index=True)
    code: str = Field(index=True)
    name: str
    account_type: str
    currency: str = Field(max_length=3)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)

    company: "Company" = Relationship(back_populates="accounts")


class CurrencyRecord(SQLModel, table=True):
    """Global ISO 4217 catalog entry."""

    __tablename__ = "currency"

    code: str = Field(primary_key=True, max_length=3)
    name: str
    symbol: str
    decimal_places: int = 2
    is_active: bool = True


class CompanyCurrencyRecord(SQLModel, table=True):
    """Currency enable state per company (soft-disabled, never deleted)."""

    __tablename__ = "company_currency"
    __table_args__ = (UniqueConstraint("company_id", "currency_code", name="uq_company_currency"),)

    id: str = Field(default_factory=_uuid, primary_key=True)
    company_id: str = Field(foreign_key="company.id", index=True)
    currency_code: str = Field(foreign_key="currency.code", max_length=3)
    is_enabled: bool = True
    is_base: bool = False
    enabled_at: datetime | None = None
    disabled_at: datetime | None = None


class ExchangeRateRecord(SQLModel, table=True):
    """
    Append-only rate observation.
    The integer key preserves insertion order for ties on created_at.
    """

    __tablename__ = "exchange_rate"

    id: int | None = Field(default=None, primary_key=True)
    rate_id: str = Field(default_factory=_uuid, unique=True, index=True)
    company_id: str = Field(foreign_key="company.id", index=True)
    from_currency: str = Field(max_length=3, index=True)
    to_currency: str = Field(max_length=3, index=True)
    rate: Decimal = Field(max_digits=24, decimal_places=10)
    rate_date: date = Field(index=True)
    source: str = "MANUAL"
    created_by: str | None = None
    created_at: datetime = Field(default_factory=utc_now)


class AccountingVoucher(SQLModel, table=True):
    """Posted voucher header. Totals are in the base currency."""

    __tablename__ = "accounting_voucher"
    __table_args__ = (UniqueConstraint("company_id", "voucher_no", name="uq_voucher_number"),)

    id: str = Field(default_factory=_uuid, primary_key=True)
    company_id: str = Field(foreign_key="company.id", index=True)
    voucher_no: str = Field(index=True)
    voucher_type: str = Field(index=True)
    voucher_date: date = Field(index=True)
    description: str = ""
    currency: str = Field(max_length=3)
    base_currency: str = Field(max_length=3)
    exchange_rate: Decimal = Field(max_digits=24, decimal_places=10)
    total_debit: Decimal = Field(max_digits=20, decimal_places=4)
    total_credit: Decimal = Field(max_digits=20, decimal_places=4)
    status: str = Field(default="draft", index=True)
    created_by: str
    created_at: datetime = Field(default_factory=utc_now)

    company: "Company" = Relationship(back_populates="vouchers")
    lines: list["VoucherLine"] = Relationship(
        back_populates="voucher",
        sa_relationship_kwargs={"order_by": "VoucherLine.line_no", "cascade": "all, delete-orphan"},
    )


class VoucherLine(SQLModel, table=True):
    """One posting leg with transaction and base amounts."""

    __tablename__ = "voucher_line"

    id: str = Field(default_factory=_uuid, primary_key=True)
    voucher_id: str = Field(foreign_key="accounting_voucher.id", index=True)
    line_no: int
    account_id: str = Field(index=True)
    side: str
    amount: Decimal = Field(max_digits=20, decimal_places=4)
    currency: str = Field(max_length=3)
    base_amount: Decimal = Field(max_digits=20, decimal_places=4)
    base_currency: str = Field(max_length=3)
    exchange_rate: Decimal = Field(max_digits=24, decimal_places=10)
    notes: str | None = None
    cost_center_id: str | None = None

    voucher: "AccountingVoucher" = Relationship(back_populates="lines")


class VoucherSequence(SQLModel, table=True):
    """Last number handed out per (company, voucher kind, fiscal year)."""

    __tablename__ = "voucher_sequence"
    __table_args__ = (
        UniqueConstraint("company_id", "voucher_type", "fiscal_year", name="uq_voucher_sequence"),
    )

    id: int | None = Field(default=None, primary_key=True)
    company_id: str = Field(index=True)
    voucher_type: str
    fiscal_year: int
    last_value: int = 0
