"""
Unit tests - Voucher aggregate and value objects.
Testing: balance invariants, base-currency totals, currency rounding.
"""

from datetime import date
from decimal import Decimal

import pytest

from app.domain.entities import CompanyCurrency, VoucherEntity
from app.domain.exceptions import InvalidExchangeRateError
from app.domain.services import CurrencyPrecisionService, format_by_currency, round_by_currency
from app.domain.value_objects import (
    AccountId,
    Currency,
    ExchangeRate,
    TransactionSide,
    VoucherLineItem,
    VoucherStatus,
    VoucherType,
    money_epsilon,
    round_money,
)


def _line(line_no, side, amount, base_amount=None, currency="EUR", base_currency="USD", rate="1.1"):
    return VoucherLineItem(
        line_no=line_no,
        account_id=AccountId(f"acc-{line_no}"),
        side=side,
        amount=Decimal(amount),
        currency=currency,
        base_amount=Decimal(base_amount or amount),
        base_currency=base_currency,
        exchange_rate=Decimal(rate),
    )


def _build(lines, **overrides):
    params = dict(
        company_id="company-1",
        voucher_no="JE-2025-001",
        voucher_type=VoucherType.JOURNAL_ENTRY,
        voucher_date=date(2025, 3, 1),
        description="Test",
        currency="EUR",
        base_currency="USD",
        exchange_rate=Decimal("1.1"),
        lines=lines,
        created_by="user-1",
    )
    params.update(overrides)
    return VoucherEntity.build(**params)


class TestVoucherEntity:
    """Double-entry invariants in the base currency."""

    def test_build_computes_base_totals(self):
        voucher = _build([
            _line(1, TransactionSide.DEBIT, "100", "110"),
            _line(2, TransactionSide.CREDIT, "100", "110"),
        ])
        assert voucher.total_debit == Decimal("110")
        assert voucher.total_credit == Decimal("110")
        assert voucher.is_balanced
        assert voucher.is_draft
        assert voucher.is_foreign_currency

    def test_fewer_than_two_lines_rejected(self):
        with pytest.raises(ValueError, match="at least 2 lines"):
            _build([_line(1, TransactionSide.DEBIT, "100")])

    def test_unbalanced_lines_rejected(self):
        with pytest.raises(ValueError, match="not balanced"):
            _build([
                _line(1, TransactionSide.DEBIT, "100", "110"),
                _line(2, TransactionSide.CREDIT, "100", "109"),
            ])

    def test_one_cent_difference_tolerated(self):
        voucher = _build([
            _line(1, TransactionSide.DEBIT, "100", "110.01"),
            _line(2, TransactionSide.CREDIT, "100", "110.00"),
        ])
        assert voucher.is_balanced

    def test_totals_must_match_lines(self):
        lines = (
            _line(1, TransactionSide.DEBIT, "100", "110"),
            _line(2, TransactionSide.CREDIT, "100", "110"),
        )
        voucher = _build(list(lines))
        with pytest.raises(ValueError, match="Total debit does not match"):
            VoucherEntity(
                id=voucher.id,
                company_id=voucher.company_id,
                voucher_no=voucher.voucher_no,
                type=voucher.type,
                voucher_date=voucher.voucher_date,
                description=voucher.description,
                currency=voucher.currency,
                base_currency=voucher.base_currency,
                exchange_rate=voucher.exchange_rate,
                lines=lines,
                total_debit=Decimal("200"),
                total_credit=Decimal("110"),
                created_by=voucher.created_by,
            )

    def test_mixed_line_currencies_rejected(self):
        with pytest.raises(ValueError, match="same transaction and base currency"):
            _build([
                _line(1, TransactionSide.DEBIT, "100", "110"),
                _line(2, TransactionSide.CREDIT, "100", "110", currency="GBP"),
            ])

    def test_with_status_returns_new_voucher(self):
        voucher = _build([
            _line(1, TransactionSide.DEBIT, "10"),
            _line(2, TransactionSide.CREDIT, "10"),
        ])
        approved = voucher.with_status(VoucherStatus.APPROVED)
        assert approved.status == VoucherStatus.APPROVED
        assert voucher.status == VoucherStatus.DRAFT
        assert approved.id == voucher.id

    def test_uses_currency_checks_header_and_lines(self):
        voucher = _build([
            _line(1, TransactionSide.DEBIT, "10"),
            _line(2, TransactionSide.CREDIT, "10"),
        ])
        assert voucher.uses_currency("eur")
        assert voucher.uses_currency("USD")
        assert not voucher.uses_currency("GBP")


class TestVoucherLineItem:

    def test_zero_amount_rejected(self):
        with pytest.raises(ValueError, match="amount must be greater than zero"):
            _line(1, TransactionSide.DEBIT, "0")

    def test_debit_and_credit_amounts_are_in_base_currency(self):
        line = _line(1, TransactionSide.CREDIT, "100", "110")
        assert line.debit_amount == Decimal("0")
        assert line.credit_amount == Decimal("110")


class TestCurrency:

    def test_code_is_uppercased(self):
        assert Currency("eur", "Euro", "€").code == "EUR"

    def test_invalid_code_rejected(self):
        with pytest.raises(ValueError, match="3 letters"):
            Currency("EURO", "Euro", "€")

    def test_rounding_follows_decimal_places(self):
        yen = Currency("JPY", "Japanese Yen", "¥", 0)
        dinar = Currency("KWD", "Kuwaiti Dinar", "KD", 3)
        assert yen.round(Decimal("1234.5")) == Decimal("1235")
        assert dinar.round(Decimal("1.2345")) == Decimal("1.235")
        assert yen.epsilon == Decimal("1")

    def test_format(self):
        assert Currency("USD", "US Dollar", "$").format(Decimal("1234.5")) == "$1,234.50"


class TestExchangeRate:

    def test_non_positive_rate_rejected(self):
        with pytest.raises(InvalidExchangeRateError, match="must be positive"):
            ExchangeRate("company-1", "EUR", "USD", Decimal("0"), date(2025, 1, 1))

    def test_non_numeric_rate_rejected(self):
        with pytest.raises(InvalidExchangeRateError, match="must be a number"):
            ExchangeRate("company-1", "EUR", "USD", "abc", date(2025, 1, 1))

    def test_rate_is_coerced_to_decimal(self):
        rate = ExchangeRate("company-1", "eur", "usd", 1.1, date(2025, 1, 1))
        assert rate.rate == Decimal("1.1")
        assert rate.pair == "EUR/USD"
        assert rate.convert(Decimal("100")) == Decimal("110.00")


class TestCurrencyPrecision:

    def test_round_half_up(self):
        assert round_money(Decimal("2.345")) == Decimal("2.35")
        assert round_money(Decimal("-2.345")) == Decimal("-2.35")
        assert money_epsilon(3) == Decimal("0.001")

    def test_unknown_currency_defaults_to_two_decimals(self):
        precision = CurrencyPrecisionService()
        assert precision.decimal_places("XYZ") == 2
        assert precision.decimal_places("JPY") == 0

    def test_base_amount_rounds_in_base_currency(self):
        precision = CurrencyPrecisionService()
        assert precision.base_amount(Decimal("100"), Decimal("148.456"), "JPY") == Decimal("14846")
        assert precision.base_amount(Decimal("33.33"), Decimal("1.085"), "USD") == Decimal("36.16")

    def test_module_helpers(self):
        assert round_by_currency(Decimal("1.0005"), "BHD") == Decimal("1.001")
        assert format_by_currency(Decimal("5"), "KWD") == "5.000"


class TestCompanyCurrency:

    def test_disable_then_enable(self):
        record = CompanyCurrency(company_id="company-1", currency_code="eur")
        disabled = record.disable()
        assert record.currency_code == "EUR"
        assert not disabled.is_enabled
        assert disabled.disabled_at is not None
        enabled = disabled.enable()
        assert enabled.is_enabled
        assert enabled.disabled_at is None
