"""
Voucher line handlers - one per voucher kind.

Each handler validates its kind-specific input and turns it into raw
debit/credit legs in the transaction currency. Currency conversion,
numbering and persistence belong to the posting use case.

    Payment         DR expense/payable      CR cash/bank
    Receipt         DR cash/bank            CR revenue/receivable
    Journal Entry   user-defined legs, debits must equal credits
    Opening Balance user-defined balances, assets = liabilities + equity
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import ClassVar

from .exceptions import VoucherValidationError
from .value_objects import MONEY_EPS, AccountId, RawLine, VoucherType, to_decimal


@dataclass
class PaymentVoucherInput:
    """Money leaving the company: pay an expense or settle a payable."""
    date: date | str | None
    amount: Decimal | int | float | str | None
    cash_account_id: str
    expense_account_id: str
    description: str = ""
    currency: str | None = None
    notes: str | None = None
    cost_center_id: str | None = None

    voucher_type: ClassVar[VoucherType] = VoucherType.PAYMENT


@dataclass
class ReceiptVoucherInput:
    """Money entering the company: income or collection of a receivable."""
    date: date | str | None
    amount: Decimal | int | float | str | None
    cash_account_id: str
    revenue_account_id: str
    description: str = ""
    currency: str | None = None
    notes: str | None = None
    cost_center_id: str | None = None

    voucher_type: ClassVar[VoucherType] = VoucherType.RECEIPT


@dataclass
class JournalLineInput:
    account_id: str
    debit: Decimal | int | float | str | None = Decimal("0")
    credit: Decimal | int | float | str | None = Decimal("0")
    notes: str | None = None
    cost_center_id: str | None = None


@dataclass
class JournalEntryInput:
    date: date | str | None
    description: str = ""
    lines: list[JournalLineInput] = field(default_factory=list)
    currency: str | None = None

    voucher_type: ClassVar[VoucherType] = VoucherType.JOURNAL_ENTRY


@dataclass
class OpeningBalanceInput:
    """Period-zero balances; same shape as a journal entry."""
    date: date | str | None
    description: str = ""
    lines: list[JournalLineInput] = field(default_factory=list)
    currency: str | None = None

    voucher_type: ClassVar[VoucherType] = VoucherType.OPENING_BALANCE


VoucherIntent = PaymentVoucherInput | ReceiptVoucherInput | JournalEntryInput | OpeningBalanceInput


@dataclass(frozen=True)
class PostingDraft:
    """Validated handler output, still in the transaction currency."""
    voucher_type: VoucherType
    voucher_date: date
    description: str
    currency: str | None
    lines: tuple[RawLine, ...]

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), Decimal("0"))


def _parse_date(value: date | str | None, errors: list[str]) -> date | None:
    if isinstance(value, date):
        return value
    if value is None or not str(value).strip():
        errors.append("Date is required")
        return None
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        errors.append(f"Date must be an ISO date (YYYY-MM-DD), got '{value}'")
        return None


def _parse_amount(value: object, label: str, errors: list[str]) -> Decimal | None:
    if value is None or value == "":
        return Decimal("0")
    try:
        amount = to_decimal(value)
    except (InvalidOperation, ValueError):
        errors.append(f"{label} must be a number")
        return None
    if not amount.is_finite():
        errors.append(f"{label} must be a number")
        return None
    return amount


def _normalize_currency(code: str | None) -> str | None:
    if code is None or not code.strip():
        return None
    return code.strip().upper()


class VoucherLineHandler(ABC):
    """Validate one kind of voucher intent and produce its raw legs."""

    voucher_type: ClassVar[VoucherType]
    kind_label: ClassVar[str]
    input_type: ClassVar[type]

    def prepare(self, data: VoucherIntent) -> PostingDraft:
        """Validate then build lines; fails fast with every rule violated."""
        if not isinstance(data, self.input_type):
            raise TypeError(
                f"{type(self).__name__} expects {self.input_type.__name__}, got {type(data).__name__}"
            )
        errors: list[str] = []
        draft = self._build(data, errors)
        if errors or draft is None:
            raise VoucherValidationError(self.kind_label, errors)
        return draft

    def validate(self, data: VoucherIntent) -> None:
        self.prepare(data)

    @abstractmethod
    def _build(self, data, errors: list[str]) -> PostingDraft | None:
        ...

    @abstractmethod
    def posting_description(self) -> str:
        ...


class _TwoLegHandler(VoucherLineHandler):
    """Shared logic for fixed two-line vouchers (payment, receipt)."""

    counter_label: ClassVar[str]
    default_description: ClassVar[str]

    @abstractmethod
    def _counter_account(self, data) -> str:
        ...

    @abstractmethod
    def _legs(self, data, amount: Decimal) -> tuple[RawLine, RawLine]:
        ...

    def _build(self, data, errors: list[str]) -> PostingDraft | None:
        voucher_date = _parse_date(data.date, errors)

        amount = _parse_amount(data.amount, "Amount", errors)
        if amount is not None and amount <= 0:
            errors.append("Amount must be greater than zero")

        cash_account = (data.cash_account_id or "").strip()
        counter_account = (self._counter_account(data) or "").strip()
        if not cash_account:
            errors.append("Cash/Bank account is required")
        if not counter_account:
            errors.append(f"{self.counter_label} account is required")
        if cash_account and cash_account == counter_account:
            errors.append(f"Cash account and {self.counter_label.lower()} account cannot be the same")

        if errors:
            return None

        return PostingDraft(
            voucher_type=self.voucher_type,
            voucher_date=voucher_date,
            description=(data.description or "").strip() or self.default_description,
            currency=_normalize_currency(data.currency),
            lines=self._legs(data, amount),
        )


class PaymentVoucherHandler(_TwoLegHandler):
    voucher_type = VoucherType.PAYMENT
    kind_label = "Payment voucher"
    input_type = PaymentVoucherInput
    counter_label = "Expense/Payable"
    default_description = "Payment"

    def _counter_account(self, data: PaymentVoucherInput) -> str:
        return data.expense_account_id

    def _legs(self, data: PaymentVoucherInput, amount: Decimal) -> tuple[RawLine, RawLine]:
        notes = data.notes or data.description or None
        return (
            RawLine(AccountId(data.expense_account_id.strip()), debit=amount,
                    notes=notes, cost_center_id=data.cost_center_id),
            RawLine(AccountId(data.cash_account_id.strip()), credit=amount,
                    notes=notes, cost_center_id=data.cost_center_id),
        )

    def posting_description(self) -> str:
        return (
            "Line 1: DEBIT  - Expense/Payable account\n"
            "Line 2: CREDIT - Cash/Bank account"
        )


class ReceiptVoucherHandler(_TwoLegHandler):
    voucher_type = VoucherType.RECEIPT
    kind_label = "Receipt voucher"
    input_type = ReceiptVoucherInput
    counter_label = "Revenue/Receivable"
    default_description = "Receipt"

    def _counter_account(self, data: ReceiptVoucherInput) -> str:
        return data.revenue_account_id

    def _legs(self, data: ReceiptVoucherInput, amount: Decimal) -> tuple[RawLine, RawLine]:
        notes = data.notes or data.description or None
        return (
            RawLine(AccountId(data.cash_account_id.strip()), debit=amount,
                    notes=notes, cost_center_id=data.cost_center_id),
            RawLine(AccountId(data.revenue_account_id.strip()), credit=amount,
                    notes=notes, cost_center_id=data.cost_center_id),
        )

    def posting_description(self) -> str:
        return (
            "Line 1: DEBIT  - Cash/Bank account\n"
            "Line 2: CREDIT - Revenue/Receivable account"
        )


class _MultiLineHandler(VoucherLineHandler):
    """Shared logic for user-defined balanced entries."""

    both_sides_message: ClassVar[str]
    neither_side_message: ClassVar[str]
    unbalanced_message: ClassVar[str]
    default_description: ClassVar[str]

    def _build(self, data, errors: list[str]) -> PostingDraft | None:
        voucher_date = _parse_date(data.date, errors)

        lines = data.lines or []
        if len(lines) < 2:
            errors.append("At least 2 lines are required")

        raw_lines: list[RawLine] = []
        total_debit = Decimal("0")
        total_credit = Decimal("0")

        for index, line in enumerate(lines, start=1):
            if not (line.account_id or "").strip():
                errors.append(f"Line {index}: Account is required")

            debit = _parse_amount(line.debit, f"Line {index}: Debit", errors)
            credit = _parse_amount(line.credit, f"Line {index}: Credit", errors)
            if debit is None or credit is None:
                continue

            if debit < 0 or credit < 0:
                errors.append(f"Line {index}: Amounts cannot be negative")
                continue
            if debit > 0 and credit > 0:
                errors.append(f"Line {index}: {self.both_sides_message}")
                continue
            if debit == 0 and credit == 0:
                errors.append(f"Line {index}: {self.neither_side_message}")
                continue

            total_debit += debit
            total_credit += credit
            raw_lines.append(RawLine(
                AccountId((line.account_id or "").strip()),
                debit=debit,
                credit=credit,
                notes=line.notes,
                cost_center_id=line.cost_center_id,
            ))

        if lines and abs(total_debit - total_credit) > MONEY_EPS:
            errors.append(
                f"{self.unbalanced_message}: Total Debit = {total_debit:.2f}, "
                f"Total Credit = {total_credit:.2f}"
            )

        if errors:
            return None

        return PostingDraft(
            voucher_type=self.voucher_type,
            voucher_date=voucher_date,
            description=(data.description or "").strip() or self.default_description,
            currency=_normalize_currency(data.currency),
            lines=tuple(raw_lines),
        )


class JournalEntryHandler(_MultiLineHandler):
    voucher_type = VoucherType.JOURNAL_ENTRY
    kind_label = "Journal entry"
    input_type = JournalEntryInput
    both_sides_message = "Cannot have both debit and credit"
    neither_side_message = "Must have either debit or credit"
    unbalanced_message = "Entry is not balanced"
    default_description = "Journal entry"

    def posting_description(self) -> str:
        return "User-defined debits and credits; total debit must equal total credit."


class OpeningBalanceHandler(_MultiLineHandler):
    voucher_type = VoucherType.OPENING_BALANCE
    kind_label = "Opening balance"
    input_type = OpeningBalanceInput
    both_sides_message = "Cannot have both debit and credit balance"
    neither_side_message = "Must have either debit or credit balance"
    unbalanced_message = "Opening balances not balanced"
    default_description = "Opening balances"

    def posting_description(self) -> str:
        return (
            "Assets carry debit balances, liabilities and equity carry credit balances.\n"
            "Assets (debits) must equal liabilities + equity (credits)."
        )


HANDLERS: dict[VoucherType, VoucherLineHandler] = {
    handler.voucher_type: handler
    for handler in (
        PaymentVoucherHandler(),
        ReceiptVoucherHandler(),
        JournalEntryHandler(),
        OpeningBalanceHandler(),
    )
}


def handler_for(intent: VoucherIntent) -> VoucherLineHandler:
    return HANDLERS[intent.voucher_type]
