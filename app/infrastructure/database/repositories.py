"""
SQLAlchemy-session implementations of the domain repository interfaces.

Repositories only flush; SqlUnitOfWork commits. A posting therefore writes
the sequence increment, the voucher header and its lines in one transaction.
"""

from datetime import date, datetime, timezone

from sqlalchemy import func, or_, update
from sqlalchemy.orm import Session

from app.application.container import RepositoryBundle
from app.domain.entities import CompanyCurrency, VoucherEntity
from app.domain.exceptions import CurrencyPolicyError
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
from app.domain.value_objects import (
    AccountId,
    Currency,
    ExchangeRate,
    RateSource,
    TransactionSide,
    VoucherLineItem,
    VoucherNumber,
    VoucherStatus,
    VoucherType,
)
from app.infrastructure.database.models import (
    Account,
    AccountingVoucher,
    Company,
    CompanyCurrencyRecord,
    CurrencyRecord,
    ExchangeRateRecord,
    VoucherLine,
    VoucherSequence,
)


def _aware(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo; stored timestamps are always UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_voucher_entity(row: AccountingVoucher) -> VoucherEntity:
    lines = tuple(
        VoucherLineItem(
            line_no=line.line_no,
            account_id=AccountId(line.account_id),
            side=TransactionSide(line.side),
            amount=line.amount,
            currency=line.currency,
            base_amount=line.base_amount,
            base_currency=line.base_currency,
            exchange_rate=line.exchange_rate,
            notes=line.notes,
            cost_center_id=line.cost_center_id,
        )
        for line in sorted(row.lines, key=lambda item: item.line_no)
    )
    return VoucherEntity(
        id=row.id,
        company_id=row.company_id,
        voucher_no=VoucherNumber(row.voucher_no),
        type=VoucherType(row.voucher_type),
        voucher_date=row.voucher_date,
        description=row.description,
        currency=row.currency,
        base_currency=row.base_currency,
        exchange_rate=row.exchange_rate,
        lines=lines,
        total_debit=row.total_debit,
        total_credit=row.total_credit,
        created_by=row.created_by,
        status=VoucherStatus(row.status),
        created_at=_aware(row.created_at),
    )


def _to_exchange_rate(row: ExchangeRateRecord) -> ExchangeRate:
    return ExchangeRate(
        id=row.rate_id,
        company_id=row.company_id,
        from_currency=row.from_currency,
        to_currency=row.to_currency,
        rate=row.rate,
        rate_date=row.rate_date,
        source=RateSource(row.source),
        created_by=row.created_by,
        created_at=_aware(row.created_at),
    )


def _to_currency(row: CurrencyRecord) -> Currency:
    return Currency(
        code=row.code,
        name=row.name,
        symbol=row.symbol,
        decimal_places=row.decimal_places,
        is_active=row.is_active,
    )


def _to_company_currency(row: CompanyCurrencyRecord) -> CompanyCurrency:
    return CompanyCurrency(
        id=row.id,
        company_id=row.company_id,
        currency_code=row.currency_code,
        is_enabled=row.is_enabled,
        is_base=row.is_base,
        enabled_at=_aware(row.enabled_at),
        disabled_at=_aware(row.disabled_at),
    )


class SqlVoucherRepository(IVoucherRepository):

    def __init__(self, db: Session):
        self.db = db

    def save(self, voucher: VoucherEntity) -> VoucherEntity:
        row = self.db.get(AccountingVoucher, voucher.id)
        if row is None:
            row = AccountingVoucher(
                id=voucher.id,
                company_id=voucher.company_id,
                voucher_no=voucher.voucher_no,
                voucher_type=voucher.type.value,
                voucher_date=voucher.voucher_date,
                currency=voucher.currency,
                base_currency=voucher.base_currency,
                exchange_rate=voucher.exchange_rate,
                total_debit=voucher.total_debit,
                total_credit=voucher.total_credit,
                created_by=voucher.created_by,
            )
            self.db.add(row)
        row.description = voucher.description
        row.status = voucher.status.value
        row.created_at = voucher.created_at
        row.lines = [
            VoucherLine(
                voucher_id=voucher.id,
                line_no=line.line_no,
                account_id=line.account_id,
                side=line.side.value,
                amount=line.amount,
                currency=line.currency,
                base_amount=line.base_amount,
                base_currency=line.base_currency,
                exchange_rate=line.exchange_rate,
                notes=line.notes,
                cost_center_id=line.cost_center_id,
            )
            for line in voucher.lines
        ]
        self.db.flush()
        return voucher

    def _company_query(self, company_id: str):
        return (
            self.db.query(AccountingVoucher)
            .filter(AccountingVoucher.company_id == company_id)
            .order_by(AccountingVoucher.voucher_date.desc(), AccountingVoucher.created_at.desc())
        )

    def find_by_id(self, company_id: str, voucher_id: str) -> VoucherEntity | None:
        row = (
            self.db.query(AccountingVoucher)
            .filter(AccountingVoucher.id == voucher_id, AccountingVoucher.company_id == company_id)
            .first()
        )
        return _to_voucher_entity(row) if row else None

    def find_by_type(self, company_id: str, voucher_type: VoucherType, limit: int = 100) -> list[VoucherEntity]:
        rows = self._company_query(company_id).filter(
            AccountingVoucher.voucher_type == voucher_type.value
        ).limit(limit).all()
        return [_to_voucher_entity(r) for r in rows]

    def find_by_status(self, company_id: str, status: VoucherStatus, limit: int = 100) -> list[VoucherEntity]:
        rows = self._company_query(company_id).filter(
            AccountingVoucher.status == status.value
        ).limit(limit).all()
        return [_to_voucher_entity(r) for r in rows]

    def find_by_date_range(
        self, company_id: str, start_date: date, end_date: date, limit: int = 100
    ) -> list[VoucherEntity]:
        rows = self._company_query(company_id).filter(
            AccountingVoucher.voucher_date >= start_date,
            AccountingVoucher.voucher_date <= end_date,
        ).limit(limit).all()
        return [_to_voucher_entity(r) for r in rows]

    def find_by_company(self, company_id: str, limit: int = 100) -> list[VoucherEntity]:
        return [_to_voucher_entity(r) for r in self._company_query(company_id).limit(limit).all()]

    def search(
        self,
        company_id: str,
        voucher_type: VoucherType | None = None,
        status: VoucherStatus | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = 100,
    ) -> list[VoucherEntity]:
        query = self._company_query(company_id)
        if voucher_type is not None:
            query = query.filter(AccountingVoucher.voucher_type == voucher_type.value)
        if status is not None:
            query = query.filter(AccountingVoucher.status == status.value)
        if start_date is not None:
            query = query.filter(AccountingVoucher.voucher_date >= start_date)
        if end_date is not None:
            query = query.filter(AccountingVoucher.voucher_date <= end_date)
        return [_to_voucher_entity(r) for r in query.limit(limit).all()]

    def delete(self, company_id: str, voucher_id: str) -> bool:
        row = (
            self.db.query(AccountingVoucher)
            .filter(AccountingVoucher.id == voucher_id, AccountingVoucher.company_id == company_id)
            .first()
        )
        if row is None:
            return False
        self.db.delete(row)
        self.db.flush()
        return True

    def exists_by_number(self, company_id: str, voucher_no: str) -> bool:
        return self.db.query(AccountingVoucher.id).filter(
            AccountingVoucher.company_id == company_id,
            AccountingVoucher.voucher_no == voucher_no,
        ).first() is not None

    def count_by_currency(self, company_id: str, currency_code: str) -> int:
        code = currency_code.upper()
        return (
            self.db.query(func.count(func.distinct(AccountingVoucher.id)))
            .select_from(AccountingVoucher)
            .outerjoin(VoucherLine, VoucherLine.voucher_id == AccountingVoucher.id)
            .filter(
                AccountingVoucher.company_id == company_id,
                or_(
                    AccountingVoucher.currency == code,
                    AccountingVoucher.base_currency == code,
                    VoucherLine.currency == code,
                    VoucherLine.base_currency == code,
                ),
            )
            .scalar()
        ) or 0


class SqlExchangeRateRepository(IExchangeRateRepository):

    def __init__(self, db: Session):
        self.db = db

    def save(self, rate: ExchangeRate) -> ExchangeRate:
        self.db.add(ExchangeRateRecord(
            rate_id=rate.id,
            company_id=rate.company_id,
            from_currency=rate.from_currency,
            to_currency=rate.to_currency,
            rate=rate.rate,
            rate_date=rate.rate_date,
            source=rate.source.value,
            created_by=rate.created_by,
            created_at=rate.created_at,
        ))
        self.db.flush()
        return rate

    def _pair_query(self, company_id: str, from_currency: str | None, to_currency: str | None):
        query = self.db.query(ExchangeRateRecord).filter(ExchangeRateRecord.company_id == company_id)
        if from_currency:
            query = query.filter(ExchangeRateRecord.from_currency == from_currency.upper())
        if to_currency:
            query = query.filter(ExchangeRateRecord.to_currency == to_currency.upper())
        return query

    def get_latest_rate(
        self, company_id: str, from_currency: str, to_currency: str, rate_date: date
    ) -> ExchangeRate | None:
        rates = self.get_rates_for_date(company_id, from_currency, to_currency, rate_date)
        return rates[0] if rates else None

    def get_rates_for_date(
        self, company_id: str, from_currency: str, to_currency: str, rate_date: date
    ) -> list[ExchangeRate]:
        rows = (
            self._pair_query(company_id, from_currency, to_currency)
            .filter(ExchangeRateRecord.rate_date == rate_date)
            .order_by(ExchangeRateRecord.created_at.desc(), ExchangeRateRecord.id.desc())
            .all()
        )
        return [_to_exchange_rate(r) for r in rows]

    def get_recent_rates(
        self,
        company_id: str,
        from_currency: str | None = None,
        to_currency: str | None = None,
        limit: int = 10,
    ) -> list[ExchangeRate]:
        rows = (
            self._pair_query(company_id, from_currency, to_currency)
            .order_by(ExchangeRateRecord.created_at.desc(), ExchangeRateRecord.id.desc())
            .limit(limit)
            .all()
        )
        return [_to_exchange_rate(r) for r in rows]

    def get_most_recent_rate(
        self, company_id: str, from_currency: str, to_currency: str
    ) -> ExchangeRate | None:
        row = (
            self._pair_query(company_id, from_currency, to_currency)
            .order_by(
                ExchangeRateRecord.rate_date.desc(),
                ExchangeRateRecord.created_at.desc(),
                ExchangeRateRecord.id.desc(),
            )
            .first()
        )
        return _to_exchange_rate(row) if row else None


class SqlCurrencyRepository(ICurrencyRepository):

    def __init__(self, db: Session):
        self.db = db

    def find_by_code(self, code: str) -> Currency | None:
        row = self.db.get(CurrencyRecord, code.upper())
        return _to_currency(row) if row else None

    def find_all(self, active_only: bool = True) -> list[Currency]:
        query = self.db.query(CurrencyRecord)
        if active_only:
            query = query.filter(CurrencyRecord.is_active == True)  # noqa: E712
        return [_to_currency(r) for r in query.order_by(CurrencyRecord.code).all()]

    def save(self, currency: Currency) -> Currency:
        row = self.db.get(CurrencyRecord, currency.code)
        if row is None:
            row = CurrencyRecord(code=currency.code, name=currency.name, symbol=currency.symbol)
            self.db.add(row)
        row.name = currency.name
        row.symbol = currency.symbol
        row.decimal_places = currency.decimal_places
        row.is_active = currency.is_active
        self.db.flush()
        return currency


class SqlCompanyCurrencyRepository(ICompanyCurrencyRepository):

    def __init__(self, db: Session):
        self.db = db

    def _row(self, company_id: str, currency_code: str) -> CompanyCurrencyRecord | None:
        return self.db.query(CompanyCurrencyRecord).filter(
            CompanyCurrencyRecord.company_id == company_id,
            CompanyCurrencyRecord.currency_code == currency_code.upper(),
        ).first()

    def find(self, company_id: str, currency_code: str) -> CompanyCurrency | None:
        row = self._row(company_id, currency_code)
        return _to_company_currency(row) if row else None

    def find_enabled_by_company(self, company_id: str) -> list[CompanyCurrency]:
        rows = self.db.query(CompanyCurrencyRecord).filter(
            CompanyCurrencyRecord.company_id == company_id,
            CompanyCurrencyRecord.is_enabled == True,  # noqa: E712
        ).order_by(CompanyCurrencyRecord.currency_code).all()
        return [_to_company_currency(r) for r in rows]

    def is_enabled(self, company_id: str, currency_code: str) -> bool:
        row = self._row(company_id, currency_code)
        return row is not None and row.is_enabled

    def save(self, record: CompanyCurrency) -> CompanyCurrency:
        row = self._row(record.company_id, record.currency_code)
        if row is None:
            row = CompanyCurrencyRecord(
                id=record.id, company_id=record.company_id, currency_code=record.currency_code
            )
            self.db.add(row)
        row.is_enabled = record.is_enabled
        row.is_base = record.is_base
        row.enabled_at = record.enabled_at
        row.disabled_at = record.disabled_at
        self.db.flush()
        return record


class SqlAccountRepository(IAccountRepository):

    def __init__(self, db: Session):
        self.db = db

    def count_by_currency(self, company_id: str, currency_code: str) -> int:
        return self.db.query(func.count(Account.id)).filter(
            Account.company_id == company_id,
            Account.currency == currency_code.upper(),
        ).scalar() or 0


class SqlCompanyService(ICompanyService):

    def __init__(self, db: Session):
        self.db = db

    def _company(self, company_id: str) -> Company:
        company = self.db.get(Company, company_id)
        if company is None:
            raise CurrencyPolicyError(f"Company {company_id} has no base currency configured")
        return company

    def get_base_currency(self, company_id: str) -> str:
        return self._company(company_id).base_currency.upper()

    def get_fiscal_year_start(self, company_id: str) -> int:
        return self._company(company_id).fiscal_year_start


class SqlVoucherSequenceRepository(IVoucherSequenceRepository):
    """
    One row per (company, kind, fiscal year). The increment is a single
    UPDATE so the row stays locked until the posting transaction ends.
    """

    def __init__(self, db: Session):
        self.db = db

    def next_value(self, company_id: str, voucher_type: VoucherType, fiscal_year: int) -> int:
        key = (
            VoucherSequence.company_id == company_id,
            VoucherSequence.voucher_type == voucher_type.value,
            VoucherSequence.fiscal_year == fiscal_year,
        )
        result = self.db.execute(
            update(VoucherSequence)
            .where(*key)
            .values(last_value=VoucherSequence.last_value + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            # first number of the year; a concurrent first insert fails on the unique key
            self.db.add(VoucherSequence(
                company_id=company_id,
                voucher_type=voucher_type.value,
                fiscal_year=fiscal_year,
                last_value=1,
            ))
            self.db.flush()
            return 1
        return self.db.query(VoucherSequence.last_value).filter(*key).scalar()


class SqlUnitOfWork(IUnitOfWork):

    def __init__(self, db: Session):
        self.db = db

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()


def sql_repositories(db: Session) -> RepositoryBundle:
    return RepositoryBundle(
        vouchers=SqlVoucherRepository(db),
        exchange_rates=SqlExchangeRateRepository(db),
        currencies=SqlCurrencyRepository(db),
        company_currencies=SqlCompanyCurrencyRepository(db),
        accounts=SqlAccountRepository(db),
        companies=SqlCompanyService(db),
        sequences=SqlVoucherSequenceRepository(db),
        unit_of_work=SqlUnitOfWork(db),
    )
