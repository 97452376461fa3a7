#!/usr/bin/env python3
"""
Database Seeding Script - Ledger Posting API
Seeds the currency catalog and a demo company for local testing.
"""

from datetime import date
from decimal import Decimal

DEMO_COMPANY_ID = "00000000-0000-0000-0000-000000000001"

DEMO_ACCOUNTS = [
    ("1000", "Cash", "ASSET", "USD"),
    ("1010", "Bank - EUR", "ASSET", "EUR"),
    ("1200", "Accounts Receivable", "ASSET", "USD"),
    ("2000", "Accounts Payable", "LIABILITY", "USD"),
    ("3000", "Owner's Equity", "EQUITY", "USD"),
    ("4000", "Sales Revenue", "REVENUE", "USD"),
    ("6100", "Office Supplies", "EXPENSE", "USD"),
]

DEMO_CURRENCIES = [
    ("USD", Decimal("1")),
    ("EUR", Decimal("1.0850")),
    ("GBP", Decimal("1.2700")),
]


def main():
    """Main function."""
    print("=" * 60)
    print("Database Seeding - Ledger Posting API")
    print("=" * 60)

    from app.application.container import Ledger
    from app.application.use_cases.currencies import EnableCurrencyInput
    from app.infrastructure.database import SessionLocal, init_db, seed_currency_catalog
    from app.infrastructure.database.models import Account, Company
    from app.infrastructure.database.repositories import sql_repositories

    init_db()

    db = SessionLocal()

    try:
        added = seed_currency_catalog(db)
        print(f"✓ Seeded {added} catalog currencies")

        company = db.get(Company, DEMO_COMPANY_ID)
        if not company:
            company = Company(
                id=DEMO_COMPANY_ID,
                name="Demo Trading LLC",
                base_currency="USD",
                fiscal_year_start=1,
            )
            db.add(company)
            db.commit()
            print(f"✓ Created company: {company.name}")
        else:
            print(f"✓ Company already exists: {company.name}")

        for code, name, account_type, currency in DEMO_ACCOUNTS:
            exists = (
                db.query(Account)
                .filter(Account.company_id == DEMO_COMPANY_ID, Account.code == code)
                .first()
            )
            if not exists:
                db.add(Account(
                    company_id=DEMO_COMPANY_ID,
                    code=code,
                    name=name,
                    account_type=account_type,
                    currency=currency,
                ))
        db.commit()
        print(f"✓ Seeded {len(DEMO_ACCOUNTS)} accounts")

        ledger = Ledger(sql_repositories(db))
        for code, rate in DEMO_CURRENCIES:
            if ledger.repos.company_currencies.is_enabled(DEMO_COMPANY_ID, code):
                continue
            ledger.enable_currency.execute(
                EnableCurrencyInput(currency_code=code, initial_rate=rate, rate_date=date.today()),
                DEMO_COMPANY_ID,
                "seed",
            )
            print(f"✓ Enabled {code} at {rate}")

        print("\n" + "=" * 60)
        print("Seeding completed successfully!")
        print(f"Company ID: {DEMO_COMPANY_ID}")
        print("=" * 60)

    except Exception as e:
        print(f"\n❌ Error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
