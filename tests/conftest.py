"""
Pytest configuration and fixtures.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.application.container import Ledger, RepositoryBundle
from app.core.config import Settings
from app.domain.value_objects import ExchangeRate, RateSource
from app.infrastructure.database import seed_currency_catalog
from app.infrastructure.database.models import Company
from app.infrastructure.database.repositories import sql_repositories
from app.infrastructure.memory import in_memory_repositories

COMPANY_ID = "company-1"
OTHER_COMPANY_ID = "company-2"
USER_ID = "user-1"


@pytest.fixture
def settings() -> Settings:
    return Settings(database_url="sqlite://", log_level="DEBUG")


@pytest.fixture
def repos() -> RepositoryBundle:
    bundle = in_memory_repositories()
    bundle.companies.set_base_currency(COMPANY_ID, "USD")
    bundle.companies.set_base_currency(OTHER_COMPANY_ID, "EUR")
    return bundle


@pytest.fixture
def ledger(repos: RepositoryBundle, settings: Settings) -> Ledger:
    return Ledger(repos, settings)


@pytest.fixture
def add_rate(repos: RepositoryBundle):
    """Append a rate observation directly to the store."""

    def _add(
        from_currency: str,
        rate: str,
        rate_date: date,
        to_currency: str = "USD",
        company_id: str = COMPANY_ID,
        source: RateSource = RateSource.MANUAL,
    ) -> ExchangeRate:
        return repos.exchange_rates.save(ExchangeRate(
            company_id=company_id,
            from_currency=from_currency,
            to_currency=to_currency,
            rate=Decimal(rate),
            rate_date=rate_date,
            source=source,
            created_by=USER_ID,
        ))

    return _add


@pytest.fixture
def db_engine():
    """Fresh in-memory SQLite database shared across connections."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(db_engine) -> Session:
    """Session with two companies and the seeded currency catalog."""
    session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)()
    session.add(Company(id=COMPANY_ID, name="Acme Corp", base_currency="USD"))
    session.add(Company(id=OTHER_COMPANY_ID, name="Euro GmbH", base_currency="EUR", fiscal_year_start=4))
    seed_currency_catalog(session)
    yield session
    session.close()


@pytest.fixture
def sql_ledger(db: Session, settings: Settings) -> Ledger:
    return Ledger(sql_repositories(db), settings)


@pytest.fixture
def client(db: Session):
    """API client bound to the test database; startup hooks are not run."""
    from fastapi.testclient import TestClient

    from app.infrastructure.database import get_db
    from app.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def eur_enabled(ledger: Ledger, repos: RepositoryBundle):
    """EUR enabled for COMPANY_ID with an initial 1.10 reference rate on 2025-01-01."""
    from app.application.use_cases.currencies import EnableCurrencyInput

    return ledger.enable_currency.execute(
        EnableCurrencyInput(currency_code="EUR", initial_rate="1.10", rate_date=date(2025, 1, 1)),
        COMPANY_ID,
        USER_ID,
    )
