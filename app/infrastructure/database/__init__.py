"""
Database initialization and session management.
"""

import logging
from collections.abc import Generator
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlmodel import SQLModel

from app.core.config import get_settings
from app.domain.currency_catalog import CURRENCY_SEED_DATA
from app.infrastructure.database.models import CurrencyRecord

logger = logging.getLogger(__name__)


def build_engine(database_url: str, echo: bool = False) -> Engine:
    if database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, connect_args={"check_same_thread": False})
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


_settings = get_settings()
engine = build_engine(_settings.database_url, _settings.database_echo)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency - Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    """Initialize database - create all tables."""
    bind = bind or engine
    database = bind.url.database
    if bind.url.get_backend_name() == "sqlite" and database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(bind=bind)


def seed_currency_catalog(db: Session) -> int:
    """Insert catalog currencies that are missing. Returns the number added."""
    existing = {code for (code,) in db.query(CurrencyRecord.code).all()}
    added = 0
    for currency in CURRENCY_SEED_DATA:
        if currency.code in existing:
            continue
        db.add(CurrencyRecord(
            code=currency.code,
            name=currency.name,
            symbol=currency.symbol,
            decimal_places=currency.decimal_places,
            is_active=currency.is_active,
        ))
        added += 1
    db.commit()
    if added:
        logger.info("Seeded %d catalog currencies", added)
    return added
