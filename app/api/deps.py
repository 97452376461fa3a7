"""
Shared FastAPI dependencies - tenant headers and the request-scoped Ledger.
"""

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from app.application.container import Ledger
from app.core.config import Settings, get_settings
from app.infrastructure.database import get_db
from app.infrastructure.database.repositories import sql_repositories


def get_company_id(x_company_id: str | None = Header(None, alias="X-Company-Id")) -> str:
    if not x_company_id:
        raise HTTPException(status_code=400, detail="X-Company-Id header is missing")
    return x_company_id


def get_user_id(x_user_id: str | None = Header(None, alias="X-User-Id")) -> str:
    return x_user_id or "system"


def get_ledger(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Ledger:
    return Ledger(sql_repositories(db), settings)
