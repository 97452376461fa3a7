"""
API Routers - Currency catalog, company currencies and exchange rates.
"""

from datetime import date

from fastapi import APIRouter, Depends, status

from app.api.deps import get_company_id, get_ledger, get_user_id
from app.application.container import Ledger
from app.application.dto.accounting_dto import (
    CompanyCurrencyResponseDTO,
    CurrencyResponseDTO,
    EnableCurrencyDTO,
    ExchangeRateCreateDTO,
    ExchangeRateResponseDTO,
    ExchangeRateSavedDTO,
    RateDeviationCheckDTO,
    RateDeviationWarningDTO,
    SuggestedRateDTO,
)

router = APIRouter(prefix="/api/v1", tags=["Currencies"])


@router.get("/currencies", response_model=list[CurrencyResponseDTO])
def list_currencies(active_only: bool = True, ledger: Ledger = Depends(get_ledger)):
    return [CurrencyResponseDTO.model_validate(c) for c in ledger.list_currencies.execute(active_only)]


@router.get("/company/currencies", response_model=list[CompanyCurrencyResponseDTO])
def list_company_currencies(
    company_id: str = Depends(get_company_id),
    ledger: Ledger = Depends(get_ledger),
):
    """Enabled currencies of the company, base currency first."""
    return [
        CompanyCurrencyResponseDTO.from_view(v)
        for v in ledger.list_company_currencies.execute(company_id)
    ]


@router.post(
    "/company/currencies",
    response_model=CompanyCurrencyResponseDTO,
    status_code=status.HTTP_201_CREATED,
)
def enable_company_currency(
    dto: EnableCurrencyDTO,
    company_id: str = Depends(get_company_id),
    user_id: str = Depends(get_user_id),
    ledger: Ledger = Depends(get_ledger),
):
    """
    Enable a currency for the company.

    Records the initial rate (currency -> base) as a REFERENCE rate.
    The base currency can only be enabled with a rate of 1.
    """
    record = ledger.enable_currency.execute(dto.to_input(), company_id, user_id)
    currency = ledger.get_currency.execute(record.currency_code)
    return CompanyCurrencyResponseDTO(
        currency_code=record.currency_code,
        name=currency.name,
        symbol=currency.symbol,
        decimal_places=currency.decimal_places,
        is_base=record.is_base,
        is_enabled=record.is_enabled,
        enabled_at=record.enabled_at,
        disabled_at=record.disabled_at,
    )


@router.delete("/company/currencies/{code}", status_code=status.HTTP_204_NO_CONTENT)
def disable_company_currency(
    code: str,
    company_id: str = Depends(get_company_id),
    ledger: Ledger = Depends(get_ledger),
):
    ledger.disable_currency.execute(company_id, code)


@router.get("/exchange-rates/suggested", response_model=SuggestedRateDTO)
def get_suggested_rate(
    from_currency: str,
    rate_date: date,
    to_currency: str | None = None,
    company_id: str = Depends(get_company_id),
    ledger: Ledger = Depends(get_ledger),
):
    """Rate a voucher dated rate_date would use. rate is null when none exists."""
    suggestion = ledger.suggested_rate.execute(company_id, from_currency, rate_date, to_currency)
    return SuggestedRateDTO.from_suggestion(suggestion)


@router.post("/exchange-rates", response_model=ExchangeRateSavedDTO, status_code=status.HTTP_201_CREATED)
def save_exchange_rate(
    dto: ExchangeRateCreateDTO,
    company_id: str = Depends(get_company_id),
    user_id: str = Depends(get_user_id),
    ledger: Ledger = Depends(get_ledger),
):
    """Append a rate. Deviation warnings are advisory and never block the save."""
    rate, warnings = ledger.save_rate.execute(dto.to_input(), company_id, user_id)
    return ExchangeRateSavedDTO(
        rate=ExchangeRateResponseDTO.model_validate(rate),
        warnings=[RateDeviationWarningDTO.model_validate(w) for w in warnings],
    )


@router.post("/exchange-rates/deviations", response_model=list[RateDeviationWarningDTO])
def check_rate_deviation(
    dto: RateDeviationCheckDTO,
    company_id: str = Depends(get_company_id),
    ledger: Ledger = Depends(get_ledger),
):
    warnings = ledger.check_rate.execute(company_id, dto.from_currency, dto.rate, dto.to_currency)
    return [RateDeviationWarningDTO.model_validate(w) for w in warnings]


@router.get("/exchange-rates/history", response_model=list[ExchangeRateResponseDTO])
def list_rate_history(
    from_currency: str | None = None,
    to_currency: str | None = None,
    limit: int | None = None,
    company_id: str = Depends(get_company_id),
    ledger: Ledger = Depends(get_ledger),
):
    rates = ledger.rate_history.execute(company_id, from_currency, to_currency, limit)
    return [ExchangeRateResponseDTO.model_validate(r) for r in rates]
