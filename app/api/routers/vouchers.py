"""
API Routers - Voucher posting and lookup.
"""

from datetime import date

from fastapi import APIRouter, Depends, status

from app.api.deps import get_company_id, get_ledger, get_user_id
from app.application.container import Ledger
from app.application.dto.accounting_dto import (
    JournalEntryCreateDTO,
    OpeningBalanceCreateDTO,
    PaymentVoucherCreateDTO,
    ReceiptVoucherCreateDTO,
    VoucherResponseDTO,
)
from app.domain.value_objects import VoucherStatus, VoucherType

router = APIRouter(prefix="/api/v1/vouchers", tags=["Vouchers"])


@router.post("/payments", response_model=VoucherResponseDTO, status_code=status.HTTP_201_CREATED)
def create_payment(
    dto: PaymentVoucherCreateDTO,
    company_id: str = Depends(get_company_id),
    user_id: str = Depends(get_user_id),
    ledger: Ledger = Depends(get_ledger),
):
    """
    Post a payment voucher.

    - Foreign currency amounts are converted with the rate for the voucher date,
      falling back to the most recent rate
    - 422 EXCHANGE_RATE_NOT_FOUND when no rate exists for the pair
    """
    voucher = ledger.save_payment.execute(dto.to_input(), company_id, user_id)
    return VoucherResponseDTO.model_validate(voucher)


@router.post("/receipts", response_model=VoucherResponseDTO, status_code=status.HTTP_201_CREATED)
def create_receipt(
    dto: ReceiptVoucherCreateDTO,
    company_id: str = Depends(get_company_id),
    user_id: str = Depends(get_user_id),
    ledger: Ledger = Depends(get_ledger),
):
    voucher = ledger.save_receipt.execute(dto.to_input(), company_id, user_id)
    return VoucherResponseDTO.model_validate(voucher)


@router.post("/journal-entries", response_model=VoucherResponseDTO, status_code=status.HTTP_201_CREATED)
def create_journal_entry(
    dto: JournalEntryCreateDTO,
    company_id: str = Depends(get_company_id),
    user_id: str = Depends(get_user_id),
    ledger: Ledger = Depends(get_ledger),
):
    """Post a multi-line journal entry. Each line is either a debit or a credit."""
    voucher = ledger.save_journal_entry.execute(dto.to_input(), company_id, user_id)
    return VoucherResponseDTO.model_validate(voucher)


@router.post("/opening-balances", response_model=VoucherResponseDTO, status_code=status.HTTP_201_CREATED)
def create_opening_balance(
    dto: OpeningBalanceCreateDTO,
    company_id: str = Depends(get_company_id),
    user_id: str = Depends(get_user_id),
    ledger: Ledger = Depends(get_ledger),
):
    voucher = ledger.save_opening_balance.execute(dto.to_input(), company_id, user_id)
    return VoucherResponseDTO.model_validate(voucher)


@router.get("/{voucher_id}", response_model=VoucherResponseDTO)
def get_voucher(
    voucher_id: str,
    company_id: str = Depends(get_company_id),
    ledger: Ledger = Depends(get_ledger),
):
    return VoucherResponseDTO.model_validate(ledger.vouchers.get(company_id, voucher_id))


@router.get("", response_model=list[VoucherResponseDTO])
def list_vouchers(
    voucher_type: VoucherType | None = None,
    status: VoucherStatus | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = 100,
    company_id: str = Depends(get_company_id),
    ledger: Ledger = Depends(get_ledger),
):
    vouchers = ledger.vouchers.search(company_id, voucher_type, status, start_date, end_date, limit)
    return [VoucherResponseDTO.model_validate(v) for v in vouchers]
