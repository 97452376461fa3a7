"""
Unit tests - Voucher numbering and fiscal years.
"""

import threading
from datetime import date

import pytest

from app.domain.services import VoucherNumberGenerator, fiscal_year
from app.domain.value_objects import VoucherType
from app.infrastructure.memory import InMemoryCompanyService, InMemoryVoucherSequenceRepository


class TestFiscalYear:

    def test_calendar_fiscal_year(self):
        assert fiscal_year(date(2025, 1, 1)) == 2025
        assert fiscal_year(date(2025, 12, 31)) == 2025

    def test_fiscal_year_labelled_by_start_year(self):
        assert fiscal_year(date(2025, 3, 31), start_month=4) == 2024
        assert fiscal_year(date(2025, 4, 1), start_month=4) == 2025

    def test_invalid_start_month(self):
        with pytest.raises(ValueError, match="1-12"):
            fiscal_year(date(2025, 1, 1), start_month=13)


class TestVoucherNumberGenerator:

    def test_format_and_prefixes(self):
        generator = VoucherNumberGenerator(InMemoryVoucherSequenceRepository())
        assert generator.generate("c1", VoucherType.PAYMENT, date(2025, 5, 1)) == "PAY-2025-001"
        assert generator.generate("c1", VoucherType.RECEIPT, date(2025, 5, 1)) == "REC-2025-001"
        assert generator.generate("c1", VoucherType.JOURNAL_ENTRY, date(2025, 5, 1)) == "JE-2025-001"
        assert generator.generate("c1", VoucherType.OPENING_BALANCE, date(2025, 5, 1)) == "OB-2025-001"

    def test_sequence_per_company_kind_and_year(self):
        generator = VoucherNumberGenerator(InMemoryVoucherSequenceRepository())
        assert generator.generate("c1", VoucherType.PAYMENT, date(2025, 5, 1)) == "PAY-2025-001"
        assert generator.generate("c1", VoucherType.PAYMENT, date(2025, 6, 1)) == "PAY-2025-002"
        assert generator.generate("c2", VoucherType.PAYMENT, date(2025, 6, 1)) == "PAY-2025-001"
        assert generator.generate("c1", VoucherType.PAYMENT, date(2026, 1, 1)) == "PAY-2026-001"

    def test_uses_company_fiscal_year_start(self):
        companies = InMemoryCompanyService()
        companies.set_fiscal_year_start("c1", 7)
        generator = VoucherNumberGenerator(InMemoryVoucherSequenceRepository(), companies)
        assert generator.generate("c1", VoucherType.RECEIPT, date(2025, 6, 30)) == "REC-2024-001"
        assert generator.generate("c1", VoucherType.RECEIPT, date(2025, 7, 1)) == "REC-2025-001"

    def test_padding_grows_past_limit(self):
        generator = VoucherNumberGenerator(InMemoryVoucherSequenceRepository(), padding=1)
        numbers = [generator.generate("c1", VoucherType.PAYMENT, date(2025, 1, 1)) for _ in range(10)]
        assert numbers[0] == "PAY-2025-1"
        assert numbers[-1] == "PAY-2025-10"

    def test_concurrent_generation_never_duplicates(self):
        generator = VoucherNumberGenerator(InMemoryVoucherSequenceRepository())
        numbers: list[str] = []
        lock = threading.Lock()

        def worker():
            for _ in range(50):
                number = generator.generate("c1", VoucherType.PAYMENT, date(2025, 1, 1))
                with lock:
                    numbers.append(number)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(numbers) == 400
        assert len(set(numbers)) == 400
