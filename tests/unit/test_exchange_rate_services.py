"""
Unit tests - Rate resolution and deviation detection.
"""

from datetime import date
from decimal import Decimal

import pytest

from app.domain.exceptions import InvalidExchangeRateError
from app.domain.services import RateDeviationDetector, RateResolutionService
from app.domain.value_objects import (
    DeviationType,
    RateLookupSource,
    ResolvedRate,
    UnresolvedRate,
)

COMPANY_ID = "company-1"


class TestRateResolution:
    """Exact date first, then the most recent rate, never a default."""

    def test_exact_date_wins(self, repos, add_rate):
        add_rate("EUR", "1.05", date(2025, 1, 10))
        add_rate("EUR", "1.10", date(2025, 1, 15))
        add_rate("EUR", "1.20", date(2025, 1, 20))

        result = RateResolutionService(repos.exchange_rates).resolve(COMPANY_ID, "EUR", "USD", date(2025, 1, 15))

        assert isinstance(result, ResolvedRate)
        assert result.source == RateLookupSource.EXACT_DATE
        assert result.value == Decimal("1.10")

    def test_latest_created_wins_on_same_date(self, repos, add_rate):
        add_rate("EUR", "1.10", date(2025, 1, 15))
        add_rate("EUR", "1.11", date(2025, 1, 15))

        result = RateResolutionService(repos.exchange_rates).resolve(COMPANY_ID, "EUR", "USD", date(2025, 1, 15))

        assert result.value == Decimal("1.11")

    def test_falls_back_to_most_recent_rate(self, repos, add_rate):
        add_rate("EUR", "1.05", date(2025, 1, 10))
        add_rate("EUR", "1.20", date(2025, 1, 20))
        add_rate("EUR", "1.08", date(2025, 1, 12))

        result = RateResolutionService(repos.exchange_rates).resolve(COMPANY_ID, "EUR", "USD", date(2025, 1, 15))

        assert result.source == RateLookupSource.MOST_RECENT
        assert result.value == Decimal("1.20")
        assert result.rate.rate_date == date(2025, 1, 20)

    def test_no_rate_is_unresolved(self, repos):
        result = RateResolutionService(repos.exchange_rates).resolve(COMPANY_ID, "GBP", "USD", date(2025, 1, 15))

        assert isinstance(result, UnresolvedRate)
        assert result.source == RateLookupSource.NONE
        assert not hasattr(result, "value")

    def test_same_currency_does_not_query(self, repos, add_rate):
        add_rate("USD", "2", date(2025, 1, 15))
        result = RateResolutionService(repos.exchange_rates).resolve(COMPANY_ID, "usd", "USD", date(2025, 1, 15))
        assert isinstance(result, UnresolvedRate)

    def test_rates_are_isolated_per_company(self, repos, add_rate):
        add_rate("EUR", "1.10", date(2025, 1, 15), company_id="company-2")
        result = RateResolutionService(repos.exchange_rates).resolve(COMPANY_ID, "EUR", "USD", date(2025, 1, 15))
        assert isinstance(result, UnresolvedRate)

    def test_inverse_pair_is_not_used(self, repos, add_rate):
        add_rate("USD", "0.91", date(2025, 1, 15), to_currency="EUR")
        result = RateResolutionService(repos.exchange_rates).resolve(COMPANY_ID, "EUR", "USD", date(2025, 1, 15))
        assert isinstance(result, UnresolvedRate)


class TestRateDeviationDetector:

    def test_first_rate_warning_only(self, repos):
        warnings = RateDeviationDetector(repos.exchange_rates).detect_deviations(
            COMPANY_ID, "EUR", "USD", Decimal("1.10")
        )
        assert len(warnings) == 1
        assert warnings[0].type == DeviationType.FIRST_RATE
        assert warnings[0].message == (
            "This is the first exchange rate for EUR/USD. No historical comparison available."
        )

    def test_rate_close_to_history_raises_nothing(self, repos, add_rate):
        add_rate("EUR", "1.10", date(2025, 1, 10))
        add_rate("EUR", "1.12", date(2025, 1, 11))
        warnings = RateDeviationDetector(repos.exchange_rates).detect_deviations(
            COMPANY_ID, "EUR", "USD", Decimal("1.15")
        )
        assert warnings == []

    def test_decimal_shift_by_ten(self, repos, add_rate):
        add_rate("EUR", "1.10", date(2025, 1, 10))
        warnings = RateDeviationDetector(repos.exchange_rates).detect_deviations(
            COMPANY_ID, "EUR", "USD", Decimal("11.0")
        )
        types = [w.type for w in warnings]
        assert DeviationType.PERCENTAGE_DEVIATION in types
        assert DeviationType.DECIMAL_SHIFT in types
        shift = next(w for w in warnings if w.type == DeviationType.DECIMAL_SHIFT)
        assert "10x" in shift.message
        assert shift.suggested_rate == Decimal("1.10")

    def test_decimal_shift_by_one_tenth(self, repos, add_rate):
        add_rate("EUR", "1.10", date(2025, 1, 10))
        warnings = RateDeviationDetector(repos.exchange_rates).detect_deviations(
            COMPANY_ID, "EUR", "USD", Decimal("0.11")
        )
        shift = next(w for w in warnings if w.type == DeviationType.DECIMAL_SHIFT)
        assert "1/10 of" in shift.message

    def test_decimal_shift_by_hundred(self, repos, add_rate):
        add_rate("JPY", "0.0067", date(2025, 1, 10))
        warnings = RateDeviationDetector(repos.exchange_rates).detect_deviations(
            COMPANY_ID, "JPY", "USD", Decimal("0.67")
        )
        shift = next(w for w in warnings if w.type == DeviationType.DECIMAL_SHIFT)
        assert "100x" in shift.message

    def test_decimal_shift_by_one_hundredth(self, repos, add_rate):
        add_rate("EUR", "1.10", date(2025, 1, 10))
        detector = RateDeviationDetector(repos.exchange_rates, decimal_shift_tolerance=Decimal("0.01"))
        warnings = detector.detect_deviations(COMPANY_ID, "EUR", "USD", Decimal("0.011"))
        shift = next(w for w in warnings if w.type == DeviationType.DECIMAL_SHIFT)
        assert "1/100 of" in shift.message

    def test_first_matching_shift_band_wins(self, repos, add_rate):
        # with the default tolerance a 1/100 ratio also falls in the 1/10 band
        add_rate("EUR", "1.10", date(2025, 1, 10))
        warnings = RateDeviationDetector(repos.exchange_rates).detect_deviations(
            COMPANY_ID, "EUR", "USD", Decimal("0.011")
        )
        shifts = [w for w in warnings if w.type == DeviationType.DECIMAL_SHIFT]
        assert len(shifts) == 1
        assert "1/10 of" in shifts[0].message
        assert "1/100 of" not in shifts[0].message

    def test_currency_codes_are_normalized(self, repos, add_rate):
        add_rate("EUR", "1.10", date(2025, 1, 10))
        warnings = RateDeviationDetector(repos.exchange_rates).detect_deviations(
            COMPANY_ID, " eur ", "usd ", Decimal("1.11")
        )
        assert warnings == []

    def test_percentage_deviation_against_average(self, repos, add_rate):
        add_rate("EUR", "1.00", date(2025, 1, 10))
        add_rate("EUR", "1.20", date(2025, 1, 11))
        warnings = RateDeviationDetector(repos.exchange_rates).detect_deviations(
            COMPANY_ID, "EUR", "USD", Decimal("1.50")
        )
        assert [w.type for w in warnings] == [DeviationType.PERCENTAGE_DEVIATION]
        assert warnings[0].suggested_rate == Decimal("1.10")
        assert warnings[0].percentage_deviation > Decimal("0.36")
        assert "36.4%" in warnings[0].message

    def test_history_window_limits_the_average(self, repos, add_rate):
        add_rate("EUR", "5.00", date(2025, 1, 1))
        for day in range(2, 5):
            add_rate("EUR", "1.00", date(2025, 1, day))
        detector = RateDeviationDetector(repos.exchange_rates, history_window=3)
        assert detector.detect_deviations(COMPANY_ID, "EUR", "USD", Decimal("1.05")) == []

    def test_non_positive_proposed_rate_rejected(self, repos):
        with pytest.raises(InvalidExchangeRateError):
            RateDeviationDetector(repos.exchange_rates).detect_deviations(
                COMPANY_ID, "EUR", "USD", Decimal("0")
            )

    def test_shift_bands_scale_with_tolerance(self, repos):
        detector = RateDeviationDetector(repos.exchange_rates, decimal_shift_tolerance=Decimal("0.15"))
        assert [(target, tol) for target, tol, _ in detector.shift_bands] == [
            (Decimal("10"), Decimal("1.50")),
            (Decimal("0.1"), Decimal("0.15")),
            (Decimal("100"), Decimal("15.00")),
            (Decimal("0.01"), Decimal("0.015")),
        ]
