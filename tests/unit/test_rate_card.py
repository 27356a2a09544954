"""Tests for rate entry windows, timeframe matching and save-time validation."""

from datetime import date
from decimal import Decimal

import pytest

from contractor_kernel.domain.rate_card import (
    ExpenseRateEntry,
    RateEntry,
    RateMode,
    UnitType,
    find_overlapping_entries,
    validate_rate_entries,
)
from contractor_kernel.domain.timeframe import TimeframeRef
from contractor_kernel.exceptions import InvalidRateError
from tests.conftest import WEEKDAY_DAY, fitter_pay_card


class TestRateEntryConstruction:

    def test_requires_timeframe_reference(self):
        with pytest.raises(ValueError, match="timeframe_id or shift_type"):
            RateEntry("Fitter", Decimal("10"))

    def test_inverted_window_rejected(self):
        with pytest.raises(ValueError, match="must be after"):
            RateEntry(
                "Fitter", Decimal("10"), timeframe_id=WEEKDAY_DAY,
                effective_from=date(2024, 2, 1), effective_to=date(2024, 1, 1),
            )

    def test_empty_window_rejected(self):
        with pytest.raises(ValueError):
            RateEntry(
                "Fitter", Decimal("10"), timeframe_id=WEEKDAY_DAY,
                effective_from=date(2024, 1, 1), effective_to=date(2024, 1, 1),
            )

    def test_coerces_numbers_and_mode(self):
        entry = RateEntry("Fitter", "17.88", shift_type="Sunday", ot_rate=26.82,
                          rate_mode="daily", min_hours="4")
        assert entry.base_rate == Decimal("17.88")
        assert entry.ot_rate == Decimal("26.82")
        assert entry.rate_mode is RateMode.DAILY
        assert entry.min_hours == Decimal("4")

    def test_expense_rate_coerces_unit_type(self):
        exp = ExpenseRateEntry("exp-mileage", "0.45", unit_type="per_mile")
        assert exp.unit_type is UnitType.PER_MILE
        assert exp.rate == Decimal("0.45")


class TestEffectiveWindow:

    def test_half_open_window(self):
        entry = RateEntry(
            "Fitter", Decimal("10"), timeframe_id=WEEKDAY_DAY,
            effective_from=date(2024, 1, 1), effective_to=date(2024, 4, 1),
        )
        assert not entry.is_effective(date(2023, 12, 31))
        assert entry.is_effective(date(2024, 1, 1))
        assert entry.is_effective(date(2024, 3, 31))
        assert not entry.is_effective(date(2024, 4, 1))

    def test_open_ended(self):
        entry = RateEntry("Fitter", Decimal("10"), timeframe_id=WEEKDAY_DAY)
        assert entry.is_effective(date(1990, 1, 1))
        assert entry.is_effective(date(2090, 1, 1))


class TestTimeframeMatching:

    def test_id_match_requires_id(self):
        by_label = RateEntry("Fitter", Decimal("10"), shift_type=WEEKDAY_DAY)
        assert not by_label.matches_timeframe(TimeframeRef.by_id(WEEKDAY_DAY))

    def test_legacy_code_matches_label(self):
        entry = RateEntry("Fitter", Decimal("10"), shift_type="Mon–Fri Day")
        assert entry.matches_timeframe(TimeframeRef.by_label("WEEKDAY_DAY"))

    def test_template_name_matches_label(self):
        entry = RateEntry("Fitter", Decimal("10"), timeframe_id="tf-9",
                          timeframe_name="Sunday")
        assert entry.matches_timeframe(TimeframeRef.by_label("SUNDAY"))

    def test_label_prefers_template_name(self):
        entry = RateEntry("Fitter", Decimal("10"), timeframe_id="tf-9",
                          shift_type="Sun", timeframe_name="Sunday")
        assert entry.label == "Sunday"


class TestSaveTimeValidation:

    def test_valid_card_passes(self):
        validate_rate_entries(fitter_pay_card().rates)

    def test_out_of_range_ot_rate(self):
        rates = (RateEntry("Fitter", Decimal("10"), timeframe_id=WEEKDAY_DAY,
                           ot_rate=Decimal("10000.01")),)
        with pytest.raises(InvalidRateError) as exc_info:
            validate_rate_entries(rates)
        assert exc_info.value.field == "rates[0].ot_rate"

    def test_negative_expense_rate(self):
        with pytest.raises(InvalidRateError) as exc_info:
            validate_rate_entries((), (ExpenseRateEntry("exp-hotel", Decimal("-1")),))
        assert exc_info.value.field == "expenses[0].rate"


class TestOverlapDetection:

    def _entry(self, start, end=None, role="Fitter", tf=WEEKDAY_DAY):
        return RateEntry(role, Decimal("10"), timeframe_id=tf,
                         effective_from=start, effective_to=end)

    def test_adjacent_windows_do_not_overlap(self):
        rates = (
            self._entry(date(2024, 1, 1), date(2024, 4, 1)),
            self._entry(date(2024, 4, 1)),
        )
        assert find_overlapping_entries(rates) == []

    def test_open_windows_overlap(self):
        first = self._entry(date(2024, 1, 1))
        second = self._entry(date(2024, 6, 1))
        assert find_overlapping_entries((first, second)) == [(first, second)]

    def test_different_role_or_timeframe_never_overlaps(self):
        rates = (
            self._entry(None),
            self._entry(None, role="Electrician"),
            self._entry(None, tf="tf-sunday"),
        )
        assert find_overlapping_entries(rates) == []
