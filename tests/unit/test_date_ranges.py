"""Unit tests for period resolution and calendar helpers."""
from datetime import date, datetime

import pytest

from kasir.exceptions import ValidationError
from kasir.utils.date_ranges import (
    custom_range, day_label, day_sequence, month_label, month_sequence, parse_date,
    parse_datetime, resolve_period,
)

# Wednesday
NOW = datetime(2024, 8, 14, 15, 30)


class TestResolvePeriod:
    """Named periods resolve to concrete windows."""

    def test_today_is_half_open(self):
        window = resolve_period('today', now=NOW)
        assert window.start == datetime(2024, 8, 14)
        assert window.end == datetime(2024, 8, 15)
        assert window.contains(datetime(2024, 8, 14, 23, 59, 59, 999000))
        assert not window.contains(datetime(2024, 8, 15, 0, 0, 0))

    def test_yesterday(self):
        window = resolve_period('yesterday', now=NOW)
        assert window.start == datetime(2024, 8, 13)
        assert window.end == datetime(2024, 8, 14)

    def test_week_starts_on_sunday(self):
        window = resolve_period('week', now=NOW)
        assert window.start == datetime(2024, 8, 11)
        assert window.end == datetime(2024, 8, 18)

    def test_week_on_a_sunday_starts_that_day(self):
        window = resolve_period('week', now=datetime(2024, 8, 11, 9, 0))
        assert window.start == datetime(2024, 8, 11)

    def test_month_and_year(self):
        month = resolve_period('month', now=NOW)
        assert (month.start, month.end) == (datetime(2024, 8, 1), datetime(2024, 9, 1))
        december = resolve_period('month', now=datetime(2024, 12, 5))
        assert december.end == datetime(2025, 1, 1)
        year = resolve_period('year', now=NOW)
        assert (year.start, year.end) == (datetime(2024, 1, 1), datetime(2025, 1, 1))

    def test_unknown_period_falls_back_to_today(self):
        assert resolve_period('fortnight', now=NOW) == resolve_period('today', now=NOW)

    def test_custom_includes_last_millisecond_of_end_day(self):
        window = resolve_period('custom', now=NOW, custom=('2024-08-01', '2024-08-10'))
        assert window.end_inclusive
        assert window.contains(datetime(2024, 8, 10, 23, 59, 59, 999000))
        assert not window.contains(datetime(2024, 8, 11, 0, 0, 0))
        assert window.end_exclusive == datetime(2024, 8, 11)

    def test_custom_without_range_is_rejected(self):
        with pytest.raises(ValidationError):
            resolve_period('custom', now=NOW)

    def test_previous_window_has_same_length(self):
        window = resolve_period('week', now=NOW)
        before = window.previous()
        assert before.end == window.start
        assert before.start == datetime(2024, 8, 4)


class TestParsing:
    """Malformed dates are rejected instead of silently dropped."""

    def test_parse_date(self):
        assert parse_date('2024-02-29') == date(2024, 2, 29)
        assert parse_date(datetime(2024, 1, 2, 10, 0)) == date(2024, 1, 2)

    @pytest.mark.parametrize('value', ['2024-13-01', 'kemarin', '', None, '2024/01/01'])
    def test_parse_date_rejects_garbage(self, value):
        with pytest.raises(ValidationError):
            parse_date(value)

    def test_parse_datetime_converts_aware_values_to_naive(self):
        parsed = parse_datetime('2024-08-14T08:00:00Z')
        assert parsed.tzinfo is None

    def test_custom_range_rejects_reversed_bounds(self):
        with pytest.raises(ValidationError):
            custom_range('2024-08-10', '2024-08-01')


class TestSequencesAndLabels:
    def test_day_sequence_is_inclusive(self):
        days = list(day_sequence(date(2024, 2, 27), date(2024, 3, 1)))
        assert days == [date(2024, 2, 27), date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]

    def test_month_sequence_crosses_year(self):
        assert month_sequence(date(2023, 11, 20), date(2024, 2, 1)) == [
            (2023, 11), (2023, 12), (2024, 1), (2024, 2)
        ]

    def test_indonesian_labels(self):
        assert month_label(2024, 8) == 'Ags 24'
        assert month_label(2024, 1) == 'Jan 24'
        assert day_label(date(2024, 10, 19)) == '19 Okt'
