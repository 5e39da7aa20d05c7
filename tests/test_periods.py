"""
Calendar bucketing: week labels, Monday-start boundaries, month buckets and
the date-range helpers.
"""
from datetime import date, timedelta

import pytest

from app.services.analytics.periods import (
    last_week_range,
    month_bucket,
    month_label,
    previous_period,
    this_week_range,
    week_end,
    week_label,
    week_start,
    yesterday,
)


class TestWeekLabel:

    def test_first_day_of_year(self):
        assert week_label(date(2024, 1, 1)) == "2024-W01"

    def test_march_weeks(self):
        assert week_label(date(2024, 3, 4)) == "2024-W10"
        assert week_label(date(2024, 3, 5)) == "2024-W10"
        assert week_label(date(2024, 3, 11)) == "2024-W11"

    def test_label_rolls_over_on_sunday(self):
        """Week numbers count Sunday-start weeks from Jan 1, unlike week_start."""
        assert week_label(date(2024, 3, 9)) == "2024-W10"
        assert week_label(date(2024, 3, 10)) == "2024-W11"
        assert week_start(date(2024, 3, 10)) == date(2024, 3, 4)

    def test_no_cross_year_correction(self):
        assert week_label(date(2024, 12, 31)) == "2024-W53"
        assert week_label(date(2025, 1, 1)) == "2025-W01"

    def test_zero_padded(self):
        assert week_label(date(2023, 1, 8)) == "2023-W02"


class TestWeekBoundaries:

    def test_monday_maps_to_itself(self):
        assert week_start(date(2024, 3, 4)) == date(2024, 3, 4)

    def test_sunday_maps_back_six_days(self):
        assert week_start(date(2024, 3, 10)) == date(2024, 3, 4)
        assert week_end(date(2024, 3, 10)) == date(2024, 3, 10)

    def test_week_end_is_sunday(self):
        assert week_end(date(2024, 3, 6)) == date(2024, 3, 10)

    def test_properties_over_two_years(self):
        d = date(2023, 1, 1)
        while d < date(2025, 1, 1):
            start = week_start(d)
            assert start.weekday() == 0
            assert week_start(week_end(d)) == start
            assert week_end(d) - start == timedelta(days=6)
            assert start <= d <= week_end(d)
            d += timedelta(days=1)


class TestMonthBucket:

    def test_bucket_is_zero_padded(self):
        assert month_bucket(date(2024, 3, 4)) == "2024-03"
        assert month_bucket(date(2024, 12, 31)) == "2024-12"

    def test_label(self):
        assert month_label(date(2024, 3, 4)) == "2024-3"


class TestDateRanges:

    def test_yesterday(self):
        assert yesterday(date(2024, 3, 1)) == date(2024, 2, 29)

    def test_this_week(self):
        assert this_week_range(date(2024, 3, 13)) == (date(2024, 3, 11), date(2024, 3, 17))

    def test_last_week(self):
        assert last_week_range(date(2024, 3, 13)) == (date(2024, 3, 4), date(2024, 3, 10))

    def test_last_week_from_sunday(self):
        assert last_week_range(date(2024, 3, 17)) == (date(2024, 3, 4), date(2024, 3, 10))

    def test_previous_period_same_length(self):
        assert previous_period(date(2024, 3, 8), date(2024, 3, 14)) == (date(2024, 3, 1), date(2024, 3, 7))

    def test_previous_period_single_day(self):
        assert previous_period(date(2024, 3, 1), date(2024, 3, 1)) == (date(2024, 2, 29), date(2024, 2, 29))

    def test_previous_period_rejects_inverted_range(self):
        with pytest.raises(ValueError):
            previous_period(date(2024, 3, 14), date(2024, 3, 8))
