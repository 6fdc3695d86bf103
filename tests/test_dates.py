"""Tests for the calendar utilities."""

from datetime import date, datetime

import pytest

from financehub.utils.dates import (
    MonthKey,
    add_months,
    business_days_between,
    due_date_in_month,
    generate_month_range,
    is_business_day,
    last_business_day_of_month,
    last_day_of_month,
    month_key,
    parse_date,
)


class TestMonthKey:
    """Tests for the month key value type."""

    def test_parse_and_print(self):
        key = MonthKey.parse("2024-03")
        assert key == MonthKey(2024, 3)
        assert str(key) == "2024-03"

    def test_parse_tolerates_day_suffix(self):
        assert MonthKey.parse("2024-03-15") == MonthKey(2024, 3)

    @pytest.mark.parametrize("value", ["2024", "abc-de", "2024-13", ""])
    def test_parse_rejects_garbage(self, value):
        with pytest.raises(ValueError):
            MonthKey.parse(value)

    def test_shift_crosses_years(self):
        assert MonthKey(2024, 11).shift(3) == MonthKey(2025, 2)
        assert MonthKey(2024, 1).shift(-1) == MonthKey(2023, 12)
        assert MonthKey(2024, 5).shift(-17) == MonthKey(2022, 12)

    def test_ordering(self):
        assert MonthKey(2023, 12) < MonthKey(2024, 1) < MonthKey(2024, 2)

    def test_months_until(self):
        assert MonthKey(2023, 11).months_until(MonthKey(2024, 2)) == 3
        assert MonthKey(2024, 2).months_until(MonthKey(2023, 11)) == -3

    def test_first_and_last_day(self):
        key = MonthKey(2024, 2)
        assert key.first_day == date(2024, 2, 1)
        assert key.last_day == date(2024, 2, 29)


class TestParseDate:
    """Dates are parsed once, at the boundary."""

    def test_iso_string(self):
        assert parse_date("2024-01-15") == date(2024, 1, 15)

    def test_timestamp_string_is_cut_to_date(self):
        assert parse_date("2024-01-15T23:10:00Z") == date(2024, 1, 15)

    def test_datetime_drops_time(self):
        assert parse_date(datetime(2024, 1, 15, 22, 30)) == date(2024, 1, 15)

    @pytest.mark.parametrize("value", ["", "15/01/2024", None, 20240115])
    def test_malformed(self, value):
        with pytest.raises(ValueError):
            parse_date(value)


class TestBusinessDays:
    """Business days are Monday through Friday."""

    def test_weekdays_and_weekends(self):
        assert is_business_day(date(2024, 1, 5))       # Friday
        assert not is_business_day(date(2024, 1, 6))   # Saturday
        assert not is_business_day(date(2024, 1, 7))   # Sunday

    def test_inclusive_count(self):
        # Monday to Monday
        assert business_days_between(date(2024, 1, 1), date(2024, 1, 8)) == 6

    def test_single_day(self):
        assert business_days_between(date(2024, 1, 3), date(2024, 1, 3)) == 1
        assert business_days_between(date(2024, 1, 6), date(2024, 1, 6)) == 0

    def test_reversed_range_is_zero(self):
        assert business_days_between(date(2024, 1, 8), date(2024, 1, 1)) == 0

    def test_matches_day_by_day_count(self):
        start = date(2024, 2, 3)
        for span in range(0, 40):
            end = date.fromordinal(start.toordinal() + span)
            expected = sum(
                1
                for offset in range(span + 1)
                if date.fromordinal(start.toordinal() + offset).weekday() < 5
            )
            assert business_days_between(start, end) == expected


class TestMonthArithmetic:
    """Month lengths, paydays and clamping."""

    def test_last_day_of_month_leap_years(self):
        assert last_day_of_month(2024, 2) == 29
        assert last_day_of_month(2023, 2) == 28
        assert last_day_of_month(1900, 2) == 28
        assert last_day_of_month(2000, 2) == 29

    def test_last_business_day_rolls_back_over_weekend(self):
        # 2024-03-31 is a Sunday
        assert last_business_day_of_month(2024, 3) == date(2024, 3, 29)
        # 2024-01-31 is a Wednesday
        assert last_business_day_of_month(2024, 1) == date(2024, 1, 31)

    def test_add_months_clamps_day(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2024, 3, 31), -1) == date(2024, 2, 29)
        assert add_months(date(2024, 12, 15), 2) == date(2025, 2, 15)

    def test_due_date_clamped_to_month(self):
        assert due_date_in_month(31, MonthKey(2024, 4)) == date(2024, 4, 30)
        assert due_date_in_month(10, MonthKey(2024, 4)) == date(2024, 4, 10)

    def test_month_key_of_date(self):
        assert month_key(date(2024, 7, 4)) == MonthKey(2024, 7)

    def test_generate_month_range(self):
        months = generate_month_range(MonthKey(2023, 11), MonthKey(2024, 2))
        assert [str(m) for m in months] == ["2023-11", "2023-12", "2024-01", "2024-02"]
