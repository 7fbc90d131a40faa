"""Tests for amount, date range and superlative parsing."""

from datetime import date

import pytest

from ledgerbot.parsing import (
    DateRange,
    Direction,
    all_time,
    current_year_to_date,
    detect_superlative,
    parse_amount,
    parse_date_range,
)
from ledgerbot.parsing.dates import EPOCH, week_of_month

TODAY = date(2024, 8, 15)  # a Thursday


class TestParseAmount:
    """Test balance normalisation."""

    def test_debit_marker_is_positive(self):
        assert parse_amount("₹12,63,844.06 Dr") == pytest.approx(1263844.06)

    def test_credit_marker_is_negative(self):
        assert parse_amount("₹500 Cr") == -500

    def test_marker_overrides_sign(self):
        assert parse_amount("-2,000 Dr") == 2000
        assert parse_amount("2,000 Cr") == -2000

    def test_plain_values_keep_their_sign(self):
        assert parse_amount("-1,500") == -1500
        assert parse_amount(42) == 42.0
        assert parse_amount(-3.5) == -3.5

    @pytest.mark.parametrize(
        "value,expected",
        [("Rs. 500", 500), ("Rs.1,200 Dr", 1200), ("rs 75 Cr", -75), ("INR 3,000", 3000)],
    )
    def test_rupee_prefix_is_dropped(self, value, expected):
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", ["—", "-", "", None, "abc", True, float("nan"), [1, 2]])
    def test_unreadable_values_are_zero(self, value):
        assert parse_amount(value) == 0.0


class TestParseDateRange:
    """Test natural-language date ranges against a fixed clock."""

    def test_named_month_with_year(self):
        assert parse_date_range("sales for july 2023", TODAY) == DateRange(
            date(2023, 7, 1), date(2023, 7, 31)
        )

    def test_named_month_defaults_to_current_year(self):
        assert parse_date_range("sales in feburary", TODAY) == DateRange(
            date(2024, 2, 1), date(2024, 2, 29)
        )

    def test_last_n_days(self):
        period = parse_date_range("last 7 days", TODAY)
        assert period == DateRange(date(2024, 8, 8), TODAY)

    def test_till_now(self):
        assert parse_date_range("sales ab tak", TODAY) == DateRange(EPOCH, TODAY)

    def test_today_and_yesterday_in_hindi(self):
        assert parse_date_range("aaj ki sales", TODAY) == DateRange(TODAY, TODAY)
        assert parse_date_range("kal ki bikri", TODAY) == DateRange(date(2024, 8, 14), date(2024, 8, 14))

    def test_weeks_start_on_sunday(self):
        assert parse_date_range("this week", TODAY) == DateRange(date(2024, 8, 11), TODAY)
        assert parse_date_range("pichle hafte", TODAY) == DateRange(date(2024, 8, 4), date(2024, 8, 10))

    def test_months(self):
        assert parse_date_range("this month", TODAY) == DateRange(date(2024, 8, 1), TODAY)
        assert parse_date_range("last month", TODAY) == DateRange(date(2024, 7, 1), date(2024, 7, 31))

    def test_last_month_in_january(self):
        assert parse_date_range("last month", date(2024, 1, 10)) == DateRange(
            date(2023, 12, 1), date(2023, 12, 31)
        )

    def test_years(self):
        assert parse_date_range("is saal", TODAY) == DateRange(date(2024, 1, 1), TODAY)
        assert parse_date_range("last year", TODAY) == DateRange(date(2023, 1, 1), date(2023, 12, 31))

    def test_nth_week_of_month(self):
        assert parse_date_range("july 1st week", TODAY) == DateRange(date(2024, 7, 1), date(2024, 7, 7))
        assert parse_date_range("2nd week of july 2023", TODAY) == DateRange(
            date(2023, 7, 8), date(2023, 7, 14)
        )

    def test_fifth_week_is_clamped_to_month_end(self):
        assert week_of_month(2024, 2, 5) == DateRange(date(2024, 2, 29), date(2024, 2, 29))
        assert week_of_month(2023, 2, 5) is None
        assert week_of_month(2024, 7, 6) is None

    def test_priority_order(self):
        # "today" outranks the month name
        assert parse_date_range("today in july", TODAY) == DateRange(TODAY, TODAY)

    def test_no_temporal_expression(self):
        assert parse_date_range("what is my bank balance", TODAY) is None

    def test_defaults(self):
        assert current_year_to_date(TODAY) == DateRange(date(2024, 1, 1), TODAY)
        assert all_time(TODAY).start_date == EPOCH

    def test_describe(self):
        assert DateRange(date(2023, 7, 1), date(2023, 7, 31)).describe() == "1 Jul 2023 to 31 Jul 2023"
        assert DateRange(TODAY, TODAY).describe() == "15 Aug 2024"


class TestDetectSuperlative:
    """Test highest/lowest vocabulary."""

    @pytest.mark.parametrize("query", ["highest sales", "top customer", "sabse zyada bikri", "max sale"])
    def test_highest(self, query):
        result = detect_superlative(query)
        assert result.is_superlative
        assert result.direction == Direction.HIGHEST

    @pytest.mark.parametrize("query", ["lowest sale", "sabse kam bikri", "minimum purchase"])
    def test_lowest(self, query):
        assert detect_superlative(query).direction == Direction.LOWEST

    def test_whole_words_only(self):
        assert not detect_superlative("mostly total sales").is_superlative

    def test_highest_wins_when_both_present(self):
        assert detect_superlative("highest and lowest sale").direction == Direction.HIGHEST
