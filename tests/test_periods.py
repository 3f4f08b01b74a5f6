"""
Tests for reporting period arithmetic.
"""

from datetime import date

import pytest

from superinvestors.core.errors import InvalidPeriodError
from superinvestors.holdings.periods import Period, previous


class TestPrevious:
    """Tests for previous()."""

    def test_q1_wraps_to_prior_year(self):
        """Test that Q1 steps back to Q4 of the previous year."""
        assert previous(Period(2025, 1)) == Period(2024, 4)

    @pytest.mark.parametrize("quarter", [2, 3, 4])
    def test_later_quarters_stay_in_year(self, quarter):
        """Test that Q2-Q4 step back within the same year."""
        assert previous(Period(2025, quarter)) == Period(2025, quarter - 1)

    def test_method_matches_function(self):
        """Test that Period.previous delegates to previous()."""
        assert Period(2024, 3).previous() == previous(Period(2024, 3))


class TestShift:
    """Tests for Period.shift."""

    def test_shift_back_two_quarters_across_year(self):
        """Test shifting back across a year boundary."""
        assert Period(2025, 1).shift(-2) == Period(2024, 3)

    def test_shift_forward(self):
        """Test shifting forward wraps into the next year."""
        assert Period(2024, 4).shift(1) == Period(2025, 1)

    def test_shift_zero_is_identity(self):
        """Test that a zero shift returns an equal period."""
        assert Period(2025, 2).shift(0) == Period(2025, 2)


class TestOrdering:
    """Tests for chronological ordering."""

    def test_periods_sort_chronologically(self):
        """Test that sorting orders by year then quarter."""
        periods = [Period(2025, 1), Period(2024, 4), Period(2025, 3), Period(2024, 1)]
        assert sorted(periods) == [
            Period(2024, 1),
            Period(2024, 4),
            Period(2025, 1),
            Period(2025, 3),
        ]

    def test_hashable(self):
        """Test that periods can key a dict."""
        lookup = {Period(2025, 2): "current"}
        assert lookup[Period(2025, 2)] == "current"


class TestParse:
    """Tests for Period.parse."""

    @pytest.mark.parametrize("text", ["2025Q2", "2025-Q2", "2025q2", "Q2 2025", " Q2-2025 "])
    def test_accepted_formats(self, text):
        """Test that common period spellings parse."""
        assert Period.parse(text) == Period(2025, 2)

    @pytest.mark.parametrize("text", ["", "2025", "Q2", "2025/06", "twenty-five"])
    def test_rejects_unknown_format(self, text):
        """Test that unknown formats raise InvalidPeriodError."""
        with pytest.raises(InvalidPeriodError):
            Period.parse(text)

    def test_str_round_trips(self):
        """Test that str() output parses back to the same period."""
        period = Period(2024, 3)
        assert Period.parse(str(period)) == period


class TestValidate:
    """Tests for Period.validate."""

    def test_valid_period_returns_self(self):
        """Test that a valid period is returned unchanged."""
        period = Period(2025, 2)
        assert period.validate() is period

    @pytest.mark.parametrize("quarter", [0, 5, -1])
    def test_invalid_quarter(self, quarter):
        """Test that quarters outside 1-4 raise."""
        with pytest.raises(InvalidPeriodError):
            Period(2025, quarter).validate()

    def test_future_year(self):
        """Test that a year far in the future raises."""
        with pytest.raises(InvalidPeriodError):
            Period(9999, 1).validate()

    def test_year_before_13f(self):
        """Test that years before 13F reporting existed raise."""
        with pytest.raises(InvalidPeriodError):
            Period(1970, 1).validate()

    @pytest.mark.parametrize("text", ["2025Q5", "2025Q0", "Q9 2025", "1970Q1", "9999-Q1"])
    def test_parse_rejects_out_of_range(self, text):
        """Test that well-formed text naming an unusable period raises on parse."""
        with pytest.raises(InvalidPeriodError):
            Period.parse(text)


class TestDates:
    """Tests for quarter-end and filing deadline dates."""

    def test_quarter_end(self):
        """Test quarter end dates."""
        assert Period(2025, 1).quarter_end == date(2025, 3, 31)
        assert Period(2025, 4).quarter_end == date(2025, 12, 31)

    def test_filing_deadline_is_45_days_after_quarter_end(self):
        """Test the 13F filing deadline."""
        assert Period(2024, 4).filing_deadline == date(2025, 2, 14)
        assert Period(2025, 1).filing_deadline == date(2025, 5, 15)

    def test_label(self):
        """Test the display label."""
        assert Period(2025, 2).label == "Q2 2025"
        assert str(Period(2025, 2)) == "2025Q2"
