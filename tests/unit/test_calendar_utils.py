"""Tests for pointmet.calendar_utils."""

from datetime import date

import pytest

from pointmet.calendar_utils import (
    MONTH_START_DOY,
    NOLEAP,
    STANDARD,
    day_of_year,
    day_sequence,
    days_in_year,
    is_leap_year,
    month_day_ranges,
    month_sequence,
    month_start_doys,
    normalize_calendar,
)
from pointmet.errors import IrregularYearError, TimestampError


class TestLeapYears:
    """Tests for the Gregorian leap-year rule."""

    @pytest.mark.parametrize("year", [1904, 1980, 2000, 2016, 852])
    def test_leap(self, year):
        """Years divisible by 4 (and 400 for centuries) are leap years."""
        assert is_leap_year(year)

    @pytest.mark.parametrize("year", [1900, 2001, 2100, 850, 1700])
    def test_not_leap(self, year):
        """Century years not divisible by 400 are not leap years."""
        assert not is_leap_year(year)

    def test_days_in_year_noleap(self):
        """noleap calendars always have 365 days."""
        assert days_in_year(2000, STANDARD) == 366
        assert days_in_year(2000, NOLEAP) == 365


class TestCalendars:
    """Tests for CF calendar normalization."""

    @pytest.mark.parametrize("name", ["standard", "gregorian", "proleptic_gregorian", "GREGORIAN"])
    def test_standard_aliases(self, name):
        """Gregorian aliases map to STANDARD."""
        assert normalize_calendar(name) == STANDARD

    def test_none_is_standard(self):
        """Missing calendar attribute defaults to STANDARD."""
        assert normalize_calendar(None) == STANDARD

    @pytest.mark.parametrize("name", ["360_day", "all_leap", "366_day", "julian"])
    def test_unsupported(self, name):
        """Calendars that do not map onto real dates are rejected."""
        with pytest.raises(TimestampError):
            normalize_calendar(name)


class TestDaySequences:
    """Tests for day-of-year and day sequences."""

    def test_day_of_year_is_one_based(self):
        """Jan 1 is day 1 and Dec 31 of a leap year is day 366."""
        assert day_of_year(date(2001, 1, 1)) == 1
        assert day_of_year(date(2000, 12, 31)) == 366

    def test_noleap_day_of_year_after_february(self):
        """noleap day-of-year after February ignores Feb 29."""
        assert day_of_year(date(2000, 3, 1), NOLEAP) == 60
        assert day_of_year(date(2000, 12, 31), NOLEAP) == 365

    def test_sequence_crosses_leap_day(self):
        """Standard sequences include Feb 29; noleap sequences skip it."""
        std = day_sequence(date(2000, 2, 28), 3)
        assert std == [date(2000, 2, 28), date(2000, 2, 29), date(2000, 3, 1)]
        nol = day_sequence(date(2000, 2, 28), 3, NOLEAP)
        assert nol == [date(2000, 2, 28), date(2000, 3, 1), date(2000, 3, 2)]

    def test_noleap_start_on_feb_29_rejected(self):
        """A noleap sequence cannot start on a day that does not exist."""
        with pytest.raises(TimestampError):
            day_sequence(date(2000, 2, 29), 2, NOLEAP)

    def test_month_sequence_rolls_over_year(self):
        """Month sequences roll from December into the next year."""
        assert month_sequence(850, 11, 4) == [(850, 11), (850, 12), (851, 1), (851, 2)]


class TestMonthBoundaries:
    """Tests for fixed day-of-year month ranges."""

    def test_non_leap_starts(self):
        """365-day years use the fixed month starts."""
        assert month_start_doys(365) == MONTH_START_DOY

    def test_leap_shift_from_march(self):
        """366-day years shift every start from March onward by one day."""
        starts = month_start_doys(366)
        assert starts[:2] == (1, 32)
        assert starts[2] == 61
        assert starts[11] == 336

    @pytest.mark.parametrize("n_days", [365, 366])
    def test_ranges_cover_year(self, n_days):
        """Month ranges are contiguous and sum to the year length."""
        ranges = month_day_ranges(n_days)
        assert len(ranges) == 12
        assert ranges[0][0] == 1 and ranges[-1][1] == n_days
        assert sum(end - start + 1 for start, end in ranges) == n_days
        for (_, end), (start, _) in zip(ranges, ranges[1:]):
            assert start == end + 1

    def test_leap_february_has_29_days(self):
        """February spans 29 days in a 366-day year."""
        start, end = month_day_ranges(366)[1]
        assert end - start + 1 == 29

    @pytest.mark.parametrize("n_days", [0, 364, 367, 730])
    def test_irregular_year(self, n_days):
        """Anything but 365 or 366 days is an irregular year."""
        with pytest.raises(IrregularYearError):
            month_start_doys(n_days)
