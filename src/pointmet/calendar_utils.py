"""Calendar arithmetic shared by timestamp reconstruction and aggregation.

All date handling goes through ``datetime.date`` rather than pandas
timestamps: paleo climate-model runs start in year 850, well outside the
nanosecond ``datetime64`` range.

Supported CF calendars:
    - standard / gregorian / proleptic_gregorian: Gregorian leap-year rule
    - noleap / 365_day: Feb 29 never occurs, day-of-year runs 1..365
"""

from __future__ import annotations

from datetime import date, timedelta

from pointmet.errors import IrregularYearError, TimestampError

STANDARD = "standard"
NOLEAP = "noleap"

_CALENDAR_ALIASES = {
    "standard": STANDARD,
    "gregorian": STANDARD,
    "proleptic_gregorian": STANDARD,
    "noleap": NOLEAP,
    "365_day": NOLEAP,
}

# First day-of-year of each month in a 365-day year.
MONTH_START_DOY = (1, 32, 60, 91, 121, 152, 182, 213, 244, 274, 305, 335)

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def normalize_calendar(calendar: str | None) -> str:
    """Map a CF ``calendar`` attribute onto STANDARD or NOLEAP."""
    if calendar is None:
        return STANDARD
    key = str(calendar).strip().lower()
    if key not in _CALENDAR_ALIASES:
        raise TimestampError(f"Unsupported calendar '{calendar}'")
    return _CALENDAR_ALIASES[key]


def is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_year(year: int, calendar: str = STANDARD) -> int:
    if normalize_calendar(calendar) == NOLEAP:
        return 365
    return 366 if is_leap_year(year) else 365


def day_of_year(d: date, calendar: str = STANDARD) -> int:
    """1-based day-of-year of ``d`` in the given calendar."""
    doy = d.timetuple().tm_yday
    if normalize_calendar(calendar) == NOLEAP and is_leap_year(d.year) and d.month > 2:
        doy -= 1
    return doy


def year_dates(year: int, calendar: str = STANDARD) -> list[date]:
    """Every calendar day of ``year``, in order."""
    return day_sequence(date(year, 1, 1), days_in_year(year, calendar), calendar)


def day_sequence(start: date, n: int, calendar: str = STANDARD) -> list[date]:
    """``n`` consecutive days from ``start``; Feb 29 is skipped in NOLEAP."""
    noleap = normalize_calendar(calendar) == NOLEAP
    if noleap and start.month == 2 and start.day == 29:
        raise TimestampError(f"{start.isoformat()} does not exist in a noleap calendar")
    out = []
    d = start
    while len(out) < n:
        if not (noleap and d.month == 2 and d.day == 29):
            out.append(d)
        d = d + timedelta(days=1)
    return out


def month_sequence(year: int, month: int, n: int) -> list[tuple[int, int]]:
    """``n`` consecutive (year, month) pairs starting at ``year``-``month``."""
    out = []
    for k in range(n):
        m0 = month - 1 + k
        out.append((year + m0 // 12, m0 % 12 + 1))
    return out


def month_start_doys(n_days: int) -> tuple[int, ...]:
    """Month start days for a year of ``n_days``; March onward shifts in leap years."""
    if n_days == 365:
        return MONTH_START_DOY
    if n_days == 366:
        return MONTH_START_DOY[:2] + tuple(s + 1 for s in MONTH_START_DOY[2:])
    raise IrregularYearError(f"Irregular number of days in year: {n_days}", n_days=n_days)


def month_day_ranges(n_days: int) -> list[tuple[int, int]]:
    """Inclusive (first_doy, last_doy) for each of the 12 months."""
    starts = month_start_doys(n_days)
    ends = [s - 1 for s in starts[1:]] + [n_days]
    return list(zip(starts, ends))


if __name__ == '__main__':
    pass
# ========================= EOF ====================================================================
