"""Timestamp Reconstructor.

Archive files carry their start date in the file name, not in a decodable
time axis we can trust across providers. This module parses that date
token per dataset family and rebuilds one timestamp row per step:

- hourly/sub-daily archives hold one calendar year per file; the step length
  is recovered from the step count (``24 / (n_steps / days_in_year)``) and
  each row is labelled with the hour at the END of its interval
  (``hour = k * step - 1``), so hourly data reads 0..23 and 6-hourly data
  reads 5, 11, 17, 23;
- daily archives advance one calendar day per step from the start date;
- monthly archives advance one calendar month per step.

Leap-year and month arithmetic lives in :mod:`pointmet.calendar_utils`.
"""

from __future__ import annotations

import os
import re
from datetime import date
from typing import Callable, NamedTuple

import numpy as np
import pandas as pd

from pointmet.calendar_utils import (
    day_of_year,
    day_sequence,
    days_in_year,
    month_sequence,
    normalize_calendar,
    year_dates,
)
from pointmet.errors import TimestampError

HOURLY = "hour"
DAILY = "day"
MONTHLY = "month"

_FREQUENCY_ALIASES = {
    "hour": HOURLY,
    "hourly": HOURLY,
    "subdaily": HOURLY,
    "day": DAILY,
    "daily": DAILY,
    "month": MONTHLY,
    "monthly": MONTHLY,
    "mon": MONTHLY,
}

# Key columns of a reconstructed time frame, per frequency.
TIME_KEYS = {
    HOURLY: ["year", "month", "day", "doy", "hour"],
    DAILY: ["year", "month", "day", "doy"],
    MONTHLY: ["year", "month"],
}

FREQUENCY_ORDER = (HOURLY, DAILY, MONTHLY)


class FileDate(NamedTuple):
    year: int
    month: int
    day: int


def normalize_frequency(frequency: str) -> str:
    key = str(frequency).strip().lower()
    if key not in _FREQUENCY_ALIASES:
        raise TimestampError(f"Unknown frequency '{frequency}'")
    return _FREQUENCY_ALIASES[key]


def _checked(label: str, year: int, month: int, day: int) -> FileDate:
    try:
        date(year, month, day)
    except ValueError as exc:
        raise TimestampError(f"Invalid start date {year:04d}-{month:02d}-{day:02d}: {exc}",
                             file=label) from exc
    return FileDate(year, month, day)


# -----------------------------------------------------------------------------
# Date-token parsers, one per dataset family
# -----------------------------------------------------------------------------

_YEAR_TOKEN = re.compile(r"^\d{4}$")
_CMIP_RANGE = re.compile(r"^(\d{4})(\d{2})(\d{2})?\d*-\d+$")


def parse_year_label(label: str, frequency: str = HOURLY) -> FileDate:
    """Reanalysis names, ``<FAMILY>.<YYYY>.nc`` -> Jan 1 of YYYY."""
    name = os.path.basename(label)
    parts = name.split(".")
    if len(parts) < 3 or not _YEAR_TOKEN.match(parts[1]):
        raise TimestampError("Expected a '<FAMILY>.<YYYY>.<ext>' file name", file=name)
    return _checked(name, int(parts[1]), 1, 1)


def parse_cmip_label(label: str, frequency: str = DAILY) -> FileDate:
    """CMIP names ending in a ``<start>-<end>`` range token.

    ``tasmax_day_MIROC-ESM_past1000_r1i1p1_08500101-08741231.nc`` -> 0850-01-01.
    Daily files need a YYYYMMDD start; monthly files use YYYYMM and day 1.
    """
    name = os.path.basename(label)
    stem = name[:-3] if name.endswith(".nc") else os.path.splitext(name)[0]
    token = stem.split("_")[-1]
    m = _CMIP_RANGE.match(token)
    if m is None:
        raise TimestampError(f"No '<start>-<end>' date range token in '{token}'", file=name)
    year, month = int(m.group(1)), int(m.group(2))
    if normalize_frequency(frequency) == MONTHLY:
        return _checked(name, year, month, 1)
    if m.group(3) is None:
        raise TimestampError("Daily file needs a YYYYMMDD start token", file=name)
    return _checked(name, year, month, int(m.group(3)))


LABEL_PARSERS: dict[str, Callable[[str, str], FileDate]] = {
    "year": parse_year_label,
    "cmip": parse_cmip_label,
}


# -----------------------------------------------------------------------------
# Reconstruction
# -----------------------------------------------------------------------------

def step_hours_for(n_steps: int, n_days: int, round_step: bool = False) -> int:
    """Native step length in hours from a year's step count.

    ``round_step`` rounds to the nearest hour for archives whose nominal
    resolution is approximate; otherwise the count must divide evenly.
    """
    if n_steps <= 0:
        raise TimestampError(f"Hourly file has no steps ({n_steps})")
    step = 24.0 / (n_steps / n_days)
    if round_step:
        step = float(round(step))
    elif abs(step - round(step)) > 1e-9:
        raise TimestampError(
            f"{n_steps} steps do not divide into {n_days} whole days of equal steps",
            n_steps=n_steps,
        )
    step = int(round(step))
    if step < 1 or 24 % step:
        raise TimestampError(f"Step of {step} h does not divide a day", n_steps=n_steps)
    return step


def _hourly_frame(start: FileDate, n_steps: int, calendar: str, round_step: bool,
                  label: str) -> pd.DataFrame:
    if (start.month, start.day) != (1, 1):
        raise TimestampError("Hourly archives must start on January 1", file=label)
    n_days = days_in_year(start.year, calendar)
    step = step_hours_for(n_steps, n_days, round_step)
    per_day = 24 // step
    hours = np.arange(step, 25, step) - 1
    dates = year_dates(start.year, calendar)
    return pd.DataFrame({
        "year": np.full(n_days * per_day, start.year),
        "month": np.repeat([d.month for d in dates], per_day),
        "day": np.repeat([d.day for d in dates], per_day),
        "doy": np.repeat(np.arange(1, n_days + 1), per_day),
        "hour": np.tile(hours, n_days),
    })


def _daily_frame(start: FileDate, n_steps: int, calendar: str) -> pd.DataFrame:
    dates = day_sequence(date(*start), n_steps, calendar)
    return pd.DataFrame({
        "year": [d.year for d in dates],
        "month": [d.month for d in dates],
        "day": [d.day for d in dates],
        "doy": [day_of_year(d, calendar) for d in dates],
    })


def _monthly_frame(start: FileDate, n_steps: int) -> pd.DataFrame:
    months = month_sequence(start.year, start.month, n_steps)
    return pd.DataFrame({
        "year": [y for y, _ in months],
        "month": [m for _, m in months],
    })


def reconstruct(
    file_label: str,
    n_steps: int,
    frequency: str,
    label_format: str = "year",
    calendar: str | None = None,
    round_step: bool = False,
) -> pd.DataFrame:
    """Per-step timestamps for one archive file.

    Args:
        file_label: File name (or path) carrying the start-date token.
        n_steps: Number of time steps present in the file.
        frequency: "hour", "day" or "month" (aliases accepted).
        label_format: Key into LABEL_PARSERS ("year" or "cmip").
        calendar: CF calendar of the file's time axis (default standard).
        round_step: Round the derived hourly step to the nearest hour.

    Returns:
        DataFrame with the TIME_KEYS columns for the frequency, one row per
        step in file order. Hourly archives with ``round_step`` may return a
        row count different from ``n_steps``; callers compare lengths.
    """
    freq = normalize_frequency(frequency)
    cal = normalize_calendar(calendar)
    if label_format not in LABEL_PARSERS:
        raise TimestampError(f"Unknown file label format '{label_format}'")
    start = LABEL_PARSERS[label_format](file_label, freq)
    if n_steps < 0:
        raise TimestampError(f"Negative step count {n_steps}", file=file_label)

    if freq == HOURLY:
        frame = _hourly_frame(start, n_steps, cal, round_step, file_label)
    elif freq == DAILY:
        frame = _daily_frame(start, n_steps, cal)
    else:
        frame = _monthly_frame(start, n_steps)
    return frame.astype("int64")


def reattribute_extra_steps(day_index, steps_per_day: int) -> tuple[np.ndarray, int]:
    """Move the earliest step of any day holding one step too many to the previous day.

    Works around an upstream artifact in some hourly archives where a day
    ends up with 25 hourly steps after conversion. It is a patch for that
    specific artifact, not a general resampling rule. Days are processed
    from the latest backwards, so a move that overfills the previous day
    cascades. ``day_index`` must be non-decreasing (rows in time order).

    Returns:
        (corrected day index, number of steps moved)
    """
    days = np.asarray(day_index, dtype=np.int64).copy()
    if days.size and np.any(np.diff(days) < 0):
        raise ValueError("day_index must be in ascending time order")

    uniq, first, counts = np.unique(days, return_index=True, return_counts=True)
    moved = 0
    for k in range(len(uniq) - 1, -1, -1):
        if counts[k] <= steps_per_day:
            continue
        if counts[k] > steps_per_day + 1:
            raise TimestampError(
                f"Day {uniq[k]} holds {counts[k]} steps; only one extra step can be reattributed",
                day_index=int(uniq[k]),
            )
        days[first[k]] = uniq[k] - 1
        first[k] += 1
        counts[k] -= 1
        if k > 0 and uniq[k - 1] == uniq[k] - 1:
            counts[k - 1] += 1
        moved += 1
    return days, moved


if __name__ == '__main__':
    pass
# ========================= EOF ====================================================================
