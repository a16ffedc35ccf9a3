"""
Aggregator: hourly site tables -> daily and monthly summaries.

Provides:
- daily_from_hourly: one row per day from exactly 24 hourly rows per day
- monthly_from_daily: one row per month from one full year of daily rows
- read_hourly_table: load an hourly site table from CSV or an array file
- split_years: split a multi-year hourly table into per-year tables

Reducers (daily, then monthly):

    tair      -> tair_mean / tair_min / tair_max   (monthly: mean / min / max)
    precipf   -> precip_tot = sum(rate) * 3600     (monthly: sum)
    swdown    -> swdown_mean, hrs_sun = n(swdown > 0)   (monthly: means)
    lwdown, press, qair, wind -> <var>_mean       (monthly: mean)

Missing values propagate: a day (or month) with any NaN input gets NaN for
that reducer rather than a value computed from a partial record.
"""

from __future__ import annotations

import os

import numpy as np
import pandas as pd
import xarray as xr

from pointmet.calendar_utils import MONTH_NAMES, month_day_ranges
from pointmet.errors import AssemblyError, IrregularYearError
from pointmet.units import SECONDS_PER_HOUR, SUMMARY_UNITS

STEPS_PER_DAY = 24

HOURLY_VARIABLES = ("tair", "precipf", "swdown", "lwdown", "press", "qair", "wind")

DAILY_COLUMNS = tuple(SUMMARY_UNITS)

# daily column -> monthly reducer
MONTHLY_REDUCERS = {
    "tair_mean": "mean",
    "tair_min": "min",
    "tair_max": "max",
    "precip_tot": "sum",
    "swdown_mean": "mean",
    "hrs_sun": "mean",
    "lwdown_mean": "mean",
    "press_mean": "mean",
    "qair_mean": "mean",
    "wind_mean": "mean",
}

_TIME_ORDER = ("year", "doy", "hour")


def _single_year(table: pd.DataFrame) -> int | None:
    if "year" not in table.columns:
        return None
    years = pd.unique(table["year"].dropna())
    if len(years) > 1:
        raise IrregularYearError(
            f"Expected one calendar year, got {len(years)} ({min(years)}-{max(years)})"
        )
    return int(years[0]) if len(years) else None


def daily_from_hourly(hourly: pd.DataFrame) -> pd.DataFrame:
    """Daily summaries from one calendar year of hourly rows.

    Args:
        hourly: Table with columns ``tair, precipf, swdown, lwdown, press,
            qair, wind`` and 365*24 or 366*24 rows. If ``year``/``doy``/``hour``
            columns are present the rows are put in time order first;
            otherwise row order is taken as time order.

    Returns:
        New DataFrame, one row per day: ``year`` (when known), ``doy`` and
        the DAILY_COLUMNS.

    Raises:
        IrregularYearError: row count is not a whole 365- or 366-day year,
            or the table spans several years.
        AssemblyError: a required variable column is missing.
    """
    n = len(hourly)
    if n not in (365 * STEPS_PER_DAY, 366 * STEPS_PER_DAY):
        raise IrregularYearError(
            f"Not a full year of hourly data: {n} rows "
            f"(expected {365 * STEPS_PER_DAY} or {366 * STEPS_PER_DAY})",
            rows=n,
        )
    missing = [c for c in HOURLY_VARIABLES if c not in hourly.columns]
    if missing:
        raise AssemblyError(f"Hourly table lacks columns: {', '.join(missing)}")
    year = _single_year(hourly)

    order = [c for c in _TIME_ORDER if c in hourly.columns]
    if order:
        hourly = hourly.sort_values(order, kind="mergesort")
    n_days = n // STEPS_PER_DAY

    def by_day(col: str) -> np.ndarray:
        return hourly[col].to_numpy(dtype=float).reshape(n_days, STEPS_PER_DAY)

    tair = by_day("tair")
    swdown = by_day("swdown")
    daily = pd.DataFrame({
        "doy": np.arange(1, n_days + 1),
        "tair_mean": tair.mean(axis=1),
        "tair_min": tair.min(axis=1),
        "tair_max": tair.max(axis=1),
        # kg m-2 s-1 over one hour -> kg m-2 (mm)
        "precip_tot": by_day("precipf").sum(axis=1) * SECONDS_PER_HOUR,
        "swdown_mean": swdown.mean(axis=1),
        "hrs_sun": (swdown > 0).sum(axis=1),
        "lwdown_mean": by_day("lwdown").mean(axis=1),
        "press_mean": by_day("press").mean(axis=1),
        "qair_mean": by_day("qair").mean(axis=1),
        "wind_mean": by_day("wind").mean(axis=1),
    })
    if year is not None:
        daily.insert(0, "year", year)
    return daily


def monthly_from_daily(daily: pd.DataFrame) -> pd.DataFrame:
    """Monthly summaries from one year of daily summaries.

    Month boundaries are the fixed day-of-year ranges of
    :func:`pointmet.calendar_utils.month_day_ranges`; a 366-row input shifts
    every boundary from March onward by one day.

    Raises:
        IrregularYearError: row count is neither 365 nor 366.
    """
    n = len(daily)
    ranges = month_day_ranges(n)
    missing = [c for c in MONTHLY_REDUCERS if c not in daily.columns]
    if missing:
        raise AssemblyError(f"Daily table lacks columns: {', '.join(missing)}")
    year = _single_year(daily)

    if "doy" in daily.columns:
        daily = daily.sort_values("doy", kind="mergesort")

    rows = []
    for month, (first, last) in enumerate(ranges, start=1):
        block = daily.iloc[first - 1:last]
        row = {"month": month, "month_name": MONTH_NAMES[month - 1],
               "first_doy": first, "last_doy": last, "n_days": last - first + 1}
        for col, how in MONTHLY_REDUCERS.items():
            row[col] = getattr(block[col], how)(skipna=False)
        rows.append(row)

    monthly = pd.DataFrame(rows)
    if year is not None:
        monthly.insert(0, "year", year)
    return monthly


def read_hourly_table(path: str) -> pd.DataFrame:
    """Load an hourly site table from a pipeline CSV or an array file.

    Array files must hold the HOURLY_VARIABLES as 1-D series (length-1
    spatial dimensions are squeezed); optional ``year``/``doy``/``hour``
    variables are carried along.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(path)
    if path.lower().endswith(".csv"):
        return pd.read_csv(path)

    with xr.open_dataset(path, decode_times=False) as ds:
        cols = {}
        for name in (*_TIME_ORDER, *HOURLY_VARIABLES):
            if name in ds.variables:
                cols[name] = np.asarray(ds[name].values).squeeze()
    if not cols:
        raise AssemblyError("No hourly variables found", file=os.path.basename(path))
    return pd.DataFrame(cols)


def split_years(hourly: pd.DataFrame) -> list[tuple[int | None, pd.DataFrame]]:
    """(year, table) pairs; a table without a ``year`` column is one chunk."""
    if "year" not in hourly.columns:
        return [(None, hourly)]
    return [(int(y), part.reset_index(drop=True))
            for y, part in hourly.groupby("year", sort=True)]


if __name__ == '__main__':
    pass
# ========================= EOF ====================================================================
