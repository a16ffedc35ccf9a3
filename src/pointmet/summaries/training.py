"""
Training-table enrichment for sub-daily models.

Turns an hourly site table (e.g. ``NLDAS_1980-2015.csv``) into the table the
sub-daily model fitting consumes: every hourly row carries its day's
aggregates, a lag of the following day and a preview of the preceding day.

The model filter runs from the present back through the past, so:
- ``lag_<var>`` is the first step (hour 0) of the *following* calendar day,
  the step the filter has already produced when it reaches this day;
- ``next_<var>`` is the daily aggregate of the *preceding* calendar day,
  the day the filter will model next.

Rows are returned sorted by time, latest first.
"""

from __future__ import annotations

from datetime import date

import numpy as np
import pandas as pd

from pointmet.errors import AssemblyError
from pointmet.extraction.timestamps import reattribute_extra_steps
from pointmet.logging import get_logger
from pointmet.summaries.aggregate import HOURLY_VARIABLES
from pointmet.summaries.derived import add_temperature_departures

log = get_logger("training")

_KEYS = ("year", "doy", "hour")

# hourly variable -> daily aggregate column
DAY_COLUMNS = {
    "tair": "tmean_day",
    "precipf": "precipf_day",
    "swdown": "swdown_day",
    "lwdown": "lwdown_day",
    "press": "press_day",
    "qair": "qair_day",
    "wind": "wind_day",
}

# daily aggregate column -> preceding-day preview column
NEXT_COLUMNS = {
    "tmean_day": "next_tmean",
    "tmax_day": "next_tmax",
    "tmin_day": "next_tmin",
    "precipf_day": "next_precipf",
    "swdown_day": "next_swdown",
    "lwdown_day": "next_lwdown",
    "press_day": "next_press",
    "qair_day": "next_qair",
    "wind_day": "next_wind",
}


def day_index(year, doy) -> np.ndarray:
    """Days since the proleptic Gregorian epoch for (year, 1-based doy)."""
    years = np.asarray(year, dtype=np.int64)
    jan1 = {int(y): date(int(y), 1, 1).toordinal() for y in np.unique(years)}
    base = np.array([jan1[int(y)] for y in years], dtype=np.int64)
    return base + np.asarray(doy, dtype=np.int64) - 1


def infer_steps_per_day(days: np.ndarray) -> int:
    """Most common number of steps per day."""
    counts = pd.Series(days).value_counts()
    return int(counts.mode().iloc[0]) if len(counts) else 0


def build_training_table(hourly: pd.DataFrame, steps_per_day: int | None = None) -> pd.DataFrame:
    """Enrich an hourly site table with daily, lag and preview predictors.

    Args:
        hourly: Table with ``year, doy, hour`` and the hourly variables
            ``tair, precipf, swdown, lwdown, press, qair, wind``.
        steps_per_day: Native steps per day; inferred from the data when None.

    Returns:
        New DataFrame with the input columns plus ``day_index``, ``time_hr``,
        the ``*_day`` aggregates, ``tmax_day``/``tmin_day``, ``lag_*``,
        ``next_*`` and ``max_departure``/``min_departure``, latest row first.

    Raises:
        AssemblyError: required columns are missing.
        TimestampError: a day holds more than one extra step.
    """
    missing = [c for c in (*_KEYS, *HOURLY_VARIABLES) if c not in hourly.columns]
    if missing:
        raise AssemblyError(f"Hourly table lacks columns: {', '.join(missing)}")

    df = hourly.sort_values(list(_KEYS), kind="mergesort").reset_index(drop=True)
    df["time_hr"] = day_index(df["year"], df["doy"]) * 24 + df["hour"].to_numpy(dtype=np.int64)

    days = day_index(df["year"], df["doy"])
    if steps_per_day is None:
        steps_per_day = infer_steps_per_day(days)
    days, moved = reattribute_extra_steps(days, steps_per_day)
    if moved:
        log.warning("extra_steps_reattributed", moved=moved, steps_per_day=steps_per_day)
    df["day_index"] = days

    grouped = df.groupby("day_index", sort=True)
    daily = grouped[list(DAY_COLUMNS)].mean().rename(columns=DAY_COLUMNS)
    daily["tmax_day"] = grouped["tair"].max()
    daily["tmin_day"] = grouped["tair"].min()

    # first step of each day, shifted so day d sees day d + 1
    first = df.drop_duplicates("day_index", keep="first").set_index("day_index")
    lag = first[list(HOURLY_VARIABLES)].rename(columns={v: f"lag_{v}" for v in HOURLY_VARIABLES})
    lag["lag_tmin"] = daily["tmin_day"]
    lag["lag_tmax"] = daily["tmax_day"]
    lag.index = lag.index - 1

    # preceding day's aggregates, shifted so day d sees day d - 1
    preview = daily[list(NEXT_COLUMNS)].rename(columns=NEXT_COLUMNS)
    preview.index = preview.index + 1

    out = df.merge(daily, left_on="day_index", right_index=True, how="left")
    out = out.merge(lag, left_on="day_index", right_index=True, how="left")
    out = out.merge(preview, left_on="day_index", right_index=True, how="left")
    out = add_temperature_departures(out, mean_col="tmean_day", max_col="tmax_day",
                                     min_col="tmin_day")

    out = out.sort_values("time_hr", ascending=False, kind="mergesort").reset_index(drop=True)
    log.info("training_table_built", rows=len(out), days=len(daily), steps_per_day=steps_per_day)
    return out


if __name__ == '__main__':
    pass
# ========================= EOF ====================================================================
