"""Tests for pointmet.summaries.training."""

from datetime import date

import numpy as np
import pandas as pd
import pytest

from conftest import make_hourly_table
from pointmet.errors import AssemblyError
from pointmet.summaries.training import build_training_table, day_index


def _two_years():
    def tair(k):
        return 270.0 + (k % 24) + (k // 24) * 0.5
    a = make_hourly_table(2000, tair=tair)
    b = make_hourly_table(2001, tair=lambda k: tair(k + 366 * 24))
    return pd.concat([a, b], ignore_index=True)


class TestDayIndex:
    """Tests for the continuous day index."""

    def test_matches_ordinal(self):
        """Day index counts days since the proleptic epoch."""
        idx = day_index([2000, 2001], [60, 1])
        assert idx.tolist() == [date(2000, 2, 29).toordinal(), date(2001, 1, 1).toordinal()]

    def test_paleo_years(self):
        """Years far before 1678 are supported."""
        assert day_index([850], [1])[0] == date(850, 1, 1).toordinal()


class TestBuildTrainingTable:
    """Tests for training-table enrichment."""

    def test_sorted_latest_first(self):
        """Rows come back latest first."""
        out = build_training_table(_two_years())
        assert len(out) == (366 + 365) * 24
        assert out["time_hr"].is_monotonic_decreasing
        assert out.iloc[0][["year", "doy", "hour"]].tolist() == [2001, 365, 23]

    def test_daily_aggregates(self):
        """Every hour carries its day's mean, max and min temperature."""
        out = build_training_table(make_hourly_table(2001, tair=lambda k: 270.0 + (k % 24)))
        assert np.allclose(out["tmean_day"], 281.5)
        assert np.allclose(out["tmax_day"], 293.0)
        assert np.allclose(out["tmin_day"], 270.0)
        assert np.allclose(out["max_departure"], 11.5)
        assert np.allclose(out["min_departure"], -11.5)

    def test_lag_is_first_hour_of_following_day(self):
        """lag_* holds hour 0 of the following calendar day."""
        out = build_training_table(_two_years()).set_index(["year", "doy", "hour"])
        # day 10 of 2000 (k // 24 == 9) -> following day k // 24 == 10, hour 0
        assert out.loc[(2000, 10, 5), "lag_tair"] == pytest.approx(270.0 + 10 * 0.5)
        assert out.loc[(2000, 10, 5), "lag_tmax"] == pytest.approx(270.0 + 23 + 10 * 0.5)
        assert out.loc[(2000, 10, 5), "lag_tmin"] == pytest.approx(270.0 + 10 * 0.5)

    def test_lag_crosses_year_boundary(self):
        """Dec 31 takes its lag from Jan 1 of the next year."""
        out = build_training_table(_two_years()).set_index(["year", "doy", "hour"])
        assert out.loc[(2000, 366, 12), "lag_tair"] == pytest.approx(270.0 + 366 * 0.5)

    def test_next_is_preceding_day(self):
        """next_* holds the preceding day's aggregates, including its own tmin."""
        out = build_training_table(_two_years()).set_index(["year", "doy", "hour"])
        row = out.loc[(2000, 10, 0)]
        assert row["next_tmean"] == pytest.approx(270.0 + 11.5 + 8 * 0.5)
        assert row["next_tmax"] == pytest.approx(270.0 + 23 + 8 * 0.5)
        assert row["next_tmin"] == pytest.approx(270.0 + 8 * 0.5)

    def test_edges_are_missing(self):
        """The last day has no lag and the first day has no preview."""
        out = build_training_table(_two_years()).set_index(["year", "doy", "hour"])
        assert np.isnan(out.loc[(2001, 365, 0), "lag_tair"])
        assert np.isnan(out.loc[(2000, 1, 0), "next_tmean"])

    def test_extra_step_reattributed(self):
        """A day with 25 steps gives its earliest step to the previous day."""
        table = make_hourly_table(2001)
        extra = table[(table["doy"] == 5) & (table["hour"] == 0)].copy()
        extra["hour"] = 0
        extra["doy"] = 6
        table = table[~((table["doy"] == 5) & (table["hour"] == 23))]
        table = pd.concat([table, extra], ignore_index=True)
        out = build_training_table(table, steps_per_day=24)
        counts = out.groupby("day_index").size()
        assert (counts == 24).all()

    def test_missing_columns(self):
        """Tables without time keys are rejected."""
        with pytest.raises(AssemblyError):
            build_training_table(make_hourly_table(2001).drop(columns=["hour"]))

    def test_input_not_modified(self):
        """The caller's table is left untouched."""
        table = make_hourly_table(2001)
        cols = list(table.columns)
        build_training_table(table)
        assert list(table.columns) == cols
