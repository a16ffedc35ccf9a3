"""
Shared pytest fixtures and helpers for pointmet tests.

This module provides:
- Tolerance-based comparison helpers for scientific data
- Writers for synthetic reanalysis and CMIP archive files (netCDF via xarray)
- Synthetic hourly site tables
- A small on-disk project (archives + TOML) for pipeline tests
"""

import os
from pathlib import Path
from typing import Callable, Dict, Optional

import numpy as np
import pandas as pd
import pytest
import xarray as xr

from pointmet.calendar_utils import days_in_year
from pointmet.units import GCM_VARIABLES, REANALYSIS_VARIABLES


# =============================================================================
# Tolerance Settings
# =============================================================================

DEFAULT_RTOL = 1e-6
DEFAULT_ATOL = 1e-9


@pytest.fixture
def tolerance() -> Dict[str, float]:
    """Default tolerance settings for floating-point comparisons."""
    return {"rtol": DEFAULT_RTOL, "atol": DEFAULT_ATOL}


def compare_arrays_with_tolerance(
    actual,
    expected,
    rtol: float = DEFAULT_RTOL,
    atol: float = DEFAULT_ATOL,
    name: str = "array",
) -> bool:
    """
    Compare two arrays with tolerance; NaN positions must match.

    Raises:
        AssertionError: If shapes, NaN patterns or values differ
    """
    actual = np.asarray(actual, dtype=float)
    expected = np.asarray(expected, dtype=float)

    if actual.shape != expected.shape:
        raise AssertionError(
            f"{name}: shape mismatch - actual={actual.shape}, expected={expected.shape}"
        )

    actual_nan = np.isnan(actual)
    expected_nan = np.isnan(expected)
    if not np.array_equal(actual_nan, expected_nan):
        raise AssertionError(
            f"{name}: NaN pattern mismatch - {np.sum(actual_nan != expected_nan)} positions differ"
        )

    mask = ~actual_nan
    if np.any(mask) and not np.allclose(actual[mask], expected[mask], rtol=rtol, atol=atol):
        diffs = np.abs(actual[mask] - expected[mask])
        idx = int(np.argmax(diffs))
        raise AssertionError(f"{name}: max difference at idx {idx}, diff={diffs[idx]:.6e}")
    return True


# =============================================================================
# Grid used by every synthetic archive
# =============================================================================

# Site inside lat cell 1 ([42, 43]) and lon cell 1 ([-73, -72] / [287, 288]).
SITE = {"name": "HARVARD", "lat": 42.54, "lon": -72.18}
SITE_CELL = (1, 1)

LAT_BNDS = np.array([[41.0, 42.0], [42.0, 43.0], [43.0, 44.0]])
LON_BNDS_180 = np.array([[-74.0, -73.0], [-73.0, -72.0], [-72.0, -71.0]])
LON_BNDS_360 = LON_BNDS_180 + 360.0

FILL_OFF_SITE = -999.0


def _grid_dataset(values: Dict[str, np.ndarray], lon_bnds: np.ndarray, calendar: str,
                  time_units: str) -> xr.Dataset:
    """Dataset whose site cell holds ``values`` and every other cell FILL_OFF_SITE."""
    n_lat, n_lon = len(LAT_BNDS), len(lon_bnds)
    n_steps = len(next(iter(values.values())))
    data_vars = {}
    for name, series in values.items():
        cube = np.full((n_steps, n_lat, n_lon), FILL_OFF_SITE, dtype=float)
        cube[:, SITE_CELL[0], SITE_CELL[1]] = series
        data_vars[name] = (("time", "lat", "lon"), cube)
    data_vars["lat_bnds"] = (("lat", "bnds"), LAT_BNDS)
    data_vars["lon_bnds"] = (("lon", "bnds"), lon_bnds)

    ds = xr.Dataset(
        data_vars,
        coords={
            "time": ("time", np.arange(n_steps, dtype=float), {"units": time_units, "calendar": calendar}),
            "lat": ("lat", LAT_BNDS.mean(axis=1)),
            "lon": ("lon", lon_bnds.mean(axis=1)),
        },
    )
    return ds


# =============================================================================
# Archive writers
# =============================================================================

def hourly_values(year: int, steps_per_day: int = 24, calendar: str = "standard") -> Dict[str, np.ndarray]:
    """Plausible per-step series for every reanalysis column, keyed by column."""
    n = days_in_year(year, calendar) * steps_per_day
    k = np.arange(n)
    phase = 2 * np.pi * (k % steps_per_day) / steps_per_day
    return {
        "tair": 280.0 + 5.0 * np.sin(phase),
        "precipf": np.where(k % 7 == 0, 1e-4, 0.0),
        "swdown": np.where(np.sin(phase) > 1e-9, 400.0 * np.sin(phase), 0.0),
        "lwdown": np.full(n, 300.0),
        "press": np.full(n, 101325.0),
        "qair": np.full(n, 0.008),
        "uas": np.full(n, 3.0),
        "vas": np.full(n, 4.0),
    }


def write_reanalysis_file(
    directory: Path,
    family: str,
    year: int,
    steps_per_day: int = 24,
    calendar: str = "standard",
    lon_bnds: np.ndarray = LON_BNDS_180,
    values: Optional[Dict[str, np.ndarray]] = None,
) -> Path:
    """Write ``<family>.<year>.nc`` holding every reanalysis variable (CF names)."""
    values = values or hourly_values(year, steps_per_day, calendar)
    by_source = {}
    for source, unit in REANALYSIS_VARIABLES.items():
        if unit.column in values:
            by_source[source] = values[unit.column]
    ds = _grid_dataset(by_source, lon_bnds, calendar, f"hours since {year:04d}-01-01")
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{family}.{year}.nc"
    ds.to_netcdf(path)
    return path


def write_cmip_file(
    directory: Path,
    variable: str,
    frequency: str,
    token: str,
    series: np.ndarray,
    model: str = "MIROC-ESM",
    experiment: str = "past1000",
    calendar: str = "noleap",
) -> Path:
    """Write ``<var>_<day|Amon>_<model>_<experiment>_r1i1p1_<token>.nc`` for one variable."""
    table = "day" if frequency == "day" else "Amon"
    ds = _grid_dataset({variable: np.asarray(series, dtype=float)}, LON_BNDS_360, calendar,
                       "days since 0850-01-01")
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{variable}_{table}_{model}_{experiment}_r1i1p1_{token}.nc"
    ds.to_netcdf(path)
    return path


# =============================================================================
# Synthetic hourly tables
# =============================================================================

def make_hourly_table(
    year: int = 2001,
    tair: Optional[Callable[[np.ndarray], np.ndarray]] = None,
    swdown: Optional[Callable[[np.ndarray], np.ndarray]] = None,
    precipf: Optional[Callable[[np.ndarray], np.ndarray]] = None,
) -> pd.DataFrame:
    """Hourly site table for one year; callables receive the step index array."""
    n_days = days_in_year(year)
    k = np.arange(n_days * 24)
    return pd.DataFrame({
        "dataset": "SYNTH",
        "year": year,
        "doy": k // 24 + 1,
        "hour": k % 24,
        "tair": tair(k) if tair else np.full(k.size, 285.0),
        "precipf": precipf(k) if precipf else np.full(k.size, 2e-5),
        "swdown": swdown(k) if swdown else np.zeros(k.size),
        "lwdown": np.full(k.size, 310.0),
        "press": np.full(k.size, 100000.0),
        "qair": np.full(k.size, 0.006),
        "wind": np.full(k.size, 2.5),
    })


@pytest.fixture
def hourly_table() -> pd.DataFrame:
    """One non-leap year of constant hourly data."""
    return make_hourly_table(2001)


# =============================================================================
# On-disk project
# =============================================================================

def gcm_daily_values(n: int) -> Dict[str, np.ndarray]:
    k = np.arange(n)
    return {
        "tasmax": 290.0 + 0.01 * k,
        "tasmin": 275.0 + 0.01 * k,
        "pr": np.full(n, 3e-5),
        "psl": np.full(n, 101000.0),
        "huss": np.full(n, 0.007),
        "sfcWind": np.full(n, 4.5),
        "rsds": np.full(n, 999.0),
    }


def build_gcm_archive(gcm_root: Path, model: str = "MIROC-ESM", experiment: str = "p1000") -> Path:
    """Two daily files (850, 851) per daily variable and one 24-month file per monthly variable.

    ``rsds`` is archived at both frequencies; the daily copy holds 999 so
    tests can tell which frequency was used.
    """
    exp_dir = gcm_root / model / experiment
    first = gcm_daily_values(365)
    second = {k: v + (0.01 * 365 if k in ("tasmax", "tasmin") else 0.0) for k, v in gcm_daily_values(365).items()}
    for var in first:
        write_cmip_file(exp_dir / "day" / var, var, "day", "08500101-08501231", first[var], model=model)
        write_cmip_file(exp_dir / "day" / var, var, "day", "08510101-08511231", second[var], model=model)
    months = np.arange(24)
    write_cmip_file(exp_dir / "month" / "rsds", "rsds", "month", "085001-085112", 100.0 + months, model=model)
    write_cmip_file(exp_dir / "month" / "rlds", "rlds", "month", "085001-085112", 300.0 + months, model=model)
    return exp_dir


@pytest.fixture
def project(tmp_path) -> Dict[str, Path]:
    """Archives for NLDAS (2000-2001), CRUNCEP (1901) and one GCM, plus a TOML config."""
    ldas = tmp_path / "raw" / "LDAS" / "Harvard"
    write_reanalysis_file(ldas, "NLDAS", 2000)
    write_reanalysis_file(ldas, "NLDAS", 2001)
    (ldas / "NLDAS_old.csv").write_text("ignored\n")

    cruncep = tmp_path / "raw" / "CRUNCEP" / "HARVARD"
    write_reanalysis_file(cruncep, "CRUNCEP", 1901, steps_per_day=4, calendar="noleap",
                          lon_bnds=LON_BNDS_360)

    build_gcm_archive(tmp_path / "raw" / "GCM")

    toml_text = f"""
project = "paleon"
root = "{tmp_path}"

[paths]
ldas = "{{root}}/raw/LDAS"
cruncep = "{{root}}/raw/CRUNCEP"
gcm = "{{root}}/raw/GCM"
output = "{{root}}/{{project}}/sites"

[datasets]
reanalysis = ["NLDAS", "CRUNCEP"]
gcms = ["MIROC-ESM"]
experiments = ["p1000"]

[[sites]]
name = "{SITE['name']}"
lat = {SITE['lat']}
lon = {SITE['lon']}
"""
    conf = tmp_path / "paleon.toml"
    conf.write_text(toml_text)
    return {"root": tmp_path, "config": conf, "output": tmp_path / "paleon" / "sites" / SITE["name"]}


def read_output(out_dir: Path, prefix: str) -> pd.DataFrame:
    matches = sorted(p for p in os.listdir(out_dir) if p.startswith(f"{prefix}_"))
    assert len(matches) == 1, f"expected one {prefix}_* output, found {matches}"
    return pd.read_csv(out_dir / matches[0])
