"""Derived-Quantity Calculator.

Provides:
- wind_speed: scalar wind speed from eastward/northward components
- add_wind_speed: fill a table's ``wind`` column from ``uas``/``vas``
- add_temperature_departures: daily max/min departures from the daily mean

Wind speed is the magnitude of the resultant vector,
``sqrt(uas**2 + vas**2)``. A single-direction trigonometric decomposition
(``uas / cos(atan(vas / uas))``) gives the same magnitude only up to sign
and breaks down when ``uas == 0``; the vector form is used throughout.
"""

from __future__ import annotations

import numpy as np
import pandas as pd


def wind_speed(uas, vas) -> np.ndarray:
    """Row-wise wind speed; NaN wherever either component is missing."""
    u = np.asarray(uas, dtype=float)
    v = np.asarray(vas, dtype=float)
    return np.sqrt(u ** 2 + v ** 2)


def add_wind_speed(table: pd.DataFrame, u_col: str = "uas", v_col: str = "vas",
                   out_col: str = "wind") -> pd.DataFrame:
    """Return a copy of ``table`` with ``out_col`` computed from the components.

    Archived speeds already in ``out_col`` are kept; only missing values are
    filled from the components. Without both component columns the table is
    returned unchanged (as a copy).
    """
    out = table.copy()
    if u_col not in out.columns or v_col not in out.columns:
        return out
    derived = pd.Series(wind_speed(out[u_col], out[v_col]), index=out.index)
    if out_col in out.columns:
        out[out_col] = out[out_col].astype(float).fillna(derived)
    else:
        out[out_col] = derived
    return out


def add_temperature_departures(
    daily: pd.DataFrame,
    mean_col: str = "tair_mean",
    max_col: str = "tair_max",
    min_col: str = "tair_min",
) -> pd.DataFrame:
    """Return a copy with ``max_departure`` and ``min_departure`` columns.

    ``max_departure = max - mean`` (>= 0) and ``min_departure = min - mean``
    (<= 0) for every day where the inputs are present.
    """
    missing = [c for c in (mean_col, max_col, min_col) if c not in daily.columns]
    if missing:
        raise KeyError(f"Missing temperature columns: {missing}")
    out = daily.copy()
    out["max_departure"] = out[max_col] - out[mean_col]
    out["min_departure"] = out[min_col] - out[mean_col]
    return out


if __name__ == '__main__':
    pass
# ========================= EOF ====================================================================
