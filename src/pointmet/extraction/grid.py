"""Grid Locator: find the grid cell whose bounds contain a point.

Cells are described by ``lat_bnds``/``lon_bnds`` edge arrays. Archives store
them either as (N, 2) (netCDF dimension order ``(lat, bnds)``) or (2, N); both
are accepted. The edge order inside a pair is not assumed.
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np

from pointmet.errors import GridLookupError


class GridIndex(NamedTuple):
    lat_index: int
    lon_index: int


def _as_pairs(bounds) -> np.ndarray:
    arr = np.asarray(bounds, dtype=float)
    if arr.ndim != 2 or 2 not in arr.shape:
        raise GridLookupError(f"Cell bounds must be a 2xN or Nx2 array, got shape {arr.shape}")
    if arr.shape[1] != 2:
        arr = arr.T
    return np.sort(arr, axis=1)


def _match(value: float, pairs: np.ndarray, axis: str) -> int:
    hits = np.flatnonzero((pairs[:, 0] <= value) & (value <= pairs[:, 1]))
    if hits.size == 0:
        raise GridLookupError(
            f"{axis}={value} is outside the grid extent "
            f"[{pairs[:, 0].min()}, {pairs[:, 1].max()}]",
            axis=axis,
        )
    if hits.size > 1:
        raise GridLookupError(
            f"{axis}={value} matches {hits.size} cells {hits.tolist()}; cell edges are ambiguous",
            axis=axis,
        )
    return int(hits[0])


def to_grid_longitude(lon: float, lon_bounds) -> float:
    """Express ``lon`` in the grid's convention (0..360 or -180..180)."""
    pairs = _as_pairs(lon_bounds)
    if pairs.max() > 180.0 and lon < 0.0:
        return lon + 360.0
    if pairs.max() <= 180.0 and lon > 180.0:
        return lon - 360.0
    return lon


def locate(lat: float, lon: float, lat_bounds, lon_bounds) -> GridIndex:
    """Return the unique (lat_index, lon_index) whose cell contains the point.

    Raises GridLookupError when either axis matches zero or several cells.
    """
    lat_index = _match(float(lat), _as_pairs(lat_bounds), "lat")
    grid_lon = to_grid_longitude(float(lon), lon_bounds)
    lon_index = _match(grid_lon, _as_pairs(lon_bounds), "lon")
    return GridIndex(lat_index, lon_index)


if __name__ == '__main__':
    pass
# ========================= EOF ====================================================================
