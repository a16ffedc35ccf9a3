"""Variable Extractor: read one archive file at one grid cell.

Each file is opened with xarray (times left undecoded; the file name is the
authority on dates), the site's cell is located from ``lat_bnds``/``lon_bnds``,
and every requested variable is reduced to a 1-D series in file step order
and paired with reconstructed timestamps. The file is closed on every exit
path, including extraction failures.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
import xarray as xr

from pointmet.errors import AssemblyError, GridLookupError, LengthMismatchError, PointMetError
from pointmet.extraction.grid import GridIndex, locate
from pointmet.extraction.timestamps import normalize_frequency, reconstruct
from pointmet.logging import get_logger
from pointmet.units import UnitSpec

log = get_logger("reader")


@dataclass
class VariableSeries:
    """Values of one variable paired with its time keys.

    Attributes:
        column: Site-table column this series fills (e.g. "tair").
        source: Variable name inside the archive (e.g. "air_temperature").
        frequency: Native frequency ("hour", "day", "month").
        frame: TIME_KEYS[frequency] columns plus "value", in file step order.
        files: Archive files the series came from, in processing order.
    """

    column: str
    source: str
    frequency: str
    frame: pd.DataFrame
    files: list[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.frame)


def locate_in_dataset(ds: xr.Dataset, lat: float, lon: float) -> GridIndex | None:
    """Grid index of the site, or None for files with no cell bounds (site extracts)."""
    if "lat_bnds" not in ds.variables or "lon_bnds" not in ds.variables:
        return None
    return locate(lat, lon, ds["lat_bnds"].values, ds["lon_bnds"].values)


def _grid_dims(ds: xr.Dataset, da: xr.DataArray) -> tuple[str, str]:
    lat_dim = next((d for d in ds["lat_bnds"].dims if d in da.dims), None)
    lon_dim = next((d for d in ds["lon_bnds"].dims if d in da.dims), None)
    if lat_dim is None or lon_dim is None:
        raise GridLookupError(
            f"Variable dims {da.dims} do not share the lat/lon dims of the cell bounds",
            variable=da.name,
        )
    return lat_dim, lon_dim


def time_calendar(ds: xr.Dataset) -> str | None:
    if "time" in ds.variables:
        return ds["time"].attrs.get("calendar")
    return None


def extract(
    ds: xr.Dataset,
    variable: str,
    grid_index: GridIndex | None,
    label: str,
    frequency: str,
    column: str | None = None,
    label_format: str = "year",
    round_step: bool = False,
) -> VariableSeries:
    """Series for ``variable`` at ``grid_index`` paired with the file's timestamps.

    Raises:
        AssemblyError: the variable is not in the file.
        GridLookupError: the variable is still spatial after indexing.
        LengthMismatchError: step count differs from the reconstructed timestamps.
    """
    if variable not in ds.data_vars:
        raise AssemblyError("Variable not found in file", file=label, variable=variable)
    da = ds[variable]
    if grid_index is not None:
        lat_dim, lon_dim = _grid_dims(ds, da)
        da = da.isel({lat_dim: grid_index.lat_index, lon_dim: grid_index.lon_index})

    values = np.asarray(da.values, dtype=float).squeeze()
    if values.ndim == 0:
        values = values.reshape(1)
    if values.ndim != 1:
        raise GridLookupError(
            f"Variable has shape {da.shape} after cell selection; "
            "the file needs lat_bnds/lon_bnds to locate the site",
            file=label,
            variable=variable,
        )

    freq = normalize_frequency(frequency)
    times = reconstruct(label, values.size, freq, label_format=label_format,
                        calendar=time_calendar(ds), round_step=round_step)
    if len(times) != values.size:
        raise LengthMismatchError(
            f"{values.size} values but {len(times)} reconstructed timestamps",
            file=label,
            variable=variable,
        )

    frame = times.copy()
    frame["value"] = values
    return VariableSeries(column or variable, variable, freq, frame, [label])


def extract_file(
    path: str,
    variables: dict[str, UnitSpec],
    lat: float,
    lon: float,
    frequency: str,
    label_format: str = "year",
    round_step: bool = False,
) -> list[VariableSeries]:
    """Extract every registered variable present in one archive file.

    Args:
        path: Archive file path.
        variables: Archive variable name -> UnitSpec (gives the output column).
        lat, lon: Site coordinates (either longitude convention).
        frequency: Native frequency of the file.
        label_format: Date-token parser for the file name.
        round_step: Round the derived hourly step (approximate archives).

    Raises:
        PointMetError: no xarray backend can open the file.
    """
    label = os.path.basename(path)
    try:
        ds = xr.open_dataset(path, decode_times=False)
    except ValueError as err:
        # no backend recognises the file: truncated download or not netCDF
        raise PointMetError(f"Cannot open archive file: {err}", file=label) from err
    try:
        with ds:
            index = locate_in_dataset(ds, lat, lon)
            names = [v for v in variables if v in ds.data_vars]
            out = [
                extract(ds, name, index, label, frequency, column=variables[name].column,
                        label_format=label_format, round_step=round_step)
                for name in names
            ]
    except PointMetError as err:
        err.add_context(file=label)
        raise
    log.debug("file_extracted", file=label, variables=len(out),
              steps=len(out[0]) if out else 0,
              cell=tuple(index) if index is not None else None)
    return out


if __name__ == '__main__':
    pass
# ========================= EOF ====================================================================
