"""Series Assembler: per-variable, per-file series -> one SiteTable.

Steps:
1. Concatenate each column's series in file-processing order.
2. Group columns by native frequency and outer-join each group on the
   frequency's time keys (hour: year/month/day/doy/hour, day: year/month/day/doy,
   month: year/month).
3. Fold the groups from finest to coarsest, joining on the coarser group's
   keys only, so a monthly value is repeated on every day of its month.
4. Derive wind speed, check required columns, sort by time and tag the
   dataset.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Iterable

import pandas as pd

from pointmet.errors import AssemblyError
from pointmet.extraction.families import DatasetFamily
from pointmet.extraction.reader import VariableSeries
from pointmet.extraction.timestamps import FREQUENCY_ORDER, TIME_KEYS
from pointmet.logging import get_logger
from pointmet.summaries.derived import add_wind_speed

log = get_logger("assemble")


def _concat_column(column: str, parts: list[VariableSeries]) -> tuple[str, pd.DataFrame]:
    freqs = {p.frequency for p in parts}
    if len(freqs) > 1:
        raise AssemblyError(f"Series mix frequencies {sorted(freqs)}", variable=column)
    freq = freqs.pop()
    keys = TIME_KEYS[freq]
    frame = pd.concat([p.frame for p in parts], ignore_index=True)
    dup = frame.duplicated(subset=keys)
    if dup.any():
        first = frame.loc[dup, keys].iloc[0].to_dict()
        files = sorted({f for p in parts for f in p.files})
        raise AssemblyError(
            f"{int(dup.sum())} duplicate timestamps, first at {first}",
            variable=column,
            files=",".join(files),
        )
    return freq, frame.rename(columns={"value": column})


def _join_group(frames: list[pd.DataFrame], keys: list[str]) -> pd.DataFrame:
    wide = frames[0]
    for frame in frames[1:]:
        wide = wide.merge(frame, on=keys, how="outer", sort=False)
    return wide


def group_by_frequency(series: Iterable[VariableSeries]) -> dict[str, pd.DataFrame]:
    """Wide table per native frequency, keyed by that frequency's TIME_KEYS."""
    by_column: OrderedDict[str, list[VariableSeries]] = OrderedDict()
    for s in series:
        by_column.setdefault(s.column, []).append(s)

    groups: dict[str, list[pd.DataFrame]] = {}
    for column, parts in by_column.items():
        freq, frame = _concat_column(column, parts)
        groups.setdefault(freq, []).append(frame)

    return {freq: _join_group(frames, TIME_KEYS[freq]) for freq, frames in groups.items()}


def merge_frequencies(groups: dict[str, pd.DataFrame]) -> tuple[pd.DataFrame, str]:
    """Fold finer groups into coarser ones on the coarser group's keys.

    Returns the merged table and its finest frequency.
    """
    ordered = [f for f in FREQUENCY_ORDER if f in groups]
    if not ordered:
        raise AssemblyError("No series to assemble")
    table = groups[ordered[0]]
    for freq in ordered[1:]:
        table = table.merge(groups[freq], on=TIME_KEYS[freq], how="outer", sort=False)
    return table, ordered[0]


def assemble(dataset_name: str, series: list[VariableSeries], family: DatasetFamily) -> pd.DataFrame:
    """Assemble one dataset's series into a time-sorted SiteTable.

    Args:
        dataset_name: Tag written to the ``dataset`` column (e.g. "NLDAS",
            "MIROC-ESM.p1000").
        series: VariableSeries from every file, in processing order.
        family: Dataset family giving key, value and required columns.

    Returns:
        New DataFrame with columns ``dataset``, the family's key columns and
        the family's value columns that are present, sorted by time.

    Raises:
        AssemblyError: duplicate timestamps, mixed frequencies for one
            variable, or a required column absent or entirely empty.
    """
    if not series:
        raise AssemblyError("No series to assemble", dataset=dataset_name)

    try:
        table, finest = merge_frequencies(group_by_frequency(series))
    except AssemblyError as err:
        raise err.add_context(dataset=dataset_name)

    table = add_wind_speed(table)

    missing = [c for c in family.required if c not in table.columns or table[c].isna().all()]
    if missing:
        raise AssemblyError(f"Required variables absent: {', '.join(missing)}",
                            dataset=dataset_name)

    keys = [k for k in family.key_columns if k in table.columns]
    table[keys] = table[keys].astype("Int64")
    table = table.sort_values(keys, na_position="last", kind="mergesort").reset_index(drop=True)
    if table.duplicated(subset=keys).any():
        raise AssemblyError("Timestamps are not unique after merging", dataset=dataset_name)

    values = [c for c in family.value_columns if c in table.columns]
    out = table[keys + values].copy()
    out.insert(0, "dataset", dataset_name)

    years = out["year"].dropna()
    log.info("dataset_assembled", dataset=dataset_name, frequency=finest, rows=len(out),
             variables=len(values),
             years=f"{int(years.min())}-{int(years.max())}" if len(years) else None)
    return out


def year_range(table: pd.DataFrame) -> tuple[int, int]:
    """Inclusive (first, last) year of an assembled table."""
    years = table["year"].dropna()
    if years.empty:
        raise AssemblyError("Table has no dated rows")
    return int(years.min()), int(years.max())


if __name__ == '__main__':
    pass
# ========================= EOF ====================================================================
