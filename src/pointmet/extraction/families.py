"""Dataset families: how each kind of archive is named, laid out and tabulated."""

from __future__ import annotations

from dataclasses import dataclass

from pointmet.units import GCM_VARIABLES, REANALYSIS_VARIABLES, SITE_TABLE_UNITS, UnitSpec

REANALYSIS_KEYS = ("year", "doy", "hour")
REANALYSIS_COLUMNS = ("tair", "precipf", "swdown", "lwdown", "press", "qair", "uas", "vas", "wind")
REANALYSIS_REQUIRED = ("tair", "precipf", "swdown", "lwdown", "press", "qair", "wind")

GCM_KEYS = ("year", "month", "day", "doy")
GCM_COLUMNS = ("tmax", "tmin", "precipf", "press", "qair", "wind", "swdown", "lwdown")


@dataclass(frozen=True)
class DatasetFamily:
    """Archive conventions shared by every dataset of one family.

    Attributes:
        name: Family name (also the reanalysis dataset tag).
        kind: "reanalysis" (one multi-variable file per year) or
            "gcm" (one directory per variable and frequency).
        variables: Archive variable name -> UnitSpec.
        label_format: Date-token parser key (see timestamps.LABEL_PARSERS).
        key_columns: Time key columns of the output table.
        value_columns: Value columns of the output table, in order.
        required: Columns that must hold data for the table to be written.
        path_key: Key under ``[paths]`` in the project config.
        round_step: Hourly step length is approximate and gets rounded.
    """

    name: str
    kind: str
    variables: dict[str, UnitSpec]
    label_format: str
    key_columns: tuple[str, ...]
    value_columns: tuple[str, ...]
    required: tuple[str, ...]
    path_key: str
    round_step: bool = False

    def __post_init__(self):
        undocumented = [c for c in (*self.value_columns, *(u.column for u in self.variables.values()))
                        if c not in SITE_TABLE_UNITS]
        if undocumented:
            raise ValueError(f"{self.name}: columns without units in SITE_TABLE_UNITS: {undocumented}")

    @property
    def output_columns(self) -> list[str]:
        return ["dataset", *self.key_columns, *self.value_columns]


FAMILIES: dict[str, DatasetFamily] = {
    "NLDAS": DatasetFamily(
        "NLDAS", "reanalysis", REANALYSIS_VARIABLES, "year",
        REANALYSIS_KEYS, REANALYSIS_COLUMNS, REANALYSIS_REQUIRED, path_key="ldas",
    ),
    "GLDAS": DatasetFamily(
        "GLDAS", "reanalysis", REANALYSIS_VARIABLES, "year",
        REANALYSIS_KEYS, REANALYSIS_COLUMNS, REANALYSIS_REQUIRED, path_key="ldas",
    ),
    # 6-hourly, nominal resolution drifts from an exact divisor of the year
    "CRUNCEP": DatasetFamily(
        "CRUNCEP", "reanalysis", REANALYSIS_VARIABLES, "year",
        REANALYSIS_KEYS, REANALYSIS_COLUMNS, REANALYSIS_REQUIRED, path_key="cruncep",
        round_step=True,
    ),
    "GCM": DatasetFamily(
        "GCM", "gcm", GCM_VARIABLES, "cmip",
        GCM_KEYS, GCM_COLUMNS, GCM_COLUMNS, path_key="gcm",
    ),
}

REANALYSIS_FAMILIES = tuple(k for k, v in FAMILIES.items() if v.kind == "reanalysis")


def get_family(name: str) -> DatasetFamily:
    key = name.upper()
    if key not in FAMILIES:
        raise ValueError(f"Unknown dataset family '{name}'. Known: {', '.join(FAMILIES)}")
    return FAMILIES[key]


if __name__ == '__main__':
    pass
# ========================= EOF ====================================================================
