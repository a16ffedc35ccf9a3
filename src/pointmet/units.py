"""Source variable registry: archive names, output columns and units.

One place that maps each archive variable name (CF standard names in the
reanalysis files, CMIP short names in the climate-model archives) to the
column it becomes in a site table, and documents the units on both sides.

Values are extracted in native units. The only conversion the pipeline
performs is in the daily aggregation: precipitation flux (kg m-2 s-1) is
turned into a daily depth by multiplying each hourly rate by the seconds
in the step (1 kg m-2 of water = 1 mm).
"""

from __future__ import annotations

from dataclasses import dataclass

SECONDS_PER_HOUR = 3600


@dataclass(frozen=True, slots=True)
class UnitSpec:
    """Document a source variable: its output column and units."""

    column: str
    native_units: str
    canonical_units: str
    conversion: str = "none"
    notes: str = ""


# -----------------------------------------------------------------------------
# Site table columns
# -----------------------------------------------------------------------------

SITE_TABLE_UNITS: dict[str, str] = {
    "tair": "K",
    "tmax": "K",
    "tmin": "K",
    "precipf": "kg m-2 s-1",
    "swdown": "W m-2",
    "lwdown": "W m-2",
    "press": "Pa",
    "qair": "kg kg-1",
    "uas": "m s-1",
    "vas": "m s-1",
    "wind": "m s-1",
}

SUMMARY_UNITS: dict[str, str] = {
    "tair_mean": "K",
    "tair_min": "K",
    "tair_max": "K",
    "precip_tot": "kg m-2 (mm)",  # daily or monthly total
    "swdown_mean": "W m-2",
    "hrs_sun": "hours/day",  # steps with swdown > 0
    "lwdown_mean": "W m-2",
    "press_mean": "Pa",
    "qair_mean": "kg kg-1",
    "wind_mean": "m s-1",
}

# -----------------------------------------------------------------------------
# Reanalysis archives (NLDAS, GLDAS, CRUNCEP) - CF standard names, one file
# per year holding every variable
# -----------------------------------------------------------------------------

REANALYSIS_VARIABLES: dict[str, UnitSpec] = {
    "air_temperature": UnitSpec("tair", "K", "K"),
    "precipitation_flux": UnitSpec(
        "precipf",
        "kg m-2 s-1",
        "kg m-2 s-1",
        notes="Mean rate over the step; daily totals multiply by seconds per step.",
    ),
    "surface_downwelling_shortwave_flux_in_air": UnitSpec("swdown", "W m-2", "W m-2"),
    "surface_downwelling_longwave_flux_in_air": UnitSpec("lwdown", "W m-2", "W m-2"),
    "air_pressure": UnitSpec("press", "Pa", "Pa"),
    "specific_humidity": UnitSpec("qair", "kg kg-1", "kg kg-1"),
    # u = x = east = zonal
    "eastward_wind": UnitSpec("uas", "m s-1", "m s-1"),
    # v = y = north = meridional
    "northward_wind": UnitSpec("vas", "m s-1", "m s-1"),
}

# -----------------------------------------------------------------------------
# Climate-model archives (CMIP) - one file per variable per time chunk
# -----------------------------------------------------------------------------

GCM_VARIABLES: dict[str, UnitSpec] = {
    "tasmax": UnitSpec("tmax", "K", "K", notes="Daily maximum near-surface air temperature."),
    "tasmin": UnitSpec("tmin", "K", "K", notes="Daily minimum near-surface air temperature."),
    "pr": UnitSpec("precipf", "kg m-2 s-1", "kg m-2 s-1"),
    "psl": UnitSpec(
        "press",
        "Pa",
        "Pa",
        notes="Sea level pressure stands in for surface pressure.",
    ),
    "huss": UnitSpec("qair", "kg kg-1", "kg kg-1"),
    "sfcWind": UnitSpec("wind", "m s-1", "m s-1", notes="Archived speed; not derived from components."),
    "uas": UnitSpec("uas", "m s-1", "m s-1"),
    "vas": UnitSpec("vas", "m s-1", "m s-1"),
    "rsds": UnitSpec("swdown", "W m-2", "W m-2", notes="Usually monthly only in paleo runs."),
    "rlds": UnitSpec("lwdown", "W m-2", "W m-2", notes="Usually monthly only in paleo runs."),
}


if __name__ == '__main__':
    pass
# ========================= EOF ====================================================================
