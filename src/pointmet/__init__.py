"""
pointmet: point extraction and temporal summaries of gridded meteorology.

Extracts single-site time series from reanalysis products (NLDAS, GLDAS,
CRUNCEP) and global climate model archives (CMIP daily/monthly output),
reconstructs calendar-correct timestamps from the archive file names, and
aggregates hourly series into daily and monthly summaries.

Subpackages:
    extraction: Grid location, timestamp reconstruction, per-file variable
        extraction and per-dataset assembly into one site table.
    summaries: Daily/monthly aggregation, derived quantities (wind speed,
        temperature departures) and training-table enrichment.

Example:
    >>> from pointmet.config import ProjectConfig
    >>> from pointmet.pipeline import run_sites
    >>>
    >>> config = ProjectConfig()
    >>> config.read_config("paleon.toml")
    >>> results = run_sites(config, workers=4)
"""

__version__ = "0.1.0"

if __name__ == '__main__':
    pass
# ========================= EOF ====================================================================
