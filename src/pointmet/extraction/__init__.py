"""
Point extraction from gridded meteorological archives.

Provides:
- grid: locate the grid cell containing a site (either longitude convention)
- timestamps: rebuild per-step timestamps from archive file names
- reader: extract variables at one cell from one archive file
- families: archive conventions per dataset family (NLDAS, GLDAS, CRUNCEP, GCM)
- assemble: merge per-file, per-variable series into one site table

Example:
    >>> from pointmet.extraction import FAMILIES, assemble, extract_file
    >>>
    >>> nldas = FAMILIES["NLDAS"]
    >>> series = extract_file("NLDAS.1980.nc", nldas.variables, 42.54, -72.18, "hour")
    >>> table = assemble("NLDAS", series, nldas)
"""

from pointmet.extraction.grid import GridIndex, locate
from pointmet.extraction.timestamps import reattribute_extra_steps, reconstruct
from pointmet.extraction.reader import VariableSeries, extract, extract_file
from pointmet.extraction.families import FAMILIES, DatasetFamily, get_family
from pointmet.extraction.assemble import assemble

__all__ = [
    "GridIndex",
    "locate",
    "reconstruct",
    "reattribute_extra_steps",
    "VariableSeries",
    "extract",
    "extract_file",
    "DatasetFamily",
    "FAMILIES",
    "get_family",
    "assemble",
]
# ========================= EOF ====================================================================
