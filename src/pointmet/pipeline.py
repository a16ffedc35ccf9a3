"""
Per-site batch extraction and summary output.

Provides:
- extract_site: run every configured dataset for one site
- run_sites: run many sites, serially or one process per site
- summarize_hourly: write daily and monthly summaries for an hourly table

Directory conventions::

    <ldas dir>/<SITE>/NLDAS.1980.nc ...           one file per year, all variables
    <cruncep dir>/<SITE>/CRUNCEP.1901.nc ...
    <gcm dir>/<GCM>/<experiment>/day/<var>/<var>_day_<GCM>_<experiment>_<run>_<start>-<end>.nc
    <gcm dir>/<GCM>/<experiment>/month/<var>/...
    <output dir>/<SITE>/NLDAS_1980-2015.csv, <GCM>_p1000_850-1849.csv, ...

A dataset is skipped when an output file with its prefix already exists in
the site directory. A failure aborts only the current dataset; its output is
never written.
"""

from __future__ import annotations

import os
import re
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field

import pandas as pd
from tqdm import tqdm

from pointmet.config import ProjectConfig, Site
from pointmet.errors import PointMetError
from pointmet.extraction.assemble import assemble, year_range
from pointmet.extraction.families import FAMILIES, get_family
from pointmet.extraction.reader import extract_file
from pointmet.extraction.timestamps import DAILY, HOURLY, MONTHLY
from pointmet.logging import get_logger
from pointmet.summaries.aggregate import daily_from_hourly, monthly_from_daily, read_hourly_table, split_years

log = get_logger("pipeline")

_SKIP_SUFFIXES = (".csv", ".rdata", ".tmp")

_FREQUENCY_DIRS = {DAILY: "day", MONTHLY: "month"}


@dataclass
class SiteResult:
    site: str
    written: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


# -----------------------------------------------------------------------------
# File bookkeeping
# -----------------------------------------------------------------------------

def output_name(prefix: str, first_year: int, last_year: int) -> str:
    return f"{prefix}_{first_year}-{last_year}.csv"


def existing_output(out_dir: str, prefix: str) -> str | None:
    """Path of an existing ``<prefix>_<y0>-<y1>.csv`` in ``out_dir``, if any.

    Summary tables written beside it (``<prefix>_<y0>-<y1>_daily.csv``) do not count.
    """
    if not os.path.isdir(out_dir):
        return None
    pattern = re.compile(rf"{re.escape(prefix)}_\d+-\d+\.csv")
    for name in sorted(os.listdir(out_dir)):
        if pattern.fullmatch(name):
            return os.path.join(out_dir, name)
    return None


def find_site_dir(root: str, site_name: str) -> str:
    """Site sub-directory of ``root``, matched case-insensitively."""
    if not root or not os.path.isdir(root):
        raise FileNotFoundError(f"Archive directory not found: {root}")
    for name in sorted(os.listdir(root)):
        path = os.path.join(root, name)
        if name.upper() == site_name.upper() and os.path.isdir(path):
            return path
    raise FileNotFoundError(f"No directory for site {site_name} under {root}")


def list_archive_files(directory: str, prefix: str | None = None) -> list[str]:
    """Sorted archive files in ``directory``, ignoring processed tables."""
    if not os.path.isdir(directory):
        raise FileNotFoundError(f"Archive directory not found: {directory}")
    out = []
    for name in sorted(os.listdir(directory)):
        if name.startswith(".") or name.lower().endswith(_SKIP_SUFFIXES):
            continue
        if prefix and not name.startswith(prefix):
            continue
        path = os.path.join(directory, name)
        if os.path.isfile(path):
            out.append(path)
    return out


def write_table(table: pd.DataFrame, path: str) -> str:
    """Write a CSV atomically: nothing appears at ``path`` unless the write completes."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    tmp = f"{path}.tmp"
    try:
        table.to_csv(tmp, index=False)
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.remove(tmp)
    return path


# -----------------------------------------------------------------------------
# Dataset extraction
# -----------------------------------------------------------------------------

def extract_reanalysis(config: ProjectConfig, site: Site, family_name: str) -> pd.DataFrame:
    """Assemble the hourly table of one reanalysis family for one site."""
    family = get_family(family_name)
    site_dir = find_site_dir(config.family_dir(family.name), site.name)
    files = list_archive_files(site_dir, prefix=f"{family.name}.")
    log.info("extracting", site=site.name, dataset=family.name, n_files=len(files))

    series = []
    for path in files:
        series.extend(extract_file(path, family.variables, site.lat, site.lon, HOURLY,
                                   label_format=family.label_format, round_step=family.round_step))
    return assemble(family.name, series, family)


def gcm_variable_sources(experiment_dir: str, prefer: str) -> dict[str, tuple[str, str]]:
    """Archive variable -> (frequency, directory) for one GCM experiment.

    Variables archived at both frequencies are taken at ``prefer``.
    """
    found: dict[str, dict[str, str]] = {}
    for freq, sub in _FREQUENCY_DIRS.items():
        freq_dir = os.path.join(experiment_dir, sub)
        if not os.path.isdir(freq_dir):
            continue
        for var in sorted(os.listdir(freq_dir)):
            var_dir = os.path.join(freq_dir, var)
            if os.path.isdir(var_dir) and var in FAMILIES["GCM"].variables:
                found.setdefault(var, {})[freq] = var_dir

    if not found:
        raise FileNotFoundError(f"No day/ or month/ variable directories under {experiment_dir}")

    sources = {}
    for var, by_freq in found.items():
        freq = prefer if prefer in by_freq else next(iter(by_freq))
        sources[var] = (freq, by_freq[freq])
    return sources


def extract_gcm(config: ProjectConfig, site: Site, gcm: str, experiment: str) -> pd.DataFrame:
    """Assemble the daily table of one GCM experiment for one site."""
    family = FAMILIES["GCM"]
    settings = config.experiment_settings[experiment]
    experiment_dir = os.path.join(config.gcm_dir, gcm, experiment)
    if not os.path.isdir(experiment_dir):
        raise FileNotFoundError(f"GCM experiment directory not found: {experiment_dir}")

    sources = gcm_variable_sources(experiment_dir, settings.prefer)
    tag = f"{gcm}.{settings.tag}"
    log.info("extracting", site=site.name, dataset=tag,
             variables=",".join(f"{v}:{f}" for v, (f, _) in sources.items()))

    series = []
    for var, (freq, var_dir) in sources.items():
        for path in list_archive_files(var_dir):
            series.extend(extract_file(path, {var: family.variables[var]}, site.lat, site.lon, freq,
                                       label_format=family.label_format))
    return assemble(tag, series, family)


def _datasets(config: ProjectConfig):
    """(output prefix, label, extractor args) for every configured dataset."""
    for name in config.reanalysis:
        yield name, name, (extract_reanalysis, name)
    for gcm in config.gcms:
        for experiment in config.experiments:
            yield f"{gcm}_{experiment}", f"{gcm}.{config.experiment_settings[experiment].tag}", \
                (extract_gcm, gcm, experiment)


def extract_site(config: ProjectConfig, site: Site, overwrite: bool = False) -> SiteResult:
    """Extract every configured dataset for ``site`` and write one CSV per dataset."""
    result = SiteResult(site.name)
    out_dir = config.site_output_dir(site)
    slog = log.bind(site=site.name)

    for prefix, label, (func, *args) in _datasets(config):
        done = existing_output(out_dir, prefix)
        if done and not overwrite:
            slog.info("output_exists", dataset=label, path=done)
            result.skipped.append(label)
            continue
        try:
            table = func(config, site, *args)
            first, last = year_range(table)
            path = write_table(table, os.path.join(out_dir, output_name(prefix, first, last)))
            if done and os.path.abspath(done) != os.path.abspath(path):
                os.remove(done)
        except PointMetError as err:
            err.add_context(site=site.name, dataset=label)
            slog.error("dataset_failed", dataset=label, error=type(err).__name__, detail=str(err))
            result.failures[label] = str(err)
            continue
        except OSError as err:
            slog.error("dataset_failed", dataset=label, error=type(err).__name__, detail=str(err))
            result.failures[label] = f"{type(err).__name__}: {err}"
            continue
        slog.info("output_written", dataset=label, path=path, rows=len(table))
        result.written.append(path)
    return result


def _extract_site_worker(args) -> SiteResult:
    config, site, overwrite = args
    return extract_site(config, site, overwrite=overwrite)


def run_sites(config: ProjectConfig, sites: list[str] | None = None, workers: int = 1,
              overwrite: bool = False) -> list[SiteResult]:
    """Run :func:`extract_site` for the named sites (default: all configured).

    With ``workers > 1`` each site runs in its own process. Results come
    back in site order either way.
    """
    selected = [config.get_site(s) for s in sites] if sites else list(config.sites)
    args = [(config, site, overwrite) for site in selected]

    results = []
    if workers <= 1 or len(args) <= 1:
        for a in tqdm(args, desc="Sites (serial)", total=len(args)):
            results.append(_extract_site_worker(a))
    else:
        with ProcessPoolExecutor(max_workers=workers) as ex:
            for res in tqdm(ex.map(_extract_site_worker, args), desc="Sites (parallel)", total=len(args)):
                results.append(res)

    n_failed = sum(len(r.failures) for r in results)
    log.info("run_complete", sites=len(results), written=sum(len(r.written) for r in results),
             skipped=sum(len(r.skipped) for r in results), failed=n_failed)
    return results


# -----------------------------------------------------------------------------
# Summaries
# -----------------------------------------------------------------------------

def summarize_hourly(path: str, out_dir: str | None = None) -> tuple[str, str]:
    """Write ``<stem>_daily.csv`` and ``<stem>_monthly.csv`` for an hourly table.

    The table is split by year and each year summarized on its own; the
    outputs stack the years in order. Every year must be complete: a partial
    year raises IrregularYearError and nothing is written.
    """
    table = read_hourly_table(path)
    name = os.path.basename(path)
    stem = os.path.splitext(name)[0]
    out_dir = out_dir or os.path.dirname(os.path.abspath(path))

    daily_parts, monthly_parts = [], []
    for year, part in split_years(table):
        try:
            daily = daily_from_hourly(part)
            monthly = monthly_from_daily(daily)
        except PointMetError as err:
            raise err.add_context(file=name, year=year)
        daily_parts.append(daily)
        monthly_parts.append(monthly)

    daily_path = write_table(pd.concat(daily_parts, ignore_index=True),
                             os.path.join(out_dir, f"{stem}_daily.csv"))
    monthly_path = write_table(pd.concat(monthly_parts, ignore_index=True),
                               os.path.join(out_dir, f"{stem}_monthly.csv"))
    log.info("summary_written", file=name, years=len(daily_parts), daily=daily_path,
             monthly=monthly_path)
    return daily_path, monthly_path


if __name__ == '__main__':
    pass
# ========================= EOF ====================================================================
