import argparse
import os
import sys

from pointmet import __version__
from pointmet.config import ProjectConfig
from pointmet.errors import PointMetError
from pointmet.logging import configure_logging, get_logger
from pointmet.pipeline import run_sites, summarize_hourly, write_table
from pointmet.summaries.aggregate import read_hourly_table
from pointmet.summaries.training import build_training_table

log = get_logger("cli")


def _parse_sites_arg(sites: str | None) -> list[str] | None:
    if not sites:
        return None
    parts = [s.strip() for s in sites.split(",") if s.strip()]
    return parts or None


def _configure(args: argparse.Namespace, config: ProjectConfig | None = None) -> None:
    level = args.log_level or (config.log_level if config else None) or "INFO"
    fmt = args.log_format or (config.log_format if config else None) or "console"
    configure_logging(level=level, format=fmt)


def cmd_extract(args: argparse.Namespace) -> int:
    config = ProjectConfig()
    try:
        config.read_config(args.config, project_root_override=args.root)
    except (ValueError, OSError) as e:
        print(f"Failed to read config {args.config}: {e}", file=sys.stderr)
        return 1
    if args.out_dir:
        config.output_dir = os.path.abspath(args.out_dir)
    _configure(args, config)
    log.info("config_loaded", path=args.config, sites=len(config.sites),
             reanalysis=",".join(config.reanalysis), gcms=",".join(config.gcms))

    workers = args.workers if args.workers is not None else config.workers
    overwrite = args.overwrite or config.overwrite
    try:
        results = run_sites(config, sites=_parse_sites_arg(args.sites), workers=workers,
                            overwrite=overwrite)
    except KeyError as e:
        print(f"Unknown site: {e}", file=sys.stderr)
        return 1

    failed = [r for r in results if not r.ok]
    for r in results:
        status = "ok" if r.ok else "FAILED"
        print(f"{r.site}: {status} written={len(r.written)} skipped={len(r.skipped)}")
        for dataset, msg in r.failures.items():
            print(f"  {dataset}: {msg}")
    return 1 if failed else 0


def cmd_summarize(args: argparse.Namespace) -> int:
    _configure(args)
    try:
        daily, monthly = summarize_hourly(args.hourly, out_dir=args.out_dir)
    except (PointMetError, OSError) as e:
        log.error("summarize_failed", path=args.hourly, error=type(e).__name__, detail=str(e))
        return 1
    print(daily)
    print(monthly)
    return 0


def cmd_training(args: argparse.Namespace) -> int:
    _configure(args)
    try:
        table = build_training_table(read_hourly_table(args.hourly), steps_per_day=args.steps_per_day)
        path = write_table(table, args.out)
    except (PointMetError, OSError) as e:
        log.error("training_failed", path=args.hourly, error=type(e).__name__, detail=str(e))
        return 1
    print(path)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pointmet",
        description="Point meteorology CLI: extract site tables -> summarize -> training tables",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level; defaults to [logging].level of the config, else INFO",
    )
    p.add_argument(
        "--log-format",
        default=None,
        choices=["console", "json", "simple"],
        help="Log format; defaults to [logging].format of the config, else console",
    )
    sub = p.add_subparsers(dest="command")

    # extract
    pe = sub.add_parser(
        "extract",
        help="Extract site tables from reanalysis and GCM archives",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        description="Writes one CSV per site and dataset (e.g. NLDAS_1980-2015.csv, MIROC-ESM_p1000_850-1849.csv).",
    )
    pe.add_argument("--config", required=True, help="Path to project TOML")
    pe.add_argument(
        "--root",
        default=None,
        help="Override the TOML 'root' used to resolve {root} in paths",
    )
    pe.add_argument(
        "--out-dir",
        default=None,
        help="Override paths.output; one sub-directory per site is created here",
    )
    pe.add_argument(
        "--sites",
        default=None,
        help="Comma-separated site names to restrict processing; default processes all sites",
    )
    pe.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of site worker processes; defaults to [runtime].workers, else 1",
    )
    pe.add_argument(
        "--overwrite", action="store_true", help="Re-extract datasets whose output already exists"
    )
    pe.set_defaults(func=cmd_extract)

    # summarize
    ps = sub.add_parser(
        "summarize",
        help="Daily and monthly summaries of an hourly site table",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        description="Writes <stem>_daily.csv and <stem>_monthly.csv; every year must be complete.",
    )
    ps.add_argument("hourly", help="Hourly site table (.csv from extract, or .nc)")
    ps.add_argument("--out-dir", default=None, help="Output directory; defaults to the input's directory")
    ps.set_defaults(func=cmd_summarize)

    # training
    pt = sub.add_parser(
        "training",
        help="Hourly table enriched with daily, lag and preview predictors",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        description="Builds the training table consumed by sub-daily model fitting.",
    )
    pt.add_argument("hourly", help="Hourly site table (.csv from extract, or .nc)")
    pt.add_argument("--out", required=True, help="Output CSV path")
    pt.add_argument(
        "--steps-per-day",
        type=int,
        default=None,
        help="Native steps per day; inferred from the table when omitted",
    )
    pt.set_defaults(func=cmd_training)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if getattr(args, "version", False):
        print(__version__)
        return 0
    if not getattr(args, "func", None):
        parser.print_help()
        return 1
    return int(args.func(args))


if __name__ == "__main__":
    sys.exit(main())
