"""Project configuration read from a TOML file.

Example::

    project = "paleon"
    root = "~/met_ensembles"

    [paths]
    ldas = "{root}/raw/LDAS"
    cruncep = "{root}/raw/CRUNCEP"
    gcm = "{root}/raw/GCM"
    output = "{root}/{project}/sites"

    [datasets]
    reanalysis = ["NLDAS", "CRUNCEP"]
    gcms = ["MIROC-ESM", "MPI-ESM-P"]
    experiments = ["p1000", "historical"]

    [experiments.historical]
    tag = "hist"
    prefer = "month"

    [[sites]]
    name = "HARVARD"
    lat = 42.54
    lon = -72.18

    [logging]
    level = "INFO"
    format = "console"

Strings may reference ``{root}``, ``{project}`` and any other key already
resolved (e.g. ``{gcm}`` after ``paths.gcm``); a leading ``~`` is expanded.
"""

import json
import os
from dataclasses import dataclass

import toml

from pointmet.errors import TimestampError
from pointmet.extraction.families import FAMILIES, REANALYSIS_FAMILIES, get_family
from pointmet.extraction.timestamps import DAILY, MONTHLY, normalize_frequency


@dataclass(frozen=True)
class Site:
    name: str
    lat: float
    lon: float


@dataclass(frozen=True)
class ExperimentSettings:
    """Output tag and preferred frequency for one GCM experiment."""

    name: str
    tag: str
    prefer: str


DEFAULT_REANALYSIS = ["NLDAS", "CRUNCEP"]
DEFAULT_EXPERIMENTS = ["p1000", "historical"]

# Paleo runs archive most variables daily; historical runs favour the monthly set.
DEFAULT_EXPERIMENT_SETTINGS = {
    "p1000": ExperimentSettings("p1000", "p1000", DAILY),
    "past1000": ExperimentSettings("past1000", "p1000", DAILY),
    "historical": ExperimentSettings("historical", "hist", MONTHLY),
}


class ProjectConfig:
    def __init__(self):
        super().__init__()
        self.resolved_config = {}
        self.project_name = None
        self.root_path = None
        self.conf_file_path = None

        # Paths
        self.paths = {}
        self.ldas_dir = None
        self.cruncep_dir = None
        self.gcm_dir = None
        self.output_dir = None

        # Datasets
        self.reanalysis = []
        self.gcms = []
        self.experiments = []
        self.experiment_settings = {}

        # Sites
        self.sites = []

        # Runtime
        self.workers = 1
        self.overwrite = False
        self.log_level = "INFO"
        self.log_format = "console"

    def read_config(self, conf_file_path, project_root_override=None):
        with open(conf_file_path, 'r') as f:
            raw_config = toml.load(f)

        self.conf_file_path = conf_file_path
        self.project_name = raw_config.get('project')
        toml_root_path = raw_config.get('root')

        if project_root_override:
            self.root_path = os.path.expanduser(project_root_override)
        elif toml_root_path:
            self.root_path = os.path.expanduser(toml_root_path)
        else:
            self.root_path = os.path.dirname(os.path.abspath(conf_file_path))

        base_format_vars = {
            'root': self.root_path,
            'project': self.project_name,
        }
        self.resolved_config = self._resolve_paths(raw_config, base_format_vars)

        paths_conf = self.resolved_config.get('paths', {})
        datasets_conf = self.resolved_config.get('datasets', {})
        experiments_conf = self.resolved_config.get('experiments', {})
        runtime_conf = self.resolved_config.get('runtime', {})
        logging_conf = self.resolved_config.get('logging', {})

        self.paths = dict(paths_conf)
        self.ldas_dir = paths_conf.get('ldas')
        self.cruncep_dir = paths_conf.get('cruncep')
        self.gcm_dir = paths_conf.get('gcm')
        self.output_dir = paths_conf.get('output')
        if not self.output_dir:
            raise ValueError('Missing required paths.output in config TOML')

        self.reanalysis = [get_family(n).name for n in datasets_conf.get('reanalysis', DEFAULT_REANALYSIS)]
        bad = [n for n in self.reanalysis if n not in REANALYSIS_FAMILIES]
        if bad:
            raise ValueError(f'datasets.reanalysis lists non-reanalysis families: {bad}')
        self.gcms = list(datasets_conf.get('gcms', []))
        self.experiments = list(datasets_conf.get('experiments', DEFAULT_EXPERIMENTS))
        self.experiment_settings = {
            name: self._experiment(name, experiments_conf.get(name, {})) for name in self.experiments
        }

        missing_dirs = [f'paths.{FAMILIES[n].path_key}' for n in self.reanalysis if not self.family_dir(n)]
        if self.gcms and not self.gcm_dir:
            missing_dirs.append('paths.gcm')
        if missing_dirs:
            raise ValueError(f'Missing required {", ".join(sorted(set(missing_dirs)))} in config TOML')

        self.sites = [self._site(s) for s in self.resolved_config.get('sites', [])]
        if not self.sites:
            raise ValueError('Config TOML defines no [[sites]]')
        names = [s.name for s in self.sites]
        if len(set(names)) != len(names):
            raise ValueError(f'Duplicate site names in config TOML: {names}')

        self.workers = int(runtime_conf.get('workers', 1))
        self.overwrite = bool(runtime_conf.get('overwrite', False))
        self.log_level = logging_conf.get('level', 'INFO')
        self.log_format = logging_conf.get('format', 'console')

    def family_dir(self, family_name):
        """Archive root for a reanalysis family: ``paths.<family>`` or its shared path key."""
        family = get_family(family_name)
        return self.paths.get(family.name.lower()) or self.paths.get(family.path_key)

    def site_output_dir(self, site):
        return os.path.join(self.output_dir, site.name)

    def get_site(self, name):
        for site in self.sites:
            if site.name.upper() == name.upper():
                return site
        raise KeyError(f"Site '{name}' not in config; known: {[s.name for s in self.sites]}")

    @staticmethod
    def _site(entry):
        missing = [k for k in ('name', 'lat', 'lon') if k not in entry]
        if missing:
            raise ValueError(f'[[sites]] entry {entry} is missing {missing}')
        return Site(str(entry['name']), float(entry['lat']), float(entry['lon']))

    @staticmethod
    def _experiment(name, entry):
        default = DEFAULT_EXPERIMENT_SETTINGS.get(name, ExperimentSettings(name, name, DAILY))
        raw = entry.get('prefer', default.prefer)
        try:
            prefer = normalize_frequency(raw)
        except TimestampError:
            prefer = raw
        if prefer not in (DAILY, MONTHLY):
            raise ValueError(f'experiments.{name}.prefer must be "day" or "month", got {prefer!r}')
        return ExperimentSettings(name, entry.get('tag', default.tag), prefer)

    def __str__(self):
        return (
            f"ProjectConfig:\n"
            f"  Project Name: {self.project_name}\n"
            f"  Root Path: {self.root_path}\n"
            f"  Output Directory: {self.output_dir}\n"
            f"  Reanalysis: {', '.join(self.reanalysis) or '-'}\n"
            f"  GCMs: {', '.join(self.gcms) or '-'}\n"
            f"  Experiments: {', '.join(self.experiments) or '-'}\n"
            f"  Sites: {len(self.sites)}"
        )

    @staticmethod
    def _resolve_paths(raw_config, base_format_vars):
        """Substitute ``{key}`` placeholders until nothing changes, then expand ``~``."""
        config = json.loads(json.dumps(raw_config))
        format_vars = {k: (os.path.expanduser(v) if isinstance(v, str) else v)
                       for k, v in base_format_vars.items()}

        def resolve(container, key):
            value = container[key]
            if not isinstance(value, str):
                return 0
            formatted = value
            if '{' in value:
                try:
                    formatted = value.format(**format_vars)
                except (KeyError, IndexError):
                    return 0
                container[key] = formatted
            if isinstance(key, str) and '{' not in formatted:
                format_vars.setdefault(key, formatted)
            return int(formatted != value)

        def walk(node):
            changed = 0
            items = node.items() if isinstance(node, dict) else enumerate(node)
            for key, value in list(items):
                if isinstance(value, (dict, list)):
                    changed += walk(value)
                else:
                    changed += resolve(node, key)
            return changed

        for _ in range(10):
            if walk(config) == 0:
                break

        def expand(node):
            items = node.items() if isinstance(node, dict) else enumerate(node)
            for key, value in list(items):
                if isinstance(value, (dict, list)):
                    expand(value)
                elif isinstance(value, str) and value.startswith('~'):
                    node[key] = os.path.expanduser(value)

        expand(config)
        return config


if __name__ == '__main__':
    pass
# ========================= EOF ====================================================================
