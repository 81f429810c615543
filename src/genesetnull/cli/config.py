"""
Configuration file support for the genesetnull CLI.

Supports YAML and JSON config files with CLI argument override.
"""

import json
from argparse import Namespace
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from genesetnull.stats.enrichment_tests import DEFAULT_UNIVERSE_SIZE

SAMPLE_NORM_METHODS = ['rank', 'log_rank', 'log', 'custom']
REQUIRED_ARGS = ['expression', 'clinical', 'target_genes', 'gene_sets']


@dataclass
class GeneSetSource:
    """A gene set file and the title used in outputs."""
    path: Path
    title: Optional[str] = None


@dataclass
class OverlapSpec:
    """One hypergeometric overlap to report alongside a run."""
    query: Path
    reference: Path
    n_universe: int = DEFAULT_UNIVERSE_SIZE
    universe: Optional[Path] = None


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load configuration from YAML or JSON file.

    Parameters:
        config_path: Path to config file (.yaml, .yml, or .json)

    Returns:
        Dictionary with configuration values

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If file format is unsupported or invalid

    Examples:
        >>> config = load_config(Path("tgfb.yaml"))
        >>> print(config['target_genes'])
        ['TGFB1', 'TGFB2', 'TGFB3']
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()

    try:
        with open(config_path, 'r') as f:
            if suffix in ('.yaml', '.yml'):
                config = yaml.safe_load(f)
            elif suffix == '.json':
                config = json.load(f)
            else:
                raise ValueError(
                    f"Unsupported config format: {suffix}. "
                    f"Use .yaml, .yml, or .json"
                )
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}")

    if config is None:
        return {}

    if not isinstance(config, dict):
        raise ValueError("Config file must contain a dictionary/mapping at top level")

    return config


def _merge_value(cli_value: Any, config_value: Any, was_explicitly_set: bool) -> Any:
    """
    Merge a single config value with CLI argument.

    Rules:
    - CLI args ALWAYS override config if explicitly set
    - If CLI arg not set, use config value
    - If neither set, keep CLI default
    """
    if was_explicitly_set:
        return cli_value
    if config_value is not None:
        return config_value
    return cli_value


_SHORT_TO_LONG = {
    'c': 'config',
    'e': 'expression',
    'g': 'target_genes',
    'o': 'output',
    's': 'gene_sets',
}

# Flags whose argparse dest differs from the flag name
_FLAG_DESTS = {
    'no_plots': 'plots',
    'no_header': 'has_header',
}


def explicit_arg_names(cli_args: Optional[List[str]]) -> set:
    """Dest names of the arguments the user typed on the command line."""
    explicit = set()
    for arg in cli_args or []:
        if arg.startswith('--'):
            name = arg[2:].split('=', 1)[0].replace('-', '_')
            explicit.add(_FLAG_DESTS.get(name, name))
        elif arg.startswith('-') and len(arg) == 2 and arg[1] in _SHORT_TO_LONG:
            explicit.add(_SHORT_TO_LONG[arg[1]])
    return explicit


def parse_gene_set_sources(entries: List[Any]) -> List[GeneSetSource]:
    """Config ``gene_sets`` entries: ``{path, title}`` mappings or bare paths."""
    sources = []
    for entry in entries:
        if isinstance(entry, dict):
            sources.append(GeneSetSource(path=Path(entry['path']), title=entry.get('title')))
        else:
            sources.append(GeneSetSource(path=Path(entry)))
    return sources


def parse_overlap_specs(entries: List[Dict[str, Any]]) -> List[OverlapSpec]:
    return [
        OverlapSpec(
            query=Path(entry['query']),
            reference=Path(entry['reference']),
            n_universe=int(entry.get('n_universe', DEFAULT_UNIVERSE_SIZE)),
            universe=Path(entry['universe']) if entry.get('universe') else None,
        )
        for entry in entries
    ]


def merge_config_with_args(config: Dict[str, Any], args: Namespace, cli_args: Optional[List[str]] = None) -> Namespace:
    """
    Merge config file values with CLI arguments.

    Priority (highest to lowest):
    1. Explicitly provided CLI arguments
    2. Config file values
    3. CLI argument defaults

    Parameters:
        config: Configuration dictionary from load_config()
        args: Parsed CLI arguments (argparse.Namespace)
        cli_args: Raw CLI arguments list (for detecting explicit values)
                  If None, assumes all args are defaults

    Returns:
        Updated Namespace with merged values

    Examples:
        >>> config = load_config(Path("tgfb.yaml"))
        >>> args = parser.parse_args(["run", "--n-random", "10"])
        >>> merged = merge_config_with_args(config, args, ["--n-random", "10"])
        >>> # n_random from CLI, everything else from config
    """
    explicit_args = explicit_arg_names(cli_args)
    merged = Namespace(**vars(args))

    # === Top-level simple arguments ===
    path_keys = ('expression', 'clinical', 'output', 'plot_dir')
    simple_keys = (
        'expression', 'clinical', 'cohort_column', 'cohorts', 'target_genes',
        'n_random', 'seed', 'expression_threshold', 'n_jobs', 'output',
        'plot_dir', 'plots', 'fdr',
    )
    for key in simple_keys:
        if key not in config:
            continue
        config_value = config[key]
        if config_value is not None and key in path_keys:
            config_value = Path(config_value)
        setattr(merged, key, _merge_value(getattr(merged, key, None), config_value, key in explicit_args))

    # === Gene sets ===
    if 'gene_sets' in config and 'gene_sets' not in explicit_args:
        merged.gene_sets = parse_gene_set_sources(config['gene_sets'] or [])
        merged.titles = None

    # === Scorer section ===
    scorer = config.get('scorer') or {}
    for key in ('sample_norm_method', 'alpha', 'threads'):
        if key in scorer:
            setattr(merged, key, _merge_value(getattr(merged, key, None), scorer[key], key in explicit_args))

    # === Overlap tests ===
    if 'overlaps' in config:
        merged.overlaps = parse_overlap_specs(config['overlaps'] or [])

    return merged


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate configuration structure and values.

    Parameters:
        config: Configuration dictionary

    Raises:
        ValueError: If configuration is invalid
    """
    for key in ('cohorts', 'target_genes', 'gene_sets', 'overlaps'):
        if key in config and config[key] is not None and not isinstance(config[key], list):
            raise ValueError(f"'{key}' must be a list, got: {type(config[key]).__name__}")

    if 'n_random' in config:
        n_random = config['n_random']
        if not isinstance(n_random, int) or isinstance(n_random, bool) or n_random <= 0:
            raise ValueError(f"n_random must be a positive integer, got: {n_random}")

    if 'n_jobs' in config:
        n_jobs = config['n_jobs']
        if not isinstance(n_jobs, int) or isinstance(n_jobs, bool) or n_jobs == 0:
            raise ValueError(f"n_jobs must be a non-zero integer, got: {n_jobs}")

    if 'expression_threshold' in config:
        threshold = config['expression_threshold']
        if not isinstance(threshold, (int, float)) or isinstance(threshold, bool):
            raise ValueError(f"expression_threshold must be a number, got: {threshold}")

    for entry in config.get('gene_sets') or []:
        if isinstance(entry, dict) and 'path' not in entry:
            raise ValueError(f"Gene set entry missing 'path': {entry}")

    for entry in config.get('overlaps') or []:
        if not isinstance(entry, dict) or 'query' not in entry or 'reference' not in entry:
            raise ValueError(f"Overlap entry needs 'query' and 'reference': {entry}")
        n_universe = entry.get('n_universe', DEFAULT_UNIVERSE_SIZE)
        if not isinstance(n_universe, int) or n_universe <= 0:
            raise ValueError(f"Overlap n_universe must be a positive integer, got: {n_universe}")

    scorer = config.get('scorer')
    if scorer is not None:
        if not isinstance(scorer, dict):
            raise ValueError("'scorer' must be a mapping")
        method = scorer.get('sample_norm_method')
        if method is not None and method not in SAMPLE_NORM_METHODS:
            raise ValueError(
                f"Invalid sample_norm_method '{method}'. "
                f"Choose from: {', '.join(SAMPLE_NORM_METHODS)}"
            )
        alpha = scorer.get('alpha')
        if alpha is not None and (not isinstance(alpha, (int, float)) or alpha < 0):
            raise ValueError(f"Scorer alpha must be a non-negative number, got: {alpha}")


def missing_required(args: Namespace) -> List[str]:
    """Required arguments still unset after the config merge."""
    return [name for name in REQUIRED_ARGS if not getattr(args, name, None)]
