"""
CLI module for the bin packing GA.

Handles run configuration loading, validation, and dispatching.
"""

from typing import Dict, Any
from pathlib import Path
import yaml

from .packing import PACKING_HEURISTICS
from .mutation import REINSERT_HEURISTICS
from .io_utils import load_config, default_ga_config_path


class ConfigValidationError(Exception):
    """Raised when run or GA configuration is invalid."""
    pass


def load_run_config(config_path: str) -> Dict[str, Any]:
    """
    Load run configuration from YAML file.

    Args:
        config_path: Path to run configuration YAML file

    Returns:
        Dictionary containing run configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigValidationError: If config is invalid
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML in configuration file: {e}")

    if config is None:
        raise ConfigValidationError("Configuration file is empty")

    return config


def validate_run_config(config: Dict[str, Any]) -> None:
    """
    Validate run configuration structure.

    Args:
        config: Run configuration dictionary

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    for field in ['input', 'output']:
        if field not in config:
            raise ConfigValidationError(f"Missing required field: '{field}'")
        if not isinstance(config[field], dict):
            raise ConfigValidationError(f"'{field}' must be a dictionary")

    if 'instances' not in config['input']:
        raise ConfigValidationError("Missing required field: 'input.instances'")

    instances_path = Path(config['input']['instances'])
    if not instances_path.exists():
        raise ConfigValidationError(f"Instance file not found: {instances_path}")

    names = config['input'].get('names')
    if names is not None and not isinstance(names, list):
        raise ConfigValidationError("'input.names' must be a list of instance names")

    if 'root' not in config['output']:
        raise ConfigValidationError("Missing required field: 'output.root'")

    seed = config.get('random_seed')
    if seed is not None and (not isinstance(seed, int) or seed < 0):
        raise ConfigValidationError(f"'random_seed' must be a non-negative integer, got: {seed}")

    if 'ga_config' in config and 'ga' in config:
        raise ConfigValidationError(
            "Run config cannot have both 'ga_config' and 'ga'. Please specify only one."
        )

    if 'ga_config' in config and not Path(config['ga_config']).exists():
        raise ConfigValidationError(f"GA config not found: {config['ga_config']}")

    if 'ga' in config and not isinstance(config['ga'], dict):
        raise ConfigValidationError("'ga' must be a dictionary")


def _require_int(config: Dict[str, Any], key: str, minimum: int, label: str = None) -> None:
    label = label or key
    if key in config:
        value = config[key]
        if not isinstance(value, int) or isinstance(value, bool) or value < minimum:
            raise ConfigValidationError(f"'{label}' must be an integer >= {minimum}, got: {value}")


def _require_probability(config: Dict[str, Any], key: str, label: str = None) -> None:
    label = label or key
    if key in config:
        value = config[key]
        if not isinstance(value, (int, float)) or not 0.0 <= value <= 1.0:
            raise ConfigValidationError(f"'{label}' must be in [0, 1], got: {value}")


GA_CONFIG_SECTIONS = ('selection', 'replacement', 'crossover', 'mutation', 'fitness', 'initialization')


def _normalize_sections(config: Dict[str, Any]) -> None:
    """Replace empty sections (a bare `selection:` loads as None) with {}."""
    for name in GA_CONFIG_SECTIONS:
        if name in config and config[name] is None:
            config[name] = {}
        elif not isinstance(config.get(name, {}), dict):
            raise ConfigValidationError(f"'{name}' must be a dictionary, got: {config[name]!r}")


def validate_ga_config(config: Dict[str, Any]) -> None:
    """
    Validate GA configuration values. Every key is optional.

    Empty sections are replaced with {} in place, so the operators can read
    them with config.get(section, {}).

    Args:
        config: GA configuration dictionary

    Raises:
        ConfigValidationError: If a value is out of range or a strategy
            name is unknown
    """
    _normalize_sections(config)

    _require_int(config, 'population_size', 2)
    _require_int(config, 'max_generations', 0)
    _require_int(config, 'offspring_per_mating', 1)
    _require_int(config, 'elitism', 0)
    _require_int(config, 'workers', 1)
    _require_int(config, 'log_interval', 0)
    _require_probability(config, 'mutation_rate')
    _require_probability(config, 'crossover_rate')

    if config.get('stall_generations') is not None:
        _require_int(config, 'stall_generations', 1)

    if config.get('elitism', 0) >= config.get('population_size', 50):
        raise ConfigValidationError("'elitism' must be smaller than 'population_size'")

    selection = config.get('selection', {})
    if selection.get('method', 'tournament') not in ('uniform', 'tournament'):
        raise ConfigValidationError(f"Unknown selection method: {selection.get('method')}")
    _require_int(selection, 'tournament_size', 1, 'selection.tournament_size')

    replacement = config.get('replacement', {})
    if replacement.get('scheme', 'mgg') not in ('mgg', 'generational'):
        raise ConfigValidationError(f"Unknown replacement scheme: {replacement.get('scheme')}")

    crossover = config.get('crossover', {})
    ratio = crossover.get('inheritance_ratio', 0.5)
    if not isinstance(ratio, (int, float)) or not 0.0 < ratio <= 1.0:
        raise ConfigValidationError(f"'crossover.inheritance_ratio' must be in (0, 1], got: {ratio}")
    if crossover.get('repair_heuristic', 'first_fit_decreasing') not in PACKING_HEURISTICS:
        raise ConfigValidationError(
            f"Unknown repair heuristic: {crossover.get('repair_heuristic')}"
        )
    _require_int(crossover, 'max_retries', 0, 'crossover.max_retries')

    mutation = config.get('mutation', {})
    _require_int(mutation, 'min_bins_to_disturb', 1, 'mutation.min_bins_to_disturb')
    _require_int(mutation, 'max_bins_to_disturb', 1, 'mutation.max_bins_to_disturb')
    if mutation.get('min_bins_to_disturb', 2) > mutation.get('max_bins_to_disturb', 3):
        raise ConfigValidationError(
            "'mutation.min_bins_to_disturb' must not exceed 'mutation.max_bins_to_disturb'"
        )
    if mutation.get('reinsert_heuristic', 'best_fit') not in REINSERT_HEURISTICS:
        raise ConfigValidationError(
            f"Unknown reinsert heuristic: {mutation.get('reinsert_heuristic')}"
        )

    fitness = config.get('fitness', {})
    if fitness.get('method', 'composite') not in ('composite', 'bin_count'):
        raise ConfigValidationError(f"Unknown fitness method: {fitness.get('method')}")
    weights = fitness.get('weights') or {}
    if not isinstance(weights, dict):
        raise ConfigValidationError(f"'fitness.weights' must be a dictionary, got: {weights!r}")
    for name, weight in weights.items():
        if name not in ('bins', 'waste', 'overflow'):
            raise ConfigValidationError(f"Unknown fitness weight: {name}")
        if not isinstance(weight, (int, float)) or weight < 0:
            raise ConfigValidationError(f"Fitness weight '{name}' must be >= 0, got: {weight}")

    _require_probability(
        config.get('initialization', {}),
        'random_first_fit_fraction',
        'initialization.random_first_fit_fraction'
    )


def resolve_ga_config(run_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    GA configuration for a run: inline 'ga' section, 'ga_config' path, or
    the packaged default.
    """
    if 'ga' in run_config:
        return dict(run_config['ga'])
    return load_config(run_config.get('ga_config', default_ga_config_path()))


def run_from_config(config_path: str) -> list:
    """
    Load run configuration and solve every instance it names.

    This is the main entry point called by ga_cli.py.

    Args:
        config_path: Path to run configuration YAML file

    Returns:
        List of per-instance summaries

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigValidationError: If config is invalid
    """
    print(f"Loading configuration from: {config_path}")
    config = load_run_config(config_path)

    print("Validating configuration...")
    validate_run_config(config)

    ga_config = resolve_ga_config(config)
    validate_ga_config(ga_config)

    from .orchestration import run_instances
    summaries = run_instances(config, ga_config)

    print("\n✅ Run completed successfully!")
    return summaries
