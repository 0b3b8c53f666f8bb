"""
Configuration file support for the PathConcord CLI.

Supports YAML and JSON config files with CLI argument override.

Config layout::

    fdr_cutoff: 0.05
    reference_method: ssnappy
    fold_identifiers: true
    concordance_denominator: comparable
    output: results/reconciliation
    inputs:
      gsea: results/fgsea.tsv
      fry: results/fry.tsv
      spia: results/spia.tsv
      ssnappy: results/ssnappy_group.tsv
      de: results/de_genes.tsv
    formats:
      gsea:
        significance_col: FDR
    normalization:
      gsea:
        patterns: ["REACTOME_(?P<id>.+)"]
        template: "REACTOME_{id}"
"""

import json
from argparse import Namespace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from pathconcord.io.formats import PRESET_FOR_METHOD, PRESETS, ResultFormat
from pathconcord.reconcile.normalize import DEFAULT_RULES, RuleTable
from pathconcord.reconcile.pipeline import ReconcileConfig
from pathconcord.reconcile.types import MethodName

INPUT_KEYS = [m.value for m in MethodName] + ["de"]

# Short flags that map onto long argument names
SHORT_TO_LONG = {
    'o': 'output',
    'c': 'config',
}


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
        >>> config = load_config(Path("reconcile.yaml"))
        >>> print(config['fdr_cutoff'])
        0.05
    """
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

    if config.get('fold_identifiers') is not None:
        config['fold_identifiers'] = parse_bool(config['fold_identifiers'], 'fold_identifiers')

    unknown_inputs = set(config.get('inputs') or {}) - set(INPUT_KEYS)
    if unknown_inputs:
        raise ValueError(
            f"Unknown input key(s) in config: {sorted(unknown_inputs)}. "
            f"Expected: {INPUT_KEYS}"
        )

    return config


def parse_bool(value: Any, name: str) -> bool:
    """
    Interpret a boolean config value.

    Accepts real booleans, the integers 1/0 and the strings true/false,
    yes/no, on/off, 1/0 (case-insensitive).

    Raises:
        ValueError: For anything else
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ('true', 'yes', 'on', '1'):
            return True
        if text in ('false', 'no', 'off', '0'):
            return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def _merge_value(cli_value: Any, config_value: Any, was_explicitly_set: bool) -> Any:
    """
    Merge a single config value with a CLI argument.

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


def explicit_arg_names(cli_args: Optional[List[str]]) -> set:
    """Destination names of the arguments present on the command line."""
    explicit = set()
    for arg in cli_args or []:
        if arg.startswith('--'):
            name = arg[2:].split('=', 1)[0].replace('-', '_')
            # --no-X negates boolean flag X
            if name.startswith('no_'):
                name = name[3:]
            explicit.add(name)
        elif arg.startswith('-') and len(arg) == 2 and arg[1] in SHORT_TO_LONG:
            explicit.add(SHORT_TO_LONG[arg[1]])
    return explicit


def merge_config_with_args(
    config: Dict[str, Any], args: Namespace, cli_args: Optional[List[str]] = None
) -> Namespace:
    """
    Merge config file values with CLI arguments.

    Priority (highest to lowest):
    1. Explicitly provided CLI arguments
    2. Config file values
    3. CLI argument defaults

    Parameters:
        config: Configuration dictionary from load_config()
        args: Parsed CLI arguments (argparse.Namespace)
        cli_args: Raw CLI arguments list (for detecting explicit values).
                  If None, assumes all args are defaults

    Returns:
        New Namespace with merged values
    """
    explicit = explicit_arg_names(cli_args)
    merged = Namespace(**vars(args))

    scalar_keys = {
        'fdr_cutoff': 'fdr',
        'reference_method': 'reference',
        'fold_identifiers': 'fold_identifiers',
        'concordance_denominator': 'concordance_denominator',
        'output': 'output',
    }
    for config_key, arg_name in scalar_keys.items():
        if config_key not in config:
            continue
        value = config[config_key]
        if arg_name == 'output' and value is not None:
            value = Path(value)
        setattr(merged, arg_name, _merge_value(
            getattr(merged, arg_name, None), value, arg_name in explicit
        ))

    inputs = config.get('inputs') or {}
    for key in INPUT_KEYS:
        if key in inputs:
            value = Path(inputs[key]) if inputs[key] is not None else None
            setattr(merged, key, _merge_value(getattr(merged, key, None), value, key in explicit))

    return merged


def build_rule_table(config: Dict[str, Any]) -> RuleTable:
    """Default normalization rules with any config overrides layered on top."""
    entries = config.get('normalization') or {}
    if not entries:
        return DEFAULT_RULES
    return RuleTable.from_config(entries, base=DEFAULT_RULES)


def build_formats(config: Dict[str, Any]) -> Dict[MethodName, ResultFormat]:
    """Loader presets per method with config column overrides applied."""
    overrides = config.get('formats') or {}
    formats: Dict[MethodName, ResultFormat] = {}
    for method, preset in PRESET_FOR_METHOD.items():
        fmt = PRESETS[preset]
        method_overrides = overrides.get(method.value)
        if method_overrides:
            fmt = fmt.with_overrides(**method_overrides)
        formats[method] = fmt
    unknown = set(overrides) - {m.value for m in MethodName}
    if unknown:
        raise ValueError(f"Unknown method(s) in formats section: {sorted(unknown)}")
    return formats


def build_reconcile_config(args: Namespace, config: Dict[str, Any]) -> ReconcileConfig:
    """ReconcileConfig from merged CLI arguments and the config file."""
    return ReconcileConfig(
        fdr_cutoff=args.fdr,
        reference_method=MethodName.parse(args.reference),
        fold_identifiers=parse_bool(args.fold_identifiers, 'fold_identifiers'),
        concordance_denominator=args.concordance_denominator,
        rules=build_rule_table(config),
    )
