"""
Gate Configuration

Loads the auto-approval policy from YAML.

Example (config/gate.yaml):

    gate:
      auto_approve_threshold: 0.95
      max_auto_approve_amount: 500.0
      require_po_or_boat_name: false

Keys left out keep their defaults; unknown keys are an error so a typo
can't silently loosen the policy.
"""

from pathlib import Path
from typing import Any, Optional, Union

import yaml
from loguru import logger

from .decision.gate import GateConfig
from .errors import ConfigError

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / 'config' / 'gate.yaml'

_GATE_KEYS = {'auto_approve_threshold', 'max_auto_approve_amount', 'require_po_or_boat_name'}


def parse_config(data: Any) -> GateConfig:
    """
    Build a GateConfig from already-parsed YAML.

    Args:
        data: Top-level mapping (may be None for an empty file)

    Returns:
        GateConfig

    Raises:
        ConfigError: If the structure or values are invalid
    """
    if data is None:
        return GateConfig()
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a mapping")

    gate = data.get('gate')
    if gate is None:
        gate = {}
    elif not isinstance(gate, dict):
        raise ConfigError("'gate' section must be a mapping")

    unknown = set(gate) - _GATE_KEYS
    if unknown:
        raise ConfigError(
            f"Unknown gate settings: {', '.join(sorted(map(str, unknown)))}",
            details={'unknown': sorted(map(str, unknown))},
        )

    return GateConfig(**gate)


def load_config(config_path: Optional[Union[str, Path]] = None) -> GateConfig:
    """
    Load gate policy from a YAML file.

    Args:
        config_path: Path to YAML file (defaults to config/gate.yaml,
            falling back to built-in defaults if that file is absent)

    Returns:
        GateConfig

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    if config_path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            logger.warning(f"Config file not found: {DEFAULT_CONFIG_PATH} - using built-in defaults")
            return GateConfig()
        path = DEFAULT_CONFIG_PATH
    else:
        path = Path(config_path)

    logger.info(f"Loading gate configuration from: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    config = parse_config(data)
    logger.debug(f"Gate policy: {config.to_dict()}")
    return config
