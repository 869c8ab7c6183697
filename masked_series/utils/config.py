"""
Masked Series Utils - Configuration Management
===============================================

Configuration loading, validation, and merging utilities.

Features:
---------
1. YAML Loading
   - Load estimator configuration from YAML files
   - Environment variable substitution ${VAR:default}

2. Validation
   - Required sections
   - Component families
   - Optimizer tolerances
   - Confidence level and resampling settings

3. Merging
   - Override defaults with custom configs
   - Deep merge of nested sections

Configuration Structure:
------------------------
components:
  - family: exponential
  - family: weibull

optimizer:
  method: newton_raphson       # or gradient_ascent
  eps: 1.0e-8
  max_iterations: 200
  max_halvings: 50
  initial_step: 1.0

inference:
  alpha: 0.05

resampling:
  method: bootstrap            # or monte_carlo
  replicates: 200
  seed: null
  n_jobs: 1

Example:
--------
>>> from masked_series.utils import load_config, merge_configs
>>>
>>> config = load_config("config/default.yaml")
>>> validate_config(config)
>>>
>>> # Override specific values
>>> merged = merge_configs(config, {"optimizer": {"method": "gradient_ascent"}})

Author: Reliability Analytics Team
Date: October 19, 2026
"""

import copy
import os
import re
import yaml
from pathlib import Path
from typing import Dict, Any
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "default.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    "components": [
        {"family": "exponential"},
        {"family": "exponential"},
        {"family": "exponential"},
    ],
    "optimizer": {
        "method": "newton_raphson",
        "eps": 1e-8,
        "max_iterations": 200,
        "max_halvings": 50,
        "initial_step": 1.0,
    },
    "inference": {
        "alpha": 0.05,
    },
    "resampling": {
        "method": "bootstrap",
        "replicates": 200,
        "seed": None,
        "n_jobs": 1,
    },
}

VALID_FAMILIES = ["exponential", "weibull"]
VALID_OPTIMIZERS = ["newton_raphson", "gradient_ascent"]
VALID_RESAMPLING = ["monte_carlo", "bootstrap"]


class ConfigError(Exception):
    """Configuration error."""
    pass


_PLACEHOLDER = re.compile(r"\$\{(\w+)(?::([^}]*))?\}")


def load_config(config_path=DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """
    Read an estimator configuration from YAML.

    ``${VAR:default}`` placeholders are resolved from the environment.

    Args:
        config_path: YAML file (packaged defaults when omitted)

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If the file is missing, unreadable, empty or not YAML

    Example:
        >>> load_config()["optimizer"]["method"]
        'newton_raphson'
    """
    path = Path(config_path)
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    if raw is None:
        raise ConfigError(f"Empty config file: {path}")

    logger.info(f"Loaded estimator config from {path}")
    return _resolve_placeholders(raw)


def _expand(text: str) -> Any:
    expanded = _PLACEHOLDER.sub(lambda m: os.environ.get(m.group(1), m.group(2) or ""), text)
    if expanded == text or not _PLACEHOLDER.fullmatch(text):
        return expanded
    # A lone placeholder takes the YAML type of its value (n_jobs: 4, not "4")
    return yaml.safe_load(expanded) if expanded else None


def _resolve_placeholders(node: Any) -> Any:
    if isinstance(node, dict):
        return {key: _resolve_placeholders(value) for key, value in node.items()}
    if isinstance(node, list):
        return list(map(_resolve_placeholders, node))
    if isinstance(node, str):
        return _expand(node)
    return node


def validate_config(config: Dict[str, Any]) -> bool:
    """
    Validate configuration structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        True if valid

    Raises:
        ConfigError: If validation fails
    """
    required_keys = ["components", "optimizer", "inference"]

    for key in required_keys:
        if key not in config:
            raise ConfigError(f"Missing required key: {key}")

    _validate_components(config["components"])
    _validate_optimizer(config["optimizer"])
    _validate_inference(config["inference"])
    _validate_resampling(config.get("resampling", {}))

    logger.debug("Configuration validation passed")
    return True


def _validate_components(components: Any) -> None:
    """Validate component family list."""
    if not isinstance(components, list) or len(components) == 0:
        raise ConfigError("Components must be a non-empty list")

    for idx, comp in enumerate(components):
        if not isinstance(comp, dict) or "family" not in comp:
            raise ConfigError(f"Component {idx + 1} must define a family")
        if str(comp["family"]).lower() not in VALID_FAMILIES:
            raise ConfigError(
                f"Invalid component family: {comp['family']}. "
                f"Must be one of {VALID_FAMILIES}"
            )


def _validate_optimizer(optimizer: Dict[str, Any]) -> None:
    """Validate optimizer settings."""
    if not isinstance(optimizer, dict):
        raise ConfigError("Optimizer config must be a dictionary")

    method = optimizer.get("method", "newton_raphson")
    if method not in VALID_OPTIMIZERS:
        raise ConfigError(
            f"Invalid optimizer: {method}. Must be one of {VALID_OPTIMIZERS}"
        )

    for key in ("eps", "initial_step"):
        if key in optimizer and not float(optimizer[key]) > 0:
            raise ConfigError(f"Optimizer {key} must be positive")
    if int(optimizer.get("max_iterations", 1)) < 1:
        raise ConfigError("Optimizer max_iterations must be at least 1")
    if int(optimizer.get("max_halvings", 0)) < 0:
        raise ConfigError("Optimizer max_halvings must be non-negative")


def _validate_inference(inference: Dict[str, Any]) -> None:
    """Validate inference settings."""
    if not isinstance(inference, dict):
        raise ConfigError("Inference config must be a dictionary")

    alpha = float(inference.get("alpha", 0.05))
    if not (0 < alpha < 1):
        raise ConfigError("Inference alpha must be in (0, 1)")


def _validate_resampling(resampling: Dict[str, Any]) -> None:
    """Validate resampling settings."""
    if not resampling:
        return

    if not isinstance(resampling, dict):
        raise ConfigError("Resampling config must be a dictionary")

    method = resampling.get("method", "bootstrap")
    if method not in VALID_RESAMPLING:
        raise ConfigError(
            f"Invalid resampling method: {method}. Must be one of {VALID_RESAMPLING}"
        )
    if int(resampling.get("replicates", 1)) < 1:
        raise ConfigError("Resampling replicates must be at least 1")
    if int(resampling.get("n_jobs", 1)) < 1:
        raise ConfigError("Resampling n_jobs must be at least 1")


def merge_configs(base: Dict[str, Any],
                  override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Overlay ``override`` on ``base`` section by section.

    Nested dictionaries merge recursively; anything else (component lists
    included) is replaced. Neither input is modified.

    Example:
        >>> merge_configs(DEFAULT_CONFIG, {"optimizer": {"eps": 1e-6}})["optimizer"]["method"]
        'newton_raphson'
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_configs(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def get_config_value(config: Dict[str, Any],
                     key_path: str,
                     default: Any = None) -> Any:
    """Look up a dotted path such as ``"resampling.replicates"``."""
    node: Any = config
    for part in key_path.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


def save_config(config: Dict[str, Any], output_path) -> Path:
    """Write a configuration as block-style YAML, keeping key order."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(config, default_flow_style=False, sort_keys=False))
    logger.info(f"Saved estimator config to {path}")
    return path
