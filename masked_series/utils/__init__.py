"""
Masked Series Utils Module - Initialization
===========================================

Configuration and logging helpers.

Submodules:
-----------
1. config.py   - Configuration loading, validation and merging
2. logging.py  - Logging setup and fit diagnostics

Usage:
------
from masked_series.utils import load_config, setup_logging, get_logger

config = load_config()
setup_logging("logs/", level="INFO")
logger = get_logger(__name__)

Author: Reliability Analytics Team
Date: October 19, 2026
"""

from .config import (
    ConfigError,
    DEFAULT_CONFIG,
    DEFAULT_CONFIG_PATH,
    load_config,
    validate_config,
    merge_configs,
    get_config_value,
    save_config,
)

from .logging import (
    StructuredFormatter,
    setup_logging,
    get_logger,
    log_fit_summary,
    log_sampling_summary,
    log_statistics,
    create_diagnostic_report,
    save_diagnostic_report,
)

__all__ = [
    # Config functions
    "ConfigError",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "validate_config",
    "merge_configs",
    "get_config_value",
    "save_config",
    # Logging functions
    "StructuredFormatter",
    "setup_logging",
    "get_logger",
    "log_fit_summary",
    "log_sampling_summary",
    "log_statistics",
    "create_diagnostic_report",
    "save_diagnostic_report",
]

__version__ = "1.0.0"
