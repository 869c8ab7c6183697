"""
Masked Series Utils - Logging & Diagnostics
============================================

Logging configuration and fit diagnostics for the estimator.

Features:
---------
1. Handlers
   - Console stream and size-rotated log files
   - One structured line per record

2. Fit Diagnostics
   - One-line fit summaries (status, θ̂, log-likelihood, standard errors)
   - Resampling summaries (replicates kept and dropped)
   - Statistics dictionaries as log lines or plain-text reports

Log Format:
-----------
[2026-10-19 12:30:45.123] [INFO    ] [masked_series.core.optimizers] newton_raphson converged ...

Example:
--------
>>> from masked_series.utils import setup_logging, log_fit_summary
>>>
>>> log_file = setup_logging("logs/", level="DEBUG")
>>> fitted = estimator.fit(md)      # fit outcome is logged automatically
>>> log_statistics(fitted.summary())

Author: Reliability Analytics Team
Date: October 19, 2026
"""

import logging
import logging.handlers
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
import numpy as np

LOG_FILE_PREFIX = "masked_series"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5
REPORT_WIDTH = 60


class StructuredFormatter(logging.Formatter):
    """[timestamp] [LEVEL] [logger] message, with tracebacks on following lines."""

    default_time_format = "%Y-%m-%d %H:%M:%S"
    default_msec_format = "%s.%03d"

    def format(self, record: logging.LogRecord) -> str:
        line = f"[{self.formatTime(record)}] [{record.levelname:<8}] [{record.name}] {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _resolve_level(level) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Invalid log level: {level}")
    return resolved


def setup_logging(log_dir: str = "logs",
                  level: str = "INFO",
                  console_output: bool = True,
                  file_output: bool = True) -> Optional[Path]:
    """
    Configure the root logger.

    Existing root handlers are closed and replaced.

    Args:
        log_dir: Directory for rotated log files
        level: Level name or number
        console_output: Log to stderr
        file_output: Log to ``<log_dir>/masked_series_<timestamp>.log``

    Returns:
        Path of the log file, or None without file output

    Raises:
        ValueError: If the level name is unknown
    """
    numeric_level = _resolve_level(level)

    handlers: List[logging.Handler] = []
    if console_output:
        handlers.append(logging.StreamHandler())

    log_file = None
    if file_output:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        log_file = directory / f"{LOG_FILE_PREFIX}_{datetime.now():%Y%m%d_%H%M%S}.log"
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUP_COUNT
        ))

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()

    formatter = StructuredFormatter()
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(numeric_level)

    root.info(
        f"Logging at {logging.getLevelName(numeric_level)}"
        + (f" to {log_file}" if log_file else "")
    )
    return log_file


@lru_cache(maxsize=None)
def get_logger(name: str) -> logging.Logger:
    """Logger for a module name (typically ``__name__``)."""
    return logging.getLogger(name)


def _format_vector(values) -> str:
    return np.array2string(np.asarray(values, dtype=float), precision=6, separator=", ")


def _format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.6f}"
    if isinstance(value, np.ndarray):
        return _format_vector(value)
    return str(value)


def log_fit_summary(fitted) -> None:
    """
    Log a fitted model's outcome.

    Fits with a variance-covariance are logged at INFO with standard
    errors; anything else at WARNING.

    Args:
        fitted: FittedModel
    """
    logger = get_logger(__name__)
    parts = [
        f"Fit {fitted.status.value}: θ̂={_format_vector(fitted.point)}",
        f"loglik={fitted.loglik:.6f}",
        f"iterations={fitted.result.iterations}",
        f"n={fitted.nobs}",
    ]
    if fitted.vcov is None:
        logger.warning(", ".join(parts))
        return
    parts.append(f"se={_format_vector(np.sqrt(np.diag(fitted.vcov)))}")
    logger.info(", ".join(parts))


def log_sampling_summary(sampling) -> None:
    """
    Log a resampling run.

    Args:
        sampling: SamplingDistribution
    """
    logger = get_logger(__name__)
    total = sampling.replicates + sampling.n_failed
    if sampling.replicates == 0:
        logger.warning(f"{sampling.method}: none of {total} refits converged")
        return
    logger.info(
        f"{sampling.method}: {sampling.replicates}/{total} refits kept, "
        f"mean={_format_vector(sampling.mean())}, mse={sampling.mse():.6g}"
    )


def _report_lines(stats: Dict[str, Any], indent: int = 2) -> Iterable[str]:
    pad = " " * indent
    for key, value in stats.items():
        if isinstance(value, dict):
            yield f"{pad}[{key}]"
            yield from _report_lines(value, indent + 2)
        else:
            yield f"{pad}{key}: {_format_value(value)}"


def log_statistics(stats: Dict[str, Any], title: str = "Statistics") -> None:
    """
    Log a statistics dictionary line by line.

    Args:
        stats: Statistics (e.g. ``FittedModel.summary()``), nested dicts allowed
        title: Heading line
    """
    logger = get_logger(__name__)
    logger.info(f"--- {title} ---")
    for line in _report_lines(stats, indent=0):
        logger.info(line)


def create_diagnostic_report(stats: Dict[str, Any], title: str = "FIT REPORT") -> str:
    """Plain-text report of a statistics dictionary."""
    rule = "=" * REPORT_WIDTH
    return "\n".join([rule, title, rule, *_report_lines(stats), rule])


def save_diagnostic_report(report: str, output_path) -> Path:
    """
    Write a diagnostic report, creating parent directories.

    Returns:
        Path written
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report)
    get_logger(__name__).info(f"Diagnostic report written to {path}")
    return path
