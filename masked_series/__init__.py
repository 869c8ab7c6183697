"""
Masked Series-System Reliability
================================

Maximum-likelihood estimation of component lifetimes in series systems
observed through right-censored, masked failure data.

Modules:
--------
- config: Packaged estimator defaults (default.yaml)
- core: Component hazards, likelihood engine, optimizers
- data: Masked datasets and the synthetic data generator
- pipeline: Estimation, uncertainty, resampling, failure attribution
- utils: Configuration & logging utilities

Quick Start:
-----------
from masked_series import MaskedSeriesEstimator, SeriesSystem, simulate_masked_data
from masked_series.utils import setup_logging

setup_logging("logs/")

system = SeriesSystem.exponential(3)
md = simulate_masked_data(system, [1.0, 1.25, 1.75], n=1000, tau=2.0, p=0.3, rng=rng)

estimator = MaskedSeriesEstimator(system)
model = estimator.fit(md)
model.point, model.confint()

Version: 1.0.0
Author: Reliability Analytics Team
Date: October 19, 2026
License: MIT
"""

from .core import (
    ComponentHazard,
    ExponentialComponent,
    WeibullComponent,
    SeriesSystem,
    ParameterDomainError,
    build_likelihood,
    ConvergenceStatus,
    OptimizerConfig,
    MLEResult,
)
from .data import (
    MaskedDataset,
    DataValidationError,
    MaskingConditionError,
    generate_masked_data,
    simulate_masked_data,
)
from .pipeline import (
    MaskedSeriesEstimator,
    FittedModel,
    SingularInformationError,
    SamplingDistribution,
    FailureAttribution,
    failure_probabilities,
)

__version__ = "1.0.0"
__author__ = "Reliability Analytics Team"
__date__ = "2026-10-19"
__all__ = [
    "ComponentHazard",
    "ExponentialComponent",
    "WeibullComponent",
    "SeriesSystem",
    "ParameterDomainError",
    "build_likelihood",
    "ConvergenceStatus",
    "OptimizerConfig",
    "MLEResult",
    "MaskedDataset",
    "DataValidationError",
    "MaskingConditionError",
    "generate_masked_data",
    "simulate_masked_data",
    "MaskedSeriesEstimator",
    "FittedModel",
    "SingularInformationError",
    "SamplingDistribution",
    "FailureAttribution",
    "failure_probabilities",
]
