"""
Masked Series Pipeline Module - Initialization
==============================================

Fit orchestration and post-fit analysis.

Submodules:
-----------
1. inference.py    - MaskedSeriesEstimator, FittedModel, Wald intervals
2. resampling.py   - Monte Carlo and bootstrap sampling distributions
3. attribution.py  - Posterior failure probabilities per component

Author: Reliability Analytics Team
Date: October 19, 2026
"""

from .inference import (
    SingularInformationError,
    FittedModel,
    MaskedSeriesEstimator,
    observed_information,
    invert_information,
    wald_intervals,
    make_fitted_model,
    default_initial_point,
)

from .resampling import (
    SamplingDistribution,
    monte_carlo_refits,
    bootstrap_refits,
)

from .attribution import (
    FailureAttribution,
    failure_probabilities,
    sample_failure_probabilities,
)

__all__ = [
    "SingularInformationError",
    "FittedModel",
    "MaskedSeriesEstimator",
    "observed_information",
    "invert_information",
    "wald_intervals",
    "make_fitted_model",
    "default_initial_point",
    "SamplingDistribution",
    "monte_carlo_refits",
    "bootstrap_refits",
    "FailureAttribution",
    "failure_probabilities",
    "sample_failure_probabilities",
]

__version__ = "1.0.0"
