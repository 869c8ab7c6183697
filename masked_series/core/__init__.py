"""
Masked Series Core Module - Initialization
==========================================

Estimation engines for series systems.

Submodules:
-----------
1. hazards.py     - Component hazard families and the series system
2. likelihood.py  - Masked-data log-likelihood, score and Hessian
3. optimizers.py  - Newton-Raphson and gradient ascent with line search

Author: Reliability Analytics Team
Date: October 19, 2026
"""

from .hazards import (
    ParameterDomainError,
    ComponentHazard,
    ExponentialComponent,
    WeibullComponent,
    COMPONENT_FAMILIES,
    make_component,
    SeriesSystem,
)

from .likelihood import (
    LikelihoodModel,
    ExponentialSufficientStatistics,
    MaskedSeriesLikelihood,
    exponential_likelihood,
    build_likelihood,
    numerical_gradient,
    numerical_hessian,
)

from .optimizers import (
    ConvergenceStatus,
    OptimizerConfig,
    MLEResult,
    newton_raphson,
    gradient_ascent,
    maximize,
)

__all__ = [
    # Hazards
    "ParameterDomainError",
    "ComponentHazard",
    "ExponentialComponent",
    "WeibullComponent",
    "COMPONENT_FAMILIES",
    "make_component",
    "SeriesSystem",
    # Likelihood
    "LikelihoodModel",
    "ExponentialSufficientStatistics",
    "MaskedSeriesLikelihood",
    "exponential_likelihood",
    "build_likelihood",
    "numerical_gradient",
    "numerical_hessian",
    # Optimizers
    "ConvergenceStatus",
    "OptimizerConfig",
    "MLEResult",
    "newton_raphson",
    "gradient_ascent",
    "maximize",
]

__version__ = "1.0.0"
