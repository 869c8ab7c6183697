"""
Masked Series Data Module - Initialization
==========================================

Masked datasets and synthetic data generation.

Submodules:
-----------
1. dataset.py    - MaskedDataset container and masking-condition checks
2. generator.py  - Lifetimes → censoring → candidate probabilities → candidate sets

Author: Reliability Analytics Team
Date: October 19, 2026
"""

from .dataset import (
    DataValidationError,
    MaskingConditionError,
    Observation,
    MaskedDataset,
    check_masking_conditions,
    decode_matrix,
)

from .generator import (
    series_lifetimes,
    apply_right_censoring,
    bernoulli_candidate_probabilities,
    sample_candidate_sets,
    BernoulliCandidateModel,
    generate_masked_data,
    simulate_masked_data,
)

__all__ = [
    "DataValidationError",
    "MaskingConditionError",
    "Observation",
    "MaskedDataset",
    "check_masking_conditions",
    "decode_matrix",
    "series_lifetimes",
    "apply_right_censoring",
    "bernoulli_candidate_probabilities",
    "sample_candidate_sets",
    "BernoulliCandidateModel",
    "generate_masked_data",
    "simulate_masked_data",
]

__version__ = "1.0.0"
