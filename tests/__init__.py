"""
Masked Series Tests Module - Initialization
===========================================

Unit and integration tests for the masked series-system estimator.

Test Organization:
------------------
1. test_hazards.py      - Component families and the series system
2. test_dataset.py      - MaskedDataset schema and masking invariants
3. test_generator.py    - Masked data generator stages
4. test_likelihood.py   - Likelihood engine and exponential fast path
5. test_optimizers.py   - Newton-Raphson, gradient ascent, line search
6. test_inference.py    - Fitted models, Fisher information, intervals
7. test_resampling.py   - Monte Carlo and bootstrap sampling distributions
8. test_attribution.py  - Posterior failure attribution
9. test_utils.py        - Configuration and logging utilities

Example Test Run:
-----------------
>>> from tests import run_tests
>>> result = run_tests(verbosity=2)

Version: 1.0.0
Author: Reliability Analytics Team
Date: October 19, 2026
"""

import unittest
import sys

from . import test_hazards
from . import test_dataset
from . import test_generator
from . import test_likelihood
from . import test_optimizers
from . import test_inference
from . import test_resampling
from . import test_attribution
from . import test_utils

TEST_MODULES = [
    test_hazards,
    test_dataset,
    test_generator,
    test_likelihood,
    test_optimizers,
    test_inference,
    test_resampling,
    test_attribution,
    test_utils,
]

__all__ = [module.__name__.rsplit(".", 1)[-1] for module in TEST_MODULES]

__version__ = "1.0.0"
__author__ = "Reliability Analytics Team"
__date__ = "2026-10-19"


def create_test_suite() -> unittest.TestSuite:
    """Collect every test module into one suite."""
    loader = unittest.TestLoader()
    return unittest.TestSuite(loader.loadTestsFromModule(module) for module in TEST_MODULES)


def run_tests(verbosity: int = 2) -> unittest.TestResult:
    """Run the full suite with a text runner."""
    return unittest.TextTestRunner(verbosity=verbosity).run(create_test_suite())


if __name__ == "__main__":
    result = run_tests()
    sys.exit(0 if result.wasSuccessful() else 1)
