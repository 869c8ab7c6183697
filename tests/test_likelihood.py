"""
Masked Series Tests - Likelihood Engine
========================================

Unit tests for the reduced log-likelihood:
- Hand-computed exponential log-likelihood, score and Hessian
- Fast path agrees with the general engine
- General engine with a gradient-free constant-hazard family
- Weibull analytic score against finite differences
- Out-of-support parameters and dimension checks

Author: Reliability Analytics Team
Date: October 19, 2026
"""

import unittest
import numpy as np
import logging

from masked_series.core.hazards import ComponentHazard, SeriesSystem
from masked_series.core.likelihood import (
    ExponentialSufficientStatistics,
    MaskedSeriesLikelihood,
    build_likelihood,
    exponential_likelihood,
    numerical_gradient,
    numerical_hessian,
)
from masked_series.data.dataset import DataValidationError, MaskedDataset
from masked_series.data.generator import simulate_masked_data

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ConstantHazard(ComponentHazard):
    """Exponential family exposed only through hazard and reliability."""

    name = "constant"
    n_params = 1

    def hazard(self, t, theta):
        rate = self.check_parameters(theta)[0]
        return np.full_like(np.asarray(t, dtype=float), rate)

    def reliability(self, t, theta):
        rate = self.check_parameters(theta)[0]
        return np.exp(-rate * np.asarray(t, dtype=float))


class TestExponentialLikelihood(unittest.TestCase):
    """Test the sufficient-statistic fast path on a hand-sized dataset."""

    def setUp(self):
        # s = (1, 2, 0.5), C = ({1}, {1, 2}, censored)
        self.md = MaskedDataset(
            s=[1.0, 2.0, 0.5],
            delta=[False, False, True],
            candidates=[[True, False], [True, True], [False, False]],
        )
        self.theta = np.array([1.0, 2.0])
        self.model = exponential_likelihood(self.md)

    def test_sufficient_statistics(self):
        """Σs and distinct uncensored patterns with counts."""
        stats = ExponentialSufficientStatistics.from_dataset(self.md)
        self.assertAlmostEqual(stats.total_time, 3.5)
        self.assertEqual(stats.patterns.shape, (2, 2))
        self.assertEqual(stats.counts.sum(), 2)
        self.assertEqual(stats.m, 2)

    def test_loglik(self):
        """ℓ = -Σs Σθ + log θ1 + log(θ1 + θ2)."""
        self.assertAlmostEqual(self.model.loglik(self.theta), -10.5 + np.log(3.0))

    def test_score(self):
        """∂ℓ/∂θ_k = -Σs + Σ_c n_c [k ∈ c] / (θ·c)."""
        expected = np.array([-3.5 + 1.0 + 1.0 / 3.0, -3.5 + 1.0 / 3.0])
        np.testing.assert_array_almost_equal(self.model.score(self.theta), expected)

    def test_hessian(self):
        """∂²ℓ/∂θ_k∂θ_l = -Σ_c n_c [k ∈ c][l ∈ c] / (θ·c)²."""
        expected = -np.array([[1.0 + 1.0 / 9.0, 1.0 / 9.0], [1.0 / 9.0, 1.0 / 9.0]])
        np.testing.assert_array_almost_equal(self.model.hessian(self.theta), expected)
        self.assertTrue(self.model.analytic_hessian)

    def test_general_engine_agrees(self):
        """The general engine gives the same value on the same data."""
        engine = MaskedSeriesLikelihood(SeriesSystem.exponential(2), self.md)
        self.assertAlmostEqual(engine.loglik(self.theta), -10.5 + np.log(3.0))

    def test_out_of_support(self):
        """Non-positive rates give -inf instead of raising."""
        self.assertEqual(self.model.loglik(np.array([1.0, -1.0])), -np.inf)
        self.assertEqual(self.model.loglik(np.array([np.nan, 1.0])), -np.inf)
        engine = MaskedSeriesLikelihood(SeriesSystem.exponential(2), self.md)
        self.assertEqual(engine.loglik(np.array([0.0, 1.0])), -np.inf)

    def test_all_censored(self):
        """Without failures only the survival term remains."""
        md = MaskedDataset(s=[1.0, 2.0], delta=[True, True], candidates=[[False], [False]])
        model = exponential_likelihood(md)
        self.assertAlmostEqual(model.loglik(np.array([0.5])), -1.5)
        np.testing.assert_array_almost_equal(model.score(np.array([0.5])), [-3.0])


class TestFastPathEquivalence(unittest.TestCase):
    """Fast path and general engine on simulated data."""

    def setUp(self):
        rng = np.random.default_rng(42)
        self.system = SeriesSystem.exponential(3)
        self.md = simulate_masked_data(
            self.system, [1.0, 1.25, 1.75], 2000, tau=0.6, p=0.3, rng=rng
        )
        self.points = [
            np.array([1.0, 1.25, 1.75]),
            np.array([0.4, 2.0, 0.9]),
            np.array([3.0, 0.2, 1.1]),
        ]

    def test_loglik_and_score(self):
        """Fast path equals the general engine with analytic gradients."""
        fast = build_likelihood(self.system, self.md)
        general = build_likelihood(self.system, self.md, fast_path=False)
        self.assertEqual(fast.name, "exponential_series")
        for theta in self.points:
            self.assertAlmostEqual(fast.loglik(theta), general.loglik(theta), places=8)
            np.testing.assert_allclose(fast.score(theta), general.score(theta), rtol=1e-9, atol=1e-8)
            np.testing.assert_allclose(fast.hessian(theta), general.hessian(theta), rtol=1e-4, atol=1e-3)

    def test_constant_hazard_family(self):
        """Fast path equals the general engine built from plain hazard/reliability."""
        fast = build_likelihood(self.system, self.md)
        generic = SeriesSystem([ConstantHazard() for _ in range(3)])
        self.assertFalse(generic.is_exponential)
        general = build_likelihood(generic, self.md)
        for theta in self.points:
            self.assertAlmostEqual(fast.loglik(theta), general.loglik(theta), places=8)
            np.testing.assert_allclose(fast.score(theta), general.score(theta), rtol=1e-5, atol=1e-4)

    def test_dimension_mismatch(self):
        """A 2-component system cannot evaluate 3-column data."""
        with self.assertRaises(DataValidationError):
            build_likelihood(SeriesSystem.exponential(2), self.md)
        with self.assertRaises(DataValidationError):
            MaskedSeriesLikelihood(SeriesSystem.weibull(2), self.md)


class TestWeibullLikelihood(unittest.TestCase):
    """General engine on Weibull data."""

    def setUp(self):
        rng = np.random.default_rng(7)
        self.system = SeriesSystem.weibull(2)
        self.theta_true = np.array([1.0, 1.5, 1.5, 2.0])
        self.md = simulate_masked_data(self.system, self.theta_true, 500, tau=1.2, p=0.25, rng=rng)
        self.model = build_likelihood(self.system, self.md)

    def test_analytic_score(self):
        """Analytic score matches central differences of ℓ."""
        for theta in (self.theta_true, np.array([0.8, 1.2, 2.0, 2.5])):
            analytic = self.model.score(theta)
            numeric = numerical_gradient(self.model.loglik, theta)
            np.testing.assert_allclose(analytic, numeric, rtol=1e-5, atol=1e-4)

    def test_hessian_symmetric(self):
        """Differenced-score Hessian is symmetric."""
        H = self.model.hessian(self.theta_true)
        np.testing.assert_array_almost_equal(H, H.T)
        self.assertFalse(self.model.analytic_hessian)

    def test_out_of_support(self):
        """Negative shape gives -inf."""
        self.assertEqual(self.model.loglik(np.array([1.0, -1.5, 1.5, 2.0])), -np.inf)


class TestNumericalDerivatives(unittest.TestCase):
    """Test central-difference helpers on a quadratic."""

    def setUp(self):
        self.A = np.array([[2.0, 0.5], [0.5, 1.0]])
        self.c = np.array([1.0, -2.0])

    def f(self, x):
        d = x - self.c
        return -0.5 * d @ self.A @ d

    def test_gradient(self):
        """∇f = -A(x - c)."""
        x = np.array([0.3, 0.4])
        np.testing.assert_allclose(numerical_gradient(self.f, x), -self.A @ (x - self.c), atol=1e-6)

    def test_hessian_from_values(self):
        """Second differences recover -A."""
        np.testing.assert_allclose(numerical_hessian(self.f, np.zeros(2)), -self.A, atol=1e-5)

    def test_hessian_from_gradient(self):
        """Differencing the gradient recovers -A."""
        def grad(x):
            return -self.A @ (x - self.c)

        np.testing.assert_allclose(
            numerical_hessian(self.f, np.zeros(2), gradient=grad), -self.A, atol=1e-6
        )


if __name__ == "__main__":
    unittest.main()
