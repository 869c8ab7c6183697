"""
Masked Series Tests - Component Hazards
========================================

Unit tests for component families and the series system:
- Exponential and Weibull hazard/reliability
- Analytic parameter gradients
- Series reliability, hazard, density and quantiles
- Parameter domain validation

Author: Reliability Analytics Team
Date: October 19, 2026
"""

import unittest
import numpy as np
import logging

from masked_series.core.hazards import (
    ComponentHazard,
    ExponentialComponent,
    WeibullComponent,
    SeriesSystem,
    ParameterDomainError,
    make_component,
)
from masked_series.core.likelihood import numerical_gradient

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class TestExponentialComponent(unittest.TestCase):
    """Test exponential lifetimes."""

    def setUp(self):
        self.comp = ExponentialComponent()
        self.t = np.array([0.0, 0.5, 1.0, 2.0])

    def test_reliability(self):
        """R(t) = exp(-λt)."""
        np.testing.assert_array_almost_equal(
            self.comp.reliability(self.t, [0.5]), np.exp(-0.5 * self.t)
        )
        self.assertAlmostEqual(float(self.comp.reliability(0.0, [3.0])), 1.0)

    def test_hazard_constant(self):
        """Hazard equals the rate at every time."""
        np.testing.assert_array_almost_equal(self.comp.hazard(self.t, [1.5]), np.full(4, 1.5))

    def test_non_positive_rate_rejected(self):
        """Zero, negative and NaN rates raise ParameterDomainError."""
        for rate in (0.0, -1.0, np.nan):
            with self.assertRaises(ParameterDomainError):
                self.comp.hazard(self.t, [rate])

    def test_wrong_parameter_count(self):
        """Exponential takes exactly one parameter."""
        with self.assertRaises(ParameterDomainError):
            self.comp.reliability(self.t, [1.0, 2.0])

    def test_sampler_mean(self):
        """Sample mean approaches 1/λ."""
        rng = np.random.default_rng(7)
        samples = self.comp.sample(50000, [2.0], rng)
        self.assertAlmostEqual(samples.mean(), 0.5, delta=0.01)


class TestWeibullComponent(unittest.TestCase):
    """Test Weibull lifetimes and analytic gradients."""

    def setUp(self):
        self.comp = WeibullComponent()
        self.t = np.array([0.2, 0.7, 1.3, 2.5])

    def test_rayleigh_case(self):
        """Shape 2, scale 1: h(t) = 2t, R(t) = exp(-t²)."""
        np.testing.assert_array_almost_equal(self.comp.hazard(self.t, [1.0, 2.0]), 2 * self.t)
        np.testing.assert_array_almost_equal(
            self.comp.reliability(self.t, [1.0, 2.0]), np.exp(-self.t ** 2)
        )

    def test_shape_one_is_exponential(self):
        """Shape 1 reduces to an exponential with rate 1/scale."""
        np.testing.assert_array_almost_equal(
            self.comp.reliability(self.t, [2.0, 1.0]),
            ExponentialComponent().reliability(self.t, [0.5]),
        )

    def test_hazard_gradient(self):
        """Analytic hazard gradient matches central differences."""
        theta = np.array([1.3, 1.7])
        analytic = self.comp.hazard_gradient(self.t, theta)
        for i, t in enumerate(self.t):
            numeric = numerical_gradient(lambda p: float(self.comp.hazard(t, p)), theta)
            np.testing.assert_allclose(analytic[i], numeric, rtol=1e-5, atol=1e-8)

    def test_log_reliability_gradient(self):
        """Analytic log-reliability gradient matches central differences."""
        theta = np.array([0.8, 2.4])
        analytic = self.comp.log_reliability_gradient(self.t, theta)
        for i, t in enumerate(self.t):
            numeric = numerical_gradient(lambda p: float(self.comp.log_reliability(t, p)), theta)
            np.testing.assert_allclose(analytic[i], numeric, rtol=1e-5, atol=1e-8)

    def test_log_hazard(self):
        """log h matches the hazard and stays defined at t = 0."""
        theta = [1.5, 2.5]
        np.testing.assert_allclose(self.comp.log_hazard(self.t, theta),
                                   np.log(self.comp.hazard(self.t, theta)))
        at_zero = self.comp.log_hazard(np.zeros(3), [1.0, 2.0])
        self.assertTrue(np.all(at_zero == -np.inf))
        self.assertEqual(float(self.comp.log_hazard(0.0, [1.0, 0.5])), np.inf)
        self.assertAlmostEqual(float(self.comp.log_hazard(0.0, [2.0, 1.0])), np.log(0.5))

    def test_hazard_near_zero(self):
        """h(t) ~ (β/η^β) t^(β-1) as t -> 0."""
        exponent, log_coefficient = self.comp.hazard_near_zero([2.0, 3.0])
        self.assertAlmostEqual(exponent, 2.0)
        self.assertAlmostEqual(log_coefficient, np.log(3.0 / 8.0))
        t = 1e-4
        self.assertAlmostEqual(float(self.comp.hazard(t, [2.0, 3.0])),
                               np.exp(log_coefficient) * t ** exponent, places=12)

    def test_negative_shape_rejected(self):
        """Negative shape raises ParameterDomainError."""
        with self.assertRaises(ParameterDomainError):
            self.comp.reliability(self.t, [1.0, -0.5])


class TestSeriesSystem(unittest.TestCase):
    """Test series composition of components."""

    def setUp(self):
        self.system = SeriesSystem.exponential(3)
        self.theta = np.array([1.0, 1.25, 1.75])

    def test_dimensions(self):
        """Parameter partition follows the component families."""
        mixed = SeriesSystem.from_families(["exponential", "weibull", "weibull"])
        self.assertEqual(mixed.m, 3)
        self.assertEqual(mixed.dim, 5)
        self.assertEqual(mixed.n_params, (1, 2, 2))
        parts = mixed.split(np.arange(1.0, 6.0))
        np.testing.assert_array_equal(parts[1], [2.0, 3.0])
        self.assertEqual(mixed.block(2), slice(3, 5))
        self.assertFalse(mixed.is_exponential)
        self.assertTrue(self.system.is_exponential)

    def test_reliability_is_product(self):
        """R(t) = ∏ R_j(t) = exp(-Σλ t)."""
        self.assertAlmostEqual(self.system.reliability(0.5, self.theta), np.exp(-2.0))
        np.testing.assert_array_almost_equal(
            self.system.reliability(np.array([0.0, 1.0]), self.theta), [1.0, np.exp(-4.0)]
        )

    def test_hazard_is_sum(self):
        """h(t) = Σ h_j(t)."""
        self.assertAlmostEqual(self.system.hazard(0.3, self.theta), 4.0)

    def test_pdf_and_cdf(self):
        """f = h R and F = 1 - R."""
        t = 0.4
        self.assertAlmostEqual(self.system.pdf(t, self.theta), 4.0 * np.exp(-1.6))
        self.assertAlmostEqual(self.system.cdf(t, self.theta), 1.0 - np.exp(-1.6))
        self.assertEqual(self.system.pdf(-1.0, self.theta), 0.0)

    def test_quantile_exponential(self):
        """Quantile matches the closed form -log(1-p)/Σλ."""
        for p in (0.1, 0.5, 0.9):
            self.assertAlmostEqual(
                self.system.quantile(p, self.theta), -np.log1p(-p) / 4.0, places=6
            )
        self.assertEqual(self.system.quantile(0.0, self.theta), 0.0)

    def test_quantile_inverts_cdf(self):
        """F(quantile(p)) = p for a Weibull system."""
        system = SeriesSystem.weibull(2)
        theta = np.array([1.0, 1.5, 2.0, 3.0])
        probs = np.array([0.05, 0.25, 0.5, 0.75, 0.95])
        q = system.quantile(probs, theta)
        np.testing.assert_allclose(system.cdf(q, theta), probs, atol=1e-4)

    def test_quantile_rejects_bad_probability(self):
        """Probabilities outside [0, 1) are rejected."""
        with self.assertRaises(ValueError):
            self.system.quantile(1.0, self.theta)

    def test_support(self):
        """in_support / check_parameters agree on invalid vectors."""
        self.assertTrue(self.system.in_support(self.theta))
        self.assertFalse(self.system.in_support([1.0, 0.0, 1.0]))
        self.assertFalse(self.system.in_support([1.0, 1.0]))
        with self.assertRaises(ParameterDomainError):
            self.system.check_parameters([1.0, -2.0, 1.0])
        with self.assertRaises(ParameterDomainError):
            self.system.split([1.0, 2.0])

    def test_sample_lifetimes(self):
        """System lifetime is exponential with the total rate."""
        rng = np.random.default_rng(11)
        lifetimes = self.system.sample_lifetimes(40000, self.theta, rng)
        self.assertEqual(lifetimes.shape, (40000,))
        self.assertAlmostEqual(lifetimes.mean(), 0.25, delta=0.01)

        components = self.system.sample_component_lifetimes(10, self.theta, rng)
        self.assertEqual(components.shape, (10, 3))

    def test_invalid_construction(self):
        """Empty systems and unknown families are rejected."""
        with self.assertRaises(ValueError):
            SeriesSystem([])
        with self.assertRaises(ValueError):
            make_component("lognormal")
        with self.assertRaises(TypeError):
            SeriesSystem([object()])


class TestCustomComponent(unittest.TestCase):
    """Families only need hazard and reliability."""

    def test_minimal_family(self):
        """A subclass without gradients or sampler still composes."""

        class LinearHazard(ComponentHazard):
            name = "linear"
            n_params = 1

            def hazard(self, t, theta):
                a = self.check_parameters(theta)[0]
                return a * np.asarray(t, dtype=float)

            def reliability(self, t, theta):
                a = self.check_parameters(theta)[0]
                return np.exp(-0.5 * a * np.asarray(t, dtype=float) ** 2)

        system = SeriesSystem([LinearHazard(), ExponentialComponent()])
        self.assertFalse(system.supports_gradient)
        self.assertAlmostEqual(system.reliability(1.0, [2.0, 1.0]), np.exp(-2.0))
        with self.assertRaises(NotImplementedError):
            system.sample_lifetimes(5, [2.0, 1.0], np.random.default_rng(0))

        # log h falls back to log of the hazard
        np.testing.assert_array_almost_equal(
            system.component_log_hazards([0.5, 2.0], [2.0, 1.0]),
            [[0.0, 0.0], [np.log(4.0), 0.0]],
        )
        self.assertEqual(system.component_log_hazards(0.0, [2.0, 1.0])[0, 0], -np.inf)
        with self.assertRaises(NotImplementedError):
            system.hazards_near_zero([2.0, 1.0])


if __name__ == "__main__":
    unittest.main()
