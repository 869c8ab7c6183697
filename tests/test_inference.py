"""
Masked Series Tests - Inference
================================

Integration tests for the estimation pipeline:
- Fisher information inversion and Wald intervals
- MaskedSeriesEstimator fits (exponential and Weibull)
- Singular information handling
- Interval width against the amount of masking
- Construction from configuration

Author: Reliability Analytics Team
Date: October 19, 2026
"""

import unittest
import numpy as np
import logging

from masked_series.core.hazards import SeriesSystem, ParameterDomainError
from masked_series.core.likelihood import build_likelihood
from masked_series.core.optimizers import ConvergenceStatus, MLEResult, OptimizerConfig
from masked_series.data.dataset import MaskedDataset
from masked_series.data.generator import generate_masked_data, simulate_masked_data
from masked_series.pipeline.inference import (
    FittedModel,
    MaskedSeriesEstimator,
    SingularInformationError,
    default_initial_point,
    invert_information,
    make_fitted_model,
    observed_information,
    wald_intervals,
)
from masked_series.utils.config import ConfigError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class TestInformationInversion(unittest.TestCase):
    """Test variance-covariance from Fisher information."""

    def test_positive_definite(self):
        """SPD information inverts to a symmetric SPD matrix."""
        J = np.array([[4.0, 1.0], [1.0, 3.0]])
        V, status = invert_information(J)
        self.assertEqual(status, ConvergenceStatus.CONVERGED)
        np.testing.assert_array_almost_equal(V, np.linalg.inv(J))
        np.testing.assert_array_equal(V, V.T)

    def test_singular(self):
        """Rank-deficient information reports SINGULAR_INFORMATION."""
        V, status = invert_information(np.ones((2, 2)))
        self.assertIsNone(V)
        self.assertEqual(status, ConvergenceStatus.SINGULAR_INFORMATION)

    def test_indefinite(self):
        """Non-positive-definite information is not inverted."""
        V, status = invert_information(np.diag([1.0, -1.0]))
        self.assertIsNone(V)
        self.assertEqual(status, ConvergenceStatus.SINGULAR_INFORMATION)

    def test_wald_intervals(self):
        """θ ± z √V_kk."""
        ci = wald_intervals([1.0, 2.0], np.diag([0.04, 0.25]), alpha=0.05)
        np.testing.assert_allclose(ci[0], [1.0 - 1.959964 * 0.2, 1.0 + 1.959964 * 0.2], atol=1e-5)
        np.testing.assert_allclose(ci[1], [2.0 - 1.959964 * 0.5, 2.0 + 1.959964 * 0.5], atol=1e-5)
        with self.assertRaises(ValueError):
            wald_intervals([1.0], np.eye(1), alpha=1.5)


class TestExponentialFit(unittest.TestCase):
    """Fit masked exponential series data."""

    @classmethod
    def setUpClass(cls):
        rng = np.random.default_rng(99)
        cls.system = SeriesSystem.exponential(3)
        cls.theta_true = np.array([1.0, 1.25, 1.75])
        cls.md = simulate_masked_data(cls.system, cls.theta_true, 3000, tau=0.8, p=0.3, rng=rng)
        cls.estimator = MaskedSeriesEstimator(cls.system)
        cls.fitted = cls.estimator.fit(cls.md)

    def test_converged(self):
        """Default start converges with a variance-covariance."""
        self.assertEqual(self.fitted.status, ConvergenceStatus.CONVERGED)
        self.assertTrue(self.fitted.ok)
        self.assertEqual(self.fitted.nobs, 3000)

    def test_vcov_symmetric_positive_definite(self):
        """V̂ is symmetric positive-definite."""
        V = self.fitted.vcov
        np.testing.assert_allclose(V, V.T)
        self.assertTrue(np.all(np.linalg.eigvalsh(V) > 0))
        np.testing.assert_allclose(V @ self.fitted.fisher_information, np.eye(3), atol=1e-8)

    def test_information_matches_model(self):
        """Stored information equals -Hessian at θ̂."""
        model = build_likelihood(self.system, self.md)
        np.testing.assert_allclose(
            observed_information(model, self.fitted.point), self.fitted.fisher_information
        )

    def test_estimates_near_truth(self):
        """θ̂ lies within four standard errors of θ."""
        z = np.abs(self.fitted.point - self.theta_true) / self.fitted.std_errors()
        self.assertTrue(np.all(z < 4.0))

    def test_confint(self):
        """Intervals contain θ̂ and widen with confidence."""
        ci95 = self.fitted.confint()
        ci99 = self.fitted.confint(0.01)
        self.assertEqual(ci95.shape, (3, 2))
        self.assertTrue(np.all(ci95[:, 0] < self.fitted.point))
        self.assertTrue(np.all(ci95[:, 1] > self.fitted.point))
        self.assertTrue(np.all(ci99[:, 1] - ci99[:, 0] > ci95[:, 1] - ci95[:, 0]))

    def test_asymptotic_bias_and_mse(self):
        """Without resampling: zero bias, MSE = trace V̂."""
        np.testing.assert_array_equal(self.fitted.bias(), np.zeros(3))
        self.assertAlmostEqual(self.fitted.mse(), float(np.trace(self.fitted.vcov)))

    def test_summary(self):
        """Summary carries point, intervals and status."""
        summary = self.fitted.summary()
        self.assertEqual(summary["status"], "converged")
        self.assertEqual(len(summary["point"]), 3)
        self.assertIn("confint", summary)
        self.assertNotIn("resampling", summary)

    def test_matches_explicit_start(self):
        """The optimum does not depend on the starting point."""
        other = self.estimator.fit(self.md, theta0=[2.0, 0.5, 1.0])
        np.testing.assert_allclose(other.point, self.fitted.point, atol=1e-6)

    def test_infeasible_start(self):
        """θ0 outside the support raises ParameterDomainError."""
        with self.assertRaises(ParameterDomainError):
            self.estimator.fit(self.md, theta0=[1.0, -1.0, 1.0])


class TestSingularInformation(unittest.TestCase):
    """Data that cannot separate the components."""

    def setUp(self):
        # Every failure masks both components: only θ1 + θ2 is identifiable
        self.md = MaskedDataset(
            s=np.ones(10), delta=np.zeros(10, dtype=bool), candidates=np.ones((10, 2), dtype=bool)
        )
        self.system = SeriesSystem.exponential(2)

    def test_fit_reports_status(self):
        """The fit carries SINGULAR_INFORMATION and no variance-covariance."""
        fitted = MaskedSeriesEstimator(self.system).fit(self.md)
        self.assertEqual(fitted.status, ConvergenceStatus.SINGULAR_INFORMATION)
        self.assertFalse(fitted.ok)
        self.assertIsNone(fitted.vcov)
        self.assertAlmostEqual(float(fitted.point.sum()), 1.0)
        self.assertNotIn("confint", fitted.summary())

    def test_accessors_raise(self):
        """Uncertainty accessors raise SingularInformationError."""
        model = build_likelihood(self.system, self.md)
        result = MLEResult(theta=[0.4, 0.6], loglik=model.loglik(np.array([0.4, 0.6])),
                           status=ConvergenceStatus.CONVERGED, iterations=1,
                           method="newton_raphson")
        fitted = make_fitted_model(result, model)
        self.assertEqual(fitted.status, ConvergenceStatus.SINGULAR_INFORMATION)
        for accessor in (fitted.confint, fitted.std_errors, fitted.mse, fitted.require_vcov):
            with self.assertRaises(SingularInformationError):
                accessor()

    def test_unconverged_result(self):
        """A failed optimizer result keeps its status."""
        model = build_likelihood(self.system, self.md)
        result = MLEResult(theta=[0.4, 0.6], loglik=-1.0,
                           status=ConvergenceStatus.MAX_ITERATIONS, iterations=200,
                           method="gradient_ascent")
        fitted = make_fitted_model(result, model)
        self.assertIsInstance(fitted, FittedModel)
        self.assertEqual(fitted.status, ConvergenceStatus.MAX_ITERATIONS)
        self.assertIsNone(fitted.fisher_information)


class TestMaskingAndPrecision(unittest.TestCase):
    """Less masking gives tighter intervals."""

    def test_interval_width_decreases_with_masking(self):
        """Average interval width for γ = 0.3 is below that for γ ≈ 0.333."""
        system = SeriesSystem.exponential(3)
        theta = np.array([1.0, 1.25, 1.75])
        estimator = MaskedSeriesEstimator(system)

        widths = {0.3: [], 1.0 / 3.0: []}
        for seed in range(5):
            lifetimes = system.sample_component_lifetimes(20000, theta, np.random.default_rng(seed))
            for gamma in widths:
                # Same uniforms for both γ: the γ = 0.3 sets are subsets of the γ ≈ 0.333 sets
                md = generate_masked_data(lifetimes, tau=1.0, p=gamma,
                                          rng=np.random.default_rng(1000 + seed))
                ci = estimator.fit(md, theta0=theta).confint()
                widths[gamma].append(np.sum(ci[:, 1] - ci[:, 0]))

        self.assertLess(np.mean(widths[0.3]), np.mean(widths[1.0 / 3.0]))

    def test_no_masking_tighter_than_heavy_masking(self):
        """γ = 0 beats γ = 0.8 on the same lifetimes."""
        system = SeriesSystem.exponential(3)
        theta = np.array([1.0, 1.25, 1.75])
        lifetimes = system.sample_component_lifetimes(5000, theta, np.random.default_rng(3))
        estimator = MaskedSeriesEstimator(system)
        se = {}
        for gamma in (0.0, 0.8):
            md = generate_masked_data(lifetimes, p=gamma, rng=np.random.default_rng(4))
            se[gamma] = estimator.fit(md).std_errors()
        self.assertTrue(np.all(se[0.0] < se[0.8]))


class TestWeibullFit(unittest.TestCase):
    """General engine end to end."""

    def test_weibull_recovers_parameters(self):
        """Scale and shape are recovered within sampling error."""
        system = SeriesSystem.weibull(2)
        theta = np.array([1.0, 1.5, 1.5, 2.0])
        md = simulate_masked_data(system, theta, 4000, tau=2.0, p=0.2,
                                  rng=np.random.default_rng(17))
        fitted = MaskedSeriesEstimator(system).fit(md)
        self.assertEqual(fitted.status, ConvergenceStatus.CONVERGED)
        z = np.abs(fitted.point - theta) / fitted.std_errors()
        self.assertTrue(np.all(z < 4.5))

    def test_default_initial_point(self):
        """Weibull components start at the pooled-rate scale with shape 1."""
        system = SeriesSystem.from_families(["exponential", "weibull"])
        md = MaskedDataset(s=[1.0, 3.0], delta=[False, False], candidates=[[True, False], [False, True]])
        np.testing.assert_allclose(default_initial_point(system, md), [0.25, 4.0, 1.0])


class TestEstimatorConfig(unittest.TestCase):
    """Estimator construction from configuration."""

    def test_from_config(self):
        """Components, optimizer and alpha come from the mapping."""
        estimator = MaskedSeriesEstimator.from_config({
            "components": [{"family": "weibull"}, {"family": "exponential"}],
            "optimizer": {"method": "gradient_ascent", "eps": 1e-6},
            "inference": {"alpha": 0.1},
        })
        self.assertEqual(estimator.system.dim, 3)
        self.assertEqual(estimator.optimizer.method, "gradient_ascent")
        self.assertEqual(estimator.optimizer.max_iterations, 200)
        self.assertEqual(estimator.alpha, 0.1)
        self.assertEqual(estimator.resampling["replicates"], 200)

    def test_defaults(self):
        """An empty mapping gives three exponential components."""
        estimator = MaskedSeriesEstimator.from_config({})
        self.assertTrue(estimator.system.is_exponential)
        self.assertEqual(estimator.system.m, 3)
        self.assertEqual(estimator.optimizer, OptimizerConfig())

    def test_invalid_config(self):
        """Unknown families and bad alpha are configuration errors."""
        with self.assertRaises(ConfigError):
            MaskedSeriesEstimator.from_config({"components": [{"family": "gamma"}]})
        with self.assertRaises(ConfigError):
            MaskedSeriesEstimator.from_config({"inference": {"alpha": 0.0}})


if __name__ == "__main__":
    unittest.main()
