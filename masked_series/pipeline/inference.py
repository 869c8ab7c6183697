"""
Masked Series Pipeline - Inference Engine
==========================================

Orchestrates estimation for masked series-system data:
Likelihood → Optimizer → Fisher information → Uncertainty

Inference Steps:
----------------
1. Build the log-likelihood for the configured component families
2. Maximize it (Newton-Raphson or gradient ascent)
3. Observed information J(θ̂) = -∇²ℓ(θ̂)
4. Variance-covariance V̂ = J(θ̂)⁻¹
5. Wald intervals θ̂_k ± z_{1-α/2} √V̂_kk
6. Bias/MSE: asymptotic (0, trace V̂) or from Monte Carlo / bootstrap refits

Failure Handling:
-----------------
Non-convergence and singular information are reported through
``FittedModel.status``; a fit without an invertible information matrix has
no variance-covariance and its uncertainty accessors raise
SingularInformationError.

Example:
--------
>>> estimator = MaskedSeriesEstimator(SeriesSystem.exponential(3))
>>> model = estimator.fit(md, theta0=[1.0, 1.0, 1.0])
>>> model.point, model.confint()
>>> model = estimator.bootstrap(model, md, replicates=200, seed=1)
>>> model.mse()

Author: Reliability Analytics Team
Date: October 19, 2026
"""

import numpy as np
from dataclasses import dataclass, replace
from typing import Dict, Mapping, Optional, Tuple
import logging
from scipy.linalg import LinAlgError, cho_factor, cho_solve
from scipy.stats import norm

from ..core.hazards import SeriesSystem, ExponentialComponent, WeibullComponent
from ..core.likelihood import LikelihoodModel, build_likelihood
from ..core.optimizers import (
    ConvergenceStatus,
    MAX_CONDITION_NUMBER,
    MLEResult,
    OptimizerConfig,
    maximize,
)
from ..data.dataset import MaskedDataset
from ..data.generator import simulate_masked_data
from ..utils.config import DEFAULT_CONFIG, merge_configs, validate_config
from ..utils.logging import log_fit_summary
from .resampling import SamplingDistribution, bootstrap_refits, monte_carlo_refits

logger = logging.getLogger(__name__)


class SingularInformationError(RuntimeError):
    """Fisher information is not invertible."""
    pass


def observed_information(model: LikelihoodModel, theta) -> np.ndarray:
    """Observed Fisher information J(θ) = -∇²ℓ(θ)."""
    return -np.asarray(model.hessian(np.asarray(theta, dtype=float)), dtype=float)


def invert_information(information: np.ndarray) -> Tuple[Optional[np.ndarray], ConvergenceStatus]:
    """
    Invert the Fisher information.

    Args:
        information: Observed information matrix (p x p)

    Returns:
        (V̂, CONVERGED), or (None, SINGULAR_INFORMATION) if the matrix is
        not symmetric positive-definite or is numerically singular
    """
    J = np.atleast_2d(np.asarray(information, dtype=float))
    if not np.all(np.isfinite(J)):
        return None, ConvergenceStatus.SINGULAR_INFORMATION
    J = 0.5 * (J + J.T)
    if not np.linalg.cond(J) <= MAX_CONDITION_NUMBER:
        return None, ConvergenceStatus.SINGULAR_INFORMATION
    try:
        factor = cho_factor(J)
    except LinAlgError:
        return None, ConvergenceStatus.SINGULAR_INFORMATION

    V = cho_solve(factor, np.eye(J.shape[0]))
    return 0.5 * (V + V.T), ConvergenceStatus.CONVERGED


def wald_intervals(theta, vcov: np.ndarray, alpha: float = 0.05) -> np.ndarray:
    """
    Two-sided (1 - α) Wald confidence intervals.

    Returns:
        Array (p, 2) of lower/upper bounds
    """
    if not 0 < alpha < 1:
        raise ValueError(f"alpha must be in (0, 1), got {alpha}")
    theta = np.asarray(theta, dtype=float).ravel()
    z = norm.ppf(1 - alpha / 2)
    half_width = z * np.sqrt(np.diag(vcov))
    return np.column_stack([theta - half_width, theta + half_width])


@dataclass(frozen=True, eq=False)
class FittedModel:
    """
    Fitted masked series-system model.

    Attributes:
        result: Optimizer outcome
        fisher_information: Observed information at θ̂ (None if unavailable)
        vcov: Variance-covariance estimate (None if unavailable)
        status: CONVERGED, an optimizer failure, or SINGULAR_INFORMATION
        nobs: Number of observations
        alpha: Default significance level for intervals
        sampling: Optional empirical sampling distribution
    """
    result: MLEResult
    fisher_information: Optional[np.ndarray]
    vcov: Optional[np.ndarray]
    status: ConvergenceStatus
    nobs: int
    alpha: float = 0.05
    sampling: Optional[SamplingDistribution] = None

    @property
    def point(self) -> np.ndarray:
        """Point estimate θ̂."""
        return self.result.theta

    @property
    def loglik(self) -> float:
        """Log-likelihood at θ̂."""
        return self.result.loglik

    @property
    def ok(self) -> bool:
        """True if the fit converged and V̂ is available."""
        return self.status == ConvergenceStatus.CONVERGED

    def require_vcov(self) -> np.ndarray:
        """
        Variance-covariance matrix.

        Raises:
            SingularInformationError: If the fit has no invertible information
        """
        if self.vcov is None:
            raise SingularInformationError(
                f"Variance-covariance unavailable (status: {self.status.value}); "
                f"use a more diverse masking design or more data"
            )
        return self.vcov

    def std_errors(self) -> np.ndarray:
        """Asymptotic standard errors √V̂_kk."""
        return np.sqrt(np.diag(self.require_vcov()))

    def confint(self, alpha: Optional[float] = None) -> np.ndarray:
        """
        Wald confidence intervals.

        Args:
            alpha: Significance level (default: model alpha)

        Returns:
            Array (p, 2)
        """
        alpha = self.alpha if alpha is None else alpha
        return wald_intervals(self.point, self.require_vcov(), alpha)

    def bias(self) -> np.ndarray:
        """
        Estimator bias.

        Empirical for a Monte Carlo sampling distribution, otherwise the
        asymptotic value (zero).
        """
        if self.sampling is not None and self.sampling.method == "monte_carlo":
            return self.sampling.bias()
        return np.zeros_like(self.point)

    def mse(self) -> float:
        """
        Estimator MSE.

        Trace of the empirical MSE matrix when a sampling distribution is
        attached, otherwise trace(V̂).
        """
        if self.sampling is not None:
            return self.sampling.mse()
        return float(np.trace(self.require_vcov()))

    def with_sampling(self, sampling: SamplingDistribution) -> "FittedModel":
        """Copy of this model with an empirical sampling distribution."""
        return replace(self, sampling=sampling)

    def summary(self) -> Dict:
        """Summary dictionary of the fit."""
        out = {
            "point": self.point.tolist(),
            "loglik": self.loglik,
            "status": self.status.value,
            "iterations": self.result.iterations,
            "method": self.result.method,
            "nobs": self.nobs,
        }
        if self.vcov is not None:
            out["std_errors"] = self.std_errors().tolist()
            out["confint"] = self.confint().tolist()
            out["mse"] = self.mse()
        if self.sampling is not None:
            out["resampling"] = {
                "method": self.sampling.method,
                "replicates": self.sampling.replicates,
                "failed": self.sampling.n_failed,
            }
        return out


def make_fitted_model(result: MLEResult, model: LikelihoodModel,
                      alpha: float = 0.05) -> FittedModel:
    """
    Derive uncertainty statistics from an optimizer result.

    Unconverged results keep their status and carry no variance-covariance.
    """
    if not result.converged:
        return FittedModel(
            result=result,
            fisher_information=None,
            vcov=None,
            status=result.status,
            nobs=model.nobs,
            alpha=alpha,
        )

    hessian = result.hessian if result.hessian is not None else model.hessian(result.theta)
    information = -np.asarray(hessian, dtype=float)
    vcov, status = invert_information(information)
    if vcov is None:
        logger.warning("Observed Fisher information is singular; no variance-covariance")

    return FittedModel(
        result=result,
        fisher_information=information,
        vcov=vcov,
        status=status,
        nobs=model.nobs,
        alpha=alpha,
    )


def default_initial_point(system: SeriesSystem, dataset: MaskedDataset) -> np.ndarray:
    """
    Starting point from the exponential-equivalent failure rate.

    Splits the pooled rate (uncensored count / total time) evenly across
    components; Weibull components start at shape 1.

    Raises:
        ValueError: If a component family has no default start
    """
    failures = max(int(dataset.uncensored.sum()), 1)
    rate = failures / max(dataset.total_time, np.finfo(float).tiny) / system.m
    theta = []
    for comp in system.components:
        if isinstance(comp, ExponentialComponent):
            theta.append(rate)
        elif isinstance(comp, WeibullComponent):
            theta.extend([1.0 / rate, 1.0])
        else:
            raise ValueError(
                f"No default starting point for {comp.name}; pass theta0 explicitly"
            )
    return np.array(theta)


class MaskedSeriesEstimator:
    """
    Maximum-likelihood estimator for masked series-system data.

    Combines the likelihood engine, optimizer and inference steps with a
    fixed configuration.

    Example:
    --------
    >>> config = load_config("config/default.yaml")
    >>> estimator = MaskedSeriesEstimator.from_config(config)
    >>> model = estimator.fit(md)
    >>> print(model.summary())
    """

    def __init__(self,
                 system: SeriesSystem,
                 optimizer: Optional[OptimizerConfig] = None,
                 alpha: float = 0.05,
                 resampling: Optional[Mapping] = None):
        """
        Initialize estimator.

        Args:
            system: Series system of component families
            optimizer: Optimizer settings
            alpha: Significance level for confidence intervals
            resampling: Defaults for refits {method, replicates, seed, n_jobs}
        """
        if not 0 < alpha < 1:
            raise ValueError(f"alpha must be in (0, 1), got {alpha}")
        self.system = system
        self.optimizer = optimizer or OptimizerConfig()
        self.alpha = alpha
        self.resampling = dict(DEFAULT_CONFIG["resampling"])
        self.resampling.update(resampling or {})

        logger.info(
            f"MaskedSeriesEstimator initialized: {system}, optimizer={self.optimizer.method}"
        )

    @classmethod
    def from_config(cls, config: Mapping) -> "MaskedSeriesEstimator":
        """
        Build from a configuration dictionary (see utils.config).

        Missing sections are filled from DEFAULT_CONFIG.
        """
        merged = merge_configs(DEFAULT_CONFIG, dict(config))
        validate_config(merged)
        system = SeriesSystem.from_families([c["family"] for c in merged["components"]])
        return cls(
            system=system,
            optimizer=OptimizerConfig.from_dict(merged["optimizer"]),
            alpha=float(merged["inference"]["alpha"]),
            resampling=merged["resampling"],
        )

    def likelihood(self, dataset: MaskedDataset) -> LikelihoodModel:
        """Log-likelihood model for a dataset."""
        return build_likelihood(self.system, dataset)

    def maximize(self, dataset: MaskedDataset, theta0=None) -> MLEResult:
        """
        Run the optimizer only.

        Raises:
            ParameterDomainError: If theta0 is outside the parameter support
        """
        model = self.likelihood(dataset)
        if theta0 is None:
            theta0 = default_initial_point(self.system, dataset)
        theta0 = self.system.check_parameters(theta0)
        return maximize(model, theta0, self.optimizer)

    def fit(self, dataset: MaskedDataset, theta0=None) -> FittedModel:
        """
        Fit the model to masked data.

        Args:
            dataset: Masked data
            theta0: Initial point (default: ``default_initial_point``)

        Returns:
            FittedModel
        """
        model = self.likelihood(dataset)
        if theta0 is None:
            theta0 = default_initial_point(self.system, dataset)
        theta0 = self.system.check_parameters(theta0)

        result = maximize(model, theta0, self.optimizer)
        fitted = make_fitted_model(result, model, self.alpha)
        log_fit_summary(fitted)
        return fitted

    def _resampling_option(self, key: str, value):
        return self.resampling.get(key) if value is None else value

    def monte_carlo(self, theta, n: int, tau=np.inf, p=0.0,
                    replicates: Optional[int] = None,
                    seed: Optional[int] = None,
                    n_jobs: Optional[int] = None) -> SamplingDistribution:
        """
        Monte Carlo sampling distribution at a known θ.

        Each replicate simulates n observations with censoring time(s) τ
        and masking probability p, then refits starting from θ.
        """
        theta = self.system.check_parameters(theta)

        def simulate(rng):
            return simulate_masked_data(self.system, theta, n, tau=tau, p=p, rng=rng)

        def fit(dataset):
            return self.maximize(dataset, theta)

        return monte_carlo_refits(
            simulate, fit, theta,
            replicates=int(self._resampling_option("replicates", replicates)),
            seed=self._resampling_option("seed", seed),
            n_jobs=int(self._resampling_option("n_jobs", n_jobs)),
        )

    def bootstrap(self, fitted: FittedModel, dataset: MaskedDataset,
                  replicates: Optional[int] = None,
                  seed: Optional[int] = None,
                  n_jobs: Optional[int] = None) -> FittedModel:
        """
        Attach a bootstrap sampling distribution to a fitted model.

        Each replicate refits a row resample of ``dataset`` starting from θ̂.
        """
        theta_hat = fitted.point

        def fit(resampled):
            return self.maximize(resampled, theta_hat)

        dist = bootstrap_refits(
            dataset, fit, theta_hat,
            replicates=int(self._resampling_option("replicates", replicates)),
            seed=self._resampling_option("seed", seed),
            n_jobs=int(self._resampling_option("n_jobs", n_jobs)),
        )
        return fitted.with_sampling(dist)

    def resample(self, fitted: FittedModel, dataset: MaskedDataset,
                 method: Optional[str] = None,
                 theta=None, tau=np.inf, p=0.0, **options) -> FittedModel:
        """
        Attach an empirical sampling distribution using the configured method.

        Monte Carlo needs the generating θ plus the censoring and masking
        design (τ, p); it simulates datasets of the same size as ``dataset``.
        """
        method = self._resampling_option("method", method)
        if method == "bootstrap":
            return self.bootstrap(fitted, dataset, **options)
        if method == "monte_carlo":
            if theta is None:
                raise ValueError("Monte Carlo resampling needs the true theta")
            dist = self.monte_carlo(theta, dataset.n, tau=tau, p=p, **options)
            return fitted.with_sampling(dist)
        raise ValueError(f"Invalid resampling method: {method}")
