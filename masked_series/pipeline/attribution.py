"""
Masked Series Pipeline - Failure Attribution
=============================================

Posterior probability that each component caused an observed failure.

Attribution Model:
------------------
Given θ̂, a candidate set C and a failure time t:

    Pr(K = j | C, T = t) = h_j(t; θ̂_j) / Σ_{j' ∈ C} h_{j'}(t; θ̂_{j'})   for j ∈ C
                         = 0                                          for j ∉ C

For exponential components the hazards are constant, so the posterior is
a ratio of rates and does not depend on t.

The ratio is normalized in log space. At t = 0, where every candidate
hazard may be 0 or infinite, the t -> 0 limit is returned: for h_j(t) ~
c_j t^a_j the candidates with the smallest a_j share the mass in proportion
to c_j.

Sampling Distribution:
----------------------
The posterior is a function of the random θ̂. Its sampling distribution is
approximated by recomputing it at draws from N(θ̂, V̂) (draws outside the
parameter support are discarded) or at bootstrap estimates.

Example:
--------
>>> probs = failure_probabilities(system, theta_hat, {1, 3}, t=0.8)
>>> probs.sum()
1.0

Author: Reliability Analytics Team
Date: October 19, 2026
"""

import numpy as np
from scipy.special import logsumexp
from typing import Optional
import logging

from ..core.hazards import SeriesSystem
from ..data.dataset import MaskingConditionError

logger = logging.getLogger(__name__)


def candidate_matrix(candidates, m: int) -> np.ndarray:
    """
    Normalize a candidate-set argument to a boolean matrix.

    Accepts a set/list of 1-based component indices, a boolean vector of
    length m, or a boolean matrix (n, m).

    Returns:
        Boolean array (n, m)
    """
    if isinstance(candidates, (set, frozenset)):
        candidates = sorted(candidates)
    arr = np.asarray(candidates)

    if arr.dtype == bool:
        arr = np.atleast_2d(arr)
        if arr.shape[1] != m:
            raise ValueError(f"Candidate membership needs {m} columns, got {arr.shape[1]}")
        return arr

    indices = arr.astype(int).ravel()
    if np.any((indices < 1) | (indices > m)):
        raise ValueError(f"Candidate indices must lie in 1..{m}, got {indices.tolist()}")
    row = np.zeros((1, m), dtype=bool)
    row[0, indices - 1] = True
    return row


def failure_probabilities(system: SeriesSystem, theta, candidates, t) -> np.ndarray:
    """
    Posterior failure probabilities of each component.

    Args:
        system: Series system
        theta: Parameter vector
        candidates: Candidate set(s), see ``candidate_matrix``
        t: Failure time (scalar) or times, one per candidate row

    Returns:
        Array (m,) for a single pair, (n, m) for a batch

    Raises:
        MaskingConditionError: If a candidate set is empty
        ValueError: If candidate hazards are not finite at some t > 0
    """
    theta = system.check_parameters(theta)
    C = candidate_matrix(candidates, system.m)
    single = C.shape[0] == 1 and np.ndim(t) == 0

    times = np.atleast_1d(np.asarray(t, dtype=float))
    if times.size == 1 and C.shape[0] > 1:
        times = np.full(C.shape[0], times[0])
    if C.shape[0] == 1 and times.size > 1:
        C = np.repeat(C, times.size, axis=0)
    if times.size != C.shape[0]:
        raise ValueError(f"Got {times.size} times for {C.shape[0]} candidate sets")

    if np.any(~C.any(axis=1)):
        raise MaskingConditionError("Candidate sets must be non-empty")

    log_h = np.where(C, system.component_log_hazards(times, theta), -np.inf)
    probs = np.zeros(C.shape)

    regular = np.isfinite(log_h.max(axis=1))
    if np.any(regular):
        rows = log_h[regular]
        probs[regular] = np.exp(rows - logsumexp(rows, axis=1, keepdims=True))

    singletons = ~regular & (C.sum(axis=1) == 1)
    probs[singletons] = C[singletons]

    degenerate = ~regular & ~singletons
    if np.any(degenerate):
        if np.any(times[degenerate] > 0):
            raise ValueError("Candidate hazards are not finite at a positive failure time")
        probs[degenerate] = _posterior_at_zero(system, theta, C[degenerate])
    return probs[0] if single else probs


def _posterior_at_zero(system: SeriesSystem, theta, C: np.ndarray) -> np.ndarray:
    # t -> 0 limit: the candidates with the smallest hazard exponent share
    # the mass in proportion to their leading coefficients
    exponents, log_coefficients = system.hazards_near_zero(theta)
    orders = np.where(C, exponents, np.inf)
    leading = orders == orders.min(axis=1, keepdims=True)
    weights = np.where(leading, log_coefficients, -np.inf)
    return np.exp(weights - logsumexp(weights, axis=1, keepdims=True))


def sample_failure_probabilities(system: SeriesSystem, theta_hat, candidates, t,
                                 vcov: Optional[np.ndarray] = None,
                                 draws: Optional[np.ndarray] = None,
                                 n_draws: int = 1000,
                                 rng: Optional[np.random.Generator] = None,
                                 max_attempts: int = 100) -> np.ndarray:
    """
    Sampling distribution of the posterior for one (C, t) pair.

    Args:
        system: Series system
        theta_hat: Point estimate
        candidates: Candidate set
        t: Failure time
        vcov: Variance-covariance of θ̂ for normal draws
        draws: Parameter draws (e.g. bootstrap estimates), used instead of vcov
        n_draws: Number of normal draws
        rng: Random generator
        max_attempts: Redraw rounds allowed to fill n_draws in-support draws

    Returns:
        Array (n_draws, m) of posterior vectors
    """
    if np.ndim(t) != 0:
        raise ValueError("Sampling distribution is computed for a single failure time")

    if draws is None:
        if vcov is None:
            raise ValueError("Provide either vcov or draws")
        rng = rng if rng is not None else np.random.default_rng()
        theta_hat = np.asarray(theta_hat, dtype=float).ravel()
        accepted = []
        remaining = n_draws
        for _ in range(max_attempts):
            batch = rng.multivariate_normal(theta_hat, vcov, size=remaining)
            keep = [row for row in batch if system.in_support(row)]
            accepted.extend(keep)
            remaining -= len(keep)
            if remaining <= 0:
                break
        else:
            raise RuntimeError(
                f"Could not draw {n_draws} in-support parameter vectors "
                f"after {max_attempts} attempts"
            )
        draws = np.array(accepted[:n_draws])
    else:
        draws = np.atleast_2d(np.asarray(draws, dtype=float))
        draws = draws[[system.in_support(row) for row in draws]]

    logger.debug(f"Posterior sampling distribution from {len(draws)} parameter draws")
    return np.array([failure_probabilities(system, row, candidates, t) for row in draws])


class FailureAttribution:
    """
    Failure attribution for a fitted model.

    Example:
    --------
    >>> attribution = FailureAttribution(system, fitted)
    >>> attribution.posterior({1, 2}, t=0.5)
    >>> attribution.most_probable({1, 2}, t=0.5)
    """

    def __init__(self, system: SeriesSystem, fitted):
        """
        Initialize attribution.

        Args:
            system: Series system used for the fit
            fitted: FittedModel
        """
        self.system = system
        self.fitted = fitted

    def posterior(self, candidates, t) -> np.ndarray:
        """Posterior failure probabilities at θ̂."""
        return failure_probabilities(self.system, self.fitted.point, candidates, t)

    def most_probable(self, candidates, t):
        """1-based index (or indices, for a batch) of the most probable cause."""
        probs = self.posterior(candidates, t)
        if probs.ndim == 1:
            return int(np.argmax(probs)) + 1
        return np.argmax(probs, axis=1) + 1

    def posterior_distribution(self, candidates, t, n_draws: int = 1000,
                               rng: Optional[np.random.Generator] = None,
                               use_sampling: bool = False) -> np.ndarray:
        """
        Sampling distribution of the posterior.

        Uses the attached resampling estimates when ``use_sampling`` is set,
        otherwise draws from N(θ̂, V̂).
        """
        if use_sampling:
            if self.fitted.sampling is None:
                raise ValueError("Fitted model has no sampling distribution attached")
            return sample_failure_probabilities(
                self.system, self.fitted.point, candidates, t,
                draws=self.fitted.sampling.estimates,
            )
        return sample_failure_probabilities(
            self.system, self.fitted.point, candidates, t,
            vcov=self.fitted.require_vcov(), n_draws=n_draws, rng=rng,
        )
