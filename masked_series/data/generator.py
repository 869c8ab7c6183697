"""
Masked Series Data - Masked Data Generator
===========================================

Generates masked series-system data satisfying conditions C1, C2 and C3.

Generation Stages:
------------------
Each stage takes a column table and returns a new one with extra columns;
the input table is never modified.

1. series_lifetimes                  t1..tm       → t, k
2. apply_right_censoring             t, τ         → s, delta   (k = 0 if censored)
3. bernoulli_candidate_probabilities k, delta, p  → q1..qm
4. sample_candidate_sets             q1..qm       → x1..xm

Bernoulli Candidate Model:
--------------------------
For an uncensored row i with failed component K:

    q_K = 1                     (C1: K always in the candidate set)
    q_j = γ_i   for j != K      (C2: same probability for every non-failed j)

γ_i comes from a masking-probability function p(n) that never looks at θ
(C3). Degenerate cases:

    γ ≡ 0  →  C = {K}           (no masking)
    γ ≡ 1  →  C = {1..m}        (only the system time is informative)

The rule lives in BernoulliCandidateModel.probabilities; every stage that
takes a ``candidate_model`` accepts a subclass with a different rule.

Example:
--------
>>> rng = np.random.default_rng(7)
>>> system = SeriesSystem.exponential(3)
>>> md = simulate_masked_data(system, [1.0, 1.25, 1.75], n=1000,
...                           tau=2.0, p=0.3, rng=rng)
>>> md.n_censored
...

Author: Reliability Analytics Team
Date: October 19, 2026
"""

import numpy as np
from typing import Callable, Dict, Mapping, Optional, Union
import logging

from .dataset import (
    DataValidationError,
    MaskedDataset,
    MaskingConditionError,
    column_indices,
    decode_matrix,
)

logger = logging.getLogger(__name__)

ProbabilitySpec = Union[float, np.ndarray, Callable[[int], np.ndarray]]


def _table_length(table: Mapping) -> int:
    lengths = {len(np.atleast_1d(np.asarray(v))) for v in table.values()}
    if len(lengths) > 1:
        raise DataValidationError(f"Columns have different lengths: {sorted(lengths)}")
    n = lengths.pop() if lengths else 0
    if n <= 0:
        raise DataValidationError("Table must contain at least one row")
    return n


def _require(table: Mapping, *columns: str) -> None:
    missing = [c for c in columns if c not in table]
    if missing:
        raise DataValidationError(f"Missing required column(s): {missing}")


def _component_count(table: Mapping) -> int:
    for prefix in ("t", "q", "x"):
        indices = column_indices(table.keys(), prefix)
        if indices:
            return len(indices)
    raise DataValidationError("Cannot infer number of components: no t1..tm, q1..qm or x1..xm columns")


def _broadcast(value, n: int, name: str) -> np.ndarray:
    arr = np.asarray(value, dtype=float)
    if arr.ndim == 0:
        arr = np.full(n, float(arr))
    arr = arr.ravel()
    if arr.size != n:
        raise DataValidationError(f"{name} must be a scalar or have length {n}, got {arr.size}")
    return arr


def masking_probabilities(p: ProbabilitySpec, n: int) -> np.ndarray:
    """
    Evaluate a masking-probability argument for n rows.

    Args:
        p: Constant γ, per-row array, or function p(n) returning n values

    Returns:
        Array of γ_i in [0, 1], shape (n,)

    Raises:
        DataValidationError: If any γ_i is outside [0, 1]
    """
    gamma = _broadcast(p(n) if callable(p) else p, n, "Masking probability")
    if np.any(~np.isfinite(gamma)) or np.any((gamma < 0) | (gamma > 1)):
        raise DataValidationError("Masking probabilities must lie in [0, 1]")
    return gamma


def series_lifetimes(table: Mapping) -> Dict[str, np.ndarray]:
    """
    Derive the system lifetime and failed component from t1..tm.

    Returns:
        New table with columns t (row minimum) and k (1-based argmin)
    """
    n = _table_length(table)
    lifetimes = decode_matrix(table, "t").astype(float)
    if lifetimes.shape[0] != n:
        raise DataValidationError("Lifetime columns have the wrong length")
    if np.any(~np.isfinite(lifetimes)) or np.any(lifetimes < 0):
        raise DataValidationError("Component lifetimes must be finite and non-negative")

    out = dict(table)
    out["t"] = lifetimes.min(axis=1)
    out["k"] = lifetimes.argmin(axis=1) + 1
    return out


def apply_right_censoring(table: Mapping, tau) -> Dict[str, np.ndarray]:
    """
    Right-censor system lifetimes at τ.

    Args:
        table: Table with column t (and optionally k)
        tau: Scalar or per-row censoring time(s)

    Returns:
        New table with s = min(t, τ), delta = t > τ, k = 0 where censored
    """
    _require(table, "t")
    n = _table_length(table)
    tau = _broadcast(tau, n, "Censoring time")
    if np.any(np.isnan(tau)) or np.any(tau < 0):
        raise DataValidationError("Censoring times must be non-negative")

    t = np.asarray(table["t"], dtype=float)
    delta = t > tau

    out = dict(table)
    out["s"] = np.where(delta, tau, t)
    out["delta"] = delta
    if "k" in table:
        out["k"] = np.where(delta, 0, np.asarray(table["k"], dtype=int))
    return out


class BernoulliCandidateModel:
    """
    Candidate model of the masked data generator.

    Maps failure indices and masking probabilities to candidate-set
    membership probabilities: the failed component K is always a member and
    every other component is included independently with probability γ.
    Censored rows get an empty set. Subclasses may override
    ``probabilities`` and are used by every generator stage that accepts
    a ``candidate_model``.

    Example:
    --------
    >>> model = BernoulliCandidateModel()
    >>> model.sample(k=2, m=3, gamma=0.0, rng=np.random.default_rng(0))
    array([False,  True, False])
    """

    def probabilities(self, k: np.ndarray, delta: np.ndarray,
                      gamma: np.ndarray, m: int) -> np.ndarray:
        """
        Membership probabilities q_ij.

        Args:
            k: Failure indices (1-based, ignored where censored), shape (n,)
            delta: Censoring indicators, shape (n,)
            gamma: Masking probabilities in [0, 1], shape (n,)
            m: Number of components

        Returns:
            Array (n, m)
        """
        q = np.repeat(np.asarray(gamma, dtype=float)[:, None], m, axis=1)
        rows = np.flatnonzero(~delta)
        q[rows, k[rows] - 1] = 1.0
        q[delta] = 0.0
        return q

    def sample(self, k: int, m: int, gamma: float,
               rng: np.random.Generator) -> np.ndarray:
        """
        Draw one candidate membership vector.

        Args:
            k: Failed component (1-based)
            m: Number of components
            gamma: Masking probability in [0, 1]
            rng: Random generator

        Returns:
            Boolean membership vector of length m
        """
        if m <= 0:
            raise DataValidationError(f"Number of components must be positive, got {m}")
        if not 1 <= k <= m:
            raise MaskingConditionError(f"Failure index {k} out of range 1..{m}")
        if not 0.0 <= gamma <= 1.0:
            raise DataValidationError(f"Masking probability must lie in [0, 1], got {gamma}")
        q = self.probabilities(np.array([k]), np.array([False]), np.array([gamma]), m)[0]
        return rng.random(m) < q


def bernoulli_candidate_probabilities(table: Mapping, p: ProbabilitySpec,
                                      m: Optional[int] = None,
                                      candidate_model: Optional[BernoulliCandidateModel] = None) -> Dict[str, np.ndarray]:
    """
    Candidate-set membership probabilities under the Bernoulli model.

    Args:
        table: Table with column k (and delta, if censored)
        p: Masking probability (scalar or callable), see ``masking_probabilities``
        m: Number of components (inferred from t1..tm when omitted)
        candidate_model: Rule mapping (k, delta, γ) to q (Bernoulli by default)

    Returns:
        New table with columns q1..qm
    """
    _require(table, "k")
    n = _table_length(table)
    m = _component_count(table) if m is None else int(m)
    if m <= 0:
        raise DataValidationError(f"Number of components must be positive, got {m}")

    k = np.asarray(table["k"], dtype=int)
    delta = np.asarray(table["delta"], dtype=bool) if "delta" in table else np.zeros(n, dtype=bool)
    if np.any(~delta & ((k < 1) | (k > m))):
        raise MaskingConditionError("Uncensored rows need a failure index in 1..m")
    gamma = masking_probabilities(p, n)

    model = candidate_model if candidate_model is not None else BernoulliCandidateModel()
    q = model.probabilities(k, delta, gamma, m)

    out = dict(table)
    for j in range(m):
        out[f"q{j + 1}"] = q[:, j]
    return out


def sample_candidate_sets(table: Mapping,
                          rng: Optional[np.random.Generator] = None) -> Dict[str, np.ndarray]:
    """
    Draw candidate sets from membership probabilities q1..qm.

    Returns:
        New table with boolean columns x1..xm, x_j = (U_ij < q_j)
    """
    rng = rng if rng is not None else np.random.default_rng()
    _table_length(table)
    q = decode_matrix(table, "q").astype(float)

    x = rng.random(q.shape) < q

    out = dict(table)
    for j in range(q.shape[1]):
        out[f"x{j + 1}"] = x[:, j]
    return out


def generate_masked_data(lifetimes: np.ndarray,
                         tau=np.inf,
                         p: ProbabilitySpec = 0.0,
                         rng: Optional[np.random.Generator] = None,
                         candidate_model: Optional[BernoulliCandidateModel] = None) -> MaskedDataset:
    """
    Generate masked data from sampled component lifetimes.

    Args:
        lifetimes: Component lifetimes, shape (n, m)
        tau: Scalar or per-row right-censoring time(s)
        p: Masking probability (scalar or callable)
        rng: Random generator for candidate sampling
        candidate_model: Candidate model (Bernoulli by default)

    Returns:
        Validated MaskedDataset (with true failure index k)

    Raises:
        DataValidationError: If n <= 0, m <= 0 or inputs are malformed
    """
    lifetimes = np.asarray(lifetimes, dtype=float)
    if lifetimes.ndim != 2:
        raise DataValidationError("Lifetimes must be a 2-D array (n observations x m components)")
    n, m = lifetimes.shape
    if n <= 0 or m <= 0:
        raise DataValidationError(f"Need n > 0 and m > 0, got n={n}, m={m}")

    table = {f"t{j + 1}": lifetimes[:, j] for j in range(m)}
    table = series_lifetimes(table)
    table = apply_right_censoring(table, tau)
    table = bernoulli_candidate_probabilities(table, p, m=m, candidate_model=candidate_model)
    table = sample_candidate_sets(table, rng)

    md = MaskedDataset.from_columns(table)
    logger.debug(f"Generated masked data: n={n}, m={m}, censored={md.n_censored}")
    return md


def simulate_masked_data(system, theta, n: int,
                         tau=np.inf,
                         p: ProbabilitySpec = 0.0,
                         rng: Optional[np.random.Generator] = None,
                         candidate_model: Optional[BernoulliCandidateModel] = None) -> MaskedDataset:
    """
    Simulate masked data from a series system.

    Args:
        system: SeriesSystem providing component samplers
        theta: Flat parameter vector
        n: Sample size
        tau: Right-censoring time(s)
        p: Masking probability (scalar or callable)
        rng: Random generator
        candidate_model: Candidate model (Bernoulli by default)

    Returns:
        MaskedDataset
    """
    if n <= 0:
        raise DataValidationError(f"Sample size must be positive, got {n}")
    rng = rng if rng is not None else np.random.default_rng()
    lifetimes = system.sample_component_lifetimes(n, theta, rng)
    return generate_masked_data(lifetimes, tau=tau, p=p, rng=rng,
                                candidate_model=candidate_model)
