"""
Masked Series Core - Component Hazard Models
=============================================

Defines the hazard/reliability capability consumed by the likelihood engine
and the series system built from it.

Capability Interface:
---------------------
Every component family implements two functions of time:

    h_j(t; θ_j) >= 0          [hazard]
    R_j(t; θ_j) in [0, 1]     [reliability, R_j(0) = 1, non-increasing]

vectorized over a batch of times. Families may additionally provide
analytic gradients with respect to θ_j, which the likelihood engine uses to
build an exact score.

Built-in Families:
------------------
1. EXPONENTIAL (θ_j = λ)
   h(t) = λ
   R(t) = exp(-λ t)

2. WEIBULL (θ_j = (scale η, shape β))
   h(t) = (β/η) (t/η)^(β-1)
   R(t) = exp(-(t/η)^β)

Series System:
--------------
A series system of m independent components fails at T = min_j T_j:

    R(t) = ∏_j R_j(t)
    h(t) = Σ_j h_j(t)
    f(t) = h(t) R(t)

Example:
--------
>>> system = SeriesSystem([ExponentialComponent(), WeibullComponent()])
>>> theta = np.array([0.5, 2.0, 1.5])
>>> system.reliability(1.0, theta)
>>> system.quantile(0.5, theta)

Author: Reliability Analytics Team
Date: October 19, 2026
"""

import numpy as np
from scipy.special import xlogy
from typing import List, Optional, Sequence, Tuple
from abc import ABC, abstractmethod
import logging

logger = logging.getLogger(__name__)


class ParameterDomainError(ValueError):
    """Parameter outside the support of a component family."""
    pass


class ComponentHazard(ABC):
    """
    Abstract base class for component lifetime families.

    Subclasses are stateless: all parameters are passed on every call as
    the component's own parameter sub-vector.
    """

    name = "component"
    n_params = 1
    supports_gradient = False

    @abstractmethod
    def hazard(self, t, theta: np.ndarray) -> np.ndarray:
        """
        Hazard function h(t; θ).

        Args:
            t: Time or array of times
            theta: Component parameter sub-vector

        Returns:
            Hazard values, same shape as t
        """
        pass

    @abstractmethod
    def reliability(self, t, theta: np.ndarray) -> np.ndarray:
        """
        Reliability (survival) function R(t; θ).

        Args:
            t: Time or array of times
            theta: Component parameter sub-vector

        Returns:
            Survival probabilities, same shape as t
        """
        pass

    def log_hazard(self, t, theta: np.ndarray) -> np.ndarray:
        """Log of the hazard function (-inf where h = 0)."""
        with np.errstate(divide="ignore"):
            return np.log(self.hazard(t, theta))

    def log_reliability(self, t, theta: np.ndarray) -> np.ndarray:
        """Log of the reliability function."""
        return np.log(self.reliability(t, theta))

    def hazard_near_zero(self, theta: np.ndarray) -> Tuple[float, float]:
        """
        Leading behaviour h(t) ~ c t^a as t -> 0.

        Returns:
            (a, log c)
        """
        raise NotImplementedError(f"{self.name} does not describe its hazard near t = 0")

    def in_support(self, theta: np.ndarray) -> bool:
        """True if θ is a valid parameter vector for this family."""
        theta = np.asarray(theta, dtype=float)
        return theta.shape == (self.n_params,) and bool(np.all(np.isfinite(theta)) and np.all(theta > 0))

    def check_parameters(self, theta) -> np.ndarray:
        """
        Validate θ and return it as a float array.

        Raises:
            ParameterDomainError: If θ is outside the support
        """
        theta = np.atleast_1d(np.asarray(theta, dtype=float))
        if theta.shape != (self.n_params,):
            raise ParameterDomainError(
                f"{self.name} expects {self.n_params} parameter(s), got {theta.size}"
            )
        if not self.in_support(theta):
            raise ParameterDomainError(
                f"{self.name} parameters must be positive and finite, got {theta}"
            )
        return theta

    def sample(self, n: int, theta: np.ndarray,
               rng: np.random.Generator) -> np.ndarray:
        """Draw n lifetimes from the component distribution."""
        raise NotImplementedError(f"{self.name} does not provide a sampler")

    def hazard_gradient(self, t, theta: np.ndarray) -> np.ndarray:
        """
        Gradient of h(t; θ) with respect to θ.

        Returns:
            Array of shape (len(t), n_params)
        """
        raise NotImplementedError(f"{self.name} does not provide analytic gradients")

    def log_reliability_gradient(self, t, theta: np.ndarray) -> np.ndarray:
        """
        Gradient of log R(t; θ) with respect to θ.

        Returns:
            Array of shape (len(t), n_params)
        """
        raise NotImplementedError(f"{self.name} does not provide analytic gradients")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class ExponentialComponent(ComponentHazard):
    """
    Exponential lifetime, θ = (rate,).

    The hazard is constant in time, which is what makes the sufficient
    statistic fast path of the likelihood engine possible.

    Example:
    --------
    >>> comp = ExponentialComponent()
    >>> comp.reliability(2.0, [0.5])
    0.3678...
    """

    name = "exponential"
    n_params = 1
    supports_gradient = True

    def hazard(self, t, theta):
        rate = self.check_parameters(theta)[0]
        return np.full_like(np.asarray(t, dtype=float), rate)

    def log_hazard(self, t, theta):
        rate = self.check_parameters(theta)[0]
        return np.full_like(np.asarray(t, dtype=float), np.log(rate))

    def hazard_near_zero(self, theta):
        rate = self.check_parameters(theta)[0]
        return 0.0, float(np.log(rate))

    def reliability(self, t, theta):
        return np.exp(self.log_reliability(t, theta))

    def log_reliability(self, t, theta):
        rate = self.check_parameters(theta)[0]
        t = np.asarray(t, dtype=float)
        return -rate * np.maximum(t, 0.0)

    def sample(self, n, theta, rng):
        rate = self.check_parameters(theta)[0]
        return rng.exponential(scale=1.0 / rate, size=n)

    def hazard_gradient(self, t, theta):
        self.check_parameters(theta)
        t = np.atleast_1d(np.asarray(t, dtype=float))
        return np.ones((t.size, 1))

    def log_reliability_gradient(self, t, theta):
        self.check_parameters(theta)
        t = np.atleast_1d(np.asarray(t, dtype=float))
        return -np.maximum(t, 0.0).reshape(-1, 1)


class WeibullComponent(ComponentHazard):
    """
    Weibull lifetime, θ = (scale, shape).

    Derivatives used for the analytic score (z = t/η):
        ∂log R/∂η =  (β/η) z^β
        ∂log R/∂β = -z^β log z
        ∂h/∂η     = -β h / η
        ∂h/∂β     =  h (1/β + log z)
    """

    name = "weibull"
    n_params = 2
    supports_gradient = True

    def hazard(self, t, theta):
        scale, shape = self.check_parameters(theta)
        t = np.asarray(t, dtype=float)
        z = np.maximum(t, 0.0) / scale
        with np.errstate(divide="ignore", invalid="ignore"):
            h = shape / scale * z ** (shape - 1.0)
        return np.where(t < 0, 0.0, h)

    def log_hazard(self, t, theta):
        scale, shape = self.check_parameters(theta)
        t = np.asarray(t, dtype=float)
        # xlogy keeps shape 1 finite at t = 0
        log_h = np.log(shape / scale) + xlogy(shape - 1.0, np.maximum(t, 0.0) / scale)
        return np.where(t < 0, -np.inf, log_h)

    def hazard_near_zero(self, theta):
        scale, shape = self.check_parameters(theta)
        return shape - 1.0, float(np.log(shape) - shape * np.log(scale))

    def reliability(self, t, theta):
        return np.exp(self.log_reliability(t, theta))

    def log_reliability(self, t, theta):
        scale, shape = self.check_parameters(theta)
        t = np.asarray(t, dtype=float)
        return -(np.maximum(t, 0.0) / scale) ** shape

    def sample(self, n, theta, rng):
        scale, shape = self.check_parameters(theta)
        return scale * rng.weibull(shape, size=n)

    def hazard_gradient(self, t, theta):
        scale, shape = self.check_parameters(theta)
        t = np.atleast_1d(np.asarray(t, dtype=float))
        h = self.hazard(t, theta)
        with np.errstate(divide="ignore"):
            log_z = np.log(t / scale)
        return np.column_stack([-shape * h / scale, h * (1.0 / shape + log_z)])

    def log_reliability_gradient(self, t, theta):
        scale, shape = self.check_parameters(theta)
        t = np.atleast_1d(np.asarray(t, dtype=float))
        z = t / scale
        z_pow = z ** shape
        with np.errstate(divide="ignore", invalid="ignore"):
            d_shape = np.where(z > 0, -z_pow * np.log(np.where(z > 0, z, 1.0)), 0.0)
        return np.column_stack([shape / scale * z_pow, d_shape])


COMPONENT_FAMILIES = {
    "exponential": ExponentialComponent,
    "weibull": WeibullComponent,
}


def make_component(family: str) -> ComponentHazard:
    """
    Create a built-in component by family name.

    Raises:
        ValueError: If the family is unknown
    """
    try:
        return COMPONENT_FAMILIES[family.lower()]()
    except KeyError:
        raise ValueError(
            f"Unknown component family: {family}. "
            f"Must be one of {sorted(COMPONENT_FAMILIES)}"
        )


class SeriesSystem:
    """
    Series system of m independent components.

    The flat parameter vector θ is partitioned into per-component
    sub-vectors in component order, with lengths given by ``n_params``.

    Example:
    --------
    >>> system = SeriesSystem.exponential(3)
    >>> system.split(np.array([1.0, 1.25, 1.75]))
    [array([1.]), array([1.25]), array([1.75])]
    """

    def __init__(self, components: Sequence[ComponentHazard]):
        """
        Initialize series system.

        Args:
            components: Ordered component families

        Raises:
            ValueError: If no components are given
        """
        components = tuple(components)
        if len(components) == 0:
            raise ValueError("A series system needs at least one component")
        for comp in components:
            if not isinstance(comp, ComponentHazard):
                raise TypeError(f"Expected ComponentHazard, got {type(comp).__name__}")

        self.components = components
        self.n_params = tuple(int(c.n_params) for c in components)
        self._offsets = np.cumsum((0,) + self.n_params)

    @classmethod
    def exponential(cls, m: int) -> "SeriesSystem":
        """Series system of m exponential components."""
        return cls([ExponentialComponent() for _ in range(m)])

    @classmethod
    def weibull(cls, m: int) -> "SeriesSystem":
        """Series system of m Weibull components."""
        return cls([WeibullComponent() for _ in range(m)])

    @classmethod
    def from_families(cls, families: Sequence[str]) -> "SeriesSystem":
        """Series system from a list of family names."""
        return cls([make_component(f) for f in families])

    @property
    def m(self) -> int:
        """Number of components."""
        return len(self.components)

    @property
    def dim(self) -> int:
        """Length of the flat parameter vector."""
        return int(self._offsets[-1])

    @property
    def is_exponential(self) -> bool:
        """True if every component is exponential."""
        return all(isinstance(c, ExponentialComponent) for c in self.components)

    @property
    def supports_gradient(self) -> bool:
        """True if every component provides analytic gradients."""
        return all(c.supports_gradient for c in self.components)

    def split(self, theta) -> List[np.ndarray]:
        """
        Partition θ into per-component sub-vectors.

        Raises:
            ParameterDomainError: If θ has the wrong length
        """
        theta = np.asarray(theta, dtype=float).ravel()
        if theta.size != self.dim:
            raise ParameterDomainError(
                f"Parameter vector has length {theta.size}, system expects {self.dim}"
            )
        return [theta[self._offsets[j]:self._offsets[j + 1]] for j in range(self.m)]

    def block(self, j: int) -> slice:
        """Slice of the flat vector owned by component j (0-based)."""
        return slice(int(self._offsets[j]), int(self._offsets[j + 1]))

    def in_support(self, theta) -> bool:
        """True if θ lies in the support of every component."""
        theta = np.asarray(theta, dtype=float).ravel()
        if theta.size != self.dim:
            return False
        return all(c.in_support(p) for c, p in zip(self.components, self.split(theta)))

    def check_parameters(self, theta) -> np.ndarray:
        """
        Validate the flat parameter vector.

        Raises:
            ParameterDomainError: If any sub-vector is outside its support
        """
        theta = np.asarray(theta, dtype=float).ravel()
        for comp, params in zip(self.components, self.split(theta)):
            comp.check_parameters(params)
        return theta

    def component_hazards(self, t, theta) -> np.ndarray:
        """
        Hazard of every component at every time.

        Returns:
            Array of shape (len(t), m)
        """
        t = np.atleast_1d(np.asarray(t, dtype=float))
        return np.column_stack([
            comp.hazard(t, params)
            for comp, params in zip(self.components, self.split(theta))
        ])

    def component_log_hazards(self, t, theta) -> np.ndarray:
        """Log hazard of every component at every time, shape (len(t), m)."""
        t = np.atleast_1d(np.asarray(t, dtype=float))
        return np.column_stack([
            comp.log_hazard(t, params)
            for comp, params in zip(self.components, self.split(theta))
        ])

    def hazards_near_zero(self, theta) -> Tuple[np.ndarray, np.ndarray]:
        """
        Per-component (a_j, log c_j) with h_j(t) ~ c_j t^a_j as t -> 0.

        Returns:
            Two arrays of shape (m,)
        """
        orders = [comp.hazard_near_zero(params)
                  for comp, params in zip(self.components, self.split(theta))]
        exponents, log_coefficients = zip(*orders)
        return np.array(exponents), np.array(log_coefficients)

    def component_log_reliabilities(self, t, theta) -> np.ndarray:
        """
        Log reliability of every component at every time.

        Returns:
            Array of shape (len(t), m)
        """
        t = np.atleast_1d(np.asarray(t, dtype=float))
        return np.column_stack([
            comp.log_reliability(t, params)
            for comp, params in zip(self.components, self.split(theta))
        ])

    def reliability(self, t, theta):
        """System reliability R(t) = ∏_j R_j(t)."""
        scalar = np.ndim(t) == 0
        r = np.exp(self.component_log_reliabilities(t, theta).sum(axis=1))
        return float(r[0]) if scalar else r

    def hazard(self, t, theta):
        """System hazard h(t) = Σ_j h_j(t)."""
        scalar = np.ndim(t) == 0
        h = self.component_hazards(t, theta).sum(axis=1)
        return float(h[0]) if scalar else h

    def pdf(self, t, theta):
        """System lifetime density f(t) = h(t) R(t), zero for t < 0."""
        scalar = np.ndim(t) == 0
        t_arr = np.atleast_1d(np.asarray(t, dtype=float))
        f = np.where(
            t_arr < 0, 0.0,
            self.component_hazards(t_arr, theta).sum(axis=1)
            * np.exp(self.component_log_reliabilities(t_arr, theta).sum(axis=1))
        )
        return float(f[0]) if scalar else f

    def cdf(self, t, theta):
        """System lifetime distribution F(t) = 1 - R(t)."""
        scalar = np.ndim(t) == 0
        t_arr = np.atleast_1d(np.asarray(t, dtype=float))
        F = -np.expm1(self.component_log_reliabilities(t_arr, theta).sum(axis=1))
        return float(F[0]) if scalar else F

    def quantile(self, p, theta, eps: float = 1e-3, t0: float = 1.0,
                 max_iterations: int = 1000):
        """
        Inverse of the system cdf.

        Solves F(t) - p = 0 by Newton's method on -log R(t) + log(1 - p),
        halving the step whenever it would leave t > 0.

        Args:
            p: Probability or array of probabilities in [0, 1)
            theta: Flat parameter vector
            eps: Stopping tolerance on |t_{k+1} - t_k|
            t0: Initial guess
            max_iterations: Newton iteration cap per probability

        Returns:
            Quantile(s), same shape as p
        """
        theta = self.check_parameters(theta)
        scalar = np.ndim(p) == 0
        p_arr = np.atleast_1d(np.asarray(p, dtype=float))
        if np.any((p_arr < 0) | (p_arr >= 1)):
            raise ValueError("Probabilities must lie in [0, 1)")

        out = np.empty_like(p_arr)
        for idx, prob in enumerate(p_arr):
            if prob == 0:
                out[idx] = 0.0
                continue
            target = -np.log1p(-prob)
            t_cur = float(t0)
            for _ in range(max_iterations):
                cum_hazard = -self.component_log_reliabilities(t_cur, theta).sum()
                slope = self.component_hazards(t_cur, theta).sum()
                step = (cum_hazard - target) / slope
                alpha = 1.0
                t_new = t_cur - alpha * step
                while t_new <= 0:
                    alpha /= 2
                    t_new = t_cur - alpha * step
                if abs(t_new - t_cur) < eps:
                    t_cur = t_new
                    break
                t_cur = t_new
            else:
                logger.warning(f"Quantile iteration cap reached for p={prob}")
            out[idx] = t_cur
        return float(out[0]) if scalar else out

    def sample_component_lifetimes(self, n: int, theta,
                                   rng: Optional[np.random.Generator] = None) -> np.ndarray:
        """
        Draw n independent lifetimes for every component.

        Returns:
            Array of shape (n, m)
        """
        if n <= 0:
            raise ValueError(f"Sample size must be positive, got {n}")
        rng = rng if rng is not None else np.random.default_rng()
        return np.column_stack([
            comp.sample(n, params, rng)
            for comp, params in zip(self.components, self.split(self.check_parameters(theta)))
        ])

    def sample_lifetimes(self, n: int, theta,
                         rng: Optional[np.random.Generator] = None) -> np.ndarray:
        """Draw n system lifetimes T = min_j T_j."""
        return self.sample_component_lifetimes(n, theta, rng).min(axis=1)

    def __repr__(self) -> str:
        families = ", ".join(c.name for c in self.components)
        return f"SeriesSystem([{families}])"
