"""
Masked Series Core - Optimizers
================================

Iterative maximizers for log-likelihood functions:

1. NEWTON-RAPHSON
   - Direction d = -H⁻¹ g (Hessian from the likelihood model)
   - Quadratic convergence near the optimum
   - Falls back to the gradient when H is not negative definite

2. GRADIENT ASCENT
   - Direction d = g
   - Only needs the score, converges linearly

Both strategies share one update rule

    θ(k+1) = θ(k) + α(k) d(k)

with α chosen by backtracking: start at the configured initial step and
halve until ℓ improves, up to a maximum number of halvings.

Termination:
------------
CONVERGED            ‖g‖∞ < eps, or ‖Δθ‖∞ < eps
MAX_ITERATIONS       iteration cap reached
LINE_SEARCH_FAILED   no improvement after max_halvings halvings
SINGULAR_CURVATURE   Hessian not invertible
DIVERGED             objective or gradient became non-finite

A line search that fails while the predicted gain of the step is below the
floating-point resolution of ℓ counts as convergence.

Numerical failures are reported on the result, never raised.

Example:
--------
>>> config = OptimizerConfig(method="newton_raphson", eps=1e-10)
>>> result = maximize(model, theta0, config)
>>> result.status, result.theta

Author: Reliability Analytics Team
Date: October 19, 2026
"""

import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple
import logging
from scipy.linalg import LinAlgError, solve

logger = logging.getLogger(__name__)


class ConvergenceStatus(str, Enum):
    """Outcome of an optimizer run or inference step."""
    CONVERGED = "converged"
    MAX_ITERATIONS = "max_iterations"
    LINE_SEARCH_FAILED = "line_search_failed"
    SINGULAR_CURVATURE = "singular_curvature"
    DIVERGED = "diverged"
    SINGULAR_INFORMATION = "singular_information"


OPTIMIZER_METHODS = ("newton_raphson", "gradient_ascent")

# Curvature matrices beyond this condition number are treated as singular
MAX_CONDITION_NUMBER = 1e14

# Relative gain in f below which a failed line search counts as convergence
IMPROVEMENT_RESOLUTION = 1e-8


@dataclass(frozen=True)
class OptimizerConfig:
    """
    Optimizer settings.

    Attributes:
        method: "newton_raphson" or "gradient_ascent"
        eps: Tolerance on the gradient norm and the step norm
        max_iterations: Iteration cap
        max_halvings: Maximum step halvings per line search
        initial_step: First step size tried by each line search
    """
    method: str = "newton_raphson"
    eps: float = 1e-8
    max_iterations: int = 200
    max_halvings: int = 50
    initial_step: float = 1.0

    def __post_init__(self):
        if self.method not in OPTIMIZER_METHODS:
            raise ValueError(
                f"Invalid optimizer method: {self.method}. Must be one of {list(OPTIMIZER_METHODS)}"
            )
        if not self.eps > 0:
            raise ValueError("Optimizer eps must be positive")
        if self.max_iterations < 1:
            raise ValueError("Optimizer max_iterations must be at least 1")
        if self.max_halvings < 0:
            raise ValueError("Optimizer max_halvings must be non-negative")
        if not self.initial_step > 0:
            raise ValueError("Optimizer initial_step must be positive")

    @classmethod
    def from_dict(cls, options: Optional[Dict]) -> "OptimizerConfig":
        """Build from a configuration mapping, ignoring unknown keys."""
        options = options or {}
        known = {k: options[k] for k in cls.__dataclass_fields__ if k in options}
        for key in ("max_iterations", "max_halvings"):
            if key in known:
                known[key] = int(known[key])
        for key in ("eps", "initial_step"):
            if key in known:
                known[key] = float(known[key])
        return cls(**known)


@dataclass(frozen=True, eq=False)
class MLEResult:
    """
    Outcome of a likelihood maximization.

    Attributes:
        theta: Final parameter vector
        loglik: Log-likelihood at theta
        status: ConvergenceStatus
        iterations: Number of iterations performed
        method: Optimizer name
        gradient: Score at theta
        hessian: Hessian at theta (None if unavailable)
    """
    theta: np.ndarray
    loglik: float
    status: ConvergenceStatus
    iterations: int
    method: str
    gradient: Optional[np.ndarray] = None
    hessian: Optional[np.ndarray] = None

    def __post_init__(self):
        for name in ("theta", "gradient", "hessian"):
            value = getattr(self, name)
            if value is not None:
                value = np.array(value, dtype=float)
                value.setflags(write=False)
                object.__setattr__(self, name, value)

    @property
    def converged(self) -> bool:
        return self.status == ConvergenceStatus.CONVERGED

    def __repr__(self) -> str:
        return (
            f"MLEResult(theta={np.array2string(self.theta, precision=6)}, "
            f"loglik={self.loglik:.6f}, status={self.status.value}, "
            f"iterations={self.iterations}, method={self.method})"
        )


def backtracking_line_search(f: Callable[[np.ndarray], float],
                             theta: np.ndarray,
                             direction: np.ndarray,
                             f0: float,
                             initial_step: float = 1.0,
                             max_halvings: int = 50) -> Optional[Tuple[np.ndarray, float, float, int]]:
    """
    Backtracking line search for ascent.

    Starts at ``initial_step`` and halves α until f(θ + α d) is finite and
    strictly greater than f0.

    Args:
        f: Objective to maximize
        theta: Current point
        direction: Ascent direction
        f0: Objective at the current point
        initial_step: First α tried
        max_halvings: Maximum number of halvings

    Returns:
        (θ_new, f_new, α, halvings), or None if no improving step was found
    """
    alpha = initial_step
    for halvings in range(max_halvings + 1):
        candidate = theta + alpha * direction
        value = f(candidate)
        if np.isfinite(value) and value > f0:
            return candidate, value, alpha, halvings
        alpha /= 2
    return None


def _negligible_improvement(grad, direction, step: float, f_val: float) -> bool:
    """True if the first-order gain of a full step is below the resolution of f."""
    predicted = step * float(direction @ grad)
    return predicted <= IMPROVEMENT_RESOLUTION * max(1.0, abs(f_val))


def _finish(theta, f_val, grad, status, iterations, method, hessian=None) -> MLEResult:
    if status == ConvergenceStatus.CONVERGED:
        logger.info(
            f"{method} converged in {iterations} iterations: loglik={f_val:.6f}"
        )
    else:
        logger.warning(
            f"{method} stopped with status {status.value} after {iterations} iterations"
        )
    return MLEResult(
        theta=theta,
        loglik=float(f_val),
        status=status,
        iterations=iterations,
        method=method,
        gradient=grad,
        hessian=hessian,
    )


def newton_raphson(f: Callable[[np.ndarray], float],
                   theta0,
                   score: Callable[[np.ndarray], np.ndarray],
                   hessian: Callable[[np.ndarray], np.ndarray],
                   config: Optional[OptimizerConfig] = None) -> MLEResult:
    """
    Maximize f by Newton-Raphson with backtracking.

    Args:
        f: Objective
        theta0: Initial point
        score: Gradient of f
        hessian: Hessian of f
        config: Optimizer settings

    Returns:
        MLEResult with the Hessian at the final point
    """
    config = config or OptimizerConfig(method="newton_raphson")
    method = "newton_raphson"
    theta = np.array(theta0, dtype=float).ravel()
    f_val = f(theta)
    if not np.isfinite(f_val):
        return _finish(theta, f_val, None, ConvergenceStatus.DIVERGED, 0, method)

    grad = score(theta)
    H = None
    for iteration in range(1, config.max_iterations + 1):
        if not np.all(np.isfinite(grad)):
            return _finish(theta, f_val, grad, ConvergenceStatus.DIVERGED, iteration - 1, method)
        if np.max(np.abs(grad)) < config.eps:
            return _finish(theta, f_val, grad, ConvergenceStatus.CONVERGED,
                           iteration - 1, method, hessian(theta))

        H = hessian(theta)
        if not np.all(np.isfinite(H)):
            return _finish(theta, f_val, grad, ConvergenceStatus.DIVERGED, iteration - 1, method, H)
        if not np.linalg.cond(H) <= MAX_CONDITION_NUMBER:
            return _finish(theta, f_val, grad, ConvergenceStatus.SINGULAR_CURVATURE,
                           iteration - 1, method, H)
        try:
            direction = -solve(H, grad, assume_a="sym")
        except (LinAlgError, ValueError):
            return _finish(theta, f_val, grad, ConvergenceStatus.SINGULAR_CURVATURE,
                           iteration - 1, method, H)

        if not np.all(np.isfinite(direction)):
            return _finish(theta, f_val, grad, ConvergenceStatus.SINGULAR_CURVATURE,
                           iteration - 1, method, H)
        if direction @ grad <= 0:
            logger.debug(f"Iteration {iteration}: Hessian not negative definite, using gradient")
            direction = grad

        step = backtracking_line_search(
            f, theta, direction, f_val, config.initial_step, config.max_halvings
        )
        if step is None:
            if (np.max(np.abs(config.initial_step * direction)) < config.eps
                    or _negligible_improvement(grad, direction, config.initial_step, f_val)):
                return _finish(theta, f_val, grad, ConvergenceStatus.CONVERGED,
                               iteration - 1, method, H)
            return _finish(theta, f_val, grad, ConvergenceStatus.LINE_SEARCH_FAILED,
                           iteration, method, H)

        theta_new, f_new, alpha, halvings = step
        delta = np.max(np.abs(theta_new - theta))
        theta, f_val = theta_new, f_new
        grad = score(theta)
        logger.debug(
            f"Iteration {iteration}: loglik={f_val:.8f}, alpha={alpha:.3g} "
            f"({halvings} halvings), step={delta:.3g}"
        )
        if delta < config.eps:
            return _finish(theta, f_val, grad, ConvergenceStatus.CONVERGED,
                           iteration, method, hessian(theta))

    return _finish(theta, f_val, grad, ConvergenceStatus.MAX_ITERATIONS,
                   config.max_iterations, method, hessian(theta))


def gradient_ascent(f: Callable[[np.ndarray], float],
                    theta0,
                    score: Callable[[np.ndarray], np.ndarray],
                    config: Optional[OptimizerConfig] = None,
                    hessian: Optional[Callable[[np.ndarray], np.ndarray]] = None) -> MLEResult:
    """
    Maximize f by gradient ascent with backtracking.

    Args:
        f: Objective
        theta0: Initial point
        score: Gradient of f
        config: Optimizer settings
        hessian: Optional Hessian, evaluated once at the final point

    Returns:
        MLEResult
    """
    config = config or OptimizerConfig(method="gradient_ascent")
    method = "gradient_ascent"
    theta = np.array(theta0, dtype=float).ravel()
    f_val = f(theta)
    if not np.isfinite(f_val):
        return _finish(theta, f_val, None, ConvergenceStatus.DIVERGED, 0, method)

    def final_hessian(x):
        return hessian(x) if hessian is not None else None

    grad = score(theta)
    for iteration in range(1, config.max_iterations + 1):
        if not np.all(np.isfinite(grad)):
            return _finish(theta, f_val, grad, ConvergenceStatus.DIVERGED, iteration - 1, method)
        if np.max(np.abs(grad)) < config.eps:
            return _finish(theta, f_val, grad, ConvergenceStatus.CONVERGED,
                           iteration - 1, method, final_hessian(theta))

        step = backtracking_line_search(
            f, theta, grad, f_val, config.initial_step, config.max_halvings
        )
        if step is None:
            if _negligible_improvement(grad, grad, config.initial_step, f_val):
                return _finish(theta, f_val, grad, ConvergenceStatus.CONVERGED,
                               iteration - 1, method, final_hessian(theta))
            return _finish(theta, f_val, grad, ConvergenceStatus.LINE_SEARCH_FAILED,
                           iteration, method, final_hessian(theta))

        theta_new, f_new, alpha, halvings = step
        delta = np.max(np.abs(theta_new - theta))
        theta, f_val = theta_new, f_new
        grad = score(theta)
        if iteration % 100 == 0:
            logger.debug(f"Iteration {iteration}: loglik={f_val:.8f}, alpha={alpha:.3g}, step={delta:.3g}")
        if delta < config.eps:
            return _finish(theta, f_val, grad, ConvergenceStatus.CONVERGED,
                           iteration, method, final_hessian(theta))

    return _finish(theta, f_val, grad, ConvergenceStatus.MAX_ITERATIONS,
                   config.max_iterations, method, final_hessian(theta))


def maximize(model, theta0, config: Optional[OptimizerConfig] = None) -> MLEResult:
    """
    Maximize a LikelihoodModel with the configured strategy.

    Args:
        model: LikelihoodModel (loglik, score, hessian)
        theta0: Initial point
        config: Optimizer settings

    Returns:
        MLEResult
    """
    config = config or OptimizerConfig()
    theta0 = np.asarray(theta0, dtype=float).ravel()
    if theta0.size != model.n_params:
        raise ValueError(
            f"Initial point has length {theta0.size}, model expects {model.n_params}"
        )
    logger.debug(f"Maximizing {model.name} with {config.method} from {theta0}")

    if config.method == "newton_raphson":
        return newton_raphson(model.loglik, theta0, model.score, model.hessian, config)
    return gradient_ascent(model.loglik, theta0, model.score, config, hessian=model.hessian)
