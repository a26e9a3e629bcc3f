"""
1-D, first-derivative total variation regularization (TVR) of a yearly series.

The problem solved is

    min_u  ||A u - g||^2 + alpha * TV(u)

where ``A`` is the lower-triangular all-ones anti-derivative operator and
``g`` is the input with its time=0 intercept removed. ``u`` is therefore a
slope estimate whose TV penalty favours piecewise-constant slopes, i.e. a
piecewise-linear reconstruction. The L1 penalty is handled by iteratively
reweighted least squares: each iteration replaces ``|du|`` with
``du^2 / |du_prev|`` and solves the resulting quadratic problem.
"""

import logging

import numpy as np

from ..exceptions import SolverError

logger = logging.getLogger(__name__)

# Added to |u[j+1] - u[j]| before inverting. Tied to input values in [0, 1];
# revisit if series are not scaled that way.
REWEIGHT_FLOOR = 1e-6

# Iterations run before the convergence test is first applied
CONVERGENCE_WARMUP = 20


def anti_derivative_gram(size: int) -> np.ndarray:
    """
    Closed form of A'A for the ``size x size`` all-ones lower-triangular A.

    A'A(i, j) = size - max(i, j), assuming 0-based indexing:

        [ size   size-1 size-2 ... 1
          size-1 size-1 size-2 ... 1
          ...
          1      1      1      ... 1 ]
    """
    idx = np.arange(size)
    return (size - np.maximum.outer(idx, idx)).astype(np.float64)


def reverse_cumsum(values: np.ndarray) -> np.ndarray:
    """A' applied to ``values``: target[i] = sum(values[i:])."""
    return np.cumsum(values[::-1])[::-1]


def _update_band(L: np.ndarray, u: np.ndarray, alpha: float) -> None:
    """Overwrite the tridiagonal band of ``L`` with A'A plus the TV weights."""
    size = u.size
    weights = alpha / (REWEIGHT_FLOOR + np.abs(np.diff(u)))

    idx = np.arange(size)
    prev = np.concatenate(([0.0], weights))
    curr = np.concatenate((weights, [0.0]))
    L[idx, idx] = (size - idx) + prev + curr

    off = idx[:-1]
    L[off, off + 1] = (size - off - 1) - weights
    L[off + 1, off] = L[off, off + 1]


def tvr_denoise(f: np.ndarray, alpha: float, tolerance: float, max_iterations: int) -> np.ndarray:
    """
    Return a nearly piecewise-constant slope estimate of ``f``.

    Args:
        f: Series of at least two finite samples
        alpha: Regularization weight; higher means more denoising
        tolerance: Max absolute change between iterates that counts as converged
        max_iterations: Upper bound on reweighting iterations

    Returns:
        Slope estimate ``u`` with the same length as ``f``

    Raises:
        SolverError: if a reweighted system is exactly singular
    """
    f = np.asarray(f, dtype=np.float64)
    size = f.size

    # Initial guess with the time=0 intercept removed
    u = f - f[0]
    target = reverse_cumsum(u)

    L = anti_derivative_gram(size)
    u_prev = np.full(size, np.inf)

    converged_at = None
    for iteration in range(max_iterations):
        _update_band(L, u, alpha)

        try:
            u = np.linalg.solve(L, target)
        except np.linalg.LinAlgError as e:
            raise SolverError(f"TVR system is singular at iteration {iteration}: {e}") from e

        if iteration > CONVERGENCE_WARMUP:
            if np.max(np.abs(u_prev - u)) <= tolerance:
                converged_at = iteration
                break
            u_prev = u.copy()

    if converged_at is None:
        logger.warning(f"TVR stopped at max_iterations={max_iterations} without converging")
    else:
        logger.debug(f"TVR converged after {converged_at + 1} iterations")

    return u
