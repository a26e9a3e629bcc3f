"""
Fit a piecewise-linear model to a series and summarise its slopes.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)

DISTURBANCE = -1
STABLE = 0
REGENERATION = 1


def solve_vertices(interpolater: np.ndarray, f: np.ndarray) -> np.ndarray:
    """
    Least-squares vertex values for ``interpolater @ v ~= f``.

    ``lstsq`` returns the minimum-norm solution for rank-deficient systems
    rather than raising.
    """
    vertices, _, rank, _ = np.linalg.lstsq(interpolater, f, rcond=None)
    if rank < interpolater.shape[1]:
        logger.warning(
            f"Vertex system is rank deficient (rank {rank} < {interpolater.shape[1]})"
        )
    return vertices


def fit_to_vertices(interpolater: np.ndarray, f: np.ndarray) -> np.ndarray:
    """
    Fit the segments described by ``interpolater`` to the points ``f``.

    ``f`` need not be the series that produced the segmentation, so one index
    can drive segmentation while another band is reported.

    Args:
        interpolater: Basis from :func:`build_interpolation_matrix`
        f: Series of the same length as the basis has rows

    Returns:
        Reconstructed series (``interpolater @ vertices``)
    """
    f = np.asarray(f, dtype=np.float64)
    size, n_vertices = interpolater.shape
    vertices = solve_vertices(interpolater, f)

    # Each row has at most two non-zeros at (j, j+1); walk j forward instead of
    # doing a dense product.
    out = np.empty(size, dtype=np.float64)
    j = 0
    for i in range(size):
        out[i] = interpolater[i, j] * vertices[j]
        if j + 1 < n_vertices:
            out[i] += interpolater[i, j + 1] * vertices[j + 1]
        if interpolater[i, j] == 0:
            j += 1

    return out


def segment_slopes(fitted: np.ndarray) -> np.ndarray:
    """Per-step slope of a reconstruction; the first entry is 0."""
    fitted = np.asarray(fitted, dtype=np.float64)
    slopes = np.zeros_like(fitted)
    slopes[1:] = np.diff(fitted)
    return slopes


def classify_slopes(slopes: np.ndarray, threshold: float = 0.0) -> np.ndarray:
    """
    Label each step as disturbance (-1), stable (0) or regeneration (1).

    Steps whose magnitude does not exceed ``threshold`` are stable.
    """
    slopes = np.asarray(slopes, dtype=np.float64)
    labels = np.full(slopes.shape, STABLE, dtype=np.int8)
    labels[slopes < -threshold] = DISTURBANCE
    labels[slopes > threshold] = REGENERATION
    return labels
