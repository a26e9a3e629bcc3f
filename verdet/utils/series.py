"""
Input checks for observation series handed to the solver.
"""

from typing import Sequence, Union

import numpy as np

from ..exceptions import InvalidSeriesError

SeriesLike = Union[Sequence[float], np.ndarray]

MIN_SERIES_LENGTH = 2


def as_series(values: SeriesLike, name: str = "series") -> np.ndarray:
    """
    Copy ``values`` into a fresh float64 array and check it can be segmented.

    Args:
        values: One-dimensional sequence of observations, one per time step
        name: Label used in error messages

    Returns:
        A new 1-D float64 array

    Raises:
        InvalidSeriesError: if the input is not 1-D, is shorter than two
            samples, or contains NaN/Inf
    """
    try:
        arr = np.array(values, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidSeriesError(f"{name} is not numeric: {e}") from e

    if arr.ndim != 1:
        raise InvalidSeriesError(f"{name} must be one-dimensional, got shape {arr.shape}")
    if arr.size < MIN_SERIES_LENGTH:
        raise InvalidSeriesError(
            f"{name} needs at least {MIN_SERIES_LENGTH} samples, got {arr.size}"
        )
    if not np.all(np.isfinite(arr)):
        raise InvalidSeriesError(f"{name} contains missing or non-finite values")
    return arr


def has_missing(values: np.ndarray) -> bool:
    """True if any sample is NaN or infinite (a masked pixel upstream)."""
    return not bool(np.all(np.isfinite(values)))
