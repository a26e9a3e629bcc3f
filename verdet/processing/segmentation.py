"""
Temporal segmentation from a denoised slope estimate.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


def merge_segments(slopes: np.ndarray, threshold: float) -> np.ndarray:
    """
    Assign each sample to a segment, merging neighbours with near-equal slope.

    A new segment starts at ``i + 1`` when its slope differs from the slope at
    the last confirmed boundary by more than ``threshold``. The scan is a
    single greedy left-to-right pass. The last sample always closes the final
    segment and gets its own id.

    The segment count has to be known before the interpolation matrix is
    built, so this can't be folded into that loop.

    Args:
        slopes: Slope estimate from the TVR denoiser
        threshold: Merge threshold (the regularization ``alpha``)

    Returns:
        Non-decreasing integer segment ids, ``ids[0] == 0`` and
        ``ids[-1] == ids[-2] + 1``
    """
    slopes = np.asarray(slopes, dtype=np.float64)
    size = slopes.size

    segment_ids = np.zeros(size, dtype=np.int64)
    count = 0
    last_boundary = 1

    for i in range(1, size - 1):
        if abs(slopes[i + 1] - slopes[last_boundary]) > threshold:
            count += 1
            last_boundary = i + 1
        segment_ids[i] = count

    segment_ids[size - 1] = count + 1

    logger.debug(f"Merged {size} samples into {count + 1} segment(s)")
    return segment_ids


def segment_count(segment_ids: np.ndarray) -> int:
    """Number of slope changes kept by the merger."""
    return int(segment_ids[-1]) - 1


def build_interpolation_matrix(segment_ids: np.ndarray) -> np.ndarray:
    """
    Build the piecewise-linear basis for a segment assignment.

    Each row expresses its sample as a mixture of the two vertices bounding
    its segment, linearly weighted by position. The final row is pinned to the
    last vertex.

    Args:
        segment_ids: Output of :func:`merge_segments`

    Returns:
        ``(n, segment_ids[-1] + 1)`` array whose rows sum to 1
    """
    segment_ids = np.asarray(segment_ids)
    size = segment_ids.size

    interpolater = np.zeros((size, int(segment_ids[-1]) + 1), dtype=np.float64)
    last = 0
    for i in range(1, size):
        if segment_ids[i] != segment_ids[last]:
            for j in range(last, i):
                weight = (j - last) / (i - last)
                interpolater[j, segment_ids[j]] = 1 - weight
                interpolater[j, segment_ids[j] + 1] = weight
            last = i

    interpolater[size - 1, segment_ids[size - 1]] = 1.0
    return interpolater
