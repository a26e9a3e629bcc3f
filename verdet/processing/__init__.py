"""
Processing package initialization.
"""

from .pipeline import (
    VerdetProcessor,
    VerdetPipelineManager,
    ProcessingResult,
    SegmentationResult,
    solve,
)
from .tvr import tvr_denoise, REWEIGHT_FLOOR
from .segmentation import merge_segments, build_interpolation_matrix, segment_count
from .fitting import fit_to_vertices, segment_slopes, classify_slopes

__all__ = [
    'VerdetProcessor',
    'VerdetPipelineManager',
    'ProcessingResult',
    'SegmentationResult',
    'solve',
    'tvr_denoise',
    'REWEIGHT_FLOOR',
    'merge_segments',
    'build_interpolation_matrix',
    'segment_count',
    'fit_to_vertices',
    'segment_slopes',
    'classify_slopes',
]
