"""
Core VeRDET processing pipeline.

Implements the temporal segmentation of:
    Hughes, M.J., Kaylor, S.D. and Hayes, D.J., 2017. Patch-based forest
    change detection from Landsat time series. Forests, 8(5), p.166.

Each series goes through 1-D first-derivative TVR denoising, a simple merge of
neighbouring similarly-sloped segments and a least-squares re-interpolation.
Spatial denoising and segmentation are not performed.
"""

import logging
import time
import concurrent.futures
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from ..config.settings import ProcessingConfig, VerdetConfig
from ..exceptions import InvalidSeriesError, VerdetError
from ..utils.series import SeriesLike, as_series, has_missing
from .fitting import fit_to_vertices
from .segmentation import build_interpolation_matrix, merge_segments, segment_count
from .tvr import tvr_denoise

logger = logging.getLogger(__name__)


@dataclass
class SegmentationResult:
    """Intermediate products of one segmentation."""
    slopes: np.ndarray
    segment_ids: np.ndarray
    interpolater: np.ndarray

    @property
    def segment_count(self) -> int:
        return segment_count(self.segment_ids)


@dataclass
class ProcessingResult:
    """Result of VeRDET processing on one series."""
    success: bool
    index: int
    processing_time: float
    result: Optional[np.ndarray] = None
    segment_count: int = 0
    error_message: str = None
    error: Optional[VerdetError] = None


class VerdetProcessor:
    """
    Runs the VeRDET solver on series of yearly observations.

    One processor is meant to be built per configuration and reused across
    many independent series (pixels). Its only state is the last series
    length seen.
    """

    def __init__(self, config: VerdetConfig = None, processing: ProcessingConfig = None):
        """
        Initialize the processor.

        Args:
            config: Algorithm parameters (defaults if None)
            processing: Batch settings (defaults if None)
        """
        self.config = config if config is not None else VerdetConfig()
        self.processing = processing if processing is not None else ProcessingConfig()
        self.config.validate()
        self.size = 0

    def init(self, size: int):
        """Remember the series length; repeated lengths are a no-op."""
        if self.size == size:
            return
        logger.debug(f"Processor length changed from {self.size} to {size}")
        self.size = size

    def segment(self, series: SeriesLike) -> SegmentationResult:
        """
        Denoise ``series`` and derive its segmentation and basis.

        Raises:
            InvalidSeriesError: for series that cannot be segmented
            SolverError: if the TVR system is singular
        """
        self.config.validate()
        f = as_series(series)
        self.init(f.size)

        slopes = tvr_denoise(
            f,
            alpha=self.config.alpha,
            tolerance=self.config.tolerance,
            max_iterations=self.config.max_iterations,
        )
        segment_ids = merge_segments(slopes, self.config.alpha)
        interpolater = build_interpolation_matrix(segment_ids)
        return SegmentationResult(slopes=slopes, segment_ids=segment_ids, interpolater=interpolater)

    def solve(self, series: SeriesLike, fit_series: SeriesLike = None) -> np.ndarray:
        """
        Compute the piecewise-linear reconstruction of a series.

        Args:
            series: Observations used to find the segmentation
            fit_series: Optional observations fitted onto that segmentation
                instead of ``series`` (same length)

        Returns:
            Reconstructed series, same length as the input
        """
        segmentation = self.segment(series)

        if fit_series is None:
            target = as_series(series)
        else:
            target = as_series(fit_series, name="fit_series")
            if target.size != segmentation.segment_ids.size:
                raise InvalidSeriesError(
                    f"fit_series has {target.size} samples, expected {segmentation.segment_ids.size}"
                )

        return fit_to_vertices(segmentation.interpolater, target)

    def process_series(self, series: SeriesLike, index: int = 0) -> ProcessingResult:
        """
        Solve a single series, reporting failures instead of raising them.

        Args:
            series: Observations for one pixel
            index: Position of the series within its batch

        Returns:
            ProcessingResult with the reconstruction or an error message
        """
        start_time = time.time()

        try:
            segmentation = self.segment(series)
            result = fit_to_vertices(segmentation.interpolater, as_series(series))

            return ProcessingResult(
                success=True,
                index=index,
                processing_time=time.time() - start_time,
                result=result,
                segment_count=segmentation.segment_count,
            )

        except VerdetError as e:
            error_msg = f"Failed to process series {index}: {str(e)}"
            logger.error(error_msg)

            return ProcessingResult(
                success=False,
                index=index,
                processing_time=time.time() - start_time,
                error_message=error_msg,
                error=e,
            )

    def process_multiple_series(self, rows: Sequence[SeriesLike]) -> List[ProcessingResult]:
        """
        Process multiple series in parallel.

        Args:
            rows: Series to process, one per row

        Returns:
            List of ProcessingResult objects in input order
        """
        logger.info(f"Starting batch processing of {len(rows)} series")

        results = []

        with concurrent.futures.ThreadPoolExecutor(
            max_workers=self.processing.max_workers
        ) as executor:

            future_to_index = {
                executor.submit(self.process_series, row, index): index
                for index, row in enumerate(rows)
            }

            for future in concurrent.futures.as_completed(future_to_index):
                results.append(future.result())

        results.sort(key=lambda r: r.index)

        successful = sum(1 for r in results if r.success)
        total_time = sum(r.processing_time for r in results)
        logger.info(f"Batch processing complete: {successful}/{len(rows)} successful, "
                    f"{total_time:.2f}s total processing time")

        return results

    def solve_stack(self, stack: np.ndarray) -> np.ndarray:
        """
        Solve every row of a 2-D ``(n_series, n_years)`` array.

        Rows with a missing (non-finite) sample, or that the solver rejects,
        are left as NaN when ``skip_invalid`` is set; otherwise the first such
        row raises.

        Returns:
            Array of the same shape holding the reconstructions
        """
        stack = np.asarray(stack, dtype=np.float64)
        if stack.ndim != 2:
            raise InvalidSeriesError(f"stack must be two-dimensional, got shape {stack.shape}")

        output = np.full(stack.shape, np.nan)
        valid_rows = []
        for index, row in enumerate(stack):
            if has_missing(row):
                if not self.processing.skip_invalid:
                    raise InvalidSeriesError(f"series {index} contains missing values")
                continue
            valid_rows.append(index)

        skipped = stack.shape[0] - len(valid_rows)
        if skipped:
            logger.warning(f"Skipped {skipped} series with missing values")

        for result in self.process_multiple_series([stack[i] for i in valid_rows]):
            row_index = valid_rows[result.index]
            if result.success:
                output[row_index] = result.result
            elif not self.processing.skip_invalid:
                raise result.error

        return output


class VerdetPipelineManager:
    """High-level helpers for VeRDET processing."""

    @staticmethod
    def create_config(**kwargs) -> VerdetConfig:
        """
        Create a validated algorithm configuration.

        Args:
            **kwargs: Overrides for alpha, tolerance and max_iterations

        Returns:
            VerdetConfig object
        """
        config = VerdetConfig(**kwargs)
        config.validate()
        return config

    @staticmethod
    def run_single(series: SeriesLike, config: VerdetConfig = None) -> ProcessingResult:
        """Run VeRDET on a single series."""
        processor = VerdetProcessor(config)
        return processor.process_series(series)

    @staticmethod
    def run_batch(rows: Sequence[SeriesLike], config: VerdetConfig = None,
                  processing: ProcessingConfig = None) -> List[ProcessingResult]:
        """Run VeRDET on multiple series."""
        processor = VerdetProcessor(config, processing)
        return processor.process_multiple_series(rows)


def solve(series: SeriesLike, config: VerdetConfig = None, fit_series: SeriesLike = None) -> np.ndarray:
    """Piecewise-linear VeRDET reconstruction of ``series``."""
    return VerdetProcessor(config).solve(series, fit_series=fit_series)
