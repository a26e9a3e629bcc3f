import numpy as np
import pytest

import verdet
from verdet.config import ProcessingConfig, VerdetConfig
from verdet.exceptions import ConfigurationError, InvalidSeriesError
from verdet.processing import VerdetPipelineManager, VerdetProcessor, segment_count

FIXTURE = [0.82, 0.78, 0.77, 0.86, 0.94, 0.95, 0.70, 0.78, 0.61, 0.42,
           0.28, 0.18, 0.10, 0.10, 0.12, 0.24, 0.39, 0.43, 0.50, 0.70]

# Reconstruction of FIXTURE with the default configuration
FIXTURE_EXPECTED = [
    0.77016, 0.80204, 0.83392, 0.8658, 0.89768, 0.92956,
    0.8075085714285718, 0.6854571428571431, 0.5634057142857144,
    0.4413542857142858, 0.3193028571428571, 0.1972514285714286,
    0.0752, 0.10272, 0.13024, 0.23672, 0.3432, 0.44968, 0.55616, 0.66264,
]

FIXTURE_SEGMENT_IDS = [0, 0, 0, 0, 0, 1, 1, 1, 1, 1, 1, 1, 2, 2, 3, 3, 3, 3, 3, 4]


@pytest.fixture
def processor():
    return VerdetProcessor(VerdetConfig())


def piecewise_linear_series():
    # Rises 0.05/yr to sample 10 then falls 0.1/yr
    return np.concatenate((0.2 + 0.05 * np.arange(11), 0.7 - 0.1 * np.arange(1, 10)))


def test_fixture_series(processor):
    result = processor.solve(FIXTURE)
    assert result.shape == (20,)
    assert np.all(np.isfinite(result))

    np.testing.assert_allclose(result, FIXTURE_EXPECTED, rtol=1e-12)

    # Rise, steep fall, rise
    assert np.all(np.diff(result[:6]) > 0)
    assert np.all(np.diff(result[5:13]) < 0)
    assert np.all(np.diff(result[12:]) > 0)


def test_fixture_segmentation(processor):
    segmentation = processor.segment(FIXTURE)
    assert segmentation.segment_ids.tolist() == FIXTURE_SEGMENT_IDS
    assert segmentation.segment_count == 3


def test_solve_is_deterministic(processor):
    first = processor.solve(FIXTURE)
    second = VerdetProcessor(VerdetConfig()).solve(FIXTURE)
    assert np.array_equal(first, second)
    assert np.array_equal(first, processor.solve(FIXTURE))


def test_two_samples_return_endpoints(processor):
    assert np.allclose(processor.solve([0.3, 0.8]), [0.3, 0.8])


def test_large_alpha_gives_straight_line():
    processor = VerdetProcessor(VerdetConfig(alpha=10.0))
    segmentation = processor.segment(FIXTURE)
    assert segmentation.segment_count == 0

    result = processor.solve(FIXTURE)
    assert np.allclose(np.diff(result, 2), 0.0, atol=1e-10)


def test_small_alpha_recovers_breakpoint():
    f = piecewise_linear_series()
    processor = VerdetProcessor(VerdetConfig(alpha=0.01, tolerance=1e-6, max_iterations=200))

    segmentation = processor.segment(f)
    assert segment_count(segmentation.segment_ids) == 1
    assert segmentation.segment_ids.tolist() == [0] * 10 + [1] * 9 + [2]
    assert np.allclose(processor.solve(f), f, atol=1e-6)


def test_fit_series_uses_same_segmentation(processor):
    other = 2 * np.asarray(FIXTURE)
    assert np.allclose(processor.solve(FIXTURE, fit_series=other), 2 * processor.solve(FIXTURE))


def test_fit_series_length_mismatch(processor):
    with pytest.raises(InvalidSeriesError):
        processor.solve(FIXTURE, fit_series=FIXTURE[:-1])


def test_input_not_modified(processor):
    series = np.asarray(FIXTURE)
    original = series.copy()
    processor.solve(series)
    assert np.array_equal(series, original)


@pytest.mark.parametrize("series", [
    [0.5],
    [],
    [0.1, float("nan"), 0.3],
    [0.1, float("inf")],
    [[0.1, 0.2], [0.3, 0.4]],
    ["a", "b"],
])
def test_invalid_series(processor, series):
    with pytest.raises(InvalidSeriesError):
        processor.solve(series)


def test_invalid_config_rejected():
    with pytest.raises(ConfigurationError):
        VerdetProcessor(VerdetConfig(alpha=0))


def test_init_caches_length(processor):
    processor.solve(FIXTURE)
    assert processor.size == 20
    processor.solve([0.1, 0.2, 0.3])
    assert processor.size == 3


def test_process_series_reports_failure(processor):
    result = processor.process_series([0.1], index=4)
    assert not result.success
    assert result.index == 4
    assert result.result is None
    assert "series 4" in result.error_message


def test_process_multiple_series_keeps_order(processor):
    rows = [FIXTURE, piecewise_linear_series(), [0.1], [0.4, 0.2]]
    results = processor.process_multiple_series(rows)

    assert [r.index for r in results] == [0, 1, 2, 3]
    assert [r.success for r in results] == [True, True, False, True]
    assert np.array_equal(results[0].result, processor.solve(FIXTURE))
    assert np.allclose(results[3].result, [0.4, 0.2])


def test_solve_stack_skips_missing_rows():
    processor = VerdetProcessor(VerdetConfig(), ProcessingConfig(max_workers=2))
    stack = np.array([FIXTURE, FIXTURE, FIXTURE])
    stack[1, 5] = np.nan

    output = processor.solve_stack(stack)
    assert output.shape == stack.shape
    assert np.all(np.isnan(output[1]))
    assert np.array_equal(output[0], processor.solve(FIXTURE))
    assert np.array_equal(output[2], output[0])


def test_solve_stack_raises_when_not_skipping():
    processor = VerdetProcessor(VerdetConfig(), ProcessingConfig(skip_invalid=False))
    stack = np.array([FIXTURE, FIXTURE])
    stack[0, 0] = np.nan
    with pytest.raises(InvalidSeriesError):
        processor.solve_stack(stack)


def test_solve_stack_requires_2d(processor):
    with pytest.raises(InvalidSeriesError):
        processor.solve_stack(np.asarray(FIXTURE))


def test_pipeline_manager():
    config = VerdetPipelineManager.create_config(alpha=0.1)
    assert config.alpha == 0.1

    single = VerdetPipelineManager.run_single(FIXTURE, config)
    assert single.success
    assert single.result.shape == (20,)

    batch = VerdetPipelineManager.run_batch([FIXTURE, FIXTURE], config)
    assert all(r.success for r in batch)

    with pytest.raises(ConfigurationError):
        VerdetPipelineManager.create_config(max_iterations=0)


def test_module_level_solve():
    assert np.array_equal(verdet.solve(FIXTURE), VerdetProcessor().solve(FIXTURE))


def test_solve_stack_raises_on_rejected_rows_when_not_skipping():
    processor = VerdetProcessor(VerdetConfig(), ProcessingConfig(skip_invalid=False))
    with pytest.raises(InvalidSeriesError):
        processor.solve_stack(np.array([[0.3], [0.5]]))


def test_solve_stack_leaves_rejected_rows_as_nan():
    processor = VerdetProcessor(VerdetConfig(), ProcessingConfig(skip_invalid=True))
    output = processor.solve_stack(np.array([[0.3], [0.5]]))
    assert output.shape == (2, 1)
    assert np.all(np.isnan(output))
