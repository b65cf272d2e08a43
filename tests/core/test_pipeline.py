import pytest

from iScan.core import pipeline as pipeline_module
from iScan.core.cancellation import CancellationToken
from iScan.core.filter_chain import FilterChain
from iScan.core.filters import FilterKind, apply_filter
from iScan.core.homography import HomographySettings
from iScan.core.pipeline import run_pipeline, step_keys
from iScan.errors import FilterApplicationError, InvalidHomographyError, ProcessingCancelled


def test_empty_chain_returns_source(random_buffer):
    output = run_pipeline(random_buffer, ())

    assert output.corrected is random_buffer
    assert output.filtered is random_buffer
    assert output.steps == ()


def test_filters_run_in_chain_order(random_buffer):
    chain = FilterChain()
    chain.add(FilterKind.GRAYSCALE)
    chain.add(FilterKind.BINARY, 90)

    output = run_pipeline(random_buffer, chain.snapshot())

    expected = apply_filter(apply_filter(random_buffer, FilterKind.GRAYSCALE, 5), FilterKind.BINARY, 90)
    assert output.filtered.same_pixels(expected)
    assert output.corrected is random_buffer
    assert len(output.steps) == 2


def test_homography_runs_before_filters(buffer_factory):
    image = buffer_factory(20, 15)
    chain = FilterChain()
    chain.add(FilterKind.BINARY, 128)
    settings = HomographySettings.from_size(20, 15)

    output = run_pipeline(image, chain.snapshot(), settings)

    assert output.corrected.same_pixels(image)
    assert output.steps[0][0] == ("homography", settings)
    assert output.filtered.same_pixels(apply_filter(image, FilterKind.BINARY, 128))


def test_cached_prefix_is_reused(random_buffer):
    chain = FilterChain()
    chain.add(FilterKind.MEDIAN, 3)
    binary = chain.add(FilterKind.BINARY, 100)
    first = run_pipeline(random_buffer, chain.snapshot())

    chain.change_strength(binary.entry_id, 140)
    second = run_pipeline(random_buffer, chain.snapshot(), cache=first.steps)

    assert second.steps[0][1] is first.steps[0][1]
    assert second.steps[1][1] is not first.steps[1][1]
    assert second.filtered.same_pixels(apply_filter(first.steps[0][1], FilterKind.BINARY, 140))


def test_changed_first_step_invalidates_cache(random_buffer):
    chain = FilterChain()
    median = chain.add(FilterKind.MEDIAN, 3)
    first = run_pipeline(random_buffer, chain.snapshot())

    chain.change_strength(median.entry_id, 5)
    second = run_pipeline(random_buffer, chain.snapshot(), cache=first.steps)

    assert second.steps[0][1] is not first.steps[0][1]


def test_step_keys_include_homography_first():
    chain = FilterChain()
    entry = chain.add(FilterKind.HUE_HSV, 10)
    settings = HomographySettings.from_size(10, 10)

    assert step_keys(chain.snapshot(), settings) == [("homography", settings), entry.cache_key]
    assert step_keys(chain.snapshot()) == [entry.cache_key]


def test_cancelled_token_aborts_run(random_buffer):
    chain = FilterChain()
    chain.add(FilterKind.BINARY)
    token = CancellationToken()
    token.cancel()

    with pytest.raises(ProcessingCancelled):
        run_pipeline(random_buffer, chain.snapshot(), token=token)


def test_invalid_homography_propagates(random_buffer):
    settings = HomographySettings((0.0, 0.0), (5.0, 0.0), (10.0, 0.0), (20.0, 17.0), 23.0, 17.0, 1.0)

    with pytest.raises(InvalidHomographyError):
        run_pipeline(random_buffer, (), settings)


def test_unexpected_errors_become_filter_application_error(random_buffer, monkeypatch):
    def explode(*args, **kwargs):
        raise ZeroDivisionError("boom")

    monkeypatch.setattr(pipeline_module, "apply_filter", explode)
    chain = FilterChain()
    chain.add(FilterKind.BINARY)

    with pytest.raises(FilterApplicationError, match="boom"):
        run_pipeline(random_buffer, chain.snapshot())
