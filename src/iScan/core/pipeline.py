"""Run the homography and the filter chain over a source image.

The pipeline is a pure function of its snapshots and may run on any
thread.  A run returns every intermediate buffer so the next run can skip the prefix of steps whose inputs did not change.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Hashable, Iterable, Optional, Sequence

from ..errors import FilterApplicationError, IScanError
from .cancellation import CancellationToken
from .filter_chain import AppliedFilter
from .filters import TiledExecutor, apply_filter
from .homography import HomographySettings, apply_homography
from .pixel_buffer import PixelBuffer

_LOGGER = logging.getLogger(__name__)

CachedStep = tuple[Hashable, PixelBuffer]
"""``(step key, output buffer)`` of one executed step."""


@dataclass(frozen=True)
class PipelineOutput:
    """Result of one successful run."""

    corrected: PixelBuffer
    filtered: PixelBuffer
    steps: tuple[CachedStep, ...] = ()


def step_keys(
    entries: Sequence[AppliedFilter],
    homography: Optional[HomographySettings] = None,
) -> list[Hashable]:
    """Return the cache key of every step the pipeline will run, in order."""

    keys: list[Hashable] = []
    if homography is not None:
        keys.append(("homography", homography))
    keys.extend(entry.cache_key for entry in entries)
    return keys


def _reusable_prefix(keys: Sequence[Hashable], cache: Iterable[CachedStep]) -> list[CachedStep]:
    reused: list[CachedStep] = []
    for key, cached in zip(keys, cache):
        if cached[0] != key:
            break
        reused.append(cached)
    return reused


def run_pipeline(
    source: PixelBuffer,
    entries: Sequence[AppliedFilter],
    homography: Optional[HomographySettings] = None,
    *,
    token: Optional[CancellationToken] = None,
    cache: Iterable[CachedStep] = (),
    executor: Optional[TiledExecutor] = None,
) -> PipelineOutput:
    """Apply *homography* (when given) and then every entry of *entries*.

    *cache* holds the steps of an earlier run over the same *source*; the
    longest prefix whose keys still match is reused instead of recomputed.

    Raises
    ------
    ProcessingCancelled
        When *token* fires between steps or inside a tiled filter.
    InvalidHomographyError, InvalidStrengthError, InvalidFilterParamsError
        For invalid settings.
    FilterApplicationError
        For any unexpected failure while processing pixels.
    """

    keys = step_keys(entries, homography)
    steps = _reusable_prefix(keys, cache)
    if steps:
        _LOGGER.debug("Reusing %d of %d cached steps", len(steps), len(keys))

    tiles = executor or TiledExecutor()
    offset = 1 if homography is not None else 0
    current = steps[-1][1] if steps else source
    started = time.perf_counter()

    try:
        for index in range(len(steps), len(keys)):
            if token is not None:
                token.raise_if_cancelled()
            if homography is not None and index == 0:
                current = apply_homography(current, homography)
            else:
                entry = entries[index - offset]
                current = apply_filter(
                    current,
                    entry.kind,
                    entry.strength,
                    entry.params,
                    executor=tiles,
                    token=token,
                )
            steps.append((keys[index], current))
        if token is not None:
            token.raise_if_cancelled()
    except IScanError:
        raise
    except Exception as exc:
        _LOGGER.exception("Pipeline step failed")
        raise FilterApplicationError(str(exc) or type(exc).__name__) from exc

    corrected = steps[0][1] if homography is not None else source
    _LOGGER.debug(
        "Pipeline of %d steps finished in %.1f ms",
        len(keys),
        (time.perf_counter() - started) * 1000.0,
    )
    return PipelineOutput(corrected=corrected, filtered=current, steps=tuple(steps))


__all__ = ["CachedStep", "PipelineOutput", "run_pipeline", "step_keys"]
