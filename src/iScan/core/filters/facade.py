"""Single entry point dispatching a :class:`FilterKind` to its implementation."""

from __future__ import annotations

import logging
import time
from typing import Optional

import numpy as np

from ...errors import FilterApplicationError, IScanError
from ..cancellation import CancellationToken
from ..pixel_buffer import PixelBuffer
from .algorithms import adjust_hsv, averaging_tile, median_tile
from .kinds import EdgeColoringParams, FilterKind, FilterParams, resolve_params, validate_strength
from .numpy_executor import (
    apply_binary,
    apply_contrast,
    apply_edge_coloring,
    apply_grayscale,
    combine_sharpen,
)
from .tiled_executor import TiledExecutor

_LOGGER = logging.getLogger(__name__)

_HSV_COMPONENTS = {
    FilterKind.HUE_HSV: 0,
    FilterKind.SATURATION_HSV: 1,
    FilterKind.BRIGHTNESS_HSV: 2,
}


def _hsv(pixels: np.ndarray, kind: FilterKind, strength: int) -> np.ndarray:
    result = np.empty_like(pixels)
    adjust_hsv(pixels, result, _HSV_COMPONENTS[kind], strength / 255.0)
    return result


def apply_filter(
    buffer: PixelBuffer,
    kind: FilterKind,
    strength: int,
    params: Optional[FilterParams] = None,
    *,
    executor: Optional[TiledExecutor] = None,
    token: Optional[CancellationToken] = None,
) -> PixelBuffer:
    """Return a new buffer with *kind* applied to *buffer* at *strength*.

    Parameters
    ----------
    buffer:
        Input image; never modified.
    kind:
        Filter algorithm to run.
    strength:
        Integer inside ``kind.domain``.
    params:
        Typed parameters for kinds that accept them (``EdgeColoringParams``).
    executor:
        Tiled executor used by Median, Averaging and Sharpen.  A default
        executor is created when omitted.
    token:
        Cancellation token forwarded to the tiled executor.

    Raises
    ------
    InvalidStrengthError
        If *strength* is outside the domain of *kind*.
    InvalidFilterParamsError
        If *params* do not belong to *kind*.
    FilterApplicationError
        If the algorithm fails unexpectedly.
    ProcessingCancelled
        If *token* fires while tiles are processed.
    """

    validate_strength(kind, strength)
    resolved = resolve_params(kind, params)
    tiles = executor or TiledExecutor()
    pixels = buffer.pixels

    started = time.perf_counter()
    try:
        if kind is FilterKind.BINARY:
            result = apply_binary(pixels, strength)
        elif kind is FilterKind.GRAYSCALE:
            result = apply_grayscale(pixels)
        elif kind is FilterKind.CONTRAST:
            result = apply_contrast(pixels, strength)
        elif kind in _HSV_COMPONENTS:
            result = _hsv(pixels, kind, strength)
        elif kind is FilterKind.EDGE_COLORING:
            if not isinstance(resolved, EdgeColoringParams):
                raise FilterApplicationError(f"{kind.display_name} needs EdgeColoringParams, got {resolved!r}")
            result = apply_edge_coloring(pixels, resolved.color)
        elif kind is FilterKind.AVERAGING:
            result = tiles.run(pixels, averaging_tile, strength, token=token)
        elif kind is FilterKind.MEDIAN:
            result = tiles.run(pixels, median_tile, strength, token=token)
        elif kind is FilterKind.SHARPEN:
            # The strength is both the median aperture and the amplification.
            blurred = tiles.run(pixels, median_tile, strength, token=token)
            result = combine_sharpen(pixels, blurred, strength)
        else:  # pragma: no cover - the enum is closed
            raise FilterApplicationError(f"No implementation for {kind!r}")
    except IScanError:
        raise
    except (MemoryError, ValueError, TypeError, RuntimeError) as exc:
        _LOGGER.exception("%s filter failed", kind.display_name)
        raise FilterApplicationError(f"{kind.display_name} filter failed: {exc}") from exc

    _LOGGER.debug(
        "%s(strength=%d) on %dx%d took %.1f ms",
        kind.display_name,
        strength,
        buffer.width,
        buffer.height,
        (time.perf_counter() - started) * 1000.0,
    )
    return PixelBuffer(result)


__all__ = ["apply_filter"]
