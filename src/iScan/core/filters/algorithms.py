"""Numba-compiled per-pixel kernels used by the filter executors.

Tile kernels share one calling convention so :class:`TiledExecutor` can drive
them: ``kernel(source, destination, strength, y0, y1, x0, x1)`` reads any
pixel of ``source`` and writes only the ``[y0, y1) x [x0, x1)`` region of
``destination``.  They are compiled with ``nogil`` so tiles run in parallel on
the executor's thread pool.
"""

from __future__ import annotations

import math

import numpy as np
from numba import jit


@jit(nopython=True, inline="always")
def _clamp(value: float, minimum: float, maximum: float) -> float:
    if value < minimum:
        return minimum
    if value > maximum:
        return maximum
    return value


@jit(nopython=True, inline="always")
def _to_uint8(value: float) -> int:
    """Round half up and clamp a ``[0, 1]`` float to an 8-bit channel."""

    scaled = math.floor(value * 255.0 + 0.5)
    if scaled < 0.0:
        return 0
    if scaled > 255.0:
        return 255
    return int(scaled)


# ----------------------------------------------------------------------
# Tile kernels
# ----------------------------------------------------------------------


@jit(nopython=True, nogil=True, cache=True)
def median_tile(
    source: np.ndarray,
    destination: np.ndarray,
    strength: int,
    y0: int,
    y1: int,
    x0: int,
    x1: int,
) -> None:
    """Histogram median over a ``strength`` x ``strength`` aperture.

    Samples outside the image count as black, which darkens medians along
    the border.
    """

    height = source.shape[0]
    width = source.shape[1]
    half = strength // 2
    median_index = (strength * strength) // 2
    histogram = np.zeros((3, 256), dtype=np.int32)

    for y in range(y0, y1):
        for x in range(x0, x1):
            histogram[:, :] = 0
            for m in range(strength):
                sample_y = y - half + m
                for n in range(strength):
                    sample_x = x - half + n
                    if sample_x < 0 or sample_x >= width or sample_y < 0 or sample_y >= height:
                        histogram[0, 0] += 1
                        histogram[1, 0] += 1
                        histogram[2, 0] += 1
                    else:
                        histogram[0, source[sample_y, sample_x, 0]] += 1
                        histogram[1, source[sample_y, sample_x, 1]] += 1
                        histogram[2, source[sample_y, sample_x, 2]] += 1

            for channel in range(3):
                count = 0
                median = 0
                for value in range(256):
                    count += histogram[channel, value]
                    if count > median_index:
                        median = value
                        break
                destination[y, x, channel] = median
            destination[y, x, 3] = source[y, x, 3]


@jit(nopython=True, nogil=True, cache=True)
def averaging_tile(
    source: np.ndarray,
    destination: np.ndarray,
    strength: int,
    y0: int,
    y1: int,
    x0: int,
    x1: int,
) -> None:
    """Box blur with radius ``strength``; the window is clipped to the image."""

    height = source.shape[0]
    width = source.shape[1]

    for y in range(y0, y1):
        top = max(0, y - strength)
        bottom = min(height, y + strength + 1)
        for x in range(x0, x1):
            left = max(0, x - strength)
            right = min(width, x + strength + 1)
            sum_r = 0
            sum_g = 0
            sum_b = 0
            for sample_y in range(top, bottom):
                for sample_x in range(left, right):
                    sum_r += source[sample_y, sample_x, 0]
                    sum_g += source[sample_y, sample_x, 1]
                    sum_b += source[sample_y, sample_x, 2]
            count = (bottom - top) * (right - left)
            destination[y, x, 0] = sum_r // count
            destination[y, x, 1] = sum_g // count
            destination[y, x, 2] = sum_b // count
            destination[y, x, 3] = source[y, x, 3]


# ----------------------------------------------------------------------
# HSV helpers
# ----------------------------------------------------------------------


@jit(nopython=True, inline="always")
def _rgb_to_hsv(r: float, g: float, b: float) -> tuple[float, float, float]:
    maximum = max(r, g, b)
    minimum = min(r, g, b)
    value = maximum
    if maximum == minimum:
        return 0.0, 0.0, value
    delta = maximum - minimum
    saturation = delta / maximum
    if r == maximum:
        hue = (g - b) / delta
    elif g == maximum:
        hue = 2.0 + (b - r) / delta
    else:
        hue = 4.0 + (r - g) / delta
    hue = hue / 6.0
    hue = hue - math.floor(hue)
    return hue, saturation, value


@jit(nopython=True, inline="always")
def _hsv_to_rgb(hue: float, saturation: float, value: float) -> tuple[float, float, float]:
    if saturation == 0.0:
        return value, value, value
    sector = math.floor(hue * 6.0)
    fraction = hue * 6.0 - sector
    p = value * (1.0 - saturation)
    q = value * (1.0 - saturation * fraction)
    t = value * (1.0 - saturation * (1.0 - fraction))
    index = int(sector) % 6
    if index == 0:
        return value, t, p
    if index == 1:
        return q, value, p
    if index == 2:
        return p, value, t
    if index == 3:
        return p, q, value
    if index == 4:
        return t, p, value
    return value, p, q


@jit(nopython=True, nogil=True, cache=True)
def adjust_hsv(source: np.ndarray, destination: np.ndarray, component: int, delta: float) -> None:
    """Shift one HSV component of every pixel by *delta*.

    ``component`` selects hue (0), saturation (1) or value (2).  Hue wraps
    around the unit circle for any delta, saturation and value are clamped.
    """

    height = source.shape[0]
    width = source.shape[1]
    for y in range(height):
        for x in range(width):
            hue, saturation, value = _rgb_to_hsv(
                source[y, x, 0] / 255.0,
                source[y, x, 1] / 255.0,
                source[y, x, 2] / 255.0,
            )
            if component == 0:
                hue = hue + delta
                hue = hue - math.floor(hue)
            elif component == 1:
                saturation = _clamp(saturation + delta, 0.0, 1.0)
            else:
                value = _clamp(value + delta, 0.0, 1.0)
            r, g, b = _hsv_to_rgb(hue, saturation, value)
            destination[y, x, 0] = _to_uint8(r)
            destination[y, x, 1] = _to_uint8(g)
            destination[y, x, 2] = _to_uint8(b)
            destination[y, x, 3] = source[y, x, 3]


__all__ = ["adjust_hsv", "averaging_tile", "median_tile"]
