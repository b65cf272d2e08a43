"""NumPy vectorised implementations of the point and 3x3 filters.

Every function reads an ``(H, W, 4)`` uint8 array and returns a freshly
allocated array of the same shape; the alpha channel is copied through.
"""

from __future__ import annotations

import numpy as np

GRAY_WEIGHTS = np.array([0.3, 0.59, 0.11], dtype=np.float64)
"""Luma weights used by the Grayscale filter."""

EDGE_LUMINANCE_WEIGHTS = np.array([0.2989, 0.5870, 0.1140], dtype=np.float64)
"""Luminance weights reserved for the Sobel edge detector."""


def _with_alpha(rgb: np.ndarray, source: np.ndarray) -> np.ndarray:
    result = np.empty_like(source)
    result[..., :3] = rgb
    result[..., 3] = source[..., 3]
    return result


def apply_binary(pixels: np.ndarray, threshold: int) -> np.ndarray:
    """Map every colour channel to 0 when ``<= threshold`` and 255 otherwise."""

    rgb = np.where(pixels[..., :3] <= threshold, 0, 255).astype(np.uint8)
    return _with_alpha(rgb, pixels)


def apply_grayscale(pixels: np.ndarray) -> np.ndarray:
    """Replace colour channels by ``round(0.3R + 0.59G + 0.11B)``."""

    weighted = pixels[..., :3].astype(np.float64) @ GRAY_WEIGHTS
    gray = np.clip(np.floor(weighted + 0.5), 0, 255).astype(np.uint8)
    return _with_alpha(np.repeat(gray[..., None], 3, axis=2), pixels)


def contrast_factor(strength: int) -> float:
    return (259.0 * (strength + 255)) / (255.0 * (259 - strength))


def apply_contrast(pixels: np.ndarray, strength: int) -> np.ndarray:
    """Stretch channels around mid-gray by :func:`contrast_factor`."""

    factor = contrast_factor(strength)
    stretched = (pixels[..., :3].astype(np.float64) - 128.0) * factor + 128.0
    # Truncation after clamping keeps the original integer conversion.
    rgb = np.clip(stretched, 0.0, 255.0).astype(np.uint8)
    return _with_alpha(rgb, pixels)


def sobel_magnitude(pixels: np.ndarray) -> np.ndarray:
    """Return the rounded, clamped Sobel magnitude of the interior pixels.

    The result has shape ``(H - 2, W - 2)``; callers must ensure both sides
    are at least three pixels long.
    """

    lum = pixels[..., :3].astype(np.float64) @ EDGE_LUMINANCE_WEIGHTS

    top = lum[:-2, :]
    mid = lum[1:-1, :]
    bottom = lum[2:, :]

    gx = (
        (top[:, 2:] + 2.0 * mid[:, 2:] + bottom[:, 2:])
        - (top[:, :-2] + 2.0 * mid[:, :-2] + bottom[:, :-2])
    )
    gy = (
        (bottom[:, :-2] + 2.0 * bottom[:, 1:-1] + bottom[:, 2:])
        - (top[:, :-2] + 2.0 * top[:, 1:-1] + top[:, 2:])
    )
    magnitude = np.floor(np.hypot(gx, gy) + 0.5)
    return np.clip(magnitude, 0, 255).astype(np.int32)


def apply_edge_coloring(pixels: np.ndarray, color: tuple[int, int, int]) -> np.ndarray:
    """Paint Sobel edges in *color*, leaving the one pixel border untouched."""

    result = pixels.copy()
    height, width = pixels.shape[:2]
    if height < 3 or width < 3:
        return result

    magnitude = sobel_magnitude(pixels)
    edge = np.asarray(color, dtype=np.int32)
    interior = (edge[None, None, :] * magnitude[..., None]) // 255
    result[1:-1, 1:-1, :3] = interior.astype(np.uint8)
    return result


def combine_sharpen(original: np.ndarray, blurred: np.ndarray, amount: int) -> np.ndarray:
    """Unsharp-mask style ``original + (original - blurred) * amount``."""

    base = original[..., :3].astype(np.int32)
    detail = base - blurred[..., :3].astype(np.int32)
    rgb = np.clip(base + detail * int(amount), 0, 255).astype(np.uint8)
    return _with_alpha(rgb, original)


__all__ = [
    "EDGE_LUMINANCE_WEIGHTS",
    "GRAY_WEIGHTS",
    "apply_binary",
    "apply_contrast",
    "apply_edge_coloring",
    "apply_grayscale",
    "combine_sharpen",
    "contrast_factor",
    "sobel_magnitude",
]
