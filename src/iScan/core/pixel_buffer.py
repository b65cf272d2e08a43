"""Owned RGBA raster that every filter stage reads and writes."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from PIL import Image

CHANNELS = 4


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """Row-major RGBA8 pixels of shape ``(height, width, 4)``.

    The wrapper is frozen but the array is not: stages that own a buffer may
    fill it in place before handing it on.  Filters never write into the
    buffer they receive.
    """

    pixels: np.ndarray

    def __post_init__(self) -> None:
        pixels = self.pixels
        if not isinstance(pixels, np.ndarray):
            raise TypeError("PixelBuffer pixels must be a numpy array")
        if pixels.dtype != np.uint8:
            raise TypeError(f"PixelBuffer pixels must be uint8, got {pixels.dtype}")
        if pixels.ndim != 3 or pixels.shape[2] != CHANNELS:
            raise ValueError(f"PixelBuffer pixels must have shape (H, W, 4), got {pixels.shape}")

    # ------------------------------------------------------------------
    @classmethod
    def from_array(cls, array: np.ndarray) -> PixelBuffer:
        """Wrap *array*, adding an opaque alpha channel to RGB or gray input."""

        data = np.asarray(array)
        if data.dtype != np.uint8:
            data = np.clip(data, 0, 255).astype(np.uint8)
        if data.ndim == 2:
            data = np.repeat(data[:, :, None], 3, axis=2)
        if data.ndim == 3 and data.shape[2] == 3:
            alpha = np.full(data.shape[:2] + (1,), 255, dtype=np.uint8)
            data = np.concatenate([data, alpha], axis=2)
        return cls(np.ascontiguousarray(data))

    @classmethod
    def blank(cls, width: int, height: int, rgba: tuple[int, int, int, int] = (0, 0, 0, 255)) -> PixelBuffer:
        """Return a ``width`` x ``height`` buffer filled with *rgba*."""

        pixels = np.empty((int(height), int(width), CHANNELS), dtype=np.uint8)
        pixels[...] = np.asarray(rgba, dtype=np.uint8)
        return cls(pixels)

    @classmethod
    def from_pil(cls, image: Image.Image) -> PixelBuffer:
        """Convert a Pillow image of any mode into a buffer."""

        return cls(np.array(image.convert("RGBA"), dtype=np.uint8))

    # ------------------------------------------------------------------
    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def channels(self) -> int:
        return CHANNELS

    @property
    def rgb(self) -> np.ndarray:
        """Return a view of the colour channels without alpha."""

        return self.pixels[..., :3]

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[..., 3]

    def copy(self) -> PixelBuffer:
        return PixelBuffer(self.pixels.copy())

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.pixels)

    def same_pixels(self, other: PixelBuffer) -> bool:
        """Return ``True`` when *other* holds byte-identical pixels."""

        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))

    def is_monochrome(self) -> bool:
        """Return ``True`` when every pixel has equal red, green and blue values."""

        rgb = self.rgb
        return bool(np.all(rgb[..., 0] == rgb[..., 1]) and np.all(rgb[..., 1] == rgb[..., 2]))

    def scaled_to_fit(self, max_dimension: int) -> PixelBuffer:
        """Return a copy whose longest side is at most *max_dimension*.

        Images already within bounds are returned unchanged.  The aspect ratio
        is preserved and neither side collapses below one pixel.
        """

        longest = max(self.width, self.height)
        if max_dimension <= 0 or longest <= max_dimension:
            return self
        factor = max_dimension / float(longest)
        width = max(1, int(self.width * factor))
        height = max(1, int(self.height * factor))
        resized = self.to_pil().resize((width, height), Image.Resampling.BILINEAR)
        return PixelBuffer.from_pil(resized)

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self.width}, height={self.height})"


__all__ = ["CHANNELS", "PixelBuffer"]
