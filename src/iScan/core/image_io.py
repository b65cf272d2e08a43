"""Read and write pixel buffers with Pillow."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from ..config import SUPPORTED_FORMATS
from ..errors import ImageIOError
from .pixel_buffer import PixelBuffer

_LOGGER = logging.getLogger(__name__)

# Formats that cannot store an alpha channel.
_OPAQUE_FORMATS = {"JPEG", "BMP"}


def resolve_format(path: Path, fmt: Optional[str] = None) -> str:
    """Return the Pillow format name for *path* or the explicit *fmt*."""

    if fmt is not None:
        name = fmt.upper()
        if name == "JPG":
            name = "JPEG"
        if name not in SUPPORTED_FORMATS.values():
            raise ImageIOError(f"Unsupported image format: {fmt}")
        return name
    try:
        return SUPPORTED_FORMATS[path.suffix.lower()]
    except KeyError:
        raise ImageIOError(f"Unsupported image format: {path.suffix or path.name}") from None


def load_image(path: Path | str) -> PixelBuffer:
    """Decode the image at *path* into an RGBA buffer."""

    source = Path(path)
    try:
        with Image.open(source) as image:
            image.load()
            return PixelBuffer.from_pil(image)
    except (OSError, UnidentifiedImageError) as exc:
        _LOGGER.warning("Failed to read %s: %s", source, exc)
        raise ImageIOError(f"Cannot read image {source}: {exc}") from exc


def save_image(buffer: PixelBuffer, path: Path | str, fmt: Optional[str] = None) -> Path:
    """Encode *buffer* to *path* and return the written path."""

    target = Path(path)
    name = resolve_format(target, fmt)
    image = buffer.to_pil()
    if name in _OPAQUE_FORMATS:
        image = image.convert("RGB")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        image.save(target, format=name)
    except OSError as exc:
        _LOGGER.warning("Failed to write %s: %s", target, exc)
        raise ImageIOError(f"Cannot write image {target}: {exc}") from exc
    _LOGGER.info("Saved %dx%d image to %s", buffer.width, buffer.height, target)
    return target


__all__ = ["load_image", "resolve_format", "save_image"]
