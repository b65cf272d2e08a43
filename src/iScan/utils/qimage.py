"""Conversions between :class:`QImage` and :class:`PixelBuffer`.

Qt bindings expose raw pixel memory in subtly different ways, so the buffer
access goes through :func:`_resolve_pixel_buffer` which normalises the view to
unsigned bytes and keeps the owning wrapper alive while numpy reads it.
"""

from __future__ import annotations

import numpy as np
from PySide6.QtGui import QImage

from ..core.pixel_buffer import CHANNELS, PixelBuffer


def _resolve_pixel_buffer(image: QImage) -> tuple[memoryview, object]:
    """Return a 1-D :class:`memoryview` over *image*'s pixels and its guard.

    PySide exposes a ready-to-use ``memoryview`` while PyQt returns a
    ``sip.voidptr`` that needs ``setsize`` before Python can view the memory.
    The tuple's second element must stay referenced for as long as the view is
    used, otherwise the wrapper owning the memory may be collected.
    """

    bytes_per_line = image.bytesPerLine()
    height = image.height()
    buffer = image.constBits()
    expected_size = bytes_per_line * height

    guard: object = buffer

    if isinstance(buffer, memoryview):
        view = buffer
    else:
        try:
            view = memoryview(buffer)
        except TypeError:
            if hasattr(buffer, "setsize"):
                buffer.setsize(expected_size)
                view = memoryview(buffer)
            else:
                raise RuntimeError("Unsupported QImage.constBits() buffer wrapper") from None

    try:
        view = view.cast("B")
    except TypeError:
        view = view.cast("B", (view.nbytes,))

    if len(view) < expected_size:
        raise BufferError("QImage pixel buffer is smaller than expected")

    return view[:expected_size], guard


def pixel_buffer_from_qimage(image: QImage) -> PixelBuffer:
    """Copy *image* into a new RGBA :class:`PixelBuffer`."""

    if image.isNull():
        raise ValueError("Cannot convert a null QImage")

    converted = image
    if converted.format() != QImage.Format.Format_RGBA8888:
        converted = converted.convertToFormat(QImage.Format.Format_RGBA8888)

    width = converted.width()
    height = converted.height()
    bytes_per_line = converted.bytesPerLine()

    view, guard = _resolve_pixel_buffer(converted)
    _ = guard

    surface = np.frombuffer(view, dtype=np.uint8, count=bytes_per_line * height)
    surface = surface.reshape((height, bytes_per_line))
    pixels = surface[:, : width * CHANNELS].reshape((height, width, CHANNELS)).copy()
    return PixelBuffer(pixels)


def pixel_buffer_to_qimage(buffer: PixelBuffer) -> QImage:
    """Return a detached ``Format_RGBA8888`` :class:`QImage` holding *buffer*."""

    pixels = np.ascontiguousarray(buffer.pixels)
    data = pixels.tobytes()
    image = QImage(
        data,
        buffer.width,
        buffer.height,
        buffer.width * CHANNELS,
        QImage.Format.Format_RGBA8888,
    )
    # The constructor borrows ``data``; copying detaches the image from it.
    return image.copy()


__all__ = ["pixel_buffer_from_qimage", "pixel_buffer_to_qimage"]
