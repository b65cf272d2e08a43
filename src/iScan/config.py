"""Tunable constants shared by the filter engine and the reprocessing coordinator."""

from __future__ import annotations

MAX_SOURCE_DIMENSION = 1080
"""Longest side (in pixels) a freshly loaded source image is downsized to."""

TILE_SIZE = 100
"""Side length of the square tiles processed by :class:`TiledExecutor`."""

RELOAD_DEBOUNCE_MS = 250
"""Quiet period applied to reload requests while a recomputation is running."""

DRAG_DISTANCE_DIVISOR = 6.0
"""Homography corners react to pointers within ``max(width, height) / divisor``."""

HOMOGRAPHY_BOUNDS_TOLERANCE = 1e-3
"""Slack allowed when checking that homography corners lie inside the display."""

DEFAULT_EDGE_COLOR: tuple[int, int, int] = (255, 0, 0)
"""Colour painted along detected edges unless overridden."""

SUPPORTED_FORMATS: dict[str, str] = {
    ".png": "PNG",
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".bmp": "BMP",
}
"""File suffixes accepted by :mod:`iScan.core.image_io` and their Pillow format names."""
