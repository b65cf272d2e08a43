"""Perspective correction from four user-selected corner points.

The user drags four points over the *displayed* (scaled) image.  The
transform maps that quadrilateral onto an axis-aligned rectangle at source
resolution, crops away the area the warped source image does not cover and
resamples with bilinear interpolation.
"""

from __future__ import annotations

import itertools
import logging
import math
from dataclasses import dataclass, replace
from typing import Optional

import numpy as np

from ..config import DRAG_DISTANCE_DIVISOR, HOMOGRAPHY_BOUNDS_TOLERANCE
from ..errors import InvalidHomographyError
from .pixel_buffer import PixelBuffer

_LOGGER = logging.getLogger(__name__)

Point = tuple[float, float]

_CORNER_NAMES = ("top_left", "top_right", "bottom_left", "bottom_right")


@dataclass(frozen=True)
class HomographySettings:
    """Four display-space corners plus the display to source scale.

    Source coordinates are display coordinates divided by ``scale_to_image``.
    """

    top_left: Point = (0.0, 0.0)
    top_right: Point = (100.0, 0.0)
    bottom_left: Point = (0.0, 100.0)
    bottom_right: Point = (100.0, 100.0)
    display_width: float = 100.0
    display_height: float = 100.0
    scale_to_image: float = 1.0

    @classmethod
    def from_size(cls, display_width: float, display_height: float, scale: float = 1.0) -> HomographySettings:
        """Return settings whose corners sit on the display rectangle's corners."""

        width = float(display_width)
        height = float(display_height)
        return cls(
            (0.0, 0.0),
            (width, 0.0),
            (0.0, height),
            (width, height),
            width,
            height,
            float(scale),
        )

    @classmethod
    def for_image(
        cls,
        image_width: int,
        image_height: int,
        display_width: Optional[float] = None,
    ) -> HomographySettings:
        """Default settings for an image shown *display_width* pixels wide."""

        scale = 1.0 if display_width is None else float(display_width) / float(image_width)
        return cls.from_size(image_width * scale, image_height * scale, scale)

    # ------------------------------------------------------------------
    @property
    def points(self) -> tuple[Point, Point, Point, Point]:
        """Corners in ``top_left, top_right, bottom_left, bottom_right`` order."""

        return (self.top_left, self.top_right, self.bottom_left, self.bottom_right)

    @property
    def drag_distance(self) -> float:
        return max(self.display_width, self.display_height) / DRAG_DISTANCE_DIVISOR

    def clamp(self, position: Point) -> Point:
        """Return *position* clamped to the display rectangle."""

        x = min(max(float(position[0]), 0.0), self.display_width)
        y = min(max(float(position[1]), 0.0), self.display_height)
        return (x, y)

    def update_nearest(self, position: Point) -> HomographySettings:
        """Move the nearest corner within drag distance to *position*.

        Returns ``self`` unchanged when no corner is close enough.
        """

        limit = self.drag_distance
        candidates = []
        for name, point in zip(_CORNER_NAMES, self.points):
            distance = math.hypot(point[0] - position[0], point[1] - position[1])
            if distance < limit:
                candidates.append((distance, name))
        if not candidates:
            return self
        # ``min`` keeps the first of equal distances, i.e. corner order.
        _, nearest = min(candidates, key=lambda item: item[0])
        return replace(self, **{nearest: self.clamp(position)})

    def is_full_frame(self) -> bool:
        """Return ``True`` when the corners coincide with the display corners."""

        full = HomographySettings.from_size(self.display_width, self.display_height, self.scale_to_image)
        return all(
            math.isclose(a, b, abs_tol=1e-6)
            for point, expected in zip(self.points, full.points)
            for a, b in zip(point, expected)
        )

    def source_points(self) -> np.ndarray:
        """Return the corners in source resolution as a ``(4, 2)`` array."""

        return np.asarray(self.points, dtype=np.float64) / float(self.scale_to_image)


# ----------------------------------------------------------------------
# Geometry
# ----------------------------------------------------------------------


def _validate(settings: HomographySettings) -> None:
    if not settings.scale_to_image > 0.0 or not math.isfinite(settings.scale_to_image):
        raise InvalidHomographyError(f"Scale must be positive, got {settings.scale_to_image}")
    if settings.display_width <= 0.0 or settings.display_height <= 0.0:
        raise InvalidHomographyError("Display rectangle must have a positive size")

    tolerance = HOMOGRAPHY_BOUNDS_TOLERANCE
    for name, (x, y) in zip(_CORNER_NAMES, settings.points):
        if not (math.isfinite(x) and math.isfinite(y)):
            raise InvalidHomographyError(f"{name} is not a finite point")
        if not (
            -tolerance <= x <= settings.display_width + tolerance
            and -tolerance <= y <= settings.display_height + tolerance
        ):
            raise InvalidHomographyError(f"{name} ({x:.1f}, {y:.1f}) lies outside the display")

    points = np.asarray(settings.points, dtype=np.float64)
    extent = float(np.ptp(points, axis=0).max()) if points.size else 0.0
    epsilon = 1e-9 * max(1.0, extent * extent)
    for a, b, c in itertools.combinations(points, 3):
        cross = (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])
        if abs(cross) <= epsilon:
            raise InvalidHomographyError("Three homography corners are collinear")


def solve_homography(source: np.ndarray, target: np.ndarray) -> np.ndarray:
    """Return the 3x3 projective matrix mapping four *source* points to *target*."""

    rows = []
    values = []
    for (x, y), (u, v) in zip(source, target):
        rows.append([x, y, 1.0, 0.0, 0.0, 0.0, -u * x, -u * y])
        rows.append([0.0, 0.0, 0.0, x, y, 1.0, -v * x, -v * y])
        values.extend([u, v])
    try:
        solution = np.linalg.solve(np.asarray(rows, dtype=np.float64), np.asarray(values, dtype=np.float64))
    except np.linalg.LinAlgError as exc:
        raise InvalidHomographyError("Homography corners do not define a projective mapping") from exc
    return np.append(solution, 1.0).reshape(3, 3)


def project_points(matrix: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Apply *matrix* to an ``(N, 2)`` array of points."""

    homogeneous = np.column_stack([points, np.ones(len(points))]) @ matrix.T
    denominators = homogeneous[:, 2]
    if np.any(denominators <= 1e-12) or not np.all(np.isfinite(homogeneous)):
        raise InvalidHomographyError("Image corners are projected behind the horizon")
    return homogeneous[:, :2] / denominators[:, None]


def _crop_margins(
    matrix: np.ndarray,
    width: float,
    height: float,
    target: tuple[float, float],
) -> tuple[float, float, float, float]:
    """Return ``(left, top, right, bottom)`` of the warped image outline.

    Image corners projected past the horizon are ignored; a side without any
    usable corner falls back to the edge of the *target* rectangle.
    """

    corners = np.array([[0.0, 0.0], [width, 0.0], [0.0, height], [width, height]])
    homogeneous = np.column_stack([corners, np.ones(4)]) @ matrix.T
    usable = (homogeneous[:, 2] > 1e-12) & np.all(np.isfinite(homogeneous), axis=1)
    projected = np.full((4, 2), np.nan)
    if usable.any():
        projected[usable] = project_points(matrix, corners[usable])
    if not usable.all():
        _LOGGER.debug("Ignoring %d image corners beyond the horizon", int((~usable).sum()))

    def margin(indices: tuple[int, int], axis: int, pick, fallback: float) -> float:
        values = [projected[i, axis] for i in indices if usable[i]]
        return float(pick(values)) if values else fallback

    target_width, target_height = target
    left = margin((0, 2), 0, max, 0.0)
    right = margin((1, 3), 0, min, target_width)
    top = margin((0, 1), 1, max, 0.0)
    bottom = margin((2, 3), 1, min, target_height)
    return left, top, right, bottom


def target_size(settings: HomographySettings) -> tuple[float, float]:
    """Rectangle size (source pixels) the quadrilateral is straightened into."""

    tl, tr, bl, br = settings.source_points()
    width = max(abs(tr[0] - tl[0]), abs(br[0] - bl[0]))
    height = max(abs(bl[1] - tl[1]), abs(br[1] - tr[1]))
    return float(width), float(height)


def homography_matrix(settings: HomographySettings) -> np.ndarray:
    """Validate *settings* and return the source to corrected-space matrix."""

    _validate(settings)
    width, height = target_size(settings)
    if width < 1e-6 or height < 1e-6:
        raise InvalidHomographyError("Homography rectangle has no area")
    target = np.array([[0.0, 0.0], [width, 0.0], [0.0, height], [width, height]])
    return solve_homography(settings.source_points(), target)


def _bilinear_sample(pixels: np.ndarray, map_x: np.ndarray, map_y: np.ndarray) -> np.ndarray:
    """Sample *pixels* at float coordinates, transparent outside the image."""

    height, width = pixels.shape[:2]
    inside = (map_x >= -0.5) & (map_x <= width - 0.5) & (map_y >= -0.5) & (map_y <= height - 0.5)

    x = np.clip(map_x, 0.0, width - 1.0)
    y = np.clip(map_y, 0.0, height - 1.0)
    x0 = np.floor(x).astype(np.intp)
    y0 = np.floor(y).astype(np.intp)
    x1 = np.minimum(x0 + 1, width - 1)
    y1 = np.minimum(y0 + 1, height - 1)
    fx = (x - x0)[..., None]
    fy = (y - y0)[..., None]

    data = pixels.astype(np.float64)
    top = data[y0, x0] * (1.0 - fx) + data[y0, x1] * fx
    bottom = data[y1, x0] * (1.0 - fx) + data[y1, x1] * fx
    blended = top * (1.0 - fy) + bottom * fy

    result = np.clip(np.floor(blended + 0.5), 0, 255).astype(np.uint8)
    result[~inside] = 0
    return result


def apply_homography(buffer: PixelBuffer, settings: HomographySettings) -> PixelBuffer:
    """Return the perspective-corrected, cropped copy of *buffer*.

    Raises
    ------
    InvalidHomographyError
        For out-of-bounds, collinear or otherwise degenerate corners.
    """

    matrix = homography_matrix(settings)
    left, top, right, bottom = _crop_margins(
        matrix, float(buffer.width), float(buffer.height), target_size(settings)
    )

    out_width = int(round(right - left))
    out_height = int(round(bottom - top))
    if out_width < 1 or out_height < 1:
        raise InvalidHomographyError("Corrected image would be empty")

    try:
        inverse = np.linalg.inv(matrix)
    except np.linalg.LinAlgError as exc:
        raise InvalidHomographyError("Homography is not invertible") from exc

    grid_x, grid_y = np.meshgrid(
        np.arange(out_width, dtype=np.float64) + left,
        np.arange(out_height, dtype=np.float64) + top,
    )
    homogeneous = inverse @ np.stack([grid_x.ravel(), grid_y.ravel(), np.ones(grid_x.size)])
    # Output points mapping past the horizon have no source pixel.
    homogeneous[:, homogeneous[2] <= 0.0] = np.nan
    with np.errstate(divide="ignore", invalid="ignore"):
        map_x = (homogeneous[0] / homogeneous[2]).reshape(out_height, out_width)
        map_y = (homogeneous[1] / homogeneous[2]).reshape(out_height, out_width)
    map_x = np.nan_to_num(map_x, nan=-1.0, posinf=-1.0, neginf=-1.0)
    map_y = np.nan_to_num(map_y, nan=-1.0, posinf=-1.0, neginf=-1.0)

    _LOGGER.debug(
        "Homography %dx%d -> %dx%d (crop left=%.1f top=%.1f)",
        buffer.width,
        buffer.height,
        out_width,
        out_height,
        left,
        top,
    )
    return PixelBuffer(_bilinear_sample(buffer.pixels, map_x, map_y))


__all__ = [
    "HomographySettings",
    "Point",
    "apply_homography",
    "homography_matrix",
    "project_points",
    "solve_homography",
    "target_size",
]
