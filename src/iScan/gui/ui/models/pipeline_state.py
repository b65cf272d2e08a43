"""Immutable states published by the reprocessing coordinator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ....core.filter_chain import AppliedFilter
from ....core.homography import HomographySettings
from ....core.pixel_buffer import PixelBuffer


@dataclass(frozen=True)
class Idle:
    """No source image has been loaded yet."""


@dataclass(frozen=True)
class ImageLoaded:
    source: PixelBuffer


@dataclass(frozen=True)
class Loading:
    """A recomputation is running; ``previous`` is the last visible state."""

    previous: "PipelineState"


@dataclass(frozen=True)
class Ready:
    """The latest recomputation finished.

    ``source`` is the perspective-corrected image (the downsized source when
    no homography is applied) and ``filtered`` the result of the chain.
    """

    source: PixelBuffer
    filtered: PixelBuffer


@dataclass(frozen=True)
class Failed:
    reason: str
    code: str = "error"


PipelineState = Union[Idle, ImageLoaded, Loading, Ready, Failed]


# ----------------------------------------------------------------------
# Filter configuration
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class FiltersEnabled:
    filters: tuple[AppliedFilter, ...] = ()


@dataclass(frozen=True)
class FilterSelected:
    """The entry ``selected`` is open for configuration."""

    filters: tuple[AppliedFilter, ...]
    selected: AppliedFilter


FilterSettingsState = Union[FiltersEnabled, FilterSelected]


# ----------------------------------------------------------------------
# Homography selection
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class HomographyNotShown:
    pass


@dataclass(frozen=True)
class HomographySelecting:
    settings: HomographySettings


@dataclass(frozen=True)
class HomographySelected:
    settings: HomographySettings


HomographyState = Union[HomographyNotShown, HomographySelecting, HomographySelected]


__all__ = [
    "FilterSelected",
    "FilterSettingsState",
    "FiltersEnabled",
    "Failed",
    "HomographyNotShown",
    "HomographySelected",
    "HomographySelecting",
    "HomographyState",
    "Idle",
    "ImageLoaded",
    "Loading",
    "PipelineState",
    "Ready",
]
