"""Filter kinds, their strength domains and typed per-kind parameters."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ...config import DEFAULT_EDGE_COLOR
from ...errors import InvalidFilterParamsError, InvalidStrengthError


@dataclass(frozen=True)
class StrengthDomain:
    """Inclusive integer range with optional holes."""

    minimum: int
    maximum: int
    default: int
    excluded: frozenset[int] = frozenset()

    def __contains__(self, value: object) -> bool:
        if isinstance(value, bool) or not isinstance(value, int):
            return False
        return self.minimum <= value <= self.maximum and value not in self.excluded

    def describe(self) -> str:
        text = f"[{self.minimum}, {self.maximum}]"
        if self.excluded:
            holes = ", ".join(str(value) for value in sorted(self.excluded))
            text += f" except {holes}"
        return text


@dataclass(frozen=True)
class EdgeColoringParams:
    """Colour painted along edges detected by the Sobel operator."""

    color: tuple[int, int, int] = DEFAULT_EDGE_COLOR

    def __post_init__(self) -> None:
        try:
            color = tuple(int(channel) for channel in self.color)
        except (TypeError, ValueError):
            raise InvalidFilterParamsError(f"Edge colour must be three integers, got {self.color!r}") from None
        if len(color) != 3 or any(not 0 <= channel <= 255 for channel in color):
            raise InvalidFilterParamsError(f"Edge colour must be three values in [0, 255], got {self.color!r}")
        # Normalise lists and numpy scalars so the params stay hashable.
        object.__setattr__(self, "color", color)


FilterParams = Union[EdgeColoringParams]
"""Union of every typed parameter variant; extend when a kind grows options."""


class FilterKind(Enum):
    """Closed set of filters a user can add to the chain."""

    # name: (display name, short label, domain)
    BINARY = ("Binary", "Bi", StrengthDomain(0, 255, 155))
    CONTRAST = ("Contrast", "Co", StrengthDomain(-200, 500, 5, frozenset({259})))
    SHARPEN = ("Sharpen", "Sh", StrengthDomain(1, 20, 5))
    MEDIAN = ("Median", "Me", StrengthDomain(1, 20, 5))
    AVERAGING = ("Averaging", "Av", StrengthDomain(1, 20, 5))
    GRAYSCALE = ("Grayscale", "Gr", StrengthDomain(0, 255, 5))
    BRIGHTNESS_HSV = ("Brightness", "Br", StrengthDomain(-255, 255, 5))
    SATURATION_HSV = ("Saturation", "Sa", StrengthDomain(-255, 255, 5))
    HUE_HSV = ("Hue", "Hu", StrengthDomain(-255, 255, 5))
    EDGE_COLORING = ("Edge Coloring", "EC", StrengthDomain(0, 1, 1))

    def __init__(self, display_name: str, short_label: str, domain: StrengthDomain) -> None:
        self.display_name = display_name
        self.short_label = short_label
        self.domain = domain

    @property
    def default_strength(self) -> int:
        return self.domain.default

    @property
    def params_type(self) -> Optional[type]:
        return _PARAMS_TYPES.get(self)

    @classmethod
    def parse(cls, name: str) -> FilterKind:
        """Return the kind whose enum name, display name or short label matches *name*."""

        needle = name.strip().lower().replace("-", "_").replace(" ", "_")
        for kind in cls:
            candidates = {
                kind.name.lower(),
                kind.display_name.lower().replace(" ", "_"),
                kind.short_label.lower(),
            }
            if needle in candidates:
                return kind
        raise KeyError(f"Unknown filter kind: {name!r}")


_PARAMS_TYPES: dict[FilterKind, type] = {
    FilterKind.EDGE_COLORING: EdgeColoringParams,
}


def validate_strength(kind: FilterKind, strength: int) -> int:
    """Return *strength* when it belongs to *kind*'s domain.

    Raises
    ------
    InvalidStrengthError
        If the value is not an integer inside the domain.
    """

    if strength not in kind.domain:
        raise InvalidStrengthError(
            f"{kind.display_name} strength must be within {kind.domain.describe()}, got {strength!r}"
        )
    return strength


def resolve_params(kind: FilterKind, params: Optional[FilterParams]) -> Optional[FilterParams]:
    """Return the parameters to use for *kind*, filling in defaults."""

    expected = kind.params_type
    if expected is None:
        if params is not None:
            raise InvalidFilterParamsError(f"{kind.display_name} does not accept parameters")
        return None
    if params is None:
        return expected()
    if not isinstance(params, expected):
        raise InvalidFilterParamsError(
            f"{kind.display_name} expects {expected.__name__}, got {type(params).__name__}"
        )
    return params


__all__ = [
    "EdgeColoringParams",
    "FilterKind",
    "FilterParams",
    "StrengthDomain",
    "resolve_params",
    "validate_strength",
]
