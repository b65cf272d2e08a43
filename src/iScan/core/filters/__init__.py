"""Pixel filters and their execution strategies.

- kinds: the closed set of filters, strength domains and typed parameters
- algorithms: numba kernels (tile kernels and the HSV pass)
- numpy_executor: vectorised point and 3x3 filters
- tiled_executor: parallel block-tiled execution with cancellation
- facade: ``apply_filter`` dispatching a kind to its implementation
"""

from __future__ import annotations

from .facade import apply_filter
from .kinds import (
    EdgeColoringParams,
    FilterKind,
    FilterParams,
    StrengthDomain,
    resolve_params,
    validate_strength,
)
from .tiled_executor import TiledExecutor

__all__ = [
    "EdgeColoringParams",
    "FilterKind",
    "FilterParams",
    "StrengthDomain",
    "TiledExecutor",
    "apply_filter",
    "resolve_params",
    "validate_strength",
]
