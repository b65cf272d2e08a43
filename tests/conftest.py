import os
import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# Tests run headless; Qt must not try to reach a display server.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from iScan.core.pixel_buffer import PixelBuffer  # noqa: E402


def make_random_buffer(width: int, height: int, seed: int = 0) -> PixelBuffer:
    rng = np.random.default_rng(seed)
    return PixelBuffer(rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8))


def make_gradient_buffer(width: int = 256, height: int = 4) -> PixelBuffer:
    """Horizontal gray ramp from 0 to 255, fully opaque."""

    ramp = np.linspace(0, 255, width).astype(np.uint8)
    gray = np.repeat(ramp[None, :], height, axis=0)
    return PixelBuffer.from_array(np.stack([gray, gray, gray], axis=2))


@pytest.fixture
def buffer_factory():
    return make_random_buffer


@pytest.fixture
def random_buffer() -> PixelBuffer:
    return make_random_buffer(23, 17)


@pytest.fixture
def gradient_buffer() -> PixelBuffer:
    return make_gradient_buffer()
