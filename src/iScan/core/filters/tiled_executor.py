"""Block-tiled parallel execution for neighbourhood filters.

Median and Averaging cost ``O(width * height * strength^2)``.  The executor
cuts the output into square tiles and runs one :class:`QRunnable` per tile on
a private :class:`QThreadPool`.  Every task reads the shared input and writes
only its own tile, so tasks never need to synchronise and the output does not
depend on the block size or on scheduling order.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator, Optional

import numpy as np
from PySide6.QtCore import QRunnable, QThread, QThreadPool

from ...config import TILE_SIZE
from ...errors import FilterApplicationError
from ..cancellation import CancellationToken

_LOGGER = logging.getLogger(__name__)

TileKernel = Callable[[np.ndarray, np.ndarray, int, int, int, int, int], None]
"""``kernel(source, destination, strength, y0, y1, x0, x1)``."""


def iter_tiles(width: int, height: int, block_size: int) -> Iterator[tuple[int, int, int, int]]:
    """Yield ``(y0, y1, x0, x1)`` bounds covering the image without overlap."""

    for y0 in range(0, height, block_size):
        y1 = min(y0 + block_size, height)
        for x0 in range(0, width, block_size):
            yield y0, y1, x0, min(x0 + block_size, width)


class _TileTask(QRunnable):
    """Run a kernel over one tile, recording any failure for the caller."""

    def __init__(
        self,
        kernel: TileKernel,
        source: np.ndarray,
        destination: np.ndarray,
        strength: int,
        bounds: tuple[int, int, int, int],
        token: Optional[CancellationToken],
    ) -> None:
        super().__init__()
        # The executor keeps a Python reference to every task until the pool
        # drains, so Qt must not delete the wrapper behind our back.
        self.setAutoDelete(False)
        self._kernel = kernel
        self._source = source
        self._destination = destination
        self._strength = strength
        self._bounds = bounds
        self._token = token
        self.error: Optional[BaseException] = None

    def run(self) -> None:  # type: ignore[override]
        if self._token is not None and self._token.cancelled:
            return
        y0, y1, x0, x1 = self._bounds
        try:
            self._kernel(self._source, self._destination, self._strength, y0, y1, x0, x1)
        except Exception as exc:  # recorded and re-raised on the calling thread
            self.error = exc


class TiledExecutor:
    """Apply tile kernels over an image using a thread pool."""

    def __init__(self, block_size: int = TILE_SIZE, max_threads: Optional[int] = None) -> None:
        if int(block_size) < 1:
            raise ValueError(f"block_size must be positive, got {block_size}")
        self._block_size = int(block_size)
        self._max_threads = max_threads

    @property
    def block_size(self) -> int:
        return self._block_size

    def run(
        self,
        source: np.ndarray,
        kernel: TileKernel,
        strength: int,
        *,
        token: Optional[CancellationToken] = None,
    ) -> np.ndarray:
        """Return a new array produced by running *kernel* on every tile.

        Blocks until all tiles have finished.

        Raises
        ------
        ProcessingCancelled
            If *token* was cancelled before or while tiles were processed.
        FilterApplicationError
            If the kernel raised inside any tile.
        """

        if token is not None:
            token.raise_if_cancelled()

        source = np.ascontiguousarray(source)
        destination = np.empty_like(source)
        height, width = source.shape[:2]
        if width == 0 or height == 0:
            return destination

        tiles = list(iter_tiles(width, height, self._block_size))
        tasks = [
            _TileTask(kernel, source, destination, int(strength), bounds, token)
            for bounds in tiles
        ]

        if len(tasks) == 1:
            tasks[0].run()
        else:
            pool = QThreadPool()
            pool.setMaxThreadCount(self._max_threads or max(1, QThread.idealThreadCount()))
            for task in tasks:
                pool.start(task)
            pool.waitForDone()

        if token is not None:
            token.raise_if_cancelled()

        for task in tasks:
            if task.error is not None:
                _LOGGER.error("Tile kernel %s failed: %s", getattr(kernel, "__name__", kernel), task.error)
                raise FilterApplicationError(f"Tile processing failed: {task.error}") from task.error

        _LOGGER.debug("Processed %d tiles of %dpx", len(tasks), self._block_size)
        return destination


__all__ = ["TileKernel", "TiledExecutor", "iter_tiles"]
