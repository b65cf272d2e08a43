"""Worker that runs one pipeline recomputation off the GUI thread."""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QObject, QRunnable, Signal

from ....core.cancellation import CancellationToken
from ....core.filter_chain import AppliedFilter
from ....core.filters import TiledExecutor
from ....core.homography import HomographySettings
from ....core.pipeline import CachedStep, run_pipeline
from ....core.pixel_buffer import PixelBuffer
from ....errors import IScanError, ProcessingCancelled

_LOGGER = logging.getLogger(__name__)


class ReprocessSignals(QObject):
    """Signals emitted by :class:`ReprocessWorker`."""

    ready = Signal(object, int)
    """Emitted with the :class:`PipelineOutput` and the generation."""

    error = Signal(int, str, str)
    """Emitted with the generation, a message and the error code."""

    cancelled = Signal(int)
    """Emitted with the generation when the token stopped the run early."""

    finished = Signal(int)
    """Emitted once the worker has completed, whatever the outcome."""

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)


class ReprocessWorker(QRunnable):
    """Apply the homography and filter chain snapshots to a source image."""

    def __init__(
        self,
        source: PixelBuffer,
        entries: tuple[AppliedFilter, ...],
        homography: Optional[HomographySettings],
        *,
        generation: int,
        token: CancellationToken,
        cache: tuple[CachedStep, ...] = (),
        executor: Optional[TiledExecutor] = None,
    ) -> None:
        super().__init__()
        self.setAutoDelete(True)
        self._source = source
        self._entries = tuple(entries)
        self._homography = homography
        self._generation = int(generation)
        self._token = token
        self._cache = tuple(cache)
        self._executor = executor
        self.signals = ReprocessSignals()

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def token(self) -> CancellationToken:
        return self._token

    def run(self) -> None:  # type: ignore[override]
        """Run the pipeline and report the outcome through :attr:`signals`."""

        try:
            output = run_pipeline(
                self._source,
                self._entries,
                self._homography,
                token=self._token,
                cache=self._cache,
                executor=self._executor,
            )
        except ProcessingCancelled:
            _LOGGER.debug("Recomputation %d cancelled", self._generation)
            self.signals.cancelled.emit(self._generation)
        except IScanError as exc:
            _LOGGER.warning("Recomputation %d failed: %s", self._generation, exc)
            self.signals.error.emit(self._generation, str(exc), exc.code)
        except Exception as exc:
            _LOGGER.exception("Recomputation %d crashed", self._generation)
            self.signals.error.emit(self._generation, str(exc) or type(exc).__name__, IScanError.code)
        else:
            self.signals.ready.emit(output, self._generation)
        finally:
            self.signals.finished.emit(self._generation)


__all__ = ["ReprocessSignals", "ReprocessWorker"]
