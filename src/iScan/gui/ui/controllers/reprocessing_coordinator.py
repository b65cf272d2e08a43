"""Coordinator that turns edit requests into debounced background reloads."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Union

from PySide6.QtCore import QObject, QThreadPool, QTimer, Signal
from PySide6.QtGui import QImage

from ....config import MAX_SOURCE_DIMENSION, RELOAD_DEBOUNCE_MS
from ....core.cancellation import CancellationToken
from ....core.filter_chain import AppliedFilter, FilterChain
from ....core.filters import FilterKind, FilterParams, TiledExecutor
from ....core.homography import HomographySettings, Point
from ....core.image_io import save_image
from ....core.pipeline import CachedStep, PipelineOutput
from ....core.pixel_buffer import PixelBuffer
from ....errors import ImageIOError, InvalidHomographyError
from ....utils.qimage import pixel_buffer_from_qimage
from ..models.pipeline_state import (
    Failed,
    FilterSelected,
    FilterSettingsState,
    FiltersEnabled,
    HomographyNotShown,
    HomographySelected,
    HomographySelecting,
    HomographyState,
    Idle,
    ImageLoaded,
    Loading,
    PipelineState,
    Ready,
)
from ..tasks.reprocess_worker import ReprocessSignals, ReprocessWorker

_LOGGER = logging.getLogger(__name__)

Exporter = Callable[[PixelBuffer, Path], object]


class ReprocessingCoordinator(QObject):
    """Own the editing session and publish the state of its recomputations.

    Every edit request returns immediately.  Requests bump a reload counter
    and restart a single-shot timer; when it fires the running attempt is
    cancelled and a :class:`ReprocessWorker` starts with immutable snapshots
    of the source, the homography and the filter chain.  Only the attempt
    whose generation matches the counter may publish, so superseded results
    are dropped and rapid edits produce a single ``Ready``.
    """

    resultChanged = Signal(object)
    """Emitted with the new :data:`PipelineState`."""

    filtersChanged = Signal(object)
    """Emitted with the new :data:`FilterSettingsState`."""

    homographyChanged = Signal(object)
    """Emitted with the new :data:`HomographyState`."""

    idle = Signal()
    """Emitted when no recomputation is running or pending."""

    def __init__(
        self,
        *,
        thread_pool: Optional[QThreadPool] = None,
        executor: Optional[TiledExecutor] = None,
        exporter: Exporter = save_image,
        max_dimension: int = MAX_SOURCE_DIMENSION,
        debounce_ms: int = RELOAD_DEBOUNCE_MS,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._pool = thread_pool or QThreadPool(self)
        self._executor = executor or TiledExecutor()
        self._exporter = exporter
        self._max_dimension = int(max_dimension)
        self._debounce_ms = int(debounce_ms)

        self._source: Optional[PixelBuffer] = None
        self._chain = FilterChain()
        self._selected_id: Optional[int] = None
        self._applied_homography: Optional[HomographySettings] = None
        self._pending_homography: Optional[HomographySettings] = None

        self._state: PipelineState = Idle()
        self._filter_state: FilterSettingsState = FiltersEnabled()
        self._homography_state: HomographyState = HomographyNotShown()

        self._reload_counter = 0
        self._active_token: Optional[CancellationToken] = None
        self._running: dict[int, ReprocessSignals] = {}
        self._step_cache: tuple[CachedStep, ...] = ()
        self._cancelled_count = 0

        self._reload_timer = QTimer(self)
        self._reload_timer.setSingleShot(True)
        self._reload_timer.timeout.connect(self._start_recomputation)

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------
    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def filter_state(self) -> FilterSettingsState:
        return self._filter_state

    @property
    def homography_state(self) -> HomographyState:
        return self._homography_state

    @property
    def source(self) -> Optional[PixelBuffer]:
        return self._source

    @property
    def filters(self) -> tuple[AppliedFilter, ...]:
        return self._chain.snapshot()

    @property
    def homography(self) -> Optional[HomographySettings]:
        """Return the applied homography, ``None`` for the full image."""

        return self._applied_homography

    @property
    def reload_counter(self) -> int:
        return self._reload_counter

    @property
    def cancelled_count(self) -> int:
        """Number of recomputations that stopped early after being superseded."""

        return self._cancelled_count

    def is_busy(self) -> bool:
        """Return ``True`` while a recomputation is running or pending."""

        return bool(self._running) or self._reload_timer.isActive()

    # ------------------------------------------------------------------
    # Source image
    # ------------------------------------------------------------------
    def set_source_image(self, image: Union[PixelBuffer, QImage]) -> None:
        """Replace the source image and reset the homography."""

        buffer = pixel_buffer_from_qimage(image) if isinstance(image, QImage) else image
        buffer = buffer.scaled_to_fit(self._max_dimension)
        _LOGGER.debug("Loaded source image %dx%d", buffer.width, buffer.height)

        # Results for the previous image are useless; stop them right away.
        self._cancel_active()
        self._source = buffer
        self._step_cache = ()
        self._applied_homography = None
        self._pending_homography = None
        self._set_homography_state(HomographyNotShown())
        self._publish(ImageLoaded(buffer))
        self._schedule_reload()

    # ------------------------------------------------------------------
    # Filter chain
    # ------------------------------------------------------------------
    def add_filter(
        self,
        kind: FilterKind,
        strength: Optional[int] = None,
        params: Optional[FilterParams] = None,
    ) -> AppliedFilter:
        """Append *kind* to the chain and open it for configuration."""

        entry = self._chain.add(kind, strength, params)
        self._selected_id = entry.entry_id
        self._publish_filters()
        self._schedule_reload()
        return entry

    def remove_filter(self, entry_id: int) -> None:
        self._chain.remove(entry_id)
        if self._selected_id == entry_id:
            self._selected_id = None
        self._publish_filters()
        self._schedule_reload()

    def change_strength(self, entry_id: int, value: int) -> AppliedFilter:
        """Update the strength of *entry_id*.

        Raises :class:`InvalidStrengthError` before anything changes when
        *value* is outside the filter's domain.
        """

        entry = self._chain.change_strength(entry_id, value)
        self._publish_filters()
        self._schedule_reload()
        return entry

    def set_filter_params(self, entry_id: int, params: Optional[FilterParams]) -> AppliedFilter:
        entry = self._chain.set_params(entry_id, params)
        self._publish_filters()
        self._schedule_reload()
        return entry

    def move_filter(self, entry_id: int, index: int) -> None:
        self._chain.move(entry_id, index)
        self._publish_filters()
        self._schedule_reload()

    def select_filter_to_configure(self, entry_id: Optional[int]) -> None:
        """Open *entry_id* for configuration, or close the editor for ``None``."""

        if entry_id is not None:
            self._chain.index_of(entry_id)
        self._selected_id = entry_id
        self._publish_filters()

    # ------------------------------------------------------------------
    # Homography
    # ------------------------------------------------------------------
    def begin_homography_selection(
        self,
        display_width: Optional[float] = None,
        display_height: Optional[float] = None,
    ) -> HomographySettings:
        """Start dragging corners over an image shown at the given size.

        Without a display size the image is assumed to be shown at source
        resolution.  A previously applied selection is reused, rescaled to the
        new display size when it differs.
        """

        if self._source is None:
            raise InvalidHomographyError("No source image loaded")

        source = self._source
        scale = 1.0 if display_width is None else float(display_width) / float(source.width)
        width = source.width * scale if display_width is None else float(display_width)
        height = source.height * scale if display_height is None else float(display_height)

        applied = self._applied_homography
        if applied is None:
            settings = HomographySettings.from_size(width, height, scale)
        else:
            factor = scale / applied.scale_to_image
            settings = HomographySettings(
                *[(x * factor, y * factor) for x, y in applied.points],
                display_width=width,
                display_height=height,
                scale_to_image=scale,
            )

        self._pending_homography = settings
        self._set_homography_state(HomographySelecting(settings))
        return settings

    def update_homography_point(self, position: Point) -> Optional[HomographySettings]:
        """Drag the corner nearest to *position* in the current selection."""

        current = self._pending_homography
        if current is None:
            return None
        updated = current.update_nearest(position)
        if updated is not current:
            self._pending_homography = updated
            self._set_homography_state(HomographySelecting(updated))
        return updated

    def apply_homography(self, settings: Optional[HomographySettings] = None) -> None:
        """Apply *settings*, or the in-progress selection, and reload."""

        chosen = settings or self._pending_homography
        if chosen is None:
            raise InvalidHomographyError("No homography selection to apply")
        self._applied_homography = chosen
        self._pending_homography = None
        self._set_homography_state(HomographySelected(chosen))
        self._schedule_reload()

    def cancel_homography_selection(self) -> None:
        self._pending_homography = None
        if self._applied_homography is not None:
            self._set_homography_state(HomographySelected(self._applied_homography))
        else:
            self._set_homography_state(HomographyNotShown())

    def reset_homography(self) -> None:
        self._applied_homography = None
        self._pending_homography = None
        self._set_homography_state(HomographyNotShown())
        self._schedule_reload()

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def latest_result(self) -> Optional[PixelBuffer]:
        """Return the most recently published filtered image, if any."""

        state = self._state.previous if isinstance(self._state, Loading) else self._state
        if isinstance(state, Ready):
            return state.filtered
        return None

    def save_result(self, path: Union[Path, str]) -> Path:
        """Write the latest filtered image to *path*."""

        result = self.latest_result()
        if result is None:
            raise ImageIOError("No processed image to save")
        target = Path(path)
        self._exporter(result, target)
        return target

    def shutdown(self, timeout_ms: int = -1) -> None:
        """Cancel outstanding work and wait for the worker pool to drain."""

        self._reload_timer.stop()
        self._cancel_active()
        self._pool.waitForDone(timeout_ms)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def _schedule_reload(self) -> None:
        self._reload_counter += 1
        delay = self._debounce_ms if self._running else 0
        _LOGGER.debug("Reload %d scheduled in %d ms", self._reload_counter, delay)
        self._reload_timer.start(delay)

    def _cancel_active(self) -> None:
        if self._active_token is not None:
            self._active_token.cancel()
            self._active_token = None

    def _start_recomputation(self) -> None:
        if self._source is None:
            if not self._running:
                self.idle.emit()
            return

        self._cancel_active()
        generation = self._reload_counter
        token = CancellationToken()
        self._active_token = token

        previous = self._state.previous if isinstance(self._state, Loading) else self._state
        self._publish(Loading(previous))

        worker = ReprocessWorker(
            self._source,
            self._chain.snapshot(),
            self._applied_homography,
            generation=generation,
            token=token,
            cache=self._step_cache,
            executor=self._executor,
        )
        worker.signals.ready.connect(self._handle_ready)
        worker.signals.error.connect(self._handle_error)
        worker.signals.cancelled.connect(self._handle_cancelled)
        worker.signals.finished.connect(self._handle_finished)
        self._running[generation] = worker.signals
        _LOGGER.debug("Starting recomputation %d", generation)
        self._pool.start(worker)

    def _is_current(self, generation: int) -> bool:
        token = self._active_token
        return generation == self._reload_counter and token is not None and not token.cancelled

    def _handle_ready(self, output: PipelineOutput, generation: int) -> None:
        if not self._is_current(generation):
            _LOGGER.debug("Dropping stale result %d", generation)
            return
        self._step_cache = output.steps
        self._publish(Ready(output.corrected, output.filtered))

    def _handle_error(self, generation: int, message: str, code: str) -> None:
        if not self._is_current(generation):
            return
        self._publish(Failed(message, code))

    def _handle_cancelled(self, generation: int) -> None:
        self._cancelled_count += 1
        _LOGGER.debug("Recomputation %d stopped early", generation)

    def _handle_finished(self, generation: int) -> None:
        self._running.pop(generation, None)
        if not self._running and not self._reload_timer.isActive():
            self._active_token = None
            self.idle.emit()

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------
    def _publish(self, state: PipelineState) -> None:
        self._state = state
        self.resultChanged.emit(state)

    def _publish_filters(self) -> None:
        filters = self._chain.snapshot()
        if self._selected_id is None:
            state: FilterSettingsState = FiltersEnabled(filters)
        else:
            state = FilterSelected(filters, self._chain.get(self._selected_id))
        self._filter_state = state
        self.filtersChanged.emit(state)

    def _set_homography_state(self, state: HomographyState) -> None:
        self._homography_state = state
        self.homographyChanged.emit(state)


__all__ = ["Exporter", "ReprocessingCoordinator"]
