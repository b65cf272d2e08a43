"""Run text recognition whenever the coordinator publishes a new result."""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QObject, QThreadPool, Signal

from ..models.pipeline_state import Loading, PipelineState, Ready
from ..models.text_recognition_state import (
    RecognitionEmpty,
    RecognitionErrorOccurred,
    RecognitionLoading,
    Recognized,
    TextRecognitionState,
)
from ..tasks.text_recognition_worker import Recognizer, TextRecognitionSignals, TextRecognitionWorker
from .reprocessing_coordinator import ReprocessingCoordinator

_LOGGER = logging.getLogger(__name__)


class TextRecognitionController(QObject):
    """Feed every ``Ready`` image to *recognizer* off the GUI thread."""

    stateChanged = Signal(object)

    def __init__(
        self,
        coordinator: ReprocessingCoordinator,
        recognizer: Recognizer,
        *,
        thread_pool: Optional[QThreadPool] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._recognizer = recognizer
        self._pool = thread_pool or QThreadPool(self)
        self._job_id = 0
        self._pending: dict[int, TextRecognitionSignals] = {}
        self._state: TextRecognitionState = RecognitionEmpty()
        coordinator.resultChanged.connect(self._handle_pipeline_state)

    @property
    def state(self) -> TextRecognitionState:
        return self._state

    def shutdown(self, timeout_ms: int = -1) -> None:
        self._pool.waitForDone(timeout_ms)

    # ------------------------------------------------------------------
    def _handle_pipeline_state(self, state: PipelineState) -> None:
        # Any new pipeline state supersedes a recognition still in flight.
        self._job_id += 1
        if isinstance(state, Loading):
            self._publish(RecognitionLoading())
        elif isinstance(state, Ready):
            self._publish(RecognitionLoading())
            self._start(state)
        else:
            self._publish(RecognitionEmpty())

    def _start(self, state: Ready) -> None:
        job_id = self._job_id
        worker = TextRecognitionWorker(self._recognizer, state.filtered, job_id)
        worker.signals.recognized.connect(self._handle_recognized)
        worker.signals.error.connect(self._handle_error)
        self._pending[job_id] = worker.signals
        _LOGGER.debug("Starting text recognition %d", job_id)
        self._pool.start(worker)

    def _handle_recognized(self, text: str, job_id: int) -> None:
        self._pending.pop(job_id, None)
        if job_id != self._job_id:
            return
        self._publish(Recognized(text))

    def _handle_error(self, message: str, job_id: int) -> None:
        self._pending.pop(job_id, None)
        if job_id != self._job_id:
            return
        self._publish(RecognitionErrorOccurred(message))

    def _publish(self, state: TextRecognitionState) -> None:
        self._state = state
        self.stateChanged.emit(state)


__all__ = ["TextRecognitionController"]
