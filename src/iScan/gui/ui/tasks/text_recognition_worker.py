"""Worker that feeds a filtered image to a text recognizer."""

from __future__ import annotations

import logging
from typing import Callable

from PySide6.QtCore import QObject, QRunnable, Signal

from ....core.pixel_buffer import PixelBuffer

_LOGGER = logging.getLogger(__name__)

Recognizer = Callable[[PixelBuffer], str]
"""Callable turning an image into recognised text."""


class TextRecognitionSignals(QObject):
    """Signals emitted by :class:`TextRecognitionWorker`."""

    recognized = Signal(str, int)
    error = Signal(str, int)


class TextRecognitionWorker(QRunnable):
    def __init__(self, recognizer: Recognizer, image: PixelBuffer, job_id: int) -> None:
        super().__init__()
        self._recognizer = recognizer
        self._image = image
        self._job_id = job_id
        self.signals = TextRecognitionSignals()

    def run(self) -> None:  # type: ignore[override]
        try:
            text = self._recognizer(self._image)
        except Exception as exc:
            _LOGGER.warning("Text recognition %d failed: %s", self._job_id, exc)
            self.signals.error.emit(str(exc) or type(exc).__name__, self._job_id)
            return
        self.signals.recognized.emit(str(text), self._job_id)


__all__ = ["Recognizer", "TextRecognitionSignals", "TextRecognitionWorker"]
