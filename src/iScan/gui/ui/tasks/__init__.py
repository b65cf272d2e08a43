"""Background worker helpers for GUI tasks."""

from .reprocess_worker import ReprocessSignals, ReprocessWorker
from .text_recognition_worker import (
    Recognizer,
    TextRecognitionSignals,
    TextRecognitionWorker,
)

__all__ = [
    "Recognizer",
    "ReprocessSignals",
    "ReprocessWorker",
    "TextRecognitionSignals",
    "TextRecognitionWorker",
]
