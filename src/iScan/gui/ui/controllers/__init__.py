"""Controllers coordinating edits, background work and published state."""

from .reprocessing_coordinator import Exporter, ReprocessingCoordinator
from .text_recognition_controller import TextRecognitionController

__all__ = ["Exporter", "ReprocessingCoordinator", "TextRecognitionController"]
