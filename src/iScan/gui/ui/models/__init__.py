"""State objects exposed to views."""

from .pipeline_state import (
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
from .text_recognition_state import (
    RecognitionEmpty,
    RecognitionErrorOccurred,
    RecognitionLoading,
    Recognized,
    TextRecognitionState,
)

__all__ = [
    "Failed",
    "FilterSelected",
    "FilterSettingsState",
    "FiltersEnabled",
    "HomographyNotShown",
    "HomographySelected",
    "HomographySelecting",
    "HomographyState",
    "Idle",
    "ImageLoaded",
    "Loading",
    "PipelineState",
    "Ready",
    "RecognitionEmpty",
    "RecognitionErrorOccurred",
    "RecognitionLoading",
    "Recognized",
    "TextRecognitionState",
]
