"""States published by the text recognition controller."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class RecognitionEmpty:
    """Nothing to recognise: no result image is available."""


@dataclass(frozen=True)
class RecognitionLoading:
    pass


@dataclass(frozen=True)
class Recognized:
    text: str


@dataclass(frozen=True)
class RecognitionErrorOccurred:
    message: str


TextRecognitionState = Union[RecognitionEmpty, RecognitionLoading, Recognized, RecognitionErrorOccurred]


__all__ = [
    "RecognitionEmpty",
    "RecognitionErrorOccurred",
    "RecognitionLoading",
    "Recognized",
    "TextRecognitionState",
]
