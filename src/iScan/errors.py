"""Exception hierarchy for iScan."""

from __future__ import annotations


class IScanError(Exception):
    """Base class for all iScan errors.

    ``code`` is a short machine readable identifier that the reprocessing
    coordinator forwards inside a ``Failed`` state so callers can pick a
    user-facing message without parsing the text.
    """

    code = "error"


class InvalidStrengthError(IScanError, ValueError):
    """Raised when a filter strength lies outside the filter's domain."""

    code = "invalid_strength"


class InvalidFilterParamsError(IScanError, ValueError):
    """Raised when filter parameters do not belong to the filter kind."""

    code = "invalid_params"


class InvalidHomographyError(IScanError, ValueError):
    """Raised for degenerate or out-of-bounds homography corners."""

    code = "invalid_homography"


class FilterApplicationError(IScanError):
    """Raised when a filter fails unexpectedly while processing pixels."""

    code = "filter_application_failed"


class ProcessingCancelled(IScanError):
    """Raised inside a recomputation once its cancellation token fired.

    Cancellation is not a failure: the coordinator swallows it and publishes
    nothing for the abandoned attempt.
    """

    code = "cancelled"


class ImageIOError(IScanError):
    """Raised when an image cannot be read from or written to disk."""

    code = "image_io"


class RecognitionError(IScanError):
    """Raised by text recognizers when the OCR service reports a failure."""

    code = "recognition_failed"


__all__ = [
    "FilterApplicationError",
    "IScanError",
    "ImageIOError",
    "InvalidFilterParamsError",
    "InvalidHomographyError",
    "InvalidStrengthError",
    "ProcessingCancelled",
    "RecognitionError",
]
