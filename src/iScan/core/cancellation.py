"""Cooperative cancellation shared between the coordinator and its workers."""

from __future__ import annotations

import threading

from ..errors import ProcessingCancelled


class CancellationToken:
    """Thread-safe flag polled by long running pipeline stages.

    The coordinator owns the token and calls :meth:`cancel`; the running
    recomputation polls :meth:`raise_if_cancelled` between chain steps and the
    tiled executor checks it once per tile.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ProcessingCancelled("Recomputation was cancelled")


__all__ = ["CancellationToken"]
