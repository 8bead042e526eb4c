"""Cooperative cancellation checked before every store call."""

from __future__ import annotations

import threading


class ImportCancelled(Exception):
    """Raised at a store-call boundary once cancellation was requested."""


class CancellationToken:
    """Flag shared between the caller and a running import."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ImportCancelled("Import cancelled by caller")
