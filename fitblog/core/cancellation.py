"""Cooperative cancellation for long-running AI calls."""

from __future__ import annotations

import itertools
from typing import Callable


class RequestCancelled(Exception):
    """The caller abandoned the request; no result was produced."""


class CancellationToken:
    """Shared flag a long-running call observes to stop early.

    Listeners registered with :meth:`add_listener` run synchronously inside
    :meth:`cancel`. Callers must pair every ``add_listener`` with
    ``remove_listener`` so repeated calls do not pile up observers.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._listeners: dict[int, Callable[[], None]] = {}
        self._handles = itertools.count(1)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        for callback in list(self._listeners.values()):
            callback()

    def add_listener(self, callback: Callable[[], None]) -> int:
        handle = next(self._handles)
        self._listeners[handle] = callback
        if self._cancelled:
            callback()
        return handle

    def remove_listener(self, handle: int) -> None:
        self._listeners.pop(handle, None)

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise RequestCancelled("Operation was cancelled")


__all__ = ["CancellationToken", "RequestCancelled"]
