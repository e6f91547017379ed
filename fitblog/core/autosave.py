"""Recurring draft autosave."""

from __future__ import annotations

import asyncio
from types import TracebackType

from ..utils.logging import get_logger
from .drafts import DraftManager

LOGGER = get_logger(__name__)


class AutosaveTask:
    """Calls :meth:`DraftManager.autosave` every ``interval`` seconds.

    Use as ``async with AutosaveTask(manager):`` so the loop is cancelled on
    exit. Ticks are idempotent; a failed tick is logged and the loop goes on.
    """

    def __init__(self, manager: DraftManager, *, interval: float = 60.0) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._manager = manager
        self._interval = interval
        self._task: asyncio.Task[None] | None = None
        self._stop_event: asyncio.Event | None = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="draft-autosave")
        LOGGER.debug("Autosave started interval=%.1fs", self._interval)

    async def stop(self) -> None:
        task = self._task
        if task is None:
            return
        if self._stop_event is not None:
            self._stop_event.set()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self._task = None
        LOGGER.debug("Autosave stopped after %d ticks", self.ticks)

    async def __aenter__(self) -> "AutosaveTask":
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()

    async def _run(self) -> None:
        stop_event = self._stop_event
        if stop_event is None:
            raise RuntimeError("Autosave loop started without start()")
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._interval)
                break
            except asyncio.TimeoutError:
                pass
            self.tick()

    def tick(self) -> None:
        self.ticks += 1
        try:
            self._manager.autosave()
        except Exception as exc:
            LOGGER.error(
                "Autosave failed: %s",
                exc,
                exc_info=True,
                extra={"event": "draft.autosave_error"},
            )


__all__ = ["AutosaveTask"]
