"""Deferred callbacks on the UI event loop."""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable


class ScheduledCall(ABC):
    @abstractmethod
    def cancel(self) -> None:
        raise NotImplementedError


class Scheduler(ABC):
    """Runs a callback after a delay on the single UI thread."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ScheduledCall:
        raise NotImplementedError


class _AsyncioCall(ScheduledCall):
    def __init__(self, handle: asyncio.TimerHandle) -> None:
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()


class AsyncioScheduler(Scheduler):
    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ScheduledCall:
        loop = self._loop or asyncio.get_running_loop()
        return _AsyncioCall(loop.call_later(delay, callback, *args))
