"""One-shot timers and debouncing on top of an injectable scheduler."""

import asyncio
import logging
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can run a callback once after a delay (seconds)."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class OneShotTimer:
    """A single pending callback; starting again replaces the previous one."""

    def __init__(self, scheduler: Scheduler, delay: float) -> None:
        self.scheduler = scheduler
        self.delay = delay
        self._handle: Optional[TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def start(self, callback: Callable[[], None]) -> None:
        self.cancel()

        def fire() -> None:
            self._handle = None
            callback()

        self._handle = self.scheduler.call_later(self.delay, fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class Debouncer:
    """
    Cancel-and-reschedule policy for search-as-you-type.

    Each trigger() restarts the quiet period; only the last call's
    arguments reach the callback.
    """

    def __init__(self, scheduler: Scheduler, quiet_period: float, callback: Callable[..., Any]) -> None:
        self.callback = callback
        self._timer = OneShotTimer(scheduler, quiet_period)

    @property
    def pending(self) -> bool:
        return self._timer.pending

    def trigger(self, *args: Any) -> None:
        self._timer.start(lambda: self.callback(*args))

    def cancel(self) -> None:
        self._timer.cancel()
