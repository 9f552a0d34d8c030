"""Timer scheduling behind an injectable interface.

The flow animator never talks to an event loop directly. It asks a
``Scheduler`` for one-shot or repeating timers and gets back handles it can
cancel. Two implementations exist:

- ``ManualScheduler``: a virtual clock advanced explicitly (tests, replay)
- ``AsyncioScheduler``: real timers on an asyncio event loop

Usage:
    scheduler = ManualScheduler()
    handle = scheduler.call_every(50, animator.fine_tick)
    scheduler.advance(200)     # fires four times
    handle.cancel()
"""

import asyncio
import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], None]


class TimerHandle:
    """A scheduled callback that can be cancelled.

    ``cancel()`` is idempotent and a cancelled handle never fires again,
    including when cancellation happens from inside another callback due at
    the same instant.
    """

    def __init__(
        self,
        scheduler: "Scheduler",
        callback: TimerCallback,
        interval_ms: float,
        repeat: bool,
    ):
        self._scheduler = scheduler
        self.callback = callback
        self.interval_ms = interval_ms
        self.repeat = repeat
        self.cancelled = False
        self.fire_count = 0

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        self._scheduler._forget(self)

    def __repr__(self) -> str:
        kind = "every" if self.repeat else "once"
        state = "cancelled" if self.cancelled else "active"
        return f"<TimerHandle {kind} {self.interval_ms}ms {state}>"


class Scheduler(ABC):
    """Abstract clock plus timer factory."""

    def __init__(self):
        self._handles: Set[TimerHandle] = set()

    @abstractmethod
    def now_ms(self) -> float:
        """Current time in milliseconds."""
        ...

    @abstractmethod
    def _schedule(self, handle: TimerHandle, delay_ms: float) -> None:
        """Arrange for ``handle`` to fire after ``delay_ms``."""
        ...

    def call_every(self, interval_ms: float, callback: TimerCallback) -> TimerHandle:
        """Run ``callback`` every ``interval_ms`` until cancelled.

        Raises:
            ValueError: If the interval is not positive
        """
        if interval_ms <= 0:
            raise ValueError(f"Interval must be positive, got {interval_ms}")
        handle = TimerHandle(self, callback, interval_ms, repeat=True)
        self._handles.add(handle)
        self._schedule(handle, interval_ms)
        return handle

    def call_later(self, delay_ms: float, callback: TimerCallback) -> TimerHandle:
        """Run ``callback`` once after ``delay_ms``.

        Raises:
            ValueError: If the delay is negative
        """
        if delay_ms < 0:
            raise ValueError(f"Delay must not be negative, got {delay_ms}")
        handle = TimerHandle(self, callback, delay_ms, repeat=False)
        self._handles.add(handle)
        self._schedule(handle, delay_ms)
        return handle

    def cancel_all(self) -> None:
        """Cancel every outstanding timer."""
        for handle in list(self._handles):
            handle.cancel()

    def active_timers(self) -> int:
        """Number of timers that may still fire."""
        return len(self._handles)

    def _forget(self, handle: TimerHandle) -> None:
        self._handles.discard(handle)

    def _run(self, handle: TimerHandle) -> bool:
        """Fire a due handle. Returns True if it should be rescheduled."""
        if handle.cancelled:
            return False
        if not handle.repeat:
            self._forget(handle)
        handle.fire_count += 1
        handle.callback()
        return handle.repeat and not handle.cancelled


class ManualScheduler(Scheduler):
    """Deterministic scheduler driven by ``advance``.

    Callbacks due within an ``advance`` window run in due-time order (ties in
    scheduling order) with ``now_ms`` set to their due time.
    """

    def __init__(self, start_ms: float = 0.0):
        super().__init__()
        self._now = float(start_ms)
        self._queue: List[Tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()

    def now_ms(self) -> float:
        return self._now

    def _schedule(self, handle: TimerHandle, delay_ms: float) -> None:
        heapq.heappush(self._queue, (self._now + delay_ms, next(self._seq), handle))

    def advance(self, ms: float) -> int:
        """Move the clock forward, firing everything that comes due.

        Args:
            ms: Milliseconds to advance (non-negative)

        Returns:
            Number of callbacks fired
        """
        if ms < 0:
            raise ValueError(f"Cannot move the clock backwards ({ms}ms)")
        target = self._now + ms
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = due
            fired += 1
            if self._run(handle):
                self._schedule(handle, handle.interval_ms)
        self._now = target
        return fired

    def pending(self) -> int:
        """Queued entries that have not been cancelled."""
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)


class AsyncioScheduler(Scheduler):
    """Scheduler backed by ``loop.call_later``.

    Exceptions raised by a callback are logged and do not stop a repeating
    timer.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        super().__init__()
        self._loop = loop
        self._timers = {}

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now_ms(self) -> float:
        return self.loop.time() * 1000.0

    def _schedule(self, handle: TimerHandle, delay_ms: float) -> None:
        self._timers[handle] = self.loop.call_later(delay_ms / 1000.0, self._fire, handle)

    def _fire(self, handle: TimerHandle) -> None:
        self._timers.pop(handle, None)
        try:
            again = self._run(handle)
        except Exception:
            logger.exception(f"Timer callback failed: {handle!r}")
            again = handle.repeat and not handle.cancelled
        if again:
            self._schedule(handle, handle.interval_ms)

    def _forget(self, handle: TimerHandle) -> None:
        super()._forget(handle)
        timer = self._timers.pop(handle, None)
        if timer is not None:
            timer.cancel()


__all__ = [
    "TimerCallback",
    "TimerHandle",
    "Scheduler",
    "ManualScheduler",
    "AsyncioScheduler",
]
