"""
Cooperative Scheduling - Delayed callbacks on a single thread.

All audio "concurrency" is logical: layers reschedule their own next
event and the crossfade manager schedules layer stops after fades. No
callback ever runs in parallel with another.

Schedulers:
    AsyncioScheduler  - Wraps an asyncio event loop (live sessions)
    ManualScheduler   - Virtual clock advanced explicitly (offline
                        rendering, tests)

RepeatingTask is the self-rescheduling pattern made explicit: one
pending timer at most, and a stopped flag checked before every firing.

Blocking work (decoding an asset) goes through run_blocking(): the
asyncio scheduler runs it on a worker thread and delivers the result
back on the loop, the manual scheduler runs it inline on the next tick.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import heapq
import itertools
import logging
import random
from abc import ABC, abstractmethod
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    """Handle to a pending callback (asyncio.TimerHandle satisfies this)."""

    def cancel(self) -> None: ...

    def cancelled(self) -> bool: ...


class Scheduler(ABC):
    """Clock plus delayed-callback facility."""

    @abstractmethod
    def time(self) -> float:
        """Current time in seconds (monotonic)."""
        ...

    @abstractmethod
    def call_later(
        self,
        delay: float,
        callback: Callable[..., Any],
        *args: Any,
    ) -> TimerHandle:
        """Run callback(*args) after delay seconds."""
        ...

    @abstractmethod
    def run_blocking(
        self,
        func: Callable[..., Any],
        *args: Any,
        on_done: Callable[[Any, Exception | None], None],
    ) -> TimerHandle:
        """Run func(*args) without holding up other callbacks.

        on_done(result, error) is called back on the scheduler's thread,
        unless the returned handle was cancelled first.
        """
        ...


class AsyncioScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop.

    Example:
        async def main():
            scheduler = AsyncioScheduler()
            manager = CrossfadeManager(registry, scheduler=scheduler)
            manager.set_environment(Environment.FOREST)
            await asyncio.sleep(10)
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        max_workers: int = 2,
    ):
        self._loop = loop
        self._max_workers = max_workers
        self._executor: concurrent.futures.ThreadPoolExecutor | None = None

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def time(self) -> float:
        return self.loop.time()

    def call_later(
        self,
        delay: float,
        callback: Callable[..., Any],
        *args: Any,
    ) -> TimerHandle:
        return self.loop.call_later(max(0.0, delay), callback, *args)

    def run_blocking(
        self,
        func: Callable[..., Any],
        *args: Any,
        on_done: Callable[[Any, Exception | None], None],
    ) -> TimerHandle:
        if self._executor is None:
            self._executor = concurrent.futures.ThreadPoolExecutor(
                max_workers=self._max_workers,
                thread_name_prefix="storygraph-io",
            )
        future = self.loop.run_in_executor(self._executor, func, *args)

        def deliver(done: asyncio.Future) -> None:
            if done.cancelled():
                return
            error = done.exception()
            if error is not None:
                on_done(None, error)
            else:
                on_done(done.result(), None)

        future.add_done_callback(deliver)
        return future

    def shutdown(self) -> None:
        """Release the worker threads. Running work finishes in the background."""
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None


class _ManualTimer:
    """Pending callback on a ManualScheduler."""

    __slots__ = ("when", "seq", "callback", "args", "_cancelled")

    def __init__(self, when: float, seq: int, callback: Callable[..., Any], args: tuple):
        self.when = when
        self.seq = seq
        self.callback = callback
        self.args = args
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled

    def __lt__(self, other: "_ManualTimer") -> bool:
        # Earlier deadline first, then scheduling order
        if self.when != other.when:
            return self.when < other.when
        return self.seq < other.seq


class ManualScheduler(Scheduler):
    """Scheduler with a virtual clock.

    Time only moves when advance() is called. Timers fire in deadline
    order; a timer scheduled by a callback during advance() fires in the
    same call if its deadline is inside the advanced window.

    Example:
        scheduler = ManualScheduler()
        scheduler.call_later(1.0, print, "tick")
        scheduler.advance(0.5)   # nothing
        scheduler.advance(0.5)   # prints "tick"
    """

    def __init__(self, start: float = 0.0):
        self._now = float(start)
        self._queue: list[_ManualTimer] = []
        self._counter = itertools.count()

    def time(self) -> float:
        return self._now

    def call_later(
        self,
        delay: float,
        callback: Callable[..., Any],
        *args: Any,
    ) -> TimerHandle:
        timer = _ManualTimer(self._now + max(0.0, delay), next(self._counter), callback, args)
        heapq.heappush(self._queue, timer)
        return timer

    def run_blocking(
        self,
        func: Callable[..., Any],
        *args: Any,
        on_done: Callable[[Any, Exception | None], None],
    ) -> TimerHandle:
        def run() -> None:
            try:
                result = func(*args)
            except Exception as e:
                on_done(None, e)
                return
            on_done(result, None)

        return self.call_later(0.0, run)

    @property
    def pending(self) -> int:
        """Number of timers that are scheduled and not cancelled."""
        return sum(1 for t in self._queue if not t.cancelled())

    def next_deadline(self) -> float | None:
        for timer in sorted(self._queue):
            if not timer.cancelled():
                return timer.when
        return None

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every timer that comes due.

        Returns:
            Number of callbacks run.
        """
        if seconds < 0:
            raise ValueError("cannot advance by a negative amount")

        target = self._now + seconds
        fired = 0
        while self._queue and self._queue[0].when <= target:
            timer = heapq.heappop(self._queue)
            if timer.cancelled():
                continue
            self._now = max(self._now, timer.when)
            timer.callback(*timer.args)
            fired += 1
        self._now = target
        return fired

    def clear(self) -> None:
        """Cancel and drop every pending timer."""
        for timer in self._queue:
            timer.cancel()
        self._queue.clear()


class RepeatingTask:
    """Callback that reschedules itself after a random delay until stopped.

    Owns at most one pending timer. stop() cancels that timer and sets a
    flag; a firing that was already in flight checks the flag and does
    nothing.

    Example:
        task = RepeatingTask(scheduler, chirp, interval=(1.5, 5.0))
        task.start()
        ...
        task.stop()
    """

    def __init__(
        self,
        scheduler: Scheduler,
        callback: Callable[[], Any],
        interval: tuple[float, float],
        rng: random.Random | None = None,
        name: str = "task",
    ):
        low, high = interval
        if low <= 0 or high < low:
            raise ValueError(f"interval must satisfy 0 < low <= high, got {interval}")

        self._scheduler = scheduler
        self._callback = callback
        self._interval = (float(low), float(high))
        self._rng = rng or random.Random()
        self.name = name

        self._handle: TimerHandle | None = None
        self._stopped = False
        self._started = False
        self._fire_count = 0

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def running(self) -> bool:
        return self._started and not self._stopped

    @property
    def fire_count(self) -> int:
        return self._fire_count

    @property
    def has_pending(self) -> bool:
        return self._handle is not None and not self._handle.cancelled()

    def next_delay(self) -> float:
        low, high = self._interval
        return self._rng.uniform(low, high)

    def start(self, initial_delay: float | None = None) -> None:
        """Schedule the first firing (random delay unless given)."""
        if self._stopped or self._started:
            return
        self._started = True
        delay = self.next_delay() if initial_delay is None else initial_delay
        self._handle = self._scheduler.call_later(delay, self._fire)

    def stop(self) -> None:
        """Stop firing. Safe to call any number of times."""
        self._stopped = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        if self._stopped:
            return

        self._fire_count += 1
        try:
            self._callback()
        except Exception as e:
            logger.warning(f"Repeating task '{self.name}' callback failed: {e}")

        if not self._stopped:
            self._handle = self._scheduler.call_later(self.next_delay(), self._fire)


__all__ = [
    "TimerHandle",
    "Scheduler",
    "AsyncioScheduler",
    "ManualScheduler",
    "RepeatingTask",
]
