"""Cancellable delayed callbacks that pace the simulation.

All progression runs on a single thread: callbacks execute one at a time
from whichever scheduler drives them. ``VirtualScheduler`` advances a
virtual clock explicitly (tests, batch runs); ``LoopScheduler`` hands the
callbacks to an asyncio event loop for real-time pacing.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

Callback = Callable[[], None]


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callback) -> Handle: ...


@dataclass(order=True)
class ScheduledTask:
    """A callback due at a point on the virtual clock."""

    due: float
    seq: int
    callback: Callback = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class VirtualScheduler:
    """Deterministic scheduler driven by an explicit virtual clock.

    Tasks run in (due time, scheduling order). Callbacks may schedule
    further tasks; those run in the same ``advance`` call if they fall
    within its window.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[ScheduledTask] = []
        self._seq = itertools.count()

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        return sum(1 for task in self._queue if not task.cancelled)

    def call_later(self, delay: float, callback: Callback) -> ScheduledTask:
        if delay < 0:
            raise ValueError(f"delay must be non-negative, got {delay}")
        task = ScheduledTask(self._now + delay, next(self._seq), callback)
        heapq.heappush(self._queue, task)
        return task

    def advance(self, duration: float) -> int:
        """Move the clock forward, running every task that falls due.

        Returns:
            Number of callbacks executed.
        """
        if duration < 0:
            raise ValueError(f"duration must be non-negative, got {duration}")
        deadline = self._now + duration
        executed = 0
        while self._queue and self._queue[0].due <= deadline:
            task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self._now = task.due
            task.callback()
            executed += 1
        self._now = deadline
        return executed

    def run_until_idle(self, max_tasks: int = 10_000) -> int:
        """Run tasks in order until none remain."""
        executed = 0
        while self._queue:
            task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            if executed >= max_tasks:
                heapq.heappush(self._queue, task)
                raise RuntimeError(f"Scheduler still busy after {max_tasks} tasks")
            self._now = task.due
            task.callback()
            executed += 1
        return executed

    def clear(self) -> None:
        self._queue.clear()


class LoopScheduler:
    """Adapter that schedules callbacks on an asyncio event loop.

    Args:
        loop: Event loop to use (defaults to the running loop at call time).
        time_unit: Wall-clock seconds per simulation time unit.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        time_unit: float = 1.0,
    ) -> None:
        if time_unit <= 0:
            raise ValueError(f"time_unit must be positive, got {time_unit}")
        self._loop = loop
        self.time_unit = time_unit

    def call_later(self, delay: float, callback: Callback) -> asyncio.TimerHandle:
        if delay < 0:
            raise ValueError(f"delay must be non-negative, got {delay}")
        loop = self._loop if self._loop is not None else asyncio.get_running_loop()
        return loop.call_later(delay * self.time_unit, callback)
