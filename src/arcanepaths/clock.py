"""Scheduling abstraction used by round engines."""

from __future__ import annotations

import asyncio
import heapq
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

Callback = Callable[[], None]


class Cancelable(Protocol):
    """Handle returned for a scheduled callback."""

    def cancel(self) -> None: ...


class GameClock(Protocol):
    """Elapsed-time queries plus delayed callbacks, in seconds."""

    def now(self) -> float: ...

    def schedule_after(self, delay: float, callback: Callback) -> Cancelable: ...


@dataclass(eq=False)
class ScheduledCall:
    """Pending callback owned by a ManualClock."""

    due: float
    callback: Callback
    cancelled: bool = False
    fired: bool = field(default=False, init=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """Clock advanced explicitly by the host loop or by tests.

    Callbacks run in due order while ``advance`` walks time forward, and
    callbacks scheduled during ``advance`` fire within the same call when
    they fall due before the target time.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[tuple[float, int, ScheduledCall]] = []
        self._sequence = 0

    def now(self) -> float:
        return self._now

    def schedule_after(self, delay: float, callback: Callback) -> ScheduledCall:
        call = ScheduledCall(due=self._now + max(0.0, delay), callback=callback)
        self._sequence += 1
        heapq.heappush(self._queue, (call.due, self._sequence, call))
        return call

    def pending(self) -> int:
        """Return the number of callbacks still waiting to fire."""
        return sum(1 for _, _, call in self._queue if not call.cancelled)

    def advance(self, seconds: float) -> int:
        """Move time forward and fire due callbacks; return how many fired."""
        if seconds < 0:
            raise ValueError("Cannot advance a clock backwards.")
        target = self._now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            self._now = max(self._now, due)
            call.fired = True
            call.callback()
            fired += 1
        self._now = target
        return fired

    def run_until_idle(self, max_seconds: float = 600.0) -> int:
        """Fire callbacks in order until none remain or ``max_seconds`` pass."""
        deadline = self._now + max_seconds
        fired = 0
        while True:
            live = [entry for entry in self._queue if not entry[2].cancelled]
            if not live:
                break
            next_due = min(entry[0] for entry in live)
            if next_due > deadline:
                break
            fired += self.advance(max(0.0, next_due - self._now))
        return fired


class AsyncioClock:
    """Clock backed by a running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def schedule_after(self, delay: float, callback: Callback) -> asyncio.TimerHandle:
        return self.loop.call_later(max(0.0, delay), callback)
