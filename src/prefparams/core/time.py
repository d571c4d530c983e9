"""Clock sources for debounce timing.

The debounce coordinator never calls ``time.monotonic`` or ``asyncio.sleep``
directly; it goes through a :class:`TimeSource` so the same code runs
against the real clock in an application and a simulated clock in tests.

Real-time usage:
    ts = RealTimeSource()
    start = ts.monotonic()
    await ts.sleep(0.3)
    elapsed = ts.monotonic() - start  # ~0.3 seconds

Simulated usage:
    ts = SimTimeSource(start=0.0)
    task = asyncio.create_task(ts.sleep(0.3))
    ts.advance(0.3)  # wakes the sleeper
    await task
"""

from __future__ import annotations

import asyncio
import heapq
import time
from typing import Protocol

__all__ = [
    "TimeSource",
    "RealTimeSource",
    "SimTimeSource",
]


class TimeSource(Protocol):
    """Protocol for a monotonic clock with an async sleep."""

    def monotonic(self) -> float:
        """Return monotonic time in seconds."""
        ...

    async def sleep(self, seconds: float) -> None:
        """Suspend the calling task for *seconds*."""
        ...


class RealTimeSource:
    """System clock backed by time.monotonic() and asyncio.sleep()."""

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class SimTimeSource:
    """Deterministic simulated clock.

    - ``advance(dt)`` steps time forward and resolves due sleepers
    - ``set_time(t)`` jumps to an absolute time (forward only)
    - ``sleep(sec)`` parks the caller until simulated time reaches its due time

    Sleepers are resolved on the thread calling ``advance``/``set_time``,
    which must be the thread running the event loop the sleepers belong to.
    Resolved tasks resume on the next loop iteration, so tests typically
    follow ``advance`` with a few ``await asyncio.sleep(0)``.
    """

    def __init__(self, *, start: float = 0.0) -> None:
        self._now: float = float(start)
        # (due_time, seq, future) min-heap
        self._sleepers: list[tuple[float, int, asyncio.Future[None]]] = []
        self._seq: int = 0

    def monotonic(self) -> float:
        return self._now

    def set_time(self, t: float) -> None:
        """Set absolute simulated time.

        Raises:
            ValueError: If *t* is earlier than the current simulated time
        """
        if t < self._now:
            raise ValueError(f"Cannot set time backwards: {t} < {self._now}")
        self._now = float(t)
        self._wake_due_sleepers()

    def advance(self, dt: float) -> None:
        """Advance simulated time by *dt* seconds (must be >= 0)."""
        if dt < 0:
            raise ValueError(f"Cannot advance time backwards: dt={dt}")
        self._now += dt
        self._wake_due_sleepers()

    async def sleep(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError(f"Sleep duration must be non-negative: {seconds}")
        if seconds == 0:
            await asyncio.sleep(0)
            return

        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._seq += 1
        heapq.heappush(self._sleepers, (self._now + seconds, self._seq, future))
        await future

    def pending_sleepers(self) -> int:
        """Number of sleepers not yet resolved or cancelled."""
        return sum(1 for _, _, fut in self._sleepers if not fut.done())

    def next_due_monotonic(self) -> float | None:
        """Due time of the earliest pending sleeper, or None."""
        while self._sleepers and self._sleepers[0][2].done():
            heapq.heappop(self._sleepers)
        if not self._sleepers:
            return None
        return self._sleepers[0][0]

    def _wake_due_sleepers(self) -> None:
        while self._sleepers and self._sleepers[0][0] <= self._now:
            _, _, future = heapq.heappop(self._sleepers)
            # Cancelled sleepers are already done
            if not future.done():
                future.set_result(None)
