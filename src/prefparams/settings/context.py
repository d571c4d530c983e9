"""Commit-capable execution contexts.

The preferences store may only be touched from one designated context (the
UI/main thread in an interactive app). Deferred commits are handed to that
context through :class:`CommitContext.post` instead of running in place.

Two mechanisms are provided:

- :class:`LoopCommitContext` for asyncio applications: the loop's thread is
  the commit-capable context and callbacks are scheduled with
  ``call_soon_threadsafe``.
- :class:`QueuedCommitContext` for frame-driven main loops: callbacks are
  queued and executed when the owner calls :meth:`run_pending`, e.g. once
  per frame.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import deque
from typing import Any, Callable, Deque, Protocol

__all__ = ["CommitContext", "LoopCommitContext", "QueuedCommitContext"]

logger = logging.getLogger(__name__)


class CommitContext(Protocol):
    def post(self, callback: Callable[[], Any]) -> None:
        """Run *callback* later on the commit-capable context. Thread-safe."""
        ...


class LoopCommitContext:
    """Hands callbacks to an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def post(self, callback: Callable[[], Any]) -> None:
        self._loop.call_soon_threadsafe(callback)


class QueuedCommitContext:
    """FIFO command queue drained by the commit-capable context."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: Deque[Callable[[], Any]] = deque()

    def post(self, callback: Callable[[], Any]) -> None:
        with self._lock:
            self._pending.append(callback)

    def run_pending(self) -> int:
        """Execute callbacks queued so far, in posting order.

        Callbacks posted while draining run on the next call. Exceptions
        propagate to the caller; callbacks after the failing one stay queued.

        Returns
        -------
        int
            Number of callbacks executed.
        """
        with self._lock:
            batch = list(self._pending)
            self._pending.clear()
        ran = 0
        try:
            for cb in batch:
                ran += 1
                cb()
        finally:
            if ran < len(batch):
                with self._lock:
                    self._pending.extendleft(reversed(batch[ran:]))
        if ran:
            logger.debug("Ran %d queued commit callbacks", ran)
        return ran

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)
