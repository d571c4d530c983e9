"""Debounced persistence for manually committed parameters.

:class:`DebouncedParameter` lets a burst of rapid updates (a slider dragged
every frame) collapse into one deferred write. Every accepted update moves
the deadline to ``last_update + window``; a single worker task sleeps until
the deadline stops moving and then hands ``commit()`` to the commit-capable
context.

State machine::

    IDLE --(set_value claims)--> SCHEDULED --(deadline reached)--> IDLE

The claim and the release both happen under the same lock that guards the
last-update timestamp, so at most one worker exists per coordinator and an
update racing the release either extends the current worker or starts a
fresh one after it.
"""

from __future__ import annotations

import asyncio
import logging
import math
import threading
from enum import Enum
from typing import Generic, Optional, TypeVar

from prefparams.core.events import Signal
from prefparams.core.time import RealTimeSource, TimeSource

from .context import CommitContext, LoopCommitContext
from .errors import CommitContextError, InvalidStrategyError, InvalidTimeoutError
from .parameter import SettingsParameter
from .strategy import CommitStrategy

__all__ = ["DebouncedParameter", "DebounceState"]

logger = logging.getLogger(__name__)

V = TypeVar("V")


class DebounceState(Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"


class DebouncedParameter(Generic[V]):
    """Writes a parameter only after *debounce_ms* without further updates.

    Parameters
    ----------
    parameter:
        Wrapped parameter; must use ``CommitStrategy.MANUAL_COMMIT``.
    debounce_ms:
        Quiet period in milliseconds (> 0) required before committing.
    time_source:
        Clock used for timestamps and sleeping. Defaults to the real clock.
    context:
        Where the final ``commit()`` runs. Defaults to the worker loop.
    loop:
        Event loop hosting the worker task. Defaults to the loop running
        when the coordinator is constructed.

    Raises
    ------
    InvalidStrategyError
        If *parameter* auto-commits.
    InvalidTimeoutError
        If *debounce_ms* is not a positive number.
    CommitContextError
        If no loop was given and none is running.
    """

    def __init__(
        self,
        parameter: SettingsParameter[V],
        debounce_ms: float,
        *,
        time_source: TimeSource | None = None,
        context: CommitContext | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if parameter is None:
            raise TypeError("parameter must not be None")
        if parameter.commit_strategy is not CommitStrategy.MANUAL_COMMIT:
            raise InvalidStrategyError(
                f"{parameter.key}: commit strategy must be "
                f"{CommitStrategy.MANUAL_COMMIT.value!r} to debounce, "
                f"got {parameter.commit_strategy.value!r}"
            )
        try:
            ms = float(debounce_ms)
        except (TypeError, ValueError):
            raise InvalidTimeoutError(
                f"debounce timeout must be a number, got {debounce_ms!r}"
            ) from None
        if not math.isfinite(ms) or ms <= 0:
            raise InvalidTimeoutError(
                f"debounce timeout must be greater than zero, got {debounce_ms!r}"
            )

        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                raise CommitContextError(
                    "no running event loop; pass loop= to host the debounce worker"
                ) from None

        self._parameter = parameter
        self._debounce_ms = ms
        self._window_s = ms / 1000.0
        self._time: TimeSource = time_source or RealTimeSource()
        self._loop = loop
        self._context: CommitContext = context or LoopCommitContext(loop)

        self._lock = threading.Lock()
        self._state = DebounceState.IDLE
        self._last_update: float = self._time.monotonic()
        self._task: asyncio.Task[None] | None = None

    # Mirrored parameter surface ---------------------------------------------
    @property
    def parameter(self) -> SettingsParameter[V]:
        return self._parameter

    @property
    def key(self) -> str:
        return self._parameter.key

    @property
    def value(self) -> Optional[V]:
        return self._parameter.value

    @value.setter
    def value(self, new_value: Optional[V]) -> None:
        self.set_value(new_value)

    @property
    def is_dirty(self) -> bool:
        return self._parameter.is_dirty

    @property
    def changed(self) -> Signal:
        """Fires on every accepted update, before anything is written."""
        return self._parameter.changed

    @property
    def committed(self) -> Signal:
        """Fires once per debounced write."""
        return self._parameter.committed

    @property
    def debounce_ms(self) -> float:
        return self._debounce_ms

    @property
    def state(self) -> DebounceState:
        with self._lock:
            return self._state

    @property
    def is_pending(self) -> bool:
        return self.state is DebounceState.SCHEDULED

    @property
    def last_update(self) -> float:
        with self._lock:
            return self._last_update

    # Operations -------------------------------------------------------------
    def set_value(self, new_value: Optional[V]) -> bool:
        """Update the wrapped value and (re)arm the deferred commit.

        Safe to call from any thread. Returns False for a no-op update.
        """
        if self._parameter.check_if_same(new_value):
            return False

        self._parameter.set_value(new_value)
        with self._lock:
            self._last_update = self._time.monotonic()
            claimed = self._state is DebounceState.IDLE
            if claimed:
                self._state = DebounceState.SCHEDULED

        if claimed:
            self._start_worker()
        return True

    def commit_now(self) -> None:
        """Hand an immediate commit to the context, e.g. when a dialog closes.

        A worker still sleeping is left alone; its later commit finds the
        parameter clean and does nothing.
        """
        self._context.post(self._parameter.commit)

    async def wait_idle(self) -> None:
        """Wait until no deferred commit is scheduled. Call on the worker loop.

        Covers a worker whose start is still queued by an off-loop
        ``set_value``. The commit posted to the context is not awaited: with
        the default loop context it runs on the next loop iteration, with a
        queued context only when the owner drains it.
        """
        while True:
            task = self._task
            if task is not None and not task.done():
                await task
            elif self.is_pending:
                await asyncio.sleep(0)
            else:
                return

    # Internals --------------------------------------------------------------
    def _start_worker(self) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._spawn()
        else:
            self._loop.call_soon_threadsafe(self._spawn)

    def _spawn(self) -> None:
        self._task = self._loop.create_task(
            self._run(), name=f"debounce:{self._parameter.key}"
        )
        logger.debug("Debounce scheduled for %s (%.0f ms)", self.key, self._debounce_ms)

    async def _run(self) -> None:
        try:
            while True:
                with self._lock:
                    now = self._time.monotonic()
                    deadline = self._last_update + self._window_s
                    if now >= deadline:
                        self._state = DebounceState.IDLE
                        break
                await self._time.sleep(deadline - now)
        except asyncio.CancelledError:
            with self._lock:
                self._state = DebounceState.IDLE
            raise

        logger.debug("Debounce elapsed for %s; posting commit", self.key)
        self._context.post(self._commit_if_quiet)

    def _commit_if_quiet(self) -> None:
        # A burst that started after the worker released may still be inside
        # its window; its own worker commits once that window elapses.
        with self._lock:
            now = self._time.monotonic()
            quiet = now >= self._last_update + self._window_s
        if not quiet:
            logger.debug("Skipping commit for %s; updated since deadline", self.key)
            return
        self._parameter.commit()

    def __repr__(self) -> str:
        return (
            f"DebouncedParameter(key={self.key!r}, debounce_ms={self._debounce_ms:g}, "
            f"state={self.state.value})"
        )
