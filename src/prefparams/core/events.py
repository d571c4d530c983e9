"""Synchronous multicast notifications.

Usage example:

    changed = Signal("volume.changed")
    changed.connect(lambda value: print("volume ->", value))
    changed.emit(0.8)

Notes
-----
- Callbacks run on the emitting thread, in registration order.
- The callback list is snapshotted per emit, so callbacks may connect or
  disconnect other callbacks (or themselves) while being dispatched.
- Listener failures are logged and skipped; the remaining callbacks still run.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List

__all__ = ["Signal"]

logger = logging.getLogger(__name__)


class Signal:
    """Ordered registry of callbacks invoked synchronously on :meth:`emit`.

    Parameters
    ----------
    name:
        Label used in log records when a listener fails.
    """

    __slots__ = ("name", "_callbacks")

    def __init__(self, name: str = "signal") -> None:
        self.name = name
        self._callbacks: List[Callable[..., Any]] = []

    def connect(self, callback: Callable[..., Any]) -> None:
        """Register *callback*; registering the same callable twice is a no-op."""
        if not callable(callback):
            raise TypeError(f"{self.name}: callback must be callable")
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def disconnect(self, callback: Callable[..., Any]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def clear(self) -> None:
        self._callbacks.clear()

    def emit(self, *args: Any) -> None:
        """Invoke every connected callback with *args*."""
        for cb in list(self._callbacks):
            try:
                cb(*args)
            except Exception:
                logger.exception("%s listener %r failed", self.name, cb)

    def __len__(self) -> int:
        return len(self._callbacks)

    def __contains__(self, callback: object) -> bool:
        return callback in self._callbacks

    def __repr__(self) -> str:
        return f"Signal({self.name!r}, listeners={len(self._callbacks)})"
