"""Commit strategies for settings parameters."""

from __future__ import annotations

from enum import Enum

from .errors import UnsupportedCommitStrategyError

__all__ = ["CommitStrategy"]


class CommitStrategy(str, Enum):
    """When a parameter writes its value to the backing store.

    AUTO_COMMIT writes as soon as the value changes; best when changes are
    not intense (not every frame). MANUAL_COMMIT writes only on an explicit
    ``commit()``, or through a :class:`DebouncedParameter` wrapper.
    """

    AUTO_COMMIT = "auto"
    MANUAL_COMMIT = "manual"

    @classmethod
    def parse(cls, value: object) -> "CommitStrategy":
        """Return the member for *value* (a member or its string value)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise UnsupportedCommitStrategyError(
            f"unsupported commit strategy {value!r}; expected one of "
            + ", ".join(m.value for m in cls)
        )
