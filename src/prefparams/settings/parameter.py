"""Typed, observable settings parameter backed by a preferences store."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Generic, Optional, Protocol, TypeVar

from prefparams.core.events import Signal

from .errors import InvalidKeyError
from .store import PrefsStore
from .strategy import CommitStrategy

if TYPE_CHECKING:
    from .debounce import DebouncedParameter

__all__ = ["SettingsParameter", "ObservableParameter", "validate_key"]

logger = logging.getLogger(__name__)

V = TypeVar("V")


def validate_key(key: object) -> str:
    """Return *key* trimmed, raising InvalidKeyError if empty or not a string."""
    if not isinstance(key, str) or not key.strip():
        raise InvalidKeyError(f"settings key must be a non-empty string, got {key!r}")
    return key.strip()


class ObservableParameter(Protocol[V]):
    """What UI bindings rely on, shared by plain and debounced parameters."""

    @property
    def key(self) -> str:
        ...

    @property
    def value(self) -> Optional[V]:
        ...

    @property
    def changed(self) -> Signal:
        ...

    @property
    def committed(self) -> Signal:
        ...

    def set_value(self, value: Optional[V]) -> bool:
        ...


class SettingsParameter(ABC, Generic[V]):
    """A single named, typed, persisted settings value.

    The in-memory value is read from *store* at construction, falling back
    to *default* when the key has no stored value. ``set_value`` updates
    memory and fires :attr:`changed`; ``commit`` writes to the store and
    fires :attr:`committed`. With ``CommitStrategy.AUTO_COMMIT`` every
    accepted ``set_value`` commits before returning.

    Subclasses supply the type-specific ``_coerce``, ``_read_value`` and
    ``_write_value`` adapters. A ``None`` value means "absent": committing it
    deletes the key from the store.

    Parameters
    ----------
    store:
        Backing preferences store.
    key:
        Store key; surrounding whitespace is trimmed.
    default:
        Value used when the store holds nothing for *key*.
    commit_strategy:
        Fixed for the lifetime of the parameter.
    """

    def __init__(
        self,
        store: PrefsStore,
        key: str,
        default: Optional[V] = None,
        commit_strategy: CommitStrategy | str = CommitStrategy.AUTO_COMMIT,
    ) -> None:
        # Validate everything before touching the store
        self._key: str = validate_key(key)
        self._commit_strategy: CommitStrategy = CommitStrategy.parse(commit_strategy)
        self._store = store
        self._default: Optional[V] = None if default is None else self._coerce(default)
        self._dirty: bool = False
        self._changed = Signal(f"{self._key}.changed")
        self._committed = Signal(f"{self._key}.committed")
        self._value: Optional[V] = self._load()

    # Properties -------------------------------------------------------------
    @property
    def key(self) -> str:
        return self._key

    @property
    def value(self) -> Optional[V]:
        return self._value

    @value.setter
    def value(self, new_value: Optional[V]) -> None:
        self.set_value(new_value)

    @property
    def default(self) -> Optional[V]:
        return self._default

    @property
    def is_dirty(self) -> bool:
        """True while the in-memory value differs from the last committed one."""
        return self._dirty

    @property
    def commit_strategy(self) -> CommitStrategy:
        return self._commit_strategy

    @property
    def changed(self) -> Signal:
        """Fires with the new value on every accepted ``set_value``."""
        return self._changed

    @property
    def committed(self) -> Signal:
        """Fires with the written value on every successful ``commit``."""
        return self._committed

    @property
    def store(self) -> PrefsStore:
        return self._store

    # Operations -------------------------------------------------------------
    def check_if_same(self, candidate: Optional[V]) -> bool:
        """Return True if setting *candidate* would be a no-op."""
        if candidate is None or self._value is None:
            return candidate is None and self._value is None
        return self._same(self._coerce(candidate), self._value)

    def set_value(self, new_value: Optional[V]) -> bool:
        """Update the in-memory value.

        Returns False (and fires nothing) when *new_value* equals the current
        value; True when the value was accepted.
        """
        if self.check_if_same(new_value):
            return False

        self._value = None if new_value is None else self._coerce(new_value)
        self._dirty = True
        self._changed.emit(self._value)

        if self._commit_strategy is CommitStrategy.AUTO_COMMIT:
            self.commit()
        return True

    def commit(self) -> bool:
        """Write the value to the store if dirty; return True if a write happened."""
        if not self._dirty:
            return False

        if self._value is None:
            self._store.delete_key(self._key)
        else:
            self._write_value(self._value)
        self._dirty = False
        logger.debug("Committed %s=%r", self._key, self._value)
        self._committed.emit(self._value)
        return True

    def reload(self) -> bool:
        """Re-read the stored value, discarding uncommitted changes.

        Fires :attr:`changed` when the in-memory value differed from the
        stored one. Returns True in that case.
        """
        stored = self._load()
        self._dirty = False
        if self.check_if_same(stored):
            return False
        self._value = stored
        self._changed.emit(self._value)
        return True

    def reset(self) -> bool:
        """Set the value back to the default (committing per strategy)."""
        return self.set_value(self._default)

    def to_debounced(
        self, debounce_ms: float, **kwargs: Any
    ) -> "DebouncedParameter[V]":
        """Wrap this parameter in a :class:`DebouncedParameter`.

        Keyword arguments (``time_source``, ``context``, ``loop``) are passed
        through. The parameter must use ``CommitStrategy.MANUAL_COMMIT``.
        """
        from .debounce import DebouncedParameter

        return DebouncedParameter(self, debounce_ms, **kwargs)

    # Adapters ---------------------------------------------------------------
    def _load(self) -> Optional[V]:
        if self._default is None and not self._store.has_key(self._key):
            return None
        return self._read_value(self._default)

    def _same(self, a: V, b: V) -> bool:
        return bool(a == b)

    @abstractmethod
    def _coerce(self, value: Any) -> V:
        """Convert *value* (never None) to the parameter type."""

    @abstractmethod
    def _read_value(self, default: Optional[V]) -> Optional[V]:
        """Read the stored value for this key, or return *default*."""

    @abstractmethod
    def _write_value(self, value: V) -> None:
        """Write *value* (never None) to the store."""

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(key={self._key!r}, value={self._value!r}, "
            f"dirty={self._dirty}, strategy={self._commit_strategy.value})"
        )
