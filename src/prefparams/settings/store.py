"""Preferences store backends.

A preferences store is a flat ``key -> int | float | str`` mapping with
typed accessors. Typed getters return the caller's default when the key is
absent or holds a value of a different type, so an int written under a key
is never read back as a float or string.

Stores are only safe to write from the commit-capable context; the in-memory
lock keeps concurrent reads (for example a parameter constructed on another
thread) consistent but does not order writes across threads.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Protocol, TypeVar, Union

import msgpack

__all__ = [
    "PrefsStore",
    "MemoryPrefsStore",
    "FilePrefsStore",
    "Primitive",
    "prefs_path",
    "ensure_home",
]

logger = logging.getLogger(__name__)

Primitive = Union[int, float, str]
_D = TypeVar("_D")

_MSGPACK_SUFFIXES = {".msgpack", ".mpk"}


class PrefsStore(Protocol):
    """Backing store consumed by settings parameters."""

    def get_int(self, key: str, default: _D) -> int | _D:
        ...

    def get_float(self, key: str, default: _D) -> float | _D:
        ...

    def get_string(self, key: str, default: _D) -> str | _D:
        ...

    def set_int(self, key: str, value: int) -> None:
        ...

    def set_float(self, key: str, value: float) -> None:
        ...

    def set_string(self, key: str, value: str) -> None:
        ...

    def has_key(self, key: str) -> bool:
        ...

    def delete_key(self, key: str) -> None:
        ...

    def delete_all(self) -> None:
        ...

    def save(self) -> None:
        ...


def _is_primitive(value: object) -> bool:
    # bool is an int subclass but is never stored directly
    return type(value) in (int, float, str)


class MemoryPrefsStore:
    """Dict-backed preferences store."""

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._lock = threading.RLock()
        self._data: Dict[str, Primitive] = {}
        if data:
            self._replace(data)

    # Typed getters ---------------------------------------------------------
    def get_int(self, key: str, default: _D) -> int | _D:
        return self._get(key, int, default)

    def get_float(self, key: str, default: _D) -> float | _D:
        return self._get(key, float, default)

    def get_string(self, key: str, default: _D) -> str | _D:
        return self._get(key, str, default)

    # Typed setters ---------------------------------------------------------
    def set_int(self, key: str, value: int) -> None:
        self._put(key, int(value))

    def set_float(self, key: str, value: float) -> None:
        self._put(key, float(value))

    def set_string(self, key: str, value: str) -> None:
        self._put(key, str(value))

    # Key management --------------------------------------------------------
    def has_key(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    def delete_key(self, key: str) -> None:
        with self._lock:
            removed = self._data.pop(key, None) is not None
        if removed:
            self._changed()

    def delete_all(self) -> None:
        with self._lock:
            self._data.clear()
        self._changed()

    def snapshot(self) -> Dict[str, Primitive]:
        """Return a copy of the stored mapping."""
        with self._lock:
            return dict(self._data)

    def save(self) -> None:
        """Nothing to flush for a purely in-memory store."""

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    # Internals -------------------------------------------------------------
    def _get(self, key: str, kind: type, default: Any) -> Any:
        with self._lock:
            value = self._data.get(key)
        if value is not None and type(value) is kind:
            return value
        return default

    def _put(self, key: str, value: Primitive) -> None:
        with self._lock:
            self._data[key] = value
        self._changed()

    def _replace(self, data: Mapping[str, Any]) -> None:
        cleaned: Dict[str, Primitive] = {}
        for k, v in data.items():
            if isinstance(k, str) and _is_primitive(v):
                cleaned[k] = v
            else:
                logger.warning("Ignoring unsupported preference entry %r=%r", k, v)
        with self._lock:
            self._data = cleaned

    def _changed(self) -> None:
        """Hook invoked after every mutation."""


def prefs_path() -> Path:
    """Return the default path of the preferences file."""
    home = os.environ.get("PREFPARAMS_HOME")
    if home:
        base = Path(home).expanduser()
    else:
        base = Path(os.path.expanduser("~/.prefparams"))
    return base / "prefs.json"


def ensure_home(path: Path | None = None) -> Path:
    """Ensure the directory holding *path* (default prefs file) exists."""
    parent = (path or prefs_path()).parent
    parent.mkdir(parents=True, exist_ok=True)
    return parent


class FilePrefsStore(MemoryPrefsStore):
    """In-memory store persisted to a JSON or msgpack file.

    The format follows the file suffix: ``.msgpack``/``.mpk`` use msgpack,
    anything else JSON. A missing or unreadable file yields an empty store.

    Parameters
    ----------
    path:
        File location; defaults to :func:`prefs_path`.
    auto_save:
        When true every mutation is flushed to disk immediately. Otherwise
        callers decide when to :meth:`save`.
    """

    def __init__(self, path: str | Path | None = None, *, auto_save: bool = False) -> None:
        super().__init__()
        self._path = Path(path) if path is not None else prefs_path()
        self._auto_save = auto_save
        self.load()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def uses_msgpack(self) -> bool:
        return self._path.suffix.lower() in _MSGPACK_SUFFIXES

    def load(self) -> None:
        """(Re)load the file, falling back to an empty store on error."""
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            logger.debug("No preferences file at %s", self._path)
            self._replace({})
            return
        except OSError as e:
            logger.warning("Failed to read preferences %s: %s", self._path, e)
            self._replace({})
            return
        try:
            if self.uses_msgpack:
                data = msgpack.unpackb(raw, raw=False)
            else:
                data = json.loads(raw.decode("utf-8"))
        except Exception as e:
            logger.warning("Corrupt preferences file %s: %s", self._path, e)
            data = {}
        if not isinstance(data, dict):
            logger.warning("Preferences file %s is not a mapping", self._path)
            data = {}
        self._replace(data)

    def save(self) -> None:
        """Atomically persist the current mapping to disk."""
        ensure_home(self._path)
        data = self.snapshot()
        tmp = self._path.with_name(self._path.name + ".tmp")
        if self.uses_msgpack:
            tmp.write_bytes(msgpack.packb(data, use_bin_type=True))
        else:
            tmp.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp, self._path)
        logger.debug("Saved %d preferences to %s", len(data), self._path)

    def _changed(self) -> None:
        if self._auto_save:
            self.save()
