"""Build and own the parameters described by a configuration document."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List

from prefparams.core.time import TimeSource

from .context import CommitContext
from .debounce import DebouncedParameter
from .parameter import ObservableParameter, SettingsParameter
from .schema import ParameterConfig, ParametersConfig, load_config
from .store import PrefsStore

__all__ = ["ParameterRegistry"]

logger = logging.getLogger(__name__)


class ParameterRegistry:
    """Keyed collection of parameters sharing one store.

    The debounce keyword arguments are forwarded to every
    :class:`DebouncedParameter` the registry creates.
    """

    def __init__(
        self,
        store: PrefsStore,
        *,
        time_source: TimeSource | None = None,
        context: CommitContext | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._store = store
        self._time_source = time_source
        self._context = context
        self._loop = loop
        self._entries: Dict[str, ObservableParameter[Any]] = {}

    @classmethod
    def from_file(
        cls, path: str | Path, store: PrefsStore, **kwargs: Any
    ) -> "ParameterRegistry":
        registry = cls(store, **kwargs)
        registry.build(load_config(path))
        return registry

    @property
    def store(self) -> PrefsStore:
        return self._store

    def build(self, config: ParametersConfig) -> "ParameterRegistry":
        for entry in config.parameters:
            self.add(entry)
        logger.debug("Registry built %d parameters", len(config.parameters))
        return self

    def add(self, entry: ParameterConfig) -> ObservableParameter[Any]:
        """Construct the parameter for *entry* and register it under its key."""
        if entry.key in self._entries:
            raise ValueError(f"parameter {entry.key!r} already registered")

        cls = entry.parameter_class
        if entry.default is None:
            param = cls(self._store, entry.key, commit_strategy=entry.commit_strategy)
        else:
            param = cls(
                self._store,
                entry.key,
                entry.default,
                commit_strategy=entry.commit_strategy,
            )

        result: ObservableParameter[Any] = param
        if entry.debounce_ms is not None:
            result = DebouncedParameter(
                param,
                entry.debounce_ms,
                time_source=self._time_source,
                context=self._context,
                loop=self._loop,
            )
        self._entries[entry.key] = result
        return result

    def get(self, key: str) -> ObservableParameter[Any]:
        try:
            return self._entries[key]
        except KeyError:
            raise KeyError(f"Parameter key not registered: {key}") from None

    def __getitem__(self, key: str) -> ObservableParameter[Any]:
        return self.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[ObservableParameter[Any]]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> List[str]:
        return list(self._entries)

    def commit_all(self) -> int:
        """Commit every dirty parameter now. Call on the commit-capable context.

        Returns the number of parameters written.
        """
        written = 0
        for entry in self._entries.values():
            param = entry.parameter if isinstance(entry, DebouncedParameter) else entry
            if isinstance(param, SettingsParameter) and param.commit():
                written += 1
        return written

    def save(self) -> None:
        """Flush the backing store."""
        self._store.save()
