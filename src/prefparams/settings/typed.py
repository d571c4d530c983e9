"""Type-specific settings parameters.

Each class maps one Python type onto the store's typed accessors. Booleans
have no native representation and are stored as the integers 0/1.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Optional, Type

from .parameter import SettingsParameter
from .store import PrefsStore
from .strategy import CommitStrategy

__all__ = [
    "BooleanParameter",
    "IntegerParameter",
    "FloatParameter",
    "StringParameter",
    "PARAMETER_KINDS",
    "parameter_class_for",
]


class BooleanParameter(SettingsParameter[bool]):
    """On/off switch. Stored as int: 1 is True, anything else False.

    ``set_value`` accepts bools and the ints 0/1 only; other values raise
    TypeError so that strings such as ``"false"`` are never stored as True.
    """

    def __init__(
        self,
        store: PrefsStore,
        key: str,
        default: Optional[bool] = False,
        commit_strategy: CommitStrategy | str = CommitStrategy.AUTO_COMMIT,
    ) -> None:
        super().__init__(store, key, default, commit_strategy)

    def _coerce(self, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return value == 1
        raise TypeError(f"{self.key}: expected bool or 0/1, got {value!r}")

    def _read_value(self, default: Optional[bool]) -> Optional[bool]:
        fallback = None if default is None else self.encode(default)
        raw = self.store.get_int(self.key, fallback)
        return None if raw is None else self.decode(raw)

    def _write_value(self, value: bool) -> None:
        self.store.set_int(self.key, self.encode(value))

    @staticmethod
    def encode(value: bool) -> int:
        return 1 if value else 0

    @staticmethod
    def decode(raw: int) -> bool:
        return raw == 1


class IntegerParameter(SettingsParameter[int]):
    """Whole-number setting such as a brightness step or an index."""

    def __init__(
        self,
        store: PrefsStore,
        key: str,
        default: Optional[int] = 0,
        commit_strategy: CommitStrategy | str = CommitStrategy.AUTO_COMMIT,
    ) -> None:
        super().__init__(store, key, default, commit_strategy)

    def _coerce(self, value: Any) -> int:
        return int(value)

    def _read_value(self, default: Optional[int]) -> Optional[int]:
        return self.store.get_int(self.key, default)

    def _write_value(self, value: int) -> None:
        self.store.set_int(self.key, value)


class FloatParameter(SettingsParameter[float]):
    """Continuous setting. Think of it as a slider."""

    def __init__(
        self,
        store: PrefsStore,
        key: str,
        default: Optional[float] = 0.0,
        commit_strategy: CommitStrategy | str = CommitStrategy.AUTO_COMMIT,
    ) -> None:
        super().__init__(store, key, default, commit_strategy)

    def _coerce(self, value: Any) -> float:
        return float(value)

    def _same(self, a: float, b: float) -> bool:
        # NaN counts as equal to NaN
        if math.isnan(a) or math.isnan(b):
            return math.isnan(a) and math.isnan(b)
        return a == b

    def _read_value(self, default: Optional[float]) -> Optional[float]:
        return self.store.get_float(self.key, default)

    def _write_value(self, value: float) -> None:
        self.store.set_float(self.key, value)


class StringParameter(SettingsParameter[str]):
    def __init__(
        self,
        store: PrefsStore,
        key: str,
        default: Optional[str] = "",
        commit_strategy: CommitStrategy | str = CommitStrategy.AUTO_COMMIT,
    ) -> None:
        super().__init__(store, key, default, commit_strategy)

    def _coerce(self, value: Any) -> str:
        return str(value)

    def _read_value(self, default: Optional[str]) -> Optional[str]:
        return self.store.get_string(self.key, default)

    def _write_value(self, value: str) -> None:
        self.store.set_string(self.key, value)


PARAMETER_KINDS: Dict[str, Type[SettingsParameter[Any]]] = {
    "bool": BooleanParameter,
    "int": IntegerParameter,
    "float": FloatParameter,
    "str": StringParameter,
}


def parameter_class_for(kind: str) -> Type[SettingsParameter[Any]]:
    """Return the parameter class for a config kind (bool/int/float/str)."""
    try:
        return PARAMETER_KINDS[kind]
    except KeyError:
        raise ValueError(
            f"unknown parameter kind {kind!r}; expected one of "
            + ", ".join(PARAMETER_KINDS)
        ) from None
