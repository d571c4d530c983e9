"""Pydantic models for declarative parameter configuration.

A configuration document lists the parameters an application owns:

.. code-block:: yaml

    parameters:
      - key: volume
        kind: float
        default: 0.5
      - key: brightness
        kind: int
        default: 50
        commit_strategy: manual
        debounce_ms: 300
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .strategy import CommitStrategy
from .typed import parameter_class_for

__all__ = ["ParameterKind", "ParameterConfig", "ParametersConfig", "load_config"]

ParameterKind = Literal["bool", "int", "float", "str"]

_COERCE = {"bool": bool, "int": int, "float": float, "str": str}


class ParameterConfig(BaseModel):
    """One settings parameter.

    Parameters
    ----------
    key: Store key (trimmed, non-empty).
    kind: Value type; one of ``bool``, ``int``, ``float`` or ``str``.
    default: Value used when the store has nothing for *key*. When omitted
        the type's zero value is used.
    commit_strategy: ``auto`` (write on every change) or ``manual``.
    debounce_ms: When set, the parameter is wrapped in a debounce
        coordinator with this quiet period. Requires ``manual``.
    """

    model_config = ConfigDict(extra="forbid")

    key: str
    kind: ParameterKind
    default: Optional[Union[bool, int, float, str]] = Field(default=None)
    commit_strategy: CommitStrategy = Field(default=CommitStrategy.AUTO_COMMIT)
    debounce_ms: Optional[float] = Field(default=None)

    @field_validator("key")
    @classmethod
    def _chk_key(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("key must not be empty")
        return v

    @field_validator("commit_strategy", mode="before")
    @classmethod
    def _chk_strategy(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("debounce_ms")
    @classmethod
    def _chk_debounce(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not v > 0:
            raise ValueError("debounce_ms must be > 0")
        return v

    @model_validator(mode="after")
    def _chk_default_and_debounce(self) -> "ParameterConfig":
        if self.default is not None:
            if self.kind != "str" and isinstance(self.default, str):
                raise ValueError(f"default for kind {self.kind!r} must not be a string")
            try:
                self.default = _COERCE[self.kind](self.default)
            except (TypeError, ValueError):
                raise ValueError(
                    f"default {self.default!r} is not a valid {self.kind}"
                ) from None
        if (
            self.debounce_ms is not None
            and self.commit_strategy is not CommitStrategy.MANUAL_COMMIT
        ):
            raise ValueError("debounce_ms requires commit_strategy 'manual'")
        return self

    @property
    def parameter_class(self) -> type:
        return parameter_class_for(self.kind)


class ParametersConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    parameters: List[ParameterConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def _chk_unique(self) -> "ParametersConfig":
        seen: set[str] = set()
        for p in self.parameters:
            if p.key in seen:
                raise ValueError(f"duplicate parameter key {p.key!r}")
            seen.add(p.key)
        return self


def load_config(path: str | Path) -> ParametersConfig:
    """Parse and validate a YAML parameter configuration file.

    Raises ``pydantic.ValidationError`` when the document is invalid and
    ``OSError`` when the file cannot be read.
    """
    with Path(path).open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return ParametersConfig.model_validate(raw)
