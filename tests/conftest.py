from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Awaitable, Callable

import pytest
import yaml

from prefparams.core.time import SimTimeSource
from prefparams.settings.store import MemoryPrefsStore


@pytest.fixture
def store() -> MemoryPrefsStore:
    return MemoryPrefsStore()


@pytest.fixture
def sim_time() -> SimTimeSource:
    return SimTimeSource(start=100.0)


@pytest.fixture
def settle() -> Callable[[], Awaitable[None]]:
    """Let woken tasks and posted callbacks run to completion."""

    async def _settle(rounds: int = 5) -> None:
        for _ in range(rounds):
            await asyncio.sleep(0)

    return _settle


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[Any], Path]:
    def _write(doc: Any) -> Path:
        path = tmp_path / "parameters.yml"
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(doc, f)
        return path

    return _write
