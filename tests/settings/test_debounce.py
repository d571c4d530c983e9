from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import pytest

from prefparams.core.time import SimTimeSource
from prefparams.settings.context import QueuedCommitContext
from prefparams.settings.debounce import DebouncedParameter, DebounceState
from prefparams.settings.errors import (
    CommitContextError,
    InvalidStrategyError,
    InvalidTimeoutError,
)
from prefparams.settings.store import MemoryPrefsStore
from prefparams.settings.strategy import CommitStrategy
from prefparams.settings.typed import FloatParameter, IntegerParameter

Settle = Callable[[], Awaitable[None]]


def _brightness(store: MemoryPrefsStore) -> IntegerParameter:
    return IntegerParameter(
        store, "brightness", 50, commit_strategy=CommitStrategy.MANUAL_COMMIT
    )


# Construction ----------------------------------------------------------------


def test_rejects_auto_commit_parameter(store: MemoryPrefsStore) -> None:
    p = IntegerParameter(store, "brightness", 50)
    with pytest.raises(InvalidStrategyError):
        DebouncedParameter(p, 300)


@pytest.mark.parametrize("timeout", [0, -1, -300.0, float("nan"), float("inf"), "soon", None])
def test_rejects_invalid_timeout(store: MemoryPrefsStore, timeout: Any) -> None:
    with pytest.raises(InvalidTimeoutError):
        DebouncedParameter(_brightness(store), timeout)


def test_requires_loop_outside_async_code(store: MemoryPrefsStore) -> None:
    with pytest.raises(CommitContextError):
        DebouncedParameter(_brightness(store), 300)


def test_explicit_loop_outside_async_code(store: MemoryPrefsStore) -> None:
    loop = asyncio.new_event_loop()
    try:
        d = DebouncedParameter(_brightness(store), 300, loop=loop)
        assert d.state is DebounceState.IDLE
        assert d.debounce_ms == 300
        assert d.key == "brightness"
    finally:
        loop.close()


# Debouncing with a simulated clock -----------------------------------------------


@pytest.mark.asyncio
async def test_brightness_scenario(
    store: MemoryPrefsStore, sim_time: SimTimeSource, settle: Settle
) -> None:
    d = DebouncedParameter(_brightness(store), 300, time_source=sim_time)
    start = sim_time.monotonic()

    d.set_value(60)
    await settle()
    sim_time.advance(0.1)
    d.set_value(70)
    await settle()

    sim_time.set_time(start + 0.25)
    await settle()
    assert store.get_int("brightness", 50) == 50
    assert d.is_pending
    assert d.is_dirty

    sim_time.set_time(start + 0.5)
    await settle()
    assert store.get_int("brightness", 50) == 70
    assert not d.is_pending
    assert not d.is_dirty


@pytest.mark.asyncio
async def test_burst_collapses_into_single_commit(
    store: MemoryPrefsStore, sim_time: SimTimeSource, settle: Settle
) -> None:
    d = DebouncedParameter(_brightness(store), 300, time_source=sim_time)
    changed: list[int] = []
    committed: list[int] = []
    d.changed.connect(changed.append)
    d.committed.connect(committed.append)

    for v in range(51, 61):
        assert d.set_value(v) is True
        await settle()
        sim_time.advance(0.1)
    last_update = d.last_update

    await settle()
    assert committed == []
    assert changed == list(range(51, 61))

    sim_time.set_time(last_update + 0.35)
    await settle()
    assert committed == [60]
    assert store.get_int("brightness", 0) == 60
    assert sim_time.pending_sleepers() == 0


@pytest.mark.asyncio
async def test_commit_never_fires_before_window(
    store: MemoryPrefsStore, sim_time: SimTimeSource, settle: Settle
) -> None:
    d = DebouncedParameter(_brightness(store), 300, time_source=sim_time)
    d.set_value(55)
    await settle()

    due = sim_time.next_due_monotonic()
    assert due is not None
    assert due >= d.last_update + 0.3 - 1e-9

    sim_time.set_time(d.last_update + 0.299)
    await settle()
    assert not store.has_key("brightness")


@pytest.mark.asyncio
async def test_rearms_after_commit(
    store: MemoryPrefsStore, sim_time: SimTimeSource, settle: Settle
) -> None:
    d = DebouncedParameter(_brightness(store), 300, time_source=sim_time)
    committed: list[int] = []
    d.committed.connect(committed.append)

    d.set_value(60)
    await settle()
    sim_time.advance(0.5)
    await settle()
    assert committed == [60]
    assert d.state is DebounceState.IDLE

    d.set_value(75)
    assert d.state is DebounceState.SCHEDULED
    await settle()
    sim_time.advance(0.5)
    await settle()
    assert committed == [60, 75]
    assert store.get_int("brightness", 0) == 75


@pytest.mark.asyncio
async def test_same_value_does_not_schedule(
    store: MemoryPrefsStore, sim_time: SimTimeSource, settle: Settle
) -> None:
    d = DebouncedParameter(_brightness(store), 300, time_source=sim_time)
    before = d.last_update
    sim_time.advance(1.0)

    assert d.set_value(50) is False
    await settle()

    assert d.state is DebounceState.IDLE
    assert d.last_update == before
    assert sim_time.pending_sleepers() == 0


@pytest.mark.asyncio
async def test_value_property_routes_through_debounce(
    store: MemoryPrefsStore, sim_time: SimTimeSource, settle: Settle
) -> None:
    p = FloatParameter(store, "volume", 0.5, commit_strategy="manual")
    d = DebouncedParameter(p, 100, time_source=sim_time)

    d.value = 0.75
    assert d.value == 0.75
    assert p.value == 0.75
    assert d.is_pending

    await settle()
    sim_time.advance(0.2)
    await settle()
    assert store.get_float("volume", 0.0) == 0.75


@pytest.mark.asyncio
async def test_queued_context_defers_commit_until_drained(
    store: MemoryPrefsStore, sim_time: SimTimeSource, settle: Settle
) -> None:
    ctx = QueuedCommitContext()
    d = DebouncedParameter(_brightness(store), 100, time_source=sim_time, context=ctx)

    d.set_value(5)
    await settle()
    sim_time.advance(0.2)
    await settle()

    assert len(ctx) == 1
    assert not store.has_key("brightness")
    assert ctx.run_pending() == 1
    assert store.get_int("brightness", 0) == 5


@pytest.mark.asyncio
async def test_commit_now_then_worker_is_noop(
    store: MemoryPrefsStore, sim_time: SimTimeSource, settle: Settle
) -> None:
    d = DebouncedParameter(_brightness(store), 300, time_source=sim_time)
    committed: list[int] = []
    d.committed.connect(committed.append)

    d.set_value(80)
    d.commit_now()
    await settle()
    assert store.get_int("brightness", 0) == 80
    assert d.is_pending

    sim_time.advance(1.0)
    await settle()
    assert committed == [80]
    assert not d.is_pending


@pytest.mark.asyncio
async def test_update_just_after_release_gets_full_window(
    store: MemoryPrefsStore, sim_time: SimTimeSource, settle: Settle
) -> None:
    d = DebouncedParameter(_brightness(store), 300, time_source=sim_time)
    commits: list[tuple[float, int]] = []
    d.committed.connect(lambda v: commits.append((sim_time.monotonic(), v)))

    d.set_value(60)
    await settle()
    sim_time.advance(0.5)
    # one loop turn: the worker releases and posts its commit, which has not run yet
    await asyncio.sleep(0)
    d.set_value(61)
    restarted_at = sim_time.monotonic()
    await settle()

    assert commits == []
    assert not store.has_key("brightness")
    assert d.is_pending

    sim_time.advance(0.35)
    await settle()
    assert [v for _, v in commits] == [61]
    assert commits[0][0] >= restarted_at + 0.3
    assert store.get_int("brightness", 0) == 61


@pytest.mark.asyncio
async def test_to_debounced_wraps_parameter(
    store: MemoryPrefsStore, sim_time: SimTimeSource, settle: Settle
) -> None:
    p = _brightness(store)
    d = p.to_debounced(300, time_source=sim_time)

    assert isinstance(d, DebouncedParameter)
    assert d.parameter is p
    assert d.debounce_ms == 300

    d.set_value(90)
    await settle()
    sim_time.advance(0.5)
    await settle()
    assert store.get_int("brightness", 0) == 90


def test_to_debounced_rejects_auto_commit(store: MemoryPrefsStore) -> None:
    with pytest.raises(InvalidStrategyError):
        IntegerParameter(store, "brightness", 50).to_debounced(300)


# Real clock -------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_brightness_scenario_real_clock(store: MemoryPrefsStore) -> None:
    loop = asyncio.get_running_loop()
    d = DebouncedParameter(_brightness(store), 300)
    t0 = loop.time()

    d.set_value(60)
    await asyncio.sleep(0.1)
    d.set_value(70)

    await asyncio.sleep(max(0.0, t0 + 0.25 - loop.time()))
    assert store.get_int("brightness", 50) == 50

    await asyncio.sleep(max(0.0, t0 + 0.5 - loop.time()))
    assert store.get_int("brightness", 50) == 70


@pytest.mark.asyncio
async def test_wait_idle(store: MemoryPrefsStore, settle: Settle) -> None:
    d = DebouncedParameter(_brightness(store), 20)
    await d.wait_idle()  # nothing scheduled yet

    d.set_value(61)
    await d.wait_idle()
    await settle()

    assert store.get_int("brightness", 0) == 61


@pytest.mark.asyncio
async def test_wait_idle_covers_worker_started_from_thread(
    store: MemoryPrefsStore, settle: Settle
) -> None:
    d = DebouncedParameter(_brightness(store), 200)

    await asyncio.to_thread(d.set_value, 42)
    assert d.is_pending

    await d.wait_idle()
    assert not d.is_pending
    await settle()
    assert store.get_int("brightness", 0) == 42


@pytest.mark.asyncio
async def test_updates_from_another_thread_commit_once(store: MemoryPrefsStore) -> None:
    d = DebouncedParameter(_brightness(store), 50)
    committed: list[int] = []
    done = asyncio.Event()

    def on_commit(value: int) -> None:
        committed.append(value)
        done.set()

    d.committed.connect(on_commit)

    def burst() -> None:
        for v in (1, 2, 3):
            d.set_value(v)

    await asyncio.to_thread(burst)
    await asyncio.wait_for(done.wait(), timeout=2.0)
    await asyncio.sleep(0.15)

    assert committed == [3]
    assert store.get_int("brightness", 0) == 3
    assert not d.is_pending
