from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from config import STARTING_SCORE
from game import FactoryKind, IdleSim, SimTicker


class FakeClock:
    def __init__(self, now_ms: int = 0) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms


def _sim_with_foo(clock: FakeClock) -> IdleSim:
    sim = IdleSim(clock=clock)
    sim.purchase(FactoryKind.FOO)
    return sim


def test_start_and_stop_runs_ticks():
    clock = FakeClock()
    sim = _sim_with_foo(clock)
    notifications = []
    sim.subscribe(notifications.append)
    ticker = SimTicker(sim, interval_ms=1)

    async def scenario():
        await ticker.start()
        assert ticker.is_running
        await asyncio.sleep(0.05)
        await ticker.stop()

    asyncio.run(scenario())

    assert ticker.tick_number > 0
    assert len(notifications) == ticker.tick_number
    assert not ticker.is_running


def test_start_and_stop_are_idempotent():
    ticker = SimTicker(IdleSim(clock=FakeClock()), interval_ms=1)

    async def scenario():
        await ticker.stop()
        await ticker.start()
        await ticker.start()
        await asyncio.sleep(0.01)
        await ticker.stop()
        await ticker.stop()

    asyncio.run(scenario())
    assert not ticker.is_running


def test_time_before_start_is_not_credited():
    clock = FakeClock()
    sim = _sim_with_foo(clock)
    clock.now_ms = 60_000
    ticker = SimTicker(sim, interval_ms=1)

    async def scenario():
        await ticker.start()
        await asyncio.sleep(0.02)
        await ticker.stop()

    asyncio.run(scenario())
    assert sim.score == Decimal(STARTING_SCORE - 1)


def test_ticks_credit_clock_progress():
    clock = FakeClock()
    sim = _sim_with_foo(clock)
    ticker = SimTicker(sim, interval_ms=1)

    async def scenario():
        await ticker.start()
        await asyncio.sleep(0.01)
        clock.now_ms += 2_000
        await asyncio.sleep(0.02)
        await ticker.stop()

    asyncio.run(scenario())
    assert sim.score == Decimal(STARTING_SCORE - 1 + 2)


def test_pause_step_and_resume():
    clock = FakeClock()
    sim = _sim_with_foo(clock)
    ticker = SimTicker(sim, interval_ms=250)

    async def scenario():
        await ticker.start()
        ticker.pause()
        assert ticker.is_paused
        assert not ticker.is_running
        paused_at = ticker.tick_number
        await asyncio.sleep(0.02)
        assert ticker.tick_number == paused_at

        # an hour held: a step still credits one interval only
        clock.now_ms += 3_600_000
        await ticker.step()
        assert ticker.tick_number == paused_at + 1
        assert sim.score == Decimal(STARTING_SCORE - 1) + Decimal("0.25")

        clock.now_ms += 1_000
        await ticker.step()
        assert sim.score == Decimal(STARTING_SCORE - 1) + Decimal("0.5")

        clock.now_ms += 30_000
        ticker.resume()
        steps_before = ticker.tick_number
        await ticker.step()
        assert ticker.tick_number >= steps_before
        await asyncio.sleep(0.02)
        await ticker.stop()

    asyncio.run(scenario())
    assert sim.score == Decimal(STARTING_SCORE - 1) + Decimal("0.5")


def test_held_time_is_not_credited_on_resume():
    clock = FakeClock()
    sim = _sim_with_foo(clock)
    ticker = SimTicker(sim, interval_ms=1)

    async def scenario():
        await ticker.start()
        await asyncio.sleep(0.01)
        ticker.pause()
        clock.now_ms += 3_600_000
        ticker.resume()
        await asyncio.sleep(0.02)
        await ticker.stop()

    asyncio.run(scenario())
    assert sim.score == Decimal(STARTING_SCORE - 1)


def test_async_context_manager_binds_lifetime():
    sim = IdleSim(clock=FakeClock())

    async def scenario():
        async with SimTicker(sim, interval_ms=1) as ticker:
            assert ticker.is_running
            assert ticker.sim is sim
            await asyncio.sleep(0.01)
        return ticker

    ticker = asyncio.run(scenario())
    assert not ticker.is_running
    assert ticker.tick_number > 0


class _ExplodingSim(IdleSim):
    def tick(self):
        raise RuntimeError("boom")


def test_tick_errors_propagate():
    ticker = SimTicker(_ExplodingSim(clock=FakeClock()), interval_ms=1)

    async def scenario():
        await ticker.start()
        await asyncio.sleep(0.02)
        await ticker.stop()

    with pytest.raises(RuntimeError, match="boom"):
        asyncio.run(scenario())


def test_ticker_restarts_after_listener_failure():
    clock = FakeClock()
    sim = _sim_with_foo(clock)
    failures = []

    def fail_once(_sim):
        if not failures:
            failures.append(True)
            raise RuntimeError("listener broke")

    sim.subscribe(fail_once)
    ticker = SimTicker(sim, interval_ms=1)

    async def scenario():
        await ticker.start()
        await asyncio.sleep(0.02)
        assert not ticker.is_running
        with pytest.raises(RuntimeError, match="listener broke"):
            await ticker.stop()

        ticks_at_failure = ticker.tick_number
        await ticker.start()
        assert ticker.is_running
        clock.now_ms += 1_000
        await asyncio.sleep(0.02)
        await ticker.stop()
        return ticks_at_failure

    ticks_at_failure = asyncio.run(scenario())
    assert ticker.tick_number > ticks_at_failure
    assert sim.score == Decimal(STARTING_SCORE - 1 + 1)


def test_start_replaces_a_dead_loop_without_stop():
    ticker = SimTicker(_ExplodingSim(clock=FakeClock()), interval_ms=1)

    async def scenario():
        await ticker.start()
        await asyncio.sleep(0.02)
        assert not ticker.is_running
        ticker.sim.tick = lambda: None
        await ticker.start()
        await asyncio.sleep(0.02)
        assert ticker.is_running
        await ticker.stop()

    asyncio.run(scenario())
    assert ticker.tick_number > 1
