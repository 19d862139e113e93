"""
Periodic driver for IdleSim.
Calls tick() on a fixed interval from an asyncio task.
"""

import asyncio
import logging
import time

from config import TICK_INTERVAL_MS, TICKER_STOP_TIMEOUT
from game.simulation import IdleSim

logger = logging.getLogger(__name__)


class SimTicker:
    """
    Owns the tick loop for one simulation.
    The loop lives exactly as long as the owner keeps it started; use it as an
    async context manager to tie it to a scope.
    """

    def __init__(self, sim: IdleSim, interval_ms: int = TICK_INTERVAL_MS) -> None:
        self._sim = sim
        self._interval_ms = interval_ms

        self._tick_number = 0
        self._is_running = False
        self._is_paused = False
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def sim(self) -> IdleSim:
        return self._sim

    @property
    def tick_number(self) -> int:
        """Ticks applied to the simulation so far, manual steps included."""
        return self._tick_number

    @property
    def is_running(self) -> bool:
        """True while the loop task is alive and not paused."""
        return self._is_running and not self._is_paused

    @property
    def is_paused(self) -> bool:
        return self._is_paused

    async def start(self) -> None:
        """Launch the loop task; a live loop is left alone."""
        if self._task is not None and not self._task.done():
            return

        self._is_running = True
        self._stop_event = asyncio.Event()
        # time before start is not credited
        self._sim.sync_clock()
        self._task = asyncio.create_task(self._run_loop())
        self._task.add_done_callback(self._on_loop_done)
        logger.info(f"Ticker up, one tick every {self._interval_ms}ms")

    async def stop(self) -> None:
        """
        Signal the loop and wait for it to finish.
        An error that killed the loop is re-raised here, after teardown.
        """
        if self._task is None:
            return

        self._is_running = False
        self._stop_event.set()

        try:
            await asyncio.wait_for(self._task, timeout=TICKER_STOP_TIMEOUT)
        except asyncio.TimeoutError:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        finally:
            self._task = None
            logger.info(f"Ticker down after {self._tick_number} ticks")

    def pause(self) -> None:
        """Hold the loop; time from here on is not credited."""
        self._is_paused = True
        self._sim.sync_clock()
        logger.info(f"Ticker held at tick {self._tick_number}")

    def resume(self) -> None:
        self._is_paused = False
        self._sim.sync_clock()
        logger.info(f"Ticker released at tick {self._tick_number}")

    async def step(self) -> None:
        """While held, advance the simulation by exactly one interval."""
        if not self._is_paused:
            return

        self._tick_number += 1
        self._sim.advance(self._interval_ms)
        logger.debug(f"Stepped to tick {self._tick_number}")

    async def __aenter__(self) -> "SimTicker":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    def _on_loop_done(self, task: asyncio.Task) -> None:
        self._is_running = False
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Tick loop died at tick {self._tick_number}: {task.exception()!r}")

    async def _run_loop(self) -> None:
        # errors from tick() or a listener end the task; stop() re-raises them
        while self._is_running:
            tick_start = time.perf_counter()

            if not self._is_paused:
                self._process_tick()

            tick_duration = (time.perf_counter() - tick_start) * 1000
            sleep_time = max(0, (self._interval_ms - tick_duration) / 1000)

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=sleep_time)
                break
            except asyncio.TimeoutError:
                pass

    def _process_tick(self) -> None:
        tick_start = time.perf_counter()
        self._tick_number += 1
        self._sim.tick()

        tick_duration = (time.perf_counter() - tick_start) * 1000
        if tick_duration > self._interval_ms:
            logger.warning(
                f"Tick {self._tick_number} ran {tick_duration:.1f}ms, "
                f"over the {self._interval_ms}ms interval"
            )
