from __future__ import annotations

import argparse
import asyncio
import logging
import queue
import threading
from typing import Callable, List, Optional, Tuple

from config import TICK_INTERVAL_MS
from game import FactoryKind, IdleSim, SimTicker
from game.view import build_factory_rows, format_amount, score_text

HELP_TEXT = (
    "commands: click | buy <factory> | reset | status | help | quit\n"
    "factories: " + ", ".join(kind.display_name for kind in FactoryKind)
)


class SimulatedClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start_ms: int = 0) -> None:
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


def cheapest_affordable(sim: IdleSim) -> Optional[FactoryKind]:
    # rows come in ascending price order
    for row in build_factory_rows(sim):
        if row.enabled:
            return row.kind
    return None


def run_headless(ticks: int, dt_ms: int, auto_buy: bool) -> IdleSim:
    clock = SimulatedClock()
    sim = IdleSim(clock=clock)
    purchases = 0

    for _ in range(ticks):
        clock.advance(dt_ms)
        sim.tick()
        if auto_buy:
            kind = cheapest_affordable(sim)
            if kind is not None and sim.try_purchase(kind):
                purchases += 1

    owned = ",".join(f"{kind.value}={count}" for kind, count in sim.owned_factories.items())
    print(
        f"headless_done t={clock.now_ms / 1000:.1f}s "
        f"score={format_amount(sim.score)} max={format_amount(sim.max_score)} "
        f"rate={sim.production_rate}/s purchases={purchases} owned[{owned}]"
    )
    return sim


def render_status(sim: IdleSim) -> str:
    lines = list(score_text(sim))
    lines.append(f"Rate: {sim.production_rate}/s")
    for row in build_factory_rows(sim):
        marker = "x" if row.enabled else " "
        lines.append(f"  [{marker}] {row.label}  owned={row.owned}")
    if sim.event_log:
        lines.append(f"Last: {sim.event_log[-1]}")
    return "\n".join(lines)


def apply_command(sim: IdleSim, line: str) -> Tuple[bool, str]:
    """Run one console command against ``sim``.

    Returns ``(keep_running, message)``.
    """
    parts = line.split()
    if not parts:
        return True, ""
    command, args = parts[0].lower(), parts[1:]

    if command in ("quit", "exit", "q"):
        return False, "bye"
    if command == "click":
        sim.click()
        return True, score_text(sim)[0]
    if command == "buy":
        if not args:
            return True, "usage: buy <factory>"
        try:
            kind = FactoryKind.from_name(" ".join(args))
        except KeyError:
            return True, f"unknown factory: {' '.join(args)}"
        if not sim.should_show(kind):
            return True, f"{kind.display_name} is not available yet"
        sim.try_purchase(kind)
        return True, sim.event_log[-1]
    if command == "reset":
        sim.reset()
        return True, render_status(sim)
    if command == "status":
        return True, render_status(sim)
    if command == "help":
        return True, HELP_TEXT
    return True, f"unknown command: {command} (try 'help')"


class ConsoleReader:
    """Reads console lines on a daemon thread, one line per request.

    A read still blocked when the event loop shuts down (Ctrl-C) dies with
    the process instead of holding up executor shutdown.
    """

    def __init__(self, read_line: Callable[[str], str] = input) -> None:
        self._read_line = read_line
        self._requests: queue.SimpleQueue = queue.SimpleQueue()
        self._thread: Optional[threading.Thread] = None

    async def readline(self, prompt: str) -> str:
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        if self._thread is None:
            self._thread = threading.Thread(target=self._pump, name="console-reader", daemon=True)
            self._thread.start()
        self._requests.put((loop, future, prompt))
        return await future

    def _pump(self) -> None:
        while True:
            loop, future, prompt = self._requests.get()
            try:
                line = self._read_line(prompt)
            except Exception as exc:
                deliver, value = _fail_future, exc
            else:
                deliver, value = _resolve_future, line
            try:
                loop.call_soon_threadsafe(deliver, future, value)
            except RuntimeError:
                # loop already closed
                return


def _resolve_future(future: asyncio.Future, line: str) -> None:
    if not future.done():
        future.set_result(line)


def _fail_future(future: asyncio.Future, exc: Exception) -> None:
    if not future.done():
        future.set_exception(exc)


async def run_interactive(
    sim: IdleSim,
    interval_ms: int = TICK_INTERVAL_MS,
    read_line: Callable[[str], str] = input,
) -> None:
    reader = ConsoleReader(read_line)
    async with SimTicker(sim, interval_ms):
        print(render_status(sim))
        while True:
            try:
                line = await reader.readline("> ")
            except EOFError:
                break
            # commands are applied back on the loop thread, alongside tick()
            keep_running, message = apply_command(sim, line)
            if message:
                print(message)
            if not keep_running:
                break


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Idle factory game")
    parser.add_argument("--headless", action="store_true", help="run a batch simulation and print a summary")
    parser.add_argument("--ticks", type=int, default=600, help="headless ticks to run")
    parser.add_argument("--dt-ms", type=int, default=TICK_INTERVAL_MS, help="headless milliseconds per tick")
    parser.add_argument("--auto-buy", action="store_true", help="headless: buy the cheapest affordable factory each tick")
    parser.add_argument("--interval-ms", type=int, default=TICK_INTERVAL_MS, help="interactive tick interval")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging verbosity",
    )
    args = parser.parse_args(argv)

    if args.ticks < 0:
        parser.error("--ticks must be >= 0")
    if args.dt_ms < 0:
        parser.error("--dt-ms must be >= 0")
    if args.interval_ms <= 0:
        parser.error("--interval-ms must be > 0")

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.headless:
        run_headless(args.ticks, args.dt_ms, args.auto_buy)
        return

    sim = IdleSim()
    try:
        asyncio.run(run_interactive(sim, args.interval_ms))
    except KeyboardInterrupt:
        print()
    finally:
        sim.dispose()


if __name__ == "__main__":
    main()
