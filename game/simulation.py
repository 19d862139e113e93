"""IdleSim: score accumulation, factory ownership and visibility rules.

The simulation has no timer of its own.  Something else calls :meth:`IdleSim.tick`
(see :mod:`game.ticker`) and the elapsed time is read from an injectable
millisecond clock, which keeps the class deterministic under test.
"""
from __future__ import annotations

import logging
import time
from decimal import Context, Decimal
from typing import Callable, Dict, List, Optional

from config import (
    CLICK_VALUE,
    EVENT_LOG_LIMIT,
    SCORE_PRECISION,
    SHOW_THRESHOLD_MULTIPLIER,
    STARTING_SCORE,
)
from game.entities import FactoryKind

logger = logging.getLogger(__name__)

SCORE_CONTEXT = Context(prec=SCORE_PRECISION)
MS_PER_SECOND = Decimal(1000)

Listener = Callable[["IdleSim"], None]


def monotonic_ms() -> int:
    return time.monotonic_ns() // 1_000_000


def to_decimal(value: int | float | Decimal) -> Decimal:
    """Convert a score amount, rejecting NaN and infinities with ``ValueError``."""
    # floats go through repr so 0.1 becomes Decimal("0.1"), not its binary expansion
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        result = Decimal(repr(value))
    else:
        result = Decimal(value)
    if not result.is_finite():
        raise ValueError(f"score amount must be finite, got {value!r}")
    return result


class IdleSim:
    """In-memory idle game state.

    Every mutating call (:meth:`tick`, :meth:`add_score`, :meth:`purchase`,
    :meth:`reset`) notifies the current subscribers once the change is
    visible.  All calls are expected on a single thread; no locking is done.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None) -> None:
        self._clock: Callable[[], int] = clock or monotonic_ms
        self.score: Decimal = Decimal(STARTING_SCORE)
        self.max_score: Decimal = self.score
        self.owned_factories: Dict[FactoryKind, int] = {}
        self.last_tick_time: int = self._clock()
        self.event_log: List[str] = []
        self._listeners: List[Listener] = []
        self._log_event("Game started")

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that unregisters it."""
        if listener not in self._listeners:
            self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def dispose(self) -> None:
        self._listeners.clear()

    def _notify(self) -> None:
        for listener in tuple(self._listeners):
            listener(self)

    def _log_event(self, message: str) -> None:
        self.event_log.append(message)
        self.event_log = self.event_log[-EVENT_LOG_LIMIT:]

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def sync_clock(self) -> None:
        """Restart elapsed-time accounting from now without crediting any score."""
        self.last_tick_time = self._clock()

    def tick(self) -> Decimal:
        """Credit production for the time since the previous tick.

        Returns the amount added to the score.
        """
        now = self._clock()
        elapsed = max(0, now - self.last_tick_time)
        self.last_tick_time = now
        return self._produce(elapsed)

    def advance(self, elapsed_ms: int) -> Decimal:
        """Credit exactly ``elapsed_ms`` of production, ignoring the clock.

        The tick baseline moves to now, so the clock time before this call is
        not credited by the next :meth:`tick`.
        """
        self.last_tick_time = self._clock()
        return self._produce(max(0, elapsed_ms))

    def _produce(self, elapsed: int) -> Decimal:
        if not self.owned_factories:
            return Decimal(0)

        gained = Decimal(0)
        for kind, count in self.owned_factories.items():
            produced = SCORE_CONTEXT.divide(Decimal(elapsed * kind.base_rate * count), MS_PER_SECOND)
            gained = SCORE_CONTEXT.add(gained, produced)
        self._apply_score(gained)
        self._notify()
        return gained

    def add_score(self, amount: int | float | Decimal) -> None:
        self._apply_score(to_decimal(amount))
        self._notify()

    def click(self) -> None:
        self.add_score(CLICK_VALUE)

    def purchase(self, factory: FactoryKind) -> None:
        """Buy one ``factory``.

        The price is deducted whether or not the player can afford it; use
        :meth:`try_purchase` for the gated version.
        """
        self.score = SCORE_CONTEXT.subtract(self.score, factory.price)
        self.owned_factories[factory] = self.owned_factories.get(factory, 0) + 1
        self._log_event(f"Purchased {factory.display_name} (-{factory.price})")
        logger.debug("Purchased %s, now own %d", factory.value, self.owned_factories[factory])
        if self.score < 0:
            logger.warning("Score went negative after buying %s: %s", factory.value, self.score)
        self._notify()

    def try_purchase(self, factory: FactoryKind) -> bool:
        if not self.can_afford(factory):
            self._log_event(f"{factory.display_name} purchase failed (need {factory.price})")
            return False
        self.purchase(factory)
        return True

    def reset(self) -> None:
        self.score = Decimal(0)
        self.max_score = Decimal(0)
        self.owned_factories.clear()
        self._log_event("Game reset")
        logger.info("Simulation reset")
        self._notify()

    def _apply_score(self, amount: Decimal) -> None:
        self.score = SCORE_CONTEXT.add(self.score, amount)
        if self.score > self.max_score:
            self.max_score = self.score

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def can_afford(self, factory: FactoryKind) -> bool:
        return self.score >= factory.price

    def owns_any(self, factory: FactoryKind) -> bool:
        return self.owned_factories.get(factory, 0) > 0

    def number_owned(self, factory: FactoryKind) -> Optional[int]:
        return self.owned_factories.get(factory)

    def should_show(self, factory: FactoryKind) -> bool:
        return (
            self.owns_any(factory)
            or factory.price < SCORE_CONTEXT.multiply(self.max_score, Decimal(SHOW_THRESHOLD_MULTIPLIER))
            or factory is FactoryKind.first()
        )

    @property
    def production_rate(self) -> int:
        """Score per second from everything currently owned."""
        return sum(kind.base_rate * count for kind, count in self.owned_factories.items())
