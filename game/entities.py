"""Factory kinds for the idle simulation."""
from __future__ import annotations

from decimal import Decimal
from enum import Enum

from config import FACTORIES_FILE, PRICE_BASE, RATE_BASE
from factory_catalog import load_factory_catalog

FACTORY_STYLES = load_factory_catalog(FACTORIES_FILE)


class FactoryKind(Enum):
    """A purchasable producer.

    Members are ordered; price and production rate both derive from the
    position of the member in that order.  Display name and colour come from
    the factory catalog so they can be reskinned without touching the rules.
    """

    FOO = "foo"
    BAR = "bar"
    BAZ = "baz"
    FAB = "fab"
    FIZZ = "fizz"
    BUZZ = "buzz"
    FIZZBUZZ = "fizzbuzz"

    @property
    def ordinal(self) -> int:
        return list(FactoryKind).index(self)

    @property
    def display_name(self) -> str:
        return FACTORY_STYLES[self.value]["display_name"]

    @property
    def color(self) -> str:
        return FACTORY_STYLES[self.value]["color"]

    @property
    def base_rate(self) -> int:
        """Score per second produced by one owned unit."""
        if self.ordinal == 0:
            return 1
        return RATE_BASE ** (self.ordinal - 1)

    @property
    def price(self) -> Decimal:
        return Decimal(PRICE_BASE) ** self.ordinal

    @classmethod
    def first(cls) -> "FactoryKind":
        return next(iter(cls))

    @classmethod
    def from_name(cls, name: str) -> "FactoryKind":
        """Look up a kind by key or display name, case-insensitively.

        Raises ``KeyError`` when nothing matches.
        """
        wanted = name.strip().lower()
        for kind in cls:
            if wanted in (kind.value, kind.display_name.lower()):
                return kind
        raise KeyError(name)
