"""Presentation helpers for front ends: what to list and how to label it."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Tuple

from game.entities import FactoryKind
from game.simulation import IdleSim


@dataclass(frozen=True)
class FactoryRow:
    """One purchasable entry in the factory list.

    ``enabled`` mirrors :meth:`IdleSim.can_afford`; ``owned`` is 0 for kinds
    never bought.
    """

    kind: FactoryKind
    label: str
    color: str
    enabled: bool
    owned: int


def format_amount(value: Decimal) -> str:
    return str(int(value))


def purchase_label(kind: FactoryKind) -> str:
    return f"Purchase a {kind.display_name} for {format_amount(kind.price)}"


def score_text(sim: IdleSim) -> Tuple[str, str]:
    return f"Score: {format_amount(sim.score)}", f"Max: {format_amount(sim.max_score)}"


def build_factory_rows(sim: IdleSim) -> List[FactoryRow]:
    return [
        FactoryRow(
            kind=kind,
            label=purchase_label(kind),
            color=kind.color,
            enabled=sim.can_afford(kind),
            owned=sim.number_owned(kind) or 0,
        )
        for kind in FactoryKind
        if sim.should_show(kind)
    ]
