"""Idle factory game package.

Public API:
    from game import IdleSim, FactoryKind, SimTicker
"""
from game.entities import FactoryKind
from game.simulation import IdleSim
from game.ticker import SimTicker

__all__ = ["FactoryKind", "IdleSim", "SimTicker"]
