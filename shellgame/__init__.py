"""Core shell game engine - 100% UI-agnostic."""

from shellgame.cups import CUP_COUNT, SLOT_NAMES, Cup, CupTable
from shellgame.scoring import ScoreTracker

__all__ = [
    "CUP_COUNT",
    "SLOT_NAMES",
    "Cup",
    "CupTable",
    "ScoreTracker",
]
