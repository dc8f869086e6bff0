"""Round engine and phase management."""

from shellgame.game.events import GameEvent, EventType
from shellgame.game.state import GamePhase
from shellgame.game.timing import RoundTiming
from shellgame.game.engine import EngineInvariantError, RoundState, ShuffleEngine

__all__ = [
    "GameEvent",
    "EventType",
    "GamePhase",
    "RoundTiming",
    "EngineInvariantError",
    "RoundState",
    "ShuffleEngine",
]
