"""Round phase enumeration."""

from enum import Enum, auto


class GamePhase(Enum):
    """
    Round state machine phases.

    Flow: IDLE → PLACING → SHUFFLING → GUESSING → REVEALING → IDLE
    """

    # No round in progress
    IDLE = auto()

    # Coin shown under its cup
    PLACING = auto()

    # Coin hidden, cups swapping
    SHUFFLING = auto()

    # Waiting for the player's pick
    GUESSING = auto()

    # Coin shown again, outcome decided
    REVEALING = auto()

    def __str__(self) -> str:
        return self.name.title()


# Valid phase transitions
VALID_TRANSITIONS: dict[GamePhase, list[GamePhase]] = {
    GamePhase.IDLE: [GamePhase.PLACING],
    GamePhase.PLACING: [GamePhase.SHUFFLING, GamePhase.IDLE],
    GamePhase.SHUFFLING: [GamePhase.GUESSING, GamePhase.IDLE],
    GamePhase.GUESSING: [GamePhase.REVEALING, GamePhase.IDLE],
    GamePhase.REVEALING: [GamePhase.IDLE],  # round discarded
}


def is_valid_transition(from_phase: GamePhase, to_phase: GamePhase) -> bool:
    """
    Check if a phase transition is valid.

    Args:
        from_phase: Current phase
        to_phase: Desired phase

    Returns:
        True if the transition is allowed
    """
    return to_phase in VALID_TRANSITIONS.get(from_phase, [])
