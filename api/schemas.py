"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Literal

from shellgame.cups import CUP_COUNT


# Game schemas
class GuessRequest(BaseModel):
    """Request to pick a cup."""

    slot: int = Field(..., ge=0, lt=CUP_COUNT, description="Slot index, 0 = left")


class CupResponse(BaseModel):
    """Cup representation."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    slot: int


class RoundStateResponse(BaseModel):
    """Current round state."""

    phase: Literal["IDLE", "PLACING", "SHUFFLING", "GUESSING", "REVEALING"]
    cups: list[CupResponse]
    coin_visible: bool
    coin_slot: int | None = None
    shuffle_step: int | None = None
    total_shuffles: int = 0
    selected_slot: int | None = None
    won: bool | None = None
    message: str
    instructions: str


# Stats schemas
class ScoreResponse(BaseModel):
    """Cumulative score for the session."""

    wins: int
    games_played: int
    losses: int
    current_streak: int
    best_streak: int
    win_percentage: int
    streak_rating: str
    win_rate_rating: str


class GuessResponse(BaseModel):
    """Outcome of a guess."""

    won: bool
    state: RoundStateResponse
    score: ScoreResponse


class SessionResponse(BaseModel):
    """A freshly created session."""

    session_id: str
