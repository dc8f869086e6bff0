"""Score API endpoints."""

import time
from typing import Annotated

from fastapi import APIRouter, Header, HTTPException

from api.schemas import ScoreResponse
from api.session import extract_session_id, get_session_store
from shellgame.scoring import ScoreTracker

router = APIRouter()

# Session data keys
SESSION_KEY_SCORE = "score"
SESSION_KEY_LAST_ACTIVITY = "last_activity"


def require_session(session_id: str) -> str:
    """Reject session tokens that were not signed by this server."""
    if extract_session_id(session_id) is None:
        raise HTTPException(status_code=401, detail="Invalid or expired session")
    return session_id


async def load_score(session_id: str) -> ScoreTracker:
    """Load the score tracker from the session store."""
    store = await get_session_store()
    session_data = await store.get(session_id)
    if session_data and SESSION_KEY_SCORE in session_data:
        return ScoreTracker.from_dict(session_data[SESSION_KEY_SCORE])
    return ScoreTracker()


async def save_score(session_id: str, tracker: ScoreTracker) -> None:
    """Save the score tracker to the session store."""
    store = await get_session_store()
    session_data = await store.get(session_id) or {}
    session_data[SESSION_KEY_SCORE] = tracker.to_dict()
    session_data[SESSION_KEY_LAST_ACTIVITY] = int(time.time())
    await store.set(session_id, session_data)


async def record_result(session_id: str, won: bool) -> ScoreTracker:
    """Add one round outcome to the session's score."""
    tracker = await load_score(session_id)
    tracker.record(won)
    await save_score(session_id, tracker)
    return tracker


def score_response(tracker: ScoreTracker) -> ScoreResponse:
    """Convert a ScoreTracker to ScoreResponse."""
    return ScoreResponse(
        wins=tracker.wins,
        games_played=tracker.games_played,
        losses=tracker.losses,
        current_streak=tracker.current_streak,
        best_streak=tracker.best_streak,
        win_percentage=tracker.win_percentage,
        streak_rating=tracker.streak_rating,
        win_rate_rating=tracker.win_rate_rating,
    )


@router.get("/score")
async def get_score(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> ScoreResponse:
    """Get the session's cumulative score."""
    tracker = await load_score(require_session(session_id))
    return score_response(tracker)


@router.post("/score/reset")
async def reset_score(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> ScoreResponse:
    """Zero the session's score."""
    tracker = ScoreTracker()
    await save_score(require_session(session_id), tracker)
    return score_response(tracker)
