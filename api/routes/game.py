"""Game API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Header

from api.routes.stats import record_result, require_session, save_score, score_response
from api.schemas import GuessRequest, GuessResponse, RoundStateResponse, SessionResponse
from api.session import create_session, extract_session_id, get_session_store
from config import config
from shellgame.game import GamePhase, ShuffleEngine
from shellgame.scoring import ScoreTracker

logger = logging.getLogger(__name__)

router = APIRouter()

# Live engines keyed by session; pending round timers cannot be persisted
_engines: dict[str, ShuffleEngine] = {}

PHASE_MESSAGES = {
    GamePhase.IDLE: "Ready when you are!",
    GamePhase.PLACING: "Here's the coin!",
    GamePhase.SHUFFLING: "Watch carefully...",
    GamePhase.GUESSING: "Where is the coin?",
}

PHASE_INSTRUCTIONS = {
    GamePhase.IDLE: "Start a round, then follow the cup hiding the coin.",
    GamePhase.PLACING: "The coin is being placed under a cup...",
    GamePhase.SHUFFLING: "Follow the cups carefully as they move around!",
    GamePhase.GUESSING: "Click on the cup you think has the coin!",
    GamePhase.REVEALING: "Game over! Starting a new round...",
}


def get_engine(session_id: str) -> ShuffleEngine:
    """Get or create the engine for a session."""
    if session_id not in _engines:
        _engines[session_id] = ShuffleEngine(timing=config.game.timing())
    return _engines[session_id]


def discard_engine(session_id: str) -> None:
    """Drop a session's engine, cancelling any pending round timers."""
    engine = _engines.pop(session_id, None)
    if engine is not None:
        engine.cancel()


def discard_all_engines() -> None:
    """Tear down every live engine."""
    for session_id in list(_engines):
        discard_engine(session_id)


async def prune_expired_sessions() -> int:
    """Drop stored sessions and live engines whose session has expired."""
    store = await get_session_store()
    removed = await store.cleanup_expired()

    expired = [sid for sid in _engines if extract_session_id(sid) is None]
    for session_id in expired:
        discard_engine(session_id)

    if removed or expired:
        logger.info("Pruned %d expired sessions and %d engines", removed, len(expired))
    return len(expired)


def phase_message(engine: ShuffleEngine) -> str:
    """Headline for the current phase."""
    if engine.phase == GamePhase.REVEALING and engine.round is not None:
        if engine.round.won:
            return "Correct! You found the coin!"
        return f"Wrong! The coin was under cup {engine.round.coin_slot + 1}."
    return PHASE_MESSAGES[engine.phase]


def round_state_response(engine: ShuffleEngine) -> RoundStateResponse:
    """Convert engine state to response."""
    return RoundStateResponse(
        **engine.snapshot(),
        message=phase_message(engine),
        instructions=PHASE_INSTRUCTIONS[engine.phase],
    )


@router.post("/new")
async def new_game(
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> SessionResponse:
    """Create a new game session, or reset an existing one."""
    await prune_expired_sessions()
    if session_id is None:
        session_id = await create_session()
    else:
        require_session(session_id)
        discard_engine(session_id)

    await save_score(session_id, ScoreTracker())
    return SessionResponse(session_id=session_id)


@router.get("/state")
async def get_state(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> RoundStateResponse:
    """Get current round state."""
    engine = get_engine(require_session(session_id))
    return round_state_response(engine)


@router.post("/start")
async def start_round(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> RoundStateResponse:
    """Place the coin and begin the shuffle sequence."""
    engine = get_engine(require_session(session_id))
    if engine.start_round() is None:
        raise HTTPException(
            status_code=409,
            detail=f"Round already in progress ({engine.phase})",
        )
    return round_state_response(engine)


@router.post("/guess")
async def guess(
    request: GuessRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GuessResponse:
    """Pick a cup."""
    engine = get_engine(require_session(session_id))

    won = engine.guess(request.slot)
    if won is None:
        raise HTTPException(status_code=409, detail=f"Cannot guess during {engine.phase}")

    tracker = await record_result(session_id, won)
    return GuessResponse(
        won=won,
        state=round_state_response(engine),
        score=score_response(tracker),
    )


@router.delete("/round")
async def abort_round(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> RoundStateResponse:
    """Abandon the round in progress, if any."""
    engine = get_engine(require_session(session_id))
    if engine.cancel():
        logger.info("Round abandoned by client")
    return round_state_response(engine)
