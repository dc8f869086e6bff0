"""WebSocket connection management with game engine integration."""

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from api.routes.game import discard_engine, get_engine, round_state_response
from api.routes.stats import record_result, save_score, score_response
from api.session import extract_session_id
from shellgame.cups import CUP_COUNT
from shellgame.game import ShuffleEngine
from shellgame.game.events import EventHandler, EventType, GameEvent
from shellgame.scoring import ScoreTracker

logger = logging.getLogger(__name__)

router = APIRouter()

# Queued item: the event plus the state it was emitted against
QueuedEvent = tuple[GameEvent, dict[str, Any]]


class ConnectionManager:
    """Manage WebSocket connections and their engine subscriptions."""

    def __init__(self) -> None:
        self._connections: dict[str, list[WebSocket]] = {}
        self._event_queues: dict[WebSocket, asyncio.Queue[QueuedEvent]] = {}
        self._handlers: dict[WebSocket, EventHandler] = {}
        self._engines: dict[WebSocket, ShuffleEngine] = {}

    async def connect(self, websocket: WebSocket, session_id: str) -> ShuffleEngine:
        """Accept a connection and subscribe it to the session's engine."""
        await websocket.accept()
        self._connections.setdefault(session_id, []).append(websocket)
        queue: asyncio.Queue[QueuedEvent] = asyncio.Queue()
        self._event_queues[websocket] = queue

        engine = get_engine(session_id)

        def handler(event: GameEvent) -> None:
            # Snapshot now, so the client sees the state this event produced
            queue.put_nowait((event, round_state_response(engine).model_dump()))

        engine.subscribe(handler)
        self._handlers[websocket] = handler
        self._engines[websocket] = engine
        return engine

    def disconnect(self, websocket: WebSocket, session_id: str) -> None:
        """Remove a connection; the last one out tears down the engine."""
        self._event_queues.pop(websocket, None)
        handler = self._handlers.pop(websocket, None)
        engine = self._engines.pop(websocket, None)
        if engine is not None and handler is not None:
            engine.events.unsubscribe(handler)

        sockets = self._connections.get(session_id, [])
        if websocket in sockets:
            sockets.remove(websocket)
        if sockets:
            return

        self._connections.pop(session_id, None)
        discard_engine(session_id)

    async def next_event(self, websocket: WebSocket) -> QueuedEvent:
        """Wait for the next engine event for a connection."""
        return await self._event_queues[websocket].get()

    async def send_message(self, websocket: WebSocket, message: dict[str, Any]) -> None:
        """Send a message to a connection that is still registered."""
        if websocket in self._event_queues:
            await websocket.send_json(message)

    def connections_for(self, session_id: str) -> int:
        """Return number of open connections for a session."""
        return len(self._connections.get(session_id, []))

    @property
    def active_connections(self) -> int:
        """Return number of active connections."""
        return sum(len(sockets) for sockets in self._connections.values())


# Global connection manager
manager = ConnectionManager()


def _event_to_message(event: GameEvent, state: dict[str, Any]) -> dict[str, Any]:
    """Convert a game event to a WebSocket message."""
    message_type = "round_ended" if event.event_type == EventType.ROUND_ENDED else "event"
    return {
        "type": message_type,
        "event_type": event.event_type.name,
        "data": event.data,
        "state": state,
    }


async def _handle_guess(
    websocket: WebSocket,
    session_id: str,
    engine: ShuffleEngine,
    message: dict[str, Any],
) -> None:
    slot = message.get("slot")
    if isinstance(slot, bool) or not isinstance(slot, int) or not 0 <= slot < CUP_COUNT:
        await manager.send_message(websocket, {
            "type": "error",
            "message": f"Slot must be an integer between 0 and {CUP_COUNT - 1}",
        })
        return

    won = engine.guess(slot)
    if won is None:
        await manager.send_message(websocket, {
            "type": "error",
            "message": f"Cannot guess during {engine.phase}",
        })
        return

    tracker = await record_result(session_id, won)
    await manager.send_message(websocket, {
        "type": "round_result",
        "won": won,
        "score": score_response(tracker).model_dump(),
    })


@router.websocket("/game/{session_id}")
async def game_websocket(websocket: WebSocket, session_id: str) -> None:
    """
    WebSocket endpoint for real-time round updates.

    Messages from client:
    - {"type": "start_round"}
    - {"type": "guess", "slot": 0|1|2}
    - {"type": "get_state"}
    - {"type": "reset_stats"}

    Messages to client:
    - {"type": "state_update", "state": {...}}
    - {"type": "event", "event_type": "...", "data": {...}, "state": {...}}
    - {"type": "round_result", "won": bool, "score": {...}}
    - {"type": "round_ended", "event_type": "ROUND_ENDED", "data": {...}, "state": {...}}
    - {"type": "stats_update", "score": {...}}
    - {"type": "error", "message": "..."}
    """
    if extract_session_id(session_id) is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    engine = await manager.connect(websocket, session_id)

    await manager.send_message(websocket, {
        "type": "state_update",
        "state": round_state_response(engine).model_dump(),
    })

    async def process_events() -> None:
        """Forward engine events to the client."""
        while True:
            event, state = await manager.next_event(websocket)
            try:
                await manager.send_message(websocket, _event_to_message(event, state))
            except WebSocketDisconnect:
                return

    event_task = asyncio.create_task(process_events())

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await manager.send_message(websocket, {
                    "type": "error",
                    "message": "Messages must be JSON objects",
                })
                continue

            msg_type = message.get("type") if isinstance(message, dict) else None

            if msg_type == "get_state":
                await manager.send_message(websocket, {
                    "type": "state_update",
                    "state": round_state_response(engine).model_dump(),
                })

            elif msg_type == "start_round":
                if engine.start_round() is None:
                    await manager.send_message(websocket, {
                        "type": "error",
                        "message": f"Round already in progress ({engine.phase})",
                    })

            elif msg_type == "guess":
                await _handle_guess(websocket, session_id, engine, message)

            elif msg_type == "reset_stats":
                tracker = ScoreTracker()
                await save_score(session_id, tracker)
                await manager.send_message(websocket, {
                    "type": "stats_update",
                    "score": score_response(tracker).model_dump(),
                })

            else:
                await manager.send_message(websocket, {
                    "type": "error",
                    "message": f"Unknown message type: {msg_type}",
                })

    except WebSocketDisconnect:
        logger.debug("Client disconnected")
    finally:
        event_task.cancel()
        try:
            await event_task
        except asyncio.CancelledError:
            pass
        manager.disconnect(websocket, session_id)
