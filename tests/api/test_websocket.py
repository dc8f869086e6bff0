"""Tests for the WebSocket channel."""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from api.main import app
from api.routes import game as game_routes
from api.websocket import manager


@pytest.fixture
def sync_client():
    """Synchronous test client for WebSocket sessions."""
    return TestClient(app)


@pytest.fixture
def ws_session(sync_client):
    """A fresh signed session."""
    return sync_client.post("/api/game/new").json()["session_id"]


def _receive_until(ws, predicate, limit=50):
    """Collect messages until one matches."""
    messages = []
    for _ in range(limit):
        message = ws.receive_json()
        messages.append(message)
        if predicate(message):
            return messages
    raise AssertionError(f"No matching message in {messages}")


def _is_phase(phase):
    return lambda m: m.get("event_type") == "PHASE_CHANGED" and m["data"]["phase"] == phase


def test_initial_state(sync_client, ws_session):
    """Test the first message is the current state."""
    with sync_client.websocket_connect(f"/ws/game/{ws_session}") as ws:
        message = ws.receive_json()
        assert message["type"] == "state_update"
        assert message["state"]["phase"] == "IDLE"


def test_full_round(sync_client, ws_session):
    """Test a round streamed from start to end."""
    with sync_client.websocket_connect(f"/ws/game/{ws_session}") as ws:
        ws.receive_json()
        ws.send_json({"type": "start_round"})

        messages = _receive_until(ws, _is_phase("GUESSING"))
        started = next(m for m in messages if m.get("event_type") == "ROUND_STARTED")
        swaps = [m for m in messages if m.get("event_type") == "CUPS_SWAPPED"]

        assert 3 <= len(swaps) <= 5
        assert messages[-1]["state"]["coin_visible"] is False

        coin_cup_id = started["data"]["coin_cup_id"]
        cups = messages[-1]["state"]["cups"]
        coin_slot = next(c["slot"] for c in cups if c["id"] == coin_cup_id)

        ws.send_json({"type": "guess", "slot": coin_slot})

        seen = []
        seen += _receive_until(ws, lambda m: m["type"] in ("round_result", "round_ended"))
        if seen[-1]["type"] == "round_result":
            seen += _receive_until(ws, lambda m: m["type"] == "round_ended")
        else:
            seen += _receive_until(ws, lambda m: m["type"] == "round_result")

        result = next(m for m in seen if m["type"] == "round_result")
        assert result["won"] is True
        assert result["score"]["wins"] == 1

        ended = next(m for m in seen if m["type"] == "round_ended")
        assert ended["state"]["phase"] == "IDLE"


def test_guess_while_idle(sync_client, ws_session):
    """Test an early guess is reported as an error."""
    with sync_client.websocket_connect(f"/ws/game/{ws_session}") as ws:
        ws.receive_json()
        ws.send_json({"type": "guess", "slot": 0})

        messages = _receive_until(ws, lambda m: m["type"] == "error")
        assert "Cannot guess" in messages[-1]["message"]


def test_bad_slot(sync_client, ws_session):
    with sync_client.websocket_connect(f"/ws/game/{ws_session}") as ws:
        ws.receive_json()
        ws.send_json({"type": "guess", "slot": 7})
        assert ws.receive_json()["type"] == "error"


def test_unknown_message(sync_client, ws_session):
    with sync_client.websocket_connect(f"/ws/game/{ws_session}") as ws:
        ws.receive_json()
        ws.send_json({"type": "shuffle_faster"})
        message = ws.receive_json()
        assert message["type"] == "error"
        assert "shuffle_faster" in message["message"]


def test_invalid_json(sync_client, ws_session):
    with sync_client.websocket_connect(f"/ws/game/{ws_session}") as ws:
        ws.receive_json()
        ws.send_text("not json")
        assert ws.receive_json()["type"] == "error"


def test_reset_stats(sync_client, ws_session):
    with sync_client.websocket_connect(f"/ws/game/{ws_session}") as ws:
        ws.receive_json()
        ws.send_json({"type": "reset_stats"})
        message = ws.receive_json()
        assert message["type"] == "stats_update"
        assert message["score"]["games_played"] == 0


def test_disconnect_discards_engine(sync_client, ws_session):
    """Test closing the socket tears down the session's round."""
    with sync_client.websocket_connect(f"/ws/game/{ws_session}") as ws:
        ws.receive_json()
        ws.send_json({"type": "start_round"})
        ws.receive_json()

    assert ws_session not in game_routes._engines


def test_second_socket_survives_first_closing(sync_client, ws_session):
    """Test closing one of two sockets on a session leaves the other working."""
    with sync_client.websocket_connect(f"/ws/game/{ws_session}") as survivor:
        survivor.receive_json()
        with sync_client.websocket_connect(f"/ws/game/{ws_session}") as other:
            other.receive_json()
            assert manager.connections_for(ws_session) == 2

        assert manager.connections_for(ws_session) == 1
        assert ws_session in game_routes._engines

        survivor.send_json({"type": "get_state"})
        assert survivor.receive_json()["type"] == "state_update"

        survivor.send_json({"type": "start_round"})
        messages = _receive_until(survivor, _is_phase("GUESSING"))
        assert messages[-1]["state"]["phase"] == "GUESSING"

    assert manager.connections_for(ws_session) == 0
    assert ws_session not in game_routes._engines


def test_events_reach_every_socket(sync_client, ws_session):
    """Test a round started on one socket streams to both."""
    with sync_client.websocket_connect(f"/ws/game/{ws_session}") as first:
        first.receive_json()
        with sync_client.websocket_connect(f"/ws/game/{ws_session}") as second:
            second.receive_json()
            first.send_json({"type": "start_round"})

            for ws in (first, second):
                messages = _receive_until(ws, lambda m: m.get("event_type") == "ROUND_STARTED")
                assert messages[-1]["state"]["phase"] == "PLACING"

def test_invalid_session_rejected(sync_client):
    """Test unsigned session ids cannot connect."""
    with pytest.raises(WebSocketDisconnect):
        with sync_client.websocket_connect("/ws/game/not-a-session") as ws:
            ws.receive_json()
