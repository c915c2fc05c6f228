"""End-to-end checks through the FastAPI WebSocket adapter."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from runeduel.app import create_app
from runeduel.config import GameSettings


@pytest.fixture()
def client():
    app = create_app(GameSettings(countdown_seconds=0, round_pause_seconds=0))
    with TestClient(app) as test_client:
        yield test_client


def test_duel_over_websockets(client):
    with client.websocket_connect("/ws") as alice:
        alice_id = alice.receive_json()["id"]
        with client.websocket_connect("/ws") as bob:
            bob_id = bob.receive_json()["id"]

            alice.send_json({"type": "createRoom", "roomId": "R1", "nickname": "Alice"})
            created = alice.receive_json()
            assert created["type"] == "createRoomResult"
            assert created["success"] is True

            bob.send_json({"type": "joinRoom", "roomId": "R1", "nickname": "Bob"})
            assert bob.receive_json()["success"] is True
            ready = alice.receive_json()
            assert ready["type"] == "roomReady"
            assert [p["id"] for p in ready["players"]] == [alice_id, bob_id]
            assert bob.receive_json()["type"] == "roomReady"

            response = client.get("/rooms")
            assert response.status_code == 200
            assert response.json() == [
                {"roomId": "R1", "nicknames": ["Alice", "Bob"], "playerCount": 2, "phase": "idle"}
            ]

            alice.send_json({"type": "setReady"})
            assert bob.receive_json() == {"type": "opponentReady"}
            bob.send_json({"type": "setReady"})
            assert alice.receive_json() == {"type": "countdown", "count": 0}
            assert alice.receive_json()["type"] == "roundStart"
            assert bob.receive_json() == {"type": "countdown", "count": 0}
            assert bob.receive_json()["type"] == "roundStart"

            alice.send_json({"type": "moveComplete", "x": 0, "y": 0})
            assert bob.receive_json() == {"type": "opponentMoveComplete", "x": 0, "y": 0}
            bob.send_json({"type": "moveStart", "x": 9, "y": 9})
            assert alice.receive_json() == {"type": "opponentMoveStart", "x": 9, "y": 9}

            alice.send_json({"type": "castRune", "rune": "damage", "targetX": 9, "targetY": 9})
            resolved = alice.receive_json()
            assert resolved["type"] == "spellResolved"
            assert resolved["hitTargetId"] == bob_id
            assert resolved["hp"][bob_id] == 60
            assert bob.receive_json() == resolved

        assert alice.receive_json() == {"type": "opponentLeft"}


def test_invalid_json_and_malformed_events(client):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.send_text("not json")
        assert ws.receive_json()["code"] == "MalformedEvent"
        ws.send_json({"type": "castRune", "rune": "damage"})
        assert ws.receive_json()["code"] == "MalformedEvent"
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}


def test_lobby_listeners_see_rooms_appear(client):
    with client.websocket_connect("/lobbies_ws") as lobby:
        assert lobby.receive_json() == {"type": "lobbies", "data": []}
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "createRoom", "roomId": "R7", "nickname": "Zed"})
            assert ws.receive_json()["success"] is True
            update = lobby.receive_json()
            assert update["type"] == "lobbies"
            assert update["data"][0]["roomId"] == "R7"
            assert update["data"][0]["nicknames"] == ["Zed"]
        # Leaving empties the room and the lobby hears about it.
        assert lobby.receive_json() == {"type": "lobbies", "data": []}
