"""Shared test doubles and scenario steps for driving a `SessionHandler`."""
from __future__ import annotations

from typing import Any, Dict, List

from runeduel.session import SessionHandler


class FakeConnection:
    """Records everything the server pushes to one client."""

    def __init__(self) -> None:
        self.sent: List[Dict[str, Any]] = []

    async def send_json(self, data: Any) -> None:
        self.sent.append(data)

    def of_type(self, type_: str) -> List[Dict[str, Any]]:
        return [m for m in self.sent if m.get("type") == type_]

    def last(self, type_: str) -> Dict[str, Any]:
        matches = self.of_type(type_)
        assert matches, f"no {type_!r} message in {self.sent}"
        return matches[-1]

    def types(self) -> List[str]:
        return [m.get("type") for m in self.sent]


async def seat_pair(handler: SessionHandler, alice: FakeConnection, bob: FakeConnection, room_id: str = "R1"):
    handler.connect("alice", alice)
    handler.connect("bob", bob)
    await handler.handle("alice", {"type": "createRoom", "roomId": room_id, "nickname": "Alice"})
    await handler.handle("bob", {"type": "joinRoom", "roomId": room_id, "nickname": "Bob"})
    return handler.registry.get(room_id)


async def play_round(handler: SessionHandler, room) -> None:
    """Ready both players and wait for the round to open."""
    await handler.handle("alice", {"type": "setReady"})
    await handler.handle("bob", {"type": "setReady"})
    await room.timer_task


async def place(handler: SessionHandler, player_id: str, x: int, y: int) -> None:
    await handler.handle(player_id, {"type": "moveComplete", "x": x, "y": y})


async def cast(handler: SessionHandler, player_id: str, rune: str, x: int, y: int) -> None:
    await handler.handle(player_id, {"type": "castRune", "rune": rune, "targetX": x, "targetY": y})
