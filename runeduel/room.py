from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol

from .constants import GRID_SIZE, MAX_HP, MAX_PLAYERS, RoundPhase
from .errors import RoomFull
from .grid import Tile, random_spawn
from .schemas import LobbySummary, Player, RosterEntry

logger = logging.getLogger(__name__)

# NOTE: rule logic lives in ``runeduel.game_logic``; this module only owns
# membership, the per-room lock and delivery of outbound messages.


class Connection(Protocol):
    """Anything able to push a JSON object to one client (e.g. a WebSocket)."""

    async def send_json(self, data: Any) -> None: ...


@dataclass
class Outbound:
    """A message queued while the room lock is held, delivered after release.

    ``to`` targets a single player; otherwise the message goes to every
    occupant except ``exclude``.
    """

    payload: Dict[str, Any]
    to: Optional[str] = None
    exclude: Optional[str] = None


class Room:
    """Runtime state and active connections for one duel."""

    def __init__(self, room_id: str, rng: Optional[random.Random] = None):
        self.room_id = room_id
        # player_id -> Player, insertion ordered (creator first)
        self.players: Dict[str, Player] = {}
        self.connections: Dict[str, Connection] = {}
        self.phase = RoundPhase.IDLE
        self.round_number: int = 0
        # Bumped whenever pending timers must stop acting on this room.
        self.epoch: int = 0
        self.closed: bool = False
        self.lock = asyncio.Lock()
        self.timer_task: Optional[asyncio.Task] = None
        self.random = rng or random.Random()

    # -------------------- Player management -------------------- #

    @property
    def is_full(self) -> bool:
        return len(self.players) >= MAX_PLAYERS

    @property
    def in_round(self) -> bool:
        return self.phase is RoundPhase.IN_ROUND

    def add_player(self, player_id: str, nickname: str, connection: Connection) -> Player:
        if self.is_full:
            raise RoomFull()
        player = Player(
            player_id=player_id,
            nickname=nickname,
            position=self.spawn_tile(),
            hp=MAX_HP,
        )
        self.players[player_id] = player
        self.connections[player_id] = connection
        return player

    def remove_player(self, player_id: str) -> Optional[Player]:
        self.connections.pop(player_id, None)
        player = self.players.pop(player_id, None)
        if not self.players:
            self.closed = True
        return player

    def opponent_of(self, player_id: str) -> Optional[Player]:
        for pid, player in self.players.items():
            if pid != player_id:
                return player
        return None

    def spawn_tile(self, exclude: Iterable[str] = ()) -> Tile:
        """Fresh random tile not occupied by any other player."""
        skip = set(exclude)
        occupied = [p.position for pid, p in self.players.items() if pid not in skip]
        return random_spawn(self.random, occupied, GRID_SIZE)

    def both_ready(self) -> bool:
        return len(self.players) == MAX_PLAYERS and all(p.ready for p in self.players.values())

    # -------------------- Views -------------------- #

    def hp_map(self) -> Dict[str, int]:
        return {pid: p.hp for pid, p in self.players.items()}

    def score_map(self) -> Dict[str, int]:
        return {pid: p.round_wins for pid, p in self.players.items()}

    def roster(self) -> List[Dict[str, Any]]:
        return [RosterEntry(id=pid, nickname=p.nickname).wire() for pid, p in self.players.items()]

    def summary(self) -> LobbySummary:
        return LobbySummary(
            room_id=self.room_id,
            nicknames=[p.nickname for p in self.players.values()],
            player_count=len(self.players),
            phase=self.phase,
        )

    # -------------------- Timers -------------------- #

    def invalidate_timers(self) -> None:
        """Bump the epoch and cancel the pending timer task, if any."""
        self.epoch += 1
        task = self.timer_task
        self.timer_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    # -------------------- Broadcasting helpers -------------------- #

    async def send(self, player_id: str, payload: Dict[str, Any]) -> None:
        ws = self.connections.get(player_id)
        if ws is None:
            return
        try:
            await ws.send_json(payload)
        except Exception:
            # The transport reports the disconnect separately; cleanup happens there.
            logger.warning("room %s: failed to send %s to %s", self.room_id, payload.get("type"), player_id)

    async def broadcast(self, payload: Dict[str, Any], exclude: Optional[str] = None) -> None:
        """Broadcast *payload* to every connection in the room except *exclude*."""
        for player_id in list(self.connections):
            if player_id != exclude:
                await self.send(player_id, payload)

    async def deliver(self, outbox: Iterable[Outbound]) -> None:
        for message in outbox:
            if message.to is not None:
                await self.send(message.to, message.payload)
            else:
                await self.broadcast(message.payload, exclude=message.exclude)


__all__ = ["Room", "Connection", "Outbound"]
