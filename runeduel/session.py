"""Per-connection protocol handling.

`SessionHandler` owns the binding of connection ids to room ids, validates
every inbound payload against `runeduel.schemas` and translates it into
registry/room operations. Transport code (see ``routers/websockets.py``)
only calls `connect`, `handle` and `disconnect`.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from . import game_logic
from .config import GameSettings
from .constants import DEFAULT_NICKNAME, MAX_PLAYERS
from .errors import AlreadyBound, InvalidTarget, NotBound, RoomError
from .grid import Tile, in_bounds
from .lobby import Lobby
from .registry import RoomRegistry
from .room import Connection, Room
from .scheduler import RoundScheduler
from .schemas import (
    Ack,
    CastRuneEvent,
    CreateRoomEvent,
    JoinRoomEvent,
    MoveCompleteEvent,
    MoveStartEvent,
    PingEvent,
    SetReadyEvent,
    parse_event,
)

logger = logging.getLogger(__name__)

_REQUEST_REPLIES = {"createRoom": "createRoomResult", "joinRoom": "joinRoomResult"}


def _error(code: str, message: str) -> Dict[str, Any]:
    return {"type": "error", "code": code, "message": message}


def _nickname(raw: Optional[str]) -> str:
    name = (raw or "").strip()
    return name or DEFAULT_NICKNAME


class SessionHandler:
    def __init__(
        self,
        registry: RoomRegistry,
        scheduler: RoundScheduler,
        settings: GameSettings,
        lobby: Optional[Lobby] = None,
    ):
        self.registry = registry
        self.scheduler = scheduler
        self.settings = settings
        self.lobby = lobby
        self.connections: Dict[str, Connection] = {}
        # connection id -> bound room id
        self.bindings: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(self, conn_id: str, connection: Connection) -> None:
        self.connections[conn_id] = connection

    async def disconnect(self, conn_id: str) -> None:
        self.connections.pop(conn_id, None)
        room_id = self.bindings.pop(conn_id, None)
        if room_id is None:
            return
        room = self.registry.get(room_id)
        if room is None or conn_id not in room.players:
            return
        async with room.lock:
            outbox = game_logic.remove_departed(room, conn_id)
            emptied = room.closed
        logger.info("room %s: %s left", room_id, conn_id)
        await room.deliver(outbox)
        if emptied:
            await self.registry.remove(room)
        await self._rooms_changed()

    def bound_room(self, conn_id: str) -> Room:
        """Room the connection is seated in; raises `NotBound` otherwise."""
        room_id = self.bindings.get(conn_id)
        room = self.registry.get(room_id) if room_id is not None else None
        if room is None or conn_id not in room.players:
            raise NotBound()
        return room

    # ------------------------------------------------------------------
    # Primary dispatcher
    # ------------------------------------------------------------------

    async def handle(self, conn_id: str, data: Any) -> None:
        try:
            event = parse_event(data)
        except ValidationError as exc:
            logger.debug("malformed event from %s: %s", conn_id, exc.errors())
            event_type = data.get("type") if isinstance(data, dict) else None
            reply_type = _REQUEST_REPLIES.get(event_type) if isinstance(event_type, str) else None
            if reply_type is not None:
                # Request style events always get their own reply type back.
                ack = Ack(type=reply_type, success=False, message="Invalid room request")
                await self._reply(conn_id, ack.wire())
            else:
                await self._reply(conn_id, _error("MalformedEvent", "Malformed event payload"))
            return

        try:
            if isinstance(event, CreateRoomEvent):
                await self.create_room(conn_id, event)
            elif isinstance(event, JoinRoomEvent):
                await self.join_room(conn_id, event)
            elif isinstance(event, SetReadyEvent):
                await self.set_ready(conn_id, event)
            elif isinstance(event, MoveStartEvent):
                await self.move(conn_id, Tile(event.x, event.y), complete=False)
            elif isinstance(event, MoveCompleteEvent):
                await self.move(conn_id, Tile(event.x, event.y), complete=True)
            elif isinstance(event, CastRuneEvent):
                await self.cast_rune(conn_id, event)
            elif isinstance(event, PingEvent):
                await self._reply(conn_id, {"type": "pong"})
        except NotBound:
            # Possibly a late event racing a disconnect; never echoed back.
            logger.debug("%s from unbound connection %s ignored", event.type, conn_id)
        except InvalidTarget as exc:
            await self._reply(conn_id, _error(exc.code, exc.message))

    # ------------------------------------------------------------------
    # Request/response events
    # ------------------------------------------------------------------

    async def create_room(self, conn_id: str, event: CreateRoomEvent) -> Ack:
        ack = await self._seat(conn_id, event.room_id, event.nickname, create=True)
        await self._reply(conn_id, ack.wire())
        if ack.success:
            await self._rooms_changed()
        return ack

    async def join_room(self, conn_id: str, event: JoinRoomEvent) -> Ack:
        ack = await self._seat(conn_id, event.room_id, event.nickname, create=False)
        await self._reply(conn_id, ack.wire())
        if ack.success:
            room = self.bound_room(conn_id)
            async with room.lock:
                roster = room.roster() if len(room.players) == MAX_PLAYERS else None
                # Readiness given before the joiner arrived had nobody to reach.
                waiting = [pid for pid, p in room.players.items() if p.ready and pid != conn_id]
            if roster is not None:
                await room.broadcast({"type": "roomReady", "players": roster})
                for _ in waiting:
                    await room.send(conn_id, {"type": "opponentReady"})
            await self._rooms_changed()
        return ack

    async def _seat(self, conn_id: str, room_id: Optional[str], nickname: Optional[str], create: bool) -> Ack:
        reply_type = "createRoomResult" if create else "joinRoomResult"
        connection = self.connections.get(conn_id)
        try:
            if conn_id in self.bindings:
                raise AlreadyBound()
            if connection is None:
                raise RoomError("Connection is not registered")
            if create:
                room = await self.registry.create(room_id, conn_id, _nickname(nickname), connection)
            else:
                room = await self.registry.join(room_id, conn_id, _nickname(nickname), connection)
        except RoomError as exc:
            logger.info("%s rejected for %s: %s", reply_type, conn_id, exc.code)
            return Ack(type=reply_type, success=False, message=exc.message)
        self.bindings[conn_id] = room.room_id
        return Ack(type=reply_type, success=True, room_id=room.room_id, player_id=conn_id)

    # ------------------------------------------------------------------
    # Fire-and-forget events
    # ------------------------------------------------------------------

    async def set_ready(self, conn_id: str, event: SetReadyEvent) -> None:
        room = self.bound_room(conn_id)
        async with room.lock:
            if conn_id not in room.players:
                return
            outbox, arm = game_logic.mark_ready(room, conn_id, event.ready)
            if arm:
                self.scheduler.arm_countdown(room)
        await room.deliver(outbox)

    async def move(self, conn_id: str, tile: Tile, complete: bool) -> None:
        room = self.bound_room(conn_id)
        if not in_bounds(tile):
            raise InvalidTarget()
        async with room.lock:
            if conn_id not in room.players or len(room.players) < MAX_PLAYERS:
                return
            if complete:
                outbox = game_logic.complete_move(room, conn_id, tile)
            else:
                outbox = game_logic.begin_move(room, conn_id, tile)
        await room.deliver(outbox)

    async def cast_rune(self, conn_id: str, event: CastRuneEvent) -> None:
        room = self.bound_room(conn_id)
        target = Tile(event.target_x, event.target_y)
        if not in_bounds(target):
            raise InvalidTarget()
        async with room.lock:
            if conn_id not in room.players or len(room.players) < MAX_PLAYERS:
                return
            if not room.in_round:
                logger.debug("room %s: cast outside a round ignored", room.room_id)
                return
            outcome = game_logic.cast_rune(room, conn_id, event.rune, target, self.settings.rounds_to_win)
            if outcome.next_round:
                self.scheduler.arm_next_round(room)
        await room.deliver(outcome.outbox)
        if outcome.round_over:
            await self._rooms_changed()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _reply(self, conn_id: str, payload: Dict[str, Any]) -> None:
        connection = self.connections.get(conn_id)
        if connection is None:
            return
        try:
            await connection.send_json(payload)
        except Exception:
            logger.warning("failed to reply %s to %s", payload.get("type"), conn_id)

    async def _rooms_changed(self) -> None:
        if self.lobby is not None:
            await self.lobby.broadcast()


__all__ = ["SessionHandler"]
