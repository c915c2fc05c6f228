"""Process-wide table of live rooms.

Lock order is always registry lock first, then a room lock. The registry
lock only guards the table itself and is never held across I/O.
"""
from __future__ import annotations

import asyncio
import logging
import random
import uuid
from typing import Callable, Dict, List, Optional

from .constants import GENERATED_ROOM_ID_LENGTH
from .errors import RoomFull, RoomNotFound, RoomTaken
from .room import Connection, Room
from .schemas import LobbySummary

logger = logging.getLogger(__name__)


class RoomRegistry:
    """Creates, looks up and garbage-collects rooms keyed by id."""

    def __init__(self, rng_factory: Optional[Callable[[], random.Random]] = None):
        self.rooms: Dict[str, Room] = {}
        self.lock = asyncio.Lock()
        self._rng_factory = rng_factory or random.Random

    def get(self, room_id: str) -> Optional[Room]:
        room = self.rooms.get(room_id)
        if room is None or room.closed:
            return None
        return room

    def _new_room_id(self) -> str:
        while True:
            room_id = uuid.uuid4().hex[:GENERATED_ROOM_ID_LENGTH]
            if self.get(room_id) is None:
                return room_id

    async def create(
        self,
        room_id: Optional[str],
        player_id: str,
        nickname: str,
        connection: Connection,
    ) -> Room:
        """Open *room_id* (or a generated id) with the caller as sole occupant."""
        async with self.lock:
            if room_id is None:
                room_id = self._new_room_id()
            existing = self.get(room_id)
            if existing is not None and existing.players:
                raise RoomTaken()
            room = Room(room_id, rng=self._rng_factory())
            # Nobody else can reach the new room before the registry lock is released.
            room.add_player(player_id, nickname, connection)
            self.rooms[room_id] = room
        logger.info("room %s created by %s (%s)", room_id, player_id, nickname)
        return room

    async def join(
        self,
        room_id: str,
        player_id: str,
        nickname: str,
        connection: Connection,
    ) -> Room:
        async with self.lock:
            room = self.get(room_id)
        if room is None:
            raise RoomNotFound()
        async with room.lock:
            # The last occupant may have left between the lookup and the lock.
            if room.closed:
                raise RoomNotFound()
            if room.is_full:
                raise RoomFull()
            room.add_player(player_id, nickname, connection)
        logger.info("room %s joined by %s (%s)", room_id, player_id, nickname)
        return room

    async def remove(self, room: Room) -> None:
        """Drop *room* from the table if it is still the live entry for its id."""
        async with self.lock:
            if self.rooms.get(room.room_id) is room:
                self.rooms.pop(room.room_id, None)
                logger.info("room %s removed", room.room_id)

    def list_active(self) -> List[LobbySummary]:
        """Summaries of every room with at least one player."""
        return [room.summary() for room in self.rooms.values() if room.players and not room.closed]


__all__ = ["RoomRegistry"]
