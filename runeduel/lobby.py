"""Utility helpers for maintaining and broadcasting the live room list."""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from .registry import RoomRegistry
from .room import Connection

logger = logging.getLogger(__name__)


class Lobby:
    """Pushes the active room listing to every lobby listener."""

    def __init__(self, registry: RoomRegistry):
        self.registry = registry
        # listener id -> connection
        self.listeners: Dict[str, Connection] = {}

    def _payload(self) -> Dict[str, Any]:
        data: List[Dict[str, Any]] = [summary.wire() for summary in self.registry.list_active()]
        return {"type": "lobbies", "data": data}

    def add(self, listener_id: str, connection: Connection) -> None:
        self.listeners[listener_id] = connection

    def discard(self, listener_id: str) -> None:
        self.listeners.pop(listener_id, None)

    async def send_snapshot(self, connection: Connection) -> None:
        await connection.send_json(self._payload())

    async def broadcast(self) -> None:
        """Push the current room list to *all* lobby listeners."""
        if not self.listeners:
            return
        payload = self._payload()
        for listener_id, connection in list(self.listeners.items()):
            try:
                await connection.send_json(payload)
            except Exception:
                # Client disconnected unexpectedly
                logger.warning("lobby listener %s dropped", listener_id)
                self.listeners.pop(listener_id, None)


__all__ = ["Lobby"]
