"""Timer driven round transitions.

Each room has at most one timer task (``room.timer_task``). The task takes
the room lock for every mutation, exactly like a player event, and checks
the epoch it was armed with; anything that invalidates the timer (round end,
departure, countdown cancel) bumps the epoch, so a late firing is a no-op.
"""
from __future__ import annotations

import asyncio
import logging

from . import game_logic
from .config import GameSettings
from .constants import MAX_PLAYERS, RoundPhase
from .room import Outbound, Room

logger = logging.getLogger(__name__)

COUNTDOWN_TICK_SEC = 1.0


def _is_stale(room: Room, epoch: int) -> bool:
    return room.closed or room.epoch != epoch or len(room.players) < MAX_PLAYERS


class RoundScheduler:
    def __init__(self, settings: GameSettings):
        self.settings = settings

    def arm_countdown(self, room: Room) -> asyncio.Task:
        """Start the countdown → round start sequence. Call with the room lock held."""
        return self._arm(room, pause=0.0)

    def arm_next_round(self, room: Room) -> asyncio.Task:
        """Pause, then countdown into the next round of the same match."""
        return self._arm(room, pause=self.settings.round_pause_seconds)

    def _arm(self, room: Room, pause: float) -> asyncio.Task:
        room.invalidate_timers()
        epoch = room.epoch
        task = asyncio.create_task(self._run(room, epoch, pause))
        room.timer_task = task
        logger.debug("room %s: timer armed (epoch=%d pause=%.1fs)", room.room_id, epoch, pause)
        return task

    async def _run(self, room: Room, epoch: int, pause: float) -> None:
        if pause:
            await asyncio.sleep(pause)
        async with room.lock:
            if _is_stale(room, epoch):
                logger.debug("room %s: stale timer dropped", room.room_id)
                return
            # Coming out of an intermission the phase is still INTERMISSION.
            room.phase = RoundPhase.COUNTDOWN

        for count in range(self.settings.countdown_seconds, 0, -1):
            async with room.lock:
                if _is_stale(room, epoch):
                    logger.debug("room %s: stale countdown dropped", room.room_id)
                    return
            await room.deliver([Outbound({"type": "countdown", "count": count})])
            await asyncio.sleep(COUNTDOWN_TICK_SEC)

        async with room.lock:
            if _is_stale(room, epoch) or room.phase is not RoundPhase.COUNTDOWN:
                logger.debug("room %s: stale round start dropped", room.room_id)
                return
            # Final "go" tick, sent even when the countdown has no numbered steps.
            outbox = [Outbound({"type": "countdown", "count": 0})]
            outbox.extend(game_logic.start_round(room))
        await room.deliver(outbox)


__all__ = ["RoundScheduler", "COUNTDOWN_TICK_SEC"]
