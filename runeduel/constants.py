from __future__ import annotations

from enum import Enum

# Shared with the client; changing these breaks the board rendering.
GRID_SIZE = 32
MAX_HP = 100
MAX_PLAYERS = 2

DEFAULT_NICKNAME = "Player"
GENERATED_ROOM_ID_LENGTH = 8


class RuneType(str, Enum):
    DAMAGE = "damage"  # single target
    HEAL = "heal"  # single target
    AREA = "area"  # 5-tile cross


# Health delta applied per hit target.
RUNE_MAGNITUDES: dict[RuneType, int] = {
    RuneType.DAMAGE: 40,
    RuneType.HEAL: 40,
    RuneType.AREA: 20,
}

# Center plus one step in each cardinal direction.
AREA_OFFSETS: tuple[tuple[int, int], ...] = ((0, 0), (1, 0), (-1, 0), (0, 1), (0, -1))


class RoundPhase(str, Enum):
    IDLE = "idle"
    WAITING = "waiting"  # one occupant ready
    COUNTDOWN = "countdown"
    IN_ROUND = "in_round"
    INTERMISSION = "intermission"  # between rounds of a match


__all__ = [
    "GRID_SIZE",
    "MAX_HP",
    "MAX_PLAYERS",
    "DEFAULT_NICKNAME",
    "GENERATED_ROOM_ID_LENGTH",
    "RuneType",
    "RUNE_MAGNITUDES",
    "AREA_OFFSETS",
    "RoundPhase",
]
