"""Pure grid and damage rules.

Nothing in here touches room state; the functions take tiles and numbers and
return new tiles and numbers so they can be unit tested in isolation.
"""
from __future__ import annotations

import random
from typing import Collection, List, NamedTuple, Optional

from .constants import AREA_OFFSETS, GRID_SIZE, MAX_HP


class Tile(NamedTuple):
    x: int
    y: int


def in_bounds(tile: Tile, grid_size: int = GRID_SIZE) -> bool:
    return 0 <= tile.x < grid_size and 0 <= tile.y < grid_size


def random_spawn(
    rng: random.Random,
    occupied: Collection[Tile] = (),
    grid_size: int = GRID_SIZE,
) -> Tile:
    """Sample a uniformly random tile that nobody currently stands on."""
    if len(set(occupied)) >= grid_size * grid_size:
        raise ValueError("no free tile left on the grid")
    while True:
        tile = Tile(rng.randrange(grid_size), rng.randrange(grid_size))
        if tile not in occupied:
            return tile


def area_pattern(center: Tile, grid_size: int = GRID_SIZE) -> List[Tile]:
    """Return the in-bounds cells of the cross pattern around *center*."""
    cells = [Tile(center.x + dx, center.y + dy) for dx, dy in AREA_OFFSETS]
    return [cell for cell in cells if in_bounds(cell, grid_size)]


def occupies(tile: Tile, position: Tile, anticipated: Optional[Tile]) -> bool:
    """A player occupies both its confirmed tile and the tile it is moving to."""
    return tile == position or (anticipated is not None and tile == anticipated)


def clamp_hp(hp: int, max_hp: int = MAX_HP) -> int:
    return max(0, min(max_hp, hp))


def apply_damage(hp: int, amount: int, max_hp: int = MAX_HP) -> int:
    return clamp_hp(hp - amount, max_hp)


def apply_heal(hp: int, amount: int, max_hp: int = MAX_HP) -> int:
    return clamp_hp(hp + amount, max_hp)


__all__ = [
    "Tile",
    "in_bounds",
    "random_spawn",
    "area_pattern",
    "occupies",
    "clamp_hp",
    "apply_damage",
    "apply_heal",
]
