"""Core duel mechanics.

Every function here mutates a `runeduel.room.Room` and must be called with
``room.lock`` held. Nothing is sent from inside: each function returns the
`Outbound` messages the caller delivers once the lock is released.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from .constants import MAX_HP, RUNE_MAGNITUDES, RoundPhase, RuneType
from .grid import Tile, apply_damage, apply_heal, area_pattern, occupies, random_spawn
from .room import Outbound, Room
from .schemas import RoundStartPlayer, SpellResolved

logger = logging.getLogger(__name__)


@dataclass
class CastOutcome:
    hit_ids: List[str] = field(default_factory=list)
    outbox: List[Outbound] = field(default_factory=list)
    round_over: bool = False
    # True when the round ended without ending the match.
    next_round: bool = False


# ---------------------------------------------------------------------------
# Movement
# ---------------------------------------------------------------------------

def begin_move(room: Room, player_id: str, tile: Tile) -> List[Outbound]:
    room.players[player_id].anticipated = tile
    return [Outbound({"type": "opponentMoveStart", "x": tile.x, "y": tile.y}, exclude=player_id)]


def complete_move(room: Room, player_id: str, tile: Tile) -> List[Outbound]:
    player = room.players[player_id]
    player.position = tile
    player.anticipated = None
    return [Outbound({"type": "opponentMoveComplete", "x": tile.x, "y": tile.y}, exclude=player_id)]


# ---------------------------------------------------------------------------
# Readiness & round flow
# ---------------------------------------------------------------------------

def mark_ready(room: Room, player_id: str, ready: bool = True) -> Tuple[List[Outbound], bool]:
    """Record the caller's ready flag.

    Returns the messages to deliver and whether a countdown must be armed.
    A countdown is only armed from ``idle``/``waiting``; readiness given
    while a round is running or pending is recorded but changes nothing.
    """
    player = room.players[player_id]
    player.ready = ready

    if not ready:
        anyone_ready = any(p.ready for p in room.players.values())
        if room.phase is RoundPhase.COUNTDOWN:
            room.invalidate_timers()
            room.phase = RoundPhase.WAITING if anyone_ready else RoundPhase.IDLE
            return [Outbound({"type": "countdownCancelled"})], False
        if room.phase is RoundPhase.WAITING and not anyone_ready:
            room.phase = RoundPhase.IDLE
        return [], False

    if room.phase not in (RoundPhase.IDLE, RoundPhase.WAITING):
        return [], False
    if room.both_ready():
        room.phase = RoundPhase.COUNTDOWN
        return [], True
    room.phase = RoundPhase.WAITING
    opponent = room.opponent_of(player_id)
    if opponent is None:
        return [], False
    return [Outbound({"type": "opponentReady"}, to=opponent.player_id)], False


def start_round(room: Room) -> List[Outbound]:
    """Refresh every occupant and open the round."""
    room.phase = RoundPhase.IN_ROUND
    room.round_number += 1
    taken: List[Tile] = []
    for player in room.players.values():
        player.hp = MAX_HP
        player.anticipated = None
        player.ready = False
        player.position = random_spawn(room.random, taken)
        taken.append(player.position)
    logger.info("room %s: round %d started", room.room_id, room.round_number)
    players = [
        RoundStartPlayer(id=pid, x=p.position.x, y=p.position.y, hp=p.hp).wire()
        for pid, p in room.players.items()
    ]
    return [Outbound({"type": "roundStart", "round": room.round_number, "players": players})]


def finish_round(room: Room, rounds_to_win: int) -> Tuple[List[Outbound], bool]:
    """Credit the round once somebody is down.

    A single player at zero loses; if both are at zero the round is a draw
    and nobody is credited. Returns the messages and whether another round
    of the same match follows.
    """
    losers = [pid for pid, p in room.players.items() if p.hp <= 0]
    winner = room.opponent_of(losers[0]) if len(losers) == 1 else None
    winner_id = winner.player_id if winner else None
    if winner is not None:
        winner.round_wins += 1
    for player in room.players.values():
        player.ready = False
    room.invalidate_timers()

    outbox = [
        Outbound(
            {
                "type": "roundOver",
                "round": room.round_number,
                "winnerId": winner_id,
                "score": room.score_map(),
            }
        )
    ]
    logger.info("room %s: round %d won by %s", room.room_id, room.round_number, winner_id)

    if winner is not None and winner.round_wins >= rounds_to_win:
        outbox.append(Outbound({"type": "matchOver", "winnerId": winner_id, "score": room.score_map()}))
        logger.info("room %s: match won by %s", room.room_id, winner_id)
        for player in room.players.values():
            player.round_wins = 0
        room.round_number = 0
        room.phase = RoundPhase.IDLE
        return outbox, False

    room.phase = RoundPhase.INTERMISSION
    return outbox, True


# ---------------------------------------------------------------------------
# Runes
# ---------------------------------------------------------------------------

def resolve_hits(room: Room, caster_id: str, rune: RuneType, target: Tile) -> List[str]:
    """Return the ids of the occupants the rune lands on."""
    if rune is RuneType.AREA:
        cells = area_pattern(target)
        return [
            pid
            for pid, p in room.players.items()
            if any(occupies(cell, p.position, p.anticipated) for cell in cells)
        ]

    caster = room.players[caster_id]
    opponent = room.opponent_of(caster_id)
    # Single target runes land on one occupant; damage looks at the opponent first.
    order = [opponent, caster] if rune is RuneType.DAMAGE else [caster, opponent]
    for candidate in order:
        if candidate is not None and occupies(target, candidate.position, candidate.anticipated):
            return [candidate.player_id]
    return []


def cast_rune(
    room: Room,
    caster_id: str,
    rune: RuneType,
    target: Tile,
    rounds_to_win: int,
) -> CastOutcome:
    hit_ids = resolve_hits(room, caster_id, rune, target)
    amount = RUNE_MAGNITUDES[rune]
    for pid in hit_ids:
        player = room.players[pid]
        if rune is RuneType.HEAL:
            player.hp = apply_heal(player.hp, amount)
        else:
            player.hp = apply_damage(player.hp, amount)

    resolved = SpellResolved(
        caster_id=caster_id,
        rune=rune,
        target_x=target.x,
        target_y=target.y,
        hit=bool(hit_ids),
        hit_target_id=hit_ids[0] if hit_ids else None,
        hit_target_ids=hit_ids,
        hp=room.hp_map(),
    )
    outcome = CastOutcome(hit_ids=hit_ids, outbox=[Outbound(resolved.wire())])

    if any(p.hp <= 0 for p in room.players.values()):
        messages, next_round = finish_round(room, rounds_to_win)
        outcome.outbox.extend(messages)
        outcome.round_over = True
        outcome.next_round = next_round
    return outcome


# ---------------------------------------------------------------------------
# Departures
# ---------------------------------------------------------------------------

def remove_departed(room: Room, player_id: str) -> List[Outbound]:
    """Drop a disconnected player and reset whoever is left.

    A departure aborts any round or countdown in progress without crediting
    the remaining player, and the match starts over for the next opponent.
    """
    room.invalidate_timers()
    departed = room.remove_player(player_id)
    room.phase = RoundPhase.IDLE
    room.round_number = 0
    for player in room.players.values():
        player.ready = False
        player.round_wins = 0
        player.anticipated = None
        player.hp = MAX_HP
    if departed is None or not room.players:
        return []
    return [Outbound({"type": "opponentLeft"})]


__all__ = [
    "CastOutcome",
    "begin_move",
    "complete_move",
    "mark_ready",
    "start_round",
    "finish_round",
    "resolve_hits",
    "cast_rune",
    "remove_departed",
]
