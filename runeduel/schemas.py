"""Pydantic data schemas used across the duel server.

Inbound events are validated here before they reach any room logic, and the
outbound payloads that carry more than a couple of fields are modelled here
as well so the wire shape lives in one place. Field names are snake_case in
Python and camelCase on the wire.
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, TypeAdapter
from pydantic.alias_generators import to_camel

from .constants import MAX_HP, RoundPhase, RuneType
from .grid import Tile


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# -----------------------------
# Runtime
# -----------------------------

class Player(BaseModel):
    """Per-connection game state inside a room."""

    player_id: str
    nickname: str
    position: Tile
    # Tile the client is animating towards; counts for hit tests until confirmed.
    anticipated: Optional[Tile] = None
    hp: int = MAX_HP
    ready: bool = False
    round_wins: int = 0


# -----------------------------
# Inbound events
# -----------------------------

class CreateRoomEvent(WireModel):
    type: Literal["createRoom"]
    room_id: Optional[str] = Field(default=None, min_length=1, max_length=64)
    nickname: Optional[str] = Field(default=None, max_length=32)


class JoinRoomEvent(WireModel):
    type: Literal["joinRoom"]
    room_id: str = Field(min_length=1, max_length=64)
    nickname: Optional[str] = Field(default=None, max_length=32)


class SetReadyEvent(WireModel):
    type: Literal["setReady"]
    ready: bool = True


class MoveStartEvent(WireModel):
    type: Literal["moveStart"]
    x: StrictInt
    y: StrictInt


class MoveCompleteEvent(WireModel):
    type: Literal["moveComplete"]
    x: StrictInt
    y: StrictInt


class CastRuneEvent(WireModel):
    type: Literal["castRune"]
    rune: RuneType
    target_x: StrictInt
    target_y: StrictInt


class PingEvent(WireModel):
    type: Literal["ping"]


InboundEvent = Annotated[
    Union[
        CreateRoomEvent,
        JoinRoomEvent,
        SetReadyEvent,
        MoveStartEvent,
        MoveCompleteEvent,
        CastRuneEvent,
        PingEvent,
    ],
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter = TypeAdapter(InboundEvent)


def parse_event(data: Any) -> InboundEvent:
    """Validate a raw decoded payload; raises ``pydantic.ValidationError``."""
    return _inbound_adapter.validate_python(data)


# -----------------------------
# Outbound payloads
# -----------------------------

class Ack(WireModel):
    """Reply to request/response style events, sent to the caller only."""

    type: str
    success: bool
    message: Optional[str] = None
    room_id: Optional[str] = None
    player_id: Optional[str] = None


class RosterEntry(WireModel):
    id: str
    nickname: str


class RoundStartPlayer(WireModel):
    id: str
    x: int
    y: int
    hp: int


class SpellResolved(WireModel):
    type: Literal["spellResolved"] = "spellResolved"
    caster_id: str
    rune: RuneType
    target_x: int
    target_y: int
    hit: bool
    # First entry of ``hit_target_ids``; kept for single target clients.
    hit_target_id: Optional[str] = None
    hit_target_ids: List[str] = Field(default_factory=list)
    hp: Dict[str, int]


class LobbySummary(WireModel):
    room_id: str
    nicknames: List[str]
    player_count: int
    phase: RoundPhase


__all__ = [
    "WireModel",
    "Player",
    "CreateRoomEvent",
    "JoinRoomEvent",
    "SetReadyEvent",
    "MoveStartEvent",
    "MoveCompleteEvent",
    "CastRuneEvent",
    "PingEvent",
    "InboundEvent",
    "parse_event",
    "Ack",
    "RosterEntry",
    "RoundStartPlayer",
    "SpellResolved",
    "LobbySummary",
]
