"""Failure taxonomy for room and session operations."""
from __future__ import annotations


class RoomError(RuntimeError):
    """Base class for room related failures.

    ``code`` is the stable identifier sent to clients; the exception message
    is the human readable part.
    """

    code = "RoomError"

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message())

    @classmethod
    def default_message(cls) -> str:
        return cls.code

    @property
    def message(self) -> str:
        return str(self)


class RoomTaken(RoomError):
    """Raised when creating a room whose id already has occupants."""

    code = "RoomTaken"

    @classmethod
    def default_message(cls) -> str:
        return "Room already exists"


class RoomNotFound(RoomError):
    """Raised when a user attempts to join a missing room."""

    code = "RoomNotFound"

    @classmethod
    def default_message(cls) -> str:
        return "Room not found"


class RoomFull(RoomError):
    code = "RoomFull"

    @classmethod
    def default_message(cls) -> str:
        return "Room full"


class AlreadyBound(RoomError):
    """The connection is already seated in a room."""

    code = "AlreadyBound"

    @classmethod
    def default_message(cls) -> str:
        return "Already in a room"


class NotBound(RoomError):
    code = "NotBound"


class InvalidTarget(RoomError):
    """A tile outside the grid was targeted."""

    code = "InvalidTarget"

    @classmethod
    def default_message(cls) -> str:
        return "Target tile is outside the grid"


__all__ = [
    "RoomError",
    "RoomTaken",
    "RoomNotFound",
    "RoomFull",
    "AlreadyBound",
    "NotBound",
    "InvalidTarget",
]
