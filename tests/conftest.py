from __future__ import annotations

import pytest

from runeduel.config import GameSettings
from runeduel.lobby import Lobby
from runeduel.registry import RoomRegistry
from runeduel.scheduler import RoundScheduler
from runeduel.session import SessionHandler

from helpers import FakeConnection


@pytest.fixture()
def settings() -> GameSettings:
    # No waiting in tests: rounds start as soon as the timer task runs.
    return GameSettings(countdown_seconds=0, round_pause_seconds=0, rounds_to_win=2)


@pytest.fixture()
def handler(settings: GameSettings) -> SessionHandler:
    registry = RoomRegistry()
    return SessionHandler(registry, RoundScheduler(settings), settings, lobby=Lobby(registry))


@pytest.fixture()
def alice() -> FakeConnection:
    return FakeConnection()


@pytest.fixture()
def bob() -> FakeConnection:
    return FakeConnection()
