from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import GameSettings, configure_logging
from .lobby import Lobby
from .registry import RoomRegistry
from .routers import rooms as rooms_router
from .routers import websockets as ws_router
from .scheduler import RoundScheduler
from .session import SessionHandler


def create_app(settings: Optional[GameSettings] = None) -> FastAPI:
    """Build the FastAPI app and the engine objects it owns."""
    settings = settings or GameSettings.from_env()
    configure_logging(settings)

    app = FastAPI(title="Rune Duel")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    registry = RoomRegistry()
    lobby = Lobby(registry)
    app.state.settings = settings
    app.state.registry = registry
    app.state.lobby = lobby
    app.state.session = SessionHandler(registry, RoundScheduler(settings), settings, lobby=lobby)

    app.include_router(rooms_router.router)
    app.include_router(ws_router.router)
    return app


# -----------------------------
# FastAPI app instance
# -----------------------------

app = create_app()


def main() -> None:
    import uvicorn

    settings: GameSettings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()

__all__ = ["app", "create_app", "main"]
