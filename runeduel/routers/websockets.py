from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..lobby import Lobby
from ..session import SessionHandler

router = APIRouter(prefix="", tags=["ws"])

logger = logging.getLogger(__name__)


@router.websocket("/lobbies_ws")
async def lobbies_ws_endpoint(ws: WebSocket):
    lobby: Lobby = ws.app.state.lobby
    await ws.accept()
    listener_id = uuid.uuid4().hex
    lobby.add(listener_id, ws)
    try:
        await lobby.send_snapshot(ws)
        while True:
            await ws.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        lobby.discard(listener_id)


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    session: SessionHandler = ws.app.state.session
    await ws.accept()
    conn_id = uuid.uuid4().hex
    session.connect(conn_id, ws)
    try:
        await ws.send_json({"type": "welcome", "id": conn_id})
        while True:
            try:
                data = await ws.receive_json()
            except ValueError:
                await ws.send_json({"type": "error", "code": "MalformedEvent", "message": "Invalid JSON"})
                continue
            await session.handle(conn_id, data)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("websocket error for connection %s", conn_id)
    finally:
        await session.disconnect(conn_id)
