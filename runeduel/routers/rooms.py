from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Request

from ..registry import RoomRegistry
from ..schemas import LobbySummary

router = APIRouter(prefix="", tags=["rooms"])


def get_registry(request: Request) -> RoomRegistry:
    return request.app.state.registry


# ---------------------------------------------------------------------------
# Lobby listing
# ---------------------------------------------------------------------------


@router.get("/rooms", response_model=List[LobbySummary])
async def list_rooms(registry: RoomRegistry = Depends(get_registry)):
    return registry.list_active()
