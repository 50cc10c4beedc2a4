from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from ..schemas import Category, RoomSummary
from ..state import ServerState

router = APIRouter(prefix="", tags=["rooms"])


def get_state(request: Request) -> ServerState:
    return request.app.state.trivia


@router.get("/rooms", response_model=List[RoomSummary])
async def list_rooms(state: ServerState = Depends(get_state)):
    return state.registry.summaries()


@router.get("/rooms/{room_id}", response_model=RoomSummary)
async def get_room(room_id: str, state: ServerState = Depends(get_state)):
    room = state.registry.get_room(room_id)
    if room is None:
        raise HTTPException(status_code=404, detail="Room not found")
    return room.summary()


@router.get("/categories", response_model=List[Category])
async def list_categories(state: ServerState = Depends(get_state)):
    return state.supplier.get_categories()
