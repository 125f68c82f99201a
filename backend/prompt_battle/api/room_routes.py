"""
Room routes
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from prompt_battle.core.database import get_db
from prompt_battle.core.errors import BattleError
from prompt_battle.api.deps import get_connection_manager
from prompt_battle.services.room_service import RoomService
from prompt_battle.services.websocket_service import ConnectionManager
from prompt_battle.schemas.room_schemas import (
    RoomCreate, RoomCreated, JoinRequest, ReadyRequest, PlayerInfo, RoomState
)

router = APIRouter()

@router.post("/create", response_model=RoomCreated)
async def create_room(
    room_data: RoomCreate,
    db: Session = Depends(get_db)
):
    """Create a room, the creator is its host"""
    try:
        room = await RoomService(db).create_room(room_data)
    except BattleError as e:
        raise e.to_http()
    return RoomCreated(roomId=room.id)

@router.post("/ready")
async def set_ready(
    request: ReadyRequest,
    db: Session = Depends(get_db),
    manager: ConnectionManager = Depends(get_connection_manager)
):
    """Toggle a player's ready flag"""
    try:
        player = await RoomService(db).set_ready(request.room_id, request.user_id, request.is_ready)
    except BattleError as e:
        raise e.to_http()
    await manager.broadcast(request.room_id, "players_updated", {"room_id": request.room_id})
    return {"success": True, "is_ready": player.is_ready}

@router.get("/{room_id}", response_model=RoomState)
async def get_room(
    room_id: str,
    db: Session = Depends(get_db)
):
    """Room snapshot"""
    try:
        return await RoomService(db).get_room_state(room_id)
    except BattleError as e:
        raise e.to_http()

@router.post("/{room_id}/join")
async def join_room(
    room_id: str,
    request: JoinRequest,
    db: Session = Depends(get_db),
    manager: ConnectionManager = Depends(get_connection_manager)
):
    """Ensure the caller has a player row in the room"""
    try:
        player = await RoomService(db).join_room(room_id, request.user_id)
    except BattleError as e:
        raise e.to_http()
    await manager.broadcast(room_id, "players_updated", {"room_id": room_id})
    return {"user_id": player.user_id, "is_host": player.is_host, "is_ready": player.is_ready}

@router.get("/{room_id}/players", response_model=List[PlayerInfo])
async def list_players(
    room_id: str,
    db: Session = Depends(get_db)
):
    """Players and cumulative scores, best first"""
    try:
        return await RoomService(db).list_players(room_id)
    except BattleError as e:
        raise e.to_http()
