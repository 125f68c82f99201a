"""
User routes
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from prompt_battle.core.database import get_db
from prompt_battle.services.room_service import RoomService
from prompt_battle.schemas.room_schemas import UserCreate, UserResponse

router = APIRouter()

@router.post("", response_model=UserResponse)
async def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db)
):
    """Register a display name"""
    return await RoomService(db).create_user(user_data)
