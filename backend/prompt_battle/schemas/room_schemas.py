"""
Room and player schemas
"""

from pydantic import BaseModel, Field, field_serializer
from typing import Optional, List
from datetime import datetime
from prompt_battle.core.utils import format_timestamp_with_timezone

class UserCreate(BaseModel):
    """Register a display name"""
    name: str = Field(..., min_length=1, max_length=50, description="Display name")

class UserResponse(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True

class RoomCreate(BaseModel):
    """Create-room request; total_rounds is clamped, not rejected"""
    title: str = Field(default="", max_length=100, description="Room name")
    user_id: Optional[str] = Field(default=None, description="Creator, becomes host")
    total_rounds: Optional[int] = Field(default=None, description="Number of rounds")

class RoomCreated(BaseModel):
    roomId: str

class JoinRequest(BaseModel):
    user_id: Optional[str] = None

class ReadyRequest(BaseModel):
    """Ready toggle"""
    room_id: Optional[str] = None
    user_id: Optional[str] = None
    is_ready: bool = True

class PlayerInfo(BaseModel):
    """Player row as shown in the sidebar and leaderboard"""
    user_id: str
    name: Optional[str] = None
    is_host: bool
    is_ready: bool
    total_score: int = 0

class CurrentRound(BaseModel):
    round_id: str
    round_number: int
    image_url: str
    status: str
    started_at: datetime

    @field_serializer('started_at')
    def serialize_dt(self, dt: Optional[datetime]) -> Optional[str]:
        return format_timestamp_with_timezone(dt)

class RoomState(BaseModel):
    """Room snapshot for clients that (re)load the page"""
    id: str
    title: str
    phase: str
    current_round: int
    total_rounds: int
    round: Optional[CurrentRound] = None
    players: List[PlayerInfo] = []
