"""
Room management service
"""

import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from prompt_battle.core.config import settings
from prompt_battle.core.errors import BadRequestError, NotFoundError
from prompt_battle.core.utils import clamp
from prompt_battle.models.user import User
from prompt_battle.models.room import Room
from prompt_battle.models.room_player import RoomPlayer
from prompt_battle.models.player_score import PlayerScore
from prompt_battle.models.round_model import Round
from prompt_battle.schemas.room_schemas import (
    UserCreate, UserResponse, RoomCreate, PlayerInfo, CurrentRound, RoomState
)

logger = logging.getLogger(__name__)


class RoomService:
    """Users, rooms, membership and readiness"""

    def __init__(self, db: Session):
        self.db = db

    async def create_user(self, user_data: UserCreate) -> UserResponse:
        user = User(name=user_data.name.strip())
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return UserResponse.model_validate(user)

    def get_user(self, user_id: str) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        return user

    def get_room(self, room_id: str) -> Room:
        room = self.db.query(Room).filter(Room.id == room_id).first()
        if not room:
            raise NotFoundError("Room not found")
        return room

    async def create_room(self, room_data: RoomCreate) -> Room:
        """Create a room; the creator becomes its host"""
        if not room_data.user_id:
            raise BadRequestError("Missing params")
        self.get_user(room_data.user_id)

        total_rounds = room_data.total_rounds
        if total_rounds is None:
            total_rounds = settings.DEFAULT_ROUNDS
        total_rounds = clamp(total_rounds, settings.MIN_ROUNDS, settings.MAX_ROUNDS)

        room = Room(
            title=room_data.title.strip(),
            current_round=0,
            total_rounds=total_rounds,
            status="waiting"
        )
        self.db.add(room)
        self.db.flush()

        self.db.add(RoomPlayer(room_id=room.id, user_id=room_data.user_id, is_host=True, is_ready=False))
        self.db.commit()
        self.db.refresh(room)

        logger.info(f"🏠 Room {room.id} created by {room_data.user_id} with {total_rounds} rounds")
        return room

    def find_player(self, room_id: str, user_id: str) -> Optional[RoomPlayer]:
        return self.db.query(RoomPlayer).filter(
            RoomPlayer.room_id == room_id,
            RoomPlayer.user_id == user_id
        ).first()

    def ensure_player(self, room_id: str, user_id: str) -> RoomPlayer:
        """Player row for (room, user), created as a non-host on first visit.

        Does not commit, callers commit with their own writes.
        """
        player = self.find_player(room_id, user_id)
        if player:
            return player
        player = RoomPlayer(room_id=room_id, user_id=user_id, is_host=False, is_ready=False)
        self.db.add(player)
        self.db.flush()
        return player

    async def join_room(self, room_id: str, user_id: Optional[str]) -> RoomPlayer:
        if not user_id:
            raise BadRequestError("Missing params")
        self.get_room(room_id)
        self.get_user(user_id)

        player = self.find_player(room_id, user_id)
        if not player:
            player = self.ensure_player(room_id, user_id)
            self.db.commit()
            logger.info(f"👋 {user_id} joined room {room_id}")
        return player

    async def set_ready(self, room_id: Optional[str], user_id: Optional[str], is_ready: bool) -> RoomPlayer:
        if not room_id or not user_id:
            raise BadRequestError("Missing params")
        self.get_room(room_id)

        player = self.find_player(room_id, user_id)
        if not player:
            raise NotFoundError("Player not in room")

        player.is_ready = is_ready
        self.db.commit()
        return player

    def all_players_ready(self, room_id: str) -> bool:
        """True when every non-host player is ready (vacuously true when alone)"""
        not_ready = self.db.query(RoomPlayer).filter(
            RoomPlayer.room_id == room_id,
            RoomPlayer.is_host.is_(False),
            RoomPlayer.is_ready.is_(False)
        ).count()
        return not_ready == 0

    async def list_players(self, room_id: str) -> List[PlayerInfo]:
        """Players with their cumulative score, best first"""
        self.get_room(room_id)

        rows = self.db.query(RoomPlayer, User.name, PlayerScore.total_score).outerjoin(
            User, User.id == RoomPlayer.user_id
        ).outerjoin(
            PlayerScore,
            (PlayerScore.room_id == RoomPlayer.room_id) & (PlayerScore.user_id == RoomPlayer.user_id)
        ).filter(RoomPlayer.room_id == room_id).order_by(RoomPlayer.joined_at, RoomPlayer.id).all()

        players = [
            PlayerInfo(
                user_id=player.user_id,
                name=name,
                is_host=bool(player.is_host),
                is_ready=bool(player.is_ready),
                total_score=total_score or 0
            )
            for player, name, total_score in rows
        ]
        players.sort(key=lambda p: p.total_score, reverse=True)
        return players

    def latest_round(self, room_id: str) -> Optional[Round]:
        return self.db.query(Round).filter(
            Round.room_id == room_id
        ).order_by(Round.round_number.desc()).first()

    async def get_room_state(self, room_id: str) -> RoomState:
        room = self.get_room(room_id)
        latest = self.latest_round(room_id)

        current = None
        if latest:
            current = CurrentRound(
                round_id=latest.id,
                round_number=latest.round_number,
                image_url=latest.image.url,
                status=latest.status,
                started_at=latest.started_at
            )

        return RoomState(
            id=room.id,
            title=room.title,
            phase=room.status,
            current_round=room.current_round,
            total_rounds=room.total_rounds,
            round=current,
            players=await self.list_players(room_id)
        )
