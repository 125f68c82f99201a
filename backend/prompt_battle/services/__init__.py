# Business logic services
from .websocket_service import ConnectionManager
from .scoring_service import ScoringService
from .image_service import ImageService
from .room_service import RoomService
from .battle_service import BattleService
from .phase_timer import PhaseTimer

__all__ = ["ConnectionManager", "ScoringService", "ImageService", "RoomService", "BattleService", "PhaseTimer"]
