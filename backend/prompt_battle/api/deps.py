"""
Shared route dependencies
"""

from typing import Optional
from prompt_battle.core.config import settings
from prompt_battle.core.database import SessionLocal
from prompt_battle.services.websocket_service import ConnectionManager
from prompt_battle.services.scoring_service import ScoringService
from prompt_battle.services.phase_timer import PhaseTimer

# process-wide singletons
_manager = None
_phase_timer = None

def get_connection_manager() -> ConnectionManager:
    """Global per-room WebSocket manager"""
    global _manager
    if _manager is None:
        _manager = ConnectionManager()
    return _manager

def get_scoring_service() -> ScoringService:
    return ScoringService()

def get_phase_timer() -> Optional[PhaseTimer]:
    """Server-side phase timer, None unless SERVER_PHASE_TIMER is on"""
    global _phase_timer
    if not settings.SERVER_PHASE_TIMER:
        return None
    if _phase_timer is None:
        _phase_timer = PhaseTimer(SessionLocal, get_connection_manager())
    return _phase_timer
