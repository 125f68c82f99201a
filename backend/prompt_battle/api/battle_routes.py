"""
Round lifecycle routes
"""

import logging
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from prompt_battle.core.database import get_db
from prompt_battle.core.errors import BattleError
from prompt_battle.api.deps import get_connection_manager, get_scoring_service, get_phase_timer
from prompt_battle.services.battle_service import BattleService
from prompt_battle.services.phase_timer import PhaseTimer
from prompt_battle.services.scoring_service import ScoringService
from prompt_battle.services.websocket_service import ConnectionManager
from prompt_battle.schemas.battle_schemas import (
    AdvanceRoundRequest, ScorePromptsRequest, ScorePromptsResponse, SubmitPromptRequest, PromptResult
)

logger = logging.getLogger(__name__)

router = APIRouter()

def get_battle_service(
    db: Session = Depends(get_db),
    manager: ConnectionManager = Depends(get_connection_manager),
    scoring_service: ScoringService = Depends(get_scoring_service),
    phase_timer: Optional[PhaseTimer] = Depends(get_phase_timer)
) -> BattleService:
    return BattleService(db, manager, scoring_service, phase_timer)

@router.post("/advance-round")
async def advance_round(
    request: AdvanceRoundRequest,
    service: BattleService = Depends(get_battle_service)
):
    """Host moves the room to its next round, or finishes the game"""
    try:
        return await service.advance_round(request.room_id, request.user_id)
    except BattleError as e:
        raise e.to_http()

@router.post("/start")
async def start_round(
    request: AdvanceRoundRequest,
    service: BattleService = Depends(get_battle_service)
):
    """Host starts a round once every player is ready"""
    try:
        return await service.start_round(request.room_id, request.user_id)
    except BattleError as e:
        raise e.to_http()

@router.post("/submit-prompt")
async def submit_prompt(
    request: SubmitPromptRequest,
    service: BattleService = Depends(get_battle_service)
):
    """Lock in a player's prompt for the current round"""
    try:
        prompt = await service.submit_prompt(
            request.room_id, request.round_id, request.user_id, request.prompt_text
        )
    except BattleError as e:
        raise e.to_http()
    return {"success": True, "prompt_id": prompt.id}

@router.post("/score-prompts", response_model=ScorePromptsResponse)
async def score_prompts(
    request: ScorePromptsRequest,
    background_tasks: BackgroundTasks,
    service: BattleService = Depends(get_battle_service)
):
    """Score the round, broadcast results_ready now and intermission shortly after"""
    try:
        evaluations = await service.score_prompts(request.room_id, request.round_id, request.image_url)
    except BattleError as e:
        if e.status_code >= 500:
            logger.error(f"❌ Scoring failed for round {request.round_id}: {e.message}")
        raise e.to_http()

    background_tasks.add_task(service.announce_intermission, request.room_id, request.round_id)
    return ScorePromptsResponse(success=True, evaluations=evaluations)

@router.get("/rounds/{round_id}/results", response_model=List[PromptResult])
async def get_round_results(
    round_id: str,
    service: BattleService = Depends(get_battle_service)
):
    """Prompts of a round with scores and feedback"""
    try:
        return await service.get_round_results(round_id)
    except BattleError as e:
        raise e.to_http()
