"""
Round lifecycle service

waiting -> submission -> results -> (submission | finished)
"""

import asyncio
import logging
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from prompt_battle.core.config import settings
from prompt_battle.core.errors import (
    BadRequestError, ForbiddenError, NotFoundError, ConflictError
)
from prompt_battle.core.utils import utcnow
from prompt_battle.models.user import User
from prompt_battle.models.room import Room
from prompt_battle.models.player_score import PlayerScore
from prompt_battle.models.round_model import Round
from prompt_battle.models.prompt import Prompt
from prompt_battle.schemas.battle_schemas import Evaluation, PromptResult
from prompt_battle.services.room_service import RoomService
from prompt_battle.services.image_service import ImageService
from prompt_battle.services.scoring_service import ScoringService
from prompt_battle.services.websocket_service import ConnectionManager, broadcast_message

logger = logging.getLogger(__name__)


def phase_update_payload(round_obj: Round, image_url: str, seconds: int) -> dict:
    return {
        "phase": "submission",
        "time": seconds,
        "image_url": image_url,
        "round_id": round_obj.id,
        "round_number": round_obj.round_number,
    }


def intermission_payload(round_id: str, seconds: int) -> dict:
    return {"seconds": seconds, "round_id": round_id}


class BattleService:
    """Advance, submission and scoring of rounds"""

    def __init__(self, db: Session, manager: ConnectionManager,
                 scoring_service: Optional[ScoringService] = None, phase_timer=None):
        self.db = db
        self.manager = manager
        self.scoring_service = scoring_service or ScoringService()
        # optional PhaseTimer, drives scoring and advance from the server
        self.phase_timer = phase_timer
        self.room_service = RoomService(db)
        self.image_service = ImageService(db)

    def _require_host(self, room_id: Optional[str], user_id: Optional[str]):
        if not room_id or not user_id:
            raise BadRequestError("Missing params")

        player = self.room_service.find_player(room_id, user_id)
        if not player or not player.is_host:
            raise ForbiddenError("Only host allowed")

    def _get_round(self, room_id: str, round_id: str) -> Round:
        round_obj = self.db.query(Round).filter(Round.id == round_id).first()
        if not round_obj or round_obj.room_id != room_id:
            raise NotFoundError("Round not found")
        return round_obj

    def _get_current_round(self, room_id: str, round_id: str) -> Round:
        """The round, provided a later one has not replaced it"""
        round_obj = self._get_round(room_id, round_id)
        latest = self.room_service.latest_round(room_id)
        if latest.id != round_obj.id:
            raise ConflictError("Round is no longer current")
        return round_obj

    def _round_blocks_advance(self, round_obj: Round) -> bool:
        """A round being scored, or still inside its submission window, holds the room"""
        if round_obj.status == "scored":
            return False
        if round_obj.status == "scoring":
            return True
        elapsed = (utcnow() - round_obj.started_at).total_seconds()
        return elapsed < settings.SUBMISSION_SECONDS

    # ---- advance ----

    async def advance_round(self, room_id: Optional[str], user_id: Optional[str]) -> dict:
        """Host-only advance to the next round, or finish the game"""
        self._require_host(room_id, user_id)
        return await self.advance_room(room_id)

    async def start_round(self, room_id: Optional[str], user_id: Optional[str]) -> dict:
        """Host-only start, requires every other player to be ready"""
        self._require_host(room_id, user_id)
        self.room_service.get_room(room_id)
        if not self.room_service.all_players_ready(room_id):
            raise ConflictError("Not all players are ready")
        return await self.advance_room(room_id)

    async def advance_room(self, room_id: str) -> dict:
        room = self.room_service.get_room(room_id)

        next_round = room.current_round + 1
        if next_round > room.total_rounds:
            await self._finish_game(room)
            return {"finished": True}

        latest = self.room_service.latest_round(room_id)
        if latest and self._round_blocks_advance(latest):
            raise ConflictError("Round still in progress")

        image = self.image_service.pick_random()

        room.current_round = next_round
        room.status = "submission"
        round_obj = Round(
            room_id=room.id,
            round_number=next_round,
            image_id=image.id,
            status="submission"
        )
        self.db.add(round_obj)
        try:
            self.db.commit()
        except IntegrityError:
            # another request created this round number first
            self.db.rollback()
            raise ConflictError("Round already advanced")
        self.db.refresh(round_obj)

        logger.info(f"🎬 Room {room_id} round {next_round}/{room.total_rounds} started with image {image.id}")

        await self.manager.broadcast(
            room_id, "phase_update",
            phase_update_payload(round_obj, image.url, settings.SUBMISSION_SECONDS)
        )

        if self.phase_timer:
            self.phase_timer.schedule_scoring(room_id, round_obj.id, image.url, settings.SUBMISSION_SECONDS)

        return {"success": True}

    async def _finish_game(self, room: Room):
        if room.status != "finished":
            room.status = "finished"
            self.db.commit()
            logger.info(f"🏁 Room {room.id} finished after {room.current_round} rounds")

        await self.manager.broadcast(room.id, "game_finished", {})

        if self.phase_timer:
            self.phase_timer.cancel(room.id)

    # ---- submission ----

    async def submit_prompt(self, room_id: Optional[str], round_id: Optional[str],
                            user_id: Optional[str], prompt_text: Optional[str]) -> Prompt:
        if not room_id or not round_id or not user_id or prompt_text is None:
            raise BadRequestError("Missing params")

        prompt_text = prompt_text.strip()
        if not prompt_text:
            raise BadRequestError("Prompt text is empty")
        if len(prompt_text) > settings.MAX_PROMPT_LENGTH:
            raise BadRequestError(f"Prompt longer than {settings.MAX_PROMPT_LENGTH} characters")

        round_obj = self._get_current_round(room_id, round_id)
        if round_obj.status != "submission":
            raise ConflictError("Submission window closed")

        self.room_service.get_user(user_id)

        existing = self.db.query(Prompt).filter(
            Prompt.round_id == round_id,
            Prompt.user_id == user_id
        ).first()
        if existing:
            raise ConflictError("Prompt already submitted")

        self.room_service.ensure_player(room_id, user_id)
        prompt = Prompt(round_id=round_id, user_id=user_id, prompt_text=prompt_text)
        self.db.add(prompt)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Prompt already submitted")
        self.db.refresh(prompt)

        logger.info(f"✍️ {user_id} locked in a prompt for round {round_id}")
        return prompt

    # ---- scoring ----

    def _claim_round(self, round_id: str) -> bool:
        """Move the round from submission to scoring, False if someone else did"""
        claimed = self.db.query(Round).filter(
            Round.id == round_id,
            Round.status == "submission"
        ).update({"status": "scoring"}, synchronize_session=False)
        self.db.commit()
        return claimed == 1

    def _release_round(self, round_id: str):
        self.db.query(Round).filter(
            Round.id == round_id,
            Round.status == "scoring"
        ).update({"status": "submission"}, synchronize_session=False)
        self.db.commit()

    def _increment_score(self, room_id: str, user_id: str, points: int):
        updated = self.db.query(PlayerScore).filter(
            PlayerScore.room_id == room_id,
            PlayerScore.user_id == user_id
        ).update({PlayerScore.total_score: PlayerScore.total_score + points}, synchronize_session=False)
        if not updated:
            self.db.add(PlayerScore(room_id=room_id, user_id=user_id, total_score=points))
            self.db.flush()

    async def score_prompts(self, room_id: Optional[str], round_id: Optional[str],
                            image_url: Optional[str], allow_empty: bool = False) -> List[Evaluation]:
        """Score every prompt of the round and broadcast results_ready.

        A round is scored at most once; a second call gets ConflictError.
        With allow_empty a round without prompts is closed with no scores
        instead of being rejected.
        """
        if not room_id or not round_id or not image_url:
            raise BadRequestError("Missing room_id, round_id or image_url")

        logger.info(f"🔥 Score prompts hit room={room_id} round={round_id}")

        round_obj = self._get_current_round(room_id, round_id)
        if round_obj.status != "submission":
            raise ConflictError("Round already scored")

        prompts = self.db.query(Prompt).filter(
            Prompt.round_id == round_id
        ).order_by(Prompt.created_at, Prompt.id).all()

        if not prompts and not allow_empty:
            raise BadRequestError("No prompts found")

        if not self._claim_round(round_id):
            raise ConflictError("Round already scored")

        try:
            evaluations: List[Evaluation] = []
            if prompts:
                evaluations = await self.scoring_service.score(image_url, [
                    {"id": p.id, "user_id": p.user_id, "prompt_text": p.prompt_text}
                    for p in prompts
                ])

            applied = self._apply_evaluations(room_id, prompts, evaluations)

            round_obj.status = "scored"
            round_obj.scored_at = utcnow()
            room = self.room_service.get_room(room_id)
            if room.status != "finished":
                room.status = "results"
            self.db.commit()
        except Exception:
            # let a retry score the round
            self.db.rollback()
            self._release_round(round_id)
            raise

        logger.info(f"🏆 Round {round_id} scored: {len(applied)}/{len(prompts)} prompts")

        await self.manager.broadcast(room_id, "results_ready", {"round_id": round_id})
        return applied

    def _apply_evaluations(self, room_id: str, prompts: List[Prompt],
                           evaluations: List[Evaluation]) -> List[Evaluation]:
        """Write per-prompt scores and add them to the running totals"""
        pending = {p.id: p for p in prompts}
        applied = []
        for ev in evaluations:
            prompt = pending.pop(ev.prompt_id, None)
            if prompt is None:
                logger.warning(f"⚠️ Ignoring evaluation for unknown or repeated prompt {ev.prompt_id}")
                continue

            prompt.score = ev.score
            prompt.justification = ev.reason

            # scores belong to the prompt's author, not to whatever user id the model echoed
            self.room_service.ensure_player(room_id, prompt.user_id)
            self._increment_score(room_id, prompt.user_id, ev.score)

            applied.append(Evaluation(
                user_id=prompt.user_id,
                prompt_id=prompt.id,
                score=ev.score,
                reason=ev.reason
            ))

        if pending:
            logger.warning(f"⚠️ Model returned no score for {len(pending)} prompts")
        return applied

    async def announce_intermission(self, room_id: str, round_id: str, delay_ms: Optional[int] = None):
        """Send intermission shortly after results_ready"""
        if delay_ms is None:
            delay_ms = settings.INTERMISSION_DELAY_MS
        await asyncio.sleep(delay_ms / 1000)

        await self.manager.broadcast(
            room_id, "intermission",
            intermission_payload(round_id, settings.INTERMISSION_SECONDS)
        )

        if self.phase_timer:
            self.phase_timer.schedule_advance(room_id, settings.INTERMISSION_SECONDS)

    # ---- reads ----

    async def get_round_results(self, round_id: str) -> List[PromptResult]:
        """Prompts of a round, best score first, unscored last"""
        round_obj = self.db.query(Round).filter(Round.id == round_id).first()
        if not round_obj:
            raise NotFoundError("Round not found")

        rows = self.db.query(Prompt, User.name).outerjoin(
            User, User.id == Prompt.user_id
        ).filter(Prompt.round_id == round_id).order_by(Prompt.created_at, Prompt.id).all()

        results = [
            PromptResult(
                id=prompt.id,
                prompt_text=prompt.prompt_text,
                scores=prompt.score,
                justification=prompt.justification,
                user_id=prompt.user_id,
                name=name
            )
            for prompt, name in rows
        ]
        results.sort(key=lambda r: (r.scores is None, -(r.scores or 0)))
        return results

    def replay_events(self, room_id: str) -> List[dict]:
        """Events that bring a freshly connected client up to the current phase"""
        room = self.db.query(Room).filter(Room.id == room_id).first()
        if not room:
            return []
        if room.status == "finished":
            return [broadcast_message("game_finished", {})]

        latest = self.room_service.latest_round(room_id)
        if not latest:
            return []

        now = utcnow()
        if latest.status in ("submission", "scoring"):
            elapsed = (now - latest.started_at).total_seconds()
            remaining = max(0, settings.SUBMISSION_SECONDS - int(elapsed))
            return [broadcast_message("phase_update", phase_update_payload(latest, latest.image.url, remaining))]

        messages = [broadcast_message("results_ready", {"round_id": latest.id})]
        if latest.scored_at:
            elapsed = (now - latest.scored_at).total_seconds()
            remaining = settings.INTERMISSION_SECONDS - int(elapsed)
            if remaining > 0:
                messages.append(broadcast_message("intermission", intermission_payload(latest.id, remaining)))
        return messages

    # ---- restart recovery ----

    async def resume_interrupted_rooms(self) -> int:
        """Re-arm phase timers for rooms that were mid-game when the server stopped"""
        if not self.phase_timer:
            return 0

        rooms = self.db.query(Room).filter(Room.status.in_(["submission", "results"])).all()
        resumed = 0
        now = utcnow()
        for room in rooms:
            latest = self.room_service.latest_round(room.id)
            if not latest:
                continue

            if latest.status == "scoring":
                # the scoring call died with the old process
                self._release_round(latest.id)
                self.db.refresh(latest)

            if latest.status == "submission":
                elapsed = (now - latest.started_at).total_seconds()
                delay = max(0, settings.SUBMISSION_SECONDS - int(elapsed))
                self.phase_timer.schedule_scoring(room.id, latest.id, latest.image.url, delay)
            else:
                elapsed = (now - (latest.scored_at or now)).total_seconds()
                delay = max(0, settings.INTERMISSION_SECONDS - int(elapsed))
                self.phase_timer.schedule_advance(room.id, delay)
            resumed += 1
            logger.info(f"🔄 Resumed room {room.id} at round {latest.round_number} ({latest.status})")

        return resumed
