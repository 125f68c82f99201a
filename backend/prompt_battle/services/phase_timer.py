"""
Server-owned phase timers
"""

import asyncio
import logging
from typing import Callable, Dict, Optional
from sqlalchemy.orm import Session
from prompt_battle.core.errors import BattleError
from prompt_battle.services.battle_service import BattleService
from prompt_battle.services.scoring_service import ScoringService
from prompt_battle.services.websocket_service import ConnectionManager

logger = logging.getLogger(__name__)


class PhaseTimer:
    """One pending task per room: score when the submission window ends,
    advance when the intermission ends.

    Scheduling a room's next step replaces whatever was pending for it.
    """

    def __init__(self, session_factory: Callable[[], Session], manager: ConnectionManager,
                 scoring_service_factory: Callable[[], ScoringService] = ScoringService):
        self.session_factory = session_factory
        self.manager = manager
        self.scoring_service_factory = scoring_service_factory
        self._tasks: Dict[str, asyncio.Task] = {}

    def task_for(self, room_id: str) -> Optional[asyncio.Task]:
        return self._tasks.get(room_id)

    def cancel(self, room_id: str):
        task = self._tasks.pop(room_id, None)
        # a timer task may cancel its own room while finishing the game
        if task and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def cancel_all(self):
        for room_id in list(self._tasks):
            self.cancel(room_id)

    def _schedule(self, room_id: str, coro):
        self.cancel(room_id)
        task = asyncio.create_task(coro)
        self._tasks[room_id] = task
        task.add_done_callback(lambda t: self._forget(room_id, t))

    def _forget(self, room_id: str, task: asyncio.Task):
        if self._tasks.get(room_id) is task:
            del self._tasks[room_id]

    def _service(self, db: Session) -> BattleService:
        return BattleService(db, self.manager, self.scoring_service_factory(), self)

    def schedule_scoring(self, room_id: str, round_id: str, image_url: str, delay: float):
        logger.info(f"⏰ Room {room_id}: scoring in {delay}s")
        self._schedule(room_id, self._score_later(room_id, round_id, image_url, delay))

    def schedule_advance(self, room_id: str, delay: float):
        logger.info(f"⏰ Room {room_id}: next round in {delay}s")
        self._schedule(room_id, self._advance_later(room_id, delay))

    async def _score_later(self, room_id: str, round_id: str, image_url: str, delay: float):
        await asyncio.sleep(delay)
        db = self.session_factory()
        try:
            service = self._service(db)
            await service.score_prompts(room_id, round_id, image_url, allow_empty=True)
            await service.announce_intermission(room_id, round_id)
        except BattleError as e:
            logger.warning(f"⚠️ Timed scoring for room {room_id} stopped: {e.message}")
        except Exception:
            logger.exception(f"❌ Timed scoring for room {room_id} crashed")
        finally:
            db.close()

    async def _advance_later(self, room_id: str, delay: float):
        await asyncio.sleep(delay)
        db = self.session_factory()
        try:
            await self._service(db).advance_room(room_id)
        except BattleError as e:
            logger.warning(f"⚠️ Timed advance for room {room_id} stopped: {e.message}")
        except Exception:
            logger.exception(f"❌ Timed advance for room {room_id} crashed")
        finally:
            db.close()
