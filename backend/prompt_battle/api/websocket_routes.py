"""
WebSocket routes
"""

import json
import logging
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Depends
from sqlalchemy.orm import Session
from prompt_battle.core.database import get_db
from prompt_battle.api.deps import get_connection_manager
from prompt_battle.services.battle_service import BattleService
from prompt_battle.services.websocket_service import ConnectionManager

logger = logging.getLogger(__name__)

router = APIRouter()

@router.websocket("/room/{room_id}")
async def websocket_room_endpoint(
    websocket: WebSocket,
    room_id: str,
    db: Session = Depends(get_db),
    manager: ConnectionManager = Depends(get_connection_manager)
):
    """Realtime phase channel of a room"""
    await manager.connect(websocket, room_id)

    try:
        await manager.send_personal_message({
            "type": "connected",
            "room_id": room_id
        }, websocket)

        # bring a reloaded tab back to the current phase
        for message in BattleService(db, manager).replay_events(room_id):
            logger.info(f"🔄 Replaying {message['event']} to new connection in room {room_id}")
            await manager.send_personal_message(message, websocket)

        while True:
            data = await websocket.receive_text()
            try:
                message_data = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Ignoring invalid JSON from room {room_id}: {data[:100]}")
                continue

            if isinstance(message_data, dict) and message_data.get("type") == "ping":
                await manager.send_personal_message({
                    "type": "pong",
                    "timestamp": message_data.get("timestamp")
                }, websocket)

    except WebSocketDisconnect:
        logger.info(f"Client left room {room_id}")
    finally:
        manager.disconnect(websocket, room_id)
