"""
Per-room WebSocket broadcast channel
"""

import json
import logging
from fastapi import WebSocket
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def broadcast_message(event: str, payload: Optional[Dict[str, Any]] = None) -> dict:
    """Envelope every realtime event is wrapped in"""
    return {"type": "broadcast", "event": event, "payload": payload or {}}


class ConnectionManager:
    """Tracks the sockets subscribed to each room and fans events out to them"""

    def __init__(self):
        self.room_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, room_id: str):
        await websocket.accept()
        if room_id not in self.room_connections:
            self.room_connections[room_id] = []

        # the same socket is only registered once
        if websocket not in self.room_connections[room_id]:
            self.room_connections[room_id].append(websocket)
            logger.info(f"🔌 New connection in room {room_id}, connections: {len(self.room_connections[room_id])}")

    def disconnect(self, websocket: WebSocket, room_id: str):
        if room_id in self.room_connections:
            if websocket in self.room_connections[room_id]:
                self.room_connections[room_id].remove(websocket)
                logger.info(f"🔌 Connection left room {room_id}, connections: {len(self.room_connections[room_id])}")
            if not self.room_connections[room_id]:
                del self.room_connections[room_id]

    def connection_count(self, room_id: str) -> int:
        return len(self.room_connections.get(room_id, []))

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        try:
            await websocket.send_text(json.dumps(message, ensure_ascii=False))
        except Exception as e:
            logger.warning(f"Failed to send personal message: {e}")

    async def broadcast(self, room_id: str, event: str, payload: Optional[Dict[str, Any]] = None):
        """Send a named event to every socket in the room"""
        await self.broadcast_to_room(broadcast_message(event, payload), room_id)

    async def broadcast_to_room(self, message: dict, room_id: str):
        connections = list(self.room_connections.get(room_id, []))
        if not connections:
            logger.info(f"⚠️ Room {room_id} has no connections, skipping {message.get('event', 'unknown')}")
            return

        logger.info(f"📡 Broadcasting {message.get('event', 'unknown')} to {len(connections)} connections in room {room_id}")

        message_text = json.dumps(message, ensure_ascii=False)
        failed_connections = []

        for connection in connections:
            try:
                await connection.send_text(message_text)
            except Exception as e:
                logger.warning(f"Broadcast to one connection failed: {e}")
                failed_connections.append(connection)

        # drop dead sockets
        for failed_connection in failed_connections:
            self.disconnect(failed_connection, room_id)

        if failed_connections:
            logger.info(f"Removed {len(failed_connections)} dead connections from room {room_id}")
