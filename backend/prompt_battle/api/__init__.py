"""
API routers
"""

from fastapi import APIRouter
from .user_routes import router as user_router
from .room_routes import router as room_router
from .battle_routes import router as battle_router
from .image_routes import router as image_router
from .websocket_routes import router as ws_router

# main router
api_router = APIRouter()

api_router.include_router(user_router, prefix="/users", tags=["users"])
api_router.include_router(room_router, prefix="/room", tags=["rooms"])
api_router.include_router(battle_router, prefix="/battle", tags=["battle"])
api_router.include_router(image_router, prefix="/images", tags=["images"])
api_router.include_router(ws_router, prefix="/ws", tags=["websocket"])
