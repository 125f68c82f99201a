#!/usr/bin/env python3
"""
Prompt Battle - backend entry point
"""

import logging
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prompt_battle.core.config import settings
from prompt_battle.core.errors import register_error_handlers
from prompt_battle.api import api_router
from prompt_battle.core.database import init_db, SessionLocal

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger("prompt_battle")

app = FastAPI(
    title=settings.APP_NAME,
    description="Multiplayer prompt battle: recreate the image, let the model judge",
    version=settings.VERSION
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# API routes
app.include_router(api_router, prefix="/api")

@app.on_event("startup")
async def startup_event():
    """Create tables and re-arm timers of interrupted rooms"""
    logger.info("🚀 Starting Prompt Battle backend...")
    await init_db()

    from prompt_battle.api.deps import get_connection_manager, get_phase_timer
    from prompt_battle.services.battle_service import BattleService

    phase_timer = get_phase_timer()
    if phase_timer is None:
        return

    db = SessionLocal()
    try:
        resumed = await BattleService(db, get_connection_manager(), phase_timer=phase_timer).resume_interrupted_rooms()
        logger.info(f"✅ Resumed {resumed} rooms")
    except Exception as e:
        logger.error(f"⚠️ Resuming rooms failed, they can be advanced manually: {e}")
    finally:
        db.close()

@app.on_event("shutdown")
async def shutdown_event():
    from prompt_battle.api.deps import get_phase_timer
    phase_timer = get_phase_timer()
    if phase_timer is not None:
        phase_timer.cancel_all()

@app.get("/")
async def root():
    """Health check"""
    return {"message": "Prompt Battle backend running", "status": "healthy"}

@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "prompt-battle"}

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
