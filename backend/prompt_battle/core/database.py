"""
Database setup
"""
import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from prompt_battle.core.config import settings

logger = logging.getLogger(__name__)

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=connect_args,
    echo=False  # True logs every SQL statement
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    """Yield a database session for one request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def import_models():
    """Register every model on Base.metadata"""
    from prompt_battle.models.user import User
    from prompt_battle.models.room import Room
    from prompt_battle.models.room_player import RoomPlayer
    from prompt_battle.models.player_score import PlayerScore
    from prompt_battle.models.round_model import Round
    from prompt_battle.models.prompt import Prompt
    from prompt_battle.models.image import Image

async def init_db():
    """Create all tables"""
    import_models()
    Base.metadata.create_all(bind=engine)
    logger.info("✅ Database tables ready")
