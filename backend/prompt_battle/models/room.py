"""
Room data model
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from prompt_battle.core.database import Base
from prompt_battle.core.utils import new_id

class Room(Base):
    """Game session table"""
    __tablename__ = "rooms"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(100), nullable=False, default="")
    current_round = Column(Integer, nullable=False, default=0)  # 0 until the first round starts
    total_rounds = Column(Integer, nullable=False, default=3)
    status = Column(String(20), nullable=False, default="waiting")  # waiting, submission, results, finished
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # relationships
    players = relationship("RoomPlayer", back_populates="room", cascade="all, delete-orphan")
    rounds = relationship("Round", back_populates="room", cascade="all, delete-orphan")
