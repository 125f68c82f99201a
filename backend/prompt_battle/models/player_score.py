"""
Cumulative score data model
"""

from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from prompt_battle.core.database import Base

class PlayerScore(Base):
    """Running total per player per room"""
    __tablename__ = "player_scores"
    __table_args__ = (UniqueConstraint("room_id", "user_id", name="uq_player_score"),)

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(String(36), ForeignKey("rooms.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    total_score = Column(Integer, nullable=False, default=0)
