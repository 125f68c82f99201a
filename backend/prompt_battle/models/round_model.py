"""
Round data model
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from prompt_battle.core.database import Base
from prompt_battle.core.utils import new_id, utcnow

class Round(Base):
    """One image per round, one row per round number per room"""
    __tablename__ = "rounds"
    __table_args__ = (UniqueConstraint("room_id", "round_number", name="uq_room_round"),)

    id = Column(String(36), primary_key=True, default=new_id)
    room_id = Column(String(36), ForeignKey("rooms.id"), nullable=False, index=True)
    round_number = Column(Integer, nullable=False)
    image_id = Column(Integer, ForeignKey("images.id"), nullable=False)
    status = Column(String(20), nullable=False, default="submission")  # submission, scoring, scored
    started_at = Column(DateTime, nullable=False, default=utcnow)
    scored_at = Column(DateTime, nullable=True)

    # relationships
    room = relationship("Room", back_populates="rounds")
    image = relationship("Image")
    prompts = relationship("Prompt", back_populates="round", cascade="all, delete-orphan")
