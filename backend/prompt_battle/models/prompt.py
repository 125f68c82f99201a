"""
Prompt submission data model
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from prompt_battle.core.database import Base
from prompt_battle.core.utils import new_id

class Prompt(Base):
    """A player's locked-in prompt for a round"""
    __tablename__ = "prompts"
    __table_args__ = (UniqueConstraint("round_id", "user_id", name="uq_round_prompt"),)

    id = Column(String(36), primary_key=True, default=new_id)
    round_id = Column(String(36), ForeignKey("rounds.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    prompt_text = Column(Text, nullable=False)
    score = Column(Integer, nullable=True)          # set by the scoring pass
    justification = Column(Text, nullable=True)     # model feedback
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # relationships
    round = relationship("Round", back_populates="prompts")
    user = relationship("User")
