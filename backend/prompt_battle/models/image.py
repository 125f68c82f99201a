"""
Image pool data model
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from prompt_battle.core.database import Base

class Image(Base):
    """Candidate images, read-only during a game"""
    __tablename__ = "images"

    id = Column(Integer, primary_key=True, index=True)
    url = Column(String(500), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
