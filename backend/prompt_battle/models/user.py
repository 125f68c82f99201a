"""
User data model
"""

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from prompt_battle.core.database import Base
from prompt_battle.core.utils import new_id

class User(Base):
    """Player identity with a display name"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(50), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
