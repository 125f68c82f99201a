"""
Round lifecycle schemas
"""

from pydantic import BaseModel
from typing import Optional, List

class AdvanceRoundRequest(BaseModel):
    """Body of advance-round and start"""
    room_id: Optional[str] = None
    user_id: Optional[str] = None

class ScorePromptsRequest(BaseModel):
    room_id: Optional[str] = None
    round_id: Optional[str] = None
    image_url: Optional[str] = None

class SubmitPromptRequest(BaseModel):
    room_id: Optional[str] = None
    round_id: Optional[str] = None
    user_id: Optional[str] = None
    prompt_text: Optional[str] = None

class Evaluation(BaseModel):
    """One scored prompt as returned by the model"""
    user_id: str
    prompt_id: str
    score: int
    reason: str = ""

class ScorePromptsResponse(BaseModel):
    success: bool = True
    evaluations: List[Evaluation]

class PromptResult(BaseModel):
    """Per-round leaderboard row"""
    id: str
    prompt_text: str
    scores: Optional[int] = None
    justification: Optional[str] = None
    user_id: str
    name: Optional[str] = None
