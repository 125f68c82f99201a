"""
Image pool schemas
"""

from pydantic import BaseModel, Field
from typing import List

class ImageImport(BaseModel):
    urls: List[str] = Field(..., description="Image URLs to add to the pool")

class ImageInfo(BaseModel):
    id: int
    url: str

    class Config:
        from_attributes = True
