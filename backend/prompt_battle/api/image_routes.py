"""
Image pool routes
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from prompt_battle.core.database import get_db
from prompt_battle.core.errors import BattleError
from prompt_battle.services.image_service import ImageService
from prompt_battle.schemas.image_schemas import ImageImport, ImageInfo

router = APIRouter()

@router.post("/import")
async def import_images(
    payload: ImageImport,
    db: Session = Depends(get_db)
):
    """Add images to the pool"""
    try:
        imported = await ImageService(db).import_images(payload.urls)
    except BattleError as e:
        raise e.to_http()
    return {"imported": imported}

@router.get("", response_model=List[ImageInfo])
async def list_images(db: Session = Depends(get_db)):
    return await ImageService(db).list_images()
