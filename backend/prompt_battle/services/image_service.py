"""
Image pool service
"""

import logging
import random
from typing import List
from sqlalchemy.orm import Session
from prompt_battle.core.errors import BadRequestError, NotFoundError
from prompt_battle.models.image import Image
from prompt_battle.schemas.image_schemas import ImageInfo

logger = logging.getLogger(__name__)


class ImageService:
    """Candidate images for rounds"""

    def __init__(self, db: Session):
        self.db = db

    async def import_images(self, urls: List[str]) -> int:
        """Add urls to the pool, skipping blanks and ones already present"""
        existing = {url for (url,) in self.db.query(Image.url).all()}
        imported = 0
        for url in urls:
            url = url.strip()
            if not url or url in existing:
                continue
            self.db.add(Image(url=url))
            existing.add(url)
            imported += 1

        if not imported and not urls:
            raise BadRequestError("No image urls given")

        self.db.commit()
        logger.info(f"🖼️ Imported {imported} images")
        return imported

    async def list_images(self) -> List[ImageInfo]:
        images = self.db.query(Image).order_by(Image.id).all()
        return [ImageInfo.model_validate(image) for image in images]

    def pick_random(self) -> Image:
        """Uniformly random image from the pool"""
        images = self.db.query(Image).all()
        if not images:
            raise NotFoundError("No images available")
        return random.choice(images)
