#!/usr/bin/env python3
"""
Seed the image pool

Usage: python seed_images.py [url ...]
Without arguments a small default set is imported.
"""

import asyncio
import sys
import os
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from prompt_battle.core.database import get_db, init_db
from prompt_battle.services.image_service import ImageService

DEFAULT_IMAGES = [
    "https://images.unsplash.com/photo-1500530855697-b586d89ba3ee",
    "https://images.unsplash.com/photo-1501785888041-af3ef285b470",
    "https://images.unsplash.com/photo-1518791841217-8f162f1e1131",
    "https://images.unsplash.com/photo-1470071459604-3b5ec3a7fe05",
    "https://images.unsplash.com/photo-1519681393784-d120267933ba",
]

async def seed(urls):
    await init_db()
    db = next(get_db())
    try:
        imported = await ImageService(db).import_images(urls)
        print(f"✅ Imported {imported} images ({len(urls) - imported} already present)")
    finally:
        db.close()

if __name__ == "__main__":
    asyncio.run(seed(sys.argv[1:] or DEFAULT_IMAGES))
