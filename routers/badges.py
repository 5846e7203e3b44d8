"""
routers/badges.py - Badge Catalog

- GET /api/badges: Every badge a group can earn
"""

from typing import List

from fastapi import APIRouter

import schemas
from services.badges import badge_catalog

router = APIRouter(prefix="/api", tags=["Badges"])


@router.get("/badges", response_model=List[schemas.BadgeInfo], summary="List all badges")
def list_badges():
    return badge_catalog()
