from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lookmate.auth.deps import AuthUser, get_current_user
from lookmate.core.db import get_session
from lookmate.models.models import ClothingItem
from lookmate.recs.rules import generate_recommended_items
from lookmate.routers.data_helpers import build_item_out
from lookmate.schemas.closet import ClothingItemOut
from lookmate.schemas.common import CamelModel, Season

router = APIRouter(prefix="/data/recommendations", tags=["recommendations"])


class TodayLookOut(CamelModel):
    available: bool
    season: Optional[str] = None
    items: List[ClothingItemOut]


@router.get("/today", response_model=TodayLookOut)
async def todays_look(
    season: Optional[Season] = Query(None),
    session: AsyncSession = Depends(get_session),
    user: AuthUser = Depends(get_current_user),
):
    res = await session.execute(select(ClothingItem).where(ClothingItem.user_id == user.id))
    picked = generate_recommended_items(res.scalars().all(), season)
    if picked is None:
        return TodayLookOut(available=False, season=season, items=[])
    return TodayLookOut(available=True, season=season, items=[build_item_out(i) for i in picked])
