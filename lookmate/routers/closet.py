import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lookmate.auth.deps import AuthUser, get_current_user
from lookmate.core.db import get_session
from lookmate.models.models import ClothingItem
from lookmate.routers.data_helpers import apply_item_patch, build_item_out, ensure_owner
from lookmate.schemas.closet import ClosetCreateIn, ClosetItemOut, ClosetListOut, ClosetUpdateIn
from lookmate.schemas.common import SuccessOut

router = APIRouter(prefix="/data/closet", tags=["closet"])
logger = logging.getLogger("uvicorn.error")


async def _owned_item(session: AsyncSession, item_id: str, user: AuthUser) -> ClothingItem:
    item = await session.get(ClothingItem, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="item_not_found")
    ensure_owner(item.user_id, user)
    return item


@router.get("", response_model=ClosetListOut)
async def list_closet(
    session: AsyncSession = Depends(get_session),
    user: AuthUser = Depends(get_current_user),
):
    res = await session.execute(
        select(ClothingItem).where(ClothingItem.user_id == user.id).order_by(ClothingItem.created_at.desc())
    )
    items = [build_item_out(i) for i in res.scalars().all()]
    logger.info("closet: list user_id=%s count=%d", user.id, len(items))
    return ClosetListOut(items=items)


@router.post("", response_model=ClosetItemOut, status_code=201)
async def create_item(
    payload: ClosetCreateIn,
    session: AsyncSession = Depends(get_session),
    user: AuthUser = Depends(get_current_user),
):
    data = payload.item.model_dump()
    if not data.get("original_image_url"):
        data["original_image_url"] = data["image_url"]
    item = ClothingItem(user_id=user.id, **data)
    session.add(item)
    await session.commit()
    logger.info("closet: created item_id=%s user_id=%s", item.id, user.id)
    return ClosetItemOut(item=build_item_out(item))


@router.put("/{item_id}", response_model=ClosetItemOut)
async def update_item(
    item_id: str,
    payload: ClosetUpdateIn,
    session: AsyncSession = Depends(get_session),
    user: AuthUser = Depends(get_current_user),
):
    item = await _owned_item(session, item_id, user)
    apply_item_patch(item, payload.patch.model_dump(exclude_unset=True))
    await session.commit()
    logger.info("closet: updated item_id=%s", item_id)
    return ClosetItemOut(item=build_item_out(item))


@router.delete("/{item_id}", response_model=SuccessOut)
async def delete_item(
    item_id: str,
    session: AsyncSession = Depends(get_session),
    user: AuthUser = Depends(get_current_user),
):
    item = await _owned_item(session, item_id, user)
    # saved looks keep their own copy of the item
    await session.delete(item)
    await session.commit()
    logger.info("closet: deleted item_id=%s", item_id)
    return SuccessOut()
