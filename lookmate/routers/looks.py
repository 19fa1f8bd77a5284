import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lookmate.auth.deps import AuthUser, get_current_user
from lookmate.core.db import get_session
from lookmate.models.models import ClothingItem, Look, PublicLook
from lookmate.routers.data_helpers import build_look_out, dedupe_ids, ensure_owner, snapshot_items
from lookmate.schemas.common import SuccessOut
from lookmate.schemas.looks import LookCreateIn, LookItemOut, LookListOut
from lookmate.services.reactions import delete_public_look

router = APIRouter(prefix="/data/looks", tags=["looks"])
logger = logging.getLogger("uvicorn.error")


@router.get("", response_model=LookListOut)
async def list_looks(
    session: AsyncSession = Depends(get_session),
    user: AuthUser = Depends(get_current_user),
):
    res = await session.execute(select(Look).where(Look.user_id == user.id).order_by(Look.created_at.desc()))
    looks = [build_look_out(look) for look in res.scalars().all()]
    logger.info("looks: list user_id=%s count=%d", user.id, len(looks))
    return LookListOut(looks=looks)


@router.post("", response_model=LookItemOut, status_code=201)
async def create_look(
    payload: LookCreateIn,
    session: AsyncSession = Depends(get_session),
    user: AuthUser = Depends(get_current_user),
):
    body = payload.look
    layers = [layer.model_dump(by_alias=True) for layer in body.layers]
    # layer order wins; explicit itemIds only add items without a layer
    item_ids = dedupe_ids([layer["clothingId"] for layer in layers] + list(body.item_ids or []))
    items = []
    if item_ids:
        res = await session.execute(
            select(ClothingItem).where(ClothingItem.id.in_(item_ids), ClothingItem.user_id == user.id)
        )
        items = res.scalars().all()
    look = Look(
        user_id=user.id,
        name=body.name,
        item_ids=item_ids,
        items_snapshot=snapshot_items(items, item_ids),
        layers=layers,
        snapshot_url=body.snapshot_url,
        is_public=False,
        tags=list(body.tags),
    )
    session.add(look)
    await session.commit()
    logger.info("looks: created look_id=%s items=%d", look.id, len(look.items_snapshot))
    return LookItemOut(look=build_look_out(look))


@router.delete("/{look_id}", response_model=SuccessOut)
async def delete_look(
    look_id: str,
    session: AsyncSession = Depends(get_session),
    user: AuthUser = Depends(get_current_user),
):
    look = await session.get(Look, look_id)
    if not look:
        raise HTTPException(status_code=404, detail="look_not_found")
    ensure_owner(look.user_id, user)
    res = await session.execute(select(PublicLook).where(PublicLook.look_id == look.id))
    pl = res.scalar_one_or_none()
    if pl:
        await delete_public_look(session, pl)
    await session.delete(look)
    await session.commit()
    logger.info("looks: deleted look_id=%s", look_id)
    return SuccessOut()
