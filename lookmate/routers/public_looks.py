import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lookmate.auth.deps import AuthUser, get_current_user, get_user_optional
from lookmate.core.config import settings
from lookmate.core.db import get_session
from lookmate.models.models import Look, PublicLook, User
from lookmate.routers.data_helpers import (
    build_public_look_out,
    ensure_owner,
    generate_public_id,
    public_items_snapshot,
)
from lookmate.schemas.common import SuccessOut
from lookmate.schemas.public_looks import (
    BookmarkOut,
    LikeOut,
    PublicLookItemOut,
    PublicLookListOut,
    PublishIn,
)
from lookmate.services.reactions import BOOKMARK, LIKE, delete_public_look, toggle_reaction, viewer_reactions
from lookmate.services.users import owner_display_name

router = APIRouter(prefix="/data/public-looks", tags=["public-looks"])
logger = logging.getLogger("uvicorn.error")


async def _by_public_id(session: AsyncSession, public_id: str) -> PublicLook:
    res = await session.execute(select(PublicLook).where(PublicLook.public_id == public_id))
    pl = res.scalar_one_or_none()
    if not pl:
        raise HTTPException(status_code=404, detail="public_look_not_found")
    return pl


@router.get("", response_model=PublicLookListOut)
async def list_public_looks(
    limit: Optional[int] = Query(None, ge=1),
    sort: Literal["likes", "latest"] = Query("latest"),
    session: AsyncSession = Depends(get_session),
    viewer: Optional[AuthUser] = Depends(get_user_optional),
):
    take = min(limit or settings.PUBLIC_FEED_DEFAULT_LIMIT, settings.PUBLIC_FEED_MAX_LIMIT)
    order = (
        (PublicLook.likes_count.desc(), PublicLook.created_at.desc())
        if sort == "likes"
        else (PublicLook.created_at.desc(),)
    )
    res = await session.execute(select(PublicLook).order_by(*order).limit(take))
    rows = res.scalars().all()
    if viewer is None:
        return PublicLookListOut(public_looks=[build_public_look_out(pl) for pl in rows])
    liked, marked = await viewer_reactions(session, viewer.id, [pl.id for pl in rows])
    return PublicLookListOut(
        public_looks=[build_public_look_out(pl, pl.id in liked, pl.id in marked) for pl in rows]
    )


@router.get("/{public_id}", response_model=PublicLookItemOut)
async def get_public_look(
    public_id: str,
    session: AsyncSession = Depends(get_session),
    viewer: Optional[AuthUser] = Depends(get_user_optional),
):
    pl = await _by_public_id(session, public_id)
    if viewer is None:
        return PublicLookItemOut(public_look=build_public_look_out(pl))
    liked, marked = await viewer_reactions(session, viewer.id, [pl.id])
    return PublicLookItemOut(public_look=build_public_look_out(pl, pl.id in liked, pl.id in marked))


@router.post("", response_model=PublicLookItemOut, status_code=201)
async def publish_look(
    payload: PublishIn,
    response: Response,
    session: AsyncSession = Depends(get_session),
    user: AuthUser = Depends(get_current_user),
):
    look = await session.get(Look, payload.look_id)
    if not look:
        raise HTTPException(status_code=404, detail="look_not_found")
    ensure_owner(look.user_id, user)

    res = await session.execute(select(PublicLook).where(PublicLook.look_id == look.id))
    existing = res.scalar_one_or_none()
    if existing:
        response.status_code = 200
        return PublicLookItemOut(public_look=build_public_look_out(existing))

    owner = await session.get(User, user.id)
    pl = PublicLook(
        look_id=look.id,
        public_id=generate_public_id(),
        name=look.name,
        owner_id=user.id,
        owner_name=owner_display_name(owner) if owner else (user.display_name or user.email.split("@")[0]),
        owner_email=owner.email if owner else user.email,
        snapshot_url=look.snapshot_url,
        items_snapshot=public_items_snapshot(look.items_snapshot or []),
        likes_count=0,
        bookmarks_count=0,
        tags=list(look.tags or []),
    )
    session.add(pl)
    look.is_public = True
    look.public_id = pl.public_id
    try:
        await session.commit()
    except IntegrityError:
        # published concurrently; the unique look_id kept a single record
        await session.rollback()
        res = await session.execute(select(PublicLook).where(PublicLook.look_id == payload.look_id))
        response.status_code = 200
        return PublicLookItemOut(public_look=build_public_look_out(res.scalar_one()))
    logger.info("public-looks: published look_id=%s public_id=%s", look.id, pl.public_id)
    return PublicLookItemOut(public_look=build_public_look_out(pl))


@router.delete("/{public_id}", response_model=SuccessOut)
async def unpublish_look(
    public_id: str,
    session: AsyncSession = Depends(get_session),
    user: AuthUser = Depends(get_current_user),
):
    pl = await _by_public_id(session, public_id)
    ensure_owner(pl.owner_id, user)
    await delete_public_look(session, pl)
    await session.commit()
    logger.info("public-looks: unpublished public_id=%s", public_id)
    return SuccessOut()


@router.post("/{public_id}/like", response_model=LikeOut)
async def toggle_like(
    public_id: str,
    session: AsyncSession = Depends(get_session),
    user: AuthUser = Depends(get_current_user),
):
    pl = await _by_public_id(session, public_id)
    result = await toggle_reaction(session, LIKE, user.id, pl.id)
    return LikeOut(liked=result.active, likes_count=result.count)


@router.post("/{public_id}/bookmark", response_model=BookmarkOut)
async def toggle_bookmark(
    public_id: str,
    session: AsyncSession = Depends(get_session),
    user: AuthUser = Depends(get_current_user),
):
    pl = await _by_public_id(session, public_id)
    result = await toggle_reaction(session, BOOKMARK, user.id, pl.id)
    return BookmarkOut(bookmarked=result.active, bookmarks_count=result.count)
