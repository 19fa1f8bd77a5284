"""Like/bookmark toggling over the public feed.

Each reaction is a join row (user, public look) plus a denormalized counter on
``public_look``. Both change inside one transaction: the counter only moves when
a join row was actually inserted or deleted, so repeated or racing toggles can't
drift it and it never drops below zero.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Type

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lookmate.models.models import Look, PublicLook, UserBookmark, UserLike

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class ReactionKind:
    name: str
    model: Type[UserLike] | Type[UserBookmark]
    counter: str


LIKE = ReactionKind(name="like", model=UserLike, counter="likes_count")
BOOKMARK = ReactionKind(name="bookmark", model=UserBookmark, counter="bookmarks_count")


@dataclass(frozen=True)
class ToggleResult:
    active: bool
    count: int


async def _count(session: AsyncSession, kind: ReactionKind, public_look_id: str) -> int:
    col = getattr(PublicLook, kind.counter)
    res = await session.execute(select(col).where(PublicLook.id == public_look_id))
    return max(int(res.scalar_one() or 0), 0)


async def toggle_reaction(session: AsyncSession, kind: ReactionKind, user_id: str, public_look_id: str) -> ToggleResult:
    model = kind.model
    col = getattr(PublicLook, kind.counter)
    removed = await session.execute(
        delete(model).where(model.user_id == user_id, model.public_look_id == public_look_id)
    )
    if removed.rowcount:
        await session.execute(
            update(PublicLook)
            .where(PublicLook.id == public_look_id, col > 0)
            .values({kind.counter: col - 1})
        )
        await session.commit()
        logger.info("reactions: %s removed user_id=%s public_look=%s", kind.name, user_id, public_look_id)
        return ToggleResult(active=False, count=await _count(session, kind, public_look_id))

    session.add(model(user_id=user_id, public_look_id=public_look_id))
    try:
        await session.flush()
    except IntegrityError:
        # a concurrent toggle inserted the same row first; it already counted it
        await session.rollback()
        return ToggleResult(active=True, count=await _count(session, kind, public_look_id))
    await session.execute(
        update(PublicLook).where(PublicLook.id == public_look_id).values({kind.counter: col + 1})
    )
    await session.commit()
    logger.info("reactions: %s added user_id=%s public_look=%s", kind.name, user_id, public_look_id)
    return ToggleResult(active=True, count=await _count(session, kind, public_look_id))


async def viewer_reactions(
    session: AsyncSession, user_id: str, public_look_ids: Iterable[str]
) -> tuple[set[str], set[str]]:
    ids = list(public_look_ids)
    if not ids:
        return set(), set()
    liked = await session.execute(
        select(UserLike.public_look_id).where(UserLike.user_id == user_id, UserLike.public_look_id.in_(ids))
    )
    marked = await session.execute(
        select(UserBookmark.public_look_id).where(
            UserBookmark.user_id == user_id, UserBookmark.public_look_id.in_(ids)
        )
    )
    return set(liked.scalars().all()), set(marked.scalars().all())


async def delete_public_look(session: AsyncSession, pl: PublicLook) -> None:
    """Remove a publication with its reactions and reset the source look. Caller commits."""
    await session.execute(delete(UserLike).where(UserLike.public_look_id == pl.id))
    await session.execute(delete(UserBookmark).where(UserBookmark.public_look_id == pl.id))
    await session.execute(
        update(Look).where(Look.id == pl.look_id).values(is_public=False, public_id=None)
    )
    await session.delete(pl)
