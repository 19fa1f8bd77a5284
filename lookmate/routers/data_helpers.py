from __future__ import annotations

import secrets
import string
import time
from typing import Any, Dict, Iterable, Optional

from fastapi import HTTPException

from lookmate.auth.deps import AuthUser
from lookmate.models.models import ClothingItem, Look, PublicLook
from lookmate.schemas.closet import ClothingItemOut
from lookmate.schemas.common import to_millis
from lookmate.schemas.looks import FittingLayerIn, LookOut
from lookmate.schemas.public_looks import PublicLookItem, PublicLookOut

_BASE36 = string.digits + string.ascii_lowercase
# Patch fields where an empty value means "clear it"
NULLABLE_PATCH_FIELDS = {"season", "brand", "size", "memo", "shopping_url", "price"}


def _to_base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, rem = divmod(n, 36)
        out.append(_BASE36[rem])
    return "".join(reversed(out))


def generate_public_id() -> str:
    stamp = _to_base36(int(time.time() * 1000))
    rand = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"{stamp}-{rand}"


def ensure_owner(owner_id: str, user: AuthUser) -> None:
    if str(owner_id) != str(user.id):
        raise HTTPException(status_code=403, detail="forbidden")


def build_item_out(item: ClothingItem) -> ClothingItemOut:
    return ClothingItemOut(
        id=item.id,
        user_id=item.user_id,
        image_url=item.image_url,
        original_image_url=item.original_image_url,
        category=item.category,
        color=item.color,
        brand=item.brand,
        size=item.size,
        season=item.season,
        memo=item.memo,
        is_favorite=bool(item.is_favorite),
        shopping_url=item.shopping_url,
        price=item.price,
        is_purchased=bool(item.is_purchased),
        created_at=to_millis(item.created_at),
        tags=list(item.tags or []),
    )


def apply_item_patch(item: ClothingItem, data: Dict[str, Any]) -> None:
    for field, value in data.items():
        if field in NULLABLE_PATCH_FIELDS and value in ("", None):
            value = None
        elif value is None:
            # non-nullable columns: an explicit null is ignored
            continue
        if field == "tags":
            value = list(value)
        setattr(item, field, value)


def snapshot_items(items: Iterable[ClothingItem], ordered_ids: list[str]) -> list[dict]:
    """Copy ClothingItems into plain dicts, in ``ordered_ids`` order, skipping unknown ids."""
    by_id = {it.id: it for it in items}
    out: list[dict] = []
    for item_id in ordered_ids:
        item = by_id.get(item_id)
        if item is not None:
            out.append(build_item_out(item).model_dump(by_alias=True))
    return out


def public_items_snapshot(items_snapshot: Iterable[dict]) -> list[dict]:
    return [
        PublicLookItem(
            id=it.get("id", ""),
            image_url=it.get("imageUrl", ""),
            category=it.get("category", ""),
            color=it.get("color", ""),
            tags=list(it.get("tags") or []),
        ).model_dump(by_alias=True)
        for it in items_snapshot
    ]


def dedupe_ids(ids: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for i in ids:
        if i and i not in seen:
            seen.add(i)
            out.append(i)
    return out


def build_look_out(look: Look) -> LookOut:
    return LookOut(
        id=look.id,
        user_id=look.user_id,
        name=look.name,
        items=list(look.items_snapshot or []),
        layers=[FittingLayerIn.model_validate(layer) for layer in (look.layers or [])],
        snapshot_url=look.snapshot_url,
        is_public=bool(look.is_public),
        public_id=look.public_id,
        tags=list(look.tags or []),
        created_at=to_millis(look.created_at),
    )


def build_public_look_out(
    pl: PublicLook,
    liked: Optional[bool] = None,
    bookmarked: Optional[bool] = None,
) -> PublicLookOut:
    return PublicLookOut(
        public_id=pl.public_id,
        look_id=pl.look_id,
        name=pl.name or "",
        owner_name=pl.owner_name,
        owner_id=pl.owner_id,
        owner_email=pl.owner_email,
        snapshot_url=pl.snapshot_url,
        items=[PublicLookItem.model_validate(it) for it in (pl.items_snapshot or [])],
        likes_count=max(pl.likes_count or 0, 0),
        bookmarks_count=max(pl.bookmarks_count or 0, 0),
        created_at=to_millis(pl.created_at),
        tags=list(pl.tags or []),
        liked=liked,
        bookmarked=bookmarked,
    )
