"""Backing stores behind the client store.

``LocalRepository`` keeps everything in the :class:`LocalStore` (offline/demo
mode); ``RemoteRepository`` talks to the API. Both expose the same coroutine
interface so the store never branches on the mode. ``make_repository`` picks
one from settings, once.
"""
import logging
import time
import uuid
from typing import List, Optional, Protocol, Tuple

from lookmate.client.api import ApiClient
from lookmate.client.config import ClientSettings
from lookmate.client.errors import RepositoryError
from lookmate.client.local_store import LocalStore
from lookmate.client.session import SessionUser
from lookmate.routers.data_helpers import dedupe_ids, generate_public_id, public_items_snapshot
from lookmate.schemas.closet import ClothingItemIn, ClothingItemOut, ClothingItemPatch
from lookmate.schemas.looks import LookIn, LookOut
from lookmate.schemas.public_looks import PublicLookOut

logger = logging.getLogger("lookmate.client.repository")

PUBLIC_LOOKS_KEY = "public_looks"
NULLABLE_PATCH_FIELDS = {"season", "brand", "size", "memo", "shoppingUrl", "price"}


def closet_key(user_id: str) -> str:
    return f"closet:{user_id}"


def looks_key(user_id: str) -> str:
    return f"looks:{user_id}"


def _now_ms() -> int:
    return int(time.time() * 1000)


class DataRepository(Protocol):
    mode: str
    # False: reactions are kept in memory only and don't survive a reload
    durable_reactions: bool

    async def list_items(self, user: SessionUser) -> List[ClothingItemOut]:
        ...

    async def add_item(self, user: SessionUser, item: ClothingItemIn) -> ClothingItemOut:
        ...

    async def update_item(self, user: SessionUser, item_id: str, patch: ClothingItemPatch) -> ClothingItemOut:
        ...

    async def delete_item(self, user: SessionUser, item_id: str) -> None:
        ...

    async def list_looks(self, user: SessionUser) -> List[LookOut]:
        ...

    async def create_look(self, user: SessionUser, look: LookIn) -> LookOut:
        ...

    async def delete_look(self, user: SessionUser, look_id: str) -> None:
        ...

    async def list_public_looks(self, sort: str = "latest", limit: Optional[int] = None) -> List[PublicLookOut]:
        ...

    async def publish_look(self, user: SessionUser, look_id: str) -> PublicLookOut:
        ...

    async def unpublish_look(self, user: SessionUser, public_id: str) -> None:
        ...

    async def toggle_reaction(self, user: SessionUser, public_id: str, kind: str) -> Optional[Tuple[bool, int]]:
        ...


class LocalRepository:
    mode = "local"
    durable_reactions = False

    def __init__(self, store: LocalStore) -> None:
        self.store = store

    def _items(self, user_id: str) -> List[dict]:
        return self.store.get(closet_key(user_id), [])

    def _looks(self, user_id: str) -> List[dict]:
        return self.store.get(looks_key(user_id), [])

    async def list_items(self, user: SessionUser) -> List[ClothingItemOut]:
        return [ClothingItemOut.model_validate(i) for i in self._items(user.id)]

    async def add_item(self, user: SessionUser, item: ClothingItemIn) -> ClothingItemOut:
        data = item.model_dump(by_alias=True)
        data["originalImageUrl"] = data.get("originalImageUrl") or data["imageUrl"]
        out = ClothingItemOut.model_validate(
            {**data, "id": str(uuid.uuid4()), "userId": user.id, "createdAt": _now_ms()}
        )
        self.store.set(closet_key(user.id), [out.model_dump(by_alias=True)] + self._items(user.id))
        return out

    async def update_item(self, user: SessionUser, item_id: str, patch: ClothingItemPatch) -> ClothingItemOut:
        items = self._items(user.id)
        for idx, raw in enumerate(items):
            if raw["id"] != item_id:
                continue
            merged = dict(raw)
            for field, value in patch.model_dump(by_alias=True, exclude_unset=True).items():
                if field in NULLABLE_PATCH_FIELDS and value in ("", None):
                    merged[field] = None
                elif value is not None:
                    merged[field] = value
            out = ClothingItemOut.model_validate(merged)
            items[idx] = out.model_dump(by_alias=True)
            self.store.set(closet_key(user.id), items)
            return out
        raise RepositoryError(404, "item_not_found")

    async def delete_item(self, user: SessionUser, item_id: str) -> None:
        items = self._items(user.id)
        kept = [i for i in items if i["id"] != item_id]
        if len(kept) == len(items):
            raise RepositoryError(404, "item_not_found")
        self.store.set(closet_key(user.id), kept)

    async def list_looks(self, user: SessionUser) -> List[LookOut]:
        return [LookOut.model_validate(raw) for raw in self._looks(user.id)]

    async def create_look(self, user: SessionUser, look: LookIn) -> LookOut:
        layers = [layer.model_dump(by_alias=True) for layer in look.layers]
        ids = dedupe_ids([layer["clothingId"] for layer in layers] + list(look.item_ids or []))
        by_id = {i["id"]: i for i in self._items(user.id)}
        out = LookOut(
            id=str(uuid.uuid4()),
            user_id=user.id,
            name=look.name,
            items=[dict(by_id[i]) for i in ids if i in by_id],
            layers=look.layers,
            snapshot_url=look.snapshot_url,
            tags=list(look.tags),
            created_at=_now_ms(),
        )
        self.store.set(looks_key(user.id), [out.model_dump(by_alias=True)] + self._looks(user.id))
        return out

    async def delete_look(self, user: SessionUser, look_id: str) -> None:
        looks = self._looks(user.id)
        target = next((raw for raw in looks if raw["id"] == look_id), None)
        if target is None:
            raise RepositoryError(404, "look_not_found")
        if target.get("publicId"):
            self._drop_public(lambda pl: pl["lookId"] == look_id)
        self.store.set(looks_key(user.id), [raw for raw in looks if raw["id"] != look_id])

    def _drop_public(self, match) -> None:
        feed = self.store.get(PUBLIC_LOOKS_KEY, [])
        self.store.set(PUBLIC_LOOKS_KEY, [pl for pl in feed if not match(pl)])

    async def list_public_looks(self, sort: str = "latest", limit: Optional[int] = None) -> List[PublicLookOut]:
        feed = [PublicLookOut.model_validate(raw) for raw in self.store.get(PUBLIC_LOOKS_KEY, [])]
        if sort == "likes":
            feed.sort(key=lambda pl: (pl.likes_count, pl.created_at), reverse=True)
        else:
            feed.sort(key=lambda pl: pl.created_at, reverse=True)
        return feed[:limit] if limit else feed

    async def publish_look(self, user: SessionUser, look_id: str) -> PublicLookOut:
        looks = self._looks(user.id)
        look = next((raw for raw in looks if raw["id"] == look_id), None)
        if look is None:
            raise RepositoryError(404, "look_not_found")
        feed = self.store.get(PUBLIC_LOOKS_KEY, [])
        existing = next((pl for pl in feed if pl["lookId"] == look_id), None)
        if existing is not None:
            return PublicLookOut.model_validate(existing)
        pl = PublicLookOut(
            public_id=generate_public_id(),
            look_id=look_id,
            name=look["name"],
            owner_name=user.name,
            owner_id=user.id,
            owner_email=user.email,
            snapshot_url=look.get("snapshotUrl"),
            items=public_items_snapshot(look.get("items") or []),
            created_at=_now_ms(),
            tags=list(look.get("tags") or []),
        )
        self.store.set(PUBLIC_LOOKS_KEY, [pl.model_dump(by_alias=True)] + feed)
        look["isPublic"] = True
        look["publicId"] = pl.public_id
        self.store.set(looks_key(user.id), looks)
        return pl

    async def unpublish_look(self, user: SessionUser, public_id: str) -> None:
        feed = self.store.get(PUBLIC_LOOKS_KEY, [])
        pl = next((raw for raw in feed if raw["publicId"] == public_id), None)
        if pl is None:
            raise RepositoryError(404, "public_look_not_found")
        if pl["ownerId"] != user.id:
            raise RepositoryError(403, "forbidden")
        self._drop_public(lambda raw: raw["publicId"] == public_id)
        looks = self._looks(user.id)
        for raw in looks:
            if raw["id"] == pl["lookId"]:
                raw["isPublic"] = False
                raw["publicId"] = None
        self.store.set(looks_key(user.id), looks)

    async def toggle_reaction(self, user: SessionUser, public_id: str, kind: str) -> Optional[Tuple[bool, int]]:
        # local reactions live only in the feed state in memory
        return None


class RemoteRepository:
    mode = "remote"
    durable_reactions = True

    def __init__(self, api: ApiClient) -> None:
        self.api = api

    async def list_items(self, user: SessionUser) -> List[ClothingItemOut]:
        return [ClothingItemOut.model_validate(i) for i in await self.api.list_closet()]

    async def add_item(self, user: SessionUser, item: ClothingItemIn) -> ClothingItemOut:
        data = item.model_dump(by_alias=True, exclude_none=True)
        return ClothingItemOut.model_validate(await self.api.create_item(data))

    async def update_item(self, user: SessionUser, item_id: str, patch: ClothingItemPatch) -> ClothingItemOut:
        return ClothingItemOut.model_validate(await self.api.update_item(item_id, patch.model_dump(by_alias=True, exclude_unset=True)))

    async def delete_item(self, user: SessionUser, item_id: str) -> None:
        await self.api.delete_item(item_id)

    async def list_looks(self, user: SessionUser) -> List[LookOut]:
        return [LookOut.model_validate(raw) for raw in await self.api.list_looks()]

    async def create_look(self, user: SessionUser, look: LookIn) -> LookOut:
        return LookOut.model_validate(await self.api.create_look(look.model_dump(by_alias=True)))

    async def delete_look(self, user: SessionUser, look_id: str) -> None:
        await self.api.delete_look(look_id)

    async def list_public_looks(self, sort: str = "latest", limit: Optional[int] = None) -> List[PublicLookOut]:
        return [PublicLookOut.model_validate(raw) for raw in await self.api.list_public_looks(sort, limit)]

    async def publish_look(self, user: SessionUser, look_id: str) -> PublicLookOut:
        return PublicLookOut.model_validate(await self.api.publish_look(look_id))

    async def unpublish_look(self, user: SessionUser, public_id: str) -> None:
        await self.api.unpublish_look(public_id)

    async def toggle_reaction(self, user: SessionUser, public_id: str, kind: str) -> Optional[Tuple[bool, int]]:
        if kind == "like":
            data = await self.api.toggle_like(public_id)
            return bool(data["liked"]), int(data["likesCount"])
        data = await self.api.toggle_bookmark(public_id)
        return bool(data["bookmarked"]), int(data["bookmarksCount"])


def make_repository(settings: ClientSettings, store: LocalStore, api: Optional[ApiClient] = None) -> DataRepository:
    if settings.backend_enabled:
        if api is None:
            api = ApiClient(settings.API_BASE_URL, timeout=settings.REQUEST_TIMEOUT_S)
        logger.info("repository: backend mode base_url=%s", settings.API_BASE_URL)
        return RemoteRepository(api)
    logger.info("repository: local mode data_dir=%s", settings.DATA_DIR)
    return LocalRepository(store)
