"""Client-side application store.

State is split into small contexts (session, closet, looks, public feed, plus
the fitting-room composition) that talk through an :class:`EventBus`. All
persistence goes through one :class:`DataRepository`, chosen once at startup:

* local mode: the repository *is* the local store, writes always succeed;
* backend mode: writes are remote-authoritative. In-memory state and the local
  mirror change only after the API call succeeds; on failure the user gets an
  error toast and nothing changes.

Mutations need a logged-in user and raise :class:`AuthRequiredError`
otherwise. Writes to the same entity are serialized with per-entity locks, so
two quick edits land in the order they were made.
"""
import logging
import random
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Union

from lookmate.client import events
from lookmate.client.api import ApiClient
from lookmate.client.auth import LocalAuth
from lookmate.client.composition import CompositionController
from lookmate.client.config import ClientSettings
from lookmate.client.errors import AuthRequiredError, RepositoryError
from lookmate.client.events import EventBus
from lookmate.client.local_store import LocalStore
from lookmate.client.locks import EntityLocks
from lookmate.client.notifications import Notifier
from lookmate.client.reactions import ReactionName, ReactionToggle
from lookmate.client.renderer import RenderTarget, SnapshotRenderer
from lookmate.client.repository import DataRepository, closet_key, looks_key, make_repository
from lookmate.client.session import SessionState, SessionUser
from lookmate.recs.rules import RandomSource, generate_recommended_items
from lookmate.schemas.closet import ClothingItemIn, ClothingItemOut, ClothingItemPatch
from lookmate.schemas.looks import LookIn, LookOut
from lookmate.schemas.profile import ProfileOut, ProfilePatch
from lookmate.schemas.public_looks import PublicLookOut

logger = logging.getLogger("lookmate.client.store")

MESSAGES = {
    "email_exists": "This email is already registered.",
    "invalid_credentials": "Wrong email or password.",
    "network_error": "Couldn't reach the server. Please try again.",
    "forbidden": "You can only change your own items.",
}


def _message(err: RepositoryError, fallback: str) -> str:
    return MESSAGES.get(err.detail or "", fallback)


class ClosetState:
    def __init__(self) -> None:
        self.items: List[ClothingItemOut] = []

    def get(self, item_id: str) -> Optional[ClothingItemOut]:
        return next((i for i in self.items if i.id == item_id), None)

    def add(self, item: ClothingItemOut) -> None:
        self.items.insert(0, item)

    def replace(self, item: ClothingItemOut) -> None:
        self.items = [item if i.id == item.id else i for i in self.items]

    def remove(self, item_id: str) -> None:
        self.items = [i for i in self.items if i.id != item_id]

    def reset(self, **_: Any) -> None:
        self.items = []


class LooksState:
    def __init__(self) -> None:
        self.looks: List[LookOut] = []

    def get(self, look_id: str) -> Optional[LookOut]:
        return next((look for look in self.looks if look.id == look_id), None)

    def add(self, look: LookOut) -> None:
        self.looks.insert(0, look)

    def remove(self, look_id: str) -> None:
        self.looks = [look for look in self.looks if look.id != look_id]

    def mark_public(self, look_id: str, public_id: Optional[str]) -> None:
        look = self.get(look_id)
        if look is not None:
            look.is_public = public_id is not None
            look.public_id = public_id

    def reset(self, **_: Any) -> None:
        self.looks = []


class FeedState:
    def __init__(self) -> None:
        self.public_looks: List[PublicLookOut] = []
        self.local_notice_shown = False

    def get(self, public_id: str) -> Optional[PublicLookOut]:
        return next((pl for pl in self.public_looks if pl.public_id == public_id), None)

    def upsert(self, entry: PublicLookOut) -> None:
        if self.get(entry.public_id) is None:
            self.public_looks.insert(0, entry)

    def remove(self, public_id: str) -> None:
        self.public_looks = [pl for pl in self.public_looks if pl.public_id != public_id]

    def remove_look(self, look_id: str) -> None:
        self.public_looks = [pl for pl in self.public_looks if pl.look_id != look_id]

    def reset(self, **_: Any) -> None:
        self.public_looks = []
        self.local_notice_shown = False


class LookMateStore:
    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        *,
        api: Optional[ApiClient] = None,
        repository: Optional[DataRepository] = None,
        local: Optional[LocalStore] = None,
        notifier: Optional[Notifier] = None,
        renderer: Optional[SnapshotRenderer] = None,
    ) -> None:
        self.settings = settings or ClientSettings()
        self.local = local or LocalStore(self.settings.DATA_DIR)
        self.notifier = notifier or Notifier()
        self.events = EventBus()
        if api is None and repository is None and self.settings.backend_enabled:
            api = ApiClient(self.settings.API_BASE_URL, timeout=self.settings.REQUEST_TIMEOUT_S)
        self.repository = repository or make_repository(self.settings, self.local, api)
        self.api = api or getattr(self.repository, "api", None)
        if self.api is not None:
            self.api.on_unauthorized = self.handle_unauthorized
        self.renderer = renderer or SnapshotRenderer(self.settings)
        self.local_auth = LocalAuth(self.local)

        self.session = SessionState()
        self.closet = ClosetState()
        self.looks = LooksState()
        self.feed = FeedState()
        self.composition = CompositionController()
        self._locks = EntityLocks()

        for name in (events.LOGOUT, events.SESSION_EXPIRED):
            self.events.subscribe(name, self.closet.reset)
            self.events.subscribe(name, self.looks.reset)
            self.events.subscribe(name, self.feed.reset)
            self.events.subscribe(name, lambda **_: self.composition.clear())

    @property
    def backend_mode(self) -> bool:
        return self.repository.mode == "remote"

    @property
    def user(self) -> Optional[SessionUser]:
        return self.session.user

    def _require_user(self) -> SessionUser:
        if self.session.user is None:
            raise AuthRequiredError("login required")
        return self.session.user

    def _fail(self, err: RepositoryError, fallback: str) -> None:
        # an expired token already produced the session-expired toast
        if err.status == 401 and err.detail == "unauthorized":
            return
        self.notifier.error(_message(err, fallback))

    # -- session ---------------------------------------------------------

    async def register(self, email: str, password: str, display_name: str) -> bool:
        try:
            if self.backend_mode:
                await self.api.register(email, password, display_name)
            else:
                self.local_auth.register(email, password, display_name)
        except RepositoryError as e:
            self._fail(e, "Sign-up failed. Please try again.")
            return False
        return True

    async def login(self, email: str, password: str) -> bool:
        token = None
        previous = self.api.token if self.api is not None else None
        try:
            if self.backend_mode:
                token = await self.api.login(email, password)
                self.api.token = token
                me = await self.api.me()
                user = SessionUser(id=me["id"], email=me["email"], display_name=me.get("displayName"))
            else:
                user = self.local_auth.login(email, password)
        except RepositoryError as e:
            if self.api is not None:
                # a failed login leaves an open session as it was
                self.api.token = previous if self.session.is_authenticated else None
            self._fail(e, "Login failed. Please try again.")
            return False
        self.session.start(user, token)
        self.feed.local_notice_shown = False
        logger.info("store: login user_id=%s mode=%s", user.id, self.repository.mode)
        self.events.emit(events.LOGIN, user=user)
        await self.hydrate()
        return True

    def _teardown(self) -> None:
        self.session.end()
        if self.api is not None:
            self.api.token = None

    def logout(self) -> None:
        user = self.session.user
        self._teardown()
        self.events.emit(events.LOGOUT, user=user)

    def handle_unauthorized(self) -> None:
        """Drop an expired session. Runs once per session however many 401s arrive."""
        if not self.session.is_authenticated or self.session.expiry_handled:
            return
        self.session.expiry_handled = True
        user = self.session.user
        logger.info("store: session expired user_id=%s", user.id)
        self._teardown()
        self.notifier.warning("Your session has expired. Please log in again.")
        self.events.emit(events.SESSION_EXPIRED, user=user)

    async def update_profile(self, patch: Union[ProfilePatch, Dict[str, Any]]) -> Optional[ProfileOut]:
        user = self._require_user()
        if isinstance(patch, dict):
            patch = ProfilePatch.model_validate(patch)
        async with self._locks.hold(f"user:{user.id}"):
            try:
                if self.backend_mode:
                    data = await self.api.update_profile(patch.model_dump(by_alias=True, exclude_unset=True))
                    profile = ProfileOut.model_validate(data)
                else:
                    profile = self.local_auth.update_profile(user, patch)
            except RepositoryError as e:
                self._fail(e, "Couldn't update your profile. Please try again.")
                return None
            if self.session.user is not None and self.session.user.id == user.id:
                self.session.user = replace(self.session.user, display_name=profile.display_name)
            logger.info("store: profile updated user_id=%s", user.id)
            return profile

    # -- hydration / mirror ------------------------------------------------

    async def hydrate(self) -> None:
        """Load closet and looks; in backend mode fall back to the local mirror."""
        user = self.session.user
        if user is None:
            return
        try:
            self.closet.items = await self.repository.list_items(user)
            self.looks.looks = await self.repository.list_looks(user)
        except RepositoryError as e:
            if e.status == 401:
                return
            logger.warning("store: hydrate failed user_id=%s status=%s; using local mirror", user.id, e.status)
            self.closet.items = [
                ClothingItemOut.model_validate(raw) for raw in self.local.get(closet_key(user.id), [])
            ]
            self.looks.looks = [LookOut.model_validate(raw) for raw in self.local.get(looks_key(user.id), [])]
            self.notifier.warning("Couldn't load your data from the server. Showing the last saved copy.")
            return
        self._mirror()

    def _mirror(self) -> None:
        user = self.session.user
        if not self.backend_mode or user is None:
            return
        self.local.set(closet_key(user.id), [i.model_dump(by_alias=True) for i in self.closet.items])
        self.local.set(looks_key(user.id), [look.model_dump(by_alias=True) for look in self.looks.looks])

    # -- closet ------------------------------------------------------------

    async def add_item(self, item: ClothingItemIn) -> Optional[ClothingItemOut]:
        user = self._require_user()
        try:
            out = await self.repository.add_item(user, item)
        except RepositoryError as e:
            self._fail(e, "Couldn't add the item. Please try again.")
            return None
        self.closet.add(out)
        self._mirror()
        return out

    async def update_item(
        self, item_id: str, patch: Union[ClothingItemPatch, Dict[str, Any]]
    ) -> Optional[ClothingItemOut]:
        user = self._require_user()
        if isinstance(patch, dict):
            patch = ClothingItemPatch.model_validate(patch)
        async with self._locks.hold(f"item:{item_id}"):
            try:
                out = await self.repository.update_item(user, item_id, patch)
            except RepositoryError as e:
                self._fail(e, "Couldn't update the item. Please try again.")
                return None
            self.closet.replace(out)
            self._mirror()
            return out

    async def toggle_favorite(self, item_id: str) -> Optional[ClothingItemOut]:
        current = self.closet.get(item_id)
        if current is None:
            self._require_user()
            return None
        return await self.update_item(item_id, ClothingItemPatch(is_favorite=not current.is_favorite))

    async def delete_item(self, item_id: str) -> bool:
        user = self._require_user()
        async with self._locks.hold(f"item:{item_id}"):
            try:
                await self.repository.delete_item(user, item_id)
            except RepositoryError as e:
                self._fail(e, "Couldn't delete the item. Please try again.")
                return False
            # saved looks keep their snapshot of the item
            self.closet.remove(item_id)
            self._mirror()
            return True

    # -- looks -------------------------------------------------------------

    def render_target(self, avatar_url: Optional[str] = None) -> RenderTarget:
        # items deleted from the closet still render from saved looks' item copies
        image_urls: Dict[str, str] = {}
        for look in self.looks.looks:
            for raw in look.items:
                if raw.get("id") and raw.get("imageUrl"):
                    image_urls.setdefault(raw["id"], raw["imageUrl"])
        image_urls.update({i.id: i.image_url for i in self.closet.items})
        return RenderTarget(layers=self.composition.layers, image_urls=image_urls, avatar_url=avatar_url)

    async def save_active_look(
        self,
        name: str,
        target: Optional[RenderTarget] = None,
        tags: Optional[List[str]] = None,
    ) -> Optional[LookOut]:
        """Render a snapshot of the fitting room and save it as a new look.

        A failed render doesn't block the save: the look is stored without a
        snapshot and the user gets a warning.
        """
        user = self._require_user()
        layers = self.composition.layers
        if not layers:
            self.notifier.warning("Add at least one item to the fitting room first.")
            return None
        snapshot = await self.renderer.render(target or self.render_target())
        body = LookIn(
            name=name,
            layers=[layer.to_wire() for layer in layers],
            snapshot_url=snapshot,
            tags=list(tags or []),
        )
        try:
            look = await self.repository.create_look(user, body)
        except RepositoryError as e:
            self._fail(e, "Couldn't save the look. Please try again.")
            return None
        self.looks.add(look)
        self.composition.set_name(name)
        self._mirror()
        if snapshot is None:
            self.notifier.warning("The look was saved without a preview image.")
        return look

    async def delete_look(self, look_id: str) -> bool:
        user = self._require_user()
        async with self._locks.hold(f"look:{look_id}"):
            try:
                await self.repository.delete_look(user, look_id)
            except RepositoryError as e:
                self._fail(e, "Couldn't delete the look. Please try again.")
                return False
            self.looks.remove(look_id)
            self.feed.remove_look(look_id)
            self._mirror()
            return True

    def load_look(self, look_id: str) -> bool:
        """Open a saved look in the fitting room, replacing the current composition."""
        look = self.looks.get(look_id)
        if look is None:
            return False
        self.composition.load_from_look(look)
        return True

    # -- public feed -------------------------------------------------------

    async def load_feed(self, sort: str = "latest", limit: Optional[int] = None) -> List[PublicLookOut]:
        try:
            self.feed.public_looks = await self.repository.list_public_looks(sort, limit)
        except RepositoryError as e:
            logger.warning("store: feed load failed status=%s", e.status)
            self.notifier.warning("Couldn't load the public feed.")
        return self.feed.public_looks

    async def publish_look(self, look_id: str) -> Optional[PublicLookOut]:
        user = self._require_user()
        async with self._locks.hold(f"look:{look_id}"):
            try:
                entry = await self.repository.publish_look(user, look_id)
            except RepositoryError as e:
                self._fail(e, "Couldn't publish the look. Please try again.")
                return None
            self.looks.mark_public(look_id, entry.public_id)
            self.feed.upsert(entry)
            self._mirror()
            return entry

    async def unpublish_look(self, public_id: str) -> bool:
        user = self._require_user()
        async with self._locks.hold(f"public:{public_id}"):
            try:
                await self.repository.unpublish_look(user, public_id)
            except RepositoryError as e:
                self._fail(e, "Couldn't unpublish the look. Please try again.")
                return False
            for look in self.looks.looks:
                if look.public_id == public_id:
                    self.looks.mark_public(look.id, None)
            self.feed.remove(public_id)
            self._mirror()
            return True

    async def toggle_like(self, public_id: str) -> bool:
        return await self._react(public_id, "like")

    async def toggle_bookmark(self, public_id: str) -> bool:
        return await self._react(public_id, "bookmark")

    async def _react(self, public_id: str, kind: ReactionName) -> bool:
        user = self._require_user()
        entry = self.feed.get(public_id)
        if entry is None:
            return False
        if not self.repository.durable_reactions and not self.feed.local_notice_shown:
            self.feed.local_notice_shown = True
            self.notifier.info("Offline mode: likes and bookmarks are kept only until you reload.")
        async with self._locks.hold(f"{kind}:{public_id}"):
            return await ReactionToggle(entry, kind, self.repository, user, self.notifier).run()

    # -- recommendations -----------------------------------------------------

    def recommend_today(
        self, season: Optional[str] = None, rng: RandomSource = random
    ) -> Optional[List[ClothingItemOut]]:
        return generate_recommended_items(self.closet.items, season=season, rng=rng)

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        self.events.subscribe(event, handler)

    async def aclose(self) -> None:
        if self.api is not None:
            await self.api.aclose()
