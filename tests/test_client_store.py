import asyncio
import base64
import io
import json

import httpx
import pytest
from PIL import Image
from pydantic import ValidationError

from lookmate.client.api import ApiClient
from lookmate.client.config import ClientSettings
from lookmate.client.errors import ApiError, AuthRequiredError
from lookmate.client.local_store import LocalStore
from lookmate.client.reactions import ReactionToggle
from lookmate.client.repository import LocalRepository, RemoteRepository, closet_key, make_repository
from lookmate.client.session import SessionUser
from lookmate.client.store import LookMateStore
from lookmate.main import app
from lookmate.schemas.closet import ClothingItemIn
from lookmate.schemas.looks import LookIn
from lookmate.schemas.public_looks import PublicLookOut


def _png_url(color=(255, 0, 0, 255)) -> str:
    buf = io.BytesIO()
    Image.new("RGBA", (10, 20), color).save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode()


def _item(category="top", **kw) -> ClothingItemIn:
    return ClothingItemIn(category=category, image_url=_png_url(), color="black", **kw)


@pytest.fixture
def local_store(tmp_path):
    return LookMateStore(ClientSettings(API_BASE_URL=None, DATA_DIR=str(tmp_path)))


@pytest.fixture
def remote_store(tmp_path):
    api = ApiClient("http://test/api", transport=httpx.ASGITransport(app=app))
    settings = ClientSettings(API_BASE_URL="http://test/api", DATA_DIR=str(tmp_path))
    return LookMateStore(settings, api=api)


def test_make_repository_selects_mode(tmp_path):
    store = LocalStore(str(tmp_path))
    assert isinstance(make_repository(ClientSettings(API_BASE_URL=None), store), LocalRepository)
    remote = make_repository(ClientSettings(API_BASE_URL="http://api.example.com"), store)
    assert isinstance(remote, RemoteRepository)


@pytest.mark.asyncio
async def test_mutations_require_login(local_store):
    with pytest.raises(AuthRequiredError):
        await local_store.add_item(_item())
    with pytest.raises(AuthRequiredError):
        await local_store.delete_look("x")


@pytest.mark.asyncio
async def test_local_mode_flow(local_store, tmp_path):
    assert await local_store.register("me@example.com", "pw", "Me")
    assert not await local_store.register("me@example.com", "pw", "Me")
    assert not await local_store.login("me@example.com", "wrong")
    assert await local_store.login("me@example.com", "pw")

    # passwords are hashed at rest
    raw = (tmp_path / "users.json").read_text()
    assert '"pw"' not in raw

    top = await local_store.add_item(_item("top"))
    bottom = await local_store.add_item(_item("bottom"))
    assert top.is_favorite is False and top.price is None
    assert (await local_store.toggle_favorite(top.id)).is_favorite is True

    local_store.composition.start_with(top.id)
    local_store.composition.add_item(bottom.id)
    look = await local_store.save_active_look("Daily")
    assert look.snapshot_url.startswith("data:image/png;base64,")
    assert [i["id"] for i in look.items] == [top.id, bottom.id]

    assert await local_store.delete_item(bottom.id)
    reloaded = LookMateStore(ClientSettings(API_BASE_URL=None, DATA_DIR=str(tmp_path)))
    await reloaded.login("me@example.com", "pw")
    assert [i.id for i in reloaded.closet.items] == [top.id]
    assert [i["id"] for i in reloaded.looks.looks[0].items] == [top.id, bottom.id]

    first = await local_store.publish_look(look.id)
    second = await local_store.publish_look(look.id)
    assert first.public_id == second.public_id
    assert len(await local_store.load_feed()) == 1
    assert local_store.looks.get(look.id).is_public


@pytest.mark.asyncio
async def test_local_reactions_are_memory_only(local_store):
    await local_store.register("me@example.com", "pw", "Me")
    await local_store.login("me@example.com", "pw")
    top = await local_store.add_item(_item())
    local_store.composition.start_with(top.id)
    look = await local_store.save_active_look("L")
    pl = await local_store.publish_look(look.id)
    local_store.notifier.drain()

    assert await local_store.toggle_like(pl.public_id)
    assert await local_store.toggle_like(pl.public_id)
    assert await local_store.toggle_bookmark(pl.public_id)
    entry = local_store.feed.get(pl.public_id)
    assert entry.liked is False and entry.likes_count == 0
    assert entry.bookmarked is True and entry.bookmarks_count == 1

    notices = [t for t in local_store.notifier.drain() if t.level == "info"]
    assert len(notices) == 1

    stored = (await local_store.repository.list_public_looks())[0]
    assert stored.bookmarks_count == 0


@pytest.mark.asyncio
async def test_save_without_snapshot_when_render_fails(local_store):
    await local_store.register("me@example.com", "pw", "Me")
    await local_store.login("me@example.com", "pw")
    item = await local_store.add_item(
        ClothingItemIn(category="top", image_url="data:image/png;base64,bm9wZQ==", color="c")
    )
    local_store.composition.start_with(item.id)
    look = await local_store.save_active_look("No preview")
    assert look is not None
    assert look.snapshot_url is None
    assert any(t.level == "warning" for t in local_store.notifier.toasts)


@pytest.mark.asyncio
async def test_remote_mode_flow(remote_store, tmp_path):
    assert await remote_store.register("remote@example.com", "pw", "Remote")
    assert await remote_store.login("remote@example.com", "pw")
    assert remote_store.user.display_name == "Remote"

    top = await remote_store.add_item(_item("top"))
    remote_store.composition.start_with(top.id)
    look = await remote_store.save_active_look("Server look")
    assert look.snapshot_url is not None

    # local mirror follows successful writes
    mirror = json.loads((tmp_path / f"{closet_key(remote_store.user.id).replace(':', '_')}.json").read_text())
    assert [i["id"] for i in mirror] == [top.id]

    pl = await remote_store.publish_look(look.id)
    assert await remote_store.toggle_like(pl.public_id)
    entry = remote_store.feed.get(pl.public_id)
    assert entry.liked is True and entry.likes_count == 1

    assert await remote_store.unpublish_look(pl.public_id)
    assert remote_store.looks.get(look.id).is_public is False
    await remote_store.aclose()


@pytest.mark.asyncio
async def test_remote_forbidden_leaves_state(remote_store):
    other = ApiClient("http://test/api", transport=httpx.ASGITransport(app=app))
    await other.register("other@example.com", "pw", "Other")
    other.token = await other.login("other@example.com", "pw")
    foreign = await other.create_item({"category": "top", "imageUrl": "x", "color": "c"})

    await remote_store.register("me@example.com", "pw", "Me")
    await remote_store.login("me@example.com", "pw")
    assert await remote_store.delete_item(foreign["id"]) is False
    assert remote_store.notifier.toasts[-1].level == "error"
    assert len(await other.list_closet()) == 1
    await other.aclose()


def _mock_api(routes):
    def handler(request: httpx.Request) -> httpx.Response:
        key = (request.method, request.url.path)
        status, body = routes.get(key, (500, {"detail": "boom"}))
        return httpx.Response(status, json=body)

    return ApiClient("http://mock/api", transport=httpx.MockTransport(handler))


LOGIN_ROUTES = {
    ("POST", "/api/auth/login"): (200, {"token": "t"}),
    ("GET", "/api/auth/me"): (200, {"id": "u1", "email": "u1@example.com", "displayName": "U1"}),
}


@pytest.mark.asyncio
async def test_hydrate_falls_back_to_mirror(tmp_path):
    local = LocalStore(str(tmp_path))
    local.set(
        closet_key("u1"),
        [{"id": "i1", "userId": "u1", "imageUrl": "x", "category": "top", "color": "c", "createdAt": 1}],
    )
    store = LookMateStore(
        ClientSettings(API_BASE_URL="http://mock/api", DATA_DIR=str(tmp_path)), api=_mock_api(LOGIN_ROUTES), local=local
    )
    assert await store.login("u1@example.com", "pw")
    assert [i.id for i in store.closet.items] == ["i1"]
    assert store.notifier.toasts[-1].level == "warning"


@pytest.mark.asyncio
async def test_backend_failure_does_not_mutate(tmp_path):
    routes = {
        **LOGIN_ROUTES,
        ("GET", "/api/data/closet"): (200, {"items": []}),
        ("GET", "/api/data/looks"): (200, {"looks": []}),
    }
    store = LookMateStore(ClientSettings(API_BASE_URL="http://mock/api", DATA_DIR=str(tmp_path)), api=_mock_api(routes))
    await store.login("u1@example.com", "pw")
    assert await store.add_item(_item()) is None
    assert store.closet.items == []
    assert store.notifier.toasts[-1].level == "error"


@pytest.mark.asyncio
async def test_reaction_rollback_on_failure(tmp_path):
    store = LookMateStore(ClientSettings(API_BASE_URL="http://mock/api", DATA_DIR=str(tmp_path)), api=_mock_api({}))
    entry = PublicLookOut(
        public_id="p1", look_id="l1", owner_id="o", items=[], likes_count=0, created_at=0, liked=False
    )
    toggle = ReactionToggle(entry, "like", store.repository, SessionUser("u1", "u1@example.com"), store.notifier)
    toggle.apply()
    assert entry.liked is True and entry.likes_count == 1
    assert await toggle.commit() is False
    assert entry.liked is False and entry.likes_count == 0
    assert store.notifier.toasts[-1].level == "error"


@pytest.mark.asyncio
async def test_unlike_never_goes_negative(tmp_path):
    store = LookMateStore(ClientSettings(API_BASE_URL="http://mock/api", DATA_DIR=str(tmp_path)), api=_mock_api({}))
    entry = PublicLookOut(public_id="p1", look_id="l1", owner_id="o", items=[], likes_count=0, created_at=0, liked=True)
    toggle = ReactionToggle(entry, "like", store.repository, SessionUser("u1", "u1@example.com"), store.notifier)
    toggle.apply()
    assert entry.likes_count == 0
    toggle.rollback()
    assert entry.liked is True and entry.likes_count == 0


@pytest.mark.asyncio
async def test_session_expiry_is_handled_once(tmp_path):
    routes = {
        **LOGIN_ROUTES,
        ("GET", "/api/data/closet"): (200, {"items": []}),
        ("GET", "/api/data/looks"): (200, {"looks": []}),
        ("POST", "/api/data/closet"): (401, {"detail": "unauthorized"}),
        ("DELETE", "/api/data/closet/i1"): (401, {"detail": "unauthorized"}),
    }
    store = LookMateStore(ClientSettings(API_BASE_URL="http://mock/api", DATA_DIR=str(tmp_path)), api=_mock_api(routes))
    expired = []
    store.on("session_expired", lambda user: expired.append(user.id))

    await store.login("u1@example.com", "pw")
    assert await store.add_item(_item()) is None
    assert store.user is None
    store.handle_unauthorized()
    # a late 401 from a request already in flight
    with pytest.raises(ApiError):
        await store.api.delete_item("i1")
    warnings = [t for t in store.notifier.toasts if t.level == "warning"]
    assert len(warnings) == 1
    assert not [t for t in store.notifier.toasts if t.level == "error"]
    assert expired == ["u1"]

    await store.login("u1@example.com", "pw")
    assert await store.delete_item("i1") is False
    assert len([t for t in store.notifier.toasts if t.level == "warning"]) == 2


@pytest.mark.asyncio
async def test_save_survives_undecodable_huge_image(local_store, monkeypatch):
    await local_store.register("me@example.com", "pw", "Me")
    await local_store.login("me@example.com", "pw")
    item = await local_store.add_item(_item())
    # a 10x20 source now counts as a decompression bomb
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 50)
    local_store.composition.start_with(item.id)
    look = await local_store.save_active_look("huge")
    assert look is not None
    assert look.snapshot_url is None
    assert local_store.looks.get(look.id) is not None


@pytest.mark.asyncio
async def test_reopened_look_renders_deleted_items(local_store):
    await local_store.register("me@example.com", "pw", "Me")
    await local_store.login("me@example.com", "pw")
    top = await local_store.add_item(_item("top"))
    bottom = await local_store.add_item(_item("bottom"))
    local_store.composition.start_with(top.id)
    local_store.composition.add_item(bottom.id)
    look = await local_store.save_active_look("Both")
    assert await local_store.delete_item(bottom.id)
    local_store.notifier.drain()

    assert local_store.load_look(look.id)
    copy = await local_store.save_active_look("Copy")
    assert copy.snapshot_url is not None
    assert not local_store.notifier.drain()


def test_look_rejects_repeated_item_layer():
    with pytest.raises(ValidationError):
        LookIn(name="Twice", layers=[{"clothingId": "a"}, {"clothingId": "a", "x": 5}])


class SlowFirstRepository(LocalRepository):
    def __init__(self, store):
        super().__init__(store)
        self.calls = []

    async def update_item(self, user, item_id, patch):
        self.calls.append(("start", patch.color))
        if len(self.calls) == 1:
            await asyncio.sleep(0.05)
        out = await super().update_item(user, item_id, patch)
        self.calls.append(("end", patch.color))
        return out


@pytest.mark.asyncio
async def test_same_item_updates_run_in_call_order(tmp_path):
    local = LocalStore(str(tmp_path))
    repo = SlowFirstRepository(local)
    store = LookMateStore(ClientSettings(API_BASE_URL=None, DATA_DIR=str(tmp_path)), repository=repo, local=local)
    await store.register("me@example.com", "pw", "Me")
    await store.login("me@example.com", "pw")
    item = await store.add_item(_item())

    await asyncio.gather(
        store.update_item(item.id, {"color": "red"}),
        store.update_item(item.id, {"color": "blue"}),
    )
    assert repo.calls == [("start", "red"), ("end", "red"), ("start", "blue"), ("end", "blue")]
    assert store.closet.get(item.id).color == "blue"
    assert len(store._locks) == 0


@pytest.mark.asyncio
async def test_local_profile_update(local_store, tmp_path):
    await local_store.register("me@example.com", "pw", "Me")
    await local_store.login("me@example.com", "pw")
    profile = await local_store.update_profile({"displayName": "New Me", "height": 172, "bodyType": "slim"})
    assert profile.display_name == "New Me"
    assert profile.height == 172 and profile.body_type == "slim"
    assert local_store.user.display_name == "New Me"

    local_store.logout()
    assert await local_store.login("me@example.com", "pw")
    assert local_store.user.display_name == "New Me"
    assert '"pw"' not in (tmp_path / "users.json").read_text()


@pytest.mark.asyncio
async def test_remote_profile_update(remote_store):
    await remote_store.register("remote@example.com", "pw", "Remote")
    await remote_store.login("remote@example.com", "pw")
    profile = await remote_store.update_profile({"displayName": "Renamed", "gender": "female"})
    assert profile.display_name == "Renamed"
    assert profile.gender == "female"
    assert remote_store.user.display_name == "Renamed"
    stored = await remote_store.api.request("GET", "/auth/me/profile")
    assert stored["displayName"] == "Renamed" and stored["gender"] == "female"
    await remote_store.aclose()


@pytest.mark.asyncio
async def test_failed_profile_update_keeps_session_user(tmp_path):
    routes = {
        **LOGIN_ROUTES,
        ("GET", "/api/data/closet"): (200, {"items": []}),
        ("GET", "/api/data/looks"): (200, {"looks": []}),
    }
    store = LookMateStore(ClientSettings(API_BASE_URL="http://mock/api", DATA_DIR=str(tmp_path)), api=_mock_api(routes))
    await store.login("u1@example.com", "pw")
    assert await store.update_profile({"displayName": "Nope"}) is None
    assert store.user.display_name == "U1"
    assert store.notifier.toasts[-1].level == "error"


@pytest.mark.asyncio
async def test_wrong_password_relogin_keeps_session(remote_store):
    await remote_store.register("remote@example.com", "pw", "Remote")
    assert await remote_store.login("remote@example.com", "pw")
    token = remote_store.api.token

    assert not await remote_store.login("remote@example.com", "wrong")
    assert remote_store.user is not None
    assert remote_store.api.token == token
    assert remote_store.notifier.toasts[-1].message == "Wrong email or password."
    assert not [t for t in remote_store.notifier.toasts if t.level == "warning"]
    assert await remote_store.add_item(_item()) is not None
    await remote_store.aclose()
