import threading
from importlib import reload

import httpx
import pytest

from lookmate.storage.keys import upload_key


class DummyS3:
    def __init__(self):
        self.last_params = None

    def put_object(self, **params):
        self.last_params = params
        self.thread = threading.get_ident()


@pytest.mark.asyncio
async def test_object_url_prefers_cdn(monkeypatch):
    monkeypatch.setenv("R2_CDN_BASE", "https://cdn.example.com")
    monkeypatch.setenv("R2_ENDPOINT", "https://r2.example.com")
    monkeypatch.setenv("R2_BUCKET", "bucket")
    import lookmate.storage.r2 as r2

    reload(r2)
    assert r2.object_url("k1") == "https://cdn.example.com/k1"
    monkeypatch.setenv("R2_CDN_BASE", "")
    reload(r2)
    assert r2.object_url("k1") == "https://r2.example.com/bucket/k1"
    monkeypatch.setenv("R2_BUCKET", "")
    reload(r2)


@pytest.mark.asyncio
async def test_put_object(monkeypatch):
    import lookmate.storage.r2 as r2

    monkeypatch.setattr(r2, "R2_BUCKET", "bucket")
    monkeypatch.setattr(r2, "R2_CDN_BASE", "https://cdn.example.com")
    dummy = DummyS3()
    monkeypatch.setattr(r2, "r2_client", lambda: dummy)
    url = r2.put_object("clothes/a.png", b"data", "image/png")
    assert url == "https://cdn.example.com/clothes/a.png"
    assert dummy.last_params["Bucket"] == "bucket"
    assert dummy.last_params["ContentType"] == "image/png"


def test_upload_key_keeps_extension():
    key = upload_key("clothes", "My Shirt.PNG")
    assert key.startswith("uploads/clothes/")
    assert key.endswith(".png")


@pytest.mark.asyncio
async def test_upload_goes_to_r2_off_the_event_loop(monkeypatch, client: httpx.AsyncClient):
    import lookmate.storage.r2 as r2

    monkeypatch.setattr(r2, "R2_BUCKET", "bucket")
    monkeypatch.setattr(r2, "R2_CDN_BASE", "https://cdn.example.com")
    dummy = DummyS3()
    monkeypatch.setattr(r2, "r2_client", lambda: dummy)

    res = await client.post(
        "/api/ai/remove-background", files={"clothImage": ("shirt.png", b"\x89PNG-bytes", "image/png")}
    )
    assert res.status_code == 200, res.text
    assert res.json()["imageUrl"].startswith("https://cdn.example.com/uploads/clothes/")
    assert dummy.last_params["Body"] == b"\x89PNG-bytes"
    assert dummy.thread != threading.get_ident()
