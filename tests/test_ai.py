import io

import httpx
import pytest
from PIL import Image

from lookmate.core.config import settings


def _png(size=(8, 8), color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.mark.asyncio
async def test_remove_background_returns_upload(client: httpx.AsyncClient):
    data = _png()
    res = await client.post("/api/ai/remove-background", files={"clothImage": ("shirt.png", data, "image/png")})
    assert res.status_code == 200
    body = res.json()
    assert body["imageUrl"].startswith("http://test/uploads/")
    assert body["meta"]["originalSize"] == len(data)
    assert body["meta"]["note"].startswith("STUB")

    served = await client.get(body["imageUrl"].replace("http://test", ""))
    assert served.status_code == 200
    assert served.content == data


@pytest.mark.asyncio
async def test_avatar_stub(client: httpx.AsyncClient):
    res = await client.post(
        "/api/ai/avatar",
        files={"faceImage": ("face.png", _png(), "image/png")},
        data={"height": "170", "bodyType": "slim", "gender": "female"},
    )
    assert res.status_code == 200
    meta = res.json()["meta"]
    assert meta["bodyType"] == "slim"
    assert meta["modelVersion"] == settings.AI_STUB_MODEL_VERSION


@pytest.mark.asyncio
async def test_upload_rejects_non_image(client: httpx.AsyncClient):
    res = await client.post("/api/ai/remove-background", files={"clothImage": ("a.txt", b"hello", "text/plain")})
    assert res.status_code == 400
    assert res.json()["detail"] == "invalid_file_type"


@pytest.mark.asyncio
async def test_upload_rejects_large_file(client: httpx.AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_MAX_BYTES", 16)
    res = await client.post("/api/ai/remove-background", files={"clothImage": ("big.png", _png((64, 64)), "image/png")})
    assert res.status_code == 413
    assert res.json()["detail"] == "file_too_large"


@pytest.mark.asyncio
async def test_try_on_stub(client: httpx.AsyncClient):
    res = await client.post(
        "/api/ai/try-on",
        json={"avatarImageUrl": "https://img/avatar.png", "clothingImageUrls": ["https://img/top.png"]},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["tryOnImageUrl"] == "https://img/avatar.png"
    assert body["meta"]["clothingCount"] == 1
    assert body["meta"]["pose"] == "default"

    empty = await client.post("/api/ai/try-on", json={"avatarImageUrl": "a", "clothingImageUrls": []})
    assert empty.status_code == 400
