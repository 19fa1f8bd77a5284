import io

import httpx
import pytest
from PIL import Image

from lookmate.services.products import ProductSearchOptions, search_similar, seed_for


def test_search_is_deterministic_and_sorted():
    opts = ProductSearchOptions(sort_by="priceAsc", limit=10)
    first = search_similar(seed_for("item", "abc"), "top", opts)
    second = search_similar(seed_for("item", "abc"), "top", opts)
    assert [p.id for p in first] == [p.id for p in second]
    prices = [p.price for p in first]
    assert prices == sorted(prices)
    assert all(p.category == "top" for p in first)


def test_price_filter():
    opts = ProductSearchOptions(min_price=50000, max_price=100000, limit=30)
    products = search_similar(seed_for("x"), None, opts)
    assert all(50000 <= p.price <= 100000 for p in products)


@pytest.mark.asyncio
async def test_similar_by_item(client: httpx.AsyncClient, make_user):
    headers = await make_user()
    item = (
        await client.post(
            "/api/data/closet", headers=headers, json={"item": {"category": "shoes", "imageUrl": "x", "color": "white"}}
        )
    ).json()["item"]
    res = await client.get(
        "/api/products/similar", headers=headers, params={"itemId": item["id"], "sortBy": "priceDesc", "limit": 5}
    )
    assert res.status_code == 200
    products = res.json()["products"]
    assert len(products) == 5
    assert all(p["category"] == "shoes" for p in products)
    assert products[0]["price"] >= products[-1]["price"]

    other = await make_user("other@example.com")
    assert (
        await client.get("/api/products/similar", headers=other, params={"itemId": item["id"]})
    ).status_code == 403


@pytest.mark.asyncio
async def test_similar_by_image(client: httpx.AsyncClient, override_auth):
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), (0, 0, 255)).save(buf, format="PNG")
    res = await client.post(
        "/api/products/similar-by-image",
        files={"image": ("q.png", buf.getvalue(), "image/png")},
        data={"limit": "6"},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["queryImageUrl"].startswith("http://test/uploads/")
    assert body["detectedCategory"] in {"top", "bottom", "outer", "onepiece", "shoes", "accessory"}
    assert len(body["products"]) == 6
