import httpx
import pytest


async def _item(client, headers, category, color="black"):
    res = await client.post(
        "/api/data/closet",
        headers=headers,
        json={"item": {"category": category, "imageUrl": f"https://img/{category}.png", "color": color}},
    )
    return res.json()["item"]


def _layer(item_id, **kw):
    return {"clothingId": item_id, "x": 0, "y": 0, "scale": 1, "rotation": 0, "visible": True, **kw}


@pytest.mark.asyncio
async def test_snapshot_survives_item_delete(client: httpx.AsyncClient, make_user):
    headers = await make_user()
    a = await _item(client, headers, "top", "white")
    b = await _item(client, headers, "bottom", "navy")
    c = await _item(client, headers, "shoes", "red")

    res = await client.post(
        "/api/data/looks",
        headers=headers,
        json={"look": {"name": "Daily", "layers": [_layer(a["id"]), _layer(b["id"], y=40), _layer(c["id"])]}},
    )
    assert res.status_code == 201, res.text
    look = res.json()["look"]
    assert [i["id"] for i in look["items"]] == [a["id"], b["id"], c["id"]]

    assert (await client.delete(f"/api/data/closet/{b['id']}", headers=headers)).status_code == 200

    looks = (await client.get("/api/data/looks", headers=headers)).json()["looks"]
    saved = looks[0]
    snap_b = next(i for i in saved["items"] if i["id"] == b["id"])
    assert snap_b == b
    assert [layer["clothingId"] for layer in saved["layers"]] == [a["id"], b["id"], c["id"]]
    assert saved["layers"][1]["y"] == 40


@pytest.mark.asyncio
async def test_snapshot_ignores_foreign_items(client: httpx.AsyncClient, make_user):
    alice = await make_user("alice@example.com")
    bob = await make_user("bob@example.com")
    mine = await _item(client, alice, "top")
    theirs = await _item(client, bob, "bottom")
    res = await client.post(
        "/api/data/looks",
        headers=alice,
        json={"look": {"name": "Mixed", "layers": [_layer(mine["id"])], "itemIds": [theirs["id"]]}},
    )
    assert res.status_code == 201
    assert [i["id"] for i in res.json()["look"]["items"]] == [mine["id"]]


@pytest.mark.asyncio
async def test_look_requires_name(client: httpx.AsyncClient, make_user):
    headers = await make_user()
    res = await client.post("/api/data/looks", headers=headers, json={"look": {"name": "", "layers": []}})
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_look_rejects_repeated_item_layer(client: httpx.AsyncClient, make_user):
    headers = await make_user()
    a = await _item(client, headers, "top")
    res = await client.post(
        "/api/data/looks",
        headers=headers,
        json={"look": {"name": "Twice", "layers": [_layer(a["id"]), _layer(a["id"], x=10)]}},
    )
    assert res.status_code == 400
    assert res.json()["detail"] == "validation_error"
    assert (await client.get("/api/data/looks", headers=headers)).json()["looks"] == []


@pytest.mark.asyncio
async def test_delete_look_ownership(client: httpx.AsyncClient, make_user):
    owner = await make_user("owner@example.com")
    other = await make_user("other@example.com")
    top = await _item(client, owner, "top")
    look = (
        await client.post(
            "/api/data/looks", headers=owner, json={"look": {"name": "L", "layers": [_layer(top["id"])]}}
        )
    ).json()["look"]

    assert (await client.delete(f"/api/data/looks/{look['id']}", headers=other)).status_code == 403
    assert (await client.delete(f"/api/data/looks/{look['id']}", headers=owner)).status_code == 200
    assert (await client.get("/api/data/looks", headers=owner)).json()["looks"] == []
    assert (await client.delete(f"/api/data/looks/{look['id']}", headers=owner)).status_code == 404
