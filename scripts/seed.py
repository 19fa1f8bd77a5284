"""Load demo users, closet items, looks and one public look.

Safe to re-run: a demo user that already owns items is left alone.
Demo accounts are passwordless; registering with the same email claims them.
"""
from __future__ import annotations

import asyncio

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from lookmate.core.config import settings
from lookmate.core.db import init_models
from lookmate.models.models import ClothingItem, Look, PublicLook
from lookmate.routers.data_helpers import generate_public_id, public_items_snapshot, snapshot_items
from lookmate.services.users import get_or_create_user_by_email, owner_display_name


def _placeholder(bg: str, fg: str, text: str) -> str:
    return f"https://via.placeholder.com/400x400/{bg}/{fg}?text={text}"


DEMO_USERS = [
    {"email": "demo1@lookmate.com", "display_name": "Fashion Lover", "height": 170, "body_type": "normal", "gender": "female"},
    {"email": "demo2@lookmate.com", "display_name": "Style Master", "height": 175, "body_type": "slim", "gender": "male"},
]

DEMO_ITEMS = [
    {"category": "top", "color": "white", "season": "summer", "brand": "Uniqlo", "size": "M",
     "image_url": _placeholder("ffffff", "000000", "White+Tshirt"), "tags": ["casual", "basic"],
     "is_favorite": True, "is_purchased": True, "price": 15000},
    {"category": "bottom", "color": "black", "season": "fall", "brand": "Levi's", "size": "28",
     "image_url": _placeholder("1a1a2e", "ffffff", "Black+Jeans"), "tags": ["denim", "classic"],
     "is_favorite": True, "is_purchased": True, "price": 89000},
    {"category": "outer", "color": "navy", "season": "winter", "brand": "The North Face", "size": "L",
     "image_url": _placeholder("3d5a80", "ffffff", "Navy+Jacket"), "tags": ["outdoor", "warm"],
     "is_purchased": True, "price": 250000},
    {"category": "shoes", "color": "white", "brand": "Nike", "size": "250",
     "image_url": _placeholder("e5e5e5", "000000", "White+Sneakers"), "tags": ["sneakers", "comfortable"],
     "is_favorite": True, "is_purchased": True, "price": 120000, "shopping_url": "https://www.nike.com"},
    {"category": "accessory", "color": "brown", "brand": "Fossil",
     "image_url": _placeholder("8b5a2b", "ffffff", "Leather+Watch"), "tags": ["watch"],
     "is_purchased": False, "price": 180000},
]

# (name, item indexes in layer order, tags, publish)
DEMO_LOOKS = [
    ("Casual Summer Look", [0, 1, 3], ["casual", "summer"], True),
    ("Warm Winter Look", [0, 1, 2, 3], ["winter", "warm"], False),
]


async def _run() -> None:
    await init_models()
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    Session = async_sessionmaker(engine, expire_on_commit=False)
    async with Session() as session:
        for demo in DEMO_USERS:
            user = await get_or_create_user_by_email(session, demo["email"], demo["display_name"])
            owned = await session.scalar(
                select(func.count()).select_from(ClothingItem).where(ClothingItem.user_id == user.id)
            )
            if owned:
                print(f"skip {user.email}: already has {owned} items")
                continue
            user.height = demo["height"]
            user.body_type = demo["body_type"]
            user.gender = demo["gender"]

            items = []
            for data in DEMO_ITEMS:
                item = ClothingItem(user_id=user.id, original_image_url=data["image_url"], **data)
                session.add(item)
                items.append(item)
            await session.flush()

            for name, idxs, tags, publish in DEMO_LOOKS:
                ids = [items[i].id for i in idxs]
                look = Look(
                    user_id=user.id,
                    name=name,
                    item_ids=ids,
                    items_snapshot=snapshot_items(items, ids),
                    layers=[
                        {"clothingId": item_id, "x": 0, "y": i * 20, "scale": 1, "rotation": 0, "visible": True}
                        for i, item_id in enumerate(ids)
                    ],
                    tags=tags,
                )
                session.add(look)
                await session.flush()
                if publish:
                    pl = PublicLook(
                        look_id=look.id,
                        public_id=generate_public_id(),
                        name=look.name,
                        owner_id=user.id,
                        owner_name=owner_display_name(user),
                        owner_email=user.email,
                        items_snapshot=public_items_snapshot(look.items_snapshot),
                        tags=list(tags),
                    )
                    session.add(pl)
                    look.is_public = True
                    look.public_id = pl.public_id
            print(f"seeded {user.email}: {len(items)} items, {len(DEMO_LOOKS)} looks")
        await session.commit()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(_run())
