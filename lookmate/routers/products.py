from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from lookmate.auth.deps import AuthUser, get_current_user
from lookmate.core.db import get_session
from lookmate.models.models import ClothingItem
from lookmate.routers.data_helpers import ensure_owner
from lookmate.schemas.common import CamelModel, Category
from lookmate.services.products import (
    Product,
    ProductSearchOptions,
    SortBy,
    detect_category,
    search_similar,
    seed_for,
)
from lookmate.storage.uploads import store_image_upload

router = APIRouter(prefix="/products", tags=["products"])


class ProductListOut(CamelModel):
    products: List[Product]


class ImageSearchOut(CamelModel):
    query_image_url: str
    detected_category: Optional[str] = None
    products: List[Product]


@router.get("/similar", response_model=ProductListOut)
async def similar_by_item(
    item_id: str = Query(..., alias="itemId"),
    category: Optional[Category] = Query(None),
    min_price: Optional[int] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[int] = Query(None, alias="maxPrice", ge=0),
    sort_by: SortBy = Query("recommend", alias="sortBy"),
    limit: int = Query(12, ge=1, le=50),
    session: AsyncSession = Depends(get_session),
    user: AuthUser = Depends(get_current_user),
):
    item = await session.get(ClothingItem, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="item_not_found")
    ensure_owner(item.user_id, user)
    opts = ProductSearchOptions(
        category=category, min_price=min_price, max_price=max_price, sort_by=sort_by, limit=limit
    )
    return ProductListOut(products=search_similar(seed_for("item", item.id), category or item.category, opts))


@router.post("/similar-by-image", response_model=ImageSearchOut)
async def similar_by_image(
    request: Request,
    image: UploadFile = File(...),
    category: Optional[Category] = Form(None),
    min_price: Optional[int] = Form(None, alias="minPrice", ge=0),
    max_price: Optional[int] = Form(None, alias="maxPrice", ge=0),
    sort_by: SortBy = Form("recommend", alias="sortBy"),
    limit: int = Form(20, ge=1, le=50),
    user: AuthUser = Depends(get_current_user),
):
    stored = await store_image_upload(request, image, "search")
    seed = seed_for("image", stored.digest)
    detected = detect_category(seed)
    opts = ProductSearchOptions(
        category=category, min_price=min_price, max_price=max_price, sort_by=sort_by, limit=limit
    )
    return ImageSearchOut(
        query_image_url=stored.url,
        detected_category=detected,
        products=search_similar(seed, category or detected, opts),
    )
