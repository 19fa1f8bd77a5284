from typing import List, Optional

from pydantic import Field

from lookmate.schemas.common import CamelModel, Category, Season


class ClothingItemIn(CamelModel):
    category: Category
    image_url: str
    original_image_url: Optional[str] = None
    color: str
    brand: Optional[str] = None
    size: Optional[str] = None
    season: Optional[Season] = None
    memo: Optional[str] = None
    is_favorite: bool = False
    shopping_url: Optional[str] = None
    price: Optional[float] = None
    is_purchased: bool = False
    tags: List[str] = Field(default_factory=list)


class ClothingItemPatch(CamelModel):
    category: Optional[Category] = None
    image_url: Optional[str] = None
    color: Optional[str] = None
    brand: Optional[str] = None
    size: Optional[str] = None
    season: Optional[Season] = None
    memo: Optional[str] = None
    is_favorite: Optional[bool] = None
    shopping_url: Optional[str] = None
    price: Optional[float] = None
    is_purchased: Optional[bool] = None
    tags: Optional[List[str]] = None


class ClothingItemOut(CamelModel):
    id: str
    user_id: str
    image_url: str
    original_image_url: Optional[str] = None
    category: str
    color: str
    brand: Optional[str] = None
    size: Optional[str] = None
    season: Optional[str] = None
    memo: Optional[str] = None
    is_favorite: bool = False
    shopping_url: Optional[str] = None
    price: Optional[float] = None
    is_purchased: bool = False
    created_at: int
    tags: List[str] = Field(default_factory=list)


class ClosetCreateIn(CamelModel):
    item: ClothingItemIn


class ClosetUpdateIn(CamelModel):
    patch: ClothingItemPatch


class ClosetItemOut(CamelModel):
    item: ClothingItemOut


class ClosetListOut(CamelModel):
    items: List[ClothingItemOut]
