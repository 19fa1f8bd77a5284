from typing import List, Optional

from pydantic import Field

from lookmate.schemas.common import CamelModel


class PublicLookItem(CamelModel):
    id: str
    image_url: str
    category: str
    color: str
    tags: List[str] = Field(default_factory=list)


class PublicLookOut(CamelModel):
    public_id: str
    look_id: str
    name: str = ""
    owner_name: Optional[str] = None
    owner_id: str
    owner_email: Optional[str] = None
    snapshot_url: Optional[str] = None
    items: List[PublicLookItem]
    likes_count: int = 0
    bookmarks_count: int = 0
    created_at: int
    tags: List[str] = Field(default_factory=list)
    liked: Optional[bool] = None
    bookmarked: Optional[bool] = None


class PublishIn(CamelModel):
    look_id: str = Field(min_length=1)


class PublicLookItemOut(CamelModel):
    public_look: PublicLookOut


class PublicLookListOut(CamelModel):
    public_looks: List[PublicLookOut]


class LikeOut(CamelModel):
    liked: bool
    likes_count: int


class BookmarkOut(CamelModel):
    bookmarked: bool
    bookmarks_count: int
