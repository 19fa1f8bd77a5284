from typing import Optional

from pydantic import Field

from lookmate.schemas.common import BodyType, CamelModel, Gender


class ProfileOut(CamelModel):
    id: str
    email: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    height: Optional[float] = None
    body_type: Optional[str] = None
    gender: Optional[str] = None


class ProfilePatch(CamelModel):
    display_name: Optional[str] = Field(None, min_length=1)
    avatar_url: Optional[str] = None
    height: Optional[float] = Field(None, gt=0)
    body_type: Optional[BodyType] = None
    gender: Optional[Gender] = None
