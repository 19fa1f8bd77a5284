from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from lookmate.schemas.common import CamelModel


class FittingLayerIn(CamelModel):
    clothing_id: str
    x: float = 0
    y: float = 0
    scale: float = 1
    rotation: float = 0
    visible: bool = True


class LookIn(CamelModel):
    name: str = Field(min_length=1)
    item_ids: Optional[List[str]] = None
    layers: List[FittingLayerIn] = Field(default_factory=list)
    snapshot_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("layers")
    @classmethod
    def one_layer_per_item(cls, layers: List[FittingLayerIn]) -> List[FittingLayerIn]:
        ids = [layer.clothing_id for layer in layers]
        if len(set(ids)) != len(ids):
            raise ValueError("each item may appear in only one layer")
        return layers


class LookCreateIn(CamelModel):
    look: LookIn


class LookOut(CamelModel):
    id: str
    user_id: str
    name: str
    items: List[Dict[str, Any]]
    layers: List[FittingLayerIn]
    snapshot_url: Optional[str] = None
    is_public: bool = False
    public_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: int


class LookItemOut(CamelModel):
    look: LookOut


class LookListOut(CamelModel):
    looks: List[LookOut]
