"""Fitting-room composition: an ordered stack of clothing layers over the avatar.

Layers keep first-insertion order and hold at most one entry per clothing id.
List order is draw order (later layers on top of earlier ones).
"""
from copy import deepcopy
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Iterable, List, Optional

from lookmate.schemas.looks import FittingLayerIn, LookOut

_TRANSFORM_FIELDS = {"x", "y", "scale", "rotation", "visible"}


@dataclass
class FittingLayer:
    clothing_id: str
    x: float = 0.0
    y: float = 0.0
    scale: float = 1.0
    rotation: float = 0.0
    visible: bool = True

    @classmethod
    def from_wire(cls, layer: Any) -> "FittingLayer":
        if isinstance(layer, FittingLayerIn):
            layer = layer.model_dump()
        elif "clothingId" in layer:
            layer = FittingLayerIn.model_validate(layer).model_dump()
        return cls(**{f.name: layer[f.name] for f in fields(cls) if f.name in layer})

    def to_wire(self) -> FittingLayerIn:
        return FittingLayerIn(
            clothing_id=self.clothing_id,
            x=self.x,
            y=self.y,
            scale=self.scale,
            rotation=self.rotation,
            visible=self.visible,
        )


@dataclass
class ActiveLook:
    layers: List[FittingLayer] = field(default_factory=list)
    name: Optional[str] = None


class CompositionController:
    def __init__(self) -> None:
        self.active: Optional[ActiveLook] = None

    def _index(self, clothing_id: str) -> int:
        if self.active is None:
            return -1
        for i, layer in enumerate(self.active.layers):
            if layer.clothing_id == clothing_id:
                return i
        return -1

    def start_with(self, clothing_id: str) -> ActiveLook:
        """Begin (or continue) a composition with this item on top."""
        if self.active is None:
            self.active = ActiveLook()
        if self._index(clothing_id) < 0:
            self.active.layers.append(FittingLayer(clothing_id=clothing_id))
        return self.active

    def add_item(self, clothing_id: str) -> ActiveLook:
        return self.start_with(clothing_id)

    def update_layer(self, clothing_id: str, patch: Dict[str, Any]) -> None:
        idx = self._index(clothing_id)
        if idx < 0:
            return
        changes = {k: v for k, v in patch.items() if k in _TRANSFORM_FIELDS}
        self.active.layers[idx] = replace(self.active.layers[idx], **changes)

    def remove_item(self, clothing_id: str) -> None:
        idx = self._index(clothing_id)
        if idx >= 0:
            del self.active.layers[idx]

    def clear(self) -> None:
        self.active = None

    def load_from_look(self, look: LookOut) -> ActiveLook:
        """Replace any in-progress work with a copy of a saved look's layers."""
        self.active = ActiveLook(layers=self._unique(look.layers), name=look.name)
        return self.active

    @staticmethod
    def _unique(layers: Iterable[Any]) -> List[FittingLayer]:
        out: List[FittingLayer] = []
        seen = set()
        for raw in layers:
            layer = FittingLayer.from_wire(deepcopy(raw))
            if layer.clothing_id not in seen:
                seen.add(layer.clothing_id)
                out.append(layer)
        return out

    def set_name(self, name: str) -> None:
        if self.active is not None:
            self.active.name = name

    @property
    def layers(self) -> List[FittingLayer]:
        return list(self.active.layers) if self.active else []

    def used_item_ids(self) -> List[str]:
        return [layer.clothing_id for layer in self.layers]

    def visible_layers(self) -> List[FittingLayer]:
        return [layer for layer in self.layers if layer.visible]
