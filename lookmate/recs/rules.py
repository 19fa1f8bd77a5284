"""Rule-based "today's look" picker.

Not a model: a fixed priority over category combinations with a few coin flips.
A onepiece beats a top/bottom pair as the base; outerwear is a 50/50 extra,
shoes are always added when the closet has any, and an accessory shows up one
time in three.
"""
import random
from typing import Any, Optional, Protocol, Sequence, TypeVar

T = TypeVar("T")

OUTER_CHANCE = 0.5
ACCESSORY_CHANCE = 0.33


class RandomSource(Protocol):
    def random(self) -> float:
        ...

    def choice(self, seq: Sequence[T]) -> T:
        ...


def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def filter_by_season(items: Sequence[T], season: Optional[str]) -> list[T]:
    if not season:
        return list(items)
    return [it for it in items if not _field(it, "season") or _field(it, "season") == season]


def group_by_category(items: Sequence[T]) -> dict[str, list[T]]:
    groups: dict[str, list[T]] = {}
    for it in items:
        groups.setdefault(_field(it, "category"), []).append(it)
    return groups


def generate_recommended_items(
    items: Sequence[T],
    season: Optional[str] = None,
    rng: RandomSource = random,
) -> Optional[list[T]]:
    """Pick one outfit from ``items``; ``None`` when no onepiece and no top+bottom pair exist."""
    groups = group_by_category(filter_by_season(items, season))

    picked: list[T] = []
    if groups.get("onepiece"):
        picked.append(rng.choice(groups["onepiece"]))
    elif groups.get("top") and groups.get("bottom"):
        picked.append(rng.choice(groups["top"]))
        picked.append(rng.choice(groups["bottom"]))
    else:
        return None

    if groups.get("outer") and rng.random() < OUTER_CHANCE:
        picked.append(rng.choice(groups["outer"]))
    if groups.get("shoes"):
        picked.append(rng.choice(groups["shoes"]))
    if groups.get("accessory") and rng.random() < ACCESSORY_CHANCE:
        picked.append(rng.choice(groups["accessory"]))
    return picked
