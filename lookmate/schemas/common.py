from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

Category = Literal["top", "bottom", "outer", "onepiece", "shoes", "accessory"]
Season = Literal["spring", "summer", "fall", "winter"]
BodyType = Literal["slim", "normal", "athletic", "chubby"]
Gender = Literal["male", "female", "unisex"]


class CamelModel(BaseModel):
    """Base for wire models: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SuccessOut(CamelModel):
    success: bool = True


def to_millis(dt: Optional[datetime]) -> int:
    if dt is None:
        return 0
    # SQLite hands back naive datetimes; they were written as UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)
