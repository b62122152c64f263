import time
from enum import StrEnum

from pydantic import BaseModel, Field

PropertyValue = str | int | float | bool
Properties = dict[str, PropertyValue]


class Endpoint(StrEnum):
    IDENTIFY = "/user/identify"
    TRACK = "/log"


def now_ms() -> int:
    """Milliseconds since the Unix epoch."""
    return int(time.time() * 1000)


class IdentifyPayload(BaseModel):
    user_id: str
    project: str
    properties: Properties


class TrackPayload(BaseModel):
    name: str
    channel: str
    project: str
    user_id: str
    icon: str = ""
    description: str = ""
    tags: Properties = Field(default_factory=dict)
    timestamp: int = Field(default_factory=now_ms)
