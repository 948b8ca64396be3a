"""Fixed-window request counters per identity and route class."""

from datetime import datetime

from pydantic import BaseModel

from clientportal.core.db import StoredModel


class RateLimitCounter(StoredModel):
    """Request count for one key inside its current window.

    Indexed on key - unique, expires_at. A fresh window replaces an elapsed
    one within the same atomic update. The MongoDB _id is ignored.
    """

    key: str  # "<route_class>:<identity>"
    route_class: str
    identity: str
    window_start: datetime
    count: int
    expires_at: datetime


class RateLimitDecision(BaseModel):
    allowed: bool
    limit: int
    remaining: int
    reset_at: datetime
    store_unavailable: bool = False


def counter_key(route_class: str, identity: str) -> str:
    return f"{route_class}:{identity}"
