from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any

from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from clientportal.core.db import store_call
from clientportal.core.modules.rate_limit.models import RateLimitCounter, counter_key


class RateLimitStore(ABC):
    @abstractmethod
    async def hit(self, route_class: str, identity: str, moment: datetime, window: timedelta) -> RateLimitCounter:
        """Atomically count one request and return the counter after the increment.

        Starts a new window with count=1 when no counter exists or the
        existing one expired at or before ``moment``.
        """

    @abstractmethod
    async def delete_expired_before(self, moment: datetime) -> int: ...

    @abstractmethod
    async def count(self, moment: datetime) -> tuple[int, int]:
        """Return (total, expired) counter numbers."""

    async def create_indexes(self) -> None:
        """Prepare backend indexes. No-op unless the backend needs them."""


class MongoRateLimitStore(RateLimitStore):
    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._collection = database.get_collection("rate_limits")

    @store_call
    async def create_indexes(self) -> None:
        await self._collection.create_index([("key", 1)], unique=True)
        await self._collection.create_index([("expires_at", 1)])

    @store_call
    async def hit(self, route_class: str, identity: str, moment: datetime, window: timedelta) -> RateLimitCounter:
        key = counter_key(route_class, identity)
        # Pipeline update: the window check and the increment run as one document write
        pipeline: list[dict[str, Any]] = [
            {
                "$set": {
                    "_fresh": {
                        "$or": [
                            {"$eq": [{"$type": "$expires_at"}, "missing"]},
                            {"$lte": ["$expires_at", moment]},
                        ]
                    }
                }
            },
            {
                "$set": {
                    "route_class": {"$literal": route_class},
                    "identity": {"$literal": identity},
                    "window_start": {"$cond": ["$_fresh", moment, "$window_start"]},
                    "expires_at": {"$cond": ["$_fresh", moment + window, "$expires_at"]},
                    "count": {"$cond": ["$_fresh", 1, {"$add": ["$count", 1]}]},
                }
            },
            {"$unset": "_fresh"},
        ]
        try:
            document = await self._collection.find_one_and_update(
                {"key": key}, pipeline, upsert=True, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            # Two first requests raced on the unique key; retry updates the winner's document
            document = await self._collection.find_one_and_update(
                {"key": key}, pipeline, upsert=True, return_document=ReturnDocument.AFTER
            )
        return RateLimitCounter.from_mongo(document)

    @store_call
    async def delete_expired_before(self, moment: datetime) -> int:
        result = await self._collection.delete_many({"expires_at": {"$lte": moment}})
        return result.deleted_count

    @store_call
    async def count(self, moment: datetime) -> tuple[int, int]:
        total = await self._collection.count_documents({})
        expired = await self._collection.count_documents({"expires_at": {"$lte": moment}})
        return total, expired


class MemoryRateLimitStore(RateLimitStore):
    """In-process counters. ``hit`` never awaits, so each call is atomic on the event loop."""

    def __init__(self) -> None:
        self._counters: dict[str, RateLimitCounter] = {}

    async def hit(self, route_class: str, identity: str, moment: datetime, window: timedelta) -> RateLimitCounter:
        key = counter_key(route_class, identity)
        counter = self._counters.get(key)
        if counter is None or counter.expires_at <= moment:
            counter = RateLimitCounter(
                key=key,
                route_class=route_class,
                identity=identity,
                window_start=moment,
                count=1,
                expires_at=moment + window,
            )
        else:
            counter = counter.model_copy(update={"count": counter.count + 1})
        self._counters[key] = counter
        return counter

    async def delete_expired_before(self, moment: datetime) -> int:
        expired = [key for key, counter in self._counters.items() if counter.expires_at <= moment]
        for key in expired:
            del self._counters[key]
        return len(expired)

    async def count(self, moment: datetime) -> tuple[int, int]:
        expired = sum(1 for counter in self._counters.values() if counter.expires_at <= moment)
        return len(self._counters), expired
