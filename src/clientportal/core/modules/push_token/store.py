from abc import ABC, abstractmethod
from typing import Any
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase

from clientportal.core.db import store_call
from clientportal.core.modules.push_token.models import PushToken


class PushTokenStore(ABC):
    @abstractmethod
    async def upsert(self, push_token: PushToken) -> None: ...

    @abstractmethod
    async def delete(self, user_id: UUID) -> None: ...

    @abstractmethod
    async def find(self, user_id: UUID) -> PushToken | None: ...

    async def create_indexes(self) -> None:
        """Prepare backend indexes. No-op unless the backend needs them."""


class MongoPushTokenStore(PushTokenStore):
    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._collection = database.get_collection("push_tokens")

    @store_call
    async def create_indexes(self) -> None:
        await self._collection.create_index([("user_id", 1)], unique=True)

    @store_call
    async def upsert(self, push_token: PushToken) -> None:
        await self._collection.update_one(
            {"user_id": push_token.user_id}, {"$set": push_token.model_dump()}, upsert=True
        )

    @store_call
    async def delete(self, user_id: UUID) -> None:
        await self._collection.delete_one({"user_id": user_id})

    @store_call
    async def find(self, user_id: UUID) -> PushToken | None:
        document = await self._collection.find_one({"user_id": user_id})
        return PushToken.from_mongo(document) if document is not None else None


class MemoryPushTokenStore(PushTokenStore):
    def __init__(self) -> None:
        self._tokens: dict[UUID, PushToken] = {}

    async def upsert(self, push_token: PushToken) -> None:
        self._tokens[push_token.user_id] = push_token

    async def delete(self, user_id: UUID) -> None:
        self._tokens.pop(user_id, None)

    async def find(self, user_id: UUID) -> PushToken | None:
        return self._tokens.get(user_id)
