from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from clientportal.core.db import store_call
from clientportal.core.modules.csrf.models import CsrfToken
from clientportal.errors import DuplicateTokenError


class CsrfTokenStore(ABC):
    @abstractmethod
    async def insert(self, token: CsrfToken) -> None: ...

    @abstractmethod
    async def find(self, token: str) -> CsrfToken | None: ...

    @abstractmethod
    async def delete(self, token: str) -> None: ...

    @abstractmethod
    async def delete_expired_before(self, moment: datetime) -> int: ...

    async def create_indexes(self) -> None:
        """Prepare backend indexes. No-op unless the backend needs them."""


class MongoCsrfTokenStore(CsrfTokenStore):
    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._collection = database.get_collection("csrf_tokens")

    @store_call
    async def create_indexes(self) -> None:
        await self._collection.create_index([("token", 1)], unique=True)
        await self._collection.create_index([("expires_at", 1)])

    @store_call
    async def insert(self, token: CsrfToken) -> None:
        try:
            await self._collection.insert_one(token.to_mongo())
        except DuplicateKeyError as e:
            raise DuplicateTokenError("CSRF token already exists") from e

    @store_call
    async def find(self, token: str) -> CsrfToken | None:
        document = await self._collection.find_one({"token": token})
        return CsrfToken.from_mongo(document) if document is not None else None

    @store_call
    async def delete(self, token: str) -> None:
        await self._collection.delete_one({"token": token})

    @store_call
    async def delete_expired_before(self, moment: datetime) -> int:
        result = await self._collection.delete_many({"expires_at": {"$lte": moment}})
        return result.deleted_count


class MemoryCsrfTokenStore(CsrfTokenStore):
    def __init__(self) -> None:
        self._tokens: dict[str, CsrfToken] = {}

    async def insert(self, token: CsrfToken) -> None:
        if token.token in self._tokens:
            raise DuplicateTokenError("CSRF token already exists")
        self._tokens[token.token] = token

    async def find(self, token: str) -> CsrfToken | None:
        return self._tokens.get(token)

    async def delete(self, token: str) -> None:
        self._tokens.pop(token, None)

    async def delete_expired_before(self, moment: datetime) -> int:
        expired = [key for key, record in self._tokens.items() if record.is_expired(moment)]
        for key in expired:
            del self._tokens[key]
        return len(expired)
