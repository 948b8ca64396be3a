"""Storage backends bundling one store per collection."""

from abc import ABC
from typing import Any
from urllib.parse import urlparse

from pymongo import AsyncMongoClient

from clientportal.core.modules.account.store import AccountStore, MemoryAccountStore, MongoAccountStore
from clientportal.core.modules.csrf.store import CsrfTokenStore, MemoryCsrfTokenStore, MongoCsrfTokenStore
from clientportal.core.modules.push_token.store import MemoryPushTokenStore, MongoPushTokenStore, PushTokenStore
from clientportal.core.modules.rate_limit.store import MemoryRateLimitStore, MongoRateLimitStore, RateLimitStore
from clientportal.core.modules.session.store import MemorySessionStore, MongoSessionStore, SessionStore


class Storage(ABC):
    """Stores used by the services, all backed by the same persistence engine."""

    accounts: AccountStore
    sessions: SessionStore
    csrf_tokens: CsrfTokenStore
    rate_limits: RateLimitStore
    push_tokens: PushTokenStore

    async def on_start(self) -> None:
        for store in (self.accounts, self.sessions, self.csrf_tokens, self.rate_limits, self.push_tokens):
            await store.create_indexes()

    async def on_stop(self) -> None:
        """Release backend resources."""


class MongoStorage(Storage):
    def __init__(self, database_url: str) -> None:
        self.mongo_client: AsyncMongoClient[dict[str, Any]] = AsyncMongoClient(
            database_url, uuidRepresentation="standard", tz_aware=True
        )
        database = self.mongo_client.get_database(urlparse(database_url).path[1:])
        self.accounts = MongoAccountStore(database)
        self.sessions = MongoSessionStore(database)
        self.csrf_tokens = MongoCsrfTokenStore(database)
        self.rate_limits = MongoRateLimitStore(database)
        self.push_tokens = MongoPushTokenStore(database)

    async def on_stop(self) -> None:
        await self.mongo_client.aclose()


class MemoryStorage(Storage):
    def __init__(self) -> None:
        self.accounts = MemoryAccountStore()
        self.sessions = MemorySessionStore()
        self.csrf_tokens = MemoryCsrfTokenStore()
        self.rate_limits = MemoryRateLimitStore()
        self.push_tokens = MemoryPushTokenStore()
