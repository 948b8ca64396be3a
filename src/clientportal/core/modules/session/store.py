"""Persistence for sessions: one abstract store, a MongoDB backend and an in-memory backend."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from clientportal.core.db import store_call
from clientportal.core.modules.session.models import Session, SessionStats, Transport
from clientportal.errors import DuplicateTokenError


class SessionStore(ABC):
    @abstractmethod
    async def insert(self, session: Session) -> None:
        """Persist a new session. Raises DuplicateTokenError on token collision."""

    @abstractmethod
    async def find_by_token(self, token: str) -> Session | None:
        """Look up a session regardless of expiry."""

    @abstractmethod
    async def find_by_user(self, user_id: UUID) -> list[Session]:
        """All sessions of a user, expired ones included, newest first."""

    @abstractmethod
    async def delete_by_token(self, token: str, transport: Transport) -> None:
        """Delete a session if present and issued for ``transport``."""

    @abstractmethod
    async def delete_by_user(self, user_id: UUID) -> int:
        """Delete every session of a user, returning how many were removed."""

    @abstractmethod
    async def delete_expired_before(self, moment: datetime) -> int:
        """Delete sessions whose expiry is at or before ``moment``."""

    @abstractmethod
    async def stats(self, moment: datetime) -> SessionStats: ...

    async def create_indexes(self) -> None:
        """Prepare backend indexes. No-op unless the backend needs them."""


class MongoSessionStore(SessionStore):
    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._collection = database.get_collection("sessions")

    @store_call
    async def create_indexes(self) -> None:
        await self._collection.create_index([("token", 1)], unique=True)
        await self._collection.create_index([("user_id", 1)])
        await self._collection.create_index([("expires_at", 1)])

    @store_call
    async def insert(self, session: Session) -> None:
        try:
            await self._collection.insert_one(session.to_mongo())
        except DuplicateKeyError as e:
            raise DuplicateTokenError("Session token already exists") from e

    @store_call
    async def find_by_token(self, token: str) -> Session | None:
        document = await self._collection.find_one({"token": token})
        return Session.from_mongo(document) if document is not None else None

    @store_call
    async def find_by_user(self, user_id: UUID) -> list[Session]:
        cursor = self._collection.find({"user_id": user_id}).sort("created_at", -1)
        return [Session.from_mongo(document) async for document in cursor]

    @store_call
    async def delete_by_token(self, token: str, transport: Transport) -> None:
        await self._collection.delete_one({"token": token, "transport": transport})

    @store_call
    async def delete_by_user(self, user_id: UUID) -> int:
        result = await self._collection.delete_many({"user_id": user_id})
        return result.deleted_count

    @store_call
    async def delete_expired_before(self, moment: datetime) -> int:
        result = await self._collection.delete_many({"expires_at": {"$lte": moment}})
        return result.deleted_count

    @store_call
    async def stats(self, moment: datetime) -> SessionStats:
        total = await self._collection.count_documents({})
        expired = await self._collection.count_documents({"expires_at": {"$lte": moment}})
        return SessionStats(total=total, active=total - expired, expired=expired)


class MemorySessionStore(SessionStore):
    """In-process store for tests and single-process development runs."""

    def __init__(self) -> None:
        self._sessions: dict[str, dict[str, Any]] = {}

    async def insert(self, session: Session) -> None:
        if session.token in self._sessions:
            raise DuplicateTokenError("Session token already exists")
        self._sessions[session.token] = session.to_mongo()

    async def find_by_token(self, token: str) -> Session | None:
        document = self._sessions.get(token)
        return Session.from_mongo(document) if document is not None else None

    async def find_by_user(self, user_id: UUID) -> list[Session]:
        documents = [doc for doc in self._sessions.values() if doc["user_id"] == user_id]
        documents.sort(key=lambda doc: doc["created_at"], reverse=True)
        return [Session.from_mongo(doc) for doc in documents]

    async def delete_by_token(self, token: str, transport: Transport) -> None:
        document = self._sessions.get(token)
        if document is not None and document["transport"] == transport:
            del self._sessions[token]

    async def delete_by_user(self, user_id: UUID) -> int:
        tokens = [token for token, doc in self._sessions.items() if doc["user_id"] == user_id]
        for token in tokens:
            del self._sessions[token]
        return len(tokens)

    async def delete_expired_before(self, moment: datetime) -> int:
        tokens = [token for token, doc in self._sessions.items() if doc["expires_at"] <= moment]
        for token in tokens:
            del self._sessions[token]
        return len(tokens)

    async def stats(self, moment: datetime) -> SessionStats:
        expired = sum(1 for doc in self._sessions.values() if doc["expires_at"] <= moment)
        total = len(self._sessions)
        return SessionStats(total=total, active=total - expired, expired=expired)
