from abc import ABC, abstractmethod
from typing import Any
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase

from clientportal.core.db import store_call
from clientportal.core.modules.account.models import Account
from clientportal.core.modules.session.models import Role


class AccountStore(ABC):
    @abstractmethod
    async def find_by_id(self, account_id: UUID) -> Account | None: ...

    @abstractmethod
    async def find_by_login(self, login: str) -> Account | None:
        """Find an account by lowercased email or username."""

    @abstractmethod
    async def has_role(self, role: Role) -> bool: ...

    @abstractmethod
    async def insert(self, account: Account) -> None: ...

    async def create_indexes(self) -> None:
        """Prepare backend indexes. No-op unless the backend needs them."""


class MongoAccountStore(AccountStore):
    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._collection = database.get_collection("accounts")

    @store_call
    async def create_indexes(self) -> None:
        await self._collection.create_index([("email", 1)], unique=True)
        await self._collection.create_index(
            [("username", 1)], unique=True, partialFilterExpression={"username": {"$type": "string"}}
        )

    @store_call
    async def find_by_id(self, account_id: UUID) -> Account | None:
        document = await self._collection.find_one({"_id": account_id})
        return Account.from_mongo(document) if document is not None else None

    @store_call
    async def find_by_login(self, login: str) -> Account | None:
        # Exact matches only; login is never interpolated into a regex
        document = await self._collection.find_one({"$or": [{"email": login}, {"username": login}]})
        return Account.from_mongo(document) if document is not None else None

    @store_call
    async def has_role(self, role: Role) -> bool:
        return await self._collection.count_documents({"role": role}, limit=1) > 0

    @store_call
    async def insert(self, account: Account) -> None:
        await self._collection.insert_one(account.to_mongo())


class MemoryAccountStore(AccountStore):
    def __init__(self) -> None:
        self._accounts: dict[UUID, Account] = {}

    async def find_by_id(self, account_id: UUID) -> Account | None:
        return self._accounts.get(account_id)

    async def find_by_login(self, login: str) -> Account | None:
        return next((a for a in self._accounts.values() if login in (a.email, a.username)), None)

    async def has_role(self, role: Role) -> bool:
        return any(account.role == role for account in self._accounts.values())

    async def insert(self, account: Account) -> None:
        self._accounts[account.id] = account
