import functools
from collections.abc import Awaitable, Callable
from typing import Any, Self
from uuid import UUID, uuid4

import pydantic
from pydantic import BaseModel, ConfigDict, Field
from pymongo.errors import PyMongoError

from clientportal.errors import StoreIntegrityError, StoreUnavailableError


class StoredModel(BaseModel):
    @classmethod
    def from_mongo(cls, document: dict[str, Any]) -> Self:
        """Validate a stored document, treating schema drift as an integrity failure."""
        try:
            return cls.model_validate(document)
        except pydantic.ValidationError as e:
            raise StoreIntegrityError(f"Invalid {cls.__name__} document: {e}") from e


class MongoModel(StoredModel):
    id: UUID = Field(alias="_id", serialization_alias="id", default_factory=uuid4)

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        json_schema_serialization_defaults_required=True,
    )

    def to_mongo(self) -> dict[str, Any]:
        """Convert the model to a dictionary for MongoDB storage with _id field."""
        data = self.model_dump()
        if "id" in data:
            data["_id"] = data.pop("id")  # Rename id → _id for MongoDB
        return data


def store_call[**P, R](func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
    """Translate driver failures into StoreUnavailableError."""

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await func(*args, **kwargs)
        except PyMongoError as e:
            raise StoreUnavailableError(f"{func.__qualname__} failed: {e}") from e

    return wrapper
