from uuid import UUID

from pydantic import BaseModel, Field

from clientportal.core.db import MongoModel
from clientportal.core.modules.session.models import Role


class Account(MongoModel):
    """Portal account. Owned by the business side; this layer reads it for login and lookups."""

    email: str
    username: str | None = None
    name: str = ""
    company: str = ""
    role: Role = Role.CLIENT
    password_hash: str | None = None  # bcrypt hash


class AccountView(BaseModel):
    """Account information (API representation)."""

    id: UUID = Field(..., description="Account ID")
    email: str = Field(..., description="Email address")
    name: str = Field(..., description="Display name")
    company: str = Field(..., description="Company name")
    role: Role = Field(..., description="Account role")

    @classmethod
    def from_domain(cls, account: Account) -> "AccountView":
        """Create view model from domain model."""
        return cls(id=account.id, email=account.email, name=account.name, company=account.company, role=account.role)
