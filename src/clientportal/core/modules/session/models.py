"""Session management models."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from clientportal.core.db import MongoModel


class Role(StrEnum):
    ADMIN = "admin"
    CLIENT = "client"


class Transport(StrEnum):
    """Channel a session token travels over."""

    WEB = "web"  # session_token cookie
    MOBILE = "mobile"  # Authorization: Bearer header


class Session(MongoModel):
    """Authenticated principal.

    Indexed on token - unique, user_id, expires_at.
    Expiry is fixed at issuance; verification never moves it.
    """

    token: str
    user_id: UUID
    role: Role
    transport: Transport
    created_at: datetime
    expires_at: datetime
    ip_address: str | None = None  # normalized client address at login
    user_agent: str | None = None

    def is_expired(self, moment: datetime) -> bool:
        return self.expires_at <= moment


class AuthFailure(StrEnum):
    """Why a token did not authenticate. Never exposed to clients."""

    MISSING = "missing"
    MALFORMED = "malformed"
    UNKNOWN = "unknown"
    EXPIRED = "expired"
    WRONG_TRANSPORT = "wrong_transport"
    STORE_UNAVAILABLE = "store_unavailable"


class SessionCheck(BaseModel):
    """Outcome of verifying a presented token against the store."""

    authenticated: bool
    role: Role | None = None
    user_id: UUID | None = None
    failure: AuthFailure | None = None

    @classmethod
    def denied(cls, failure: AuthFailure) -> "SessionCheck":
        return cls(authenticated=False, failure=failure)

    @classmethod
    def granted(cls, session: Session) -> "SessionCheck":
        return cls(authenticated=True, role=session.role, user_id=session.user_id)

    @property
    def is_admin(self) -> bool:
        return self.authenticated and self.role == Role.ADMIN


class AdminCheck(BaseModel):
    """Result of the admin guard; route handlers short-circuit when not authorized."""

    authorized: bool
    error: str | None = None
    session: SessionCheck


class SessionStats(BaseModel):
    total: int = Field(..., ge=0)
    active: int = Field(..., ge=0)
    expired: int = Field(..., ge=0)
