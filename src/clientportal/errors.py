from abc import ABC
from datetime import datetime


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when a request carries no valid session or credentials."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when a user tries to access a resource they do not have permission for."""


class ForgeryError(UserError):
    """Raised when a state-changing request fails the CSRF check."""

    def __init__(self, message: str = "Invalid CSRF token") -> None:
        super().__init__(message)


class RateLimitedError(UserError):
    """Raised when the caller exceeded the budget of a route class."""

    def __init__(self, message: str, limit: int, reset_at: datetime) -> None:
        super().__init__(message)
        self.limit = limit
        self.reset_at = reset_at


class ValidationError(UserError):
    """Raised when user input fails validation."""


class NotConfiguredError(UserError):
    """Raised when a disabled capability is invoked."""

    def __init__(self, message: str = "Feature is not configured") -> None:
        super().__init__(message)


class StoreUnavailableError(Exception):
    """Raised when the persistent store cannot serve a request.

    The message may contain driver details and is never shown to clients.
    """


class StoreIntegrityError(StoreUnavailableError):
    """Raised when a stored document does not match its model."""


class DuplicateTokenError(Exception):
    """Raised when an insert collides with an existing token."""


class EntropyUnavailableError(RuntimeError):
    """Raised at startup when no secure randomness source is available."""
