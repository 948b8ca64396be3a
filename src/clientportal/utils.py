from collections.abc import Callable
from datetime import UTC, datetime

type Clock = Callable[[], datetime]


def now() -> datetime:
    return datetime.now(UTC)


def mask_token(token: str) -> str:
    """Shorten a secret for log output."""
    return f"{token[:6]}..." if len(token) > 6 else "***"
