"""Random identifiers for session and CSRF tokens."""

import re
import secrets
from typing import TypeGuard

from clientportal.errors import EntropyUnavailableError

TOKEN_BYTES = 32  # 256 bits
TOKEN_RE = re.compile(r"^[a-f0-9]{64}$")


def generate_token() -> str:
    """Return 64 lowercase hex characters from the OS CSPRNG."""
    return secrets.token_hex(TOKEN_BYTES)


def is_well_formed(token: str | None) -> TypeGuard[str]:
    return token is not None and TOKEN_RE.fullmatch(token) is not None


def ensure_entropy_source() -> None:
    """Fail startup if the platform cannot supply secure random bytes."""
    try:
        sample = secrets.token_bytes(TOKEN_BYTES)
    except NotImplementedError as e:
        raise EntropyUnavailableError("No secure randomness source is available") from e
    if len(sample) != TOKEN_BYTES:
        raise EntropyUnavailableError("Secure randomness source returned a short read")
