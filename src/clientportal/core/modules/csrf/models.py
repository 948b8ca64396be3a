from datetime import datetime
from enum import StrEnum

from clientportal.core.db import MongoModel


class CsrfToken(MongoModel):
    """Anti-forgery token echoed back by browser clients in X-CSRF-Token.

    Indexed on token - unique, expires_at.
    """

    token: str
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, moment: datetime) -> bool:
        return self.expires_at <= moment


class CsrfVerdict(StrEnum):
    VALID = "valid"
    MISSING = "missing"  # header or cookie absent
    MISMATCH = "mismatch"  # header differs from cookie
    UNKNOWN = "unknown"  # no live record for the token
    STORE_UNAVAILABLE = "store_unavailable"
