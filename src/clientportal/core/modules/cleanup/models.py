from datetime import datetime

from pydantic import BaseModel, Field

from clientportal.core.modules.session.models import SessionStats


class CleanupResult(BaseModel):
    """Counts of expired records removed by one sweep."""

    sessions: int = Field(..., ge=0)
    rate_limits: int = Field(..., ge=0)
    csrf_tokens: int = Field(..., ge=0)
    timestamp: datetime


class CounterStats(BaseModel):
    total: int = Field(..., ge=0)
    expired: int = Field(..., ge=0)


class SecurityStats(BaseModel):
    """Snapshot of session and rate-limit records, including what the next sweep would remove."""

    sessions: SessionStats
    rate_limits: CounterStats
    server_time: datetime
