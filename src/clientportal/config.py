from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class RateLimitRule(BaseModel):
    """Request budget for one route class."""

    limit: int = Field(..., ge=1)
    window_seconds: int = Field(..., ge=1)


def default_rate_limits() -> dict[str, RateLimitRule]:
    return {
        "auth": RateLimitRule(limit=10, window_seconds=15 * 60),  # login, setup
        "api": RateLimitRule(limit=60, window_seconds=60),
        "heavy": RateLimitRule(limit=10, window_seconds=60),  # uploads, generation
        "public": RateLimitRule(limit=100, window_seconds=60),
    }


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str  # mongodb://host:port/dbname
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = []
    secure_cookies: bool = True  # Disable only for plain-http local development
    trust_proxy_headers: bool = False  # Let uvicorn take the client address from X-Forwarded-For
    forwarded_allow_ips: str = "127.0.0.1"  # Proxies whose forwarding headers uvicorn honors
    session_ttl_seconds: int = 7 * 24 * 60 * 60
    csrf_ttl_seconds: int = 60 * 60
    account_cache_ttl_seconds: int = 60
    cron_secret: str | None = None  # Cleanup endpoint is disabled when unset
    locale: Literal["en", "tr"] = "en"
    rate_limits: dict[str, RateLimitRule] = Field(default_factory=default_rate_limits)

    model_config = {
        "env_file": [".env"],
        "env_prefix": "CLIENTPORTAL_",
        "extra": "ignore",
    }
