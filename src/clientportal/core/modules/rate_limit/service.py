from datetime import timedelta

import structlog

from clientportal.config import RateLimitRule
from clientportal.core.core import Service
from clientportal.core.modules.rate_limit.models import RateLimitDecision
from clientportal.errors import StoreUnavailableError

logger = structlog.get_logger(__name__)


class RateLimitService(Service):
    """Counts requests per (identity, route class) in fixed windows."""

    def rule_for(self, route_class: str) -> RateLimitRule:
        try:
            return self.core.config.rate_limits[route_class]
        except KeyError:
            raise ValueError(f"Unknown rate limit route class '{route_class}'") from None

    async def check(self, identity: str, route_class: str) -> RateLimitDecision:
        """Count one request and decide whether it may proceed.

        The increment happens in storage in a single atomic operation, so
        concurrent requests cannot overshoot the limit. Store failures block
        the request and set ``store_unavailable``.
        """
        rule = self.rule_for(route_class)
        window = timedelta(seconds=rule.window_seconds)
        moment = self.now()

        try:
            counter = await self.storage.rate_limits.hit(route_class, identity, moment, window)
        except StoreUnavailableError:
            logger.exception("store_unavailable", operation="rate_limit_hit", route_class=route_class)
            return RateLimitDecision(
                allowed=False, limit=rule.limit, remaining=0, reset_at=moment + window, store_unavailable=True
            )

        allowed = counter.count <= rule.limit
        if not allowed:
            logger.warning("rate_limit_blocked", identity=identity, route_class=route_class, count=counter.count)
        return RateLimitDecision(
            allowed=allowed,
            limit=rule.limit,
            remaining=max(rule.limit - counter.count, 0),
            reset_at=counter.expires_at,
        )

    async def delete_expired(self) -> int:
        return await self.storage.rate_limits.delete_expired_before(self.now())

    async def count_counters(self) -> tuple[int, int]:
        return await self.storage.rate_limits.count(self.now())
