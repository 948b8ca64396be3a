import structlog

from clientportal.core.core import Service
from clientportal.core.modules.cleanup.authorizer import CronAuthorizer, create_cron_authorizer
from clientportal.core.modules.cleanup.models import CleanupResult, CounterStats, SecurityStats

logger = structlog.get_logger(__name__)


class CleanupService(Service):
    """Sweeps records whose expiry has already passed.

    Safe to run alongside traffic and repeatedly: live records are never
    touched, and a second run right after the first deletes nothing.
    """

    _authorizer: CronAuthorizer | None = None

    @property
    def authorizer(self) -> CronAuthorizer:
        if self._authorizer is None:
            self._authorizer = create_cron_authorizer(self.core.config.cron_secret, self.core.config.locale)
        return self._authorizer

    async def on_start(self) -> None:
        if not self.core.config.cron_secret:
            logger.warning("cron_cleanup_disabled", reason="cron_secret is not set")

    async def run(self) -> CleanupResult:
        services = self.core.services
        result = CleanupResult(
            sessions=await services.session.delete_expired(),
            rate_limits=await services.rate_limit.delete_expired(),
            csrf_tokens=await services.csrf.delete_expired(),
            timestamp=self.now(),
        )
        logger.info(
            "cleanup_completed",
            sessions=result.sessions,
            rate_limits=result.rate_limits,
            csrf_tokens=result.csrf_tokens,
        )
        return result

    async def stats(self) -> SecurityStats:
        total, expired = await self.core.services.rate_limit.count_counters()
        return SecurityStats(
            sessions=await self.core.services.session.get_stats(),
            rate_limits=CounterStats(total=total, expired=expired),
            server_time=self.now(),
        )
