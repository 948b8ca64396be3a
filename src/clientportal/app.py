from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime
from uuid import UUID

from clientportal.config import Config
from clientportal.core.core import Core
from clientportal.core.modules.account.models import Account, AccountView
from clientportal.core.modules.cleanup.models import CleanupResult, SecurityStats
from clientportal.core.modules.csrf.models import CsrfToken
from clientportal.core.modules.push_token.models import PushToken
from clientportal.core.modules.rate_limit.models import RateLimitDecision
from clientportal.core.modules.session.models import Role, Session, SessionCheck, Transport
from clientportal.core.storage import Storage
from clientportal.errors import AccessDeniedError, AuthenticationError
from clientportal.messages import message
from clientportal.utils import Clock, now


class App:
    """Facade for all application operations, validates permissions before delegating to Core."""

    def __init__(self, config: Config, storage: Storage | None = None, clock: Clock = now) -> None:
        self._core = Core(config, storage, clock)

    @property
    def config(self) -> Config:
        return self._core.config

    def now(self) -> datetime:
        return self._core.clock()

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    # === Sessions ===
    async def authenticate(self, login: str, password: str, role: Role | None = None) -> Account:
        """Verify credentials; `role=None` accepts any role."""
        return await self._core.services.account.authenticate(login, password, role)

    async def start_session(
        self,
        user_id: UUID,
        role: Role,
        transport: Transport,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> Session:
        """Open a session on the given transport."""
        return await self._core.services.session.create_session(user_id, role, transport, ip_address, user_agent)

    async def check_session(self, token: str | None, transport: Transport) -> SessionCheck:
        """Verify a presented token. Never raises."""
        return await self._core.services.session.verify_token(token, transport)

    async def logout(self, token: str | None, transport: Transport) -> None:
        """Invalidate a session issued for `transport`; unknown tokens are ignored."""
        await self._core.services.session.destroy_session(token, transport)

    async def revoke_user_sessions(self, caller: SessionCheck, user_id: UUID) -> int:
        """Sign a user out on every device (admin only)."""
        self._ensure_admin(caller)
        return await self._core.services.session.destroy_user_sessions(user_id)

    async def list_user_sessions(self, caller: SessionCheck, user_id: UUID) -> list[Session]:
        """Sessions of a user with their login address and client (admin only)."""
        self._ensure_admin(caller)
        return await self._core.services.session.list_user_sessions(user_id)

    async def setup_admin(self, email: str, password: str, name: str) -> AccountView:
        """Create the first admin account (only while none exists)."""
        account = await self._core.services.account.setup_admin(email, password, name)
        return AccountView.from_domain(account)

    async def get_current_account(self, caller: SessionCheck) -> AccountView:
        """Get the account behind the caller's session."""
        user_id = self._ensure_authenticated(caller)
        account = await self._core.services.account.get_account(user_id)
        return AccountView.from_domain(account)

    # === CSRF ===
    async def issue_csrf_token(self, presented: str | None) -> CsrfToken:
        return await self._core.services.csrf.issue(presented)

    async def verify_csrf_token(self, cookie_token: str | None, header_token: str | None) -> bool:
        return await self._core.services.csrf.verify(cookie_token, header_token)

    # === Rate limiting ===
    async def check_rate_limit(self, identity: str, route_class: str) -> RateLimitDecision:
        return await self._core.services.rate_limit.check(identity, route_class)

    # === Maintenance ===
    async def run_cleanup(self, presented_secret: str | None) -> CleanupResult:
        """Delete expired state. The cron credential is checked before anything is deleted."""
        self._core.services.cleanup.authorizer.authorize(presented_secret)
        return await self._core.services.cleanup.run()

    async def get_security_stats(self, caller: SessionCheck) -> SecurityStats:
        """Session and rate-limit record counts (admin only)."""
        self._ensure_admin(caller)
        return await self._core.services.cleanup.stats()

    # === Push tokens ===
    async def register_push_token(self, caller: SessionCheck, token: str, platform: str | None) -> PushToken:
        user_id = self._ensure_authenticated(caller)
        return await self._core.services.push_token.register(user_id, caller.role or Role.CLIENT, token, platform)

    async def unregister_push_token(self, caller: SessionCheck) -> None:
        user_id = self._ensure_authenticated(caller)
        await self._core.services.push_token.unregister(user_id)

    # === Private guards ===
    def _ensure_authenticated(self, caller: SessionCheck) -> UUID:
        if not caller.authenticated or caller.user_id is None:
            raise AuthenticationError(message("login_required", self.config.locale))
        return caller.user_id

    def _ensure_admin(self, caller: SessionCheck) -> None:
        self._ensure_authenticated(caller)
        if not caller.is_admin:
            raise AccessDeniedError(message("admin_required", self.config.locale))
