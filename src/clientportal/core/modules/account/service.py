from datetime import timedelta
from uuid import UUID

import bcrypt
import structlog

from clientportal.core.cache import TtlCache
from clientportal.core.core import Service
from clientportal.core.modules.account.models import Account
from clientportal.core.modules.account.validators import normalize_login, validate_email, validate_password
from clientportal.core.modules.session.models import Role
from clientportal.errors import AccessDeniedError, AuthenticationError, NotFoundError
from clientportal.messages import message

logger = structlog.get_logger(__name__)

# Compared against when the account does not exist, so response time does not reveal valid logins
_DUMMY_HASH = bcrypt.hashpw(b"clientportal-timing-dummy", bcrypt.gensalt()).decode("utf-8")


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


class AccountService(Service):
    """Read-side access to portal accounts: lookups, credential checks and first-admin setup."""

    _cache: TtlCache[UUID, Account] | None = None

    @property
    def cache(self) -> TtlCache[UUID, Account]:
        if self._cache is None:
            ttl = timedelta(seconds=self.core.config.account_cache_ttl_seconds)
            self._cache = TtlCache(ttl, clock=self.core.clock)
        return self._cache

    async def get_account(self, account_id: UUID) -> Account:
        """Get account by ID, served from the TTL cache when fresh."""
        account = self.cache.get(account_id)
        if account is not None:
            return account
        account = await self.storage.accounts.find_by_id(account_id)
        if account is None:
            raise NotFoundError(f"Account '{account_id}' not found")
        self.cache.set(account_id, account)
        return account

    async def authenticate(self, login: str, password: str, role: Role | None = None) -> Account:
        """Verify credentials, optionally restricted to one role.

        bcrypt runs on every path, and every failure raises the same error.
        """
        invalid = AuthenticationError(message("invalid_credentials", self.core.config.locale))
        account = await self.storage.accounts.find_by_login(normalize_login(login))
        if account is None or account.password_hash is None or (role is not None and account.role != role):
            check_password(password, _DUMMY_HASH)
            raise invalid
        if not check_password(password, account.password_hash):
            raise invalid
        logger.info("account_authenticated", account_id=str(account.id), role=account.role)
        return account

    async def setup_admin(self, email: str, password: str, name: str) -> Account:
        """Create the first admin account. Refused once any admin exists."""
        if await self.storage.accounts.has_role(Role.ADMIN):
            raise AccessDeniedError(message("setup_done", self.core.config.locale))

        email = normalize_login(email)
        validate_email(email)
        validate_password(password)
        account = Account(email=email, name=name, role=Role.ADMIN, password_hash=hash_password(password))
        await self.storage.accounts.insert(account)
        logger.info("admin_account_created", account_id=str(account.id))
        return account
