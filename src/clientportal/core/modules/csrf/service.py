import hmac
from datetime import timedelta

import structlog

from clientportal.core.core import Service
from clientportal.core.modules.csrf.models import CsrfToken, CsrfVerdict
from clientportal.core.modules.token.generator import generate_token, is_well_formed
from clientportal.errors import StoreUnavailableError
from clientportal.utils import mask_token

logger = structlog.get_logger(__name__)


class CsrfService(Service):
    """Double-submit tokens: the cookie value must come back in X-CSRF-Token and exist on record."""

    @property
    def csrf_ttl(self) -> timedelta:
        return timedelta(seconds=self.core.config.csrf_ttl_seconds)

    async def issue(self, presented: str | None) -> CsrfToken:
        """Return the presented token if it is still live, otherwise persist a replacement."""
        moment = self.now()
        if is_well_formed(presented):
            current = await self.storage.csrf_tokens.find(presented)
            if current is not None and not current.is_expired(moment):
                return current
            if current is not None:
                await self.storage.csrf_tokens.delete(presented)

        token = CsrfToken(token=generate_token(), issued_at=moment, expires_at=moment + self.csrf_ttl)
        await self.storage.csrf_tokens.insert(token)
        logger.debug("csrf_token_issued", token=mask_token(token.token))
        return token

    async def check(self, cookie_token: str | None, header_token: str | None) -> CsrfVerdict:
        if not cookie_token or not header_token:
            return CsrfVerdict.MISSING
        if not hmac.compare_digest(cookie_token.encode(), header_token.encode()):
            return CsrfVerdict.MISMATCH
        if not is_well_formed(cookie_token):
            return CsrfVerdict.UNKNOWN

        try:
            record = await self.storage.csrf_tokens.find(cookie_token)
        except StoreUnavailableError:
            logger.exception("store_unavailable", operation="csrf_lookup")
            return CsrfVerdict.STORE_UNAVAILABLE

        if record is None or record.is_expired(self.now()):
            return CsrfVerdict.UNKNOWN
        return CsrfVerdict.VALID

    async def verify(self, cookie_token: str | None, header_token: str | None) -> bool:
        """True only for a matching, live token. Every other outcome rejects the request."""
        verdict = await self.check(cookie_token, header_token)
        if verdict != CsrfVerdict.VALID:
            logger.warning("csrf_rejected", verdict=verdict)
        return verdict == CsrfVerdict.VALID

    async def delete_expired(self) -> int:
        return await self.storage.csrf_tokens.delete_expired_before(self.now())
