from datetime import timedelta
from uuid import UUID

import structlog

from clientportal.core.core import Service
from clientportal.core.modules.session.models import AuthFailure, Role, Session, SessionCheck, SessionStats, Transport
from clientportal.core.modules.token.generator import generate_token, is_well_formed
from clientportal.errors import DuplicateTokenError, StoreUnavailableError
from clientportal.utils import mask_token

logger = structlog.get_logger(__name__)


class SessionService(Service):
    """Issues, verifies and revokes sessions for both transports."""

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(seconds=self.core.config.session_ttl_seconds)

    def _new_session(
        self, user_id: UUID, role: Role, transport: Transport, ip_address: str | None, user_agent: str | None
    ) -> Session:
        created_at = self.now()
        return Session(
            token=generate_token(),
            user_id=user_id,
            role=role,
            transport=transport,
            created_at=created_at,
            expires_at=created_at + self.session_ttl,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    async def create_session(
        self,
        user_id: UUID,
        role: Role,
        transport: Transport,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> Session:
        """Persist a new session. A token collision is retried once with a fresh token.

        ``ip_address`` and ``user_agent`` are recorded for auditing only and never
        checked on verification.
        """
        session = self._new_session(user_id, role, transport, ip_address, user_agent)
        try:
            await self.storage.sessions.insert(session)
        except DuplicateTokenError:
            logger.warning("session_token_collision", user_id=str(user_id))
            session = self._new_session(user_id, role, transport, ip_address, user_agent)
            try:
                await self.storage.sessions.insert(session)
            except DuplicateTokenError as e:
                raise StoreUnavailableError("Session token collided twice") from e
        logger.info("session_created", user_id=str(user_id), role=role, transport=transport)
        return session

    async def verify_token(self, token: str | None, transport: Transport) -> SessionCheck:
        """Check a presented token against persisted state.

        Never raises: store failures come back as AuthFailure.STORE_UNAVAILABLE
        so the caller fails closed.
        """
        if not token:
            return SessionCheck.denied(AuthFailure.MISSING)
        if not is_well_formed(token):
            return SessionCheck.denied(AuthFailure.MALFORMED)

        try:
            session = await self.storage.sessions.find_by_token(token)
        except StoreUnavailableError:
            logger.exception("store_unavailable", operation="session_lookup", token=mask_token(token))
            return SessionCheck.denied(AuthFailure.STORE_UNAVAILABLE)

        if session is None:
            return SessionCheck.denied(AuthFailure.UNKNOWN)
        if session.transport != transport:
            return SessionCheck.denied(AuthFailure.WRONG_TRANSPORT)
        # Lazy expiry: the record may still exist until the next cleanup run
        if session.is_expired(self.now()):
            return SessionCheck.denied(AuthFailure.EXPIRED)
        return SessionCheck.granted(session)

    async def destroy_session(self, token: str | None, transport: Transport) -> None:
        """Delete a session by token.

        Missing or unknown tokens are ignored, and so is a token issued for the other
        transport: a web cookie cannot be logged out through the mobile endpoint.
        """
        if not is_well_formed(token):
            return
        await self.storage.sessions.delete_by_token(token, transport)
        logger.info("session_destroyed", token=mask_token(token), transport=transport)

    async def destroy_user_sessions(self, user_id: UUID) -> int:
        """Revoke every session of a user on every transport."""
        deleted = await self.storage.sessions.delete_by_user(user_id)
        logger.info("user_sessions_destroyed", user_id=str(user_id), count=deleted)
        return deleted

    async def list_user_sessions(self, user_id: UUID) -> list[Session]:
        return await self.storage.sessions.find_by_user(user_id)

    async def delete_expired(self) -> int:
        return await self.storage.sessions.delete_expired_before(self.now())

    async def get_stats(self) -> SessionStats:
        return await self.storage.sessions.stats(self.now())
