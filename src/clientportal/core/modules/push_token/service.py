from uuid import UUID

import structlog

from clientportal.core.core import Service
from clientportal.core.modules.push_token.models import PushToken
from clientportal.core.modules.session.models import Role
from clientportal.errors import ValidationError

logger = structlog.get_logger(__name__)


class PushTokenService(Service):
    """Records the device token the notification sender should use for a user."""

    async def register(self, user_id: UUID, role: Role, token: str, platform: str | None = None) -> PushToken:
        token = token.strip()
        if not token:
            raise ValidationError("Push token is required")
        push_token = PushToken(
            user_id=user_id,
            role=role,
            token=token,
            platform=platform or "unknown",
            updated_at=self.now(),
        )
        await self.storage.push_tokens.upsert(push_token)
        logger.info("push_token_registered", user_id=str(user_id), platform=push_token.platform)
        return push_token

    async def unregister(self, user_id: UUID) -> None:
        await self.storage.push_tokens.delete(user_id)
