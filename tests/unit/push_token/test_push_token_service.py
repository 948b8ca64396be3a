"""Tests for device push-token registration."""

from uuid import uuid4

import pytest

from clientportal.core.modules.session.models import Role, SessionCheck
from clientportal.errors import AuthenticationError, ValidationError


class TestPushTokenService:
    @pytest.mark.asyncio
    async def test_register_replaces_previous_token(self, core, storage, clock):
        user_id = uuid4()
        await core.services.push_token.register(user_id, Role.CLIENT, "ExponentPushToken[aaa]", "ios")
        await core.services.push_token.register(user_id, Role.CLIENT, " ExponentPushToken[bbb] ", None)

        stored = await storage.push_tokens.find(user_id)
        assert stored.token == "ExponentPushToken[bbb]"
        assert stored.platform == "unknown"
        assert stored.updated_at == clock()

    @pytest.mark.asyncio
    async def test_empty_token_is_rejected(self, core):
        with pytest.raises(ValidationError):
            await core.services.push_token.register(uuid4(), Role.CLIENT, "   ")

    @pytest.mark.asyncio
    async def test_unregister_is_idempotent(self, core, storage):
        user_id = uuid4()
        await core.services.push_token.register(user_id, Role.ADMIN, "token-1", "android")
        await core.services.push_token.unregister(user_id)
        await core.services.push_token.unregister(user_id)
        assert await storage.push_tokens.find(user_id) is None


class TestAppGuards:
    @pytest.mark.asyncio
    async def test_anonymous_caller_cannot_register(self, app):
        with pytest.raises(AuthenticationError):
            await app.register_push_token(SessionCheck(authenticated=False), "token-1", None)

    @pytest.mark.asyncio
    async def test_register_uses_session_role(self, app, storage):
        caller = SessionCheck(authenticated=True, role=Role.ADMIN, user_id=uuid4())
        push_token = await app.register_push_token(caller, "token-1", "ios")
        assert push_token.role == Role.ADMIN
        assert (await storage.push_tokens.find(caller.user_id)).platform == "ios"
