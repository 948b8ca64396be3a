"""Tests for session issuance, verification and revocation."""

from datetime import timedelta
from uuid import uuid4

import pytest
from conftest import put_session_document

from clientportal.core.modules.session import service as session_service
from clientportal.core.modules.session.models import AuthFailure, Role, Transport
from clientportal.core.modules.token.generator import is_well_formed
from clientportal.errors import StoreIntegrityError, StoreUnavailableError


@pytest.fixture
def sessions(core):
    return core.services.session


class TestCreateSession:
    @pytest.mark.asyncio
    async def test_new_session_has_fixed_seven_day_expiry(self, sessions, clock):
        session = await sessions.create_session(uuid4(), Role.CLIENT, Transport.WEB)
        assert is_well_formed(session.token)
        assert session.created_at == clock()
        assert session.expires_at == clock() + timedelta(days=7)
        assert session.ip_address is None

    @pytest.mark.asyncio
    async def test_login_address_and_user_agent_are_recorded(self, sessions, storage):
        user_id = uuid4()
        created = await sessions.create_session(
            user_id, Role.CLIENT, Transport.MOBILE, ip_address="203.0.113.9", user_agent="PortalApp/2.1 (iOS)"
        )

        stored = await storage.sessions.find_by_token(created.token)
        assert stored.ip_address == "203.0.113.9"
        assert stored.user_agent == "PortalApp/2.1 (iOS)"
        # Recorded for auditing only, verification ignores them
        assert (await sessions.verify_token(created.token, Transport.MOBILE)).authenticated

    @pytest.mark.asyncio
    async def test_list_user_sessions_newest_first(self, sessions, clock):
        user_id = uuid4()
        older = await sessions.create_session(user_id, Role.CLIENT, Transport.WEB, ip_address="198.51.100.1")
        clock.advance(hours=1)
        newer = await sessions.create_session(user_id, Role.CLIENT, Transport.MOBILE, ip_address="198.51.100.2")
        await sessions.create_session(uuid4(), Role.CLIENT, Transport.WEB)

        listed = await sessions.list_user_sessions(user_id)

        assert [s.token for s in listed] == [newer.token, older.token]
        assert [s.ip_address for s in listed] == ["198.51.100.2", "198.51.100.1"]

    @pytest.mark.asyncio
    async def test_token_collision_is_retried_once(self, sessions, storage, monkeypatch):
        first = await sessions.create_session(uuid4(), Role.CLIENT, Transport.WEB)
        replacement = "b" * 64
        tokens = iter([first.token, replacement])
        monkeypatch.setattr(session_service, "generate_token", lambda: next(tokens))

        session = await sessions.create_session(uuid4(), Role.CLIENT, Transport.WEB)

        assert session.token == replacement
        assert await storage.sessions.find_by_token(replacement) is not None

    @pytest.mark.asyncio
    async def test_second_collision_surfaces_as_store_error(self, sessions, monkeypatch):
        first = await sessions.create_session(uuid4(), Role.CLIENT, Transport.WEB)
        monkeypatch.setattr(session_service, "generate_token", lambda: first.token)

        with pytest.raises(StoreUnavailableError):
            await sessions.create_session(uuid4(), Role.CLIENT, Transport.WEB)


class TestVerifyToken:
    @pytest.mark.asyncio
    async def test_valid_token_authenticates(self, sessions):
        user_id = uuid4()
        session = await sessions.create_session(user_id, Role.ADMIN, Transport.WEB)

        check = await sessions.verify_token(session.token, Transport.WEB)

        assert check.authenticated
        assert check.role == Role.ADMIN
        assert check.user_id == user_id
        assert check.is_admin

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("token", "failure"),
        [(None, AuthFailure.MISSING), ("", AuthFailure.MISSING), ("not-a-token", AuthFailure.MALFORMED)],
    )
    async def test_missing_and_malformed_tokens(self, sessions, token, failure):
        check = await sessions.verify_token(token, Transport.WEB)
        assert not check.authenticated
        assert check.failure == failure

    @pytest.mark.asyncio
    async def test_unknown_token(self, sessions):
        check = await sessions.verify_token("a" * 64, Transport.WEB)
        assert check.failure == AuthFailure.UNKNOWN

    @pytest.mark.asyncio
    async def test_expired_session_is_rejected_before_cleanup(self, sessions, storage, clock):
        session = await sessions.create_session(uuid4(), Role.CLIENT, Transport.WEB)
        clock.advance(days=7)

        check = await sessions.verify_token(session.token, Transport.WEB)

        assert check.failure == AuthFailure.EXPIRED
        assert await storage.sessions.find_by_token(session.token) is not None

    @pytest.mark.asyncio
    async def test_verification_does_not_extend_expiry(self, sessions, clock):
        session = await sessions.create_session(uuid4(), Role.CLIENT, Transport.WEB)
        clock.advance(days=6)
        assert (await sessions.verify_token(session.token, Transport.WEB)).authenticated

        clock.advance(days=1)
        assert not (await sessions.verify_token(session.token, Transport.WEB)).authenticated

    @pytest.mark.asyncio
    async def test_token_only_valid_on_its_transport(self, sessions):
        mobile = await sessions.create_session(uuid4(), Role.CLIENT, Transport.MOBILE)

        assert (await sessions.verify_token(mobile.token, Transport.MOBILE)).authenticated
        check = await sessions.verify_token(mobile.token, Transport.WEB)
        assert check.failure == AuthFailure.WRONG_TRANSPORT

    @pytest.mark.asyncio
    async def test_store_failure_fails_closed(self, sessions, storage, monkeypatch):
        session = await sessions.create_session(uuid4(), Role.CLIENT, Transport.WEB)

        async def unavailable(token):
            raise StoreUnavailableError("connection refused")

        monkeypatch.setattr(storage.sessions, "find_by_token", unavailable)
        check = await sessions.verify_token(session.token, Transport.WEB)

        assert not check.authenticated
        assert check.failure == AuthFailure.STORE_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_unknown_stored_role_is_an_integrity_error(self, sessions, storage, clock):
        token = "c" * 64
        put_session_document(
            storage,
            {
                "_id": uuid4(),
                "token": token,
                "user_id": uuid4(),
                "role": "superuser",
                "transport": "web",
                "created_at": clock(),
                "expires_at": clock() + timedelta(days=1),
            }
        )

        with pytest.raises(StoreIntegrityError):
            await storage.sessions.find_by_token(token)
        check = await sessions.verify_token(token, Transport.WEB)
        assert check.failure == AuthFailure.STORE_UNAVAILABLE


class TestDestroy:
    @pytest.mark.asyncio
    async def test_destroyed_session_no_longer_verifies(self, sessions):
        session = await sessions.create_session(uuid4(), Role.CLIENT, Transport.WEB)

        await sessions.destroy_session(session.token, Transport.WEB)

        check = await sessions.verify_token(session.token, Transport.WEB)
        assert check.failure == AuthFailure.UNKNOWN

    @pytest.mark.asyncio
    async def test_destroy_ignores_token_of_other_transport(self, sessions):
        web = await sessions.create_session(uuid4(), Role.CLIENT, Transport.WEB)

        await sessions.destroy_session(web.token, Transport.MOBILE)

        assert (await sessions.verify_token(web.token, Transport.WEB)).authenticated

    @pytest.mark.asyncio
    async def test_destroy_is_idempotent(self, sessions):
        session = await sessions.create_session(uuid4(), Role.CLIENT, Transport.WEB)
        await sessions.destroy_session(session.token, Transport.WEB)
        await sessions.destroy_session(session.token, Transport.WEB)
        await sessions.destroy_session(None, Transport.WEB)
        await sessions.destroy_session("garbage", Transport.MOBILE)

    @pytest.mark.asyncio
    async def test_destroy_user_sessions_covers_every_transport(self, sessions):
        user_id = uuid4()
        web = await sessions.create_session(user_id, Role.CLIENT, Transport.WEB)
        mobile = await sessions.create_session(user_id, Role.CLIENT, Transport.MOBILE)
        other = await sessions.create_session(uuid4(), Role.CLIENT, Transport.WEB)

        assert await sessions.destroy_user_sessions(user_id) == 2

        assert not (await sessions.verify_token(web.token, Transport.WEB)).authenticated
        assert not (await sessions.verify_token(mobile.token, Transport.MOBILE)).authenticated
        assert (await sessions.verify_token(other.token, Transport.WEB)).authenticated


class TestStats:
    @pytest.mark.asyncio
    async def test_counts_active_and_expired(self, sessions, clock):
        await sessions.create_session(uuid4(), Role.CLIENT, Transport.WEB)
        clock.advance(days=8)
        await sessions.create_session(uuid4(), Role.CLIENT, Transport.MOBILE)

        stats = await sessions.get_stats()

        assert (stats.total, stats.active, stats.expired) == (2, 1, 1)
