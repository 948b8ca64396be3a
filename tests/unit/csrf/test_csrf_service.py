"""Tests for CSRF token issuance and double-submit verification."""

from datetime import timedelta

import pytest

from clientportal.core.modules.csrf.models import CsrfVerdict
from clientportal.errors import StoreUnavailableError


@pytest.fixture
def csrf(core):
    return core.services.csrf


class TestIssue:
    @pytest.mark.asyncio
    async def test_issues_new_token_without_cookie(self, csrf, storage, clock):
        token = await csrf.issue(None)
        assert len(token.token) == 64
        assert token.expires_at == clock() + timedelta(hours=1)
        assert await storage.csrf_tokens.find(token.token) is not None

    @pytest.mark.asyncio
    async def test_live_token_is_reused(self, csrf):
        first = await csrf.issue(None)
        second = await csrf.issue(first.token)
        assert second.token == first.token

    @pytest.mark.asyncio
    async def test_expired_token_is_replaced_and_deleted(self, csrf, storage, clock):
        first = await csrf.issue(None)
        clock.advance(seconds=3600)

        second = await csrf.issue(first.token)

        assert second.token != first.token
        assert await storage.csrf_tokens.find(first.token) is None

    @pytest.mark.asyncio
    async def test_unknown_cookie_gets_a_new_token(self, csrf):
        token = await csrf.issue("d" * 64)
        assert token.token != "d" * 64


class TestCheck:
    @pytest.mark.asyncio
    async def test_matching_live_token_is_valid(self, csrf):
        token = await csrf.issue(None)
        assert await csrf.check(token.token, token.token) == CsrfVerdict.VALID
        assert await csrf.verify(token.token, token.token)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("cookie", "header"), [(None, None), ("x", None), (None, "x"), ("", "")])
    async def test_missing_parts(self, csrf, cookie, header):
        assert await csrf.check(cookie, header) == CsrfVerdict.MISSING

    @pytest.mark.asyncio
    async def test_header_must_equal_cookie(self, csrf):
        token = await csrf.issue(None)
        other = await csrf.issue(None)
        assert await csrf.check(token.token, other.token) == CsrfVerdict.MISMATCH
        assert not await csrf.verify(token.token, other.token)

    @pytest.mark.asyncio
    async def test_matching_but_never_issued(self, csrf):
        forged = "e" * 64
        assert await csrf.check(forged, forged) == CsrfVerdict.UNKNOWN

    @pytest.mark.asyncio
    async def test_expired_token_is_rejected(self, csrf, clock):
        token = await csrf.issue(None)
        clock.advance(hours=1)
        assert await csrf.check(token.token, token.token) == CsrfVerdict.UNKNOWN

    @pytest.mark.asyncio
    async def test_store_failure_rejects(self, csrf, storage, monkeypatch):
        token = await csrf.issue(None)

        async def unavailable(value):
            raise StoreUnavailableError("timeout")

        monkeypatch.setattr(storage.csrf_tokens, "find", unavailable)

        assert await csrf.check(token.token, token.token) == CsrfVerdict.STORE_UNAVAILABLE
        assert not await csrf.verify(token.token, token.token)
