"""End-to-end tests for the cleanup trigger."""

import asyncio
from uuid import uuid4

import pytest
from conftest import make_config
from fastapi.testclient import TestClient

from clientportal.app import App
from clientportal.core.modules.session.models import Role, Transport
from clientportal.web.server import create_fastapi_app

SECRET = {"Authorization": "Bearer cron-secret-value"}


class TestCronCleanup:
    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer wrong"}, {"Authorization": "cron-secret-value"}])
    def test_rejects_missing_or_wrong_secret(self, client, headers):
        response = client.get("/api/cron/cleanup", headers=headers)
        assert response.status_code == 401
        assert response.json()["type"] == "authentication_error"

    @pytest.mark.parametrize("method", ["GET", "POST"])
    def test_runs_with_secret(self, client, method):
        response = client.request(method, "/api/cron/cleanup", headers=SECRET)

        assert response.status_code == 200
        body = response.json()
        assert body["cleaned"] == {"sessions": 0, "rateLimits": 0, "csrfTokens": 0}
        assert body["timestamp"].startswith("2025-01-15T12:00:00")

    def test_reports_deleted_sessions(self, client, app, clock):
        asyncio.run(app.start_session(uuid4(), Role.CLIENT, Transport.WEB))
        clock.advance(days=8)

        response = client.post("/api/cron/cleanup", headers=SECRET)

        assert response.json()["cleaned"]["sessions"] == 1


class TestCronDisabled:
    def test_unconfigured_secret_is_503(self, storage, clock):
        config = make_config(cron_secret=None)
        with TestClient(create_fastapi_app(App(config, storage, clock), config)) as client:
            response = client.get("/api/cron/cleanup", headers=SECRET)

        assert response.status_code == 503
        assert response.json()["type"] == "not_configured"
