"""Tests for application wiring: health, security headers and OpenAPI."""

from conftest import make_config
from fastapi.testclient import TestClient

from clientportal.app import App
from clientportal.web.server import create_fastapi_app


class TestSecurityHeaders:
    def test_headers_on_every_response(self, client):
        for response in (client.get("/health"), client.get("/api/client/me")):
            assert response.headers["X-Content-Type-Options"] == "nosniff"
            assert response.headers["X-Frame-Options"] == "DENY"
            assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
            assert "Permissions-Policy" in response.headers

    def test_no_hsts_over_plain_http_config(self, client):
        assert "Strict-Transport-Security" not in client.get("/health").headers

    def test_hsts_with_secure_cookies(self, storage, clock):
        config = make_config(secure_cookies=True)
        with TestClient(create_fastapi_app(App(config, storage, clock), config)) as client:
            response = client.get("/health")
        assert response.headers["Strict-Transport-Security"].startswith("max-age=")


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestOpenApi:
    def test_security_schemes(self, client):
        schema = client.get("/openapi.json").json()

        assert set(schema["components"]["securitySchemes"]) == {"SessionCookie", "CsrfHeader", "BearerAuth"}
        assert schema["paths"]["/api/auth/login"]["post"]["security"] == []
        assert schema["paths"]["/api/mobile/session"]["get"]["security"] == [{"BearerAuth": []}]
        assert schema["paths"]["/api/auth/logout"]["post"]["security"] == [{"SessionCookie": [], "CsrfHeader": []}]
