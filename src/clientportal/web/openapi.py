from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="Client Portal API",
            version="0.1.0",
            summary="Session, CSRF and rate-limiting layer of the client portal",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "SessionCookie": {
                "type": "apiKey",
                "in": "cookie",
                "name": "session_token",
                "description": "Browser session cookie",
            },
            "CsrfHeader": {
                "type": "apiKey",
                "in": "header",
                "name": "X-CSRF-Token",
                "description": "Copy of the csrf_token cookie, required on state-changing browser requests",
            },
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "description": "Mobile session token, or the cron secret on /cron/cleanup",
            },
        }

        # Each path prefix has one authentication scheme
        public_endpoints = {
            ("POST", "/api/auth/login"),
            ("POST", "/api/auth/setup"),
            ("GET", "/api/auth/session"),
            ("GET", "/api/csrf"),
            ("POST", "/api/mobile/auth"),
            ("GET", "/health"),
        }

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in public_endpoints:
                    operation["security"] = []
                elif path.startswith(("/api/mobile/", "/api/cron/")):
                    operation["security"] = [{"BearerAuth": []}]
                elif method.upper() in {"POST", "PUT", "PATCH", "DELETE"}:
                    operation["security"] = [{"SessionCookie": [], "CsrfHeader": []}]
                else:
                    operation["security"] = [{"SessionCookie": []}]

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Email or password is incorrect", "type": "authentication_error"},
                {"message": "Invalid CSRF token. Please refresh the page.", "type": "csrf_error"},
                {"message": "Too many requests. Please wait and try again.", "type": "rate_limited"},
            ]
        }
    }


class CamelModel(BaseModel):
    """Response body serialized with camelCase keys, as the portal frontend and mobile app expect."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
