import math

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse, Response

from clientportal.errors import (
    AccessDeniedError,
    AuthenticationError,
    ForgeryError,
    NotConfiguredError,
    NotFoundError,
    RateLimitedError,
    ValidationError,
)

logger = structlog.get_logger(__name__)


def create_json_error_response(
    status_code: int, message: str, error_type: str | None = None, headers: dict[str, str] | None = None
) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content = {"message": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def rate_limit_headers(request: Request, exc: RateLimitedError) -> dict[str, str]:
    seconds_left = (exc.reset_at - request.app.state.app.now()).total_seconds()
    return {
        "Retry-After": str(max(math.ceil(seconds_left), 1)),
        "X-RateLimit-Limit": str(exc.limit),
        "X-RateLimit-Remaining": "0",
        "X-RateLimit-Reset": exc.reset_at.isoformat(),
    }


async def user_error_handler(request: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    headers = None
    if isinstance(exc, AuthenticationError):
        status_code = 401
        error_type = "authentication_error"
    elif isinstance(exc, ForgeryError):
        status_code = 403
        error_type = "csrf_error"
    elif isinstance(exc, AccessDeniedError):
        status_code = 403
        error_type = "access_denied"
    elif isinstance(exc, RateLimitedError):
        status_code = 429
        error_type = "rate_limited"
        headers = rate_limit_headers(request, exc)
    elif isinstance(exc, NotFoundError):
        status_code = 404
        error_type = "not_found"
    elif isinstance(exc, ValidationError):
        status_code = 400
        error_type = "validation_error"
    elif isinstance(exc, NotConfiguredError):
        status_code = 503
        error_type = "not_configured"
    else:
        # Default for any other UserError subclass
        status_code = 400
        error_type = "bad_request"

    return create_json_error_response(status_code=status_code, message=str(exc), error_type=error_type, headers=headers)


async def store_unavailable_handler(request: Request, exc: Exception) -> Response:
    """Persistence failures: log the driver detail, show the client nothing of it."""
    logger.error("store_unavailable", path=request.url.path, error=str(exc))
    return create_json_error_response(
        status_code=500, message="Service temporarily unavailable.", error_type="store_unavailable"
    )


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("unexpected_error", error=str(exc))
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
