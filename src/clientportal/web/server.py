from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clientportal.app import App
from clientportal.config import Config
from clientportal.errors import StoreUnavailableError, UserError
from clientportal.web.error_handlers import general_exception_handler, store_unavailable_handler, user_error_handler
from clientportal.web.middleware import SecurityHeadersMiddleware
from clientportal.web.openapi import set_custom_openapi
from clientportal.web.routers import (
    admin_router,
    auth_router,
    client_router,
    cron_router,
    csrf_router,
    mobile_router,
)


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        async with app_instance.lifespan():
            yield

    app = FastAPI(
        title="Client Portal API",
        lifespan=lifespan,
        openapi_tags=[],  # Tags will be added by custom OpenAPI function
    )
    # Set before startup so the exception handlers can always reach the clock
    app.state.app = app_instance
    app.state.config = config

    # Add CORS middleware for frontend development
    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Added last so it wraps CORS and sees every response
    app.add_middleware(SecurityHeadersMiddleware, hsts=config.secure_cookies)

    # Health check endpoint (at root level, not versioned)
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    app.include_router(auth_router, prefix="/api")
    app.include_router(csrf_router, prefix="/api")
    app.include_router(client_router, prefix="/api")
    app.include_router(admin_router, prefix="/api")
    app.include_router(mobile_router, prefix="/api")
    app.include_router(cron_router, prefix="/api")

    # Register error handlers
    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(StoreUnavailableError, store_unavailable_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
