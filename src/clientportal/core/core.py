from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import TYPE_CHECKING, cast

import structlog

from clientportal.config import Config
from clientportal.core.modules.token.generator import ensure_entropy_source
from clientportal.core.storage import MongoStorage, Storage
from clientportal.utils import Clock, now

if TYPE_CHECKING:
    from clientportal.core.modules.account.service import AccountService
    from clientportal.core.modules.cleanup.service import CleanupService
    from clientportal.core.modules.csrf.service import CsrfService
    from clientportal.core.modules.push_token.service import PushTokenService
    from clientportal.core.modules.rate_limit.service import RateLimitService
    from clientportal.core.modules.session.service import SessionService

logger = structlog.get_logger(__name__)


class Service:
    """Base class for services with access to the storage backend."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core

    def now(self) -> datetime:
        return self.core.clock()


class Services:
    """Service registry that automatically discovers and initializes services."""

    account: AccountService
    session: SessionService
    csrf: CsrfService
    rate_limit: RateLimitService
    push_token: PushTokenService
    cleanup: CleanupService

    def __init__(self, storage: Storage) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []

        # Service configuration: (attribute_name, module_path, class_name)
        service_configs = [
            ("account", "clientportal.core.modules.account.service", "AccountService"),
            ("session", "clientportal.core.modules.session.service", "SessionService"),
            ("csrf", "clientportal.core.modules.csrf.service", "CsrfService"),
            ("rate_limit", "clientportal.core.modules.rate_limit.service", "RateLimitService"),
            ("push_token", "clientportal.core.modules.push_token.service", "PushTokenService"),
            ("cleanup", "clientportal.core.modules.cleanup.service", "CleanupService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(storage)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        for service in self._services:
            await service.on_stop()


class Core:
    """Container providing config, clock, storage, and all service instances."""

    config: Config
    clock: Clock
    storage: Storage
    services: Services

    def __init__(self, config: Config, storage: Storage | None = None, clock: Clock = now) -> None:
        """Initialize core with config and storage (MongoDB unless given), and auto-register services."""
        self.config = config
        self.clock = clock
        self.storage = storage if storage is not None else MongoStorage(config.database_url)
        self.services = Services(self.storage)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        ensure_entropy_source()
        await self.storage.on_start()
        await self.services.start_all()
        logger.debug("core_started", storage=type(self.storage).__name__)

    async def on_stop(self) -> None:
        await self.services.stop_all()
        await self.storage.on_stop()
