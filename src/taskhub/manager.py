"""Central application manager: component lifecycle and orchestration.

Lifecycle
---------
1. **Construct**: stores settings and overrides, no I/O.
2. **initialize()**: builds the store, services, resolver and sweeper, and
   creates tables.  All heavy I/O happens here.
3. **shutdown()**: stops the sweeper and disposes the store.

The FastAPI integration is :meth:`TaskHubManager.create_lifespan`.  The
authentication middleware is registered by :func:`taskhub.app.create_app`
when the app is built, because Starlette refuses ``add_middleware`` once
the application has started; the middleware reads ``manager.resolver``
lazily, so it may be registered before ``initialize()`` runs.
"""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from taskhub.auth.service import CredentialService
from taskhub.auth.tokens import TokenService
from taskhub.core.types import utcnow
from taskhub.resolution.bearer import BearerTokenResolver
from taskhub.services.organizations import OrganizationManager
from taskhub.services.tasks import TaskManager
from taskhub.workers.expiration import ExpirationSweeper

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI
    from starlette.types import Lifespan

    from taskhub.core.config import Settings
    from taskhub.resolution.base import BaseActorResolver
    from taskhub.storage.base import DataStore

logger = logging.getLogger(__name__)


class TaskHubManager:
    """Owns every long-lived component of the service.

    Parameters
    ----------
    settings:
        Validated :class:`~taskhub.core.config.Settings`.
    store:
        Override the default :class:`~taskhub.storage.sqlalchemy.SQLAlchemyDataStore`.
        Useful for testing with :class:`~taskhub.storage.memory.InMemoryDataStore`.

    Example::

        manager = TaskHubManager(settings, store=InMemoryDataStore())
        async with manager:
            result = await manager.credentials.register(...)
    """

    def __init__(self, settings: Settings, *, store: DataStore | None = None) -> None:
        self.settings = settings
        self._custom_store = store
        self._initialized = False
        self._started = time.monotonic()

        # Set during initialize()
        self.store: DataStore
        self.tokens: TokenService
        self.credentials: CredentialService
        self.tasks: TaskManager
        self.organizations: OrganizationManager
        self.sweeper: ExpirationSweeper
        self.resolver: BaseActorResolver | None = None

        logger.info("TaskHubManager created")

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Initialise all components.  Subsequent calls are no-ops."""
        if self._initialized:
            return

        logger.info("TaskHubManager initialising …")
        self._initialize_storage()
        await self.store.initialize()

        self.tokens = TokenService(
            self.settings.jwt_secret,
            algorithm=self.settings.jwt_algorithm,
            ttl_days=self.settings.token_ttl_days,
        )
        self.credentials = CredentialService(
            self.store,
            self.tokens,
            bcrypt_rounds=self.settings.bcrypt_rounds,
        )
        self.tasks = TaskManager(self.store)
        self.organizations = OrganizationManager(self.store, self.settings)
        self.sweeper = ExpirationSweeper(
            self.store,
            interval_seconds=self.settings.sweep_interval_seconds,
        )
        self.resolver = BearerTokenResolver(self.credentials)

        self._initialized = True
        logger.info("TaskHubManager initialised")

    async def shutdown(self) -> None:
        """Stop background work and release the store."""
        if not self._initialized:
            return

        logger.info("TaskHubManager shutting down …")
        await self.sweeper.stop()
        await self.store.close()
        self.resolver = None
        self._initialized = False
        logger.info("TaskHubManager shutdown complete")

    async def __aenter__(self) -> TaskHubManager:
        await self.initialize()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.shutdown()

    def create_lifespan(self) -> Lifespan[FastAPI]:
        """Build a FastAPI ``lifespan`` that initialises this manager.

        The sweeper is started after initialisation when
        ``settings.sweeper_enabled`` is set.
        """

        @asynccontextmanager
        async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
            await self.initialize()
            if self.settings.sweeper_enabled:
                self.sweeper.start()
            try:
                yield
            finally:
                await self.shutdown()

        return _lifespan

    def _initialize_storage(self) -> None:
        if self._custom_store is not None:
            self.store = self._custom_store
        else:
            from taskhub.storage.sqlalchemy import SQLAlchemyDataStore
            self.store = SQLAlchemyDataStore(
                database_url=self.settings.database_url,
                pool_size=self.settings.database_pool_size,
                max_overflow=self.settings.database_max_overflow,
                echo=self.settings.database_echo,
            )

    async def health_check(self) -> dict[str, Any]:
        """Return liveness details and the database state."""
        connected = self._initialized and await self.store.ping()
        return {
            "status": "ok",
            "timestamp": utcnow().isoformat(),
            "uptime": round(time.monotonic() - self._started, 3),
            "database": "connected" if connected else "disconnected",
        }


__all__ = ["TaskHubManager"]
