"""Application factory."""
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskhub.api import auth, health, organizations, tasks
from taskhub.api.errors import register_exception_handlers
from taskhub.core.config import Settings
from taskhub.logging_setup import setup_logging
from taskhub.manager import TaskHubManager
from taskhub.middleware.authentication import AuthenticationMiddleware
from taskhub.storage.base import DataStore

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, *, store: DataStore | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Application settings; read from the environment when omitted
        store: Optional data store override, e.g. ``InMemoryDataStore()``

    Returns:
        A configured app whose lifespan initialises a :class:`TaskHubManager`.
        The manager is available as ``app.state.manager``.
    """
    settings = settings or Settings()  # type: ignore[call-arg]
    setup_logging(settings.log_level)

    manager = TaskHubManager(settings, store=store)
    app = FastAPI(title="taskhub", lifespan=manager.create_lifespan())
    app.state.manager = manager

    prefix = settings.api_prefix
    # Added first so it runs inside CORS; preflight requests never reach it.
    app.add_middleware(
        AuthenticationMiddleware,
        manager=manager,
        skip_paths=[
            "/health",
            "/docs",
            "/redoc",
            "/openapi.json",
            f"{prefix}/auth/register",
            f"{prefix}/auth/login",
            f"{prefix}/auth/join",
        ],
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(health.router)
    for module in (auth, tasks, organizations):
        app.include_router(module.router, prefix=prefix)

    logger.info("Application created with API prefix %r", prefix or "/")
    return app


__all__ = ["create_app"]
