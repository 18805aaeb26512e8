"""Authentication middleware: bearer token to actor, per request.

Processing pipeline
-------------------
1. Skip public paths and OPTIONS requests (preflight).
2. Resolve the actor via the manager's resolver (token → user → organization).
3. Bind :class:`~taskhub.core.context.ActorContext` and ``request.state.actor``.
4. Forward to the next handler.
5. Reset the context in ``finally``.

Resolution failures are rendered here as ``{"message": ...}`` JSON, since
they happen before routing and never reach the FastAPI exception handlers.
"""
from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from taskhub.core.context import ActorContext
from taskhub.core.exceptions import TaskHubError, UnauthenticatedError

if TYPE_CHECKING:
    from starlette.middleware.base import RequestResponseEndpoint

    from taskhub.manager import TaskHubManager
    from taskhub.resolution.base import BaseActorResolver

logger = logging.getLogger(__name__)

_DEFAULT_SKIP_PATHS: list[str] = [
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/favicon.ico",
]


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """Authenticate every non-public request and bind the acting user.

    Parameters
    ----------
    app:
        The ASGI application (injected by Starlette's middleware machinery).
    resolver:
        Pre-built resolver.  Mutually exclusive with ``manager``.
    skip_paths:
        URL prefixes that bypass authentication.
    manager:
        If provided, the resolver is read from ``manager.resolver`` on each
        request, so the middleware can be registered before
        ``manager.initialize()`` runs.
    """

    def __init__(
        self,
        app: Any,
        *,
        resolver: BaseActorResolver | None = None,
        skip_paths: list[str] | None = None,
        manager: TaskHubManager | None = None,
    ) -> None:
        super().__init__(app)
        self._resolver = resolver
        self._manager = manager
        self.skip_paths: list[str] = (
            skip_paths if skip_paths is not None else list(_DEFAULT_SKIP_PATHS)
        )
        logger.info("AuthenticationMiddleware registered skip_paths=%s", self.skip_paths)

    @property
    def resolver(self) -> BaseActorResolver | None:
        if self._manager is not None:
            return self._manager.resolver
        return self._resolver

    def _is_path_skipped(self, path: str) -> bool:
        return any(path.startswith(p) for p in self.skip_paths)

    def _should_skip_request(self, request: Request) -> bool:
        if request.method == "OPTIONS":
            return True
        return self._is_path_skipped(request.url.path)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()

        if self._should_skip_request(request):
            logger.debug("Skipping authentication for %s", request.url.path)
            return await call_next(request)

        resolver = self.resolver
        if resolver is None:
            logger.error("AuthenticationMiddleware has no resolver; was the manager initialized?")
            return self._error_response(
                status.HTTP_503_SERVICE_UNAVAILABLE,
                "Service is not yet initialised",
            )

        try:
            actor = await resolver.resolve(request)
        except UnauthenticatedError as exc:
            logger.info("Authentication failed for %s: %s", request.url.path, exc.message)
            return self._error_response(exc.status_code, exc.message)
        except TaskHubError as exc:
            logger.error("Authentication error: %s", exc, exc_info=True)
            return self._error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error")
        except Exception as exc:
            logger.error("Unexpected middleware error: %s", exc, exc_info=True)
            return self._error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error")

        token = ActorContext.set(actor)
        request.state.actor = actor
        try:
            response = await call_next(request)
        finally:
            ActorContext.reset(token)

        logger.info(
            "Request user=%s org=%s %s %s [%d] %.2f ms",
            actor.id,
            actor.organization_id,
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - start) * 1000,
        )
        return response

    @staticmethod
    def _error_response(status_code: int, message: str) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"message": message})


__all__ = ["AuthenticationMiddleware"]
