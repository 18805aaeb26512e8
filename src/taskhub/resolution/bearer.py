"""Bearer-token actor resolution (``Authorization: Bearer <token>``)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from taskhub.core.exceptions import UnauthenticatedError
from taskhub.resolution.base import BaseActorResolver, resolve_tenant

if TYPE_CHECKING:
    from fastapi import Request

    from taskhub.core.types import Actor

logger = logging.getLogger(__name__)


class BearerTokenResolver(BaseActorResolver):
    """Resolve the actor from the session token in the Authorization header."""

    async def resolve(self, request: Request) -> Actor:
        auth_header = request.headers.get("Authorization")
        if not auth_header:
            raise UnauthenticatedError("No token provided")

        parts = auth_header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise UnauthenticatedError(
                "Invalid Authorization header format. Expected: Bearer <token>"
            )

        identity = await self.credentials.authenticate(parts[1])
        return resolve_tenant(identity)


__all__ = ["BearerTokenResolver"]
