"""Request-to-actor resolution."""

from taskhub.resolution.base import BaseActorResolver, resolve_tenant
from taskhub.resolution.bearer import BearerTokenResolver

__all__ = ["BaseActorResolver", "BearerTokenResolver", "resolve_tenant"]
