"""Request-scoped actor context using async-safe context variables.

The authentication middleware binds the resolved :class:`~taskhub.core.types.Actor`
for the duration of a request.  Each asyncio task gets its own copy of the
context, so concurrent requests never see each other's actor.
"""

from __future__ import annotations

from contextvars import ContextVar, Token
from typing import TYPE_CHECKING

from taskhub.core.exceptions import UnauthenticatedError

if TYPE_CHECKING:
    from taskhub.core.types import Actor

_actor_context: ContextVar[Actor | None] = ContextVar("actor", default=None)


class ActorContext:
    """Manages the current actor using async-safe context variables.

    Example:
        ```python
        # In middleware
        actor = await resolver.resolve(request)
        token = ActorContext.set(actor)
        try:
            response = await call_next(request)
        finally:
            ActorContext.reset(token)

        # Anywhere downstream
        actor = ActorContext.get()
        ```
    """

    @staticmethod
    def set(actor: Actor) -> Token[Actor | None]:
        """Set the current actor; returns a token for :meth:`reset`."""
        return _actor_context.set(actor)

    @staticmethod
    def get() -> Actor:
        """Return the current actor.

        Raises:
            UnauthenticatedError: If no actor is bound to the current context
        """
        actor = _actor_context.get()
        if actor is None:
            raise UnauthenticatedError()
        return actor

    @staticmethod
    def reset(token: Token[Actor | None]) -> None:
        _actor_context.reset(token)

    @staticmethod
    def clear() -> None:
        _actor_context.set(None)


__all__ = ["ActorContext"]
