"""HTTP middleware."""

from taskhub.middleware.authentication import AuthenticationMiddleware

__all__ = ["AuthenticationMiddleware"]
