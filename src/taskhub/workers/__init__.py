"""Background workers."""

from taskhub.workers.expiration import ExpirationSweeper

__all__ = ["ExpirationSweeper"]
