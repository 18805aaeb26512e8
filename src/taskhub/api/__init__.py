"""HTTP routers."""

from taskhub.api import auth, health, organizations, tasks

__all__ = ["auth", "health", "organizations", "tasks"]
