"""FastAPI dependency-injection helpers."""
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from taskhub.auth.service import CredentialService
from taskhub.core.context import ActorContext
from taskhub.core.exceptions import ServerError
from taskhub.core.types import Actor
from taskhub.manager import TaskHubManager
from taskhub.services.organizations import OrganizationManager
from taskhub.services.tasks import TaskManager


def get_manager(request: Request) -> TaskHubManager:
    """Return the initialised :class:`TaskHubManager` stored on ``app.state``."""
    manager: TaskHubManager | None = getattr(request.app.state, "manager", None)
    if manager is None or not manager.initialized:
        raise ServerError("Service is not initialised")
    return manager


def get_actor(request: Request) -> Actor:
    """Return the actor bound by :class:`~taskhub.middleware.authentication.AuthenticationMiddleware`."""
    actor: Actor | None = getattr(request.state, "actor", None)
    if actor is None:
        return ActorContext.get()
    return actor


Manager = Annotated[TaskHubManager, Depends(get_manager)]
CurrentActor = Annotated[Actor, Depends(get_actor)]


def get_credentials(manager: Manager) -> CredentialService:
    return manager.credentials


def get_task_manager(manager: Manager) -> TaskManager:
    return manager.tasks


def get_organization_manager(manager: Manager) -> OrganizationManager:
    return manager.organizations


Credentials = Annotated[CredentialService, Depends(get_credentials)]
Tasks = Annotated[TaskManager, Depends(get_task_manager)]
Organizations = Annotated[OrganizationManager, Depends(get_organization_manager)]


__all__ = [
    "Credentials",
    "CurrentActor",
    "Manager",
    "Organizations",
    "Tasks",
    "get_actor",
    "get_credentials",
    "get_manager",
    "get_organization_manager",
    "get_task_manager",
]
