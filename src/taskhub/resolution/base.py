"""Base resolver and the tenant-binding step shared by all resolvers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from taskhub.core.exceptions import TenantRequiredError
from taskhub.core.types import Actor

if TYPE_CHECKING:
    from taskhub.auth.service import CredentialService
    from taskhub.core.types import Identity

logger = logging.getLogger(__name__)


def resolve_tenant(identity: Identity) -> Actor:
    """Bind an authenticated identity to its organization scope.

    Raises:
        TenantRequiredError: If the user has no organization
    """
    if identity.organization is None or identity.user.organization_id is None:
        logger.warning("User %s has no organization", identity.user.id)
        raise TenantRequiredError(identity.user.id)
    return Actor(user=identity.user, organization=identity.organization)


class BaseActorResolver(ABC):
    """Abstract base class for request-to-actor resolution.

    Subclasses extract credentials from the request, authenticate them with
    the :class:`~taskhub.auth.service.CredentialService`, and finish with
    :func:`resolve_tenant`.

    Attributes:
        credentials: Service used to authenticate extracted tokens
    """

    def __init__(self, credentials: CredentialService) -> None:
        self.credentials = credentials
        logger.debug("Initialized %s", self.__class__.__name__)

    @abstractmethod
    async def resolve(self, request: Any) -> Actor:
        """Resolve the acting user and organization for *request*.

        Raises:
            UnauthenticatedError: If the request carries no valid credentials
            TenantRequiredError: If the user is not bound to an organization
        """


__all__ = ["BaseActorResolver", "resolve_tenant"]
