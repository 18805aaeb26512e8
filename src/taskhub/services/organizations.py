"""Organization & membership management.

Covers organization settings, member listing, invites, role changes and
member deactivation.  Every method that takes an ``actor`` authorizes it
through :mod:`taskhub.policy` before touching the store.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from taskhub.core.exceptions import (
    ConflictError,
    DuplicateEmailError,
    NotFoundError,
    SelfModificationError,
)
from taskhub.core.lifecycle import next_slug_candidate, slugify, touch
from taskhub.core.schemas import InviteRequest, OrganizationUpdate, RoleChange, coerce
from taskhub.core.types import (
    Invitation,
    Organization,
    OrganizationDetails,
    Role,
    User,
    utcnow,
)
from taskhub.policy import Action, authorize
from taskhub.utils.security import generate_id, generate_invite_token, unusable_password

if TYPE_CHECKING:
    from taskhub.core.config import Settings
    from taskhub.core.types import Actor
    from taskhub.storage.base import DataStore

logger = logging.getLogger(__name__)

_MAX_SLUG_ATTEMPTS = 100
_PENDING_NAME = "Invited User"


async def save_organization(
    store: DataStore,
    organization: Organization,
    *,
    create: bool,
) -> Organization:
    """Persist *organization* under the first free slug derived from its name.

    Candidates are ``base``, ``base-1``, ``base-2``, ...  The organization
    itself is excluded from the collision check on update.  A store
    :class:`ConflictError` (a concurrent writer took the slug) moves on to
    the next candidate.
    """
    base = slugify(organization.name)
    exclude_id = None if create else organization.id
    for attempt in range(_MAX_SLUG_ATTEMPTS):
        candidate = next_slug_candidate(base, attempt)
        if await store.slug_exists(candidate, exclude_id):
            continue
        record = organization.model_copy(update={"slug": candidate})
        try:
            if create:
                return await store.create_organization(record)
            return await store.update_organization(record)
        except ConflictError:
            logger.info("Slug %r taken concurrently; trying next candidate", candidate)
    raise ConflictError("slug", base)


class OrganizationManager:
    """Organization settings and membership operations.

    Attributes:
        store: Data store handle
        settings: Application settings (invite lifetime and link base)
    """

    def __init__(self, store: DataStore, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    @staticmethod
    def _check_scope(organization_id: str, actor: Actor) -> None:
        # Another organization's records are reported as missing.
        if organization_id != actor.organization_id:
            raise NotFoundError("Organization", organization_id)

    async def get(self, organization_id: str, actor: Actor | None = None) -> OrganizationDetails:
        """Return the organization with its creator's public identity."""
        if actor is not None:
            authorize(actor.role, Action.VIEW_ORGANIZATION)
            self._check_scope(organization_id, actor)
        organization = await self.store.get_organization(organization_id)
        try:
            creator = await self.store.get_user(organization.created_by)
        except NotFoundError:
            creator = None
        return OrganizationDetails(
            organization=organization,
            created_by=creator.summary() if creator else None,
        )

    async def update_settings(
        self,
        organization_id: str,
        data: OrganizationUpdate | Mapping[str, Any],
        actor: Actor,
    ) -> Organization:
        """Update name, description and settings (Admin only).

        The settings patch is merged key by key; keys it leaves out keep
        their current values.  A name change recomputes the slug.
        """
        authorize(actor.role, Action.UPDATE_SETTINGS)
        self._check_scope(organization_id, actor)
        request = coerce(OrganizationUpdate, data)
        organization = await self.store.get_organization(organization_id)

        changes: dict[str, Any] = {}
        if "description" in request.model_fields_set:
            changes["description"] = request.description
        if request.settings is not None:
            patch = request.settings.model_dump(exclude_unset=True, exclude_none=True)
            changes["settings"] = organization.settings.model_copy(update=patch)
        rename = request.name is not None and request.name != organization.name
        if rename:
            changes["name"] = request.name

        updated = touch(organization.model_copy(update=changes), utcnow())
        if rename:
            updated = await save_organization(self.store, updated, create=False)
        else:
            updated = await self.store.update_organization(updated)
        logger.info("Organization %s updated by %s", organization_id, actor.id)
        return updated

    async def list_members(self, organization_id: str, actor: Actor | None = None) -> list[User]:
        """Active users of the organization, newest first."""
        if actor is not None:
            authorize(actor.role, Action.VIEW_ORGANIZATION)
            self._check_scope(organization_id, actor)
        return await self.store.list_users(organization_id, active=True)

    async def invite(
        self,
        organization_id: str,
        email: str,
        role: Role | str | None,
        actor: Actor,
    ) -> Invitation:
        """Issue an invite and create the inactive placeholder account.

        Raises:
            ForbiddenError: If the actor is a Member
            ValidationError: Malformed email, or role Admin
            DuplicateEmailError: If the email is already registered
        """
        authorize(actor.role, Action.INVITE_MEMBER)
        self._check_scope(organization_id, actor)
        payload: dict[str, Any] = {"email": email}
        if role is not None:
            payload["role"] = role
        request = coerce(InviteRequest, payload)

        if await self.store.find_user_by_email(request.email) is not None:
            raise DuplicateEmailError(request.email)

        now = utcnow()
        token = generate_invite_token()
        expires_at = now + timedelta(days=self.settings.invite_ttl_days)
        await self.store.create_user(
            User(
                id=generate_id(),
                name=_PENDING_NAME,
                email=request.email,
                password_hash=unusable_password(),
                organization_id=organization_id,
                role=request.role,
                is_active=False,
                invite_token=token,
                invite_expires=expires_at,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info("Invite issued for organization %s by %s", organization_id, actor.id)
        return Invitation(
            email=request.email,
            role=request.role,
            token=token,
            invite_url=self.settings.invite_url(token),
            expires_at=expires_at,
        )

    async def _get_member(self, organization_id: str, user_id: str) -> User:
        try:
            user = await self.store.get_user(user_id)
        except NotFoundError:
            raise NotFoundError("User", user_id) from None
        if user.organization_id != organization_id:
            raise NotFoundError("User", user_id)
        return user

    async def change_role(
        self,
        organization_id: str,
        user_id: str,
        new_role: Role | str,
        actor: Actor,
    ) -> User:
        """Change an active member's role (Admin only)."""
        authorize(actor.role, Action.CHANGE_ROLE)
        if user_id == actor.id:
            raise SelfModificationError("change your own role")
        self._check_scope(organization_id, actor)
        request = coerce(RoleChange, {"role": new_role})

        user = await self._get_member(organization_id, user_id)
        if not user.is_active:
            raise NotFoundError("User", user_id)
        updated = await self.store.update_user(
            touch(user.model_copy(update={"role": request.role}), utcnow())
        )
        logger.info("User %s role set to %s by %s", user_id, request.role.value, actor.id)
        return updated

    async def remove_member(self, organization_id: str, user_id: str, actor: Actor) -> User:
        """Deactivate a member (Admin only).  Their task references stay intact."""
        authorize(actor.role, Action.REMOVE_MEMBER)
        if user_id == actor.id:
            raise SelfModificationError("remove yourself")
        self._check_scope(organization_id, actor)

        user = await self._get_member(organization_id, user_id)
        updated = await self.store.update_user(
            touch(user.model_copy(update={"is_active": False}), utcnow())
        )
        logger.info("User %s removed from organization %s by %s", user_id, organization_id, actor.id)
        return updated


__all__ = ["OrganizationManager", "save_organization"]
