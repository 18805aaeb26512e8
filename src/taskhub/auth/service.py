"""Credential & session service: registration, login, token auth, invites."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from taskhub.core.exceptions import (
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidInviteError,
    NotFoundError,
    TaskHubError,
    UnauthenticatedError,
)
from taskhub.core.lifecycle import slugify
from taskhub.core.schemas import JoinRequest, LoginRequest, RegistrationRequest, coerce
from taskhub.core.types import (
    AuthResult,
    Identity,
    Organization,
    Role,
    User,
    utcnow,
)
from taskhub.services.organizations import save_organization
from taskhub.utils.security import generate_id, hash_password, verify_password

if TYPE_CHECKING:
    from taskhub.auth.tokens import TokenService
    from taskhub.storage.base import DataStore

logger = logging.getLogger(__name__)


class CredentialService:
    """Verifies credentials and issues session tokens.

    bcrypt runs in a worker thread so hashing never blocks the event loop.

    Example:
        ```python
        service = CredentialService(store, TokenService(secret), bcrypt_rounds=12)
        result = await service.register("Ada", "ada@example.com", "secret1", "Acme")
        identity = await service.authenticate(result.token)
        ```
    """

    def __init__(
        self,
        store: DataStore,
        tokens: TokenService,
        *,
        bcrypt_rounds: int = 12,
    ) -> None:
        self.store = store
        self.tokens = tokens
        self.bcrypt_rounds = bcrypt_rounds

    async def _hash(self, password: str) -> str:
        return await asyncio.to_thread(hash_password, password, self.bcrypt_rounds)

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        organization_name: str,
    ) -> AuthResult:
        """Create an Admin user together with a new organization.

        The three writes (user, organization, link) are not atomic.  If the
        second or third fails the records written so far are deleted and the
        original error propagates.

        Raises:
            ValidationError: If any field fails its format constraint
            DuplicateEmailError: If the email is already registered
        """
        request = coerce(
            RegistrationRequest,
            {
                "name": name,
                "email": email,
                "password": password,
                "organizationName": organization_name,
            },
        )
        if await self.store.find_user_by_email(request.email) is not None:
            raise DuplicateEmailError(request.email)

        now = utcnow()
        user = await self.store.create_user(
            User(
                id=generate_id(),
                name=request.name,
                email=request.email,
                password_hash=await self._hash(request.password),
                role=Role.ADMIN,
                created_at=now,
                updated_at=now,
            )
        )

        organization: Organization | None = None
        try:
            organization = await save_organization(
                self.store,
                Organization(
                    id=generate_id(),
                    name=request.organization_name,
                    slug=slugify(request.organization_name),
                    created_by=user.id,
                    created_at=now,
                    updated_at=now,
                ),
                create=True,
            )
            user = await self.store.update_user(
                user.model_copy(update={"organization_id": organization.id, "updated_at": utcnow()})
            )
        except BaseException:
            logger.warning("Registration of user %s failed after user creation; rolling back", user.id)
            await self._discard(user.id, organization.id if organization else None)
            raise

        logger.info("Registered user %s as admin of organization %s", user.id, organization.id)
        return AuthResult(token=self.tokens.issue(user), user=user, organization=organization)

    async def _discard(self, user_id: str, organization_id: str | None) -> None:
        # Best effort; the caller re-raises the original failure.
        if organization_id is not None:
            try:
                await self.store.delete_organization(organization_id)
            except TaskHubError:
                logger.exception("Could not delete organization %s", organization_id)
        try:
            await self.store.delete_user(user_id)
        except TaskHubError:
            logger.exception("Could not delete user %s", user_id)

    async def login(self, email: str, password: str) -> AuthResult:
        """Verify an email/password pair and issue a new session token.

        Unknown email, inactive account, missing organization and wrong
        password all produce the same :class:`InvalidCredentialsError`.
        """
        request = coerce(LoginRequest, {"email": email, "password": password})
        user = await self.store.find_user_by_email(request.email)
        if user is None or not user.is_active or user.organization_id is None:
            raise InvalidCredentialsError()

        ok = await asyncio.to_thread(verify_password, request.password, user.password_hash)
        if not ok:
            raise InvalidCredentialsError()

        try:
            organization = await self.store.get_organization(user.organization_id)
        except NotFoundError:
            logger.error("User %s references missing organization %s", user.id, user.organization_id)
            raise InvalidCredentialsError() from None

        now = utcnow()
        user = await self.store.update_user(
            user.model_copy(update={"last_login": now, "updated_at": now})
        )
        logger.info("User %s logged in", user.id)
        return AuthResult(token=self.tokens.issue(user, now), user=user, organization=organization)

    async def authenticate(self, token: str | None) -> Identity:
        """Resolve a bearer token to the user it was issued for.

        Raises:
            UnauthenticatedError: Missing, malformed or expired token, or a
                subject that is unknown or inactive
        """
        if not token:
            raise UnauthenticatedError("No token provided")
        user_id = self.tokens.decode(token)
        try:
            user = await self.store.get_user(user_id)
        except NotFoundError:
            raise UnauthenticatedError("Token is not valid") from None
        if not user.is_active:
            raise UnauthenticatedError("Token is not valid")

        organization = None
        if user.organization_id is not None:
            try:
                organization = await self.store.get_organization(user.organization_id)
            except NotFoundError:
                logger.error(
                    "User %s references missing organization %s", user.id, user.organization_id
                )
        return Identity(user=user, organization=organization)

    async def accept_invite(
        self,
        name: str,
        email: str,
        password: str,
        invite_token: str,
    ) -> AuthResult:
        """Turn a pending invite into an active Member account.

        The placeholder record created by the invite is completed in place
        and its token cleared, so a token can be redeemed once.

        Raises:
            ValidationError: If any field fails its format constraint
            InvalidInviteError: No pending invite matches the token, or it expired
            DuplicateEmailError: The email belongs to a different account
        """
        request = coerce(
            JoinRequest,
            {"name": name, "email": email, "password": password, "inviteToken": invite_token},
        )
        now = utcnow()
        pending = await self.store.find_user_by_invite_token(request.invite_token)
        if pending is None or not pending.has_pending_invite(now) or pending.organization_id is None:
            raise InvalidInviteError()

        existing = await self.store.find_user_by_email(request.email)
        if existing is not None and existing.id != pending.id:
            raise DuplicateEmailError(request.email)

        organization = await self.store.get_organization(pending.organization_id)
        user = await self.store.update_user(
            pending.model_copy(
                update={
                    "name": request.name,
                    "email": request.email,
                    "password_hash": await self._hash(request.password),
                    "role": Role.MEMBER,
                    "is_active": True,
                    "invite_token": None,
                    "invite_expires": None,
                    "last_login": now,
                    "updated_at": now,
                }
            )
        )
        logger.info("User %s joined organization %s", user.id, organization.id)
        return AuthResult(token=self.tokens.issue(user, now), user=user, organization=organization)


__all__ = ["CredentialService"]
