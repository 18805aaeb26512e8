"""Shared pytest fixtures for the taskhub test suite.

Design philosophy
-----------------
- Service tests run against :class:`InMemoryDataStore`; the SQL backend is
  exercised separately on SQLite in-memory, so no external services are needed.
- bcrypt runs with the minimum cost factor to keep the suite fast.
- Scope is "function" everywhere to guarantee full isolation.
"""
from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest

from taskhub.app import create_app
from taskhub.auth.service import CredentialService
from taskhub.auth.tokens import TokenService
from taskhub.core.config import Settings
from taskhub.core.context import ActorContext
from taskhub.core.types import Actor, AuthResult, Role
from taskhub.services.organizations import OrganizationManager
from taskhub.services.tasks import TaskManager
from taskhub.storage.memory import InMemoryDataStore

JWT_SECRET = "test-secret-that-is-at-least-32-characters"
PASSWORD = "secret123"


# ---------------------------------------------------------------------------
# Context isolation: always clear ActorContext between tests
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def clear_actor_context():
    ActorContext.clear()
    yield
    ActorContext.clear()


# ---------------------------------------------------------------------------
# Config & storage
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret=JWT_SECRET,
        bcrypt_rounds=4,
        sweeper_enabled=False,
        frontend_url="http://app.test",
    )


@pytest.fixture
def store() -> InMemoryDataStore:
    return InMemoryDataStore()


@pytest.fixture
async def sqlite_store():
    """SQLite-backed data store for integration tests."""
    from taskhub.storage.sqlalchemy import SQLAlchemyDataStore

    store = SQLAlchemyDataStore(database_url="sqlite+aiosqlite:///:memory:", pool_size=1)
    await store.initialize()
    yield store
    await store.close()


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------

@pytest.fixture
def tokens() -> TokenService:
    return TokenService(JWT_SECRET)


@pytest.fixture
def credentials(store: InMemoryDataStore, tokens: TokenService) -> CredentialService:
    return CredentialService(store, tokens, bcrypt_rounds=4)


@pytest.fixture
def tasks(store: InMemoryDataStore) -> TaskManager:
    return TaskManager(store)


@pytest.fixture
def organizations(store: InMemoryDataStore, settings: Settings) -> OrganizationManager:
    return OrganizationManager(store, settings)


# ---------------------------------------------------------------------------
# Actors: one organization with an Admin, a Manager and a Member
# ---------------------------------------------------------------------------

def _as_actor(result: AuthResult) -> Actor:
    return Actor(user=result.user, organization=result.organization)


@pytest.fixture
def add_member(credentials: CredentialService, organizations: OrganizationManager):
    """Return a coroutine that invites *email*, joins, and optionally promotes."""

    async def _add(admin: Actor, email: str, role: Role = Role.MEMBER) -> Actor:
        invitation = await organizations.invite(admin.organization_id, email, None, admin)
        joined = await credentials.accept_invite(
            email.split("@")[0].title(), email, PASSWORD, invitation.token
        )
        actor = _as_actor(joined)
        if role != Role.MEMBER:
            user = await organizations.change_role(admin.organization_id, actor.id, role, admin)
            actor = Actor(user=user, organization=actor.organization)
        return actor

    return _add


@pytest.fixture
async def admin(credentials: CredentialService) -> Actor:
    result = await credentials.register("Ada Admin", "ada@acme.test", PASSWORD, "Acme Corp")
    return _as_actor(result)


@pytest.fixture
async def manager_actor(add_member, admin: Actor) -> Actor:
    return await add_member(admin, "mia@acme.test", Role.MANAGER)


@pytest.fixture
async def member(add_member, admin: Actor) -> Actor:
    return await add_member(admin, "max@acme.test")


@pytest.fixture
async def other_admin(credentials: CredentialService) -> Actor:
    """Admin of a second, unrelated organization."""
    result = await credentials.register("Olga Other", "olga@globex.test", PASSWORD, "Globex")
    return _as_actor(result)


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

@pytest.fixture
async def app(settings: Settings, store: InMemoryDataStore):
    application = create_app(settings, store=store)
    # ASGITransport does not run the lifespan; initialise explicitly.
    await application.state.manager.initialize()
    yield application
    await application.state.manager.shutdown()


@pytest.fixture
async def client(app) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
