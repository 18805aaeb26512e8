"""Unit tests for taskhub.core.context"""

from __future__ import annotations

import asyncio

import pytest

from taskhub.core.context import ActorContext
from taskhub.core.exceptions import UnauthenticatedError
from taskhub.core.types import Actor, Organization, Role, User


def _make_actor(uid: str = "u1", org_id: str = "o1") -> Actor:
    return Actor(
        user=User(id=uid, name="Ada", email=f"{uid}@acme.test", password_hash="x",
                  organization_id=org_id, role=Role.ADMIN),
        organization=Organization(id=org_id, name="Acme", slug="acme", created_by=uid),
    )


class TestActorContext:
    def test_set_and_get(self):
        a = _make_actor()
        token = ActorContext.set(a)
        assert ActorContext.get() is a
        ActorContext.reset(token)

    def test_get_raises_when_unset(self):
        ActorContext.clear()
        with pytest.raises(UnauthenticatedError):
            ActorContext.get()

    def test_reset_restores_previous(self):
        outer = _make_actor("u1")
        outer_token = ActorContext.set(outer)
        inner_token = ActorContext.set(_make_actor("u2"))
        assert ActorContext.get().id == "u2"
        ActorContext.reset(inner_token)
        assert ActorContext.get() is outer
        ActorContext.reset(outer_token)
        with pytest.raises(UnauthenticatedError):
            ActorContext.get()

    @pytest.mark.asyncio
    async def test_concurrent_tasks_are_isolated(self):
        async def worker(uid: str) -> str:
            token = ActorContext.set(_make_actor(uid))
            try:
                await asyncio.sleep(0)
                return ActorContext.get().id
            finally:
                ActorContext.reset(token)

        results = await asyncio.gather(*(worker(f"u{i}") for i in range(10)))
        assert results == [f"u{i}" for i in range(10)]
