"""ExpirationSweeper tests."""
from __future__ import annotations

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from taskhub.core.exceptions import StorageError
from taskhub.core.types import TaskStatus, utcnow
from taskhub.workers.expiration import ExpirationSweeper


@pytest.fixture
def sweeper(store) -> ExpirationSweeper:
    return ExpirationSweeper(store, interval_seconds=3600)


async def _create(tasks, actor, title: str, due_in: timedelta | None, status: str = "Todo"):
    data = {"title": title, "category": "Bug", "status": status}
    if due_in is not None:
        data["dueDate"] = (utcnow() + due_in).isoformat()
    return await tasks.create(data, actor)


class TestRunOnce:

    @pytest.mark.asyncio
    async def test_expires_only_open_overdue_tasks(self, sweeper, tasks, store, admin) -> None:
        overdue = await _create(tasks, admin, "Overdue", timedelta(hours=-1))
        in_progress = await _create(tasks, admin, "Late WIP", timedelta(days=-2), "In Progress")
        done = await _create(tasks, admin, "Done", timedelta(days=-1), "Completed")
        future = await _create(tasks, admin, "Future", timedelta(days=1))
        undated = await _create(tasks, admin, "Undated", None)

        assert await sweeper.run_once() == 2

        org = admin.organization_id
        assert (await store.get_task(overdue.id, org)).status == TaskStatus.EXPIRED
        assert (await store.get_task(in_progress.id, org)).status == TaskStatus.EXPIRED
        completed = await store.get_task(done.id, org)
        assert completed.status == TaskStatus.COMPLETED
        assert completed.completed_at == done.completed_at
        assert (await store.get_task(future.id, org)).status == TaskStatus.TODO
        assert (await store.get_task(undated.id, org)).status == TaskStatus.TODO

    @pytest.mark.asyncio
    async def test_second_run_is_a_no_op(self, sweeper, tasks, admin) -> None:
        await _create(tasks, admin, "Overdue", timedelta(hours=-1))
        assert await sweeper.run_once() == 1
        assert await sweeper.run_once() == 0

    @pytest.mark.asyncio
    async def test_explicit_now(self, sweeper, tasks, admin) -> None:
        await _create(tasks, admin, "Tomorrow", timedelta(days=1))
        assert await sweeper.run_once(utcnow()) == 0
        assert await sweeper.run_once(utcnow() + timedelta(days=2)) == 1

    @pytest.mark.asyncio
    async def test_spans_organizations(self, sweeper, tasks, admin, other_admin) -> None:
        await _create(tasks, admin, "A", timedelta(hours=-1))
        await _create(tasks, other_admin, "B", timedelta(hours=-1))
        assert await sweeper.run_once() == 2


class TestLoop:

    @pytest.mark.asyncio
    async def test_start_and_stop(self, sweeper) -> None:
        sweeper.start()
        assert sweeper.running
        sweeper.start()  # idempotent
        await sweeper.stop()
        assert not sweeper.running

    @pytest.mark.asyncio
    async def test_stop_without_start(self, sweeper) -> None:
        await sweeper.stop()
        assert not sweeper.running

    @pytest.mark.asyncio
    async def test_failed_sweep_keeps_loop_alive(self, store) -> None:
        sweeper = ExpirationSweeper(store, interval_seconds=1)
        failing = AsyncMock(side_effect=StorageError("expire_overdue_tasks", "down"))
        with patch.object(store, "expire_overdue_tasks", failing):
            sweeper.start()
            for _ in range(50):
                if failing.await_count:
                    break
                await asyncio.sleep(0.01)
            assert failing.await_count >= 1
            assert sweeper.running
            await sweeper.stop()
