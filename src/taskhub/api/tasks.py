"""Task routes."""
from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Body, Query

from taskhub.api.schemas import (
    MessageResponse,
    StatsView,
    TaskListResponse,
    TaskView,
    stats_view,
    task_list_response,
    task_view,
)
from taskhub.core.schemas import AttachmentCreate, CommentCreate, TaskCreate
from taskhub.core.types import Task
from taskhub.dependencies import CurrentActor, Tasks
from taskhub.services.tasks import TaskManager

router = APIRouter(prefix="/tasks", tags=["tasks"])


async def _render(manager: TaskManager, task: Task) -> TaskView:
    return task_view(task, await manager.related_users([task]))


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    actor: CurrentActor,
    tasks: Tasks,
    page: int = 1,
    limit: int = 10,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    priority: str | None = None,
    category: str | None = None,
    assigned_to: Annotated[str | None, Query(alias="assignedTo")] = None,
) -> TaskListResponse:
    filters = {
        "status": status_filter,
        "priority": priority,
        "category": category,
        "assigned_to": assigned_to,
    }
    result = await tasks.list(
        {k: v for k, v in filters.items() if v is not None},
        {"page": page, "limit": limit},
        actor,
    )
    return task_list_response(result, await tasks.related_users(result.tasks))


# Declared before "/{task_id}" so "stats" is not captured as an id.
@router.get("/stats/overview", response_model=StatsView)
async def task_stats(actor: CurrentActor, tasks: Tasks) -> StatsView:
    return stats_view(await tasks.stats(actor))


@router.get("/{task_id}", response_model=TaskView)
async def get_task(task_id: str, actor: CurrentActor, tasks: Tasks) -> TaskView:
    return await _render(tasks, await tasks.get(task_id, actor))


@router.post("", response_model=TaskView, status_code=201)
async def create_task(body: TaskCreate, actor: CurrentActor, tasks: Tasks) -> TaskView:
    return await _render(tasks, await tasks.create(body, actor))


@router.put("/{task_id}", response_model=TaskView)
async def update_task(
    task_id: str,
    body: Annotated[dict[str, Any], Body()],
    actor: CurrentActor,
    tasks: Tasks,
) -> TaskView:
    # Raw payload: the service checks a Member's keys before validating them.
    return await _render(tasks, await tasks.update(task_id, body, actor))


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(task_id: str, actor: CurrentActor, tasks: Tasks) -> MessageResponse:
    await tasks.delete(task_id, actor)
    return MessageResponse(message="Task deleted successfully")


@router.post("/{task_id}/comments", response_model=TaskView, status_code=201)
async def add_comment(
    task_id: str, body: CommentCreate, actor: CurrentActor, tasks: Tasks
) -> TaskView:
    return await _render(tasks, await tasks.add_comment(task_id, body.text, actor))


@router.post("/{task_id}/attachments", response_model=TaskView, status_code=201)
async def add_attachment(
    task_id: str, body: AttachmentCreate, actor: CurrentActor, tasks: Tasks
) -> TaskView:
    return await _render(tasks, await tasks.add_attachment(task_id, body, actor))
