"""Task lifecycle management.

All reads and writes are scoped to the actor's organization; a task in
another organization is indistinguishable from a missing one.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from taskhub.core.exceptions import InvalidAssignmentError, NotFoundError
from taskhub.core.lifecycle import apply_completion, touch
from taskhub.core.schemas import (
    AttachmentCreate,
    CommentCreate,
    Pagination,
    TaskCreate,
    TaskFilters,
    TaskUpdate,
    coerce,
)
from taskhub.core.types import (
    Attachment,
    Comment,
    Task,
    TaskPage,
    TaskQuery,
    TaskStats,
    UserSummary,
    utcnow,
)
from taskhub.policy import Action, ResourceContext, authorize, is_allowed, update_action
from taskhub.utils.security import generate_id
from taskhub.utils.validation import validate_record_id

if TYPE_CHECKING:
    from taskhub.core.types import Actor
    from taskhub.storage.base import DataStore

logger = logging.getLogger(__name__)


class TaskManager:
    """Create, read, update and delete tasks on behalf of an actor.

    Example:
        ```python
        manager = TaskManager(store)
        task = await manager.create({"title": "Fix login", "category": "Bug"}, actor)
        task = await manager.update(task.id, {"status": "Completed"}, actor)
        page = await manager.list({"status": "Completed"}, {"page": 1}, actor)
        ```
    """

    def __init__(self, store: DataStore) -> None:
        self.store = store

    def _scope(self, actor: Actor, filters: TaskFilters | None = None) -> TaskQuery:
        # Roles that cannot view arbitrary tasks only see their own.
        narrowed = not is_allowed(actor.role, Action.VIEW_TASK)
        filters = filters or TaskFilters()
        return TaskQuery(
            organization_id=actor.organization_id,
            status=filters.status,
            priority=filters.priority,
            category=filters.category,
            assigned_to=filters.assigned_to,
            visible_to=actor.id if narrowed else None,
        )

    async def _check_assignee(self, user_id: str, organization_id: str) -> None:
        if not validate_record_id(user_id):
            raise InvalidAssignmentError(user_id)
        try:
            user = await self.store.get_user(user_id)
        except NotFoundError:
            raise InvalidAssignmentError(user_id) from None
        if not user.is_active or user.organization_id != organization_id:
            raise InvalidAssignmentError(user_id)

    async def create(self, data: TaskCreate | Mapping[str, Any], actor: Actor) -> Task:
        """Create a task in the actor's organization (Admin/Manager)."""
        authorize(actor.role, Action.CREATE_TASK)
        request = coerce(TaskCreate, data)
        if request.assigned_to is not None:
            await self._check_assignee(request.assigned_to, actor.organization_id)

        now = utcnow()
        task = Task(
            id=generate_id(),
            title=request.title,
            description=request.description,
            status=request.status,
            priority=request.priority,
            category=request.category,
            due_date=request.due_date,
            assigned_to=request.assigned_to,
            created_by=actor.id,
            organization_id=actor.organization_id,
            created_at=now,
            updated_at=now,
        )
        task = await self.store.create_task(apply_completion(task, None, now))
        logger.info("Task %s created by %s", task.id, actor.id)
        return task

    async def get(self, task_id: str, actor: Actor) -> Task:
        """Return a task the actor may view."""
        task = await self.store.get_task(task_id, actor.organization_id)
        authorize(actor.role, Action.VIEW_TASK, ResourceContext.for_task(task, actor.id))
        return task

    async def update(
        self,
        task_id: str,
        data: TaskUpdate | Mapping[str, Any],
        actor: Actor,
    ) -> Task:
        """Apply a partial update.

        A Member may change only ``status``, and only on a task assigned to
        them.  An update that includes any other key, known or not, is
        rejected whole with :class:`ForbiddenError` before the payload is
        validated.
        """
        task = await self.store.get_task(task_id, actor.organization_id)
        context = ResourceContext.for_task(task, actor.id)
        if isinstance(data, Mapping):
            authorize(actor.role, update_action(data.keys()), context)
        request = coerce(TaskUpdate, data)
        changes = request.changes()
        authorize(actor.role, update_action(changes), context)
        if changes.get("assigned_to") is not None:
            await self._check_assignee(changes["assigned_to"], actor.organization_id)

        now = utcnow()
        updated = apply_completion(task.model_copy(update=changes), task.status, now)
        updated = await self.store.update_task(touch(updated, now))
        logger.info("Task %s updated by %s (%s)", task_id, actor.id, ", ".join(sorted(changes)))
        return updated

    async def delete(self, task_id: str, actor: Actor) -> None:
        """Hard-delete a task (Admin/Manager)."""
        authorize(actor.role, Action.DELETE_TASK)
        if not await self.store.delete_task(task_id, actor.organization_id):
            raise NotFoundError("Task", task_id)
        logger.info("Task %s deleted by %s", task_id, actor.id)

    async def list(
        self,
        filters: TaskFilters | Mapping[str, Any] | None,
        pagination: Pagination | Mapping[str, Any] | None,
        actor: Actor,
    ) -> TaskPage:
        """List tasks newest first, one page at a time."""
        authorize(actor.role, Action.LIST_TASKS)
        query = self._scope(actor, coerce(TaskFilters, filters or {}))
        page = coerce(Pagination, pagination or {})

        total = await self.store.count_tasks(query)
        tasks = await self.store.list_tasks(query, skip=page.offset, limit=page.limit)
        return TaskPage(
            tasks=tasks,
            page=page.page,
            limit=page.limit,
            total=total,
            pages=math.ceil(total / page.limit),
        )

    async def stats(self, actor: Actor) -> TaskStats:
        """Status counts over the same scope :meth:`list` uses."""
        authorize(actor.role, Action.LIST_TASKS)
        return await self.store.task_stats(self._scope(actor), utcnow())

    async def add_comment(self, task_id: str, text: str, actor: Actor) -> Task:
        request = coerce(CommentCreate, {"text": text})
        task = await self.store.get_task(task_id, actor.organization_id)
        authorize(actor.role, Action.ANNOTATE_TASK, ResourceContext.for_task(task, actor.id))

        now = utcnow()
        comment = Comment(id=generate_id(), user_id=actor.id, text=request.text, created_at=now)
        updated = task.model_copy(update={"comments": (*task.comments, comment)})
        return await self.store.update_task(touch(updated, now))

    async def add_attachment(
        self,
        task_id: str,
        metadata: AttachmentCreate | Mapping[str, Any],
        actor: Actor,
    ) -> Task:
        """Record attachment metadata.  File contents are not handled here."""
        request = coerce(AttachmentCreate, metadata)
        task = await self.store.get_task(task_id, actor.organization_id)
        authorize(actor.role, Action.ANNOTATE_TASK, ResourceContext.for_task(task, actor.id))

        now = utcnow()
        attachment = Attachment(
            id=generate_id(),
            filename=request.filename,
            original_name=request.original_name,
            size=request.size,
            uploaded_by=actor.id,
            uploaded_at=now,
        )
        updated = task.model_copy(update={"attachments": (*task.attachments, attachment)})
        return await self.store.update_task(touch(updated, now))

    async def related_users(self, tasks: Iterable[Task]) -> dict[str, UserSummary]:
        """Map every user id referenced by *tasks* to its public identity.

        Ids of users that no longer exist are left out.
        """
        ids: list[str] = []
        for task in tasks:
            ids.append(task.created_by)
            if task.assigned_to:
                ids.append(task.assigned_to)
            ids.extend(c.user_id for c in task.comments)
            ids.extend(a.uploaded_by for a in task.attachments)
        users = await self.store.get_users(ids)
        return {u.id: u.summary() for u in users}


__all__ = ["TaskManager"]
